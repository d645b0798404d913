"""Typer application and CLI entry point for specmock.

This module wires together the top-level Typer application and registers the
built-in sub-commands (``inspect``, ``export``, ``config``, ``cache``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, registers commands and
invokes the Typer app. :class:`~specmock.exceptions.SpecmockError` instances
are mapped to their exit code; any other exception is written to a crash
log under the data directory.

See Also:
    :mod:`specmock.config`: Global and project configuration resolution.
    :mod:`specmock.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from specmock import __version__
from specmock.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="specmock",
    help="Import OpenAPI 3.x documents as mock service definitions.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"specmock {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write data to this file instead of stdout."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~specmock.output.OutputManager` from
    CLI flags, routes library log records to stderr, and stores shared
    options in the Typer context so that sub-commands can read them via
    ``ctx.obj``.

    With ``-o/--output`` the data a command prints (service JSON, tables,
    exchanges) is written to that file instead of stdout.

    The log level comes from the resolved configuration (``log_level``,
    ``SPECMOCK_LOG_LEVEL``); ``--verbose`` forces ``DEBUG``.
    """
    from specmock.config import resolve_config
    from specmock.exceptions import ConfigError
    from specmock.output import (
        OutputFormat,
        OutputManager,
        configure_logging,
        set_output,
    )

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
        output_file=output_file,
    )
    set_output(output)

    try:
        log_level = resolve_config().log_level
    except ConfigError:
        log_level = "WARNING"
    configure_logging("DEBUG" if verbose else log_level, output.stderr_console)

    ctx.ensure_object(dict)
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from specmock.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def register_commands() -> None:
    """Attach the built-in sub-commands to :data:`app`.

    Safe to call more than once.
    """
    from specmock.commands.cache import cache_app
    from specmock.commands.config import config_app
    from specmock.commands.export import export_command
    from specmock.commands.inspect import inspect_app

    registered = {info.name for info in app.registered_groups} | {
        info.name for info in app.registered_commands
    }
    if "inspect" not in registered:
        app.add_typer(inspect_app, name="inspect", help="Inspect the mock definitions of a document.")
    if "config" not in registered:
        app.add_typer(config_app, name="config", help="Configuration management.")
    if "cache" not in registered:
        app.add_typer(cache_app, name="cache", help="Remote document cache.")
    if "export" not in registered:
        app.command("export")(export_command)


def main() -> None:
    """CLI entry point invoked by the ``specmock`` console script.

    Unhandled :class:`~specmock.exceptions.SpecmockError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        register_commands()
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from specmock.exceptions import SpecmockError
        from specmock.output import error

        if isinstance(exc, SpecmockError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
