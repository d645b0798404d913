"""Cache commands -- inspect and empty the remote document cache.

Documents fetched for ``https://`` references are kept on disk for
``cache.ttl_seconds``. These commands let users see what is cached and
force a fresh fetch on the next import.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import typer

from specmock.cache import DocumentCache
from specmock.output import error, format_response, info, success


cache_app = typer.Typer(no_args_is_help=True)


@contextmanager
def _open_cache() -> Iterator[DocumentCache]:
    from specmock.config import get_cache_dir, resolve_config
    from specmock.exceptions import ConfigError

    try:
        config = resolve_config()
    except ConfigError as exc:
        error(f"Config error: {exc}")
        raise typer.Exit(code=exc.exit_code) from None

    cache = DocumentCache(get_cache_dir(), config.cache)
    try:
        yield cache
    finally:
        cache.close()


@cache_app.command("stats")
def cache_stats() -> None:
    """Show the cache location, entry count and TTL.

    Example::

        specmock --json cache stats
    """
    with _open_cache() as cache:
        format_response(cache.stats())


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Remove every cached document.

    Asks for confirmation unless ``--force`` is active.
    """
    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force and not typer.confirm("Remove all cached documents?"):
        info("Cancelled.")
        raise typer.Exit()

    with _open_cache() as cache:
        cache.clear()
    success("Document cache cleared.")


@cache_app.command("forget")
def cache_forget(
    url: str = typer.Argument(help="URL of a referenced document."),
) -> None:
    """Drop one cached document so the next import fetches it again.

    Example::

        specmock cache forget https://example.com/common.yaml
    """
    with _open_cache() as cache:
        cache.invalidate(url)
    success(f"Forgot {url}")
