"""Inspect commands -- examine the mock definitions extracted from a document.

Provides the ``specmock inspect`` sub-command group with read-only
commands for viewing what an import produces: the service, its operations
with their dispatchers and resource paths, and the exchanges of a single
operation. Every sub-command takes the document location (file path, URL
or ``-`` for stdin) as its first argument.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

import typer

from specmock.exceptions import InvalidUsageError, SpecmockError
from specmock.output import error, format_response, get_output, info

if TYPE_CHECKING:
    from specmock.importer import OpenAPIImporter


inspect_app = typer.Typer(no_args_is_help=True)


@contextmanager
def open_importer(source: str) -> Iterator[OpenAPIImporter]:
    """Load *source* and yield an importer configured from the resolved config.

    The document cache is closed on exit. Library errors are reported on
    stderr and turned into a :class:`typer.Exit` carrying the error's exit
    code.

    Raises:
        typer.Exit: When the configuration or the document cannot be loaded,
            or mock definitions cannot be extracted.
    """
    from specmock.cache import DocumentCache
    from specmock.config import get_cache_dir, resolve_config
    from specmock.importer import OpenAPIImporter

    try:
        config = resolve_config()
    except SpecmockError as exc:
        error(f"Config error: {exc}")
        raise typer.Exit(code=exc.exit_code) from None

    cache = DocumentCache(get_cache_dir(), config.cache)
    try:
        yield OpenAPIImporter.from_source(source, config=config.resolver, cache=cache)
    except SpecmockError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    finally:
        cache.close()


@inspect_app.command("service")
def inspect_service(
    spec: str = typer.Argument(help="OpenAPI document: file path, URL, or '-' for stdin."),
) -> None:
    """Show the service described by a document.

    Outputs the service name, version, type, vendor metadata and operation
    count.

    Example::

        specmock inspect service petstore.yaml
        specmock --json inspect service https://example.com/openapi.json
    """
    with open_importer(spec) as importer:
        service = importer.get_service_definitions()[0]

    data: dict = {
        "name": service.name,
        "version": service.version,
        "type": service.type.value,
        "operations": len(service.operations),
    }
    if service.metadata is not None:
        data["labels"] = service.metadata.labels
        data["annotations"] = service.metadata.annotations

    format_response(data)


@inspect_app.command("operations")
def inspect_operations(
    spec: str = typer.Argument(help="OpenAPI document: file path, URL, or '-' for stdin."),
) -> None:
    """List the operations of a document with their dispatchers.

    Exchanges are extracted for every operation first so that the resource
    paths shown include the concrete paths derived from examples.

    Example::

        specmock inspect operations petstore.yaml
    """
    with open_importer(spec) as importer:
        service = importer.get_service_definitions()[0]
        for operation in service.operations:
            importer.get_message_definitions(service, operation)

    output = get_output()
    headers = ["Operation", "Dispatcher", "Rules", "Resource Paths"]
    rows: list[list[str]] = []
    for operation in service.operations:
        rows.append([
            operation.name,
            operation.dispatcher or "-",
            operation.dispatcher_rules or "-",
            ", ".join(operation.resource_paths) or "-",
        ])

    output.print_table(
        headers, rows, title=f"{service.name} {service.version} -- Operations ({len(rows)})"
    )


@inspect_app.command("exchanges")
def inspect_exchanges(
    spec: str = typer.Argument(help="OpenAPI document: file path, URL, or '-' for stdin."),
    operation: str = typer.Argument(help="Operation name, e.g. 'GET /pets/{id}'."),
    full: bool = typer.Option(
        False, "--full", help="Output complete exchanges instead of a summary table."
    ),
) -> None:
    """Show the request/response exchanges of one operation.

    Example::

        specmock inspect exchanges petstore.yaml "GET /pets/{id}"
        specmock --json inspect exchanges petstore.yaml "GET /pets" --full
    """
    with open_importer(spec) as importer:
        service = importer.get_service_definitions()[0]
        target = service.get_operation(operation)
        if target is None:
            exc = InvalidUsageError(f"Unknown operation: {operation}")
            error(str(exc))
            info("Run 'specmock inspect operations' to list operation names.")
            raise typer.Exit(code=exc.exit_code)
        exchanges = importer.get_message_definitions(service, target)

    if not exchanges:
        info(f"No exchanges for {operation}.")
        return

    if full:
        format_response([exchange.model_dump(mode="json") for exchange in exchanges])
        return

    output = get_output()
    headers = ["Example", "Status", "Media Type", "Dispatch Criteria"]
    rows = [
        [
            exchange.response.name,
            exchange.response.status,
            exchange.response.media_type or "-",
            exchange.response.dispatch_criteria or "-",
        ]
        for exchange in exchanges
    ]
    output.print_table(headers, rows, title=f"{operation} -- Exchanges ({len(rows)})")
