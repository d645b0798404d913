"""Export command -- write a document and its dependencies as mock resources.

The primary document is written as ``<service>-<version>.(json|yaml)`` with
its relative references rewritten to the names of the external documents,
which are written next to it.
"""

from __future__ import annotations

from pathlib import Path

import typer

from specmock.commands.inspect import open_importer
from specmock.output import debug, get_output, success, suggest


def export_command(
    spec: str = typer.Argument(help="OpenAPI document: file path, URL, or '-' for stdin."),
    directory: Path = typer.Option(
        Path("."), "--dir", "-d", help="Directory to write the resources to."
    ),
) -> None:
    """Write the document and every external document it references.

    Existing files with the same names are replaced atomically.

    Example::

        specmock export petstore.yaml --dir ./mocks
    """
    from specmock.config import atomic_write

    with open_importer(spec) as importer:
        service = importer.get_service_definitions()[0]
        resources = importer.get_resource_definitions(service)

    directory.mkdir(parents=True, exist_ok=True)
    rows: list[list[str]] = []
    for resource in resources:
        target = directory / resource.name
        atomic_write(target, resource.content)
        debug(f"Wrote {target} ({resource.type.value})")
        rows.append([resource.name, resource.type.value, resource.source or "-"])

    get_output().print_table(["Resource", "Type", "Source"], rows)
    success(f"Exported {len(resources)} resources to {directory}")
    suggest(f"specmock inspect operations {spec}")
