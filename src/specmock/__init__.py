"""specmock -- Import OpenAPI 3.x documents as mock service definitions.

This package reads an OpenAPI document, discovers the service and its
operations, and turns every named example into a request/response exchange
carrying the dispatch criteria a mock runtime uses to pick the right
response for a live request.

Typical workflow::

    specmock inspect operations petstore.yaml    # dispatchers and resource paths
    specmock inspect exchanges petstore.yaml "GET /pets/{id}"
    specmock export petstore.yaml --dir ./mocks  # persist the documents

Modules:
    app: Typer application and CLI entry point.
    importer: :class:`~specmock.importer.OpenAPIImporter`, the library entry point.
    compiler: Example correlation and dispatch-criteria compilation.
    parser: Document loading and ``$ref`` resolution.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration management.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting and logging setup.
"""

__version__ = "0.1.0"
