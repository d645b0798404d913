"""OpenAPI document loading and ``$ref`` resolution.

This sub-package is responsible for the first half of the specmock pipeline:
turning a raw OpenAPI 3.x document (JSON or YAML, local file or remote URL)
into a :class:`~specmock.parser.loader.SpecDocument` and a
:class:`~specmock.parser.resolver.ReferenceResolver` that the importer
navigates.

Typical usage::

    from specmock.parser import ReferenceResolver, load_document, validate_openapi_version

    doc = load_document("petstore.yaml")
    validate_openapi_version(doc.tree)
    resolver = ReferenceResolver(doc.tree, doc.location)

Sub-modules:

* :mod:`~specmock.parser.loader` -- I/O layer (URL, file, stdin) plus format
  detection and OpenAPI version validation.
* :mod:`~specmock.parser.resolver` -- One-hop ``$ref`` resolution across the
  primary document and the external documents it references.
"""

from specmock.parser.loader import (
    SpecDocument,
    load_document,
    validate_openapi_version,
)
from specmock.parser.resolver import ExternalDocument, ReferenceResolver

__all__ = [
    "ExternalDocument",
    "ReferenceResolver",
    "SpecDocument",
    "load_document",
    "validate_openapi_version",
]
