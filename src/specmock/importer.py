"""Import an OpenAPI 3.x document as mock definitions.

:class:`OpenAPIImporter` is the entry point of the library.  It exposes
three operations:

* :meth:`~OpenAPIImporter.get_service_definitions` -- discover the service
  and its operations, choosing each operation's dispatcher.
* :meth:`~OpenAPIImporter.get_message_definitions` -- extract the
  request/response exchanges of one operation and complete its resource
  paths.
* :meth:`~OpenAPIImporter.get_resource_definitions` -- the documents to
  persist next to the mocks: the primary document and every external
  document it references.

Typical usage::

    importer = OpenAPIImporter.from_source("petstore.yaml")
    service = importer.get_service_definitions()[0]
    for operation in service.operations:
        exchanges = importer.get_message_definitions(service, operation)

An importer keeps mutable state (its resolver's document cache and the
operations' resource paths) and must not be shared between threads.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterator, Optional
from urllib.parse import urlparse

from specmock.cache import DocumentCache
from specmock.compiler import (
    NodeNavigator,
    assemble_exchanges,
    correlate_operation,
    declared_parameters,
    query_parameter_names,
    resolve_dispatch_rule,
    select_dispatcher,
)
from specmock.compiler.navigator import value_as_text
from specmock.exceptions import MockImportError
from specmock.metadata import (
    OPERATION_EXTENSION,
    SERVICE_EXTENSION,
    complete_metadata,
    complete_operation_properties,
)
from specmock.models import (
    Exchange,
    HTTPMethod,
    Metadata,
    Operation,
    Resource,
    ResourceType,
    ResolverConfig,
    Service,
    ServiceType,
)
from specmock.parser.loader import SpecDocument, load_document, validate_openapi_version
from specmock.parser.resolver import ExternalDocument, ReferenceResolver

logger = logging.getLogger(__name__)

_VALID_VERBS = [method.value for method in HTTPMethod]


class OpenAPIImporter:
    """Build mock definitions from a loaded OpenAPI document.

    Args:
        document: The loaded primary document.
        resolver: Resolver for ``$ref`` pointers.  Built from *document*
            and *config* when omitted.
        config: Resolver settings used when building the resolver.
        cache: Optional disk cache for remote documents.
    """

    def __init__(
        self,
        document: SpecDocument,
        resolver: Optional[ReferenceResolver] = None,
        config: Optional[ResolverConfig] = None,
        cache: Optional[DocumentCache] = None,
    ) -> None:
        self.document = document
        self.resolver = resolver or ReferenceResolver(
            document.tree, document.location, config=config, cache=cache
        )
        self.navigator = NodeNavigator(self.resolver)

    @classmethod
    def from_source(
        cls,
        source: str,
        config: Optional[ResolverConfig] = None,
        cache: Optional[DocumentCache] = None,
    ) -> OpenAPIImporter:
        """Load and validate the document at *source* and return an importer for it.

        Raises:
            SpecParseError: If the document cannot be loaded or is not OpenAPI 3.x.
        """
        config = config or ResolverConfig()
        document = load_document(source, timeout=config.timeout)
        validate_openapi_version(document.tree)
        return cls(document, config=config, cache=cache)

    # ------------------------------------------------------------------
    # Service discovery
    # ------------------------------------------------------------------

    def get_service_definitions(self) -> list[Service]:
        """Discover the service described by the document.

        External documents are loaded first so that extraction never blocks
        on I/O.

        Raises:
            MockImportError: If a reference cannot be resolved.
        """
        info = self.navigator.child(self.document.tree, "info")
        if not isinstance(info, dict):
            info = {}

        service = Service(
            name=value_as_text(info.get("title")) or "",
            version=value_as_text(info.get("version")) or "",
            type=ServiceType.REST,
        )
        if SERVICE_EXTENSION in info:
            service.metadata = complete_metadata(Metadata(), info[SERVICE_EXTENSION])

        self.resolver.load_external_documents()
        service.operations = self._extract_operations()
        logger.debug(
            "Discovered service '%s' %s with %d operations",
            service.name,
            service.version,
            len(service.operations),
        )
        return [service]

    def _iter_operations(self) -> Iterator[tuple[str, Any, str, Any]]:
        """Yield ``(path, path_item, verb, operation_node)`` for every operation."""
        for path_name, path_item in self.navigator.fields(self.document.tree, "paths"):
            path_item = self.navigator.resolve(path_item)
            if not isinstance(path_item, dict):
                continue
            for verb, operation_node in path_item.items():
                if verb not in _VALID_VERBS:
                    continue
                operation_node = self.navigator.resolve(operation_node)
                if isinstance(operation_node, dict):
                    yield path_name.strip(), path_item, verb, operation_node

    def _extract_operations(self) -> list[Operation]:
        operations: list[Operation] = []

        for path_name, path_item, verb, node in self._iter_operations():
            tags = node.get("tags")
            operation = Operation(
                name=f"{verb.upper()} {path_name}",
                method=verb.upper(),
                operation_id=value_as_text(node.get("operationId")),
                summary=value_as_text(node.get("summary")),
                tags=[str(tag) for tag in tags] if isinstance(tags, list) else [],
            )
            if OPERATION_EXTENSION in node:
                complete_operation_properties(operation, node[OPERATION_EXTENSION])

            parameters = declared_parameters(self.navigator, path_item, node)
            select_dispatcher(operation, query_parameter_names(parameters))
            operations.append(operation)

        return operations

    # ------------------------------------------------------------------
    # Exchanges
    # ------------------------------------------------------------------

    def get_message_definitions(self, service: Service, operation: Operation) -> list[Exchange]:
        """Extract the exchanges of *operation* and complete its resource paths.

        Args:
            service: The service the operation belongs to.
            operation: An operation returned by :meth:`get_service_definitions`.
                Its ``resource_paths`` are extended in place.

        Returns:
            The exchanges, one per routable example.  Empty when the
            operation is not found in the document or declares no examples.

        Raises:
            MockImportError: If a reference cannot be resolved.
        """
        for path_name, path_item, verb, node in self._iter_operations():
            if operation.name != f"{verb.upper()} {path_name}":
                continue

            fragments = correlate_operation(self.navigator, path_item, node)
            rule = resolve_dispatch_rule(operation)
            exchanges = assemble_exchanges(self.navigator, operation, node, fragments, rule)
            logger.debug(
                "Operation '%s' of service '%s': %d exchanges",
                operation.name,
                service.name,
                len(exchanges),
            )
            return exchanges

        logger.debug("Operation '%s' not found in document", operation.name)
        return []

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def get_resource_definitions(self, service: Service) -> list[Resource]:
        """Return the primary document and its external dependencies as resources.

        The primary resource is named ``<service>-<version>.(json|yaml)`` and
        each external document ``<service>-<version>--<relative path>``.
        Relative references to external documents, in the primary content and
        in every external content, are rewritten to the names of the matching
        resources.
        """
        prefix = f"{service.name}-{service.version}"
        extension = "yaml" if self.document.is_yaml else "json"

        external = self.resolver.external_documents
        names = {doc.uri: f"{prefix}--{_normalize_ref(doc)}" for doc in external}

        resources = [
            Resource(
                name=f"{prefix}.{extension}",
                type=ResourceType.OPEN_API_SPEC,
                content=_normalize_content(self.document.content, self.resolver.root_links, names),
                source=self.resolver.base_location,
            )
        ]
        resources.extend(
            Resource(
                name=names[doc.uri],
                type=ResourceType.OPEN_API_SCHEMA,
                content=_normalize_content(doc.content, doc.links, names),
                source=doc.uri,
            )
            for doc in external
        )
        return resources


def _normalize_content(content: str, links: dict[str, str], names: dict[str, str]) -> str:
    """Point the relative document references of *content* at resource names."""
    for written, uri in links.items():
        if uri in names and not written.startswith(("http://", "https://")):
            content = _replace_document_ref(content, written, names[uri])
    return content


def _normalize_ref(document: ExternalDocument) -> str:
    """Turn a document reference into a flat resource name suffix."""
    ref = document.ref
    if ref.startswith(("http://", "https://")):
        parsed = urlparse(ref)
        ref = f"{parsed.netloc}{parsed.path}"
    while ref.startswith(("./", "../")):
        ref = ref.split("/", 1)[1]
    return ref.strip("/").replace("/", "-")


def _replace_document_ref(content: str, ref: str, name: str) -> str:
    """Rewrite ``$ref`` values pointing at document *ref* to point at *name*."""
    pattern = re.compile(
        r"""(["']?\$ref["']?\s*:\s*["']?)""" + re.escape(ref) + r"""(?=[#"'\s,}]|$)""",
        re.MULTILINE,
    )
    return pattern.sub(lambda match: match.group(1) + name, content)


def import_service(source: str, config: Optional[ResolverConfig] = None) -> tuple[Service, dict[str, list[Exchange]]]:
    """Import *source* in one go: the service plus the exchanges of every operation.

    Raises:
        SpecParseError: If the document cannot be loaded.
        MockImportError: If mock definitions cannot be extracted.
    """
    importer = OpenAPIImporter.from_source(source, config=config)
    services = importer.get_service_definitions()
    if not services:
        raise MockImportError(f"No service found in {source}")
    service = services[0]
    exchanges = {
        operation.name: importer.get_message_definitions(service, operation)
        for operation in service.operations
    }
    return service, exchanges
