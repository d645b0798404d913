"""Resolve ``$ref`` JSON Reference pointers against local and external documents.

OpenAPI documents use ``$ref`` pointers (e.g.,
``{"$ref": "#/components/examples/Rex"}``) to avoid repetition, and may point
into other documents (``common.yaml#/components/parameters/Id`` or a full
``https://`` URL).  :class:`ReferenceResolver` performs **one hop** of
resolution: given a reference string it returns the referenced node.
Following chains of references, with cycle detection, is the job of
:class:`~specmock.compiler.navigator.NodeNavigator`.

External documents are fetched the first time they are referenced and kept
in memory for the lifetime of the resolver; remote ones can additionally be
kept in a :class:`~specmock.cache.DocumentCache` across runs.  Local
references inside an external document are rewritten to absolute ones when
the document is loaded, so every reference returned by the resolver can be
resolved without knowing which document it came from.

The resolver also remembers every external document it loaded, in the order
they were first referenced, so that they can be exported as resources next
to the primary document.

A resolver is not thread-safe: its document cache is a plain dict filled on
first use.  Concurrent importers must each own a resolver, or warm it up with
:meth:`ReferenceResolver.load_external_documents` before sharing it for reads.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional
from urllib.parse import urljoin, urlparse

import httpx

from specmock.cache import DocumentCache
from specmock.exceptions import ReferenceResolutionError, SpecParseError
from specmock.models import ResolverConfig
from specmock.parser.loader import hint_from_content_type, hint_from_suffix, parse_content

logger = logging.getLogger(__name__)


@dataclass
class ExternalDocument:
    """A document loaded because an external ``$ref`` pointed to it.

    Attributes:
        uri: Absolute location (file path or URL) the document was read from.
        ref: Location relative to the primary document's directory, e.g.
            ``common.yaml`` or ``sub/deep.yaml``; the absolute URL for
            documents on another host.  Used to name exported resources.
        content: Raw document text.
        tree: Parsed document, with its references made absolute.
        links: Document parts of the references as written in *content*,
            mapped to the absolute location they point to.
    """

    uri: str
    ref: str
    content: str
    tree: dict[str, Any]
    links: dict[str, str] = field(default_factory=dict)


def is_ref(node: Any) -> bool:
    """Return True if *node* is a reference marker (a dict with a ``$ref`` string)."""
    return isinstance(node, dict) and isinstance(node.get("$ref"), str)


def resolve_pointer(document: Any, pointer: str, ref: str) -> Any:
    """Navigate a JSON Pointer (RFC 6901) inside *document*.

    Handles the ``~0`` (``~``) and ``~1`` (``/``) escapes.

    Args:
        document: The parsed document to navigate.
        pointer: The fragment part of the reference, without ``#``
            (e.g. ``/components/schemas/Pet``).  An empty pointer targets
            the whole document.
        ref: The full reference, for error messages.

    Raises:
        ReferenceResolutionError: If any segment does not exist.
    """
    current: Any = document
    if not pointer or pointer == "/":
        return current

    for segment in pointer.lstrip("/").split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise ReferenceResolutionError(
                    f"Cannot resolve $ref '{ref}': key '{segment}' not found",
                    location=ref,
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise ReferenceResolutionError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'",
                    location=ref,
                ) from exc
        else:
            raise ReferenceResolutionError(
                f"Cannot resolve $ref '{ref}': cannot navigate into {type(current).__name__}",
                location=ref,
            )

    return current


def iter_refs(node: Any) -> Iterator[dict[str, Any]]:
    """Yield every reference marker found anywhere under *node*."""
    if isinstance(node, dict):
        if is_ref(node):
            yield node
        for value in node.values():
            yield from iter_refs(value)
    elif isinstance(node, list):
        for item in node:
            yield from iter_refs(item)


def _is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


class ReferenceResolver:
    """Resolve ``$ref`` strings against the root document and the documents it references.

    Args:
        root: The parsed primary document.
        base_location: Where the primary document was read from (file path,
            URL, or ``-`` for stdin).  Relative document references are
            resolved against it; for stdin, against the working directory.
        config: Fetch settings.  Defaults to :class:`~specmock.models.ResolverConfig`.
        cache: Optional disk cache for remote documents.

    Example::

        resolver = ReferenceResolver(doc.tree, doc.location)
        pet = resolver.resolve("#/components/schemas/Pet")
        common = resolver.resolve("common.yaml#/components/parameters/Id")
    """

    def __init__(
        self,
        root: dict[str, Any],
        base_location: str = "-",
        config: Optional[ResolverConfig] = None,
        cache: Optional[DocumentCache] = None,
    ) -> None:
        self.root = root
        self.config = config or ResolverConfig()
        self._cache = cache
        if base_location == "-":
            base_location = str(Path.cwd() / "stdin")
        self.base_location = base_location
        self._documents: dict[str, dict[str, Any]] = {base_location: root}
        self._external: dict[str, ExternalDocument] = {}

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, ref: str) -> Any:
        """Return the node *ref* points to (one hop, no chain following).

        Raises:
            ReferenceResolutionError: If the target document cannot be
                loaded or the pointer does not exist in it.
        """
        doc_part, _, pointer = ref.partition("#")
        if doc_part:
            uri = self.absolute(doc_part, self.base_location)
            document = self._document(uri, doc_part)
        else:
            document = self.root
        return resolve_pointer(document, pointer, ref)

    def canonical(self, ref: str) -> str:
        """Return *ref* with its document part made absolute, for identity checks."""
        doc_part, _, pointer = ref.partition("#")
        uri = self.absolute(doc_part, self.base_location) if doc_part else self.base_location
        return f"{uri}#{pointer}"

    @staticmethod
    def absolute(doc_ref: str, base: str) -> str:
        """Make a document reference absolute relative to *base*."""
        if _is_url(doc_ref):
            return doc_ref
        if _is_url(base):
            return urljoin(base, doc_ref)
        if os.path.isabs(doc_ref):
            return str(Path(doc_ref).resolve())
        return str((Path(base).parent / doc_ref).resolve())

    # ------------------------------------------------------------------
    # External documents
    # ------------------------------------------------------------------

    @property
    def root_links(self) -> dict[str, str]:
        """Document parts of the primary document's references, mapped to absolute locations."""
        links: dict[str, str] = {}
        for marker in iter_refs(self.root):
            doc_part = marker["$ref"].partition("#")[0]
            if doc_part:
                links[doc_part] = self.absolute(doc_part, self.base_location)
        return links

    def relative_ref(self, uri: str) -> str:
        """Return *uri* relative to the primary document's directory.

        A document on another host than a remote primary document, or a
        remote document referenced from a local one, keeps its absolute URL.
        """
        if _is_url(self.base_location):
            base_dir = urljoin(self.base_location, ".")
            return uri[len(base_dir):] if uri.startswith(base_dir) else uri
        if _is_url(uri):
            return uri
        return Path(os.path.relpath(uri, Path(self.base_location).parent)).as_posix()

    @property
    def external_documents(self) -> list[ExternalDocument]:
        """Every external document loaded so far, in first-reference order."""
        return list(self._external.values())

    def load_external_documents(self) -> list[ExternalDocument]:
        """Eagerly load every document reachable through external references.

        Walks the root document, then each newly loaded document, so that
        later resolution never blocks on I/O.

        Raises:
            ReferenceResolutionError: If a referenced document cannot be loaded.
        """
        pending: list[dict[str, Any]] = [self.root]
        while pending:
            tree = pending.pop(0)
            for marker in iter_refs(tree):
                doc_part = marker["$ref"].partition("#")[0]
                if not doc_part:
                    continue
                uri = self.absolute(doc_part, self.base_location)
                if uri in self._documents:
                    continue
                pending.append(self._document(uri, doc_part))
        return self.external_documents

    def _document(self, uri: str, written: str) -> dict[str, Any]:
        """Return the parsed document at *uri*, loading it on first use."""
        if uri in self._documents:
            return self._documents[uri]

        content, hint = self._fetch(uri, written)
        try:
            tree, _ = parse_content(content, hint=hint)
        except SpecParseError as exc:
            raise ReferenceResolutionError(
                f"Referenced document {uri} cannot be parsed: {exc}", location=written
            ) from exc

        links = self._absolutize_refs(tree, uri)
        self._documents[uri] = tree
        self._external[uri] = ExternalDocument(
            uri=uri, ref=self.relative_ref(uri), content=content, tree=tree, links=links
        )
        logger.debug("Loaded referenced document %s", uri)
        return tree

    def _absolutize_refs(self, tree: dict[str, Any], uri: str) -> dict[str, str]:
        """Rewrite the references of a freshly loaded document relative to *uri*.

        Returns the document parts as written, mapped to their absolute form.
        """
        links: dict[str, str] = {}
        for marker in iter_refs(tree):
            doc_part, _, pointer = marker["$ref"].partition("#")
            target = self.absolute(doc_part, uri) if doc_part else uri
            if doc_part:
                links[doc_part] = target
            marker["$ref"] = f"{target}#{pointer}"
        return links

    def _fetch(self, uri: str, written: str) -> tuple[str, str]:
        """Read the text of a referenced document and return it with a format hint."""
        if _is_url(uri):
            return self._fetch_url(uri, written)

        path = Path(uri)
        if not path.is_file():
            raise ReferenceResolutionError(
                f"Referenced document not found: {uri}", location=written
            )
        try:
            return path.read_text(encoding="utf-8"), hint_from_suffix(path.suffix)
        except OSError as exc:
            raise ReferenceResolutionError(
                f"Cannot read referenced document {uri}: {exc}", location=written
            ) from exc

    def _fetch_url(self, url: str, written: str) -> tuple[str, str]:
        hint = hint_from_suffix(Path(urlparse(url).path).suffix)
        if not self.config.allow_remote:
            raise ReferenceResolutionError(
                f"Remote reference {url} found but remote fetching is disabled",
                location=written,
            )

        if self._cache is not None:
            cached = self._cache.get(url)
            if cached is not None:
                logger.debug("Using cached copy of %s", url)
                return cached, hint

        logger.info("Fetching referenced document %s", url)
        try:
            response = httpx.get(
                url,
                timeout=self.config.timeout,
                follow_redirects=True,
                verify=self.config.verify_ssl,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ReferenceResolutionError(
                f"HTTP {exc.response.status_code} fetching referenced document {url}",
                location=written,
            ) from exc
        except httpx.RequestError as exc:
            raise ReferenceResolutionError(
                f"Failed to fetch referenced document {url}: {exc}", location=written
            ) from exc

        if self._cache is not None:
            self._cache.set(url, response.text)
        return response.text, hint or hint_from_content_type(
            response.headers.get("content-type", "")
        )
