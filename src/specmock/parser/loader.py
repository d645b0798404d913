"""Load OpenAPI documents from a URL, local file, or stdin.

This module handles all I/O for fetching raw OpenAPI documents and converting
them into Python dictionaries.  It supports both JSON and YAML formats with
automatic format detection, and validates that the document declares a
supported OpenAPI version (3.x).

The public functions are:

* :func:`load_document` -- Load a document and keep its raw text, parsed
  tree, original encoding and location together in a :class:`SpecDocument`.
* :func:`parse_content` -- Parse already-fetched text as JSON or YAML; also
  used by the reference resolver for external documents.
* :func:`validate_openapi_version` -- Check and return the ``openapi`` version
  string, rejecting Swagger 2.x and unsupported versions.

After loading, the document is handed to
:class:`~specmock.importer.OpenAPIImporter`.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
import yaml

from specmock.exceptions import SpecParseError


@dataclass
class SpecDocument:
    """A loaded OpenAPI document.

    Attributes:
        content: The raw document text, exported verbatim as a resource.
        tree: The parsed document.
        is_yaml: ``True`` when the text was YAML rather than JSON. Only
            affects the name of the exported resource.
        location: Where the document came from (file path, URL, or ``-``).
            Relative external references are resolved against it.
    """

    content: str
    tree: dict[str, Any]
    is_yaml: bool = False
    location: str = "-"


def load_document(source: str, timeout: float = 30.0) -> SpecDocument:
    """Load an OpenAPI document from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or '-' for stdin.
        timeout: Timeout in seconds for URL sources.

    Returns:
        The loaded :class:`SpecDocument`.

    Raises:
        SpecParseError: If the source cannot be loaded or parsed.
    """
    if source == "-":
        content, hint = _load_from_stdin()
        location = "-"
    elif source.startswith(("http://", "https://")):
        content, hint = _load_from_url(source, timeout=timeout)
        location = source
    else:
        content, hint = _load_from_file(source)
        location = str(Path(source).resolve())

    tree, is_yaml = parse_content(content, hint=hint)
    return SpecDocument(content=content, tree=tree, is_yaml=is_yaml, location=location)


def _load_from_stdin() -> tuple[str, str]:
    """Read a document from stdin.

    Raises:
        SpecParseError: If stdin is empty or cannot be read.
    """
    try:
        content = sys.stdin.read()
    except Exception as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SpecParseError("No input received from stdin")

    return content, ""


def _load_from_url(url: str, timeout: float = 30.0) -> tuple[str, str]:
    """Fetch a document from URL. Supports JSON and YAML responses.

    Returns:
        The document text and a format hint taken from the content type.

    Raises:
        SpecParseError: If the URL cannot be fetched.
    """
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching spec from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch spec from {url}: {exc}") from exc

    return response.text, hint_from_content_type(response.headers.get("content-type", ""))


def _load_from_file(path: str) -> tuple[str, str]:
    """Load a document from a local file.

    Returns:
        The document text and a format hint taken from the file extension.

    Raises:
        SpecParseError: If the file is missing, unreadable, or empty.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Spec file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read spec file {path}: {exc}") from exc

    if not content.strip():
        raise SpecParseError(f"Spec file is empty: {path}")

    return content, hint_from_suffix(file_path.suffix)


def hint_from_suffix(suffix: str) -> str:
    """Map a file extension to a format hint (``json``, ``yaml`` or empty)."""
    suffix = suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix in (".yaml", ".yml"):
        return "yaml"
    return ""


def hint_from_content_type(content_type: str) -> str:
    """Map an HTTP content type to a format hint (``json``, ``yaml`` or empty)."""
    if "json" in content_type:
        return "json"
    if "yaml" in content_type or "yml" in content_type:
        return "yaml"
    return ""


def parse_content(content: str, hint: str = "") -> tuple[dict[str, Any], bool]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.
    This order is chosen because valid JSON is also valid YAML, but JSON
    parsing is stricter and faster.

    Args:
        content: The raw string content.
        hint: Optional format hint ('json' or 'yaml').

    Returns:
        The parsed dictionary and whether it was read as YAML.

    Raises:
        SpecParseError: If the content cannot be parsed as either format.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
            if not isinstance(result, dict):
                raise SpecParseError(
                    "Spec must be a JSON/YAML object (got "
                    f"{type(result).__name__})"
                )
            return result, False
        except json.JSONDecodeError as exc:
            json_error = exc
            # If the hint was explicitly JSON, don't try YAML
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc

    try:
        result = yaml.safe_load(content)
        if not isinstance(result, dict):
            raise SpecParseError(
                "Spec must be a JSON/YAML object (got "
                f"{type(result).__name__ if result is not None else 'empty document'})"
            )
        return result, True
    except yaml.YAMLError as exc:
        yaml_error = exc

    msg = "Failed to parse spec as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise SpecParseError(msg)


def validate_openapi_version(spec: dict[str, Any]) -> str:
    """Validate and return the OpenAPI version string.

    Supports OpenAPI 3.x. Raises SpecParseError for Swagger 2.x, missing
    version fields, or unsupported versions.

    Raises:
        SpecParseError: If the version is missing, unsupported, or indicates Swagger 2.x.
    """
    if "swagger" in spec:
        swagger_ver = str(spec["swagger"])
        raise SpecParseError(
            f"Swagger {swagger_ver} is not supported. "
            "Only OpenAPI 3.x documents can be imported."
        )

    openapi_version = spec.get("openapi")
    if openapi_version is None:
        raise SpecParseError(
            "Missing 'openapi' field. Is this an OpenAPI 3.x document?"
        )

    version_str = str(openapi_version)
    if version_str.startswith("3."):
        return version_str

    raise SpecParseError(
        f"Unsupported OpenAPI version: {version_str}. "
        "Only OpenAPI 3.x documents can be imported."
    )
