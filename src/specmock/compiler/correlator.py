"""Group example fragments scattered across a document by example identifier.

An OpenAPI author illustrates one call by reusing the same example name in
several places: ``examples.rex`` on the ``id`` path parameter, on the
``X-Tenant`` header parameter, on the request body and on the ``200``
response.  The functions here collect those fragments so the assembler can
rebuild each call.  Correlation is purely by name; two unrelated fields that
happen to share an example name are merged.

All functions are pure: they return new mappings and never mutate their
inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from specmock.compiler.navigator import NodeNavigator
from specmock.models import Header, ParameterLocation, Request

ParamsByExample = dict[str, dict[str, str]]
"""``example identifier -> {parameter name: literal value}``."""


@dataclass
class ExampleFragments:
    """Everything correlated for one operation, keyed by example identifier.

    Owned by a single extraction pass and discarded afterwards.
    """

    path: ParamsByExample = field(default_factory=dict)
    query: ParamsByExample = field(default_factory=dict)
    headers: ParamsByExample = field(default_factory=dict)
    bodies: dict[str, Request] = field(default_factory=dict)


def split_header_values(value: str) -> set[str]:
    """Split a comma-separated header value into a set of trimmed, non-empty values."""
    return {part.strip() for part in value.split(",") if part.strip()}


def correlate_parameters_by_example(
    navigator: NodeNavigator,
    scope: Any,
    kind: ParameterLocation | str,
    enclosing: Optional[ParamsByExample] = None,
) -> ParamsByExample:
    """Collect the example values of the ``kind`` parameters declared on *scope*.

    Args:
        navigator: Document navigator.
        scope: A path item or an operation node.
        kind: Parameter location to keep (``path``, ``query`` or ``header``).
        enclosing: Values already collected at an enclosing scope.  They are
            copied into the result first, then the values declared on
            *scope* override them for the same example and parameter.

    Returns:
        A new ``example -> {name: value}`` mapping.  Examples without a
        ``value`` are left out.
    """
    location = kind.value if isinstance(kind, ParameterLocation) else kind
    results: ParamsByExample = {
        example: dict(values) for example, values in (enclosing or {}).items()
    }

    for parameter in navigator.elements(scope, "parameters"):
        if not isinstance(parameter, dict) or parameter.get("in") != location:
            continue
        name = str(parameter.get("name", ""))
        for example_name, example in navigator.fields(parameter, "examples"):
            value = navigator.example_value(example)
            if value is None:
                continue
            results.setdefault(example_name, {})[name] = value

    return results


def correlate_request_bodies(navigator: NodeNavigator, operation: Any) -> dict[str, Request]:
    """Build one request per request-body example of *operation*.

    Each request carries the example value as content and a ``Content-Type``
    header with the media type it was declared under.  When an example name
    appears under several media types, the last one wins.
    """
    results: dict[str, Request] = {}
    body = navigator.child(operation, "requestBody")

    for content_type, media in navigator.fields(body, "content"):
        for example_name, example in navigator.fields(media, "examples"):
            request = Request(name=example_name, content=navigator.example_value(example))
            request.add_header(Header(name="Content-Type", values={content_type}))
            results[example_name] = request

    return results


def correlate_headers_by_example(navigator: NodeNavigator, response: Any) -> dict[str, list[Header]]:
    """Collect the example values of the headers declared on a response.

    The response may be a reference to ``components/responses``.  Values
    holding commas become multi-valued headers.
    """
    results: dict[str, list[Header]] = {}

    for header_name, header in navigator.fields(response, "headers"):
        for example_name, example in navigator.fields(header, "examples"):
            value = navigator.example_value(example)
            if value is None:
                continue
            results.setdefault(example_name, []).append(
                Header(name=header_name, values=split_header_values(value))
            )

    return results


def correlate_operation(navigator: NodeNavigator, path_item: Any, operation: Any) -> ExampleFragments:
    """Gather every parameter and request-body fragment of one operation.

    Parameters declared on the path item apply to all its operations;
    values declared on the operation take precedence for the same example.
    """
    def _scoped(kind: ParameterLocation) -> ParamsByExample:
        broader = correlate_parameters_by_example(navigator, path_item, kind)
        return correlate_parameters_by_example(navigator, operation, kind, enclosing=broader)

    return ExampleFragments(
        path=_scoped(ParameterLocation.PATH),
        query=_scoped(ParameterLocation.QUERY),
        headers=_scoped(ParameterLocation.HEADER),
        bodies=correlate_request_bodies(navigator, operation),
    )
