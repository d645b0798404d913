"""Choose the dispatch style of an operation at discovery time.

Priority order:

1. A dispatcher forced through vendor metadata is kept verbatim; the raw
   template is registered as a resource path so the runtime can still match
   the operation.
2. Query parameters and a variable path segment: ``URI_ELEMENTS``.
3. Query parameters only: ``URI_PARAMS``.
4. A variable path segment only: ``URI_PARTS``.
5. Nothing to dispatch on: no dispatcher, the raw template is the only
   resource path.
"""

from __future__ import annotations

from typing import Any

from specmock.compiler.criteria import (
    ELEMENTS_SEPARATOR,
    RULES_SEPARATOR,
    extract_parts_from_uri_pattern,
    url_has_parts,
)
from specmock.compiler.navigator import NodeNavigator
from specmock.models import DispatchStyle, Operation, ParameterLocation


def merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field), per the OpenAPI spec.
    """
    op_keys = {(param.get("name", ""), param.get("in", "")) for param in op_params}

    merged = [
        param
        for param in path_params
        if (param.get("name", ""), param.get("in", "")) not in op_keys
    ]
    merged.extend(op_params)
    return merged


def declared_parameters(navigator: NodeNavigator, path_item: Any, operation: Any) -> list[dict[str, Any]]:
    """Return the resolved parameters that apply to *operation*."""
    path_params = [p for p in navigator.elements(path_item, "parameters") if isinstance(p, dict)]
    op_params = [p for p in navigator.elements(operation, "parameters") if isinstance(p, dict)]
    return merge_parameters(path_params, op_params)


def query_parameter_names(parameters: list[dict[str, Any]]) -> list[str]:
    """Return the names of the query parameters, in declaration order, without duplicates."""
    names: list[str] = []
    for param in parameters:
        name = str(param.get("name", ""))
        if param.get("in") == ParameterLocation.QUERY.value and name and name not in names:
            names.append(name)
    return names


def select_dispatcher(operation: Operation, query_names: list[str]) -> None:
    """Fix the dispatcher, its rules, and the initial resource paths of *operation*.

    Args:
        operation: A freshly discovered operation, possibly carrying a
            dispatcher forced by vendor metadata.
        query_names: Names of the query parameters the operation declares.
    """
    template = operation.path_template

    if operation.dispatcher is not None:
        operation.add_resource_path(template)
        return

    has_parts = url_has_parts(template)
    params_rules = RULES_SEPARATOR.join(query_names)

    if query_names and has_parts:
        operation.dispatcher = DispatchStyle.URI_ELEMENTS.value
        operation.dispatcher_rules = (
            extract_parts_from_uri_pattern(template) + ELEMENTS_SEPARATOR + params_rules
        )
    elif query_names:
        operation.dispatcher = DispatchStyle.URI_PARAMS.value
        operation.dispatcher_rules = params_rules
    elif has_parts:
        operation.dispatcher = DispatchStyle.URI_PARTS.value
        operation.dispatcher_rules = extract_parts_from_uri_pattern(template)
    else:
        operation.add_resource_path(template)
