"""Turn correlated fragments into request/response exchanges.

For every response status, every media type and every example declared
under it, :func:`assemble_exchanges` builds the response, rebuilds the
matching request from the fragments correlated under the same example name,
compiles the dispatch criteria, and registers the resource path on the
operation.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from specmock.compiler.correlator import (
    ExampleFragments,
    correlate_headers_by_example,
    split_header_values,
)
from specmock.compiler.criteria import compile_route, needs_path_values
from specmock.compiler.navigator import NodeNavigator
from specmock.models import (
    DispatchRule,
    Exchange,
    Header,
    Operation,
    Parameter,
    Request,
    Response,
)

logger = logging.getLogger(__name__)


def build_request(
    example_name: str,
    media_type: str,
    fragments: ExampleFragments,
) -> Request:
    """Build the request of one example.

    Starts from a copy of the request-body example of the same name (or an
    empty request), adds an ``Accept`` header for the response media type,
    then the correlated path and query values as query parameters and the
    correlated header values as headers.
    """
    body = fragments.bodies.get(example_name)
    request = body.model_copy(deep=True) if body is not None else Request(name=example_name)
    request.add_header(Header(name="Accept", values={media_type}))

    for values in (fragments.path.get(example_name), fragments.query.get(example_name)):
        for name, value in (values or {}).items():
            request.add_query_parameter(Parameter(name=name, value=value))

    for name, value in (fragments.headers.get(example_name) or {}).items():
        request.add_header(Header(name=name, values=split_header_values(value)))

    return request


def build_exchange(
    navigator: NodeNavigator,
    operation: Operation,
    rule: DispatchRule,
    fragments: ExampleFragments,
    status: str,
    media_type: str,
    example_name: str,
    example: Any,
    response_headers: Optional[list[Header]] = None,
) -> Optional[Exchange]:
    """Assemble the exchange of one response example.

    Returns ``None`` when the example cannot be routed: the operation
    dispatches on path parts but no path value was correlated for it.
    """
    path_values = fragments.path.get(example_name)
    if not path_values and needs_path_values(rule):
        logger.debug(
            "Skipping example '%s' of operation '%s': no path parameter values",
            example_name,
            operation.name,
        )
        return None

    response = Response(
        name=example_name,
        media_type=media_type,
        status=status,
        content=navigator.example_value(example),
        fault=not status.startswith("2"),
    )
    for header in response_headers or []:
        response.add_header(header.model_copy(deep=True))
    request = build_request(example_name, media_type, fragments)

    route = compile_route(
        rule,
        operation.path_template,
        path_values,
        fragments.query.get(example_name),
    )
    response.dispatch_criteria = route.criteria
    if route.resource_path is not None:
        operation.add_resource_path(route.resource_path)

    return Exchange(request=request, response=response)


def assemble_exchanges(
    navigator: NodeNavigator,
    operation: Operation,
    operation_node: Any,
    fragments: ExampleFragments,
    rule: DispatchRule,
) -> list[Exchange]:
    """Build every exchange of one operation.

    Exchanges are keyed by their request identity (example name, headers and
    parameters): an example name reused under another status code or media
    type yields a separate exchange unless its request is identical, in
    which case the later declaration wins.
    """
    exchanges: dict[tuple[Any, ...], Exchange] = {}

    for status, response_node in navigator.fields(operation_node, "responses"):
        headers_by_example = correlate_headers_by_example(navigator, response_node)

        for media_type, media in navigator.fields(response_node, "content"):
            for example_name, example in navigator.fields(media, "examples"):
                exchange = build_exchange(
                    navigator,
                    operation,
                    rule,
                    fragments,
                    status,
                    media_type,
                    example_name,
                    example,
                    headers_by_example.get(example_name),
                )
                if exchange is not None:
                    exchanges[exchange.request.identity()] = exchange

    return list(exchanges.values())
