"""Dispatch-rule compiler -- from scattered OpenAPI examples to routable mocks.

Sub-modules, leaves first:

* :mod:`~specmock.compiler.navigator` -- Read-only traversal with ``$ref``
  following and cycle detection.
* :mod:`~specmock.compiler.correlator` -- Groups parameter, header and body
  fragments by example name.
* :mod:`~specmock.compiler.selector` -- Picks the dispatch style of each
  operation.
* :mod:`~specmock.compiler.criteria` -- Compiles dispatch criteria and
  concrete resource paths.
* :mod:`~specmock.compiler.assembler` -- Builds request/response exchanges.
"""

from specmock.compiler.assembler import assemble_exchanges
from specmock.compiler.correlator import ExampleFragments, correlate_operation
from specmock.compiler.criteria import CompiledRoute, compile_route, resolve_dispatch_rule
from specmock.compiler.navigator import NodeNavigator
from specmock.compiler.selector import declared_parameters, query_parameter_names, select_dispatcher

__all__ = [
    "CompiledRoute",
    "ExampleFragments",
    "NodeNavigator",
    "assemble_exchanges",
    "compile_route",
    "correlate_operation",
    "declared_parameters",
    "query_parameter_names",
    "resolve_dispatch_rule",
    "select_dispatcher",
]
