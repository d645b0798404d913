"""Compile dispatch criteria and resource paths for one example.

The mock runtime picks a response by deriving a key from the live request
and comparing it with the ``dispatch_criteria`` of each candidate response.
This module builds that key for each example, in the same format the
runtime uses:

* ``URI_PARTS``    -- ``/id=42/name=rex``  (one ``/name=value`` per path part)
* ``URI_PARAMS``   -- ``?limit=10?status=available`` (one ``?name=value`` per parameter)
* ``URI_ELEMENTS`` -- the parts criteria immediately followed by the params criteria

Entries are sorted by name and only names listed in the rule descriptor take
part.  Rule descriptors join names with ``" && "``; the ``URI_ELEMENTS``
descriptor is ``"<parts> ?? <params>"``.

Each dispatch style has one compile function, registered in ``_COMPILERS``
and looked up once per example from the operation's :class:`DispatchRule`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Mapping, Optional
from urllib.parse import quote

from specmock.exceptions import DispatcherRulesError
from specmock.models import DispatchRule, DispatchStyle, FallbackSpecification, Operation

logger = logging.getLogger(__name__)

RULES_SEPARATOR = " && "
ELEMENTS_SEPARATOR = " ?? "

# {name} anywhere in a segment, or a whole :name segment
_PART_PATTERN = re.compile(r"\{([^}/]+)\}|/:([^/]+)")

# Characters allowed unescaped in a path segment (RFC 3986 pchar minus unreserved)
_SEGMENT_SAFE = "!$&'()*+,;=:@"


@dataclass(frozen=True)
class CompiledRoute:
    """Routing key of one example.

    Attributes:
        criteria: Dispatch criteria for the response, ``None`` when the
            operation has no dispatcher this compiler handles.
        resource_path: Path to register on the operation, ``None`` when
            nothing new needs registering.
    """

    criteria: Optional[str] = None
    resource_path: Optional[str] = None


# ---------------------------------------------------------------------------
# URI pattern helpers
# ---------------------------------------------------------------------------


def url_has_parts(url: str) -> bool:
    """Return True if *url* holds a variable segment (``/{id}`` or ``/:id``)."""
    return "/{" in url or "/:" in url


def extract_part_names(pattern: str) -> list[str]:
    """Return the variable part names of a URL template, in order."""
    return [braced or colon for braced, colon in _PART_PATTERN.findall(pattern)]


def extract_parts_from_uri_pattern(pattern: str) -> str:
    """Return the rule descriptor listing the variable parts of *pattern*."""
    return RULES_SEPARATOR.join(extract_part_names(pattern))


def build_uri_from_pattern(pattern: str, parts: Optional[Mapping[str, str]]) -> str:
    """Substitute the variable parts of *pattern* with their values.

    Parts without a value are left as they are.  Values are percent-encoded
    as path segments.
    """
    if not parts:
        return pattern

    def _substitute(match: re.Match[str]) -> str:
        braced, colon = match.group(1), match.group(2)
        name = braced or colon
        if name not in parts:
            return match.group(0)
        value = quote(str(parts[name]), safe=_SEGMENT_SAFE)
        return value if braced else f"/{value}"

    return _PART_PATTERN.sub(_substitute, pattern)


def rule_names(rules: Optional[str]) -> list[str]:
    """Split a ``a && b`` rule descriptor into names."""
    if not rules:
        return []
    return [name.strip() for name in rules.split("&&") if name.strip()]


def split_elements_rules(rules: Optional[str]) -> tuple[str, str]:
    """Split a ``URI_ELEMENTS`` descriptor into its parts and params halves."""
    parts, _, params = (rules or "").partition(ELEMENTS_SEPARATOR.strip())
    return parts.strip(), params.strip()


# ---------------------------------------------------------------------------
# Criteria builders
# ---------------------------------------------------------------------------


def _build(prefix: str, rules: Optional[str], values: Optional[Mapping[str, str]]) -> str:
    if not values:
        return ""
    names = set(rule_names(rules))
    return "".join(
        f"{prefix}{name}={values[name]}" for name in sorted(values) if name in names
    )


def build_from_parts_map(rules: Optional[str], parts: Optional[Mapping[str, str]]) -> str:
    """Build ``URI_PARTS`` criteria (``/name=value`` per rule-listed part)."""
    return _build("/", rules, parts)


def build_from_params_map(rules: Optional[str], params: Optional[Mapping[str, str]]) -> str:
    """Build ``URI_PARAMS`` criteria (``?name=value`` per rule-listed parameter)."""
    return _build("?", rules, params)


# ---------------------------------------------------------------------------
# Per-style compilers
# ---------------------------------------------------------------------------

_Compiler = Callable[[str, str, Mapping[str, str], Mapping[str, str]], CompiledRoute]


def _compile_uri_params(
    rules: str, template: str, path_values: Mapping[str, str], query_values: Mapping[str, str]
) -> CompiledRoute:
    return CompiledRoute(
        criteria=build_from_params_map(rules, query_values),
        resource_path=template,
    )


def _compile_uri_parts(
    rules: str, template: str, path_values: Mapping[str, str], query_values: Mapping[str, str]
) -> CompiledRoute:
    return CompiledRoute(
        criteria=build_from_parts_map(rules, path_values),
        resource_path=build_uri_from_pattern(template, path_values),
    )


def _compile_uri_elements(
    rules: str, template: str, path_values: Mapping[str, str], query_values: Mapping[str, str]
) -> CompiledRoute:
    parts_rules, params_rules = split_elements_rules(rules)
    criteria = build_from_parts_map(parts_rules, path_values)
    criteria += build_from_params_map(params_rules, query_values)
    return CompiledRoute(
        criteria=criteria,
        resource_path=build_uri_from_pattern(template, path_values),
    )


_COMPILERS: dict[str, _Compiler] = {
    DispatchStyle.URI_PARAMS.value: _compile_uri_params,
    DispatchStyle.URI_PARTS.value: _compile_uri_parts,
    DispatchStyle.URI_ELEMENTS.value: _compile_uri_elements,
}

PATH_ROUTED_STYLES = frozenset({DispatchStyle.URI_PARTS.value, DispatchStyle.URI_ELEMENTS.value})
"""Styles whose examples cannot be routed without path parameter values."""


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def resolve_dispatch_rule(operation: Operation) -> DispatchRule:
    """Return the dispatch rule of *operation*, unwrapping a fallback envelope.

    A malformed envelope is logged and kept as an opaque ``FALLBACK`` rule,
    for which no criteria are compiled.
    """
    if operation.dispatcher != DispatchStyle.FALLBACK.value:
        return DispatchRule(style=operation.dispatcher, rules=operation.dispatcher_rules)

    try:
        envelope = FallbackSpecification.from_json(operation.dispatcher_rules)
    except DispatcherRulesError as exc:
        logger.warning(
            "Operation '%s' has malformed fallback dispatcher rules: %s", operation.name, exc
        )
        return DispatchRule(style=operation.dispatcher, rules=operation.dispatcher_rules)

    return DispatchRule(
        style=operation.dispatcher,
        rules=operation.dispatcher_rules,
        inner=DispatchRule(style=envelope.dispatcher, rules=envelope.dispatcher_rules),
        fallback=envelope.fallback,
    )


def needs_path_values(rule: DispatchRule) -> bool:
    """Return True if examples routed by *rule* must carry path parameter values."""
    return rule.effective().style in PATH_ROUTED_STYLES


def compile_route(
    rule: DispatchRule,
    template: str,
    path_values: Optional[Mapping[str, str]] = None,
    query_values: Optional[Mapping[str, str]] = None,
) -> CompiledRoute:
    """Compile the routing key of one example.

    Args:
        rule: The operation's dispatch rule (fallbacks are unwrapped here).
        template: The operation's raw URL template.
        path_values: Path parameter values correlated for the example.
        query_values: Query parameter values correlated for the example.
    """
    effective = rule.effective()
    compiler = _COMPILERS.get(effective.style or "")
    if compiler is None:
        return CompiledRoute()
    return compiler(effective.rules or "", template, path_values or {}, query_values or {})
