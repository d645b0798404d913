"""Read-only traversal over a parsed OpenAPI document with ``$ref`` following.

:class:`NodeNavigator` is the only way the compiler looks at the document.
Every accessor treats a missing or mistyped section (no ``parameters``, a
``content`` that is not a mapping, ...) as empty, so callers simply iterate
and get zero fragments where the document says nothing.
"""

from __future__ import annotations

import datetime
import json
from typing import Any, Optional

from specmock.exceptions import ReferenceResolutionError
from specmock.parser.resolver import ReferenceResolver, is_ref


def value_as_text(value: Any) -> Optional[str]:
    """Render an example value the way it appears on the wire.

    Strings are kept as-is, booleans become ``true``/``false``, numbers keep
    their literal form, and objects or arrays become compact JSON.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


class NodeNavigator:
    """Navigate document nodes, transparently following ``$ref`` chains.

    Args:
        resolver: Resolves one reference hop.  Its ``config.max_depth``
            bounds the length of a chain.
    """

    def __init__(self, resolver: ReferenceResolver) -> None:
        self.resolver = resolver
        self.max_depth = resolver.config.max_depth

    def resolve(self, node: Any) -> Any:
        """Return the fully resolved target of *node*, or *node* itself if it is not a reference.

        Raises:
            ReferenceResolutionError: If a reference in the chain cannot be
                resolved, the chain loops back on itself, or it is longer
                than ``max_depth``.
        """
        seen: list[str] = []
        while is_ref(node):
            ref = node["$ref"]
            key = self.resolver.canonical(ref)
            if key in seen:
                chain = " -> ".join(seen + [key])
                raise ReferenceResolutionError(f"Cyclic $ref chain: {chain}", location=ref)
            if len(seen) >= self.max_depth:
                raise ReferenceResolutionError(
                    f"$ref chain longer than {self.max_depth} hops", location=ref
                )
            seen.append(key)
            node = self.resolver.resolve(ref)
        return node

    def child(self, node: Any, key: str) -> Any:
        """Return the resolved *key* child of the resolved *node*, or ``None``."""
        node = self.resolve(node)
        if not isinstance(node, dict):
            return None
        return self.resolve(node.get(key))

    def fields(self, node: Any, key: str) -> list[tuple[str, Any]]:
        """Return the entries of the mapping found under *key*.

        Keys are stringified (YAML turns ``200:`` into an int); values are
        returned unresolved.
        """
        mapping = self.child(node, key)
        if not isinstance(mapping, dict):
            return []
        return [(str(name), value) for name, value in mapping.items()]

    def elements(self, node: Any, key: str) -> list[Any]:
        """Return the resolved items of the list found under *key*."""
        items = self.child(node, key)
        if not isinstance(items, list):
            return []
        return [self.resolve(item) for item in items]

    def example_value(self, example: Any) -> Optional[str]:
        """Return the text of an *Example Object*'s ``value``.

        Both the example and its ``value`` may be references.  An example
        without ``value`` (e.g. one using ``externalValue``) yields ``None``.
        """
        example = self.resolve(example)
        if not isinstance(example, dict) or "value" not in example:
            return None
        return value_as_text(self.resolve(example["value"]))
