"""Tests for specmock.compiler.navigator."""

from __future__ import annotations

import datetime
from typing import Any

import pytest

from specmock.compiler.navigator import NodeNavigator, value_as_text
from specmock.exceptions import MockImportError, ReferenceResolutionError
from specmock.models import ResolverConfig
from specmock.parser.resolver import ReferenceResolver


def _navigator(tree: dict[str, Any], **config: Any) -> NodeNavigator:
    return NodeNavigator(ReferenceResolver(tree, "/specs/api.yaml", config=ResolverConfig(**config)))


class TestValueAsText:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("available", "available"),
            (42, "42"),
            (1.5, "1.5"),
            (True, "true"),
            (False, "false"),
            (None, None),
            (datetime.date(2024, 1, 31), "2024-01-31"),
            ({"id": 42, "name": "Rex"}, '{"id":42,"name":"Rex"}'),
            (["é", 1], '["é",1]'),
        ],
    )
    def test_renders_wire_text(self, value: Any, expected: Any) -> None:
        assert value_as_text(value) == expected


class TestResolve:
    def test_non_reference_is_returned_unchanged(self) -> None:
        nav = _navigator({})
        node = {"name": "id"}
        assert nav.resolve(node) is node
        assert nav.resolve("text") == "text"

    def test_follows_chains(self) -> None:
        tree = {
            "components": {
                "examples": {
                    "A": {"$ref": "#/components/examples/B"},
                    "B": {"$ref": "#/components/examples/C"},
                    "C": {"value": "end"},
                }
            }
        }
        nav = _navigator(tree)
        assert nav.resolve({"$ref": "#/components/examples/A"}) == {"value": "end"}

    def test_cycle_raises_instead_of_looping(self) -> None:
        tree = {
            "components": {
                "parameters": {
                    "A": {"$ref": "#/components/parameters/B"},
                    "B": {"$ref": "#/components/parameters/A"},
                }
            }
        }
        nav = _navigator(tree)
        with pytest.raises(ReferenceResolutionError, match="Cyclic \\$ref chain"):
            nav.resolve({"$ref": "#/components/parameters/A"})

    def test_self_reference_raises(self) -> None:
        tree = {"components": {"examples": {"Loop": {"$ref": "#/components/examples/Loop"}}}}
        nav = _navigator(tree)
        with pytest.raises(MockImportError):
            nav.resolve({"$ref": "#/components/examples/Loop"})

    def test_depth_limit(self) -> None:
        examples = {f"E{i}": {"$ref": f"#/components/examples/E{i + 1}"} for i in range(5)}
        examples["E5"] = {"value": 1}
        tree = {"components": {"examples": examples}}
        assert _navigator(tree, max_depth=6).resolve({"$ref": "#/components/examples/E0"}) == {"value": 1}
        with pytest.raises(ReferenceResolutionError, match="longer than 3 hops"):
            _navigator(tree, max_depth=3).resolve({"$ref": "#/components/examples/E0"})

    def test_unresolvable_reference_is_fatal(self) -> None:
        nav = _navigator({"components": {}})
        with pytest.raises(ReferenceResolutionError):
            nav.resolve({"$ref": "#/components/examples/Nope"})


class TestAccessors:
    TREE = {
        "paths": {
            "/pets": {
                "parameters": [{"$ref": "#/components/parameters/Limit"}, {"name": "q", "in": "query"}],
                "get": {"responses": {200: {"description": "ok"}}},
            }
        },
        "components": {"parameters": {"Limit": {"name": "limit", "in": "query"}}},
    }

    def test_missing_sections_are_empty(self) -> None:
        nav = _navigator(self.TREE)
        assert nav.fields({}, "paths") == []
        assert nav.elements({}, "parameters") == []
        assert nav.child(None, "x") is None
        assert nav.fields({"content": "not a mapping"}, "content") == []

    def test_fields_stringify_keys(self) -> None:
        nav = _navigator(self.TREE)
        op = self.TREE["paths"]["/pets"]["get"]
        assert nav.fields(op, "responses") == [("200", {"description": "ok"})]

    def test_elements_resolve_items(self) -> None:
        nav = _navigator(self.TREE)
        params = nav.elements(self.TREE["paths"]["/pets"], "parameters")
        assert [p["name"] for p in params] == ["limit", "q"]


class TestExampleValue:
    def test_plain_and_referenced_examples(self) -> None:
        tree = {
            "components": {
                "examples": {"Rex": {"value": {"$ref": "#/components/values/Rex"}}},
                "values": {"Rex": {"id": 42}},
            }
        }
        nav = _navigator(tree)
        assert nav.example_value({"value": "sold"}) == "sold"
        assert nav.example_value({"$ref": "#/components/examples/Rex"}) == '{"id":42}'

    def test_example_without_value(self) -> None:
        nav = _navigator({})
        assert nav.example_value({"externalValue": "https://example.com/rex.json"}) is None
        assert nav.example_value("not an example") is None
