"""Tests for oagraph.parser.resolver."""

from __future__ import annotations

from typing import Any

import pytest

from oagraph.exceptions import SpecParseError
from oagraph.parser.resolver import dereference, make_resolver, resolve_pointer


# ---------------------------------------------------------------------------
# resolve_pointer
# ---------------------------------------------------------------------------


class TestResolvePointer:
    def test_root(self) -> None:
        doc = {"a": 1}
        assert resolve_pointer(doc, "#") is doc

    def test_nested_and_escaped(self) -> None:
        doc = {"paths": {"/pets/{id}": {"get": {"tags": ["x", "y"]}}}}
        assert resolve_pointer(doc, "#/paths/~1pets~1{id}/get/tags/1") == "y"

    def test_percent_encoded(self) -> None:
        doc = {"paths": {"/pets/{id}": {"get": 1}}}
        assert resolve_pointer(doc, "#/paths/~1pets~1%7Bid%7D/get") == 1

    def test_tilde(self) -> None:
        assert resolve_pointer({"a~b": 2}, "#/a~0b") == 2

    def test_external_rejected(self) -> None:
        with pytest.raises(SpecParseError, match="External"):
            resolve_pointer({}, "other.yaml#/Pet")

    def test_missing_key(self) -> None:
        with pytest.raises(SpecParseError, match="not found"):
            resolve_pointer({"a": {}}, "#/a/b")

    def test_bad_index(self) -> None:
        with pytest.raises(SpecParseError, match="invalid array index"):
            resolve_pointer({"a": [1]}, "#/a/5")


# ---------------------------------------------------------------------------
# make_resolver
# ---------------------------------------------------------------------------


class TestMakeResolver:
    def test_resolves_internal(self) -> None:
        doc = {"components": {"schemas": {"Pet": {"type": "object"}}}}
        resolver = make_resolver(doc)
        assert resolver({"$ref": "#/components/schemas/Pet"}) is doc["components"]["schemas"]["Pet"]

    def test_returns_none_for_unresolvable(self) -> None:
        resolver = make_resolver({})
        assert resolver({"$ref": "#/components/schemas/Missing"}) is None
        assert resolver({"$ref": "https://example.com/x.json"}) is None
        assert resolver({"$ref": 42}) is None


# ---------------------------------------------------------------------------
# dereference
# ---------------------------------------------------------------------------


def _pets_doc() -> dict[str, Any]:
    return {
        "paths": {
            "/pets": {
                "get": {
                    "responses": {
                        "200": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}}}
                    }
                }
            }
        },
        "components": {
            "schemas": {
                "Pet": {"type": "object", "properties": {"name": {"type": "string"}}},
                "Pets": {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}},
            }
        },
    }


class TestDereference:
    def test_targets_are_shared(self) -> None:
        doc = dereference(_pets_doc())
        pet = doc["components"]["schemas"]["Pet"]
        schema = doc["paths"]["/pets"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]
        assert schema is pet
        assert doc["components"]["schemas"]["Pets"]["items"] is pet

    def test_does_not_mutate_original(self) -> None:
        original = _pets_doc()
        dereference(original)
        assert original["components"]["schemas"]["Pets"]["items"] == {"$ref": "#/components/schemas/Pet"}

    def test_self_reference_becomes_cycle(self, tree_raw: dict[str, Any]) -> None:
        doc = dereference(tree_raw)
        tree = doc["components"]["schemas"]["Tree"]
        assert tree["properties"]["children"]["items"] is tree

    def test_chained_reference(self) -> None:
        doc = dereference({
            "components": {
                "schemas": {
                    "A": {"$ref": "#/components/schemas/B"},
                    "B": {"type": "string"},
                }
            }
        })
        assert doc["components"]["schemas"]["A"] is doc["components"]["schemas"]["B"]

    def test_sibling_keys_are_merged_into_copy(self) -> None:
        doc = dereference({
            "components": {
                "schemas": {
                    "Pet": {"type": "object"},
                    "Owner": {
                        "type": "object",
                        "properties": {"pet": {"$ref": "#/components/schemas/Pet", "description": "The pet"}},
                    },
                }
            }
        })
        pet = doc["components"]["schemas"]["Pet"]
        prop = doc["components"]["schemas"]["Owner"]["properties"]["pet"]
        assert prop == {"type": "object", "description": "The pet"}
        assert prop is not pet
        assert "description" not in pet

    def test_reference_only_loop_raises(self) -> None:
        with pytest.raises(SpecParseError, match="Circular"):
            dereference({
                "components": {
                    "schemas": {
                        "A": {"$ref": "#/components/schemas/B"},
                        "B": {"$ref": "#/components/schemas/A"},
                    }
                }
            })

    def test_dangling_reference_raises(self) -> None:
        with pytest.raises(SpecParseError, match="not found"):
            dereference({"paths": {"/a": {"$ref": "#/components/pathItems/A"}}})
