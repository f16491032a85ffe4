"""Tests for oagraph.walker.visitor -- visit order, locations, return protocol."""

from __future__ import annotations

from typing import Any, Optional

import pytest

from oagraph.parser.resolver import make_resolver
from oagraph.walker.visitor import DocumentVisitor, VisitResult


class Recorder(DocumentVisitor):
    """Record (hook, location) pairs for a handful of hooks."""

    def __init__(self) -> None:
        super().__init__()
        self.events: list[tuple[str, str]] = []

    def _record(self, hook: str) -> None:
        self.events.append((hook, self.active_location))

    def visit_tag(self, tag: dict[str, Any]) -> VisitResult:
        self._record("tag")
        return super().visit_tag(tag)

    def visit_security_scheme(self, scheme: dict[str, Any]) -> VisitResult:
        self._record("securityScheme")
        return super().visit_security_scheme(scheme)

    def visit_operation(self, operation: dict[str, Any]) -> VisitResult:
        self._record("operation")
        return super().visit_operation(operation)

    def visit_parameter(self, parameter: dict[str, Any]) -> VisitResult:
        self._record("parameter")
        return super().visit_parameter(parameter)

    def visit_header(self, header: dict[str, Any]) -> VisitResult:
        self._record("header")
        return super().visit_header(header)

    def visit_request_body(self, body: dict[str, Any]) -> VisitResult:
        self._record("requestBody")
        return super().visit_request_body(body)

    def visit_response(self, response: dict[str, Any]) -> VisitResult:
        self._record("response")
        return super().visit_response(response)

    def visit_schema(self, schema: dict[str, Any], parent: Optional[dict[str, Any]] = None) -> VisitResult:
        self._record("schema")
        return super().visit_schema(schema, parent)

    def hooks(self, name: str) -> list[str]:
        return [loc for hook, loc in self.events if hook == name]


def _walk(doc: dict[str, Any], visitor: Optional[DocumentVisitor] = None, schemas_last: Optional[bool] = False):
    visitor = visitor or Recorder()
    result = visitor.visit(doc, make_resolver(doc), schemas_last)
    return visitor, result


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


class TestLocations:
    def test_inline_schema_location_is_verbatim(self, make_doc) -> None:
        doc = make_doc(paths={
            "/pets": {
                "get": {
                    "responses": {
                        "200": {
                            "description": "ok",
                            "content": {"application/json": {"schema": {"type": "object"}}},
                        }
                    }
                }
            }
        })
        visitor, _ = _walk(doc)
        assert visitor.hooks("schema") == [
            "#/paths/~1pets/get/responses/200/content/application~1json/schema"
        ]

    def test_location_through_reference(self, make_doc) -> None:
        doc = make_doc(
            paths={
                "/pets": {
                    "get": {
                        "responses": {
                            "200": {
                                "description": "ok",
                                "content": {
                                    "application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}
                                },
                            }
                        }
                    }
                }
            },
            schemas={
                "Pet": {"type": "object", "properties": {"tag": {"type": "string"}}},
            },
        )
        # schemas_last=None skips named schemas so Pet is only reachable via the $ref.
        visitor, _ = _walk(doc, schemas_last=None)
        locations = visitor.hooks("schema")
        assert "#/components/schemas/Pet/properties/tag" in locations
        assert not any(loc.startswith("#/paths") for loc in locations)

    def test_operation_and_parameter_locations(self, make_doc) -> None:
        doc = make_doc(paths={
            "/pets/{id}": {
                "parameters": [{"name": "id", "in": "path", "schema": {"type": "string"}}],
                "delete": {
                    "parameters": [{"name": "force", "in": "query", "schema": {"type": "boolean"}}],
                    "responses": {"204": {"description": "gone"}},
                },
            }
        })
        visitor, _ = _walk(doc)
        assert visitor.hooks("operation") == ["#/paths/~1pets~1{id}/delete"]
        assert visitor.hooks("parameter") == [
            "#/paths/~1pets~1{id}/parameters/0",
            "#/paths/~1pets~1{id}/delete/parameters/0",
        ]
        assert visitor.hooks("response") == ["#/paths/~1pets~1{id}/delete/responses/204"]

    def test_stack_is_balanced_after_walk(self, petstore_raw: dict[str, Any]) -> None:
        visitor, _ = _walk(petstore_raw)
        assert visitor.location.entries == ("#",)


# ---------------------------------------------------------------------------
# Visit order
# ---------------------------------------------------------------------------


class TestVisitOrder:
    @pytest.fixture
    def doc(self, make_doc) -> dict[str, Any]:
        return make_doc(
            paths={
                "/a": {
                    "get": {
                        "requestBody": {"content": {"text/plain": {"schema": {"type": "string"}}}},
                        "responses": {
                            "200": {
                                "description": "ok",
                                "headers": {"X-Rate": {"schema": {"type": "integer"}}},
                                "content": {"application/json": {"schema": {"type": "boolean"}}},
                            }
                        },
                    },
                    "post": {"responses": {"201": {"description": "created"}}},
                }
            },
            schemas={"S": {"type": "string"}},
            tags=[{"name": "t"}],
            securitySchemes={"key": {"type": "apiKey", "name": "k", "in": "header"}},
            parameters={"P": {"name": "p", "in": "query", "schema": {"type": "string"}}},
            headers={"H": {"schema": {"type": "string"}}},
            requestBodies={"B": {"content": {"application/json": {"schema": {"type": "number"}}}}},
            responses={"R": {"description": "r"}},
        )

    def test_components_before_paths(self, doc: dict[str, Any]) -> None:
        visitor, _ = _walk(doc)
        hooks = [hook for hook, _ in visitor.events]
        assert hooks[0] == "tag"
        assert hooks[1] == "securityScheme"
        # Named schema S is visited before component parameters.
        assert visitor.events[2] == ("schema", "#/components/schemas/S")
        assert hooks.index("parameter") < hooks.index("header") < hooks.index("requestBody")
        assert visitor.hooks("operation") == ["#/paths/~1a/get", "#/paths/~1a/post"]
        first_operation = hooks.index("operation")
        assert all(loc.startswith("#/components") for _, loc in visitor.events[1:first_operation])

    def test_schemas_last(self, doc: dict[str, Any]) -> None:
        visitor, _ = _walk(doc, schemas_last=True)
        schema_locations = visitor.hooks("schema")
        assert schema_locations[-1] == "#/components/schemas/S"
        hooks = [hook for hook, _ in visitor.events]
        assert hooks.index("operation") < hooks.index("securityScheme")

    def test_schemas_none_skips_named_schemas(self, doc: dict[str, Any]) -> None:
        visitor, _ = _walk(doc, schemas_last=None)
        assert "#/components/schemas/S" not in visitor.hooks("schema")
        # Other component sections are still walked.
        assert visitor.hooks("requestBody")[-1] == "#/components/requestBodies/B"

    def test_operation_order(self, doc: dict[str, Any]) -> None:
        visitor, _ = _walk(doc, schemas_last=None)
        ops = [(hook, loc) for hook, loc in visitor.events if loc.startswith("#/paths")]
        assert [hook for hook, _ in ops] == [
            "operation",
            "requestBody",
            "schema",
            "response",
            "header",
            "schema",
            "schema",
            "operation",
            "response",
        ]
        assert ops[5][1] == "#/paths/~1a/get/responses/200/headers/X-Rate/schema"
        assert ops[6][1] == "#/paths/~1a/get/responses/200/content/application~1json/schema"

    def test_schema_recursion_order(self, make_doc) -> None:
        doc = make_doc(schemas={
            "S": {
                "type": ["object", "null"],
                "properties": {"p": {"type": "string"}},
                "additionalProperties": {"type": "integer"},
                "allOf": [{"type": "object"}],
                "oneOf": [{"type": "object"}],
                "anyOf": [{"type": "object"}],
                "not": {"type": "boolean"},
            }
        })
        visitor, _ = _walk(doc)
        assert visitor.hooks("schema") == [
            "#/components/schemas/S",
            "#/components/schemas/S/properties/p",
            "#/components/schemas/S/additionalProperties",
            "#/components/schemas/S/allOf/0",
            "#/components/schemas/S/oneOf/0",
            "#/components/schemas/S/anyOf/0",
            "#/components/schemas/S/not",
        ]

    def test_false_additional_properties_skipped(self, make_doc) -> None:
        doc = make_doc(schemas={"S": {"type": "object", "additionalProperties": False}})
        visitor, _ = _walk(doc)
        assert visitor.hooks("schema") == ["#/components/schemas/S"]

    def test_parameter_content_used_without_schema(self, make_doc) -> None:
        doc = make_doc(paths={
            "/a": {
                "get": {
                    "parameters": [
                        {"name": "f", "in": "query", "content": {"application/json": {"schema": {"type": "object"}}}}
                    ],
                    "responses": {},
                }
            }
        })
        visitor, _ = _walk(doc)
        assert visitor.hooks("schema") == ["#/paths/~1a/get/parameters/0/content/application~1json/schema"]


# ---------------------------------------------------------------------------
# Return protocol
# ---------------------------------------------------------------------------


class TestReturnProtocol:
    @pytest.fixture
    def doc(self, make_doc) -> dict[str, Any]:
        return make_doc(paths={
            "/a": {
                "get": {"responses": {}},
                "put": {"responses": {}},
            },
            "/b": {
                "get": {"responses": {}},
            },
        })

    def test_none_visits_everything(self, doc: dict[str, Any]) -> None:
        visitor, result = _walk(doc)
        assert result is doc
        assert len(visitor.hooks("operation")) == 3

    def test_false_breaks_only_the_current_loop(self, doc: dict[str, Any]) -> None:
        class StopAfterFirstVerb(Recorder):
            def visit_operation(self, operation: dict[str, Any]) -> VisitResult:
                super().visit_operation(operation)
                return False

        visitor, result = _walk(doc, StopAfterFirstVerb())
        assert result is doc
        assert visitor.hooks("operation") == ["#/paths/~1a/get", "#/paths/~1b/get"]

    def test_true_aborts_everything(self, doc: dict[str, Any]) -> None:
        class AbortOnFirst(Recorder):
            def visit_operation(self, operation: dict[str, Any]) -> VisitResult:
                super().visit_operation(operation)
                return True

        visitor, result = _walk(doc, AbortOnFirst())
        assert result is True
        assert visitor.hooks("operation") == ["#/paths/~1a/get"]
        assert visitor.location.entries == ("#",)

    def test_true_from_schema_aborts(self, make_doc) -> None:
        class AbortOnSchema(Recorder):
            def visit_schema(self, schema: dict[str, Any], parent: Optional[dict[str, Any]] = None) -> VisitResult:
                self._record("schema")
                return True

        doc = make_doc(schemas={"A": {"type": "string"}, "B": {"type": "string"}})
        visitor, result = _walk(doc, AbortOnSchema())
        assert result is True
        assert visitor.hooks("schema") == ["#/components/schemas/A"]


# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------


class TestReferences:
    def test_unresolved_reference_is_pruned(self, make_doc) -> None:
        doc = make_doc(paths={
            "/a": {
                "get": {
                    "responses": {
                        "404": {"$ref": "#/components/responses/Missing"},
                        "200": {"description": "ok"},
                    }
                }
            }
        })
        visitor, result = _walk(doc)
        assert result is doc
        assert visitor.hooks("response") == ["#/paths/~1a/get/responses/200"]

    def test_inspect_schema_returns_resolved_target(self, make_doc) -> None:
        doc = make_doc(schemas={"Pet": {"type": "object"}})
        visitor = DocumentVisitor()
        visitor.visit(doc, make_resolver(doc))
        inspection = visitor.inspect_schema({"$ref": "#/components/schemas/Pet"})
        assert inspection.result is None
        assert inspection.schema is doc["components"]["schemas"]["Pet"]

    def test_multi_type_keeps_unresolved_members(self, make_doc) -> None:
        seen: list[Any] = []

        class Joins(DocumentVisitor):
            def process_schema_joins(self, parent, all_of=None, one_of=None, any_of=None, not_schema=None) -> None:
                seen.append(one_of)

        doc = make_doc(schemas={
            "A": {"type": "string"},
            "U": {"oneOf": [{"$ref": "#/components/schemas/A"}, {"$ref": "#/nowhere"}]},
        })
        Joins().visit(doc, make_resolver(doc))
        assert seen == [[{"type": "string"}, {"$ref": "#/nowhere"}]]

    def test_encoding_header_defaults_to_header(self, make_doc) -> None:
        doc = make_doc(paths={
            "/upload": {
                "post": {
                    "requestBody": {
                        "content": {
                            "multipart/form-data": {
                                "schema": {"type": "object"},
                                "encoding": {
                                    "file": {"headers": {"X-Part": {"schema": {"type": "string"}}}}
                                },
                            }
                        }
                    },
                    "responses": {},
                }
            }
        })
        visitor, _ = _walk(doc)
        assert visitor.hooks("header") == [
            "#/paths/~1upload/post/requestBody/content/multipart~1form-data/encoding/file/headers/X-Part"
        ]
