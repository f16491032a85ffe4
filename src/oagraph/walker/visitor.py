"""Deterministic depth-first walker over an OpenAPI 3.1 document.

:class:`DocumentVisitor` visits tags, components and paths in a fixed order
and calls an overridable ``visit_*`` hook for every element it meets. The
``inspect_*`` methods resolve ``$ref`` objects (through the resolver passed
to :meth:`DocumentVisitor.visit`) and then call the matching ``visit_*``
hook. Subclasses override ``visit_*``, never ``inspect_*``.

Return protocol shared by every traversal method:

* ``None`` -- keep going.
* ``False`` -- stop the loop this element belongs to; traversal resumes with
  the next step of the enclosing container.
* ``True`` -- abort the whole walk. The value propagates through every
  enclosing loop and :meth:`DocumentVisitor.visit` returns ``True``.

A reference the resolver cannot satisfy prunes that branch silently; this is
what lets the walker run over partially bundled documents.

Example::

    class OperationIds(DocumentVisitor):
        def __init__(self):
            super().__init__()
            self.ids = []

        def visit_operation(self, operation):
            self.ids.append(operation.get("operationId"))
            return super().visit_operation(operation)

    v = OperationIds()
    v.visit(doc, make_resolver(doc))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, NamedTuple, Optional

from oagraph.walker.location import LocationTracker, ReferenceMarker

logger = logging.getLogger(__name__)

Node = dict[str, Any]
Resolver = Callable[[Node], Optional[Any]]
VisitResult = Optional[bool]

HTTP_VERBS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


class SchemaInspection(NamedTuple):
    """Outcome of :meth:`DocumentVisitor.inspect_schema`.

    ``schema`` is the resolved schema object, or ``None`` when the reference
    could not be resolved (or a subclass chose not to visit it).
    """

    result: VisitResult
    schema: Optional[Node]


def is_reference(obj: Any) -> bool:
    return isinstance(obj, dict) and "$ref" in obj


class DocumentVisitor:
    """Walk an OpenAPI document and dispatch to overridable hooks."""

    def __init__(self) -> None:
        self.location = LocationTracker()
        self._resolver: Resolver = lambda ref: None

    @property
    def active_location(self) -> str:
        """JSON pointer of the element currently being visited."""
        return self.location.active_location

    # ------------------------------------------------------------------ #
    # Plumbing
    # ------------------------------------------------------------------ #

    def resolve(self, obj: Any, callback: Callable[[Any], VisitResult]) -> VisitResult:
        """Follow *obj* if it is a reference, then invoke *callback* on the target.

        While the callback runs, a frozen snapshot of the reference sits on
        the location stack so locations inside the target are reported
        relative to the reference token.
        """
        if is_reference(obj):
            target = self._resolver(obj)
            if target is None:
                logger.debug("Unresolved reference %s at %s", obj["$ref"], self.active_location)
                return None
            with self.location.reference(ReferenceMarker(obj["$ref"])):
                return callback(target)
        return callback(obj)

    def _each(self, items: Iterable[tuple[Any, Any]], fn: Callable[[Any], VisitResult]) -> VisitResult:
        for key, value in items:
            with self.location.segment(key):
                result = fn(value)
            if result is True:
                return True
            if result is False:
                break
        return None

    def _each_in(self, container: str, items: Iterable[tuple[Any, Any]], fn: Callable[[Any], VisitResult]) -> VisitResult:
        with self.location.segment(container):
            return self._each(items, fn)

    # ------------------------------------------------------------------ #
    # Document
    # ------------------------------------------------------------------ #

    def visit(self, document: Node, resolver: Resolver, schemas_last: Optional[bool] = False) -> Node | bool:
        """Walk *document*.

        Args:
            document: The OpenAPI document.
            resolver: Maps a reference object to its target, or ``None``.
            schemas_last: ``False`` visits components before paths; ``True``
                visits paths first and named schemas last; ``None`` visits
                paths first and skips named schemas entirely.

        Returns:
            The document, or ``True`` if a hook aborted the walk.
        """
        self._resolver = resolver
        self.location.reset()

        tags = document.get("tags")
        if isinstance(tags, list):
            if self._each_in("tags", enumerate(tags), self.visit_tag):
                return True

        def process_paths() -> VisitResult:
            if document.get("paths"):
                with self.location.segment("paths"):
                    return self.visit_paths(document["paths"])
            return None

        def process_components() -> VisitResult:
            if document.get("components"):
                with self.location.segment("components"):
                    return self.visit_components(document["components"], schemas_last)
            return None

        if schemas_last or schemas_last is None:
            steps = (process_paths, process_components)
        else:
            steps = (process_components, process_paths)
        for step in steps:
            if step() is True:
                return True
        return document

    def visit_tag(self, tag: Node) -> VisitResult:
        return None

    def visit_paths(self, paths: Node) -> VisitResult:
        return self._each(paths.items(), self.inspect_path_item)

    def inspect_path_item(self, path_item: Node) -> VisitResult:
        return self.resolve(path_item, self.visit_path_item)

    def visit_path_item(self, path_item: Node) -> VisitResult:
        params = path_item.get("parameters")
        if isinstance(params, list):
            if self._each_in("parameters", enumerate(params), self.inspect_parameter):
                return True
        verbs = [key for key in path_item if key.lower() in HTTP_VERBS]
        return self._each(((verb, path_item[verb]) for verb in verbs), self.visit_operation)

    # ------------------------------------------------------------------ #
    # Components
    # ------------------------------------------------------------------ #

    def visit_components(self, components: Node, schemas_last: Optional[bool] = False) -> VisitResult:
        def process_schemas() -> VisitResult:
            schemas = components.get("schemas")
            if schemas and schemas_last is not None:
                return self._each_in(
                    "schemas", schemas.items(), lambda s: self.inspect_schema(s).result
                )
            return None

        sections: list[Callable[[], VisitResult]] = [
            lambda: self._each_in(
                "securitySchemes", components.get("securitySchemes", {}).items(), self.inspect_security_scheme
            ),
        ]
        if not schemas_last:
            sections.append(process_schemas)
        sections += [
            lambda: self._each_in("parameters", components.get("parameters", {}).items(), self.inspect_parameter),
            lambda: self._each_in("headers", components.get("headers", {}).items(), self.inspect_header),
            lambda: self._each_in(
                "requestBodies", components.get("requestBodies", {}).items(), self.inspect_request_body
            ),
            lambda: self._each_in("responses", components.get("responses", {}).items(), self.inspect_response),
        ]
        if schemas_last:
            sections.append(process_schemas)

        for section in sections:
            if section() is True:
                return True
        return None

    def inspect_security_scheme(self, scheme: Node) -> VisitResult:
        return self.resolve(scheme, self.visit_security_scheme)

    def visit_security_scheme(self, scheme: Node) -> VisitResult:
        return None

    # ------------------------------------------------------------------ #
    # Operations, parameters, bodies, responses
    # ------------------------------------------------------------------ #

    def visit_operation(self, operation: Node) -> VisitResult:
        params = operation.get("parameters")
        if isinstance(params, list):
            if self._each_in("parameters", enumerate(params), self.inspect_parameter):
                return True
        if operation.get("requestBody"):
            with self.location.segment("requestBody"):
                if self.inspect_request_body(operation["requestBody"]):
                    return True
        responses = operation.get("responses") or {}
        return self._each_in("responses", ((str(code), rsp) for code, rsp in responses.items()), self.inspect_response)

    def inspect_parameter(self, parameter: Node) -> VisitResult:
        return self.resolve(parameter, self.visit_parameter)

    def visit_parameter(self, parameter: Node) -> VisitResult:
        # Schema and content are mutually exclusive; the first present wins.
        return self._visit_schema_or_content(parameter)

    def _visit_schema_or_content(self, node: Node) -> VisitResult:
        if node.get("schema"):
            with self.location.segment("schema"):
                return True if self.inspect_schema(node["schema"]).result else None
        content = node.get("content")
        if content:
            media_type = next(iter(content))
            with self.location.segment("content"), self.location.segment(media_type):
                return self.visit_media_type(content[media_type])
        return None

    def inspect_header(self, header: Node) -> VisitResult:
        return self.resolve(header, self.visit_header)

    def visit_header(self, header: Node) -> VisitResult:
        return self._visit_schema_or_content(header)

    def inspect_request_body(self, body: Node) -> VisitResult:
        return self.resolve(body, self.visit_request_body)

    def visit_request_body(self, body: Node) -> VisitResult:
        return self._each_in("content", (body.get("content") or {}).items(), self.visit_media_type)

    def inspect_response(self, response: Node) -> VisitResult:
        return self.resolve(response, self.visit_response)

    def visit_response(self, response: Node) -> VisitResult:
        if response.get("headers"):
            if self._each_in("headers", response["headers"].items(), self.inspect_header):
                return True
        if response.get("content"):
            return self._each_in("content", response["content"].items(), self.visit_media_type)
        return None

    def visit_media_type(self, media_type: Node) -> VisitResult:
        schema: Optional[Node] = None
        if media_type.get("schema"):
            with self.location.segment("schema"):
                inspection = self.inspect_schema(media_type["schema"])
            if inspection.result:
                return True
            schema = inspection.schema
        if media_type.get("encoding"):
            return self._each_in(
                "encoding", media_type["encoding"].items(), lambda enc: self.visit_encoding(enc, schema)
            )
        return None

    def visit_encoding(self, encoding: Node, schema: Optional[Node] = None) -> VisitResult:
        headers = encoding.get("headers")
        if headers:
            return self._each_in(
                "headers", headers.items(), lambda hdr: self.inspect_encoding_header(hdr, schema)
            )
        return None

    def inspect_encoding_header(self, header: Node, schema: Optional[Node] = None) -> VisitResult:
        return self.resolve(header, lambda h: self.visit_encoding_header(h, schema))

    def visit_encoding_header(self, header: Node, schema: Optional[Node] = None) -> VisitResult:
        """A header is mostly a header, so this defers to :meth:`visit_header`."""
        return self.visit_header(header)

    # ------------------------------------------------------------------ #
    # Schemas
    # ------------------------------------------------------------------ #

    def inspect_schema(self, schema: Node, parent: Optional[Node] = None) -> SchemaInspection:
        resolved: list[Node] = []

        def visit(target: Node) -> VisitResult:
            resolved.append(target)
            return self.visit_schema(target, parent)

        result = self.resolve(schema, visit)
        return SchemaInspection(result, resolved[0] if resolved else None)

    def visit_schema(self, schema: Node, parent: Optional[Node] = None) -> VisitResult:
        types = schema.get("type")
        if isinstance(types, list):
            if self._each_in("type", enumerate(types), lambda t: self.visit_schema_type(t, schema)):
                return True
        if schema.get("properties"):
            if self._each_in(
                "properties",
                schema["properties"].items(),
                lambda prop: self.inspect_schema_property(prop, schema),
            ):
                return True
        if schema.get("additionalProperties") not in (None, False):
            with self.location.segment("additionalProperties"):
                if self.inspect_additional_properties(schema["additionalProperties"], schema):
                    return True
        if schema.get("items"):
            with self.location.segment("items"):
                if self.inspect_schema_items(schema["items"], schema):
                    return True

        joins: dict[str, Optional[list[Any]]] = {}
        for keyword in ("allOf", "oneOf", "anyOf"):
            joined = self.inspect_multi_type(schema.get(keyword), keyword, schema)
            if joined is True:
                return True
            joins[keyword] = joined if isinstance(joined, list) else None
        not_schema: Optional[Node] = None
        if schema.get("not"):
            with self.location.segment("not"):
                inspection = self.inspect_schema(schema["not"], schema)
            if inspection.result:
                return True
            not_schema = inspection.schema

        if any(v is not None for v in joins.values()) or not_schema is not None:
            self.process_schema_joins(schema, joins["allOf"], joins["oneOf"], joins["anyOf"], not_schema)
        return None

    def visit_schema_type(self, type_name: str, parent: Node) -> VisitResult:
        return None

    def inspect_schema_property(self, schema: Node, parent: Node) -> VisitResult:
        return self.resolve(schema, lambda s: self.visit_schema_property(s, parent))

    def visit_schema_property(self, schema: Node, parent: Node) -> VisitResult:
        return self.visit_schema(schema, parent)

    def inspect_additional_properties(self, schema: Node | bool, parent: Node) -> VisitResult:
        if isinstance(schema, bool):
            return self.visit_additional_properties(schema, parent)
        return self.resolve(schema, lambda s: self.visit_additional_properties(s, parent))

    def visit_additional_properties(self, schema: Node | bool, parent: Node) -> VisitResult:
        if isinstance(schema, dict):
            return self.visit_schema(schema, parent)
        return None

    def inspect_schema_items(self, schema: Node, parent: Node) -> VisitResult:
        return self.resolve(schema, lambda s: self.visit_schema_items(s, parent))

    def visit_schema_items(self, schema: Node, parent: Node) -> VisitResult:
        return self.visit_schema(schema, parent)

    def inspect_multi_type(
        self, schemas: Any, keyword: str, parent: Optional[Node] = None
    ) -> list[Any] | bool | None:
        """Inspect every member of an ``allOf``/``oneOf``/``anyOf`` list.

        Returns the resolved members (unresolvable references are kept as
        the raw reference), ``True`` on abort, or ``None`` if *schemas* is
        not a list.
        """
        if not isinstance(schemas, list):
            return None
        members: list[Any] = []
        with self.location.segment(keyword):
            for idx, member in enumerate(schemas):
                with self.location.segment(idx):
                    inspection = self.inspect_schema(member, parent)
                members.append(inspection.schema if inspection.schema is not None else member)
                if inspection.result is True:
                    return True
                if inspection.result is False:
                    break
        return members

    def process_schema_joins(
        self,
        parent: Node,
        all_of: Optional[list[Any]] = None,
        one_of: Optional[list[Any]] = None,
        any_of: Optional[list[Any]] = None,
        not_schema: Optional[Node] = None,
    ) -> None:
        """Hook fired after every composition keyword of *parent* was visited.

        Subclasses apply union, intersection or negation semantics here.
        """
        return None
