"""Compile an OpenAPI 3.1 document into a language-neutral model graph.

:class:`LangNeutralGenerator` is a :class:`~oagraph.walker.DocumentVisitor`
that runs over a dereferenced copy of the document. As schemas are visited
it classifies each distinct schema object into a :class:`~oagraph.graph.Model`
and, using the context frames of :mod:`oagraph.generator.context`, records
which parameter, request body or response the schema belongs to. When an
operation's subtree is complete, :meth:`LangNeutralGenerator.process_method`
turns the collected pieces into an ordered :class:`~oagraph.graph.Method`.

Two guards keep the walk finite on cyclic documents: a set of visited
locations (a location is processed at most once) and a map from schema
object identity to its model (a model is built at most once per object and
only the first visit descends into the schema).

Example::

    from oagraph.generator import LangNeutralGenerator
    from oagraph.parser import load_spec

    graph = LangNeutralGenerator().generate(load_spec("petstore.json"))
    for model in graph.models:
        print(model.name, model.kind.value)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, Optional

from oagraph.exceptions import ModelGraphError, UnsupportedSchemaError
from oagraph.generator.context import (
    FrameStack,
    MediaSchemaModel,
    OperationParams,
    ParamEntry,
    PathItemParams,
    RequestBodyFrame,
    ResponseFrame,
)
from oagraph.generator.matching import models_match
from oagraph.generator.media_types import preferred_media_types
from oagraph.generator.response_codes import preferred_response_codes
from oagraph.generator.serializers import effective_style, serializer_key
from oagraph.graph import (
    CONSTRAINT_KEYWORDS,
    Api,
    ArrayModel,
    BodyParameter,
    LangNeutralGraph,
    Method,
    Model,
    ModelRegistry,
    NamedParameter,
    Parameter,
    PrimitiveModel,
    RecordModel,
    Response,
    TypedModel,
    UnionModel,
    find_duplicate_model_names,
)
from oagraph.names import snake_case
from oagraph.parser.resolver import dereference, make_resolver
from oagraph.settings import GeneratorSettings
from oagraph.walker.visitor import DocumentVisitor, Node, VisitResult

logger = logging.getLogger(__name__)

# Formats that select a more specific primitive key, per JSON Schema type.
FORMAT_KEYS: dict[str, tuple[str, ...]] = {
    "number": ("float", "double"),
    "integer": ("int32", "int64"),
    "string": ("binary", "byte", "date", "date-time", "uri", "uri-reference", "regex"),
}


JSON_TYPES = ("string", "number", "integer", "boolean", "object", "array", "null")


class LangNeutralGenerator(DocumentVisitor):
    """Build a :class:`~oagraph.graph.LangNeutralGraph` from an OpenAPI document.

    A generator instance is single-threaded; all per-pass state is reset by
    :meth:`generate`.

    Args:
        settings: Generator settings. Defaults to :class:`GeneratorSettings()`.
    """

    def __init__(self, settings: Optional[GeneratorSettings] = None):
        super().__init__()
        self.settings = settings or GeneratorSettings()
        self._reset()

    def _reset(self) -> None:
        self.registry = ModelRegistry()
        self.apis: list[Api] = []
        self._frames = FrameStack()
        self._seen_locations: set[str] = set()
        self._models_by_schema: dict[int, Model] = {}

    # ------------------------------------------------------------------ #
    # Entry point
    # ------------------------------------------------------------------ #

    def generate(self, document: Node, ignore_unused_models: Optional[bool] = False) -> LangNeutralGraph:
        """Compile *document* and return the model graph.

        Args:
            document: An OpenAPI 3.1 document. It is not modified.
            ignore_unused_models: Skip component schemas no operation uses.
                ``None`` takes the value from ``settings.all_models``.

        Raises:
            SpecParseError: If the document cannot be dereferenced.
            UnsupportedSchemaError: If a schema cannot be modelled.
            ModelGraphError: If a graph invariant would be violated.
        """
        if ignore_unused_models is None:
            ignore_unused_models = not self.settings.all_models

        doc = dereference(document)
        schemas = (doc.get("components") or {}).get("schemas") or {}
        for key, schema in schemas.items():
            if isinstance(schema, dict) and not schema.get("title") and not schema.get("x-schema-name"):
                schema["x-schema-name"] = key

        self._reset()
        try:
            self.visit(doc, make_resolver(doc), None if ignore_unused_models else False)
            models = self.registry.named()
            for name, group in find_duplicate_model_names(models).items():
                logger.warning(
                    "Model name '%s' is derived by %d schemas: %s",
                    name,
                    len(group),
                    ", ".join(str(m.location) for m in group),
                )
            graph = LangNeutralGraph(
                models=models,
                apis=[api for api in self.apis if api.methods],
                registry=self.registry,
            )
            logger.debug(
                "Generated %d named models (%d total) and %d apis",
                len(graph.models),
                len(self.registry),
                len(graph.apis),
            )
            return graph
        finally:
            self._frames.clear()
            self._seen_locations.clear()
            self._models_by_schema.clear()

    # ------------------------------------------------------------------ #
    # Walker overrides
    # ------------------------------------------------------------------ #

    def resolve(self, obj: Any, callback: Callable[[Any], VisitResult]) -> VisitResult:
        location = self.active_location
        if location in self._seen_locations:
            logger.debug("Skipping already visited %s", location)
            return None
        self._seen_locations.add(location)
        return super().resolve(obj, callback)

    def _ignored(self, node: Node) -> bool:
        return bool(node.get("x-ignore") or node.get(f"x-ignore-{self.settings.role}"))

    def visit_tag(self, tag: Node) -> VisitResult:
        if self._ignored(tag):
            logger.debug("Ignoring tag %s", tag.get("name"))
        else:
            self.apis.append(Api(name=tag.get("name", ""), description=tag.get("description"), tag=tag))
        return super().visit_tag(tag)

    def visit_path_item(self, path_item: Node) -> VisitResult:
        frame = PathItemParams(path=self.location.last_segment(), location=self.active_location)
        with self._frames.push(frame):
            return super().visit_path_item(path_item)

    def visit_operation(self, operation: Node) -> VisitResult:
        frame = OperationParams(location=self.active_location, operation=operation)
        verb = self.location.last_segment()
        with self._frames.push(frame):
            result = super().visit_operation(operation)
            if result is not None:
                return result
            if self._ignored(operation):
                logger.debug("Ignoring operation %s", frame.location)
                return None

            path_frame = self._frames.find(PathItemParams)
            path = path_frame.path if path_frame else ""
            method = Method(
                http_method=verb.upper(),
                path_pattern=path[1:] if path.startswith("/") else path,
                operation_id=operation.get("operationId") or snake_case(f"{verb} {path}"),
                location=frame.location,
                operation=operation,
            )
            self.process_method(method)

            api = self._find_api(operation.get("tags"))
            if api is not None:
                api.add_method(method)
            else:
                logger.debug("Operation %s matches no api; not attached", method.operation_id)
        return None

    def _find_api(self, tags: Any) -> Optional[Api]:
        for tag in tags if isinstance(tags, list) else []:
            wanted = snake_case(str(tag))
            for api in self.apis:
                if snake_case(api.name) == wanted:
                    return api
        return None

    def visit_parameter(self, parameter: Node) -> VisitResult:
        frame = self._frames.top()
        if isinstance(frame, (OperationParams, PathItemParams)):
            frame.params.append(
                ParamEntry(parameter=parameter, location=self.active_location, ignore=self._ignored(parameter))
            )
        return super().visit_parameter(parameter)

    def visit_request_body(self, body: Node) -> VisitResult:
        op = self._frames.top()
        if not isinstance(op, OperationParams):
            return super().visit_request_body(body)
        op.request = RequestBodyFrame(location=self.active_location, request_body=body)
        with self._frames.push(op.request):
            return super().visit_request_body(body)

    def visit_response(self, response: Node) -> VisitResult:
        op = self._frames.top()
        # Shared responses under components are walked outside any operation.
        if not isinstance(op, OperationParams):
            return super().visit_response(response)
        frame = ResponseFrame(code=self.location.last_segment(), location=self.active_location, response=response)
        op.responses.append(frame)
        with self._frames.push(frame):
            return super().visit_response(response)

    def visit_header(self, header: Node) -> VisitResult:
        """Header schemas never describe a body, so headers are not descended."""
        return None

    # ------------------------------------------------------------------ #
    # Schemas
    # ------------------------------------------------------------------ #

    def visit_schema(self, schema: Node, parent: Optional[Node] = None) -> VisitResult:
        model = self._models_by_schema.get(id(schema))
        created = model is None
        if model is None:
            model = self._classify(schema)
            self._models_by_schema[id(schema)] = model
            logger.debug("Built %s model %s at %s", model.kind.value, model.name or "<anonymous>", model.location)

        if parent is None:
            self._attach(schema, model)

        if created:
            return super().visit_schema(schema, parent)
        return None

    def _attach(self, schema: Node, model: Model) -> None:
        frame = self._frames.top()
        match frame:
            case ResponseFrame() | RequestBodyFrame():
                media_type = self.location.last_segment(2)
                frame.schema_models.append(MediaSchemaModel(media_type=media_type, schema=schema, model=model))
            case OperationParams() | PathItemParams():
                if frame.params:
                    frame.params[-1].schema = schema
                    frame.params[-1].model = model
            case None:
                pass

    def _classify(self, schema: Node) -> Model:
        location = self.active_location
        model = self._build_model(schema)
        model.bind(schema, location)
        return self.registry.register(model)

    def _primitive(self, jsd_type: str, schema: Node) -> PrimitiveModel:
        fmt = schema.get("format")
        type_key = fmt if fmt in FORMAT_KEYS.get(jsd_type, ()) else jsd_type
        constraints = {k: schema[k] for k in CONSTRAINT_KEYWORDS if k in schema}
        enum = schema.get("enum") if isinstance(schema.get("enum"), list) else None
        return PrimitiveModel(jsd_type=jsd_type, type_key=type_key, format=fmt, enum=enum, constraints=constraints)

    def _registered_primitive(self, jsd_type: str, schema: Node) -> PrimitiveModel:
        model = self._primitive(jsd_type, schema)
        model.schema = schema
        model.location = self.active_location
        self.registry.register(model)
        return model

    def _build_model(self, schema: Node) -> Model:
        """Pick the model variant for a first-seen *schema*."""
        oag_type = schema.get("x-oag-type")
        if oag_type:
            return TypedModel(typed_name=_oag_type_name(oag_type))

        schema_type = schema.get("type")
        if not schema_type:
            schema_type = _infer_type(schema)

        if isinstance(schema.get("allOf"), list):
            return RecordModel()

        if isinstance(schema_type, list):
            return self._build_from_type_list(schema, schema_type)

        as_union = bool(schema.get("oneOf")) or bool(schema.get("anyOf"))
        open_record = schema.get("additionalProperties") not in (None, False)
        match schema_type:
            case "object":
                if not as_union and not open_record and not schema.get("properties"):
                    return self._primitive("object", schema)
                return RecordModel()
            case "array":
                return ArrayModel()
            case "string" | "number" | "integer" | "boolean" | "null":
                model: Model = self._primitive(schema_type, schema)
            case None:
                if as_union:
                    return UnionModel()
                if "const" in schema:
                    return TypedModel(typed_name=_literal(schema["const"]), literal=True)
                # No type and no const means the value can be anything; so does a bare 'not'.
                model = self._primitive("any", schema)
            case _:
                raise UnsupportedSchemaError(f"Unknown schema type {schema_type!r}", self.active_location)

        if as_union:
            union = UnionModel()
            model.schema = schema
            model.location = self.active_location
            union.add_union(self.registry.register(model))
            return union
        return model

    def _build_from_type_list(self, schema: Node, types: list[str]) -> Model:
        for jsd_type in types:
            if jsd_type not in JSON_TYPES:
                raise UnsupportedSchemaError(f"Unknown schema type {jsd_type!r}", self.active_location)
        non_null = [t for t in types if t != "null"]
        if not non_null:
            return self._primitive("null", schema)
        if len(non_null) == 1:
            only = non_null[0]
            if only == "object":
                return RecordModel()
            if only == "array":
                return ArrayModel()
            return self._primitive(only, schema)
        union = UnionModel()
        for jsd_type in non_null:
            union.add_union(self._registered_primitive(jsd_type, schema))
        return union

    def _model_for(self, schema: Any) -> Optional[Model]:
        if isinstance(schema, dict):
            return self._models_by_schema.get(id(schema))
        return None

    def visit_schema_property(self, schema: Node, parent: Node) -> VisitResult:
        prop_name = self.location.last_segment()
        result = super().visit_schema_property(schema, parent)
        model = self._model_for(schema)
        if model is not None:
            record = self._parent_model(parent, RecordModel, "properties")
            required = parent.get("required")
            record.add_property(prop_name, model, isinstance(required, list) and prop_name in required)
        return result

    def visit_schema_items(self, schema: Node, parent: Node) -> VisitResult:
        result = super().visit_schema_items(schema, parent)
        model = self._model_for(schema)
        if model is not None:
            self._parent_model(parent, ArrayModel, "items").set_items(model)
        return result

    def visit_additional_properties(self, schema: Node | bool, parent: Node) -> VisitResult:
        result = super().visit_additional_properties(schema, parent)
        if result is None:
            model = self.registry.any if schema is True else self._model_for(schema)
            if model is not None:
                self._parent_model(parent, RecordModel, "additionalProperties").set_additional_properties(model)
        return result

    def _parent_model(self, parent: Node, expected: type, keyword: str) -> Any:
        model = self._model_for(parent)
        if not isinstance(model, expected):
            kind = model.kind.value if model is not None else "unknown"
            raise UnsupportedSchemaError(f"'{keyword}' on a {kind} schema", self.active_location)
        return model

    def process_schema_joins(
        self,
        parent: Node,
        all_of: Optional[list[Any]] = None,
        one_of: Optional[list[Any]] = None,
        any_of: Optional[list[Any]] = None,
        not_schema: Optional[Node] = None,
    ) -> None:
        model = self._model_for(parent)
        if all_of is not None:
            if not isinstance(model, RecordModel):
                raise UnsupportedSchemaError("'allOf' on a non-record schema", self.active_location)
            for member in all_of:
                member_model = self._model_for(member)
                # An untyped member adds no constraint to the intersection.
                if member_model is None or _is_any(member_model):
                    continue
                model.add_extends_from(member_model)
        for members in (one_of, any_of):
            if members is None:
                continue
            if not isinstance(model, (RecordModel, UnionModel)):
                kind = model.kind.value if model is not None else "unknown"
                raise UnsupportedSchemaError(f"'oneOf'/'anyOf' on a {kind} schema", self.active_location)
            for member in members:
                member_model = self._model_for(member)
                if member_model is not None:
                    model.add_union(member_model)

    # ------------------------------------------------------------------ #
    # Operation assembly
    # ------------------------------------------------------------------ #

    def process_method(self, method: Method) -> None:
        """Fill *method* with parameters and responses from the current frames.

        Must be called while the operation's frame is the innermost frame.
        """
        frame = self._frames.top()
        if not isinstance(frame, OperationParams):
            raise ModelGraphError(f"No operation context for {method.operation_id}")
        declared = frame.operation.get("responses") or {}
        if len(declared) != len(frame.responses):
            raise ModelGraphError(
                f"Tracked {len(frame.responses)} responses for {method.operation_id}, "
                f"operation declares {len(declared)}"
            )

        path_frame = self._frames.find(PathItemParams)
        params: list[Parameter] = self._named_parameters(
            path_frame.params if path_frame else [], frame.params
        )
        if frame.request is not None:
            params.append(self._body_parameter(frame.request, [p.name for p in params]))

        # Required first; the body goes last within its group.
        params.sort(key=lambda p: (not p.required, p.kind == "body"))
        for param in params:
            method.add_parameter(param)

        codes = [r.code for r in frame.responses]
        if not any(c.startswith("2") or c.lower().startswith("d") for c in codes):
            synthetic = Response(status_key="2XX")
            synthetic.set_model(self.registry.unknown)
            method.add_response(synthetic)

        order = {code: idx for idx, code in enumerate(preferred_response_codes(method.http_method, codes))}
        built: list[Model] = []
        for rsp_frame in sorted(frame.responses, key=lambda r: order.get(r.code, len(order))):
            method.add_response(self._response(rsp_frame, built))

        logger.debug(
            "Assembled %s %s: %d parameters, responses %s",
            method.http_method,
            method.path_pattern,
            len(method.parameters),
            list(method.responses),
        )

    def _named_parameters(self, shared: list[ParamEntry], own: list[ParamEntry]) -> list[Parameter]:
        # Operation parameters replace path-item parameters with the same name and location.
        overridden = {(e.parameter.get("name"), e.parameter.get("in")) for e in own}
        entries = [e for e in shared if (e.parameter.get("name"), e.parameter.get("in")) not in overridden]
        return [self._named_parameter(e) for e in [*entries, *own] if not e.ignore]

    def _named_parameter(self, entry: ParamEntry) -> NamedParameter:
        p = entry.parameter
        name = p.get("name")
        if not name:
            raise UnsupportedSchemaError("Parameter without a name", entry.location)
        location_in = p.get("in", "query")
        style, explode = effective_style(location_in, p.get("style"), p.get("explode"))
        param = NamedParameter(
            name=name,
            location_in=location_in,
            required=location_in == "path" or bool(p.get("required")),
            location=entry.location,
            style=style,
            explode=explode,
            serializer_key=serializer_key(location_in, style, explode),
            parameter=p,
        )
        param.set_model(entry.model or self.registry.any)
        return param

    def _body_parameter(self, request: RequestBodyFrame, taken: list[str]) -> BodyParameter:
        media_types: Optional[list[str]] = None
        if request.schema_models:
            candidates, media_types = self._filter_media(
                request.schema_models, self.settings.request_media_types()
            )
            model = self._single_model(candidates, request.schema_models, request.location)
        else:
            # No schema means the body can be anything.
            model = self.registry.any

        name = request.request_body.get("x-body-name") or next(
            (n for n in self.settings.body_names if n not in taken), None
        )
        if not name:
            raise UnsupportedSchemaError("Every configured body parameter name is taken", request.location)
        body = BodyParameter(
            name=name,
            required=bool(request.request_body.get("required")),
            location=request.location,
            media_types=media_types,
            request_body=request.request_body,
        )
        body.set_model(model)
        return body

    def _response(self, frame: ResponseFrame, built: list[Model]) -> Response:
        """Build the response for *frame*.

        A model structurally matching one already used by an earlier response
        of the same operation is reused, so both codes share one Model.
        """
        response = Response(
            status_key=frame.code,
            location=frame.location,
            description=frame.response.get("description"),
        )
        if frame.schema_models:
            candidates, response.media_types = self._filter_media(
                frame.schema_models, self.settings.response_media_types()
            )
            model = self._single_model(candidates, frame.schema_models, frame.location)
            model = next((m for m in built if models_match(m, model)), model)
            built.append(model)
            response.set_model(model)
        else:
            # No content means no body.
            response.set_model(self.registry.void)
        return response

    def _filter_media(
        self, schema_models: list[MediaSchemaModel], preferences: Optional[list[str]]
    ) -> tuple[list[MediaSchemaModel], Optional[list[str]]]:
        """Apply the media-type preference list and drop structural duplicates.

        Media types matching no preference are dropped, so the result may be
        empty.
        """
        if preferences is None:
            return _consolidate(schema_models), None
        preferred = preferred_media_types(preferences, [c.media_type for c in schema_models])
        rank = {mt: idx for idx, mt in enumerate(preferred)}
        candidates = sorted((c for c in schema_models if c.media_type in rank), key=lambda c: rank[c.media_type])
        return _consolidate(candidates), preferred

    def _single_model(
        self, candidates: list[MediaSchemaModel], declared: list[MediaSchemaModel], location: str
    ) -> Model:
        if len(candidates) == 1:
            return candidates[0].model
        if not candidates:
            media = ", ".join(dict.fromkeys(c.media_type for c in declared))
            raise UnsupportedSchemaError(f"No preferred media type among declared ({media})", location)
        media = ", ".join(c.media_type for c in candidates)
        raise UnsupportedSchemaError(
            f"{len(candidates)} structurally different media-type schemas ({media})", location
        )


# --- Helpers ---


def _consolidate(schema_models: list[MediaSchemaModel]) -> list[MediaSchemaModel]:
    unique: list[MediaSchemaModel] = []
    for candidate in schema_models:
        if not any(models_match(u.model, candidate.model) for u in unique):
            unique.append(candidate)
    return unique


def _is_any(model: Model) -> bool:
    return isinstance(model, PrimitiveModel) and model.jsd_type == "any"


def _infer_type(schema: Node) -> Optional[str]:
    if "items" in schema:
        return "array"
    if "properties" in schema or "additionalProperties" in schema or "discriminator" in schema:
        return "object"
    values = schema.get("enum")
    if isinstance(values, list) and values:
        first = values[0]
        if isinstance(first, bool):
            return "boolean"
        if isinstance(first, str):
            return "string"
        if isinstance(first, (int, float)):
            numeric = [v for v in values if isinstance(v, (int, float)) and not isinstance(v, bool)]
            return "integer" if all(float(v).is_integer() for v in numeric) else "number"
    return None


def _oag_type_name(oag_type: Any) -> str:
    if isinstance(oag_type, str):
        return oag_type
    if isinstance(oag_type, dict):
        for target in oag_type.values():
            if isinstance(target, dict) and target.get("type"):
                return str(target["type"])
    return json.dumps(oag_type, sort_keys=True)


def _literal(value: Any) -> str:
    """Render a ``const`` value as source-like literal text."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f"'{value}'"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value)
