"""Language-neutral model graph produced by the compiler.

This is the output side of oagraph. A generation pass fills a
:class:`ModelRegistry` with :class:`Model` variants and assembles
:class:`Api` objects holding ordered :class:`Method` objects. The result is
wrapped in a :class:`LangNeutralGraph`.

Model variants are plain dataclasses selected by :class:`ModelKind`:

* :class:`PrimitiveModel` -- a JSON Schema scalar (plus the synthetic
  ``void`` and ``unknown``), optionally keyed by a recognized ``format``.
* :class:`ArrayModel` -- a single ``items`` model.
* :class:`RecordModel` -- named properties, additional properties, ``allOf``
  parents and ``oneOf``/``anyOf`` alternatives.
* :class:`UnionModel` -- alternatives only.
* :class:`TypedModel` -- an externally named type or a ``const`` literal.

Models link to each other with ordinary Python references. Cycles are
expected (a ``Tree`` whose ``children`` are ``Tree`` items), so dataclass
equality is disabled and every walker over the graph carries a seen-set or
stops at named models.

Example::

    graph = LangNeutralGenerator(settings).generate(doc)
    for api in graph.apis:
        print(render_api(api))
"""

from __future__ import annotations

import enum
import json
import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Union

from oagraph.exceptions import ModelGraphError, ParameterEncodingError

COMPONENT_SCHEMAS = "#/components/schemas/"

# Constraint keywords copied onto primitive models.
CONSTRAINT_KEYWORDS = (
    "format",
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "multipleOf",
    "minLength",
    "maxLength",
    "pattern",
)


class ModelKind(str, enum.Enum):
    """Discriminator for the closed set of model variants."""

    PRIMITIVE = "primitive"
    ARRAY = "array"
    RECORD = "record"
    UNION = "union"
    TYPED = "typed"


# --- Models ---


@dataclass(eq=False)
class Model:
    """Fields shared by every model variant.

    ``key`` is assigned by :meth:`ModelRegistry.register` and is ``None``
    until then. ``name`` is derived at most once; see :meth:`set_name`.
    """

    kind: ClassVar[ModelKind]

    schema: Optional[dict[str, Any]] = field(default=None, repr=False)
    location: Optional[str] = None
    key: Optional[int] = None
    _name: Optional[str] = field(default=None, repr=False)

    @property
    def name(self) -> Optional[str]:
        return self._name

    def set_name(self, name: str) -> None:
        if self._name is not None and self._name != name:
            raise ModelGraphError(
                f"Model at {self.location} is already named '{self._name}', cannot rename to '{name}'"
            )
        self._name = name

    @property
    def nullable(self) -> bool:
        types = (self.schema or {}).get("type")
        return isinstance(types, list) and "null" in types

    def bind(self, schema: dict[str, Any], location: Optional[str]) -> Model:
        """Attach the source *schema* and *location* and derive the name.

        The name comes from ``title``, then ``x-schema-name``, then the last
        segment of a top-level ``#/components/schemas/<Name>`` location.
        """
        self.schema = schema
        self.location = location
        name = schema.get("title") or schema.get("x-schema-name")
        if not name and location and location.startswith(COMPONENT_SCHEMAS):
            tail = location[len(COMPONENT_SCHEMAS):]
            if tail and "/" not in tail:
                name = tail
        if name:
            self.set_name(name)
        return self


@dataclass(eq=False)
class PrimitiveModel(Model):
    """A scalar type.

    ``jsd_type`` is the JSON Schema type (or ``any``, ``void``, ``unknown``).
    ``type_key`` is the format-specific common key (``date-time``, ``int64``,
    ``double``...) and falls back to ``jsd_type``.
    """

    kind: ClassVar[ModelKind] = ModelKind.PRIMITIVE

    jsd_type: str = "any"
    type_key: Optional[str] = None
    format: Optional[str] = None
    enum: Optional[list[Any]] = None
    constraints: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.type_key is None:
            self.type_key = self.jsd_type


@dataclass(eq=False)
class ArrayModel(Model):
    kind: ClassVar[ModelKind] = ModelKind.ARRAY

    items: Optional[Model] = field(default=None, repr=False)

    def set_items(self, items: Model) -> None:
        self.items = items


@dataclass
class RecordProperty:
    model: Model = field(repr=False)
    required: bool = False


@dataclass(eq=False)
class RecordModel(Model):
    """An object with named properties.

    ``additional_properties`` is ``False`` when the record is closed.
    """

    kind: ClassVar[ModelKind] = ModelKind.RECORD

    properties: dict[str, RecordProperty] = field(default_factory=dict, repr=False)
    additional_properties: Union[Model, bool] = field(default=False, repr=False)
    extends_from: list[Model] = field(default_factory=list, repr=False)
    union_of: list[Model] = field(default_factory=list, repr=False)

    def add_property(self, name: str, model: Model, required: bool) -> None:
        self.properties[name] = RecordProperty(model=model, required=required)

    def set_additional_properties(self, model: Model) -> None:
        self.additional_properties = model

    def add_extends_from(self, model: Model) -> None:
        self.extends_from.append(model)

    def add_union(self, model: Model) -> None:
        self.union_of.append(model)


@dataclass(eq=False)
class UnionModel(Model):
    kind: ClassVar[ModelKind] = ModelKind.UNION

    union_of: list[Model] = field(default_factory=list, repr=False)

    def add_union(self, model: Model) -> None:
        self.union_of.append(model)


@dataclass(eq=False)
class TypedModel(Model):
    """An opaque type named outside the document.

    ``typed_name`` is the declared ``x-oag-type`` (or the first target's
    ``type`` when ``x-oag-type`` is a mapping), or the rendered literal for a
    ``const`` schema, in which case ``literal`` is true.
    """

    kind: ClassVar[ModelKind] = ModelKind.TYPED

    typed_name: str = ""
    literal: bool = False


# --- Registry ---


class ModelRegistry:
    """Flat arena of every model built during one generation pass.

    Models are addressed by their integer ``key``. The ``any``, ``void`` and
    ``unknown`` singletons are registered first and shared by the pass.
    """

    def __init__(self) -> None:
        self._models: list[Model] = []
        self.any = self.register(PrimitiveModel(jsd_type="any"))
        self.void = self.register(PrimitiveModel(jsd_type="void"))
        self.unknown = self.register(PrimitiveModel(jsd_type="unknown"))

    def register(self, model: Model) -> Model:
        if model.key is not None:
            raise ModelGraphError(f"Model is already registered under key {model.key}")
        model.key = len(self._models)
        self._models.append(model)
        return model

    def get(self, key: int) -> Model:
        try:
            return self._models[key]
        except IndexError:
            raise ModelGraphError(f"No model registered under key {key}") from None

    def named(self) -> list[Model]:
        """Registered models that carry a name, in registration order."""
        return [m for m in self._models if m.name]

    def __len__(self) -> int:
        return len(self._models)

    def __iter__(self) -> Iterator[Model]:
        return iter(self._models)


# --- Parameters and responses ---


@dataclass(eq=False)
class NamedParameter:
    """A path, query, header or cookie parameter.

    ``location_in`` is the parameter's ``in`` value; ``location`` is the JSON
    pointer it was declared at. ``style`` and ``explode`` hold the effective
    (defaulted) values, and ``serializer_key`` is ``None`` when that
    combination has no wire encoding.
    """

    kind: ClassVar[str] = "named"

    name: str
    location_in: str
    required: bool = False
    location: Optional[str] = None
    style: Optional[str] = None
    explode: Optional[bool] = None
    serializer_key: Optional[str] = None
    parameter: dict[str, Any] = field(default_factory=dict, repr=False)
    model: Optional[Model] = field(default=None, repr=False)

    def set_model(self, model: Model) -> None:
        if self.model is not None:
            raise ModelGraphError(f"Parameter '{self.name}' model already set")
        self.model = model

    def require_serializer_key(self) -> str:
        if self.serializer_key is None:
            raise ParameterEncodingError(self.name, self.location_in, self.style, self.explode)
        return self.serializer_key


@dataclass(eq=False)
class BodyParameter:
    """The request body, surfaced as a parameter.

    ``media_types`` lists the accepted content types in preference order, or
    is ``None`` when no preference filtering was applied.
    """

    kind: ClassVar[str] = "body"

    name: str
    required: bool = False
    location: Optional[str] = None
    media_types: Optional[list[str]] = None
    request_body: dict[str, Any] = field(default_factory=dict, repr=False)
    model: Optional[Model] = field(default=None, repr=False)

    def set_model(self, model: Model) -> None:
        if self.model is not None:
            raise ModelGraphError(f"Body parameter '{self.name}' model already set")
        self.model = model


Parameter = Union[NamedParameter, BodyParameter]


@dataclass(eq=False)
class Response:
    """One entry of a method's response map.

    ``status_key`` is the literal status code, a class wildcard such as
    ``2XX``, or ``default``. ``media_types`` is the preferred accept list.
    """

    status_key: str
    location: Optional[str] = None
    description: Optional[str] = None
    media_types: Optional[list[str]] = None
    model: Optional[Model] = field(default=None, repr=False)

    def set_model(self, model: Model) -> None:
        if self.model is not None:
            raise ModelGraphError(f"Response '{self.status_key}' model already set")
        self.model = model


# --- Methods and Apis ---


@dataclass(eq=False)
class Method:
    """A compiled operation.

    ``path_pattern`` is in URI-template form without the leading slash
    (``pets/{petId}``). ``responses`` preserves insertion order, which the
    compiler sets to the preferred status-code order.
    """

    http_method: str
    path_pattern: str
    operation_id: str
    location: Optional[str] = None
    operation: dict[str, Any] = field(default_factory=dict, repr=False)
    parameters: list[Parameter] = field(default_factory=list, repr=False)
    responses: dict[str, Response] = field(default_factory=dict, repr=False)

    def add_parameter(self, parameter: Parameter) -> None:
        self.parameters.append(parameter)

    def add_response(self, response: Response) -> None:
        if response.status_key in self.responses:
            raise ModelGraphError(
                f"Method '{self.operation_id}' already has a '{response.status_key}' response"
            )
        self.responses[response.status_key] = response


@dataclass(eq=False)
class Api:
    """Tag-grouped collection of methods."""

    name: str
    description: Optional[str] = None
    tag: dict[str, Any] = field(default_factory=dict, repr=False)
    methods: list[Method] = field(default_factory=list, repr=False)

    def add_method(self, method: Method) -> None:
        self.methods.append(method)


@dataclass(eq=False)
class LangNeutralGraph:
    """Result of one generation pass.

    ``models`` holds only named models. ``apis`` holds only apis with at
    least one method.
    """

    models: list[Model]
    apis: list[Api]
    registry: Optional[ModelRegistry] = field(default=None, repr=False)


# --- Rendering ---


def render_model(model: Optional[Model], owned: bool = False, _active: Optional[set[int]] = None) -> str:
    """Render *model* in a TypeScript-like structural notation.

    With ``owned=True`` a named model renders as just its name, which is how
    references from other models print. A top-level named model renders as
    ``type Name = ...``.
    """
    if model is None:
        return "void"
    if owned and model.name:
        return model.name
    active = _active if _active is not None else set()
    if id(model) in active:
        # Anonymous cycle; named models never reach here.
        return "<cycle>"
    active.add(id(model))
    try:
        text = _render_body(model, active)
    finally:
        active.discard(id(model))
    if model.name:
        return f"type {model.name} = {text}"
    return text


def _render_body(model: Model, active: set[int]) -> str:
    def ref(m: Optional[Model]) -> str:
        return render_model(m, True, active)

    match model.kind:
        case ModelKind.PRIMITIVE:
            assert isinstance(model, PrimitiveModel)
            if model.jsd_type == "string" and model.enum:
                return " | ".join(f"'{v}'" for v in model.enum)
            return model.jsd_type
        case ModelKind.ARRAY:
            assert isinstance(model, ArrayModel)
            return f"{ref(model.items)}[]"
        case ModelKind.UNION:
            assert isinstance(model, UnionModel)
            return " | ".join(ref(m) for m in model.union_of)
        case ModelKind.TYPED:
            assert isinstance(model, TypedModel)
            return model.typed_name
        case ModelKind.RECORD:
            assert isinstance(model, RecordModel)
            lines = ["{"]
            for prop_name, prop in model.properties.items():
                marker = "" if prop.required else "?"
                lines.append(f"\t{prop_name}{marker}: {ref(prop.model)}")
            if isinstance(model.additional_properties, Model):
                lines.append(f"\t[key: string]: {ref(model.additional_properties)}")
            lines.append("}")
            body = os.linesep.join(lines)
            if model.union_of:
                body = "& (" + " | ".join(ref(m) for m in model.union_of) + ") " + body
            if model.extends_from:
                body = " & ".join(ref(m) for m in model.extends_from) + " & " + body
            return body
    raise ModelGraphError(f"Unhandled model kind {model.kind!r}")


def render_method(method: Method) -> str:
    params = []
    for p in method.parameters:
        marker = "" if p.required else "?"
        params.append(f"{p.name}{marker}:{render_model(p.model, True)}")
    responses = [
        f"{code}:{render_model(rsp.model, True)}".replace(os.linesep, os.linesep + "\t")
        for code, rsp in method.responses.items()
    ]
    rsp_text = "{" + "; ".join(responses) + "}" if responses else "void"
    return f"{method.operation_id}({', '.join(params)}) -> {rsp_text}"


def render_api(api: Api) -> str:
    lines = [f"api {api.name} {{"]
    lines.extend(f"\t{render_method(m)}" for m in api.methods)
    lines.append("}")
    return os.linesep.join(lines) + os.linesep


# --- Serialization ---


def _model_ref(model: Optional[Model], active: set[int]) -> Any:
    if model is None:
        return None
    if model.name:
        return {"$model": model.name}
    if id(model) in active:
        return {"$key": model.key}
    return model_to_dict(model, active)


def model_to_dict(model: Model, _active: Optional[set[int]] = None) -> dict[str, Any]:
    """JSON-serializable form of *model*.

    Named models referenced from inside are emitted as ``{"$model": name}``;
    an anonymous model met again inside itself is emitted as
    ``{"$key": key}``.
    """
    active = _active if _active is not None else set()
    active.add(id(model))
    try:
        data: dict[str, Any] = {"kind": model.kind.value, "key": model.key}
        if model.name:
            data["name"] = model.name
        if model.location:
            data["location"] = model.location
        if model.nullable:
            data["nullable"] = True

        match model:
            case PrimitiveModel():
                data["type"] = model.jsd_type
                if model.type_key != model.jsd_type:
                    data["typeKey"] = model.type_key
                if model.enum is not None:
                    data["enum"] = model.enum
                if model.constraints:
                    data["constraints"] = model.constraints
            case ArrayModel():
                data["items"] = _model_ref(model.items, active)
            case RecordModel():
                data["properties"] = {
                    name: {"model": _model_ref(prop.model, active), "required": prop.required}
                    for name, prop in model.properties.items()
                }
                if isinstance(model.additional_properties, Model):
                    data["additionalProperties"] = _model_ref(model.additional_properties, active)
                if model.extends_from:
                    data["extendsFrom"] = [_model_ref(m, active) for m in model.extends_from]
                if model.union_of:
                    data["unionOf"] = [_model_ref(m, active) for m in model.union_of]
            case UnionModel():
                data["unionOf"] = [_model_ref(m, active) for m in model.union_of]
            case TypedModel():
                data["typedName"] = model.typed_name
                if model.literal:
                    data["literal"] = True
        return data
    finally:
        active.discard(id(model))


def _parameter_to_dict(param: Parameter) -> dict[str, Any]:
    data: dict[str, Any] = {
        "kind": param.kind,
        "name": param.name,
        "required": param.required,
        "model": _model_ref(param.model, set()),
    }
    if isinstance(param, NamedParameter):
        data["in"] = param.location_in
        data["style"] = param.style
        data["explode"] = param.explode
        data["serializerKey"] = param.require_serializer_key()
    elif param.media_types is not None:
        data["mediaTypes"] = param.media_types
    return data


def method_to_dict(method: Method) -> dict[str, Any]:
    return {
        "operationId": method.operation_id,
        "httpMethod": method.http_method,
        "pathPattern": method.path_pattern,
        "location": method.location,
        "parameters": [_parameter_to_dict(p) for p in method.parameters],
        "responses": {
            code: {"model": _model_ref(rsp.model, set()), "mediaTypes": rsp.media_types}
            for code, rsp in method.responses.items()
        },
    }


def graph_to_dict(graph: LangNeutralGraph) -> dict[str, Any]:
    """Snapshot *graph* as plain JSON data."""
    return {
        "models": [model_to_dict(m) for m in graph.models],
        "apis": [
            {
                "name": api.name,
                "description": api.description,
                "methods": [method_to_dict(m) for m in api.methods],
            }
            for api in graph.apis
        ],
    }


def graph_to_json(graph: LangNeutralGraph, indent: int = 2) -> str:
    return json.dumps(graph_to_dict(graph), indent=indent, default=str)


def find_duplicate_model_names(models: list[Model]) -> dict[str, list[Model]]:
    """Group named models whose derived names collide."""
    by_name: dict[str, list[Model]] = {}
    for model in models:
        if model.name:
            by_name.setdefault(model.name, []).append(model)
    return {name: group for name, group in by_name.items() if len(group) > 1}
