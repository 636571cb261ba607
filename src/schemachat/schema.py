"""Strict JSON Schema derivation from pydantic models.

A payload type is declared once, as a pydantic model. Two things are derived
from that single declaration: the JSON Schema sent to the remote service (here)
and the decoder applied to its reply (``schemachat.codec``).

The derived schema targets strict structured-output mode, which only accepts a
small subset of JSON Schema:

- every object lists *all* of its properties in ``required``
- every object sets ``additionalProperties: false``
- no unions, no optional fields, no free-form maps, no recursion

Anything outside that subset raises ``SchemaDerivationError`` while the model
class is being defined, so a bad payload type never reaches the network.
"""

from __future__ import annotations

from copy import deepcopy
import types
import typing
from typing import Any, ForwardRef, Literal, get_args, get_origin

from pydantic import BaseModel, ConfigDict

from schemachat.errors import SchemaDerivationError

JsonSchema = dict[str, Any]

# bool is checked by identity before the numeric types (bool subclasses int).
_PRIMITIVE_TYPES: dict[type, str] = {
    bool: "boolean",
    str: "string",
    int: "number",
    float: "number",
}

_UNION_ORIGINS = (typing.Union, types.UnionType)

# Keywords whose values are sub-schemas, for normalizing hand-written schemas.
_SCHEMA_MAPS = ("properties", "$defs", "definitions")
_SCHEMA_SEQUENCES = ("items", "prefixItems", "anyOf", "allOf", "oneOf")

_derived: dict[type[BaseModel], JsonSchema] = {}


class Record(BaseModel):
    """Base class for structured-output payload types.

    Subclasses are immutable and their strict schema is derived as soon as the
    class statement runs. Undeclared keys in incoming payloads are dropped
    (``extra="ignore"``); see ``SchemaCodec`` for the explicit policy flag.

    Example:
        class Step(Record):
            explanation: str
            output: float
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        derive_schema(cls)


def derive_schema(model: type[BaseModel]) -> JsonSchema:
    """Return the strict JSON Schema for *model*.

    Derivation is cached per class; callers receive a private copy.

    Raises:
        SchemaDerivationError: If any field type is not representable.
    """
    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        raise SchemaDerivationError(
            f"Expected a pydantic model class, got {model!r}", path="$"
        )
    cached = _derived.get(model)
    if cached is None:
        cached = _object_schema(model, path=model.__name__, stack=())
        _derived[model] = cached
    return deepcopy(cached)


def _object_schema(
    model: type[BaseModel], *, path: str, stack: tuple[type[BaseModel], ...]
) -> JsonSchema:
    if model in stack:
        cycle = " -> ".join(m.__name__ for m in (*stack, model))
        raise SchemaDerivationError(
            f"Recursive model cannot be represented: {cycle}",
            path=path,
            hint="Strict structured output has no base case for recursive types.",
        )
    if not model.__pydantic_complete__:
        raise SchemaDerivationError(
            f"{model.__name__} has unresolved forward references",
            path=path,
            hint="Define nested models before the models that use them.",
        )

    properties: JsonSchema = {}
    for name, field in model.model_fields.items():
        key = field.alias or name
        node = _type_schema(
            field.annotation, path=f"{path}.{key}", stack=(*stack, model)
        )
        if field.description:
            node["description"] = field.description
        properties[key] = node

    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


def _type_schema(
    tp: Any, *, path: str, stack: tuple[type[BaseModel], ...]
) -> JsonSchema:
    if isinstance(tp, (str, ForwardRef)):
        raise SchemaDerivationError(
            f"Unresolved forward reference {tp!r} at {path}", path=path
        )

    origin = get_origin(tp)
    if origin is None and isinstance(tp, type):
        primitive = _PRIMITIVE_TYPES.get(tp)
        if primitive is not None:
            return {"type": primitive}
        if issubclass(tp, BaseModel):
            return _object_schema(tp, path=path, stack=stack)

    if origin is list:
        args = get_args(tp)
        if len(args) != 1:
            raise SchemaDerivationError(
                f"List at {path} needs an item type", path=path
            )
        return {
            "type": "array",
            "items": _type_schema(args[0], path=f"{path}[]", stack=stack),
        }

    if origin is Literal:
        values = get_args(tp)
        if values and all(isinstance(v, str) for v in values):
            return {"type": "string", "enum": list(values)}
        raise SchemaDerivationError(
            f"Only string literals are representable, got {tp!r} at {path}",
            path=path,
        )

    if origin in _UNION_ORIGINS:
        raise SchemaDerivationError(
            f"Union type {tp!r} at {path} is not representable",
            path=path,
            hint="Strict mode requires every field; use a concrete type.",
        )

    raise SchemaDerivationError(f"Type {tp!r} at {path} is not representable", path=path)


def to_strict_schema(schema: JsonSchema) -> JsonSchema:
    """Return a closed copy of a hand-written schema.

    Every object gains ``additionalProperties: false`` and, unless it already
    lists them, requires all of its properties. Only schema positions are
    visited, so a property named ``type`` or ``properties`` is left alone.

    Raises:
        SchemaDerivationError: If the root is not an object schema.
    """
    if not isinstance(schema, dict) or schema.get("type", "object") != "object":
        raise SchemaDerivationError(
            "Invalid response schema: expected object schema", path="$"
        )
    closed = deepcopy(schema)
    _close(closed)
    return closed


def _close(node: Any) -> None:
    if not isinstance(node, dict):
        return
    for key in _SCHEMA_MAPS:
        children = node.get(key)
        if isinstance(children, dict):
            for child in children.values():
                _close(child)
    for key in _SCHEMA_SEQUENCES:
        children = node.get(key)
        for child in children if isinstance(children, list) else [children]:
            _close(child)

    properties = node.get("properties")
    if node.get("type") == "object" or isinstance(properties, dict):
        node["additionalProperties"] = False
        node.setdefault("required", list(properties or {}))
