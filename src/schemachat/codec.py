"""Bidirectional conversion between payload models and JSON.

Outbound, the schema sent to the remote service is strict: every object sets
``additionalProperties: false``. Inbound, decoding is lenient about extra keys
by default. The producer is an external service whose future versions this
client cannot bind, so a payload that grew a field must still decode.
``ExtraPolicy`` makes that choice explicit instead of leaving it to a library
default.

Everything else is strict: a missing field or a value of the wrong JSON kind
is a ``DecodeError``. Integer fields are advertised as ``number``, so an
integral float such as ``4.0`` decodes into an ``int`` field, while a
fractional value such as ``4.5`` is a ``DecodeError``. Validation stops at the
first failure and never returns a partially decoded value.
"""

from __future__ import annotations

from copy import deepcopy
import json
from typing import Any, Generic, Literal, TypeVar, get_args, get_origin

from pydantic import BaseModel, ValidationError

from schemachat.errors import ConfigurationError, DecodeError
from schemachat.schema import JsonSchema, derive_schema

T = TypeVar("T", bound=BaseModel)

#: ``"ignore"`` drops undeclared keys, ``"forbid"`` rejects them.
ExtraPolicy = Literal["ignore", "forbid"]

_EXCERPT_CHARS = 200


class SchemaCodec(Generic[T]):
    """Encode and decode one payload model against its derived schema."""

    def __init__(self, model: type[T], *, extra: ExtraPolicy = "ignore") -> None:
        if extra not in ("ignore", "forbid"):
            raise ConfigurationError(
                f"Unknown extra-key policy: {extra!r}",
                hint="Use extra='ignore' or extra='forbid'.",
            )
        self.model = model
        self.extra = extra
        self._schema = derive_schema(model)

    @property
    def schema(self) -> JsonSchema:
        """The strict JSON Schema this codec encodes to and decodes from."""
        return deepcopy(self._schema)

    def encode(self, value: T) -> dict[str, Any]:
        """Return the JSON object for *value*, keyed by schema property names."""
        return value.model_dump(mode="json", by_alias=True)

    def decode_json(self, text: str | bytes) -> T:
        """Parse JSON *text* and decode it.

        Raises:
            DecodeError: On malformed JSON or a payload that does not match.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            excerpt = _excerpt(text)
            raise DecodeError(
                f"$: expected json, got malformed text ({e})",
                path="$",
                expected="json",
                actual=excerpt,
            ) from e
        return self.decode(data)

    def decode(self, data: Any) -> T:
        """Decode an already-parsed JSON value.

        Raises:
            DecodeError: On the first missing field, wrong kind, or (under
                ``extra="forbid"``) undeclared key.
        """
        if self.extra == "forbid":
            _reject_undeclared(data, self._schema, "$")
        data = _integral_ints(data, self.model)

        try:
            # JSON-mode validation: the payload is judged as the wire saw it.
            payload = json.dumps(data, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise DecodeError(
                f"$: value is not representable as JSON ({e})",
                path="$",
                expected="json",
                actual=type(data).__name__,
            ) from e

        try:
            return self.model.model_validate_json(payload, strict=True)
        except ValidationError as e:
            raise self._first_error(e) from e

    def _first_error(self, exc: ValidationError) -> DecodeError:
        first = exc.errors(include_url=False)[0]
        loc = tuple(first["loc"])
        path = _format_path(loc)
        expected = _expected_kind(self._schema, loc)

        if first["type"] == "missing":
            return DecodeError(
                f"{path}: missing required field (expected {expected})",
                path=path,
                expected=expected,
                actual="missing",
            )

        value = first.get("input")
        actual = _json_kind(value)
        return DecodeError(
            f"{path}: expected {expected}, got {actual} {_excerpt(value)} ({first['msg']})",
            path=path,
            expected=expected,
            actual=actual,
        )


def _reject_undeclared(data: Any, node: JsonSchema, path: str) -> None:
    """Raise on the first key not declared in *node*; wrong kinds are left to pydantic."""
    kind = node.get("type")
    if kind == "object" and isinstance(data, dict):
        properties = node.get("properties", {})
        for key, value in data.items():
            child_path = f"{path}.{key}"
            if key not in properties:
                raise DecodeError(
                    f"{child_path}: unexpected field",
                    path=child_path,
                    expected="no additional properties",
                    actual=_json_kind(value),
                )
            _reject_undeclared(value, properties[key], child_path)
    elif kind == "array" and isinstance(data, list):
        items = node.get("items", {})
        for i, item in enumerate(data):
            _reject_undeclared(item, items, f"{path}[{i}]")


def _integral_ints(data: Any, tp: Any) -> Any:
    """Return *data* with integral floats under ``int`` annotations made ints."""
    if tp is int:
        if isinstance(data, float) and data.is_integer():
            return int(data)
        return data
    origin = get_origin(tp)
    if origin is list:
        if not isinstance(data, list):
            return data
        (item,) = get_args(tp)
        return [_integral_ints(v, item) for v in data]
    if (
        origin is None
        and isinstance(tp, type)
        and issubclass(tp, BaseModel)
        and isinstance(data, dict)
    ):
        fields = {(f.alias or name): f.annotation for name, f in tp.model_fields.items()}
        return {
            key: _integral_ints(value, fields[key]) if key in fields else value
            for key, value in data.items()
        }
    return data


def _format_path(loc: tuple[Any, ...]) -> str:
    path = "$"
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}"
    return path


def _expected_kind(schema: JsonSchema, loc: tuple[Any, ...]) -> str:
    node: Any = schema
    for part in loc:
        if isinstance(part, int) and node.get("type") == "array":
            node = node.get("items", {})
        elif isinstance(part, str) and part in node.get("properties", {}):
            node = node["properties"][part]
        else:
            return "unknown"
    if "enum" in node:
        return "one of " + ", ".join(repr(v) for v in node["enum"])
    return str(node.get("type", "unknown"))


def _json_kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _excerpt(value: Any) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = value if isinstance(value, str) else json.dumps(value, default=repr)
    if len(text) > _EXCERPT_CHARS:
        return repr(text[:_EXCERPT_CHARS] + "...")
    return repr(text)
