"""Wire-level models for the chat-completions exchange.

Requests are frozen dataclasses serialized by hand so the body is exactly the
documented shape. Responses are pydantic models that ignore unknown fields:
the remote API evolves independently of this client.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from schemachat.errors import ConfigurationError
from schemachat.schema import JsonSchema, derive_schema, to_strict_schema

Role = Literal["system", "user", "assistant"]

_ROLES: frozenset[str] = frozenset({"system", "user", "assistant"})


@dataclass(frozen=True)
class Message:
    """A single chat message."""

    role: Role
    content: str

    def __post_init__(self) -> None:
        if self.role not in _ROLES:
            raise ConfigurationError(
                f"Unknown message role: {self.role!r}",
                hint="Use 'system', 'user' or 'assistant'.",
            )
        if not isinstance(self.content, str):
            raise ConfigurationError("Message content must be a string")

    def to_wire(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ResponseFormatSpec:
    """Names and embeds the JSON Schema the remote service must enforce.

    The name travels beside the schema, not inside it.
    """

    name: str
    schema: JsonSchema = field(repr=False)
    #: Sent as ``json_schema.strict`` only when set.
    strict: bool | None = None

    kind: Literal["json_schema"] = field(default="json_schema", init=False)

    @classmethod
    def for_model(
        cls, model: type[BaseModel], name: str, *, strict: bool | None = None
    ) -> ResponseFormatSpec:
        """Build the response format from a payload model's derived schema."""
        return cls(name=name, schema=derive_schema(model), strict=strict)

    @classmethod
    def from_json_schema(
        cls, name: str, schema: JsonSchema, *, strict: bool | None = None
    ) -> ResponseFormatSpec:
        """Build the response format from a hand-written schema, normalized for strict mode."""
        return cls(name=name, schema=to_strict_schema(schema), strict=strict)

    def to_wire(self) -> dict[str, Any]:
        json_schema: dict[str, Any] = {"name": self.name, "schema": self.schema}
        if self.strict is not None:
            json_schema["strict"] = self.strict
        return {"type": self.kind, "json_schema": json_schema}


@dataclass(frozen=True)
class ChatRequest:
    """A complete chat-completions request; built fresh per call."""

    model: str
    messages: tuple[Message, ...]
    response_format: ResponseFormatSpec

    def __post_init__(self) -> None:
        # Accept any sequence but hold an immutable one.
        object.__setattr__(self, "messages", tuple(self.messages))
        if not self.messages:
            raise ConfigurationError(
                "ChatRequest needs at least one message",
                hint="Pass messages=[Message(role='user', content='...')].",
            )

    def to_wire(self) -> dict[str, Any]:
        """Return the request body as a JSON-ready dict."""
        return {
            "model": self.model,
            "messages": [m.to_wire() for m in self.messages],
            "response_format": self.response_format.to_wire(),
        }


class ResponseMessage(BaseModel):
    """The assistant message inside a choice; ``content`` is absent on refusal."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    content: str | None = None


class Choice(BaseModel):
    """One candidate answer."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    message: ResponseMessage


class ChatResponseEnvelope(BaseModel):
    """Outer response object; only ``choices`` is interpreted."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    choices: list[Choice]
