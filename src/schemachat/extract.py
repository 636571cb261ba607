"""Payload extraction: turn each choice into a typed outcome.

Outcomes are values, not exceptions. A choice that fails to decode is reported
next to the choices that succeeded and never stops them from being processed.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union

from schemachat.errors import DecodeError

if TYPE_CHECKING:
    from schemachat.codec import SchemaCodec
    from schemachat.models import ChatResponseEnvelope, Choice

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class NoContent:
    """The choice carried no message body (e.g. a refusal). Not an error."""

    index: int


@dataclass(frozen=True)
class Decoded(Generic[T]):
    """The choice's payload decoded into the expected model."""

    index: int
    value: T


@dataclass(frozen=True)
class DecodeFailed:
    """The choice's payload was malformed or violated the schema."""

    index: int
    error: DecodeError
    #: The offending content, verbatim; ``describe`` escapes it onto one line.
    raw: str

    def describe(self) -> str:
        return f"unable to parse response, error {self.error}: {self.raw!r}"


Outcome = Union[NoContent, Decoded[Any], DecodeFailed]


class ReasoningExtractor:
    """Decode choice contents through a ``SchemaCodec``."""

    def __init__(self, codec: SchemaCodec[Any]) -> None:
        self.codec = codec

    def extract(self, choice: Choice, index: int = 0) -> Outcome:
        content = choice.message.content
        if content is None:
            log.debug("choice %d has no content", index)
            return NoContent(index=index)
        try:
            value = self.codec.decode_json(content)
        except DecodeError as e:
            log.warning("choice %d failed to decode: %s", index, e)
            return DecodeFailed(index=index, error=e, raw=content)
        return Decoded(index=index, value=value)

    def extract_all(self, envelope: ChatResponseEnvelope) -> list[Outcome]:
        """Extract every choice, in order, independently of the others."""
        return [self.extract(choice, i) for i, choice in enumerate(envelope.choices)]
