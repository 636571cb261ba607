"""schemachat: Typed structured output from chat-completion APIs.

Public API:
    - Record: Base class for payload models (schema derived at definition)
    - SchemaCodec: Encode/decode a payload model against its schema
    - ChatRequest / Message / ResponseFormatSpec: Wire request values
    - ChatClient: Send one request, decode the response envelope
    - ReasoningExtractor: Per-choice outcomes (NoContent / Decoded / DecodeFailed)
    - run(): Request -> RunResult orchestration
    - Config: Configuration dataclass
"""

from __future__ import annotations

import logging

from schemachat.client import ChatClient, parse_envelope
from schemachat.codec import ExtraPolicy, SchemaCodec
from schemachat.config import Config
from schemachat.errors import (
    ChatError,
    ConfigurationError,
    DecodeError,
    EnvelopeParseError,
    SchemachatError,
    SchemaDerivationError,
    TransportError,
)
from schemachat.extract import (
    Decoded,
    DecodeFailed,
    NoContent,
    Outcome,
    ReasoningExtractor,
)
from schemachat.models import (
    ChatRequest,
    ChatResponseEnvelope,
    Choice,
    Message,
    ResponseFormatSpec,
    ResponseMessage,
)
from schemachat.runner import RunResult, run
from schemachat.schema import Record, derive_schema, to_strict_schema
from schemachat.transport import HttpxTransport, MockTransport, Transport

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("schemachat")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("schemachat").addHandler(logging.NullHandler())

__all__ = [
    "ChatClient",
    "ChatError",
    "ChatRequest",
    "ChatResponseEnvelope",
    "Choice",
    "Config",
    "ConfigurationError",
    "DecodeError",
    "DecodeFailed",
    "Decoded",
    "EnvelopeParseError",
    "ExtraPolicy",
    "HttpxTransport",
    "Message",
    "MockTransport",
    "NoContent",
    "Outcome",
    "ReasoningExtractor",
    "Record",
    "ResponseFormatSpec",
    "ResponseMessage",
    "RunResult",
    "SchemaCodec",
    "SchemaDerivationError",
    "SchemachatError",
    "Transport",
    "derive_schema",
    "parse_envelope",
    "run",
    "to_strict_schema",
]
