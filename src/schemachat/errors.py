"""Exception hierarchy for schemachat."""

from __future__ import annotations

from typing import Any


class SchemachatError(Exception):
    """Base exception for all schemachat errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(SchemachatError):
    """Configuration validation or credential resolution failed."""


class SchemaDerivationError(SchemachatError):
    """A data model cannot be represented as a strict JSON Schema.

    Raised while the model class is being defined, never at request time.
    """

    def __init__(self, message: str, *, path: str, hint: str | None = None) -> None:
        super().__init__(message, hint=hint)
        self.path = path


class DecodeError(SchemachatError):
    """A JSON payload does not match the expected data model.

    ``path`` locates the offending value (``$`` is the payload root),
    ``expected`` is the schema kind at that location and ``actual`` describes
    what was found instead.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str,
        expected: str,
        actual: Any,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.path = path
        self.expected = expected
        self.actual = actual


class ChatError(SchemachatError):
    """A chat-completion call did not produce a usable response envelope."""


class TransportError(ChatError):
    """The HTTP exchange failed (connection, timeout or non-2xx status)."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code


class EnvelopeParseError(ChatError):
    """The response body is not a well-formed chat-completion envelope.

    Distinct from ``TransportError``: the exchange itself succeeded.
    """

    def __init__(
        self, message: str, *, raw_body: str, hint: str | None = None
    ) -> None:
        super().__init__(message, hint=hint)
        self.raw_body = raw_body
