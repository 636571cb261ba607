"""Chat-completions client: serialize, send once, decode the envelope."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from schemachat.errors import EnvelopeParseError
from schemachat.models import ChatResponseEnvelope
from schemachat.transport import HttpxTransport, MockTransport, Transport

if TYPE_CHECKING:
    from types import TracebackType

    from schemachat.config import Config
    from schemachat.models import ChatRequest

log = logging.getLogger(__name__)


class ChatClient:
    """Send ``ChatRequest`` values to the configured chat-completions endpoint.

    One POST per ``send``; no retries. Use as an async context manager to
    close a transport the client created itself.
    """

    def __init__(self, config: Config, transport: Transport | None = None) -> None:
        self.config = config
        self._transport = transport
        self._owns_transport = transport is None

    def _get_transport(self) -> Transport:
        if self._transport is None:
            if self.config.use_mock:
                self._transport = MockTransport()
            else:
                self._transport = HttpxTransport(timeout_s=self.config.timeout_s)
        return self._transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key or ''}",
            "Content-Type": "application/json",
        }

    async def send(self, request: ChatRequest) -> ChatResponseEnvelope:
        """Send *request* and return the decoded response envelope.

        Raises:
            TransportError: The exchange failed; carries the transport message.
            EnvelopeParseError: The body is not a chat-completion envelope;
                carries the parse error text and the raw body.
        """
        body = json.dumps(request.to_wire())
        encoded = body.encode("utf-8")
        if self.config.debug:
            # Body only: headers carry the credential.
            log.debug("Body: %s", body)

        raw = await self._get_transport().post(
            self.config.endpoint, self._headers(), encoded
        )
        envelope = parse_envelope(raw)
        log.info(
            "[LLM] model=%s bytes_out=%d bytes_in=%d choices=%d",
            request.model,
            len(encoded),
            len(raw),
            len(envelope.choices),
        )
        return envelope

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        transport = self._transport
        if transport is None or not self._owns_transport:
            return
        self._transport = None
        aclose = getattr(transport, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> ChatClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def parse_envelope(raw: bytes | str) -> ChatResponseEnvelope:
    """Decode a response body into ``ChatResponseEnvelope``.

    Unknown fields at any depth are ignored. The error message names only the
    first validation failure and fits on one line.

    Raises:
        EnvelopeParseError: On invalid JSON or a structural mismatch.
    """
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    try:
        return ChatResponseEnvelope.model_validate_json(text)
    except ValidationError as e:
        first = e.errors(include_url=False)[0]
        where = ".".join(str(part) for part in first["loc"]) or "$"
        raise EnvelopeParseError(
            f"error while parsing the response: {where}: {first['msg']}",
            raw_body=text,
        ) from e
