"""HTTP transport: a single POST, bytes in and bytes out.

TLS, connection pooling, redirects and timeouts belong to httpx. This layer
only maps the ways an exchange can fail into ``TransportError``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
import json
import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from schemachat.errors import TransportError

log = logging.getLogger(__name__)

_DETAIL_CHARS = 300


@runtime_checkable
class Transport(Protocol):
    """Minimal transport protocol: POST and return the response body."""

    async def post(self, url: str, headers: dict[str, str], body: bytes) -> bytes:
        """Send *body* and return the raw 2xx response body.

        Raises:
            TransportError: On connection failure, timeout or non-2xx status.
        """
        ...


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``."""

    def __init__(
        self, *, timeout_s: float = 60.0, client: httpx.AsyncClient | None = None
    ) -> None:
        """Initialize with a timeout; an injected client is never closed here."""
        self.timeout_s = timeout_s
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Lazily initialize and return the httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._client

    async def post(self, url: str, headers: dict[str, str], body: bytes) -> bytes:
        client = self._get_client()
        try:
            response = await client.post(
                url, headers=headers, content=body, timeout=self.timeout_s
            )
        except asyncio.CancelledError:
            raise
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timed out after {self.timeout_s}s: {e}",
                hint="Raise the timeout or retry later.",
            ) from e
        except httpx.InvalidURL as e:
            raise TransportError(
                f"Invalid request URL {url!r}: {e}",
                hint="Check OPENAI_BASE_URL or Config.base_url.",
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Request failed: {e}") from e

        log.debug("POST %s -> %d", url, response.status_code)
        if not response.is_success:
            status = response.status_code
            raise TransportError(
                f"HTTP {status}: {_error_detail(response)}",
                status_code=status,
                hint=_status_hint(status),
            )
        return response.content

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        client = self._client
        if client is None or not self._owns_client:
            return
        self._client = None
        await client.aclose()


@dataclass
class RecordedRequest:
    """One request seen by ``MockTransport``."""

    url: str
    headers: dict[str, str]
    payload: dict[str, Any]


@dataclass
class MockTransport:
    """Transport double that answers without network access.

    ``reply`` receives the decoded request payload and returns the envelope to
    send back; the default is an envelope with no choices.
    """

    reply: Callable[[dict[str, Any]], dict[str, Any]] | None = None
    requests: list[RecordedRequest] = field(default_factory=list)

    async def post(self, url: str, headers: dict[str, str], body: bytes) -> bytes:
        payload = json.loads(body)
        self.requests.append(RecordedRequest(url=url, headers=dict(headers), payload=payload))
        envelope = self.reply(payload) if self.reply is not None else {"choices": []}
        return json.dumps(envelope).encode("utf-8")

    async def aclose(self) -> None:
        return None


def _error_detail(response: httpx.Response) -> str:
    """Prefer the API's ``error.message``; fall back to the body text.

    Whitespace runs collapse to single spaces so the detail stays on one line.
    """
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return " ".join(error["message"].split())
    text = " ".join(response.text.split())
    return text[:_DETAIL_CHARS] if text else response.reason_phrase


def _status_hint(status: int) -> str | None:
    if status in {401, 403}:
        return "Check credentials/permissions (try setting OPENAI_API_KEY or Config.api_key)."
    if status == 429:
        return "Rate limited; this client does not retry."
    return None
