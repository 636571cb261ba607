"""Top-level orchestration: one request, one envelope, one outcome per choice.

Nothing raised below this layer escapes it. Transport and envelope failures
become ``RunResult(status="error")``; an empty ``choices`` list is the benign
``"no_choices"`` status and triggers no decode attempt.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any, Literal

from schemachat.client import ChatClient
from schemachat.errors import ChatError
from schemachat.extract import Decoded, DecodeFailed, ReasoningExtractor

if TYPE_CHECKING:
    from schemachat.codec import SchemaCodec
    from schemachat.config import Config
    from schemachat.extract import Outcome
    from schemachat.models import ChatRequest
    from schemachat.transport import Transport

log = logging.getLogger(__name__)

RunStatus = Literal["ok", "partial", "failed", "no_choices", "error"]


@dataclass(frozen=True)
class RunResult:
    """Outcome of one structured chat call.

    ``status`` is ``"ok"`` when no choice failed to decode, ``"partial"`` when
    some failed and some decoded, ``"failed"`` when failures and no decodes,
    ``"no_choices"`` for an empty envelope, and ``"error"`` when the call
    itself failed (see ``error``).
    """

    status: RunStatus
    outcomes: tuple[Outcome, ...] = ()
    error: ChatError | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def decoded(self) -> list[Any]:
        """Decoded payload values, in choice order."""
        return [o.value for o in self.outcomes if isinstance(o, Decoded)]

    @property
    def failures(self) -> list[DecodeFailed]:
        return [o for o in self.outcomes if isinstance(o, DecodeFailed)]


async def run(
    request: ChatRequest,
    *,
    codec: SchemaCodec[Any],
    config: Config,
    transport: Transport | None = None,
) -> RunResult:
    """Send *request* and decode every choice through *codec*.

    Args:
        request: The fully built chat request.
        codec: Codec for the payload model the request's schema was derived from.
        config: Endpoint, credential and debug settings.
        transport: Optional transport override (defaults to httpx).

    Returns:
        RunResult with one outcome per choice, or the call's error.
    """
    async with ChatClient(config, transport) as client:
        try:
            envelope = await client.send(request)
        except ChatError as e:
            log.warning("chat call failed: %s", e)
            return RunResult(status="error", error=e)

    if not envelope.choices:
        log.info("no choices returned")
        return RunResult(status="no_choices")

    outcomes = tuple(ReasoningExtractor(codec).extract_all(envelope))
    return RunResult(status=_status(outcomes), outcomes=outcomes)


def _status(outcomes: tuple[Outcome, ...]) -> RunStatus:
    n_failed = sum(1 for o in outcomes if isinstance(o, DecodeFailed))
    n_decoded = sum(1 for o in outcomes if isinstance(o, Decoded))
    if n_failed == 0:
        return "ok"
    if n_decoded > 0:
        return "partial"
    return "failed"
