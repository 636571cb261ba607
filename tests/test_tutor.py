"""End-to-end: math tutor request through a fake transport to typed steps."""

from __future__ import annotations

import json

import pytest

from schemachat.config import Config
from schemachat.extract import Decoded
from schemachat.tutor import (
    SCHEMA_NAME,
    SYSTEM_PROMPT,
    MathReasoning,
    math_tutor_request,
    mock_reply,
    solve,
)
from tests.helpers import envelope_with

pytestmark = pytest.mark.integration

_WIRE_REPLY = (
    '{"choices":[{"message":{"content":'
    '"{\\"steps\\":[{\\"explanation\\":\\"add\\",\\"output\\":4}],\\"final_answer\\":4}"'
    "}}]}"
)


def test_request_embeds_named_schema() -> None:
    wire = math_tutor_request("compute 2+2").to_wire()

    json_schema = wire["response_format"]["json_schema"]
    assert wire["response_format"]["type"] == "json_schema"
    assert json_schema["name"] == SCHEMA_NAME == "math_reasoning"
    assert {"steps", "final_answer"} <= set(json_schema["schema"]["required"])
    assert "name" not in json_schema["schema"]
    assert wire["messages"] == [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "compute 2+2"},
    ]


def test_request_uses_requested_model() -> None:
    assert math_tutor_request("x", model="gpt-4o-mini").model == "gpt-4o-mini"


@pytest.mark.asyncio
async def test_compute_two_plus_two_end_to_end(config: Config) -> None:
    class WireReply:
        def __init__(self) -> None:
            self.payloads: list[dict] = []

        async def post(self, url: str, headers: dict[str, str], body: bytes) -> bytes:
            self.payloads.append(json.loads(body))
            return _WIRE_REPLY.encode("utf-8")

    transport = WireReply()

    result = await solve("compute 2+2", config=config, transport=transport)

    sent = transport.payloads[0]["response_format"]["json_schema"]
    assert sent["name"] == "math_reasoning"
    assert result.status == "ok"
    (outcome,) = result.outcomes
    assert isinstance(outcome, Decoded)
    reasoning = outcome.value
    assert isinstance(reasoning, MathReasoning)
    assert len(reasoning.steps) == 1
    assert reasoning.steps[0].explanation == "add"
    assert reasoning.steps[0].output == 4
    assert reasoning.final_answer == 4


@pytest.mark.asyncio
async def test_solve_with_two_candidates(config: Config, reply_with) -> None:
    good = json.dumps(
        {"steps": [{"explanation": "3*3", "output": 9}], "final_answer": 9, "unit": "n"}
    )

    result = await solve(
        "3 squared", config=config, transport=reply_with(envelope_with("oops", good))
    )

    assert result.status == "partial"
    assert [r.final_answer for r in result.decoded] == [9.0]


def test_mock_reply_echoes_prompt_as_valid_payload() -> None:
    payload = math_tutor_request("compute 2+2").to_wire()

    envelope = mock_reply(payload)

    content = envelope["choices"][0]["message"]["content"]
    decoded = MathReasoning.model_validate_json(content)
    assert decoded.steps[0].explanation == "echo: compute 2+2"
