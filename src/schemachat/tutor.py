"""Math tutor: step-by-step reasoning as a structured payload."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field

from schemachat.codec import SchemaCodec
from schemachat.config import DEFAULT_MODEL
from schemachat.models import ChatRequest, Message, ResponseFormatSpec
from schemachat.runner import run
from schemachat.schema import Record

if TYPE_CHECKING:
    from schemachat.config import Config
    from schemachat.runner import RunResult
    from schemachat.transport import Transport

SCHEMA_NAME = "math_reasoning"

SYSTEM_PROMPT = (
    "You are a helpful math tutor. You will be provided with a math problem, and "
    "your goal will be to output a step by step solution, along with a final "
    "answer. For each step, just provide the output as an equation and use the "
    "explanation field to detail the reasoning."
)


class ReasoningStep(Record):
    explanation: str
    output: float


class MathReasoning(Record):
    steps: list[ReasoningStep]
    final_answer: float = Field(description="The final numeric answer.")


codec: SchemaCodec[MathReasoning] = SchemaCodec(MathReasoning)


def math_tutor_request(prompt: str, *, model: str = DEFAULT_MODEL) -> ChatRequest:
    """Build the tutor request for *prompt* with the ``math_reasoning`` schema."""
    return ChatRequest(
        model=model,
        messages=(
            Message(role="system", content=SYSTEM_PROMPT),
            Message(role="user", content=prompt),
        ),
        response_format=ResponseFormatSpec.for_model(MathReasoning, SCHEMA_NAME),
    )


async def solve(
    prompt: str, *, config: Config, transport: Transport | None = None
) -> RunResult:
    """Ask the model to solve *prompt* and decode its reasoning."""
    request = math_tutor_request(prompt, model=config.model)
    return await run(request, codec=codec, config=config, transport=transport)


def mock_reply(payload: dict[str, Any]) -> dict[str, Any]:
    """Canned envelope for offline runs; echoes the user prompt as one step."""
    prompt = next(
        (m["content"] for m in reversed(payload.get("messages", [])) if m.get("role") == "user"),
        "",
    )
    answer = MathReasoning(
        steps=[ReasoningStep(explanation=f"echo: {prompt[:100]}", output=0.0)],
        final_answer=0.0,
    )
    return {
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": answer.model_dump_json()},
                "finish_reason": "stop",
            }
        ]
    }
