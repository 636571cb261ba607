"""Test helpers (small, reusable payload builders).

Keep this file tiny and purpose-built: wire fixtures shared by several
suites live here instead of being re-typed per test.
"""

from __future__ import annotations

import json
from typing import Any


def envelope_with(*contents: str | None) -> dict[str, Any]:
    """Build a response envelope with one choice per content (None = no body).

    Carries the extra fields a real chat-completions response has so every
    test also exercises unknown-field tolerance.
    """
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [
            {
                "index": i,
                "message": {"role": "assistant", "content": content, "refusal": None},
                "finish_reason": "stop",
            }
            for i, content in enumerate(contents)
        ],
        "usage": {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2},
    }


#: The payload from the documented end-to-end example.
ADD_PAYLOAD = json.dumps(
    {"steps": [{"explanation": "add", "output": 4}], "final_answer": 4}
)
