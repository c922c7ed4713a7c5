"""Mock transport for testing and offline demos."""

from __future__ import annotations

import copy
import json
import re
from collections.abc import Callable, Iterable
from typing import Any

Reply = dict[str, Any] | Exception
Handler = Callable[[dict[str, Any]], Reply]


def chat_completion(content: str | None, model: str = "mock") -> dict[str, Any]:
    """An OpenAI-shaped completion response carrying ``content``."""
    return {
        "id": "mock",
        "object": "chat.completion",
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0},
    }


class MockTransport:
    """Answers completion calls from a script instead of the network.

    ``replies`` are consumed in order; an Exception is raised instead of
    returned. The last reply repeats once the script runs out. Without a
    script, ``handler`` (or the built-in pattern responder) builds replies.
    Every payload is recorded in ``calls``.
    """

    def __init__(
        self,
        replies: Iterable[Reply] | None = None,
        handler: Handler | None = None,
    ):
        self.replies = list(replies or [])
        self.handler = handler or _pattern_reply
        self.calls: list[dict[str, Any]] = []
        self.headers: list[dict[str, str]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def post(
        self,
        path: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        self.calls.append(copy.deepcopy(payload))
        self.headers.append(dict(headers or {}))

        if self.replies:
            index = min(len(self.calls), len(self.replies)) - 1
            reply = self.replies[index]
        else:
            reply = self.handler(payload)

        if isinstance(reply, Exception):
            raise reply
        return copy.deepcopy(reply)


def _pattern_reply(payload: dict[str, Any]) -> dict[str, Any]:
    """Simple pattern matching for common prompts."""
    messages = payload.get("messages") or []
    prompt = messages[-1]["content"] if messages else ""
    prompt_lower = prompt.lower()
    wants_json = any(
        m["role"] == "system" and "JSON format" in m["content"] for m in messages
    )

    match = re.search(r"(\d+)\s*([\+\-\*/])\s*(\d+)", prompt)
    if match:
        a, op, b = match.groups()
        result = _evaluate(int(a), op, int(b))
        text = json.dumps({"answer": result}) if wants_json else str(result)
    elif "hello" in prompt_lower:
        text = "Hello! I'm a mock model for testing."
    else:
        text = f"Mock response for: {prompt[:50]}..."

    return chat_completion(text, model=payload.get("model", "mock"))


def _evaluate(a: int, op: str, b: int) -> float | None:
    if op == "+":
        return a + b
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    if op == "/" and b != 0:
        return a / b
    return None
