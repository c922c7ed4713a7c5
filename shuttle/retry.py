"""Delay policy between completion attempts."""

from __future__ import annotations

import asyncio
import random
from typing import Literal

from pydantic import BaseModel, Field


class RetryPolicy(BaseModel):
    """How long to wait before re-attempting a failed completion.

    The number of attempts comes from the retry budget passed to
    ``CompletionClient.complete``; this only shapes the pause between them.
    With the default ``initial_delay`` of 0 attempts follow each other
    immediately.
    """

    initial_delay: float = Field(default=0.0, ge=0.0)  # seconds
    max_delay: float = Field(default=30.0, ge=0.0)  # seconds
    backoff: Literal["exponential", "linear", "fixed"] = "fixed"
    jitter: bool = False

    def delay_for(self, attempt: int) -> float:
        """Delay before the retry following ``attempt`` (0-based)."""
        if self.initial_delay <= 0:
            return 0.0

        if self.backoff == "exponential":
            delay = self.initial_delay * (2**attempt)
        elif self.backoff == "linear":
            delay = self.initial_delay * (attempt + 1)
        else:
            delay = self.initial_delay

        delay = min(delay, self.max_delay)
        if self.jitter:
            delay = delay * (0.5 + random.random())
        return delay

    async def wait(self, attempt: int) -> None:
        delay = self.delay_for(attempt)
        if delay > 0:
            await asyncio.sleep(delay)
