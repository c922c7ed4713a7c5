"""Process-local response cache."""

from __future__ import annotations

import logging
import time
from typing import Any

logger = logging.getLogger(__name__)


class InMemoryCache:
    """Dict-backed cache with an optional per-entry TTL.

    Values are stored as-is, so a hit returns the very object that was set.
    """

    def __init__(self, ttl_s: float | None = None, max_entries: int | None = None):
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.ttl_s = ttl_s
        self.max_entries = max_entries
        self._entries: dict[str, tuple[Any, float | None]] = {}
        self.stats = {"hits": 0, "misses": 0, "sets": 0}

    async def get(self, key: str, request_id: str | None = None) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            self.stats["misses"] += 1
            return None

        value, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self._entries[key]
            self.stats["misses"] += 1
            logger.debug(f"Cache entry expired: {key[:12]}... (request {request_id})")
            return None

        self.stats["hits"] += 1
        return value

    async def set(self, key: str, value: Any, request_id: str | None = None) -> None:
        if self.max_entries is not None and key not in self._entries:
            while len(self._entries) >= self.max_entries:
                # dicts keep insertion order, so this drops the oldest entry
                oldest = next(iter(self._entries))
                del self._entries[oldest]

        expires_at = time.monotonic() + self.ttl_s if self.ttl_s else None
        self._entries[key] = (value, expires_at)
        self.stats["sets"] += 1
        logger.debug(f"Cached response for key: {key[:12]}... (request {request_id})")

    async def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> dict[str, Any]:
        total = self.stats["hits"] + self.stats["misses"]
        hit_rate = (self.stats["hits"] / total * 100) if total > 0 else 0
        return {
            **self.stats,
            "entries": len(self._entries),
            "total_requests": total,
            "hit_rate": f"{hit_rate:.2f}%",
        }
