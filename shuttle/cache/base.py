"""Cache contract shared by all response stores."""

from __future__ import annotations

import hashlib
import json
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class LLMCache(Protocol):
    """Keyed store of prior completion results.

    Both methods raise ``CacheUnavailableError`` when the backing store
    fails. Expiry and eviction are up to the implementation.
    """

    async def get(self, key: str, request_id: str | None = None) -> Any | None:
        """Return the cached value for ``key`` or None."""
        ...

    async def set(self, key: str, value: Any, request_id: str | None = None) -> None:
        """Store ``value`` under ``key``."""
        ...


def build_cache_key(options: dict[str, Any]) -> str:
    """Deterministic fingerprint of the response-relevant request fields."""
    canonical = json.dumps(options, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
