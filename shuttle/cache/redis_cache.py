"""Redis-backed response cache."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

import redis.asyncio as redis  # type: ignore[import-untyped]
from pydantic import BaseModel
from pydantic_core import to_json
from redis.exceptions import RedisError  # type: ignore[import-untyped]

from ..errors import CacheUnavailableError

logger = logging.getLogger(__name__)


class CacheConfig(BaseModel):
    """Configuration for Redis cache."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str | None = None
    max_connections: int = 50
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0

    ttl_s: int = 600  # 10 minutes
    prefix: str = "shuttle:"
    track_stats: bool = True


class RedisCache:
    """Stores completion results in Redis as JSON with a TTL.

    Redis errors surface as ``CacheUnavailableError``; whether that is fatal
    is the caller's decision.
    """

    def __init__(self, config: CacheConfig | None = None, client: redis.Redis | None = None):
        self.config = config or CacheConfig()
        self.client: redis.Redis | None = client

        self.stats = {
            "hits": 0,
            "misses": 0,
            "errors": 0,
        }

    def _ensure_client(self) -> redis.Redis:
        if self.client is None:
            pool = redis.ConnectionPool(
                host=self.config.host,
                port=self.config.port,
                db=self.config.db,
                password=self.config.password,
                max_connections=self.config.max_connections,
                socket_timeout=self.config.socket_timeout,
                socket_connect_timeout=self.config.socket_connect_timeout,
            )
            self.client = redis.Redis(connection_pool=pool)
            logger.info(
                f"Created Redis cache client for {self.config.host}:{self.config.port}"
            )
        return self.client

    def _full_key(self, key: str) -> str:
        return f"{self.config.prefix}{key}"

    def _record(self, stat: str) -> None:
        if self.config.track_stats:
            self.stats[stat] += 1

    async def get(self, key: str, request_id: str | None = None) -> Any | None:
        """Get a cached value if available."""
        full_key = self._full_key(key)
        client = self._ensure_client()

        try:
            start_time = time.time()
            data = await client.get(full_key)
        except RedisError as e:
            self._record("errors")
            logger.error(f"Cache get error: {e}")
            raise CacheUnavailableError(f"Redis cache get failed: {e}") from e

        elapsed_ms = (time.time() - start_time) * 1000
        if data is None:
            self._record("misses")
            logger.debug(f"Cache miss for key: {full_key[:20]}... (request {request_id})")
            return None

        self._record("hits")
        logger.debug(
            f"Cache hit for key: {full_key[:20]}... (latency: {elapsed_ms:.2f}ms)"
        )
        return json.loads(data)

    async def set(self, key: str, value: Any, request_id: str | None = None) -> None:
        """Cache a value under ``key`` for ``ttl_s`` seconds."""
        full_key = self._full_key(key)
        client = self._ensure_client()

        try:
            await client.setex(full_key, self.config.ttl_s, to_json(value))
        except RedisError as e:
            self._record("errors")
            logger.error(f"Cache set error: {e}")
            raise CacheUnavailableError(f"Redis cache set failed: {e}") from e

        logger.debug(
            f"Cached response for key: {full_key[:20]}... (TTL: {self.config.ttl_s}s)"
        )

    async def invalidate(self, pattern: str | None = None) -> int:
        """Delete cache entries matching ``pattern`` (all entries by default)."""
        client = self._ensure_client()
        search_pattern = f"{self.config.prefix}{pattern or '*'}"

        try:
            keys = [key async for key in client.scan_iter(match=search_pattern)]
            if keys:
                await client.delete(*keys)
                logger.info(f"Invalidated {len(keys)} cache entries")
        except RedisError as e:
            raise CacheUnavailableError(f"Redis cache invalidation failed: {e}") from e

        return len(keys)

    def get_stats(self) -> dict:
        """Get cache statistics."""
        if not self.config.track_stats:
            return {}

        total_requests = self.stats["hits"] + self.stats["misses"]
        hit_rate = (
            (self.stats["hits"] / total_requests * 100) if total_requests > 0 else 0
        )
        return {
            **self.stats,
            "hit_rate": f"{hit_rate:.2f}%",
            "total_requests": total_requests,
        }

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None
