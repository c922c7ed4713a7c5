"""Response caches for completion clients."""

from .base import LLMCache, build_cache_key
from .memory import InMemoryCache
from .redis_cache import CacheConfig, RedisCache

__all__ = ["LLMCache", "build_cache_key", "InMemoryCache", "RedisCache", "CacheConfig"]
