"""Cache: optional Redis-backed cache for permission lookups."""

from taskflow.infrastructure.cache.redis_cache import CacheService

__all__ = ["CacheService"]
