"""Redis cache for space membership lookups.

Optional: when Redis is disabled or unreachable every method degrades to a
cache miss and the permission oracle reads from the database. Values are
stored as JSON with a TTL.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis

from taskflow.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DELETE_CHUNK = 500


class CacheService:
    """Async Redis cache with TTL support (implements ICacheService).

    Call connect() at startup and disconnect() at shutdown (see core.lifespan).
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize cache service.

        Args:
            redis_client: Optional pre-built client for testing or DI.
            settings: Optional settings; defaults to get_settings().
        """
        self.redis = redis_client
        self.settings = settings or get_settings()
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Open the Redis connection; on failure the cache stays disabled."""
        if self.redis is not None:
            return
        password = self.settings.redis_password
        client = redis.Redis(
            host=self.settings.redis_host,
            port=self.settings.redis_port,
            db=self.settings.redis_db,
            password=password.get_secret_value() if password else None,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )
        try:
            await client.ping()
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis connection failed: %s. Cache disabled.", e)
            await client.aclose()
            return
        self.redis = client
        self._connected = True
        logger.info(
            "Redis cache connected: %s:%s", self.settings.redis_host, self.settings.redis_port
        )

    async def disconnect(self) -> None:
        """Close the Redis connection."""
        if self.redis is not None:
            await self.redis.aclose()
            logger.info("Redis cache disconnected")
        self.redis = None
        self._connected = False

    def is_available(self) -> bool:
        """Return True if Redis is connected and usable."""
        return self._connected and self.redis is not None

    async def _run(
        self,
        op: str,
        key: str,
        call: Callable[[redis.Redis], Awaitable[T]],
        default: T,
    ) -> T:
        """Run one Redis call; reconnect once on connection loss, else return default."""
        if not self.is_available() or self.redis is None:
            return default
        try:
            return await call(self.redis)
        except (redis.ConnectionError, redis.TimeoutError):
            logger.warning("Cache %s lost connection for %s; reconnecting", op, key)
            await self.disconnect()
            await self.connect()
            if self.redis is None:
                return default
            try:
                return await call(self.redis)
            except redis.RedisError:
                logger.exception("Cache %s error for %s after reconnect", op, key)
                return default
        except redis.RedisError:
            logger.exception("Cache %s error for %s", op, key)
            return default

    async def get(self, key: str) -> Any | None:
        """Return the cached (JSON-decoded) value, or None on miss or outage."""

        async def _get(client: redis.Redis) -> Any | None:
            value = await client.get(key)
            if value is None:
                logger.debug("Cache MISS: %s", key)
                return None
            logger.debug("Cache HIT: %s", key)
            return json.loads(value)

        return await self._run("get", key, _get, None)

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store value (JSON-serializable) for ttl seconds. Returns True if stored."""
        serialized = json.dumps(value)

        async def _set(client: redis.Redis) -> bool:
            await client.setex(key, ttl, serialized)
            logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)
            return True

        return await self._run("set", key, _set, False)

    async def delete(self, key: str) -> bool:
        """Remove key. Returns True if the command ran."""

        async def _delete(client: redis.Redis) -> bool:
            await client.delete(key)
            return True

        return await self._run("delete", key, _delete, False)

    async def delete_pattern(self, pattern: str) -> int:
        """Delete keys matching pattern using SCAN and batched UNLINK. Returns count."""

        async def _delete_pattern(client: redis.Redis) -> int:
            deleted = 0
            chunk: list[str] = []
            async for key in client.scan_iter(match=pattern):
                chunk.append(key)
                if len(chunk) >= _DELETE_CHUNK:
                    deleted += int(await client.unlink(*chunk))
                    chunk = []
            if chunk:
                deleted += int(await client.unlink(*chunk))
            if deleted:
                logger.info("Cache INVALIDATE: %s (%s keys)", pattern, deleted)
            return deleted

        return await self._run("delete_pattern", pattern, _delete_pattern, 0)
