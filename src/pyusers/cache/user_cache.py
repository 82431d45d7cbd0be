"""Caching for user lookups.

Cached values are JSON-ready user payloads keyed by user ID. Every cache
instance has a namespace so that several application instances can share
one Redis server without seeing each other's entries.
"""

import json
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import redis.asyncio as redis
from redis.asyncio import Redis

from pyusers.core.config import Settings
from pyusers.core.logging import get_logger

logger = get_logger(__name__)


class UserCache(ABC):
    """Cache interface used by the user service."""

    KEY_PREFIX = "user"

    def __init__(self, namespace: str = "default", ttl: int = 300) -> None:
        self.namespace = namespace
        self.ttl = ttl

    def generate_cache_key(self, user_id: str) -> str:
        """Generate cache key for a user payload."""
        return f"{self.KEY_PREFIX}:{self.namespace}:{user_id}"

    @abstractmethod
    async def get(self, user_id: str) -> Optional[dict[str, Any]]:
        """Return the cached payload or None."""

    @abstractmethod
    async def set(self, user_id: str, data: dict[str, Any]) -> None:
        """Cache a payload for ``ttl`` seconds."""

    @abstractmethod
    async def delete(self, user_id: str) -> None:
        """Drop a cached payload."""

    @abstractmethod
    async def clear(self) -> int:
        """Drop every entry in this namespace. Returns the number removed."""

    async def close(self) -> None:
        """Release connections."""


class MemoryUserCache(UserCache):
    """In-process cache; the default when no Redis URL is configured."""

    def __init__(self, namespace: str = "default", ttl: int = 300) -> None:
        super().__init__(namespace=namespace, ttl=ttl)
        self._entries: dict[str, tuple[float, dict[str, Any]]] = {}

    async def get(self, user_id: str) -> Optional[dict[str, Any]]:
        key = self.generate_cache_key(user_id)
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, data = entry
        if expires_at < time.monotonic():
            del self._entries[key]
            return None
        return data

    async def set(self, user_id: str, data: dict[str, Any]) -> None:
        self._entries[self.generate_cache_key(user_id)] = (time.monotonic() + self.ttl, data)

    async def delete(self, user_id: str) -> None:
        self._entries.pop(self.generate_cache_key(user_id), None)

    async def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def __len__(self) -> int:
        return len(self._entries)


class RedisUserCache(UserCache):
    """Redis-backed cache.

    Cache TTL: 5 minutes (300 seconds) by default
    """

    def __init__(
        self,
        redis_url: str,
        namespace: str = "default",
        ttl: int = 300,
        max_connections: int = 50,
        client: Optional[Redis] = None,
    ) -> None:
        super().__init__(namespace=namespace, ttl=ttl)
        self.redis_url = redis_url
        self.max_connections = max_connections
        self._redis: Optional[Redis] = client

    async def get_redis(self) -> Redis:
        """Get or create Redis connection.

        Returns:
            Redis client instance

        """
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                max_connections=self.max_connections,
                decode_responses=True,
            )
            logger.info(f"Redis cache connected: {self.redis_url}")
        return self._redis

    async def get(self, user_id: str) -> Optional[dict[str, Any]]:
        client = await self.get_redis()
        raw = await client.get(self.generate_cache_key(user_id))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, user_id: str, data: dict[str, Any]) -> None:
        client = await self.get_redis()
        await client.set(self.generate_cache_key(user_id), json.dumps(data), ex=self.ttl)

    async def delete(self, user_id: str) -> None:
        client = await self.get_redis()
        await client.delete(self.generate_cache_key(user_id))

    async def clear(self) -> int:
        client = await self.get_redis()
        keys = [key async for key in client.scan_iter(match=f"{self.KEY_PREFIX}:{self.namespace}:*")]
        if not keys:
            return 0
        return await client.delete(*keys)

    async def close(self) -> None:
        """Close Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


def build_user_cache(settings: Settings, namespace: str = "default") -> UserCache:
    """Pick the cache implementation from settings."""
    if settings.redis_url:
        return RedisUserCache(
            settings.redis_url,
            namespace=namespace,
            ttl=settings.cache_ttl_seconds,
            max_connections=settings.redis_max_connections,
        )
    return MemoryUserCache(namespace=namespace, ttl=settings.cache_ttl_seconds)
