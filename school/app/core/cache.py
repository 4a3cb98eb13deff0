"""Cache abstraction layer for the school API.

Provides a pluggable byte-oriented cache with in-memory and Redis
implementations. Typed list caching on top of it lives in
``school.app.services.list_cache``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import asyncio
import time

import redis.asyncio as aioredis


@dataclass
class _CacheEntry:
    """Internal cache entry with TTL tracking."""

    value: bytes
    expires_at: float | None = None

    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return time.time() > self.expires_at


class CacheBackend(ABC):
    """Abstract base class for cache backends."""

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Retrieve a value from the cache.

        Args:
            key: The cache key to look up.

        Returns:
            The cached value as bytes, or None if not found or expired.
        """

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: int) -> None:
        """Store a value in the cache.

        Args:
            key: The cache key.
            value: The value to store (as bytes).
            ttl: Time-to-live in seconds.
        """

    @abstractmethod
    async def ping(self) -> bool:
        """Return True when the backend is reachable."""

    async def close(self) -> None:
        """Release any connections held by the backend."""


class InMemoryCache(CacheBackend):
    """Process-local cache with TTL support.

    Used when CACHE_BACKEND=memory and in tests. Data is not shared between
    workers and is lost on restart.
    """

    def __init__(self) -> None:
        self._data: dict[str, _CacheEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> bytes | None:
        async with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            if entry.is_expired():
                del self._data[key]
                return None
            return entry.value

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        async with self._lock:
            expires_at = time.time() + ttl if ttl > 0 else None
            self._data[key] = _CacheEntry(value=value, expires_at=expires_at)

    async def ping(self) -> bool:
        return True


class RedisCache(CacheBackend):
    """Redis-based cache implementation.

    Example:
        >>> cache = RedisCache("redis://localhost:6379/0")
        >>> await cache.set("key", b"value", ttl=30)
    """

    def __init__(self, redis_url: str, socket_timeout: float = 2.0) -> None:
        self._redis_url = redis_url
        self._socket_timeout = socket_timeout
        self._redis: aioredis.Redis | None = None

    def _get_client(self) -> aioredis.Redis:
        """Get or lazily create the Redis client."""
        if self._redis is None:
            self._redis = aioredis.from_url(
                self._redis_url,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._socket_timeout,
            )
        return self._redis

    async def get(self, key: str) -> bytes | None:
        return await self._get_client().get(key)

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        await self._get_client().setex(key, ttl, value)

    async def ping(self) -> bool:
        return bool(await self._get_client().ping())

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis is not None:
            # aclose() is the async cleanup entry point in redis-py 5.0+
            await self._redis.aclose()
            self._redis = None


# Global cache instance (singleton pattern)
_cache_instance: CacheBackend | None = None


def get_cache(
    backend: str | None = None,
    redis_url: str | None = None,
    force_new: bool = False,
) -> CacheBackend | None:
    """Get or create the global cache instance.

    Args:
        backend: 'memory', 'redis', or None to follow settings.cache_backend.
        redis_url: Redis connection URL. If not provided, uses settings.redis_url.
        force_new: If True, create a new instance even if one exists.

    Returns:
        A CacheBackend instance, or None when caching is disabled via
        REDIS_ENABLED=false and no backend was requested explicitly.
    """
    global _cache_instance

    if _cache_instance is not None and not force_new:
        return _cache_instance

    # Import settings here to avoid circular imports
    from school.app.core.config import settings

    if backend is None:
        if not settings.redis_enabled:
            return None
        backend = settings.cache_backend

    if backend == "redis":
        _cache_instance = RedisCache(redis_url or settings.redis_url)
    else:
        _cache_instance = InMemoryCache()
    return _cache_instance


async def close_cache() -> None:
    """Close and forget the global cache instance."""
    global _cache_instance
    if _cache_instance is not None:
        await _cache_instance.close()
        _cache_instance = None


def reset_cache() -> None:
    """Reset the global cache instance.

    This is primarily useful for testing.
    """
    global _cache_instance
    _cache_instance = None
