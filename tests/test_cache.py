"""Tests for the cache abstraction layer."""

import time
from unittest.mock import AsyncMock, patch

import pytest

from school.app.core.cache import (
    InMemoryCache,
    RedisCache,
    _CacheEntry,
    close_cache,
    get_cache,
    reset_cache,
)
from school.app.core.config import settings


class TestCacheEntry:
    """Tests for the internal _CacheEntry class."""

    def test_cache_entry_no_expiry(self):
        entry = _CacheEntry(value=b"test", expires_at=None)
        assert not entry.is_expired()

    def test_cache_entry_expired(self):
        entry = _CacheEntry(value=b"test", expires_at=time.time() - 1)
        assert entry.is_expired()

    def test_cache_entry_not_expired(self):
        entry = _CacheEntry(value=b"test", expires_at=time.time() + 10)
        assert not entry.is_expired()


class TestInMemoryCache:
    """Tests for the InMemoryCache implementation."""

    @pytest.mark.asyncio
    async def test_set_and_get(self):
        cache = InMemoryCache()
        await cache.set("key1", b"value1", ttl=60)
        assert await cache.get("key1") == b"value1"

    @pytest.mark.asyncio
    async def test_get_nonexistent_key(self):
        cache = InMemoryCache()
        assert await cache.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_ping(self):
        assert await InMemoryCache().ping() is True

    @pytest.mark.asyncio
    async def test_expired_entry_is_dropped_on_read(self):
        cache = InMemoryCache()
        cache._data["stale"] = _CacheEntry(value=b"2", expires_at=time.time() - 1)
        assert await cache.get("stale") is None
        assert "stale" not in cache._data


class TestRedisCache:
    """Tests for RedisCache with a mocked client."""

    @pytest.fixture
    def client(self):
        client = AsyncMock()
        with patch("school.app.core.cache.aioredis.from_url", return_value=client) as from_url:
            client.from_url = from_url
            yield client

    @pytest.mark.asyncio
    async def test_client_created_lazily_with_timeouts(self, client):
        cache = RedisCache("redis://cache:6379/0", socket_timeout=1.5)
        client.from_url.assert_not_called()

        client.get.return_value = b"cached"
        assert await cache.get("k") == b"cached"
        client.from_url.assert_called_once_with(
            "redis://cache:6379/0",
            socket_timeout=1.5,
            socket_connect_timeout=1.5,
        )

    @pytest.mark.asyncio
    async def test_set_uses_setex(self, client):
        cache = RedisCache("redis://cache:6379/0")
        await cache.set("k", b"v", ttl=30)
        client.setex.assert_awaited_once_with("k", 30, b"v")

    @pytest.mark.asyncio
    async def test_ping(self, client):
        client.ping.return_value = True
        cache = RedisCache("redis://cache:6379/0")
        assert await cache.ping() is True

    @pytest.mark.asyncio
    async def test_close_releases_client(self, client):
        cache = RedisCache("redis://cache:6379/0")
        await cache.ping()
        await cache.close()
        client.aclose.assert_awaited_once()
        assert cache._redis is None


class TestGetCache:
    """Tests for backend selection from settings."""

    @pytest.fixture(autouse=True)
    def fresh_cache(self):
        reset_cache()
        yield
        reset_cache()

    def test_disabled_returns_none(self, monkeypatch):
        monkeypatch.setattr(settings, "redis_enabled", False)
        assert get_cache() is None

    def test_memory_backend_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "redis_enabled", True)
        monkeypatch.setattr(settings, "cache_backend", "memory")
        cache = get_cache()
        assert isinstance(cache, InMemoryCache)
        assert get_cache() is cache

    def test_redis_backend_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "redis_enabled", True)
        monkeypatch.setattr(settings, "cache_backend", "redis")
        cache = get_cache()
        assert isinstance(cache, RedisCache)
        assert cache._redis_url == settings.redis_url

    def test_explicit_backend_ignores_enabled_flag(self, monkeypatch):
        monkeypatch.setattr(settings, "redis_enabled", False)
        assert isinstance(get_cache(backend="memory"), InMemoryCache)

    def test_force_new(self, monkeypatch):
        monkeypatch.setattr(settings, "redis_enabled", True)
        monkeypatch.setattr(settings, "cache_backend", "memory")
        first = get_cache()
        assert get_cache(force_new=True) is not first

    @pytest.mark.asyncio
    async def test_close_cache_forgets_instance(self, monkeypatch):
        monkeypatch.setattr(settings, "redis_enabled", True)
        monkeypatch.setattr(settings, "cache_backend", "memory")
        first = get_cache()
        await close_cache()
        assert get_cache() is not first
