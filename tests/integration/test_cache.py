"""
Integration tests for core/cache.py

Tests Redis caching layer (with fallback behavior when Redis unavailable).
"""
import pytest
from unittest.mock import AsyncMock

import redis.asyncio as redis

from core.cache import RedisCache, CacheStats


class TestCacheStats:
    """Tests for CacheStats class."""

    def test_initial_values(self):
        """Stats start at zero."""
        stats = CacheStats()
        assert stats.hits == 0
        assert stats.misses == 0
        assert stats.errors == 0
        assert stats.sets == 0
        assert stats.invalidations == 0

    def test_hit_rate_empty(self):
        """Hit rate is 0 when no requests."""
        assert CacheStats().hit_rate == 0.0

    def test_hit_rate_calculation(self):
        """Hit rate calculated correctly."""
        stats = CacheStats(hits=75, misses=25)
        assert stats.hit_rate == 75.0

    def test_to_dict(self):
        """Converts to dictionary correctly."""
        stats = CacheStats(hits=10, misses=5, errors=1, sets=8, invalidations=2)
        d = stats.to_dict()

        assert d["hits"] == 10
        assert d["misses"] == 5
        assert d["sets"] == 8
        assert d["hit_rate_percent"] == pytest.approx(66.67, rel=0.01)

    def test_reset(self):
        """Reset clears all counters."""
        stats = CacheStats(hits=10, misses=5, errors=1)
        stats.reset()
        assert (stats.hits, stats.misses, stats.errors) == (0, 0, 0)


class TestRedisCacheDisabled:
    """Tests for RedisCache when disabled."""

    def test_disabled_by_config(self):
        """Cache can be disabled via config."""
        cache = RedisCache(enabled=False)
        assert cache.enabled is False
        assert cache.is_connected is False

    @pytest.mark.asyncio
    async def test_connect_when_disabled(self):
        """Connect returns False when disabled."""
        cache = RedisCache(enabled=False)
        assert await cache.connect() is False

    @pytest.mark.asyncio
    async def test_get_when_not_connected(self):
        """Get returns None and counts a miss when not connected."""
        cache = RedisCache(enabled=False)
        assert await cache.get("dash:key") is None
        assert cache._stats.misses == 1

    @pytest.mark.asyncio
    async def test_set_and_delete_when_not_connected(self):
        """Writes are no-ops when not connected."""
        cache = RedisCache(enabled=False)
        assert await cache.set("dash:key", {"a": 1}) is False
        assert await cache.delete("dash:key") is False
        assert await cache.invalidate_pattern("dash:*") == 0

    @pytest.mark.asyncio
    async def test_get_or_set_calls_factory_every_time(self):
        """Without Redis the factory runs on every call."""
        cache = RedisCache(enabled=False)
        calls = 0

        async def factory():
            nonlocal calls
            calls += 1
            return {"value": calls}

        assert await cache.get_or_set("dash:key", factory) == {"value": 1}
        assert await cache.get_or_set("dash:key", factory) == {"value": 2}

    def test_get_stats_when_disabled(self):
        """Get stats works when disabled."""
        stats = RedisCache(enabled=False).get_stats()
        assert stats["enabled"] is False
        assert stats["connected"] is False
        assert stats["url"] is None


class TestMakeKey:
    """Tests for cache key building."""

    def test_namespaced_key(self):
        """Keys start with the namespace and prefix."""
        cache = RedisCache(namespace="dash")
        assert cache.make_key("reorder", "metrics") == "dash:reorder:metrics"

    def test_params_sorted_and_none_skipped(self):
        """Keyword order does not matter and None values are dropped."""
        cache = RedisCache(namespace="dash")
        key1 = cache.make_key("dashboard", period="30d", today="2026-01-15", family=None)
        key2 = cache.make_key("dashboard", today="2026-01-15", period="30d")
        assert key1 == key2 == "dash:dashboard:period=30d:today=2026-01-15"

    def test_long_keys_hashed(self):
        """Long keys are hashed under the prefix."""
        cache = RedisCache(namespace="dash")
        key = cache.make_key("prefix", *[f"part{i}" for i in range(100)])
        assert len(key) <= 200
        assert key.startswith("dash:prefix:")


class TestRedisCacheWithMock:
    """Tests for RedisCache with mocked Redis client."""

    @staticmethod
    def _connected_cache() -> RedisCache:
        cache = RedisCache()
        cache._connected = True
        cache._client = AsyncMock()
        return cache

    @pytest.mark.asyncio
    async def test_get_hit(self):
        """Get returns cached value on hit."""
        cache = self._connected_cache()
        cache._client.get.return_value = b'{"data": "cached_value"}'

        result = await cache.get("dash:key")

        assert result == {"data": "cached_value"}
        assert cache._stats.hits == 1
        cache._client.get.assert_called_once_with("dash:key")

    @pytest.mark.asyncio
    async def test_set_uses_default_ttl(self):
        """Set stores JSON with the configured TTL."""
        cache = self._connected_cache()
        cache.default_ttl = 120

        assert await cache.set("dash:key", {"data": "value"}) is True
        cache._client.setex.assert_called_once_with("dash:key", 120, '{"data": "value"}')
        assert cache._stats.sets == 1

    @pytest.mark.asyncio
    async def test_get_or_set_cached(self):
        """get_or_set returns cached value if available."""
        cache = self._connected_cache()
        cache._client.get.return_value = b'{"cached": true}'
        factory = AsyncMock(return_value={"fresh": True})

        result = await cache.get_or_set("dash:key", factory, ttl=60)

        assert result == {"cached": True}
        factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_or_set_computes(self):
        """get_or_set computes and stores the value on a miss."""
        cache = self._connected_cache()
        cache._client.get.return_value = None

        result = await cache.get_or_set("dash:key", AsyncMock(return_value={"fresh": True}), ttl=60)

        assert result == {"fresh": True}
        cache._client.setex.assert_called_once()

    @pytest.mark.asyncio
    async def test_invalidate_pattern_scans_all_pages(self):
        """Invalidation follows the SCAN cursor until it returns 0."""
        cache = self._connected_cache()
        cache._client.scan.side_effect = [
            (7, [b"dash:a", b"dash:b"]),
            (0, [b"dash:c"]),
        ]

        deleted = await cache.invalidate_pattern("dash:*")

        assert deleted == 3
        assert cache._client.delete.call_count == 2
        assert cache._stats.invalidations == 3

    @pytest.mark.asyncio
    async def test_redis_error_degrades_to_miss(self):
        """Redis errors are counted and reads fall back to None."""
        cache = self._connected_cache()
        cache._client.get.side_effect = redis.RedisError("boom")

        assert await cache.get("dash:key") is None
        assert cache._stats.errors == 1

    @pytest.mark.asyncio
    async def test_disconnect(self):
        """Disconnect closes the client."""
        cache = self._connected_cache()
        client = cache._client

        await cache.disconnect()

        client.aclose.assert_awaited_once()
        assert cache.is_connected is False
