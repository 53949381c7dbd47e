"""
Redis caching layer for dashboard API.

KPI payloads are computed from mart tables that only change when the
upstream pipeline refreshes, so they are cached with a TTL and flushed
through the admin endpoint after a refresh. When Redis is disabled or
unreachable every operation is a no-op and callers query DuckDB directly.

Usage:
    from core.cache import cache

    key = cache.make_key("reorder", "metrics")
    data = await cache.get_or_set(key, lambda: store.get_reorder_metrics())

    # After a mart refresh
    await cache.invalidate_pattern(f"{cache.namespace}:*")
"""
import asyncio
import hashlib
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import redis.asyncio as redis

from core.config import config
from core.observability import get_logger, Timer

logger = get_logger(__name__)

KEY_NAMESPACE = "dash"


@dataclass
class CacheStats:
    """Cache statistics for monitoring."""

    hits: int = 0
    misses: int = 0
    errors: int = 0
    sets: int = 0
    invalidations: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "errors": self.errors,
            "sets": self.sets,
            "invalidations": self.invalidations,
            "hit_rate_percent": round(self.hit_rate, 2),
        }

    def reset(self) -> None:
        """Reset all counters."""
        self.hits = 0
        self.misses = 0
        self.errors = 0
        self.sets = 0
        self.invalidations = 0


class RedisCache:
    """
    Async Redis cache with graceful degradation.

    Values are stored as JSON under keys prefixed with
    ``namespace`` so that one pattern flushes everything this service owns.
    """

    def __init__(
        self,
        url: str = config.cache.redis_url,
        enabled: bool = config.cache.enabled,
        default_ttl: int = config.cache.ttl_seconds,
        namespace: str = KEY_NAMESPACE,
    ):
        self.url = url
        self.enabled = enabled
        self.default_ttl = default_ttl
        self.namespace = namespace
        self._client = None
        self._connected = False
        self._stats = CacheStats()
        self._lock = asyncio.Lock()

    async def connect(self) -> bool:
        """
        Connect to Redis server.

        Returns:
            True if connected successfully, False otherwise
        """
        if not self.enabled:
            logger.info("Redis cache disabled by configuration")
            return False

        try:
            async with self._lock:
                if self._client is None:
                    self._client = redis.from_url(
                        self.url,
                        socket_timeout=5.0,
                        socket_connect_timeout=5.0,
                    )
                await self._client.ping()
                self._connected = True
                logger.info(f"Redis connected: {self.url}")
                return True
        except (redis.RedisError, OSError) as e:
            logger.warning(f"Redis connection failed, caching disabled: {e}")
            self._connected = False

        return False

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
            self._connected = False
            logger.info("Redis disconnected")

    @property
    def is_connected(self) -> bool:
        """Check if Redis is connected."""
        return self._connected and self._client is not None

    def make_key(self, prefix: str, *parts: Any, **params: Any) -> str:
        """
        Build a namespaced cache key from a prefix and query parameters.

        ``None`` parameters are skipped and keyword order does not matter.
        """
        key_parts = [self.namespace, prefix]
        key_parts.extend(str(part) for part in parts)
        key_parts.extend(f"{k}={v}" for k, v in sorted(params.items()) if v is not None)
        key_str = ":".join(key_parts)

        if len(key_str) > 200:
            hash_suffix = hashlib.md5(key_str.encode()).hexdigest()[:12]
            key_str = f"{self.namespace}:{prefix}:{hash_suffix}"

        return key_str

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached value or None if not found/error
        """
        if not self.is_connected:
            self._stats.misses += 1
            return None

        try:
            with Timer("cache_get"):
                value = await self._client.get(key)
        except redis.RedisError as e:
            self._stats.errors += 1
            logger.debug(f"Cache get error for {key}: {e}")
            return None

        if value is None:
            self._stats.misses += 1
            return None

        self._stats.hits += 1
        return json.loads(value)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: JSON-serializable value
            ttl: Time-to-live in seconds (default: configured TTL)

        Returns:
            True if set successfully
        """
        if not self.is_connected:
            return False

        try:
            with Timer("cache_set"):
                await self._client.setex(key, ttl or self.default_ttl, json.dumps(value, default=str))
        except redis.RedisError as e:
            self._stats.errors += 1
            logger.debug(f"Cache set error for {key}: {e}")
            return False

        self._stats.sets += 1
        return True

    async def delete(self, key: str) -> bool:
        if not self.is_connected:
            return False

        try:
            await self._client.delete(key)
        except redis.RedisError as e:
            self._stats.errors += 1
            logger.debug(f"Cache delete error for {key}: {e}")
            return False

        self._stats.invalidations += 1
        return True

    async def invalidate_pattern(self, pattern: str) -> int:
        """
        Invalidate all keys matching pattern.

        Args:
            pattern: Redis glob pattern (e.g., "dash:reorder:*")

        Returns:
            Number of keys deleted
        """
        if not self.is_connected:
            return 0

        deleted = 0
        cursor = 0
        try:
            # SCAN rather than KEYS so a large keyspace does not block Redis
            while True:
                cursor, keys = await self._client.scan(cursor=cursor, match=pattern, count=100)
                if keys:
                    await self._client.delete(*keys)
                    deleted += len(keys)
                if cursor == 0:
                    break
        except redis.RedisError as e:
            self._stats.errors += 1
            logger.warning(f"Cache invalidate pattern error for {pattern}: {e}")

        if deleted:
            self._stats.invalidations += deleted
            logger.info(f"Invalidated {deleted} keys matching '{pattern}'")

        return deleted

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None,
    ) -> Any:
        """
        Get from cache, or await ``factory()`` and cache the result.

        Errors raised by ``factory`` propagate and nothing is cached.
        """
        value = await self.get(key)
        if value is not None:
            return value

        value = await factory()
        await self.set(key, value, ttl)
        return value

    def get_stats(self) -> dict:
        """Get cache statistics."""
        return {
            "enabled": self.enabled,
            "connected": self.is_connected,
            "url": self.url if self.is_connected else None,
            **self._stats.to_dict(),
        }

    def reset_stats(self) -> None:
        """Reset statistics counters."""
        self._stats.reset()


# Global cache instance
cache = RedisCache()
