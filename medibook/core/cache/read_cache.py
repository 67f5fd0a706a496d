"""
Read-Path Cache

Redis-backed cache for read-heavy lookups (provider schedules, available
slots, commission rate). Every Redis failure is counted and swallowed: the
caller always gets a value, computed directly when the cache cannot help.

Stale-while-revalidate entries are stored as {"value": ..., "timestamp": ms}.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar

from redis.exceptions import RedisError

from medibook.core.cache.keys import CacheTTL
from medibook.core.cache.metrics import CacheMetrics

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fetch = Callable[[], Awaitable[T]]


def _now_ms() -> int:
    return int(time.time() * 1000)


class ReadPathCache:
    """
    Cache-aside helper over redis.asyncio.

    When constructed without a client (cache disabled, Redis down at startup)
    every call is a pass-through to the fetch function.

    Usage:
        cache = ReadPathCache(redis_client)
        slots = await cache.get_or_set_swr(key, fetch, fresh_ttl=60, stale_ttl=300)
    """

    def __init__(self, redis_client: Redis | None, metrics: CacheMetrics | None = None):
        self._redis = redis_client
        self.metrics = metrics or CacheMetrics()
        self._background: set[asyncio.Task[Any]] = set()
        self._revalidating: set[str] = set()

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    async def _read(self, key: str) -> Any | None:
        assert self._redis is not None
        raw = await self._redis.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def _write(self, key: str, value: Any, ttl: int) -> None:
        assert self._redis is not None
        await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        self.metrics.record_set()

    async def get_or_set(self, key: str, fetch: Fetch[T], ttl: int = CacheTTL.MEDIUM) -> T:
        """
        Return the cached value for key, or compute it with fetch and store it.

        Args:
            key: Full cache key
            fetch: Coroutine function computing the value on a miss
            ttl: Time to live in seconds
        """
        if not self.enabled:
            return await fetch()

        start = time.perf_counter()
        try:
            cached = await self._read(key)
        except (RedisError, ValueError) as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            self.metrics.record_error()
            return await fetch()

        if cached is not None:
            self.metrics.record_hit((time.perf_counter() - start) * 1000)
            return cached

        self.metrics.record_miss((time.perf_counter() - start) * 1000)
        value = await fetch()
        await self._safe_write(key, value, ttl)
        return value

    async def get_or_set_swr(
        self,
        key: str,
        fetch: Fetch[T],
        fresh_ttl: int = CacheTTL.SHORT,
        stale_ttl: int = CacheTTL.HOUR,
    ) -> T:
        """
        Stale-while-revalidate lookup.

        Within fresh_ttl the cached value is returned as is. Between fresh_ttl
        and stale_ttl the stale value is returned and a background task
        refreshes the entry. Older entries have expired in Redis and count
        as a miss.
        """
        if not self.enabled:
            return await fetch()

        start = time.perf_counter()
        try:
            wrapper = await self._read(key)
        except (RedisError, ValueError) as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            self.metrics.record_error()
            return await fetch()

        if isinstance(wrapper, dict) and "value" in wrapper and "timestamp" in wrapper:
            age = (_now_ms() - int(wrapper["timestamp"])) / 1000
            if age < stale_ttl:
                self.metrics.record_hit((time.perf_counter() - start) * 1000)
                if age >= fresh_ttl:
                    self._schedule_revalidation(key, fetch, stale_ttl)
                return wrapper["value"]

        self.metrics.record_miss((time.perf_counter() - start) * 1000)
        value = await fetch()
        await self._safe_write(key, {"value": value, "timestamp": _now_ms()}, stale_ttl)
        return value

    def _schedule_revalidation(self, key: str, fetch: Fetch[Any], ttl: int) -> None:
        if key in self._revalidating:
            return
        self._revalidating.add(key)
        task = asyncio.create_task(self._revalidate(key, fetch, ttl))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _revalidate(self, key: str, fetch: Fetch[Any], ttl: int) -> None:
        try:
            self.metrics.record_revalidation()
            value = await fetch()
            await self._write(key, {"value": value, "timestamp": _now_ms()}, ttl)
        except Exception as e:
            logger.error(f"Background revalidation failed for {key}: {e}")
            self.metrics.record_error()
        finally:
            self._revalidating.discard(key)

    async def _safe_write(self, key: str, value: Any, ttl: int) -> None:
        try:
            await self._write(key, value, ttl)
        except (RedisError, TypeError) as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            self.metrics.record_error()

    async def invalidate(self, key: str) -> None:
        """Delete a single key."""
        if not self.enabled:
            return
        try:
            await self._redis.delete(key)
            self.metrics.record_invalidation()
        except RedisError as e:
            logger.warning(f"Cache invalidation failed for {key}: {e}")
            self.metrics.record_error()

    async def invalidate_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Returns the number removed."""
        if not self.enabled:
            return 0
        removed = 0
        try:
            batch: list[str] = []
            async for key in self._redis.scan_iter(match=pattern, count=200):
                batch.append(key)
                if len(batch) >= 200:
                    removed += await self._redis.delete(*batch)
                    batch.clear()
            if batch:
                removed += await self._redis.delete(*batch)
            self.metrics.record_invalidation()
        except RedisError as e:
            logger.warning(f"Cache pattern invalidation failed for {pattern}: {e}")
            self.metrics.record_error()
        return removed

    async def drain(self) -> None:
        """Wait for in-flight revalidations. Called on shutdown."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
