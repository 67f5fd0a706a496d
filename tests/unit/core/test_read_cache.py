"""Unit tests for ReadPathCache."""

import json
import time
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from medibook.core.cache import ReadPathCache


def swr_entry(value, age_seconds: int) -> str:
    return json.dumps({"value": value, "timestamp": int(time.time() * 1000) - age_seconds * 1000})


@pytest.fixture
def fetch() -> AsyncMock:
    return AsyncMock(return_value=["09:00", "09:30"])


@pytest.mark.unit
class TestReadPathCache:
    """Tests for cache-aside lookups."""

    @pytest.mark.asyncio
    async def test_disabled_cache_passes_through(self, fetch) -> None:
        """Should call fetch every time without a Redis client."""
        cache = ReadPathCache(None)

        assert await cache.get_or_set("k", fetch) == ["09:00", "09:30"]
        assert await cache.get_or_set_swr("k", fetch) == ["09:00", "09:30"]
        assert fetch.await_count == 2
        assert cache.enabled is False

    @pytest.mark.asyncio
    async def test_miss_fetches_and_stores(self, mock_redis, fetch) -> None:
        cache = ReadPathCache(mock_redis)

        value = await cache.get_or_set("medibook:provider:doc-1", fetch, ttl=300)

        assert value == ["09:00", "09:30"]
        mock_redis.set.assert_awaited_once_with("medibook:provider:doc-1", json.dumps(value), ex=300)
        assert cache.metrics.misses == 1
        assert cache.metrics.sets == 1

    @pytest.mark.asyncio
    async def test_hit_skips_fetch(self, mock_redis, fetch) -> None:
        mock_redis.get = AsyncMock(return_value=json.dumps({"slot": "10:00"}))
        cache = ReadPathCache(mock_redis)

        assert await cache.get_or_set("k", fetch) == {"slot": "10:00"}
        fetch.assert_not_awaited()
        assert cache.metrics.hits == 1

    @pytest.mark.asyncio
    async def test_redis_error_falls_back_to_fetch(self, mock_redis, fetch) -> None:
        """Should answer from the source and count the error."""
        mock_redis.get = AsyncMock(side_effect=RedisConnectionError("down"))
        cache = ReadPathCache(mock_redis)

        assert await cache.get_or_set_swr("k", fetch) == ["09:00", "09:30"]
        assert cache.metrics.errors == 1
        mock_redis.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_write_error_still_returns_value(self, mock_redis, fetch) -> None:
        mock_redis.set = AsyncMock(side_effect=RedisConnectionError("down"))
        cache = ReadPathCache(mock_redis)

        assert await cache.get_or_set("k", fetch) == ["09:00", "09:30"]
        assert cache.metrics.errors == 1


@pytest.mark.unit
class TestStaleWhileRevalidate:
    """Tests for get_or_set_swr freshness windows."""

    @pytest.mark.asyncio
    async def test_fresh_entry_is_served_without_revalidation(self, mock_redis, fetch) -> None:
        mock_redis.get = AsyncMock(return_value=swr_entry(["11:00"], age_seconds=10))
        cache = ReadPathCache(mock_redis)

        assert await cache.get_or_set_swr("k", fetch, fresh_ttl=60, stale_ttl=300) == ["11:00"]
        await cache.drain()

        fetch.assert_not_awaited()
        assert cache.metrics.revalidations == 0

    @pytest.mark.asyncio
    async def test_stale_entry_is_served_and_refreshed(self, mock_redis, fetch) -> None:
        """Should return the stale value and rewrite it in the background."""
        mock_redis.get = AsyncMock(return_value=swr_entry(["11:00"], age_seconds=120))
        cache = ReadPathCache(mock_redis)

        assert await cache.get_or_set_swr("k", fetch, fresh_ttl=60, stale_ttl=300) == ["11:00"]
        await cache.drain()

        fetch.assert_awaited_once()
        assert cache.metrics.revalidations == 1
        key, payload = mock_redis.set.await_args.args
        assert key == "k"
        assert json.loads(payload)["value"] == ["09:00", "09:30"]
        assert mock_redis.set.await_args.kwargs == {"ex": 300}

    @pytest.mark.asyncio
    async def test_missing_entry_is_written_with_timestamp(self, mock_redis, fetch) -> None:
        cache = ReadPathCache(mock_redis)

        await cache.get_or_set_swr("k", fetch, fresh_ttl=60, stale_ttl=300)

        payload = json.loads(mock_redis.set.await_args.args[1])
        assert payload["value"] == ["09:00", "09:30"]
        assert isinstance(payload["timestamp"], int)

    @pytest.mark.asyncio
    async def test_failed_revalidation_keeps_serving(self, mock_redis) -> None:
        mock_redis.get = AsyncMock(return_value=swr_entry(["11:00"], age_seconds=120))
        failing = AsyncMock(side_effect=RuntimeError("db down"))
        cache = ReadPathCache(mock_redis)

        assert await cache.get_or_set_swr("k", failing, fresh_ttl=60, stale_ttl=300) == ["11:00"]
        await cache.drain()

        assert cache.metrics.errors == 1
        mock_redis.set.assert_not_awaited()


@pytest.mark.unit
class TestInvalidation:
    """Tests for key and pattern invalidation."""

    @pytest.mark.asyncio
    async def test_invalidate_single_key(self, mock_redis) -> None:
        cache = ReadPathCache(mock_redis)

        await cache.invalidate("medibook:settings:commission")

        mock_redis.delete.assert_awaited_once_with("medibook:settings:commission")
        assert cache.metrics.invalidations == 1

    @pytest.mark.asyncio
    async def test_invalidate_pattern_deletes_scanned_keys(self, mock_redis) -> None:
        keys = ["medibook:slots:doc-1:2025-01-10:default", "medibook:slots:doc-1:2025-01-10:60"]

        async def scan_iter(match=None, count=None):
            for key in keys:
                yield key

        mock_redis.scan_iter = scan_iter
        mock_redis.delete = AsyncMock(return_value=2)
        cache = ReadPathCache(mock_redis)

        removed = await cache.invalidate_pattern("medibook:slots:doc-1:*")

        assert removed == 2
        mock_redis.delete.assert_awaited_once_with(*keys)

    @pytest.mark.asyncio
    async def test_invalidate_disabled_is_noop(self) -> None:
        assert await ReadPathCache(None).invalidate_pattern("medibook:*") == 0
