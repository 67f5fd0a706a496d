"""Unit tests for LifecycleManager."""

from unittest.mock import AsyncMock, Mock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from medibook.config.settings import Settings
from medibook.core.lifecycle import LifecycleManager


@pytest.fixture
def fake_container(mock_redis) -> Mock:
    container = Mock()
    container.settings = Settings(ENVIRONMENT="test", PAYOUT_SWEEP_ENABLED=False)
    container.redis = mock_redis
    container.payout_scheduler = Mock(start=AsyncMock(), stop=AsyncMock())
    container.close = AsyncMock()
    return container


@pytest.mark.unit
class TestLifecycleManager:
    """Tests for startup and shutdown ordering."""

    @pytest.mark.asyncio
    async def test_startup_then_shutdown(self, fake_container) -> None:
        lifecycle = LifecycleManager(fake_container)

        await lifecycle.startup()
        await lifecycle.shutdown()

        fake_container.redis.ping.assert_awaited_once()
        fake_container.payout_scheduler.start.assert_awaited_once()
        fake_container.payout_scheduler.stop.assert_awaited_once()
        fake_container.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_startup_is_idempotent(self, fake_container) -> None:
        lifecycle = LifecycleManager(fake_container)

        await lifecycle.startup()
        await lifecycle.startup()

        fake_container.payout_scheduler.start.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_redis_down_does_not_block_startup(self, fake_container) -> None:
        """Should log and continue, the cache falls back to the database."""
        fake_container.redis.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
        lifecycle = LifecycleManager(fake_container)

        await lifecycle.startup()

        fake_container.payout_scheduler.start.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_shutdown_without_startup_is_noop(self, fake_container) -> None:
        await LifecycleManager(fake_container).shutdown()

        fake_container.close.assert_not_awaited()
