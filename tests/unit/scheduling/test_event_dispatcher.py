"""Unit tests for PaymentEventDispatcher and EventIdempotencyGuard."""

from unittest.mock import AsyncMock, Mock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from medibook.core.cache import CacheKeys
from medibook.core.domain import ValidationException
from medibook.domains.scheduling.infrastructure.events import EventIdempotencyGuard, PaymentEventDispatcher
from medibook.domains.scheduling.infrastructure.events.idempotency import PROCESSING_LOCK_TTL_MS


def make_event(event_type: str, object_id: str = "obj_1", event_id: str = "evt_1", **fields) -> dict:
    return {"id": event_id, "type": event_type, "data": {"object": {"id": object_id, **fields}}}


@pytest.fixture
def use_cases() -> dict[str, Mock]:
    return {
        "confirm_payment": Mock(execute=AsyncMock(return_value=True)),
        "mark_payment_failed": Mock(execute=AsyncMock(return_value=True)),
        "confirm_payout": Mock(execute=AsyncMock(return_value=True)),
        "mark_payout_reversed": Mock(execute=AsyncMock(return_value=True)),
    }


@pytest.fixture
def guard() -> Mock:
    mock = Mock(spec=EventIdempotencyGuard)
    mock.acquire = AsyncMock(return_value=True)
    mock.mark_done = AsyncMock()
    mock.release = AsyncMock()
    return mock


@pytest.fixture
def dispatcher(use_cases, guard) -> PaymentEventDispatcher:
    return PaymentEventDispatcher(guard=guard, **use_cases)


@pytest.mark.unit
class TestPaymentEventDispatcher:
    """Tests for event routing."""

    @pytest.mark.asyncio
    async def test_payment_succeeded_confirms_with_charge(self, dispatcher, use_cases, guard) -> None:
        event = make_event("payment_intent.succeeded", "pi_1", latest_charge="ch_1")

        result = await dispatcher.dispatch(event)

        use_cases["confirm_payment"].execute.assert_awaited_once_with("pi_1", "ch_1")
        guard.mark_done.assert_awaited_once_with("evt_1")
        assert result.to_dict() == {
            "event_id": "evt_1",
            "event_type": "payment_intent.succeeded",
            "status": "processed",
            "changed": True,
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "event_type,handler",
        [
            ("payment_intent.payment_failed", "mark_payment_failed"),
            ("transfer.created", "confirm_payout"),
            ("transfer.paid", "confirm_payout"),
            ("transfer.reversed", "mark_payout_reversed"),
            ("transfer.failed", "mark_payout_reversed"),
        ],
    )
    async def test_routing(self, dispatcher, use_cases, event_type, handler) -> None:
        await dispatcher.dispatch(make_event(event_type, "tr_1"))

        use_cases[handler].execute.assert_awaited_once_with("tr_1")

    @pytest.mark.asyncio
    async def test_charge_refunded_is_informational(self, dispatcher, use_cases) -> None:
        result = await dispatcher.dispatch(make_event("charge.refunded", "ch_1", amount_refunded=10000))

        assert result.status == "processed"
        assert result.changed is False
        for use_case in use_cases.values():
            use_case.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_type_is_ignored(self, dispatcher, guard) -> None:
        """Should acknowledge without touching the guard."""
        result = await dispatcher.dispatch(make_event("customer.created"))

        assert result.status == "ignored"
        guard.acquire.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "event",
        [
            {"type": "payment_intent.succeeded"},
            {"id": "evt_1"},
            {"id": "evt_1", "type": "payment_intent.succeeded", "data": {}},
            {"id": "evt_1", "type": "payment_intent.succeeded", "data": {"object": {"amount": 1}}},
        ],
    )
    async def test_malformed_event_is_rejected(self, dispatcher, event) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await dispatcher.dispatch(event)

        assert exc_info.value.code == "INVALID_EVENT"

    @pytest.mark.asyncio
    async def test_duplicate_is_acknowledged(self, dispatcher, use_cases, guard) -> None:
        guard.acquire = AsyncMock(return_value=False)

        result = await dispatcher.dispatch(make_event("payment_intent.succeeded", "pi_1"))

        assert result.status == "duplicate"
        use_cases["confirm_payment"].execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_handler_failure_releases_lock(self, dispatcher, use_cases, guard) -> None:
        """Should drop the lock so the provider can redeliver."""
        use_cases["confirm_payment"].execute = AsyncMock(side_effect=RuntimeError("db down"))

        with pytest.raises(RuntimeError):
            await dispatcher.dispatch(make_event("payment_intent.succeeded", "pi_1"))

        guard.release.assert_awaited_once_with("evt_1", "db down")
        guard.mark_done.assert_not_awaited()


@pytest.mark.unit
class TestEventIdempotencyGuard:
    """Tests for the Redis processing lock."""

    @pytest.mark.asyncio
    async def test_acquire_uses_set_nx(self, mock_redis) -> None:
        guard = EventIdempotencyGuard(mock_redis, CacheKeys(), ttl_hours=24)

        assert await guard.acquire("evt_1") is True

        mock_redis.set.assert_awaited_once_with(
            "medibook:event:evt_1", "processing", nx=True, px=PROCESSING_LOCK_TTL_MS
        )

    @pytest.mark.asyncio
    async def test_acquire_fails_when_key_exists(self, mock_redis) -> None:
        mock_redis.set = AsyncMock(return_value=None)
        guard = EventIdempotencyGuard(mock_redis, CacheKeys())

        assert await guard.acquire("evt_1") is False

    @pytest.mark.asyncio
    async def test_mark_done_keeps_key_for_ttl(self, mock_redis) -> None:
        guard = EventIdempotencyGuard(mock_redis, CacheKeys(), ttl_hours=24)

        await guard.mark_done("evt_1")

        mock_redis.set.assert_awaited_once_with("medibook:event:evt_1", "done", px=24 * 60 * 60 * 1000)

    @pytest.mark.asyncio
    async def test_release_deletes_key(self, mock_redis) -> None:
        guard = EventIdempotencyGuard(mock_redis, CacheKeys())

        await guard.release("evt_1", "boom")

        mock_redis.delete.assert_awaited_once_with("medibook:event:evt_1")

    @pytest.mark.asyncio
    async def test_redis_outage_processes_anyway(self, mock_redis) -> None:
        mock_redis.set = AsyncMock(side_effect=RedisConnectionError("down"))
        guard = EventIdempotencyGuard(mock_redis, CacheKeys())

        assert await guard.acquire("evt_1") is True

    @pytest.mark.asyncio
    async def test_without_redis_every_event_is_processed(self) -> None:
        guard = EventIdempotencyGuard(None, CacheKeys())

        assert await guard.acquire("evt_1") is True
        await guard.mark_done("evt_1")
        assert await guard.acquire("evt_1") is True
