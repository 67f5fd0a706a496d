"""
Shared pytest fixtures for all tests.

This module provides the pinned clock, a recording payment gateway, a
file-backed SQLite database and a fully wired scheduling container.
"""

import os
from collections.abc import AsyncGenerator
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio
from redis.asyncio import Redis
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from medibook.config.settings import Settings
from medibook.core.container import SchedulingContainer
from medibook.core.domain import PaymentGatewayException
from medibook.core.shared.clock import FixedClock
from medibook.database import Base
from medibook.domains.scheduling.application.ports.payment_gateway import RefundResult, TransferResult
from medibook.domains.scheduling.domain.entities import (
    AppointmentType,
    ProviderAvailability,
    ProviderPaymentAccount,
    WorkingHours,
)
from medibook.domains.scheduling.domain.value_objects import PayoutAccountStatus

# Register every table on Base.metadata
from medibook.domains.scheduling.infrastructure.persistence.sqlalchemy import models  # noqa: F401

# Ensure test environment
os.environ["ENVIRONMENT"] = "test"

PROVIDER_ID = "doc-1"
REQUESTER_ID = "pat-9"

# Thursday 13:00, 25 hours before Friday 14:00
NOW = datetime(2025, 1, 9, 13, 0)
APPOINTMENT_DAY = date(2025, 1, 10)
FRIDAY = 5


# ============================================================================
# FAKES
# ============================================================================


class FakePaymentGateway:
    """Records outbound calls. Set fail_transfers / fail_refunds to simulate errors."""

    def __init__(self) -> None:
        self.transfers: list[dict] = []
        self.refunds: list[dict] = []
        self.fail_transfers = False
        self.fail_refunds = False

    async def create_transfer(self, amount_cents, destination_account, idempotency_key, metadata=None):
        if self.fail_transfers:
            raise PaymentGatewayException("create_transfer", "Insufficient platform balance")
        self.transfers.append(
            {
                "amount_cents": amount_cents,
                "destination": destination_account,
                "idempotency_key": idempotency_key,
                "metadata": metadata or {},
            }
        )
        return TransferResult(transfer_ref=f"tr_{len(self.transfers)}", status="pending")

    async def create_refund(self, charge_ref, amount_cents, idempotency_key, metadata=None):
        if self.fail_refunds:
            raise PaymentGatewayException("create_refund", "Charge already disputed")
        self.refunds.append(
            {
                "charge_ref": charge_ref,
                "amount_cents": amount_cents,
                "idempotency_key": idempotency_key,
                "metadata": metadata or {},
            }
        )
        return RefundResult(refund_ref=f"re_{len(self.refunds)}", status="succeeded")


# ============================================================================
# BASIC FIXTURES
# ============================================================================


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned 25 hours before the Friday 14:00 appointment."""
    return FixedClock(NOW)


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def mock_redis() -> Mock:
    """Create a mock Redis client."""
    mock = Mock(spec=Redis)
    mock.get = AsyncMock(return_value=None)
    mock.set = AsyncMock(return_value=True)
    mock.delete = AsyncMock(return_value=1)
    mock.ping = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        ENVIRONMENT="test",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'medibook.db'}",
        CACHE_ENABLED=False,
        PAYOUT_SWEEP_ENABLED=False,
        DEFAULT_MIN_BOOKING_HOURS=1,
        WEBHOOK_SECRET=None,
        CRON_SECRET="cron-test-secret",
    )


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


def _serialize_sqlite_transactions(engine: AsyncEngine) -> None:
    """
    Make pysqlite emit BEGIN IMMEDIATE so that concurrent transactions
    queue on the database write lock, as SERIALIZABLE would on PostgreSQL.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


@pytest_asyncio.fixture
async def async_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """SQLite engine with the full schema created."""
    engine = create_async_engine(test_settings.DATABASE_URL, connect_args={"timeout": 30})
    _serialize_sqlite_transactions(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def container(
    test_settings: Settings,
    async_engine: AsyncEngine,
    gateway: FakePaymentGateway,
    clock: FixedClock,
) -> AsyncGenerator[SchedulingContainer, None]:
    """Container wired to SQLite, the fake gateway and the pinned clock."""
    container = SchedulingContainer(test_settings, engine=async_engine, gateway=gateway, clock=clock)
    yield container
    await container.cache.drain()


@pytest_asyncio.fixture
async def configured_provider(container: SchedulingContainer) -> dict:
    """
    Provider working Fridays 09:00-17:00 in 30-minute slots, with a paid
    100.00 consultation type and an active payout account.
    """
    configure = container.configure_provider
    await configure.set_availability(
        ProviderAvailability(
            provider_id=PROVIDER_ID,
            slot_duration_minutes=30,
            booking_advance_days_max=30,
            min_booking_hours_ahead=1,
        )
    )
    await configure.set_working_hours(
        PROVIDER_ID,
        [WorkingHours(provider_id=PROVIDER_ID, day_of_week=FRIDAY, start_time="09:00", end_time="17:00")],
    )
    paid_type = await configure.add_appointment_type(
        AppointmentType(provider_id=PROVIDER_ID, name="Consultation", duration_minutes=30, price=Decimal("100.00"))
    )
    free_type = await configure.add_appointment_type(
        AppointmentType(
            provider_id=PROVIDER_ID,
            name="Follow-up",
            duration_minutes=30,
            price=Decimal("0.00"),
            requires_payment=False,
        )
    )
    await configure.set_payment_account(
        ProviderPaymentAccount(
            provider_id=PROVIDER_ID,
            external_account_ref="acct_doc1",
            status=PayoutAccountStatus.ACTIVE,
        )
    )
    return {"paid_type_id": paid_type.id, "free_type_id": free_type.id}
