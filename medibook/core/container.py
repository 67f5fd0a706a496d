"""
Scheduling Container.

Single Responsibility: Wire the scheduling domain once per process.

Holds the engine, session factory, Redis client, payment gateway and clock,
and builds every use case from them. Nothing here is a module-level global;
the application factory creates one container and stores it on app.state.
"""

import logging

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine

from medibook.config.settings import Settings
from medibook.core.cache import CacheKeys, CacheMetrics, ReadPathCache
from medibook.core.domain import DomainEvent, DomainEventPublisher
from medibook.core.shared.clock import Clock, LocalClock
from medibook.database import create_async_database_engine, create_session_factory
from medibook.domains.scheduling.application.booking_support import AvailabilityDefaults
from medibook.domains.scheduling.application.ports import IPaymentGateway
from medibook.domains.scheduling.application.use_cases import (
    AttachPaymentReferenceUseCase,
    BookAppointmentUseCase,
    CancelAppointmentUseCase,
    ConfigureProviderUseCase,
    ConfirmPaymentUseCase,
    ConfirmPayoutUseCase,
    GetAppointmentUseCase,
    GetAvailableSlotsUseCase,
    GetCommissionPercentageUseCase,
    MarkPaymentFailedUseCase,
    MarkPayoutReversedUseCase,
    RescheduleAppointmentUseCase,
    RunPayoutSweepUseCase,
    UpdateAppointmentStatusUseCase,
    UpdateCommissionPercentageUseCase,
)
from medibook.domains.scheduling.domain.events import (
    AppointmentBooked,
    AppointmentRescheduled,
    AppointmentStatusChanged,
    SettlementNeedsManualIntervention,
)
from medibook.domains.scheduling.domain.services import RefundCalculator
from medibook.domains.scheduling.infrastructure.events import EventIdempotencyGuard, PaymentEventDispatcher
from medibook.domains.scheduling.infrastructure.gateways import HttpPaymentGateway
from medibook.domains.scheduling.infrastructure.persistence.unit_of_work import SQLAlchemyUnitOfWorkFactory
from medibook.domains.scheduling.infrastructure.scheduler import PayoutScheduler

logger = logging.getLogger(__name__)


def create_redis_client(settings: Settings) -> Redis | None:
    """Redis client for the cache and event guard, or None when caching is off."""
    if not settings.CACHE_ENABLED:
        logger.info("Cache disabled, running without Redis")
        return None
    return Redis.from_url(settings.redis_url, decode_responses=True)


class SchedulingContainer:
    """
    Scheduling domain container.

    Example:
        ```python
        container = SchedulingContainer(get_settings())
        slots = await container.get_available_slots.execute("doc-1", date(2025, 1, 10))
        await container.close()
        ```
    """

    def __init__(
        self,
        settings: Settings,
        engine: AsyncEngine | None = None,
        redis_client: Redis | None = None,
        gateway: IPaymentGateway | None = None,
        clock: Clock | None = None,
    ):
        """
        Initialize the container.

        Args:
            settings: Application settings
            engine: Async engine, created from settings when omitted
            redis_client: Redis client, created from settings when omitted
            gateway: Payment gateway, HttpPaymentGateway when omitted
            clock: Source of local time, LocalClock(TIMEZONE) when omitted
        """
        self.settings = settings

        # ==================== INFRASTRUCTURE ====================

        self.engine = engine or create_async_database_engine(settings)
        self.session_factory = create_session_factory(self.engine)
        self.redis = redis_client if redis_client is not None else create_redis_client(settings)

        self.keys = CacheKeys(settings.CACHE_KEY_PREFIX)
        self.cache_metrics = CacheMetrics()
        self.cache = ReadPathCache(self.redis if settings.CACHE_ENABLED else None, self.cache_metrics)

        self.publisher = DomainEventPublisher()
        self._subscribe_event_handlers()

        self.uow_factory = SQLAlchemyUnitOfWorkFactory(self.session_factory, self.publisher)
        self.gateway = gateway or HttpPaymentGateway(
            base_url=settings.PAYMENT_API_BASE_URL,
            api_key=settings.PAYMENT_API_KEY,
            currency=settings.PAYMENT_CURRENCY,
            timeout=settings.PAYMENT_API_TIMEOUT,
        )
        self.clock = clock or LocalClock(settings.TIMEZONE)

        defaults = AvailabilityDefaults(
            slot_duration_minutes=settings.DEFAULT_SLOT_DURATION_MINUTES,
            booking_advance_days_max=settings.DEFAULT_BOOKING_ADVANCE_DAYS,
            min_booking_hours_ahead=settings.DEFAULT_MIN_BOOKING_HOURS,
        )
        refund_calculator = RefundCalculator(
            full_refund_hours=settings.FULL_REFUND_HOURS,
            partial_refund_hours=settings.PARTIAL_REFUND_HOURS,
            partial_ratio=settings.PARTIAL_REFUND_RATIO,
        )
        commission = settings.DEFAULT_COMMISSION_PERCENTAGE
        delay = settings.PAYOUT_DELAY_HOURS

        # ==================== USE CASES ====================

        self.get_available_slots = GetAvailableSlotsUseCase(self.uow_factory, self.cache, self.keys, defaults)
        self.book_appointment = BookAppointmentUseCase(
            self.uow_factory,
            self.get_available_slots,
            self.clock,
            default_commission=commission,
            defaults=defaults,
        )
        self.reschedule_appointment = RescheduleAppointmentUseCase(
            self.uow_factory,
            self.get_available_slots,
            self.clock,
            payout_delay_hours=delay,
            defaults=defaults,
        )
        self.cancel_appointment = CancelAppointmentUseCase(
            self.uow_factory, self.gateway, self.clock, refund_calculator
        )
        self.update_appointment_status = UpdateAppointmentStatusUseCase(
            self.uow_factory, self.cancel_appointment, payout_delay_hours=delay
        )
        self.get_appointment = GetAppointmentUseCase(self.uow_factory)

        self.attach_payment_reference = AttachPaymentReferenceUseCase(self.uow_factory)
        self.confirm_payment = ConfirmPaymentUseCase(self.uow_factory, self.clock, payout_delay_hours=delay)
        self.mark_payment_failed = MarkPaymentFailedUseCase(self.uow_factory)
        self.confirm_payout = ConfirmPayoutUseCase(self.uow_factory, self.clock)
        self.mark_payout_reversed = MarkPayoutReversedUseCase(self.uow_factory)
        self.run_payout_sweep = RunPayoutSweepUseCase(self.uow_factory, self.gateway, self.clock)

        self.get_commission_percentage = GetCommissionPercentageUseCase(
            self.uow_factory, self.cache, self.keys, commission
        )
        self.update_commission_percentage = UpdateCommissionPercentageUseCase(
            self.uow_factory, self.cache, self.keys, commission
        )
        self.configure_provider = ConfigureProviderUseCase(self.uow_factory, self.cache, self.keys, defaults)

        # ==================== INBOUND EVENTS & JOBS ====================

        self.event_dispatcher = PaymentEventDispatcher(
            confirm_payment=self.confirm_payment,
            mark_payment_failed=self.mark_payment_failed,
            confirm_payout=self.confirm_payout,
            mark_payout_reversed=self.mark_payout_reversed,
            guard=EventIdempotencyGuard(self.redis, self.keys, settings.WEBHOOK_IDEMPOTENCY_TTL_HOURS),
        )
        self.payout_scheduler = PayoutScheduler(
            self.run_payout_sweep,
            interval_minutes=settings.PAYOUT_SWEEP_INTERVAL_MINUTES,
            timezone_name=settings.TIMEZONE,
            enabled=settings.PAYOUT_SWEEP_ENABLED,
        )

    # ==================== DOMAIN EVENT HANDLERS ====================

    def _subscribe_event_handlers(self) -> None:
        for event_type in (AppointmentBooked, AppointmentRescheduled, AppointmentStatusChanged):
            self.publisher.subscribe(event_type, self._invalidate_provider_slots)
        self.publisher.subscribe(SettlementNeedsManualIntervention, self._report_manual_intervention)

    async def _invalidate_provider_slots(self, event: DomainEvent) -> None:
        provider_id = getattr(event, "provider_id", None)
        if provider_id:
            removed = await self.cache.invalidate_pattern(self.keys.provider_slots_pattern(provider_id))
            logger.debug(f"{event.event_type}: dropped {removed} cached slot lists for provider {provider_id}")

    async def _report_manual_intervention(self, event: DomainEvent) -> None:
        logger.warning(
            f"Settlement {getattr(event, 'settlement_id', '?')} "
            f"(appointment {getattr(event, 'appointment_id', '?')}) needs manual intervention: "
            f"{getattr(event, 'reason', '')}"
        )

    # ==================== LIFECYCLE ====================

    async def close(self) -> None:
        """Release connections. Called on application shutdown."""
        await self.cache.drain()
        if isinstance(self.gateway, HttpPaymentGateway):
            await self.gateway.aclose()
        if self.redis is not None:
            await self.redis.aclose()
        await self.engine.dispose()
        logger.info("Scheduling container closed")
