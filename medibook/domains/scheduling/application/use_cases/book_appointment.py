"""
Book Appointment Use Case

Validates the request, pre-checks the slot, then inserts the appointment and
its settlement inside a SERIALIZABLE transaction that re-checks for overlap.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from medibook.core.domain import SlotNotAvailableException, ValidationException
from medibook.core.shared.clock import Clock
from medibook.domains.scheduling.application.booking_support import (
    AvailabilityDefaults,
    ensure_slot_free,
    load_schedule,
)
from medibook.domains.scheduling.application.ports import IUnitOfWork, IUnitOfWorkFactory
from medibook.domains.scheduling.domain.entities import Appointment, AppointmentType, Settlement
from medibook.domains.scheduling.domain.services import BookingPolicy, CommissionCalculator
from medibook.domains.scheduling.domain.value_objects import AppointmentStatus, SettlementStatus

from .get_available_slots import GetAvailableSlotsUseCase

logger = logging.getLogger(__name__)


@dataclass
class BookAppointmentRequest:
    """Request for booking an appointment."""

    provider_id: str
    requester_id: str
    appointment_date: date
    start_time: str
    duration_minutes: int | None = None
    appointment_type_id: int | None = None
    reason: str | None = None
    notes: str | None = None


class BookAppointmentUseCase:
    """
    Use case for booking appointments.

    The pre-check gives callers a cheap SLOT_NOT_AVAILABLE for slots that are
    visibly taken; the in-transaction re-check is what guarantees no overlap.
    """

    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        slots: GetAvailableSlotsUseCase,
        clock: Clock,
        default_commission: Decimal = Decimal("5.00"),
        defaults: AvailabilityDefaults | None = None,
        policy: BookingPolicy | None = None,
        commission_calculator: CommissionCalculator | None = None,
    ):
        """
        Initialize use case with dependencies.

        Args:
            uow_factory: Creates units of work
            slots: Slot computation used for the pre-check
            clock: Source of local "now"
            default_commission: Commission used when platform settings do not exist yet
        """
        self.uow_factory = uow_factory
        self.slots = slots
        self.clock = clock
        self.default_commission = default_commission
        self.defaults = defaults or AvailabilityDefaults()
        self.policy = policy or BookingPolicy()
        self.commission_calculator = commission_calculator or CommissionCalculator()

    async def execute(self, request: BookAppointmentRequest) -> Appointment:
        """
        Book an appointment.

        Returns:
            The persisted appointment in PENDING status

        Raises:
            ValidationException: booking rules rejected the request
            SlotNotAvailableException: the pre-check found the slot taken
            SlotConflictException: a concurrent booking won the slot
        """
        now = self.clock.now()

        # 1. Provider rules and appointment type
        async with self.uow_factory() as uow:
            availability, working_hours = await load_schedule(
                uow.providers, request.provider_id, request.appointment_date, self.defaults
            )
            appointment_type = await self._resolve_type(uow, request)

        if appointment_type is not None:
            duration = appointment_type.duration_minutes
        else:
            duration = request.duration_minutes or availability.slot_duration_minutes

        # 2. Business rules
        self.policy.validate(request.appointment_date, request.start_time, duration, availability, working_hours, now)

        # 3. Pre-check
        free = await self.slots.compute(request.provider_id, request.appointment_date, duration)
        if request.start_time not in free:
            raise SlotNotAvailableException(
                provider_id=request.provider_id,
                date=request.appointment_date.isoformat(),
                time=request.start_time,
            )

        # 4. Serialized insert with re-check
        appointment = Appointment(
            provider_id=request.provider_id,
            requester_id=request.requester_id,
            appointment_date=request.appointment_date,
            start_time=request.start_time,
            duration_minutes=duration,
            appointment_type_id=appointment_type.id if appointment_type else None,
            requires_payment=bool(appointment_type and appointment_type.is_billable),
            status=AppointmentStatus.PENDING,
            reason=request.reason,
            notes=request.notes,
        )

        async with self.uow_factory(serializable=True) as uow:
            await uow.providers.get_availability(request.provider_id, for_update=True)
            await ensure_slot_free(uow, appointment)

            await uow.appointments.add(appointment)
            if appointment_type is not None and appointment_type.is_billable:
                await self._create_settlement(uow, appointment, appointment_type)

            appointment.mark_booked()
            uow.track(appointment)
            await uow.commit()

        logger.info(
            f"Appointment booked: {appointment.id} for provider {appointment.provider_id} "
            f"on {appointment.appointment_date} at {appointment.start_time}"
        )
        return appointment

    async def _resolve_type(self, uow: IUnitOfWork, request: BookAppointmentRequest) -> AppointmentType | None:
        if request.appointment_type_id is None:
            return None
        appointment_type = await uow.providers.get_appointment_type(request.appointment_type_id)
        if (
            appointment_type is None
            or appointment_type.provider_id != request.provider_id
            or not appointment_type.is_active
        ):
            raise ValidationException(
                "Appointment type does not exist or is not offered by this provider",
                code="INVALID_APPOINTMENT_TYPE",
                field="appointment_type_id",
            )
        return appointment_type

    async def _create_settlement(
        self,
        uow: IUnitOfWork,
        appointment: Appointment,
        appointment_type: AppointmentType,
    ) -> Settlement:
        platform = await uow.platform_settings.get_or_create(self.default_commission)
        split = self.commission_calculator.calculate(appointment_type.price, platform.commission_percentage)

        settlement = Settlement(
            appointment_id=appointment.id,
            provider_id=appointment.provider_id,
            price=split.price,
            commission_amount=split.commission_amount,
            commission_percentage_used=split.percentage,
            payout_amount=split.payout_amount,
            status=SettlementStatus.PROCESSING,
        )
        await uow.settlements.add(settlement)
        logger.debug(
            f"Settlement {settlement.id} created for appointment {appointment.id}: "
            f"commission {split.commission_amount}, payout {split.payout_amount}"
        )
        return settlement
