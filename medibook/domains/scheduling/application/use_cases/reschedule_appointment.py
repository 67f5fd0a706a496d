"""
Reschedule Appointment Use Case
"""

import logging
from dataclasses import dataclass
from datetime import date

from medibook.core.domain import (
    EntityNotFoundException,
    InvalidStatusTransitionException,
    SlotNotAvailableException,
    StateException,
)
from medibook.core.shared.clock import Clock
from medibook.domains.scheduling.application.booking_support import (
    AvailabilityDefaults,
    ensure_slot_free,
    load_schedule,
)
from medibook.domains.scheduling.application.ports import IUnitOfWorkFactory
from medibook.domains.scheduling.domain.entities import Appointment
from medibook.domains.scheduling.domain.services import BookingPolicy
from medibook.domains.scheduling.domain.value_objects import AppointmentStatus

from .get_available_slots import GetAvailableSlotsUseCase

logger = logging.getLogger(__name__)


@dataclass
class RescheduleAppointmentRequest:
    appointment_id: int
    new_date: date
    new_time: str


class RescheduleAppointmentUseCase:
    """
    Move an active appointment to another slot.

    Runs the same validation, pre-check and serialized re-check as a new
    booking, with the appointment's own interval excluded from the overlap
    set. The appointment goes back to PENDING.
    """

    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        slots: GetAvailableSlotsUseCase,
        clock: Clock,
        payout_delay_hours: int = 2,
        defaults: AvailabilityDefaults | None = None,
        policy: BookingPolicy | None = None,
    ):
        self.uow_factory = uow_factory
        self.slots = slots
        self.clock = clock
        self.payout_delay_hours = payout_delay_hours
        self.defaults = defaults or AvailabilityDefaults()
        self.policy = policy or BookingPolicy()

    async def execute(self, request: RescheduleAppointmentRequest) -> Appointment:
        now = self.clock.now()

        async with self.uow_factory() as uow:
            current = await uow.appointments.get(request.appointment_id)
            if current is None:
                raise EntityNotFoundException("Appointment", request.appointment_id)
            availability, working_hours = await load_schedule(
                uow.providers, current.provider_id, request.new_date, self.defaults
            )

        if current.status.is_terminal():
            raise InvalidStatusTransitionException(current.status.value, AppointmentStatus.PENDING.value)

        hours_left = (current.starts_at - now).total_seconds() / 3600
        if hours_left < availability.min_booking_hours_ahead:
            raise StateException(
                f"Appointments can only be rescheduled up to {availability.min_booking_hours_ahead} hours before they start",
                "RESCHEDULE_TOO_LATE",
                {"appointment_id": str(current.id), "hours_left": round(hours_left, 2)},
            )

        self.policy.validate(
            request.new_date,
            request.new_time,
            current.duration_minutes,
            availability,
            working_hours,
            now,
        )

        free = await self.slots.compute(
            current.provider_id,
            request.new_date,
            current.duration_minutes,
            exclude_appointment_id=current.id,
        )
        if request.new_time not in free:
            raise SlotNotAvailableException(
                provider_id=current.provider_id,
                date=request.new_date.isoformat(),
                time=request.new_time,
            )

        async with self.uow_factory(serializable=True) as uow:
            await uow.providers.get_availability(current.provider_id, for_update=True)
            appointment = await uow.appointments.get(request.appointment_id, for_update=True)
            if appointment is None:
                raise EntityNotFoundException("Appointment", request.appointment_id)

            appointment.reschedule(request.new_date, request.new_time)
            await ensure_slot_free(uow, appointment)
            await uow.appointments.update(appointment)

            settlement = await uow.settlements.get_by_appointment(appointment.id, for_update=True)
            if settlement is not None and settlement.payout_scheduled_at is not None:
                settlement.schedule_payout(appointment.starts_at, self.payout_delay_hours)
                await uow.settlements.update(settlement)

            uow.track(appointment, settlement)
            await uow.commit()

        logger.info(
            f"Appointment {appointment.id} rescheduled to {appointment.appointment_date} at {appointment.start_time}"
        )
        return appointment
