"""
Helpers shared by the booking and rescheduling use cases.
"""

from dataclasses import dataclass
from datetime import date

from medibook.core.domain import SlotConflictException
from medibook.domains.scheduling.domain.entities import (
    DEFAULT_BOOKING_ADVANCE_DAYS,
    DEFAULT_MIN_BOOKING_HOURS,
    DEFAULT_SLOT_DURATION_MINUTES,
    Appointment,
    ProviderAvailability,
    WorkingHours,
)
from medibook.domains.scheduling.domain.services import day_of_week

from .ports import IProviderRepository, IUnitOfWork
from .queries import AppointmentQuery


@dataclass(frozen=True)
class AvailabilityDefaults:
    """Booking window used for providers without an availability row."""

    slot_duration_minutes: int = DEFAULT_SLOT_DURATION_MINUTES
    booking_advance_days_max: int = DEFAULT_BOOKING_ADVANCE_DAYS
    min_booking_hours_ahead: int = DEFAULT_MIN_BOOKING_HOURS

    def for_provider(self, provider_id: str) -> ProviderAvailability:
        return ProviderAvailability(
            provider_id=provider_id,
            slot_duration_minutes=self.slot_duration_minutes,
            booking_advance_days_max=self.booking_advance_days_max,
            min_booking_hours_ahead=self.min_booking_hours_ahead,
        )


async def load_schedule(
    providers: IProviderRepository,
    provider_id: str,
    target_date: date,
    defaults: AvailabilityDefaults,
    for_update: bool = False,
) -> tuple[ProviderAvailability, WorkingHours | None]:
    """Availability rules and the working window for the weekday of target_date."""
    availability = await providers.get_availability(provider_id, for_update=for_update)
    if availability is None:
        availability = defaults.for_provider(provider_id)
    working_hours = await providers.get_working_hours(provider_id, day_of_week(target_date))
    return availability, working_hours


async def ensure_slot_free(uow: IUnitOfWork, appointment: Appointment) -> None:
    """
    Re-check overlap inside the booking transaction.

    Raises:
        SlotConflictException: another blocking appointment overlaps
    """
    existing = await uow.appointments.find(
        AppointmentQuery.blocking(appointment.provider_id, appointment.appointment_date, exclude_id=appointment.id)
    )
    if any(appointment.conflicts_with(other) for other in existing):
        raise SlotConflictException(
            provider_id=appointment.provider_id,
            date=appointment.appointment_date.isoformat(),
            time=appointment.start_time,
        )
