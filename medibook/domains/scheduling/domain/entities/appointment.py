"""
Appointment Entity

Represents a booked time interval between a provider and a requester.
Status only changes through the methods below, which enforce the
transition table of AppointmentStatus.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from medibook.core.domain import AggregateRoot, InvalidStatusTransitionException

from ..events import AppointmentBooked, AppointmentRescheduled, AppointmentStatusChanged
from ..value_objects import AppointmentStatus, TimeRange, parse_time


@dataclass(eq=False)
class Appointment(AggregateRoot[int]):
    """
    Appointment aggregate root.

    Example:
        ```python
        appointment = Appointment(
            provider_id="doc-1",
            requester_id="pat-9",
            appointment_date=date(2025, 1, 10),
            start_time="14:00",
            duration_minutes=30,
        )
        appointment.confirm()
        appointment.complete()
        ```
    """

    provider_id: str = ""
    requester_id: str = ""

    # Scheduling
    appointment_date: date | None = None
    start_time: str = ""
    duration_minutes: int = 30
    appointment_type_id: int | None = None
    requires_payment: bool = False

    status: AppointmentStatus = AppointmentStatus.PENDING

    reason: str | None = None
    notes: str | None = None

    # Cancellation
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None

    @property
    def starts_at(self) -> datetime:
        """Local start datetime."""
        minutes = parse_time(self.start_time)
        return datetime.combine(self.appointment_date, datetime.min.time()) + timedelta(minutes=minutes)

    @property
    def ends_at(self) -> datetime:
        return self.starts_at + timedelta(minutes=self.duration_minutes)

    @property
    def time_range(self) -> TimeRange:
        return TimeRange.starting_at(self.start_time, self.duration_minutes)

    def conflicts_with(self, other: "Appointment") -> bool:
        """Same provider, same day, overlapping interval, and both holding their slot."""
        if other.id is not None and other.id == self.id:
            return False
        if other.provider_id != self.provider_id or other.appointment_date != self.appointment_date:
            return False
        if not other.status.blocks_slot():
            return False
        return self.time_range.overlaps_with(other.time_range)

    def mark_booked(self) -> None:
        """Record the booking event once the row has an id."""
        self._record_event(
            AppointmentBooked(
                appointment_id=self.id or 0,
                provider_id=self.provider_id,
                date=self.appointment_date.isoformat() if self.appointment_date else "",
                time=self.start_time,
            )
        )

    # Status Transitions

    def transition_to(self, new_status: AppointmentStatus) -> None:
        """Move to new_status or raise without mutating."""
        if not self.status.can_transition_to(new_status):
            raise InvalidStatusTransitionException(self.status.value, new_status.value)

        previous = self.status
        self.status = new_status
        self.touch()
        self._record_event(
            AppointmentStatusChanged(
                appointment_id=self.id or 0,
                provider_id=self.provider_id,
                previous_status=previous.value,
                new_status=new_status.value,
            )
        )

    def confirm(self) -> None:
        self.transition_to(AppointmentStatus.CONFIRMED)

    def complete(self) -> None:
        self.transition_to(AppointmentStatus.COMPLETED)

    def cancel(self, reason: str | None, now: datetime) -> None:
        """Cancel the appointment."""
        self.transition_to(AppointmentStatus.CANCELLED)
        self.cancellation_reason = reason
        self.cancelled_at = now

    def reschedule(self, new_date: date, new_time: str) -> None:
        """Move to a new slot. The appointment must be confirmed again."""
        if self.status.is_terminal():
            raise InvalidStatusTransitionException(self.status.value, AppointmentStatus.PENDING.value)

        previous_date, previous_time = self.appointment_date, self.start_time
        self.appointment_date = new_date
        self.start_time = new_time
        self.status = AppointmentStatus.PENDING
        self.touch()
        self._record_event(
            AppointmentRescheduled(
                appointment_id=self.id or 0,
                provider_id=self.provider_id,
                previous_date=previous_date.isoformat() if previous_date else "",
                previous_time=previous_time,
                date=new_date.isoformat(),
                time=new_time,
            )
        )
