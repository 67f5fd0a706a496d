"""
Booking Policy

Business-rule validation shared by booking and rescheduling. Runs before any
slot check, so a request that fails here never touches the booking table.
"""

from datetime import date, datetime, timedelta

from medibook.core.domain import ValidationException

from ..entities import ProviderAvailability, WorkingHours
from ..value_objects import TimeRange, is_valid_time, parse_time


def combine(appointment_date: date, start_time: str) -> datetime:
    """Local datetime for a date and an HH:MM string."""
    return datetime.combine(appointment_date, datetime.min.time()) + timedelta(minutes=parse_time(start_time))


class BookingPolicy:
    def validate(
        self,
        appointment_date: date,
        start_time: str,
        duration_minutes: int,
        availability: ProviderAvailability,
        working_hours: WorkingHours | None,
        now: datetime,
    ) -> None:
        """
        Check format, booking window and working-hours containment, in that order.

        Raises:
            ValidationException: with one of INVALID_TIME_FORMAT, INVALID_DATE,
                BOOKING_TOO_FAR_ADVANCE, BOOKING_TOO_SOON, DOCTOR_NOT_WORKING,
                APPOINTMENT_EXCEEDS_WORKING_HOURS
        """
        if not is_valid_time(start_time):
            raise ValidationException(
                "Invalid time format. Use HH:MM (24-hour)",
                code="INVALID_TIME_FORMAT",
                field="time",
            )
        if duration_minutes <= 0:
            raise ValidationException("Duration must be positive", field="duration")

        starts_at = combine(appointment_date, start_time)
        if starts_at <= now:
            raise ValidationException("Appointment date must be in the future", code="INVALID_DATE", field="date")

        days_until = (appointment_date - now.date()).days
        if days_until > availability.booking_advance_days_max:
            raise ValidationException(
                f"Appointments can only be booked up to {availability.booking_advance_days_max} days in advance",
                code="BOOKING_TOO_FAR_ADVANCE",
                details={"max_days": availability.booking_advance_days_max, "days_until": days_until},
            )

        hours_until = (starts_at - now).total_seconds() / 3600
        if hours_until < availability.min_booking_hours_ahead:
            raise ValidationException(
                f"Appointments must be booked at least {availability.min_booking_hours_ahead} hours in advance",
                code="BOOKING_TOO_SOON",
                details={"min_hours": availability.min_booking_hours_ahead},
            )

        if working_hours is None or not working_hours.is_working:
            raise ValidationException(
                "The provider is not working on the selected day",
                code="DOCTOR_NOT_WORKING",
                field="date",
            )

        requested = TimeRange.starting_at(start_time, duration_minutes)
        if not working_hours.window.contains(requested):
            raise ValidationException(
                f"Appointment must fit within working hours {working_hours.start_time}-{working_hours.end_time}",
                code="APPOINTMENT_EXCEEDS_WORKING_HOURS",
                field="time",
            )
