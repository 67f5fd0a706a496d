"""
Availability Calculator

Derives bookable slot start times for one provider and one day from the
working-hours window, the slot granularity, an optional allow-list and the
bookings that already hold time on that day.
"""

from collections.abc import Iterable
from datetime import date

from ..entities import Appointment, ProviderAvailability, WorkingHours
from ..value_objects import TimeRange, format_time, parse_time


def day_of_week(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


class AvailabilityCalculator:
    """
    Pure slot computation. Fetching the inputs is the caller's job.
    """

    def candidate_slots(
        self,
        availability: ProviderAvailability,
        working_hours: WorkingHours | None,
        duration_minutes: int | None = None,
    ) -> list[TimeRange]:
        """Slots inside the working window, before removing booked time."""
        if working_hours is None or not working_hours.is_working:
            return []

        duration = duration_minutes or availability.slot_duration_minutes
        window = working_hours.window
        allowed = {parse_time(slot) for slot in availability.allowed_time_slots}

        candidates: list[TimeRange] = []
        start = window.start
        while start < window.end:
            slot = TimeRange(start=start, end=start + duration)
            if slot.end <= window.end and (not allowed or start in allowed):
                candidates.append(slot)
            start += availability.slot_duration_minutes
        return candidates

    def available_slots(
        self,
        availability: ProviderAvailability,
        working_hours: WorkingHours | None,
        bookings: Iterable[Appointment],
        duration_minutes: int | None = None,
    ) -> list[str]:
        """
        Compute free slot start times as HH:MM, ascending.

        Args:
            availability: Provider slot rules
            working_hours: Window for the target weekday, or None when not configured
            bookings: Appointments for the provider on the target date
            duration_minutes: Required length, defaults to the slot duration
        """
        taken = [b.time_range for b in bookings if b.status.blocks_slot()]
        free = [
            slot
            for slot in self.candidate_slots(availability, working_hours, duration_minutes)
            if not any(slot.overlaps_with(busy) for busy in taken)
        ]
        return [format_time(slot.start) for slot in sorted(free, key=lambda s: s.start)]
