"""Unit tests for AvailabilityCalculator."""

from datetime import date

import pytest

from medibook.domains.scheduling.domain.entities import Appointment, ProviderAvailability, WorkingHours
from medibook.domains.scheduling.domain.services import AvailabilityCalculator, day_of_week
from medibook.domains.scheduling.domain.value_objects import AppointmentStatus

MONDAY = date(2025, 1, 6)


@pytest.fixture
def calculator() -> AvailabilityCalculator:
    return AvailabilityCalculator()


@pytest.fixture
def availability() -> ProviderAvailability:
    return ProviderAvailability(provider_id="doc-1", slot_duration_minutes=30)


@pytest.fixture
def monday_hours() -> WorkingHours:
    return WorkingHours(provider_id="doc-1", day_of_week=1, start_time="09:00", end_time="12:00")


def booking(start_time: str, duration: int = 30, status=AppointmentStatus.PENDING) -> Appointment:
    return Appointment(
        id=1,
        provider_id="doc-1",
        requester_id="pat-1",
        appointment_date=MONDAY,
        start_time=start_time,
        duration_minutes=duration,
        status=status,
    )


@pytest.mark.unit
class TestAvailableSlots:
    """Tests for slot generation."""

    def test_day_of_week_starts_on_sunday(self) -> None:
        assert day_of_week(date(2025, 1, 5)) == 0
        assert day_of_week(MONDAY) == 1
        assert day_of_week(date(2025, 1, 11)) == 6

    def test_free_morning(self, calculator, availability, monday_hours) -> None:
        """Should list every 30-minute slot of a 09:00-12:00 window."""
        slots = calculator.available_slots(availability, monday_hours, [])

        assert slots == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]

    def test_booked_slot_is_removed(self, calculator, availability, monday_hours) -> None:
        """Should drop a slot held by an active booking."""
        slots = calculator.available_slots(availability, monday_hours, [booking("09:30")])

        assert "09:30" not in slots
        assert slots == ["09:00", "10:00", "10:30", "11:00", "11:30"]

    def test_cancelled_booking_frees_slot(self, calculator, availability, monday_hours) -> None:
        slots = calculator.available_slots(
            availability, monday_hours, [booking("09:30", status=AppointmentStatus.CANCELLED)]
        )

        assert "09:30" in slots

    def test_longer_duration_blocks_overlapping_starts(self, calculator, availability, monday_hours) -> None:
        """Should require the whole duration to be free and inside the window."""
        slots = calculator.available_slots(availability, monday_hours, [booking("10:00")], duration_minutes=60)

        assert slots == ["09:00", "10:30", "11:00"]

    def test_not_working_day_has_no_slots(self, calculator, availability) -> None:
        off = WorkingHours(provider_id="doc-1", day_of_week=0, is_working=False)

        assert calculator.available_slots(availability, off, []) == []
        assert calculator.available_slots(availability, None, []) == []

    def test_allowed_slots_filter(self, calculator, monday_hours) -> None:
        """Should only offer allow-listed start times when configured."""
        availability = ProviderAvailability(
            provider_id="doc-1",
            slot_duration_minutes=30,
            allowed_time_slots=["11:00", "09:00"],
        )

        assert calculator.available_slots(availability, monday_hours, []) == ["09:00", "11:00"]
