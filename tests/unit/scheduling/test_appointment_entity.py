"""Unit tests for the Appointment aggregate and its state machine."""

from datetime import date, datetime

import pytest

from medibook.core.domain import InvalidStatusTransitionException
from medibook.domains.scheduling.domain.entities import Appointment
from medibook.domains.scheduling.domain.events import (
    AppointmentBooked,
    AppointmentRescheduled,
    AppointmentStatusChanged,
)
from medibook.domains.scheduling.domain.value_objects import AppointmentStatus


def make_appointment(**overrides) -> Appointment:
    data = {
        "id": 1,
        "provider_id": "doc-1",
        "requester_id": "pat-9",
        "appointment_date": date(2025, 1, 10),
        "start_time": "14:00",
        "duration_minutes": 30,
    }
    data.update(overrides)
    return Appointment(**data)


@pytest.mark.unit
class TestAppointmentStatusTransitions:
    """Tests for the transition table."""

    @pytest.mark.parametrize(
        "current,target,allowed",
        [
            (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED, True),
            (AppointmentStatus.PENDING, AppointmentStatus.CANCELLED, True),
            (AppointmentStatus.PENDING, AppointmentStatus.COMPLETED, False),
            (AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED, True),
            (AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED, True),
            (AppointmentStatus.CONFIRMED, AppointmentStatus.PENDING, False),
            (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, False),
            (AppointmentStatus.CANCELLED, AppointmentStatus.CONFIRMED, False),
        ],
    )
    def test_transition_table(self, current, target, allowed) -> None:
        assert current.can_transition_to(target) is allowed

    def test_terminal_states(self) -> None:
        """Should treat COMPLETED and CANCELLED as terminal."""
        assert AppointmentStatus.COMPLETED.is_terminal()
        assert AppointmentStatus.CANCELLED.is_terminal()
        assert not AppointmentStatus.PENDING.is_terminal()

    @pytest.mark.parametrize("status", [AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED])
    def test_every_non_cancelled_state_blocks_slot(self, status) -> None:
        assert status.blocks_slot()

    def test_cancelled_frees_slot(self) -> None:
        assert not AppointmentStatus.CANCELLED.blocks_slot()

    def test_renders_as_bare_value(self) -> None:
        assert f"{AppointmentStatus.CONFIRMED}" == "CONFIRMED"


@pytest.mark.unit
class TestAppointmentLifecycle:
    """Tests for status changes on the aggregate."""

    def test_confirm_then_complete_records_events(self) -> None:
        """Should record one status event per transition."""
        appointment = make_appointment()

        appointment.confirm()
        appointment.complete()

        events = appointment.get_domain_events()
        assert appointment.status == AppointmentStatus.COMPLETED
        assert [e.new_status for e in events if isinstance(e, AppointmentStatusChanged)] == [
            "CONFIRMED",
            "COMPLETED",
        ]

    def test_invalid_transition_does_not_mutate(self) -> None:
        """Should raise and leave the status untouched."""
        appointment = make_appointment()

        with pytest.raises(InvalidStatusTransitionException) as exc_info:
            appointment.complete()

        assert exc_info.value.code == "INVALID_STATUS_TRANSITION"
        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.get_domain_events() == []

    def test_cancel_sets_reason_and_timestamp(self) -> None:
        appointment = make_appointment()
        now = datetime(2025, 1, 9, 13, 0)

        appointment.cancel("Feeling better", now)

        assert appointment.status == AppointmentStatus.CANCELLED
        assert appointment.cancellation_reason == "Feeling better"
        assert appointment.cancelled_at == now

    def test_cancelled_cannot_be_cancelled_again(self) -> None:
        appointment = make_appointment(status=AppointmentStatus.CANCELLED)

        with pytest.raises(InvalidStatusTransitionException):
            appointment.cancel(None, datetime(2025, 1, 9, 13, 0))

    def test_reschedule_returns_to_pending(self) -> None:
        """Should move the slot, reset to PENDING and record the previous slot."""
        appointment = make_appointment(status=AppointmentStatus.CONFIRMED)

        appointment.reschedule(date(2025, 1, 17), "10:00")

        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.appointment_date == date(2025, 1, 17)
        event = appointment.get_domain_events()[-1]
        assert isinstance(event, AppointmentRescheduled)
        assert (event.previous_date, event.previous_time) == ("2025-01-10", "14:00")

    def test_reschedule_of_completed_is_rejected(self) -> None:
        appointment = make_appointment(status=AppointmentStatus.COMPLETED)

        with pytest.raises(InvalidStatusTransitionException):
            appointment.reschedule(date(2025, 1, 17), "10:00")

    def test_mark_booked_records_event(self) -> None:
        appointment = make_appointment(id=7)

        appointment.mark_booked()

        event = appointment.get_domain_events()[0]
        assert isinstance(event, AppointmentBooked)
        assert (event.appointment_id, event.date, event.time) == (7, "2025-01-10", "14:00")


@pytest.mark.unit
class TestAppointmentOverlap:
    """Tests for conflicts_with."""

    def test_starts_and_ends_at_are_local_datetimes(self) -> None:
        appointment = make_appointment()
        assert appointment.starts_at == datetime(2025, 1, 10, 14, 0)
        assert appointment.ends_at == datetime(2025, 1, 10, 14, 30)

    def test_overlap_on_same_provider_and_day(self) -> None:
        new = make_appointment(id=None, start_time="14:15")
        assert new.conflicts_with(make_appointment()) is True

    def test_adjacent_slots_do_not_conflict(self) -> None:
        new = make_appointment(id=None, start_time="14:30")
        assert new.conflicts_with(make_appointment()) is False

    def test_cancelled_booking_does_not_conflict(self) -> None:
        new = make_appointment(id=None)
        assert new.conflicts_with(make_appointment(status=AppointmentStatus.CANCELLED)) is False

    def test_other_provider_does_not_conflict(self) -> None:
        new = make_appointment(id=None, provider_id="doc-2")
        assert new.conflicts_with(make_appointment()) is False

    def test_appointment_never_conflicts_with_itself(self) -> None:
        appointment = make_appointment()
        assert appointment.conflicts_with(appointment) is False
