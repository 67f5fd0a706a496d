"""
Integration tests for booking, rescheduling and cancelling against SQLite.

Transactions run with BEGIN IMMEDIATE (see conftest), so concurrent writers
are serialized the way SERIALIZABLE transactions are on PostgreSQL.
"""

import asyncio
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from medibook.core.domain import (
    ConflictException,
    EntityNotFoundException,
    InvalidStatusTransitionException,
    SlotConflictException,
    SlotNotAvailableException,
    StateException,
    ValidationException,
)
from medibook.domains.scheduling.application.use_cases import BookAppointmentRequest, RescheduleAppointmentRequest
from medibook.domains.scheduling.domain.value_objects import AppointmentStatus, SettlementStatus

from conftest import APPOINTMENT_DAY, PROVIDER_ID, REQUESTER_ID


def booking_request(start_time: str = "14:00", **overrides) -> BookAppointmentRequest:
    data = {
        "provider_id": PROVIDER_ID,
        "requester_id": REQUESTER_ID,
        "appointment_date": APPOINTMENT_DAY,
        "start_time": start_time,
    }
    data.update(overrides)
    return BookAppointmentRequest(**data)


@pytest.mark.integration
class TestBookAppointment:
    """Tests for BookAppointmentUseCase with a real database."""

    @pytest.mark.asyncio
    async def test_paid_booking_creates_settlement(self, container, configured_provider) -> None:
        """Should split 100.00 into 5.00 commission and 95.00 payout."""
        appointment = await container.book_appointment.execute(
            booking_request(appointment_type_id=configured_provider["paid_type_id"], reason="Checkup")
        )

        details = await container.get_appointment.execute(appointment.id)

        assert appointment.id is not None
        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.requires_payment is True
        assert details.settlement is not None
        assert details.settlement.price == Decimal("100.00")
        assert details.settlement.commission_amount == Decimal("5.00")
        assert details.settlement.commission_percentage_used == Decimal("5.00")
        assert details.settlement.payout_amount == Decimal("95.00")
        assert details.settlement.status == SettlementStatus.PROCESSING
        assert details.refunds == []

    @pytest.mark.asyncio
    async def test_free_booking_has_no_settlement(self, container, configured_provider) -> None:
        appointment = await container.book_appointment.execute(
            booking_request(appointment_type_id=configured_provider["free_type_id"])
        )

        details = await container.get_appointment.execute(appointment.id)

        assert appointment.requires_payment is False
        assert details.settlement is None

    @pytest.mark.asyncio
    async def test_booked_slot_disappears_from_availability(self, container, configured_provider) -> None:
        await container.book_appointment.execute(booking_request("14:00"))

        slots = await container.get_available_slots.execute(PROVIDER_ID, APPOINTMENT_DAY)

        assert "14:00" not in slots
        assert "13:30" in slots
        assert "14:30" in slots

    @pytest.mark.asyncio
    async def test_same_slot_twice_is_not_available(self, container, configured_provider) -> None:
        await container.book_appointment.execute(booking_request("14:00"))

        with pytest.raises(SlotNotAvailableException) as exc_info:
            await container.book_appointment.execute(booking_request("14:00", requester_id="pat-2"))

        assert exc_info.value.code == "SLOT_NOT_AVAILABLE"
        assert exc_info.value.details == {"provider_id": PROVIDER_ID, "date": "2025-01-10", "time": "14:00"}

    @pytest.mark.asyncio
    async def test_completed_appointment_keeps_its_slot(self, container, configured_provider) -> None:
        """Should not offer or rebook an interval held by a completed appointment."""
        appointment = await container.book_appointment.execute(booking_request("14:00"))
        await container.update_appointment_status.execute(appointment.id, AppointmentStatus.CONFIRMED)
        await container.update_appointment_status.execute(appointment.id, AppointmentStatus.COMPLETED)

        slots = await container.get_available_slots.execute(PROVIDER_ID, APPOINTMENT_DAY)
        assert "14:00" not in slots

        with pytest.raises(SlotNotAvailableException) as exc_info:
            await container.book_appointment.execute(booking_request("14:00", requester_id="pat-2"))

        assert exc_info.value.code == "SLOT_NOT_AVAILABLE"

    @pytest.mark.asyncio
    async def test_concurrent_bookings_only_one_wins(self, container, configured_provider) -> None:
        """Should let exactly one of two simultaneous requests take the slot."""
        results = await asyncio.gather(
            container.book_appointment.execute(booking_request("14:00", requester_id="pat-1")),
            container.book_appointment.execute(booking_request("14:00", requester_id="pat-2")),
            return_exceptions=True,
        )

        booked = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, Exception)]
        assert len(booked) == 1
        assert len(rejected) == 1
        assert isinstance(rejected[0], ConflictException)
        assert rejected[0].code in ("SLOT_CONFLICT", "SLOT_NOT_AVAILABLE")

    @pytest.mark.asyncio
    async def test_concurrent_bookings_past_precheck(self, container, configured_provider) -> None:
        """Should reject the loser with SLOT_CONFLICT when both requests pass the pre-check."""
        precheck = AsyncMock(return_value=["14:00"])
        with patch.object(container.book_appointment.slots, "compute", precheck):
            results = await asyncio.gather(
                container.book_appointment.execute(booking_request("14:00", requester_id="pat-1")),
                container.book_appointment.execute(booking_request("14:00", requester_id="pat-2")),
                return_exceptions=True,
            )

        booked = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, Exception)]
        assert [a.status for a in booked] == [AppointmentStatus.PENDING]
        assert len(rejected) == 1
        assert isinstance(rejected[0], SlotConflictException)

    @pytest.mark.asyncio
    async def test_recheck_catches_booking_missed_by_precheck(self, container, configured_provider) -> None:
        """Should raise SLOT_CONFLICT when the pre-check saw a stale view."""
        await container.book_appointment.execute(booking_request("14:00"))

        stale = AsyncMock(return_value=["14:00"])
        with patch.object(container.book_appointment.slots, "compute", stale):
            with pytest.raises(SlotConflictException) as exc_info:
                await container.book_appointment.execute(booking_request("14:00", requester_id="pat-2"))

        assert exc_info.value.code == "SLOT_CONFLICT"

    @pytest.mark.asyncio
    async def test_adjacent_slots_can_both_be_booked(self, container, configured_provider) -> None:
        first = await container.book_appointment.execute(booking_request("14:00"))
        second = await container.book_appointment.execute(booking_request("14:30"))

        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_unknown_appointment_type(self, container, configured_provider) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await container.book_appointment.execute(booking_request(appointment_type_id=9999))

        assert exc_info.value.code == "INVALID_APPOINTMENT_TYPE"

    @pytest.mark.asyncio
    async def test_day_off_is_rejected(self, container, configured_provider) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await container.book_appointment.execute(booking_request(appointment_date=date(2025, 1, 11)))

        assert exc_info.value.code == "DOCTOR_NOT_WORKING"

    @pytest.mark.asyncio
    async def test_outside_working_hours(self, container, configured_provider) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await container.book_appointment.execute(booking_request("16:45"))

        assert exc_info.value.code == "APPOINTMENT_EXCEEDS_WORKING_HOURS"


@pytest.mark.integration
class TestCancelAndReschedule:
    """Tests for slot release and movement."""

    @pytest.mark.asyncio
    async def test_cancellation_frees_the_slot(self, container, configured_provider) -> None:
        appointment = await container.book_appointment.execute(booking_request("14:00"))

        response = await container.cancel_appointment.execute(appointment.id, "Travelling")

        assert response.appointment.status == AppointmentStatus.CANCELLED
        assert response.appointment.cancellation_reason == "Travelling"
        assert response.refund is None
        rebooked = await container.book_appointment.execute(booking_request("14:00", requester_id="pat-2"))
        assert rebooked.id != appointment.id

    @pytest.mark.asyncio
    async def test_cancel_twice_is_rejected(self, container, configured_provider) -> None:
        appointment = await container.book_appointment.execute(booking_request("14:00"))
        await container.cancel_appointment.execute(appointment.id)

        with pytest.raises(InvalidStatusTransitionException):
            await container.cancel_appointment.execute(appointment.id)

    @pytest.mark.asyncio
    async def test_cancel_unknown_appointment(self, container, configured_provider) -> None:
        with pytest.raises(EntityNotFoundException):
            await container.cancel_appointment.execute(404)

    @pytest.mark.asyncio
    async def test_reschedule_into_overlapping_own_slot(self, container, configured_provider) -> None:
        """Should ignore the appointment's own interval when moving it by 30 minutes."""
        appointment = await container.book_appointment.execute(
            booking_request("14:00", appointment_type_id=configured_provider["paid_type_id"])
        )

        moved = await container.reschedule_appointment.execute(
            RescheduleAppointmentRequest(appointment.id, APPOINTMENT_DAY, "14:30")
        )

        assert moved.start_time == "14:30"
        assert moved.status == AppointmentStatus.PENDING
        slots = await container.get_available_slots.execute(PROVIDER_ID, APPOINTMENT_DAY)
        assert "14:00" in slots
        assert "14:30" not in slots

    @pytest.mark.asyncio
    async def test_reschedule_onto_taken_slot(self, container, configured_provider) -> None:
        appointment = await container.book_appointment.execute(booking_request("14:00"))
        await container.book_appointment.execute(booking_request("15:00", requester_id="pat-2"))

        with pytest.raises(SlotNotAvailableException):
            await container.reschedule_appointment.execute(
                RescheduleAppointmentRequest(appointment.id, APPOINTMENT_DAY, "15:00")
            )

    @pytest.mark.asyncio
    async def test_reschedule_too_late(self, container, configured_provider, clock) -> None:
        """Should refuse to move an appointment that starts within the minimum notice."""
        appointment = await container.book_appointment.execute(booking_request("14:00"))
        clock.advance(hours=24, minutes=30)

        with pytest.raises(StateException) as exc_info:
            await container.reschedule_appointment.execute(
                RescheduleAppointmentRequest(appointment.id, APPOINTMENT_DAY, "16:00")
            )

        assert exc_info.value.code == "RESCHEDULE_TOO_LATE"

    @pytest.mark.asyncio
    async def test_completed_appointment_cannot_move(self, container, configured_provider) -> None:
        appointment = await container.book_appointment.execute(booking_request("14:00"))
        await container.update_appointment_status.execute(appointment.id, AppointmentStatus.CONFIRMED)
        await container.update_appointment_status.execute(appointment.id, AppointmentStatus.COMPLETED)

        with pytest.raises(InvalidStatusTransitionException):
            await container.reschedule_appointment.execute(
                RescheduleAppointmentRequest(appointment.id, APPOINTMENT_DAY, "16:00")
            )
