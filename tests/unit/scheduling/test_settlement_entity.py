"""Unit tests for the Settlement aggregate."""

from datetime import datetime
from decimal import Decimal

import pytest

from medibook.core.domain import BusinessRuleViolationException, StateException
from medibook.domains.scheduling.domain.entities import Settlement
from medibook.domains.scheduling.domain.events import SettlementNeedsManualIntervention
from medibook.domains.scheduling.domain.value_objects import RefundType, SettlementStatus

STARTS_AT = datetime(2025, 1, 10, 14, 0)
PAID_AT = datetime(2025, 1, 9, 13, 5)


def make_settlement(**overrides) -> Settlement:
    data = {
        "id": 3,
        "appointment_id": 1,
        "provider_id": "doc-1",
        "price": Decimal("100.00"),
        "commission_amount": Decimal("5.00"),
        "commission_percentage_used": Decimal("5.00"),
        "payout_amount": Decimal("95.00"),
        "payment_ref": "pi_1",
    }
    data.update(overrides)
    return Settlement(**data)


def paid_settlement() -> Settlement:
    settlement = make_settlement()
    settlement.confirm_payment("ch_1", PAID_AT)
    settlement.schedule_payout(STARTS_AT, 2)
    return settlement


@pytest.mark.unit
class TestSettlementPayment:
    """Tests for inbound payment state."""

    def test_new_settlement_is_balanced_and_processing(self) -> None:
        settlement = make_settlement()

        assert settlement.status == SettlementStatus.PROCESSING
        assert settlement.is_split_balanced

    def test_confirm_payment_completes_settlement(self) -> None:
        settlement = make_settlement()

        changed = settlement.confirm_payment("ch_1", PAID_AT)

        assert changed is True
        assert settlement.status == SettlementStatus.COMPLETED
        assert settlement.requester_paid_at == PAID_AT
        assert settlement.charge_ref == "ch_1"

    def test_confirm_payment_twice_is_a_noop(self) -> None:
        """Should report no change on a replayed success."""
        settlement = make_settlement()
        settlement.confirm_payment("ch_1", PAID_AT)

        assert settlement.confirm_payment("ch_1", datetime(2025, 1, 9, 14, 0)) is False
        assert settlement.requester_paid_at == PAID_AT

    def test_late_failure_after_success_is_ignored(self) -> None:
        settlement = make_settlement()
        settlement.confirm_payment("ch_1", PAID_AT)

        assert settlement.mark_payment_failed() is False
        assert settlement.status == SettlementStatus.COMPLETED

    def test_failure_before_success(self) -> None:
        settlement = make_settlement()

        assert settlement.mark_payment_failed() is True
        assert settlement.status == SettlementStatus.FAILED
        assert settlement.mark_payment_failed() is False

    def test_payment_ref_cannot_change_after_capture(self) -> None:
        settlement = paid_settlement()

        with pytest.raises(StateException) as exc_info:
            settlement.attach_payment_ref("pi_2")

        assert exc_info.value.code == "PAYMENT_ALREADY_CAPTURED"


@pytest.mark.unit
class TestSettlementPayout:
    """Tests for payout eligibility and recording."""

    def test_payout_is_scheduled_two_hours_after_start(self) -> None:
        settlement = paid_settlement()

        assert settlement.payout_scheduled_at == datetime(2025, 1, 10, 16, 0)

    def test_due_only_after_scheduled_time(self) -> None:
        settlement = paid_settlement()

        assert settlement.is_due_for_payout(datetime(2025, 1, 10, 15, 59)) is False
        assert settlement.is_due_for_payout(datetime(2025, 1, 10, 16, 0)) is True

    def test_unpaid_settlement_is_never_due(self) -> None:
        settlement = make_settlement()
        settlement.schedule_payout(STARTS_AT, 2)

        assert settlement.is_due_for_payout(datetime(2025, 1, 11)) is False

    def test_manual_intervention_excludes_from_sweep(self) -> None:
        """Should hold the payout and publish an event."""
        settlement = paid_settlement()

        settlement.require_manual_intervention("Transfer tr_1 reversed")

        assert settlement.is_due_for_payout(datetime(2025, 1, 11)) is False
        event = settlement.get_domain_events()[-1]
        assert isinstance(event, SettlementNeedsManualIntervention)
        assert event.settlement_id == 3

    def test_mark_provider_paid(self) -> None:
        settlement = paid_settlement()
        now = datetime(2025, 1, 10, 16, 5)

        assert settlement.mark_provider_paid("tr_1", now) is True
        assert settlement.provider_paid_at == now
        assert settlement.mark_provider_paid("tr_2", now) is False
        assert settlement.transfer_ref == "tr_1"

    def test_mark_provider_paid_requires_payment(self) -> None:
        settlement = make_settlement()
        settlement.schedule_payout(STARTS_AT, 2)

        with pytest.raises(BusinessRuleViolationException) as exc_info:
            settlement.mark_provider_paid("tr_1", datetime(2025, 1, 11))

        assert exc_info.value.rule == "payout_requires_payment"

    def test_mark_provider_paid_before_due(self) -> None:
        settlement = paid_settlement()

        with pytest.raises(BusinessRuleViolationException) as exc_info:
            settlement.mark_provider_paid("tr_1", datetime(2025, 1, 10, 15, 0))

        assert exc_info.value.rule == "payout_not_due"

    def test_reverse_payout(self) -> None:
        settlement = paid_settlement()
        settlement.mark_provider_paid("tr_1", datetime(2025, 1, 10, 16, 5))

        assert settlement.reverse_payout() is True
        assert settlement.provider_paid is False
        assert settlement.reverse_payout() is False

    def test_failure_message_is_truncated(self) -> None:
        settlement = paid_settlement()

        settlement.record_payout_failure("x" * 600, datetime(2025, 1, 10, 16, 5))

        assert len(settlement.last_payout_error) == 500


@pytest.mark.unit
class TestSettlementRefund:
    """Tests for apply_refund."""

    def test_full_refund(self) -> None:
        """Should waive the commission into the payout amount."""
        settlement = paid_settlement()

        settlement.apply_refund(RefundType.FULL, Decimal("100.00"), Decimal("5.00"))

        assert settlement.status == SettlementStatus.REFUNDED
        assert settlement.refund_amount == Decimal("100.00")
        assert settlement.payout_amount == Decimal("100.00")
        assert settlement.commission_amount == Decimal("5.00")
        assert settlement.is_due_for_payout(datetime(2025, 1, 11)) is False

    def test_partial_refund_stays_payable(self) -> None:
        settlement = paid_settlement()

        settlement.apply_refund(RefundType.PARTIAL, Decimal("50.00"), Decimal("2.50"))

        assert settlement.status == SettlementStatus.PARTIALLY_REFUNDED
        assert settlement.payout_amount == Decimal("97.50")
        assert settlement.is_due_for_payout(datetime(2025, 1, 11)) is True

    def test_no_refund_keeps_payout(self) -> None:
        settlement = paid_settlement()

        settlement.apply_refund(RefundType.NO_REFUND, Decimal("0.00"), Decimal("0.00"))

        assert settlement.status == SettlementStatus.PARTIALLY_REFUNDED
        assert settlement.payout_amount == Decimal("95.00")

    def test_second_refund_is_rejected(self) -> None:
        settlement = paid_settlement()
        settlement.apply_refund(RefundType.FULL, Decimal("100.00"), Decimal("5.00"))

        with pytest.raises(StateException) as exc_info:
            settlement.apply_refund(RefundType.FULL, Decimal("100.00"), Decimal("5.00"))

        assert exc_info.value.code == "ALREADY_REFUNDED"

    def test_refund_after_disbursed_payout_needs_manual_intervention(self) -> None:
        settlement = paid_settlement()
        settlement.mark_provider_paid("tr_1", datetime(2025, 1, 10, 16, 5))

        settlement.apply_refund(RefundType.PARTIAL, Decimal("50.00"), Decimal("2.50"))

        assert settlement.manual_intervention_required is True
        assert "tr_1" in settlement.manual_intervention_reason
