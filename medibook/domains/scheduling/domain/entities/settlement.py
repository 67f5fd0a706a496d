"""
Settlement Entity

The commission/payout/refund record tied 1:1 to a priced appointment.

While unrefunded, commission_amount + payout_amount == price. A refund adds
the waived commission back to payout_amount and never touches
commission_amount, so the original split stays auditable.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from medibook.core.domain import AggregateRoot, BusinessRuleViolationException, StateException, to_money

from ..events import SettlementNeedsManualIntervention
from ..value_objects import RefundType, SettlementStatus


@dataclass(eq=False)
class Settlement(AggregateRoot[int]):
    """
    Settlement aggregate.

    Mutated by inbound payment events, by cancellation refunds and by the
    payout sweep. Every mutator reports whether it changed anything so that
    duplicate events can be acknowledged as no-ops.
    """

    appointment_id: int = 0
    provider_id: str = ""

    # Split
    price: Decimal = Decimal("0.00")
    commission_amount: Decimal = Decimal("0.00")
    commission_percentage_used: Decimal = Decimal("0.00")
    payout_amount: Decimal = Decimal("0.00")

    status: SettlementStatus = SettlementStatus.PROCESSING

    # Requester side
    requester_paid: bool = False
    requester_paid_at: datetime | None = None
    payment_ref: str | None = None
    charge_ref: str | None = None

    # Provider side
    provider_paid: bool = False
    provider_paid_at: datetime | None = None
    payout_scheduled_at: datetime | None = None
    transfer_ref: str | None = None
    last_payout_error: str | None = None
    last_payout_attempt_at: datetime | None = None

    # Refund
    refunded: bool = False
    refund_amount: Decimal | None = None
    refund_type: RefundType | None = None

    # Manual intervention
    manual_intervention_required: bool = False
    manual_intervention_reason: str | None = None

    @property
    def is_split_balanced(self) -> bool:
        """commission + payout == price within one cent."""
        return abs(self.commission_amount + self.payout_amount - self.price) <= Decimal("0.01")

    def attach_payment_ref(self, payment_ref: str) -> bool:
        if self.payment_ref == payment_ref:
            return False
        if self.requester_paid:
            raise StateException(
                "Cannot replace the payment reference of a paid settlement",
                "PAYMENT_ALREADY_CAPTURED",
                {"settlement_id": str(self.id)},
            )
        self.payment_ref = payment_ref
        self.touch()
        return True

    # Payment events

    def confirm_payment(self, charge_ref: str | None, now: datetime) -> bool:
        """Record a successful charge. Returns False when already recorded."""
        if self.requester_paid:
            if charge_ref and not self.charge_ref:
                self.charge_ref = charge_ref
                self.touch()
            return False

        self.requester_paid = True
        self.requester_paid_at = now
        self.charge_ref = charge_ref
        if not self.refunded:
            self.status = SettlementStatus.COMPLETED
        self.touch()
        return True

    def mark_payment_failed(self) -> bool:
        """Record a failed charge. A late failure after success is ignored."""
        if self.requester_paid or self.status == SettlementStatus.FAILED:
            return False
        self.status = SettlementStatus.FAILED
        self.touch()
        return True

    # Payout

    def schedule_payout(self, appointment_starts_at: datetime, delay_hours: int) -> None:
        if self.provider_paid:
            return
        self.payout_scheduled_at = appointment_starts_at + timedelta(hours=delay_hours)
        self.touch()

    def is_due_for_payout(self, now: datetime) -> bool:
        return (
            self.requester_paid
            and not self.provider_paid
            and self.payout_scheduled_at is not None
            and self.payout_scheduled_at <= now
            and self.status.is_payable()
            and not self.manual_intervention_required
        )

    def mark_provider_paid(self, transfer_ref: str, now: datetime) -> bool:
        """
        Record the provider transfer.

        Raises:
            BusinessRuleViolationException: the requester has not paid or the
                payout is not yet due
        """
        if self.provider_paid:
            return False
        if not self.requester_paid:
            raise BusinessRuleViolationException(
                "payout_requires_payment",
                f"Settlement {self.id} cannot be paid out before the requester pays",
            )
        if self.payout_scheduled_at is None or self.payout_scheduled_at > now:
            raise BusinessRuleViolationException(
                "payout_not_due",
                f"Settlement {self.id} payout is not due yet",
                {"payout_scheduled_at": str(self.payout_scheduled_at)},
            )

        self.provider_paid = True
        self.provider_paid_at = now
        self.transfer_ref = transfer_ref
        self.last_payout_error = None
        self.last_payout_attempt_at = now
        self.touch()
        return True

    def record_payout_failure(self, error: str, now: datetime) -> None:
        self.last_payout_error = error[:500]
        self.last_payout_attempt_at = now
        self.touch()

    def reverse_payout(self) -> bool:
        """Undo a disbursed payout after the transfer was reversed or failed."""
        if not self.provider_paid:
            return False
        self.provider_paid = False
        self.provider_paid_at = None
        self.touch()
        return True

    # Refund

    def apply_refund(self, refund_type: RefundType, patient_refund: Decimal, commission_refund: Decimal) -> None:
        if self.refunded:
            raise StateException(
                "Settlement has already been refunded",
                "ALREADY_REFUNDED",
                {"settlement_id": str(self.id)},
            )

        self.refunded = True
        self.refund_amount = to_money(patient_refund)
        self.refund_type = refund_type
        self.status = (
            SettlementStatus.REFUNDED if self.refund_amount == self.price else SettlementStatus.PARTIALLY_REFUNDED
        )
        self.payout_amount = to_money(self.payout_amount + commission_refund)
        self.touch()

        if self.provider_paid and commission_refund > 0:
            self.require_manual_intervention(
                f"Refund of {commission_refund} commission after payout {self.transfer_ref} was disbursed"
            )

    def require_manual_intervention(self, reason: str) -> None:
        self.manual_intervention_required = True
        self.manual_intervention_reason = reason
        self.touch()
        self._record_event(
            SettlementNeedsManualIntervention(
                settlement_id=self.id or 0,
                appointment_id=self.appointment_id,
                reason=reason,
            )
        )
