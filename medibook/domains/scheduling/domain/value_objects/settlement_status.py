"""
Settlement, refund and payout account states.
"""

from medibook.core.domain import StatusEnum


class SettlementStatus(StatusEnum):
    """Payment state of a settlement."""

    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"

    def is_payable(self) -> bool:
        """Whether a settlement in this state may be paid out to the provider."""
        return self in (SettlementStatus.COMPLETED, SettlementStatus.PARTIALLY_REFUNDED)


class RefundType(StatusEnum):
    """Cancellation refund tiers."""

    FULL = "FULL"
    PARTIAL = "PARTIAL"
    NO_REFUND = "NO_REFUND"


class RefundStatus(StatusEnum):
    """State of the money movement behind a refund record."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class PayoutAccountStatus(StatusEnum):
    """Onboarding state of a provider's external payout account."""

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    RESTRICTED = "RESTRICTED"
    DISABLED = "DISABLED"
