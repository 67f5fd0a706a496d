"""
Refund Record Entity

Append-only trace of a cancellation refund, one per cancelled settlement.
"""

from dataclasses import dataclass
from decimal import Decimal

from medibook.core.domain import Entity

from ..value_objects import RefundStatus, RefundType


@dataclass(eq=False)
class RefundRecord(Entity[int]):
    settlement_id: int = 0
    amount: Decimal = Decimal("0.00")
    refund_type: RefundType = RefundType.NO_REFUND
    reason: str | None = None
    hours_before_appointment: int = 0
    external_refund_ref: str | None = None
    status: RefundStatus = RefundStatus.PENDING
    failure_reason: str | None = None
