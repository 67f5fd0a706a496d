"""
Refund Calculator

Cancellation refunds by hours before the appointment:

- >= 24h: FULL, the requester gets the price back and the platform waives
  its whole commission
- >= 1h: PARTIAL, half of each
- otherwise NO_REFUND
"""

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from medibook.core.domain import to_money

from ..value_objects import RefundType


@dataclass(frozen=True)
class RefundCalculation:
    refund_type: RefundType
    patient_refund: Decimal
    commission_refund: Decimal
    hours_before: int


class RefundCalculator:
    def __init__(
        self,
        full_refund_hours: int = 24,
        partial_refund_hours: int = 1,
        partial_ratio: Decimal = Decimal("0.5"),
    ):
        self.full_refund_hours = full_refund_hours
        self.partial_refund_hours = partial_refund_hours
        self.partial_ratio = partial_ratio

    @staticmethod
    def hours_before(appointment_at: datetime, now: datetime) -> int:
        """Whole hours left until the appointment, floored."""
        return math.floor((appointment_at - now).total_seconds() / 3600)

    def calculate(
        self,
        price: Decimal,
        commission: Decimal,
        appointment_at: datetime,
        now: datetime,
    ) -> RefundCalculation:
        hours = self.hours_before(appointment_at, now)

        if hours >= self.full_refund_hours:
            return RefundCalculation(RefundType.FULL, to_money(price), to_money(commission), hours)

        if hours >= self.partial_refund_hours:
            return RefundCalculation(
                RefundType.PARTIAL,
                to_money(price * self.partial_ratio),
                to_money(commission * self.partial_ratio),
                hours,
            )

        return RefundCalculation(RefundType.NO_REFUND, Decimal("0.00"), Decimal("0.00"), hours)
