"""
Commission Calculator

Splits an appointment price into the platform commission and the provider
payout. The percentage must be the one stored on the settlement, never a
since-changed platform rate.
"""

from dataclasses import dataclass
from decimal import Decimal

from medibook.core.domain import Percentage, ValidationException, to_money


@dataclass(frozen=True)
class CommissionSplit:
    price: Decimal
    percentage: Decimal
    commission_amount: Decimal
    payout_amount: Decimal


class CommissionCalculator:
    """Stateless commission split."""

    def calculate(self, price: Decimal, percentage: Decimal) -> CommissionSplit:
        """
        Split price by percentage.

        commission = round(price * percentage / 100, 2)
        payout = round(price - commission, 2)

        Raises:
            ValidationException: percentage outside (0, 100] or negative price
        """
        if price < 0:
            raise ValidationException("Price cannot be negative", field="price")
        try:
            rate = Percentage(percentage)
        except ValueError as e:
            raise ValidationException(str(e), code="INVALID_COMMISSION_PERCENTAGE", field="percentage") from e

        price = to_money(price)
        commission = rate.apply_to(price)
        payout = to_money(price - commission)
        return CommissionSplit(
            price=price,
            percentage=rate.value,
            commission_amount=commission,
            payout_amount=payout,
        )
