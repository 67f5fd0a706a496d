"""
Scheduling Domain Services
"""

from .availability_calculator import AvailabilityCalculator, day_of_week
from .booking_policy import BookingPolicy, combine
from .commission_calculator import CommissionCalculator, CommissionSplit
from .refund_calculator import RefundCalculation, RefundCalculator

__all__ = [
    "AvailabilityCalculator",
    "BookingPolicy",
    "CommissionCalculator",
    "CommissionSplit",
    "RefundCalculation",
    "RefundCalculator",
    "combine",
    "day_of_week",
]
