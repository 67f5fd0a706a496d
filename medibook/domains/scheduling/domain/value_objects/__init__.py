"""
Scheduling Domain Value Objects
"""

from .appointment_status import APPOINTMENT_TRANSITIONS, BLOCKING_STATUSES, AppointmentStatus
from .settlement_status import PayoutAccountStatus, RefundStatus, RefundType, SettlementStatus
from .time_range import TimeRange, format_time, is_valid_time, parse_time

__all__ = [
    "APPOINTMENT_TRANSITIONS",
    "BLOCKING_STATUSES",
    "AppointmentStatus",
    "SettlementStatus",
    "RefundType",
    "RefundStatus",
    "PayoutAccountStatus",
    "TimeRange",
    "format_time",
    "is_valid_time",
    "parse_time",
]
