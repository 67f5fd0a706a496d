"""
Scheduling Domain Entities
"""

from .appointment import Appointment
from .provider_schedule import (
    DEFAULT_BOOKING_ADVANCE_DAYS,
    DEFAULT_MIN_BOOKING_HOURS,
    DEFAULT_SLOT_DURATION_MINUTES,
    AppointmentType,
    PlatformSettings,
    ProviderAvailability,
    ProviderPaymentAccount,
    WorkingHours,
)
from .refund_record import RefundRecord
from .settlement import Settlement

__all__ = [
    "DEFAULT_BOOKING_ADVANCE_DAYS",
    "DEFAULT_MIN_BOOKING_HOURS",
    "DEFAULT_SLOT_DURATION_MINUTES",
    "Appointment",
    "AppointmentType",
    "PlatformSettings",
    "ProviderAvailability",
    "ProviderPaymentAccount",
    "RefundRecord",
    "Settlement",
    "WorkingHours",
]
