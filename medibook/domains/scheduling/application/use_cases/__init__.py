"""
Scheduling Use Cases

Application layer use cases for booking, settlement and payouts.
"""

from .book_appointment import BookAppointmentRequest, BookAppointmentUseCase
from .cancel_appointment import CancelAppointmentResponse, CancelAppointmentUseCase
from .commission_settings import GetCommissionPercentageUseCase, UpdateCommissionPercentageUseCase
from .configure_provider import ConfigureProviderUseCase
from .get_appointment import AppointmentDetails, GetAppointmentUseCase
from .get_available_slots import GetAvailableSlotsUseCase
from .payment_events import AttachPaymentReferenceUseCase, ConfirmPaymentUseCase, MarkPaymentFailedUseCase
from .payouts import (
    ConfirmPayoutUseCase,
    MarkPayoutReversedUseCase,
    PayoutSweepResult,
    RunPayoutSweepUseCase,
)
from .reschedule_appointment import RescheduleAppointmentRequest, RescheduleAppointmentUseCase
from .update_appointment_status import UpdateAppointmentStatusUseCase

__all__ = [
    # Booking
    "BookAppointmentRequest",
    "BookAppointmentUseCase",
    "GetAvailableSlotsUseCase",
    "GetAppointmentUseCase",
    "AppointmentDetails",
    "RescheduleAppointmentRequest",
    "RescheduleAppointmentUseCase",
    # Lifecycle
    "UpdateAppointmentStatusUseCase",
    "CancelAppointmentUseCase",
    "CancelAppointmentResponse",
    # Payments
    "AttachPaymentReferenceUseCase",
    "ConfirmPaymentUseCase",
    "MarkPaymentFailedUseCase",
    # Payouts
    "RunPayoutSweepUseCase",
    "PayoutSweepResult",
    "ConfirmPayoutUseCase",
    "MarkPayoutReversedUseCase",
    # Configuration
    "ConfigureProviderUseCase",
    "GetCommissionPercentageUseCase",
    "UpdateCommissionPercentageUseCase",
]
