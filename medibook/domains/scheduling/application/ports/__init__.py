"""
Scheduling Application Ports
"""

from .payment_gateway import IPaymentGateway, RefundResult, TransferResult
from .repositories import (
    IAppointmentRepository,
    IPlatformSettingsRepository,
    IProviderRepository,
    ISettlementRepository,
)
from .unit_of_work import IUnitOfWork, IUnitOfWorkFactory

__all__ = [
    "IAppointmentRepository",
    "IPaymentGateway",
    "IPlatformSettingsRepository",
    "IProviderRepository",
    "ISettlementRepository",
    "IUnitOfWork",
    "IUnitOfWorkFactory",
    "RefundResult",
    "TransferResult",
]
