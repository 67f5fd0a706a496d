"""
Payment Gateway Port

Outbound calls to the external payment provider. Amounts are integer minor
units. Implementations raise PaymentGatewayException on any failure.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class TransferResult:
    transfer_ref: str
    status: str | None = None


@dataclass(frozen=True)
class RefundResult:
    refund_ref: str
    status: str | None = None


@runtime_checkable
class IPaymentGateway(Protocol):
    async def create_transfer(
        self,
        amount_cents: int,
        destination_account: str,
        idempotency_key: str,
        metadata: dict[str, str] | None = None,
    ) -> TransferResult:
        """Move funds from the platform balance to a provider account."""
        ...

    async def create_refund(
        self,
        charge_ref: str,
        amount_cents: int,
        idempotency_key: str,
        metadata: dict[str, str] | None = None,
    ) -> RefundResult:
        """Refund part or all of a captured charge to the requester."""
        ...
