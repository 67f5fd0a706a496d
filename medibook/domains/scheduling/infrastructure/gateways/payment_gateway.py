"""
Payment Provider HTTP Gateway

Async client for the payment provider's REST API, used for provider payouts
(transfers) and cancellation refunds.

Connection Details:
    - Base URL: PAYMENT_API_BASE_URL (default https://api.stripe.com/v1)
    - Auth: Bearer secret key
    - Body: application/x-www-form-urlencoded

Endpoints:
    - POST /transfers - Move funds to a connected provider account
    - POST /refunds - Refund a captured charge

Every call carries an Idempotency-Key header, so retries after a timeout
never move money twice.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from medibook.core.domain import PaymentGatewayException
from medibook.domains.scheduling.application.ports import IPaymentGateway, RefundResult, TransferResult

logger = logging.getLogger(__name__)


class HttpPaymentGateway(IPaymentGateway):
    """
    httpx implementation of IPaymentGateway.

    Example:
        gateway = HttpPaymentGateway(base_url, api_key, currency="usd")
        transfer = await gateway.create_transfer(9500, "acct_123", idempotency_key="payout-42")
        await gateway.aclose()
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        currency: str = "usd",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        if not api_key:
            logger.error("PAYMENT_API_KEY not configured, payment provider calls will be rejected")

        self._currency = currency
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {api_key or ''}"},
            timeout=timeout,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, operation: str, path: str, data: dict[str, Any], idempotency_key: str) -> dict[str, Any]:
        try:
            response = await self._client.post(path, data=data, headers={"Idempotency-Key": idempotency_key})
        except httpx.TimeoutException as e:
            logger.error(f"Payment provider timeout on {operation}: {e}")
            raise PaymentGatewayException(operation, "Payment provider request timed out", e) from e
        except httpx.HTTPError as e:
            logger.error(f"Payment provider connection error on {operation}: {e}")
            raise PaymentGatewayException(operation, f"Could not reach payment provider: {e}", e) from e

        if response.status_code == 401:
            raise PaymentGatewayException(operation, "Invalid or expired payment provider key")

        if response.is_error:
            try:
                message = response.json().get("error", {}).get("message", response.text)
            except (ValueError, AttributeError):
                message = response.text
            raise PaymentGatewayException(operation, f"Payment provider returned {response.status_code}: {message}")

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Payment provider sent a non-JSON reply to {operation}: {response.text[:200]}")
            raise PaymentGatewayException(operation, "Payment provider returned an unreadable response", e) from e

        if not isinstance(body, dict) or not body.get("id"):
            raise PaymentGatewayException(operation, "Payment provider response has no object id")
        return body

    @staticmethod
    def _metadata_fields(metadata: dict[str, str] | None) -> dict[str, str]:
        return {f"metadata[{key}]": value for key, value in (metadata or {}).items()}

    async def create_transfer(
        self,
        amount_cents: int,
        destination_account: str,
        idempotency_key: str,
        metadata: dict[str, str] | None = None,
    ) -> TransferResult:
        logger.info(f"Creating transfer of {amount_cents} to {destination_account} ({idempotency_key})")
        data = await self._post(
            "create_transfer",
            "/transfers",
            {
                "amount": str(amount_cents),
                "currency": self._currency,
                "destination": destination_account,
                **self._metadata_fields(metadata),
            },
            idempotency_key,
        )
        return TransferResult(transfer_ref=data["id"], status=data.get("status"))

    async def create_refund(
        self,
        charge_ref: str,
        amount_cents: int,
        idempotency_key: str,
        metadata: dict[str, str] | None = None,
    ) -> RefundResult:
        logger.info(f"Refunding {amount_cents} of charge {charge_ref} ({idempotency_key})")
        data = await self._post(
            "create_refund",
            "/refunds",
            {
                "charge": charge_ref,
                "amount": str(amount_cents),
                **self._metadata_fields(metadata),
            },
            idempotency_key,
        )
        return RefundResult(refund_ref=data["id"], status=data.get("status"))
