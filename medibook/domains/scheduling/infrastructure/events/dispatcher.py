"""
Payment Event Dispatcher

Routes payment provider events ({"id", "type", "data": {"object": ...}}) to
the settlement use cases. Unknown event types are acknowledged and ignored.
"""

import logging
from dataclasses import dataclass
from typing import Any

from medibook.core.domain import ValidationException
from medibook.domains.scheduling.application.use_cases import (
    ConfirmPaymentUseCase,
    ConfirmPayoutUseCase,
    MarkPaymentFailedUseCase,
    MarkPayoutReversedUseCase,
)

from .idempotency import EventIdempotencyGuard

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"
TRANSFER_CREATED = "transfer.created"
TRANSFER_PAID = "transfer.paid"
TRANSFER_REVERSED = "transfer.reversed"
TRANSFER_FAILED = "transfer.failed"
CHARGE_REFUNDED = "charge.refunded"

HANDLED_EVENTS = frozenset(
    {
        PAYMENT_SUCCEEDED,
        PAYMENT_FAILED,
        TRANSFER_CREATED,
        TRANSFER_PAID,
        TRANSFER_REVERSED,
        TRANSFER_FAILED,
        CHARGE_REFUNDED,
    }
)


@dataclass(frozen=True)
class DispatchResult:
    event_id: str
    event_type: str
    status: str  # processed | duplicate | ignored
    changed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "status": self.status,
            "changed": self.changed,
        }


class PaymentEventDispatcher:
    def __init__(
        self,
        confirm_payment: ConfirmPaymentUseCase,
        mark_payment_failed: MarkPaymentFailedUseCase,
        confirm_payout: ConfirmPayoutUseCase,
        mark_payout_reversed: MarkPayoutReversedUseCase,
        guard: EventIdempotencyGuard,
    ):
        self.confirm_payment = confirm_payment
        self.mark_payment_failed = mark_payment_failed
        self.confirm_payout = confirm_payout
        self.mark_payout_reversed = mark_payout_reversed
        self.guard = guard

    async def dispatch(self, event: dict[str, Any]) -> DispatchResult:
        """
        Handle one inbound event.

        Raises:
            ValidationException: the payload has no id, type or object id
        """
        event_id = event.get("id")
        event_type = event.get("type")
        if not event_id or not event_type:
            raise ValidationException("Event must carry an id and a type", code="INVALID_EVENT")

        if event_type not in HANDLED_EVENTS:
            logger.debug(f"Ignoring event {event_id} of type {event_type}")
            return DispatchResult(event_id, event_type, "ignored")

        obj = (event.get("data") or {}).get("object") or {}
        object_id = obj.get("id")
        if not object_id:
            raise ValidationException(f"Event {event_id} has no data.object.id", code="INVALID_EVENT")

        if not await self.guard.acquire(event_id):
            return DispatchResult(event_id, event_type, "duplicate")

        try:
            changed = await self._route(event_type, object_id, obj)
        except Exception as e:
            await self.guard.release(event_id, str(e))
            raise

        await self.guard.mark_done(event_id)
        logger.info(f"Event {event_id} ({event_type}) processed, changed={changed}")
        return DispatchResult(event_id, event_type, "processed", changed)

    async def _route(self, event_type: str, object_id: str, obj: dict[str, Any]) -> bool:
        if event_type == PAYMENT_SUCCEEDED:
            return await self.confirm_payment.execute(object_id, obj.get("latest_charge"))
        if event_type == PAYMENT_FAILED:
            return await self.mark_payment_failed.execute(object_id)
        if event_type in (TRANSFER_CREATED, TRANSFER_PAID):
            return await self.confirm_payout.execute(object_id)
        if event_type in (TRANSFER_REVERSED, TRANSFER_FAILED):
            return await self.mark_payout_reversed.execute(object_id)

        # charge.refunded: refunds are driven by cancellation, the event is informational
        logger.info(f"Charge {object_id} refunded, amount_refunded={obj.get('amount_refunded')}")
        return False
