"""
Payout Use Cases

The periodic sweep that transfers due payouts to providers, and the handlers
for transfer events reported back by the payment provider.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from medibook.core.domain import (
    BusinessRuleViolationException,
    DomainException,
    PaymentGatewayException,
    to_cents,
)
from medibook.core.shared.clock import Clock
from medibook.domains.scheduling.application.ports import IPaymentGateway, IUnitOfWorkFactory
from medibook.domains.scheduling.application.queries import SettlementQuery

logger = logging.getLogger(__name__)


@dataclass
class PayoutSweepResult:
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)

    def add_error(self, settlement_id: int, message: str) -> None:
        self.errors.append({"settlement_id": str(settlement_id), "error": message})

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
            "errors": list(self.errors),
        }


class RunPayoutSweepUseCase:
    """
    Pay out every settlement that is due.

    Each settlement is handled in its own transaction with the row locked and
    re-checked, so overlapping sweeps never transfer twice. The transfer uses
    the idempotency key `payout-{settlement_id}` at the payment provider.
    """

    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        gateway: IPaymentGateway,
        clock: Clock,
        batch_size: int = 100,
    ):
        self.uow_factory = uow_factory
        self.gateway = gateway
        self.clock = clock
        self.batch_size = batch_size

    async def execute(self) -> PayoutSweepResult:
        now = self.clock.now()
        result = PayoutSweepResult()

        async with self.uow_factory() as uow:
            due = await uow.settlements.find(SettlementQuery.due_for_payout(now, limit=self.batch_size))

        for candidate in due:
            try:
                await self._process(candidate.id, now, result)
            except DomainException as e:
                logger.error(f"Payout of settlement {candidate.id} aborted: {e.message}")
                result.failed += 1
                result.add_error(candidate.id, e.message)

        logger.info(
            f"Payout sweep finished: {result.processed} processed, "
            f"{result.skipped} skipped, {result.failed} failed"
        )
        return result

    async def _process(self, settlement_id: int, now: datetime, result: PayoutSweepResult) -> None:
        async with self.uow_factory() as uow:
            settlement = await uow.settlements.get(settlement_id, for_update=True)
            if settlement is None or not settlement.is_due_for_payout(now):
                result.skipped += 1
                return

            if settlement.payout_amount <= 0:
                logger.info(f"Settlement {settlement_id} has nothing to pay out")
                result.skipped += 1
                return

            account = await uow.providers.get_payment_account(settlement.provider_id)
            if account is None or not account.can_receive_payouts():
                message = "Provider payout account is missing or not active"
                logger.warning(f"Settlement {settlement_id}: {message}")
                settlement.record_payout_failure(message, now)
                await uow.settlements.update(settlement)
                await uow.commit()
                result.skipped += 1
                result.add_error(settlement_id, message)
                return

            try:
                transfer = await self.gateway.create_transfer(
                    to_cents(settlement.payout_amount),
                    account.external_account_ref,
                    idempotency_key=f"payout-{settlement_id}",
                    metadata={
                        "settlement_id": str(settlement_id),
                        "appointment_id": str(settlement.appointment_id),
                    },
                )
            except PaymentGatewayException as e:
                logger.warning(f"Transfer for settlement {settlement_id} failed: {e.message}")
                settlement.record_payout_failure(e.message, now)
                await uow.settlements.update(settlement)
                await uow.commit()
                result.failed += 1
                result.add_error(settlement_id, e.message)
                return

            settlement.mark_provider_paid(transfer.transfer_ref, now)
            await uow.settlements.update(settlement)
            uow.track(settlement)
            await uow.commit()

        result.processed += 1
        logger.info(f"Settlement {settlement_id} paid out via transfer {transfer.transfer_ref}")


class ConfirmPayoutUseCase:
    def __init__(self, uow_factory: IUnitOfWorkFactory, clock: Clock):
        self.uow_factory = uow_factory
        self.clock = clock

    async def execute(self, transfer_ref: str) -> bool:
        now = self.clock.now()

        async with self.uow_factory() as uow:
            settlement = await uow.settlements.get_by_transfer_ref(transfer_ref, for_update=True)
            if settlement is None:
                logger.warning(f"Transfer event for unknown reference {transfer_ref}, ignoring")
                return False
            if settlement.provider_paid:
                return False

            try:
                changed = settlement.mark_provider_paid(transfer_ref, now)
            except BusinessRuleViolationException as e:
                logger.warning(f"Transfer {transfer_ref} reported for settlement {settlement.id}: {e.message}")
                settlement.require_manual_intervention(f"Unexpected transfer {transfer_ref}: {e.message}")
                changed = False

            await uow.settlements.update(settlement)
            uow.track(settlement)
            await uow.commit()

        return changed


class MarkPayoutReversedUseCase:
    """Reset provider_paid after a reversed or failed transfer. No automatic retry."""

    def __init__(self, uow_factory: IUnitOfWorkFactory):
        self.uow_factory = uow_factory

    async def execute(self, transfer_ref: str) -> bool:
        async with self.uow_factory() as uow:
            settlement = await uow.settlements.get_by_transfer_ref(transfer_ref, for_update=True)
            if settlement is None:
                logger.warning(f"Reversal for unknown transfer {transfer_ref}, ignoring")
                return False

            changed = settlement.reverse_payout()
            if changed:
                settlement.require_manual_intervention(f"Payout transfer {transfer_ref} was reversed")
                await uow.settlements.update(settlement)
                uow.track(settlement)
                await uow.commit()
                logger.warning(f"Payout {transfer_ref} of settlement {settlement.id} was reversed")
        return changed
