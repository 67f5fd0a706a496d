"""
Settlement Repository Implementation

SQLAlchemy implementation of ISettlementRepository, including the
append-only refund records.
"""

import logging
from decimal import Decimal

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.core.domain import EntityNotFoundException, to_money
from medibook.domains.scheduling.application.ports.repositories import ISettlementRepository
from medibook.domains.scheduling.application.queries import SettlementQuery
from medibook.domains.scheduling.domain.entities import RefundRecord, Settlement
from medibook.domains.scheduling.infrastructure.persistence.sqlalchemy.models import (
    RefundRecordModel,
    SettlementModel,
)

logger = logging.getLogger(__name__)


def _money(value) -> Decimal | None:
    return to_money(value) if value is not None else None


class SQLAlchemySettlementRepository(ISettlementRepository):
    """
    SQLAlchemy implementation of settlement repository.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_one(self, condition, for_update: bool) -> Settlement | None:
        stmt = select(SettlementModel).where(condition)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get(self, settlement_id: int, for_update: bool = False) -> Settlement | None:
        return await self._get_one(SettlementModel.id == settlement_id, for_update)

    async def get_by_appointment(self, appointment_id: int, for_update: bool = False) -> Settlement | None:
        return await self._get_one(SettlementModel.appointment_id == appointment_id, for_update)

    async def get_by_payment_ref(self, payment_ref: str, for_update: bool = False) -> Settlement | None:
        return await self._get_one(SettlementModel.payment_ref == payment_ref, for_update)

    async def get_by_transfer_ref(self, transfer_ref: str, for_update: bool = False) -> Settlement | None:
        return await self._get_one(SettlementModel.transfer_ref == transfer_ref, for_update)

    async def find(self, query: SettlementQuery) -> list[Settlement]:
        """Find settlements matching a query."""
        conditions = []
        if query.provider_id is not None:
            conditions.append(SettlementModel.provider_id == query.provider_id)
        if query.requester_paid is not None:
            conditions.append(SettlementModel.requester_paid == query.requester_paid)
        if query.provider_paid is not None:
            conditions.append(SettlementModel.provider_paid == query.provider_paid)
        if query.scheduled_at_or_before is not None:
            conditions.append(SettlementModel.payout_scheduled_at.is_not(None))
            conditions.append(SettlementModel.payout_scheduled_at <= query.scheduled_at_or_before)
        if query.statuses is not None:
            conditions.append(SettlementModel.status.in_(list(query.statuses)))
        if query.manual_intervention_required is not None:
            conditions.append(SettlementModel.manual_intervention_required == query.manual_intervention_required)

        stmt = select(SettlementModel)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(SettlementModel.payout_scheduled_at, SettlementModel.id)
        if query.limit:
            stmt = stmt.limit(query.limit)

        result = await self.session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def add(self, settlement: Settlement) -> Settlement:
        model = SettlementModel()
        self._update_model(model, settlement)
        model.appointment_id = settlement.appointment_id
        model.provider_id = settlement.provider_id
        self.session.add(model)
        await self.session.flush()

        settlement.id = model.id
        settlement.created_at = model.created_at
        settlement.updated_at = model.updated_at
        return settlement

    async def update(self, settlement: Settlement) -> Settlement:
        model = await self.session.get(SettlementModel, settlement.id)
        if model is None:
            raise EntityNotFoundException("Settlement", settlement.id)
        self._update_model(model, settlement)
        await self.session.flush()
        return settlement

    async def add_refund_record(self, record: RefundRecord) -> RefundRecord:
        model = RefundRecordModel(
            settlement_id=record.settlement_id,
            amount=record.amount,
            refund_type=record.refund_type,
            reason=record.reason,
            hours_before_appointment=record.hours_before_appointment,
            external_refund_ref=record.external_refund_ref,
            status=record.status,
            failure_reason=record.failure_reason,
        )
        self.session.add(model)
        await self.session.flush()
        record.id = model.id
        record.created_at = model.created_at
        return record

    async def list_refund_records(self, settlement_id: int) -> list[RefundRecord]:
        result = await self.session.execute(
            select(RefundRecordModel)
            .where(RefundRecordModel.settlement_id == settlement_id)
            .order_by(RefundRecordModel.id)
        )
        return [
            RefundRecord(
                id=m.id,
                settlement_id=m.settlement_id,
                amount=to_money(m.amount),
                refund_type=m.refund_type,
                reason=m.reason,
                hours_before_appointment=m.hours_before_appointment,
                external_refund_ref=m.external_refund_ref,
                status=m.status,
                failure_reason=m.failure_reason,
                created_at=m.created_at,
                updated_at=m.updated_at,
            )
            for m in result.scalars().all()
        ]

    def _to_entity(self, model: SettlementModel) -> Settlement:
        """Convert model to entity."""
        return Settlement(
            id=model.id,
            appointment_id=model.appointment_id,
            provider_id=model.provider_id,
            price=to_money(model.price),
            commission_amount=to_money(model.commission_amount),
            commission_percentage_used=Decimal(str(model.commission_percentage_used)),
            payout_amount=to_money(model.payout_amount),
            status=model.status,
            requester_paid=model.requester_paid,
            requester_paid_at=model.requester_paid_at,
            payment_ref=model.payment_ref,
            charge_ref=model.charge_ref,
            provider_paid=model.provider_paid,
            provider_paid_at=model.provider_paid_at,
            payout_scheduled_at=model.payout_scheduled_at,
            transfer_ref=model.transfer_ref,
            last_payout_error=model.last_payout_error,
            last_payout_attempt_at=model.last_payout_attempt_at,
            refunded=model.refunded,
            refund_amount=_money(model.refund_amount),
            refund_type=model.refund_type,
            manual_intervention_required=model.manual_intervention_required,
            manual_intervention_reason=model.manual_intervention_reason,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _update_model(self, model: SettlementModel, entity: Settlement) -> None:
        """Update model from entity."""
        model.price = entity.price
        model.commission_amount = entity.commission_amount
        model.commission_percentage_used = entity.commission_percentage_used
        model.payout_amount = entity.payout_amount
        model.status = entity.status
        model.requester_paid = entity.requester_paid
        model.requester_paid_at = entity.requester_paid_at
        model.payment_ref = entity.payment_ref
        model.charge_ref = entity.charge_ref
        model.provider_paid = entity.provider_paid
        model.provider_paid_at = entity.provider_paid_at
        model.payout_scheduled_at = entity.payout_scheduled_at
        model.transfer_ref = entity.transfer_ref
        model.last_payout_error = entity.last_payout_error
        model.last_payout_attempt_at = entity.last_payout_attempt_at
        model.refunded = entity.refunded
        model.refund_amount = entity.refund_amount
        model.refund_type = entity.refund_type
        model.manual_intervention_required = entity.manual_intervention_required
        model.manual_intervention_reason = entity.manual_intervention_reason
