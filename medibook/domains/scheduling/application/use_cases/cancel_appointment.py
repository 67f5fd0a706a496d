"""
Cancel Appointment Use Case

Cancels the appointment and, when the requester has paid, applies the refund
tier to the settlement, records a RefundRecord and asks the payment provider
to return the money.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from medibook.core.domain import (
    EntityNotFoundException,
    InvalidStatusTransitionException,
    PaymentGatewayException,
    StateException,
    to_cents,
)
from medibook.core.shared.clock import Clock
from medibook.domains.scheduling.application.ports import IPaymentGateway, IUnitOfWorkFactory
from medibook.domains.scheduling.domain.entities import Appointment, RefundRecord, Settlement
from medibook.domains.scheduling.domain.services import RefundCalculator
from medibook.domains.scheduling.domain.value_objects import AppointmentStatus, RefundStatus

logger = logging.getLogger(__name__)


@dataclass
class CancelAppointmentResponse:
    appointment: Appointment
    settlement: Settlement | None = None
    refund: RefundRecord | None = None


class CancelAppointmentUseCase:
    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        gateway: IPaymentGateway,
        clock: Clock,
        refund_calculator: RefundCalculator | None = None,
    ):
        self.uow_factory = uow_factory
        self.gateway = gateway
        self.clock = clock
        self.refund_calculator = refund_calculator or RefundCalculator()

    async def execute(self, appointment_id: int, reason: str | None = None) -> CancelAppointmentResponse:
        """
        Cancel an appointment.

        Raises:
            EntityNotFoundException: unknown appointment
            InvalidStatusTransitionException: already COMPLETED or CANCELLED
            StateException: ALREADY_REFUNDED
        """
        now = self.clock.now()

        async with self.uow_factory() as uow:
            appointment = await uow.appointments.get(appointment_id, for_update=True)
            if appointment is None:
                raise EntityNotFoundException("Appointment", appointment_id)
            if not appointment.status.can_transition_to(AppointmentStatus.CANCELLED):
                raise InvalidStatusTransitionException(appointment.status.value, AppointmentStatus.CANCELLED.value)

            settlement = await uow.settlements.get_by_appointment(appointment_id, for_update=True)
            if settlement is not None and settlement.refunded:
                raise StateException(
                    "Settlement has already been refunded",
                    "ALREADY_REFUNDED",
                    {"settlement_id": str(settlement.id)},
                )

            appointment.cancel(reason, now)
            await uow.appointments.update(appointment)

            refund = None
            if settlement is not None and settlement.requester_paid:
                refund = await self._refund(appointment, settlement, reason, now)
                await uow.settlements.add_refund_record(refund)
                await uow.settlements.update(settlement)

            uow.track(appointment, settlement)
            await uow.commit()

        logger.info(
            f"Appointment {appointment_id} cancelled"
            + (f", refund {refund.refund_type.value} {refund.amount} ({refund.status.value})" if refund else "")
        )
        return CancelAppointmentResponse(appointment=appointment, settlement=settlement, refund=refund)

    async def _refund(
        self,
        appointment: Appointment,
        settlement: Settlement,
        reason: str | None,
        now: datetime,
    ) -> RefundRecord:
        calculation = self.refund_calculator.calculate(
            settlement.price, settlement.commission_amount, appointment.starts_at, now
        )
        settlement.apply_refund(calculation.refund_type, calculation.patient_refund, calculation.commission_refund)

        record = RefundRecord(
            settlement_id=settlement.id,
            amount=calculation.patient_refund,
            refund_type=calculation.refund_type,
            reason=reason,
            hours_before_appointment=calculation.hours_before,
            status=RefundStatus.COMPLETED,
        )
        if calculation.patient_refund <= 0:
            return record

        if not settlement.charge_ref:
            record.status = RefundStatus.FAILED
            record.failure_reason = "No charge reference to refund against"
            settlement.require_manual_intervention(f"Refund of {record.amount} could not be issued: missing charge")
            return record

        try:
            result = await self.gateway.create_refund(
                settlement.charge_ref,
                to_cents(calculation.patient_refund),
                idempotency_key=f"refund-{settlement.id}",
                metadata={"appointment_id": str(appointment.id), "settlement_id": str(settlement.id)},
            )
        except PaymentGatewayException as e:
            logger.warning(f"Refund for settlement {settlement.id} failed: {e.message}")
            record.status = RefundStatus.FAILED
            record.failure_reason = e.message[:500]
            settlement.require_manual_intervention(f"Refund of {record.amount} failed at the payment provider")
            return record

        record.external_refund_ref = result.refund_ref
        return record
