"""
Get Appointment Use Case
"""

from dataclasses import dataclass, field

from medibook.core.domain import EntityNotFoundException
from medibook.domains.scheduling.application.ports import IUnitOfWorkFactory
from medibook.domains.scheduling.domain.entities import Appointment, RefundRecord, Settlement


@dataclass
class AppointmentDetails:
    appointment: Appointment
    settlement: Settlement | None = None
    refunds: list[RefundRecord] = field(default_factory=list)


class GetAppointmentUseCase:
    def __init__(self, uow_factory: IUnitOfWorkFactory):
        self.uow_factory = uow_factory

    async def execute(self, appointment_id: int) -> AppointmentDetails:
        async with self.uow_factory() as uow:
            appointment = await uow.appointments.get(appointment_id)
            if appointment is None:
                raise EntityNotFoundException("Appointment", appointment_id)
            settlement = await uow.settlements.get_by_appointment(appointment_id)
            refunds = await uow.settlements.list_refund_records(settlement.id) if settlement else []
        return AppointmentDetails(appointment=appointment, settlement=settlement, refunds=refunds)
