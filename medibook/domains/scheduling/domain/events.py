"""
Scheduling domain events.

Published after the recording transaction commits.
"""

from dataclasses import dataclass

from medibook.core.domain import DomainEvent


@dataclass(frozen=True)
class AppointmentBooked(DomainEvent):
    appointment_id: int = 0
    provider_id: str = ""
    date: str = ""
    time: str = ""


@dataclass(frozen=True)
class AppointmentRescheduled(DomainEvent):
    appointment_id: int = 0
    provider_id: str = ""
    previous_date: str = ""
    previous_time: str = ""
    date: str = ""
    time: str = ""


@dataclass(frozen=True)
class AppointmentStatusChanged(DomainEvent):
    appointment_id: int = 0
    provider_id: str = ""
    previous_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class SettlementNeedsManualIntervention(DomainEvent):
    settlement_id: int = 0
    appointment_id: int = 0
    reason: str = ""
