"""
Query objects for repository lookups.

Typed filters built by the use cases and translated to SQL by the
repositories. Every field left as None is not filtered on.
"""

from dataclasses import dataclass
from datetime import date, datetime

from medibook.domains.scheduling.domain.value_objects import (
    BLOCKING_STATUSES,
    AppointmentStatus,
    SettlementStatus,
)

PAYABLE_STATUSES: frozenset[SettlementStatus] = frozenset(
    {SettlementStatus.COMPLETED, SettlementStatus.PARTIALLY_REFUNDED}
)


@dataclass(frozen=True)
class AppointmentQuery:
    provider_id: str | None = None
    requester_id: str | None = None
    appointment_date: date | None = None
    statuses: frozenset[AppointmentStatus] | None = None
    exclude_ids: frozenset[int] = frozenset()
    limit: int | None = None

    @classmethod
    def blocking(
        cls,
        provider_id: str,
        appointment_date: date,
        exclude_id: int | None = None,
    ) -> "AppointmentQuery":
        """Appointments holding time for a provider on a day."""
        return cls(
            provider_id=provider_id,
            appointment_date=appointment_date,
            statuses=BLOCKING_STATUSES,
            exclude_ids=frozenset({exclude_id}) if exclude_id is not None else frozenset(),
        )


@dataclass(frozen=True)
class SettlementQuery:
    provider_id: str | None = None
    requester_paid: bool | None = None
    provider_paid: bool | None = None
    scheduled_at_or_before: datetime | None = None
    statuses: frozenset[SettlementStatus] | None = None
    manual_intervention_required: bool | None = None
    limit: int | None = None

    @classmethod
    def due_for_payout(cls, now: datetime, limit: int | None = None) -> "SettlementQuery":
        """
        Paid by the requester, not yet paid out, due, in a payable state and
        not waiting on manual intervention. Fully refunded settlements are
        REFUNDED and therefore excluded.
        """
        return cls(
            requester_paid=True,
            provider_paid=False,
            scheduled_at_or_before=now,
            statuses=PAYABLE_STATUSES,
            manual_intervention_required=False,
            limit=limit,
        )
