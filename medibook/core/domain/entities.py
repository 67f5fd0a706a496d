"""
Entity base classes.

Entities are persisted with an integer or string identity assigned by the
database. Aggregate roots additionally buffer domain events until the unit
of work that loaded them commits.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Generic, TypeVar

from medibook.core.domain.events import DomainEvent

TId = TypeVar("TId")


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class Entity(ABC, Generic[TId]):
    """
    Identity-bearing domain object.

    Two entities are the same when they share a type and a database id.
    Unsaved entities (id is None) only equal themselves.
    """

    id: TId | None = field(default=None)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity) or type(self) is not type(other):
            return False
        if self.id is None or other.id is None:
            return self is other
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id)) if self.id is not None else id(self)

    def touch(self) -> None:
        """Stamp a mutation."""
        self.updated_at = _utcnow()


@dataclass(eq=False)
class AggregateRoot(Entity[TId], Generic[TId]):
    """
    Consistency boundary for appointments and settlements.

    Events are recorded while the aggregate mutates and are handed to the
    publisher by the unit of work after a successful commit. A rollback
    discards them.
    """

    _domain_events: list[DomainEvent] = field(default_factory=list, repr=False, compare=False)

    def _record_event(self, event: DomainEvent) -> None:
        self._domain_events.append(event)

    def get_domain_events(self) -> list[DomainEvent]:
        return list(self._domain_events)

    def clear_domain_events(self) -> None:
        self._domain_events.clear()
