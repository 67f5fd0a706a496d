"""
Domain Layer - Core DDD building blocks

This module provides base classes for Domain-Driven Design:
- Entities: Objects with identity and lifecycle
- Value Objects: Immutable objects compared by value
- Events: Domain events for communication
- Exceptions: Domain-specific error handling
"""

from medibook.core.domain.entities import AggregateRoot, Entity
from medibook.core.domain.events import DomainEvent, DomainEventPublisher, EventHandler
from medibook.core.domain.exceptions import (
    BusinessRuleViolationException,
    ConflictException,
    DomainException,
    EntityNotFoundException,
    InvalidStatusTransitionException,
    PaymentGatewayException,
    PaymentNotReadyException,
    SlotConflictException,
    SlotNotAvailableException,
    StateException,
    ValidationException,
)
from medibook.core.domain.value_objects import CENTS, Percentage, StatusEnum, ValueObject, to_cents, to_money

__all__ = [
    # Entities
    "Entity",
    "AggregateRoot",
    # Value Objects
    "ValueObject",
    "Percentage",
    "StatusEnum",
    "CENTS",
    "to_money",
    "to_cents",
    # Events
    "DomainEvent",
    "DomainEventPublisher",
    "EventHandler",
    # Exceptions
    "DomainException",
    "ValidationException",
    "EntityNotFoundException",
    "ConflictException",
    "SlotNotAvailableException",
    "SlotConflictException",
    "StateException",
    "InvalidStatusTransitionException",
    "PaymentNotReadyException",
    "BusinessRuleViolationException",
    "PaymentGatewayException",
]
