"""
Base Value Object Classes for Domain-Driven Design

Value Objects are immutable domain primitives that have no identity.
They are compared by their values, not by reference.
"""

from abc import ABC
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

CENTS = Decimal("0.01")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Convert a numeric value to a Decimal rounded to cents (half up)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, ROUND_HALF_UP)


def to_cents(value: Decimal) -> int:
    """Convert a money amount to integer minor units."""
    return int((to_money(value) * 100).to_integral_value(ROUND_HALF_UP))


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for all value objects.

    Value objects are:
    - Immutable (frozen=True)
    - Compared by value (dataclass equality)
    - Have no identity
    """

    def __post_init__(self):
        """Override to add validation logic."""
        self._validate()

    def _validate(self) -> None:
        """Validate the value object. Override in subclasses."""
        pass


@dataclass(frozen=True)
class Percentage(ValueObject):
    """
    Percentage value object.

    Represents a percentage in the range (0, 100], or [0, 100] when zero is allowed.
    """

    value: Decimal
    allow_zero: bool = False

    def _validate(self) -> None:
        if not isinstance(self.value, Decimal):
            object.__setattr__(self, "value", Decimal(str(self.value)))
        lower_ok = self.value >= 0 if self.allow_zero else self.value > 0
        if not lower_ok or self.value > 100:
            bound = "between 0 and 100" if self.allow_zero else "greater than 0 and at most 100"
            raise ValueError(f"Percentage must be {bound}, got {self.value}")

    def apply_to(self, amount: Decimal) -> Decimal:
        """Apply percentage to an amount, rounded to cents."""
        return to_money(amount * self.value / Decimal("100"))

    def __str__(self) -> str:
        return f"{self.value}%"


class StatusEnum(str, Enum):
    """String-valued status. Renders as its bare value in logs and messages."""

    def __str__(self) -> str:
        return self.value
