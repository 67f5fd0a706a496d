"""
Domain Exceptions

These exceptions represent business rule violations and domain-specific errors.
Each carries a machine-readable code and the HTTP status the API layer maps it to.
"""

from typing import Any


class DomainException(Exception):
    """
    Base exception for all domain-related errors.

    Provides a standardized way to communicate business rule violations.
    """

    status_code: int = 400

    def __init__(self, message: str, code: str | None = None, details: dict[str, Any] | None = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "SLOT_CONFLICT")
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "status_code": self.status_code,
        }


class ValidationException(DomainException):
    """
    Raised when input format or a booking rule is violated.

    Use for date/time format, advance window, working-hours containment, etc.
    """

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, code, details)
        self.field = field


class EntityNotFoundException(DomainException):
    """
    Raised when an entity is not found.
    """

    status_code = 404

    def __init__(
        self,
        entity_type: str,
        entity_id: Any,
        message: str | None = None,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        msg = message or f"{entity_type} with ID {entity_id} not found"
        super().__init__(
            msg,
            "NOT_FOUND",
            {"entity_type": entity_type, "entity_id": str(entity_id)},
        )


class ConflictException(DomainException):
    """
    Raised when a requested slot collides with an existing booking.

    Callers are expected to re-query availability and retry with another slot.
    """

    status_code = 409

    def __init__(
        self,
        message: str,
        code: str,
        provider_id: str | None = None,
        date: str | None = None,
        time: str | None = None,
    ):
        details: dict[str, Any] = {}
        if provider_id:
            details["provider_id"] = provider_id
        if date:
            details["date"] = date
        if time:
            details["time"] = time
        super().__init__(message, code, details)


class SlotNotAvailableException(ConflictException):
    """Raised by the availability pre-check."""

    def __init__(self, provider_id: str | None = None, date: str | None = None, time: str | None = None):
        super().__init__(
            "The selected time slot is not available",
            "SLOT_NOT_AVAILABLE",
            provider_id=provider_id,
            date=date,
            time=time,
        )


class SlotConflictException(ConflictException):
    """Raised when the in-transaction re-check finds an overlapping booking."""

    def __init__(self, provider_id: str | None = None, date: str | None = None, time: str | None = None):
        super().__init__(
            "The time slot was just booked by another request",
            "SLOT_CONFLICT",
            provider_id=provider_id,
            date=date,
            time=time,
        )


class StateException(DomainException):
    """Raised when an operation is not valid in the current state. No mutation occurs."""

    def __init__(self, message: str, code: str, details: dict[str, Any] | None = None):
        super().__init__(message, code, details)


class InvalidStatusTransitionException(StateException):
    """Raised when an appointment status change is not in the transition table."""

    def __init__(self, current_status: str, target_status: str):
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Cannot transition appointment from {current_status} to {target_status}",
            "INVALID_STATUS_TRANSITION",
            {"current_status": current_status, "target_status": target_status},
        )


class PaymentNotReadyException(StateException):
    """Raised when confirmation is gated on a payment that has not settled."""

    def __init__(self, code: str, message: str, appointment_id: Any = None):
        details: dict[str, Any] = {}
        if appointment_id is not None:
            details["appointment_id"] = str(appointment_id)
        super().__init__(message, code, details)


class BusinessRuleViolationException(DomainException):
    """
    Raised when an internal invariant would be broken.

    Signals a programming or data error rather than bad caller input.
    """

    status_code = 422

    def __init__(self, rule: str, message: str | None = None, details: dict[str, Any] | None = None):
        self.rule = rule
        msg = message or f"Business rule violated: {rule}"
        details = details or {}
        details["rule"] = rule
        super().__init__(msg, "BUSINESS_RULE_VIOLATION", details)


class PaymentGatewayException(DomainException):
    """Raised when the external payment provider rejects or fails a call."""

    status_code = 502

    def __init__(self, operation: str, message: str, original_error: Exception | None = None):
        self.operation = operation
        self.original_error = original_error
        details: dict[str, Any] = {"operation": operation}
        if original_error:
            details["original_error"] = str(original_error)
        super().__init__(message, "PAYMENT_GATEWAY_ERROR", details)
