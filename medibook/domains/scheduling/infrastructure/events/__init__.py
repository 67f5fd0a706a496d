"""
Inbound payment provider events.
"""

from .dispatcher import DispatchResult, PaymentEventDispatcher
from .idempotency import EventIdempotencyGuard

__all__ = ["DispatchResult", "EventIdempotencyGuard", "PaymentEventDispatcher"]
