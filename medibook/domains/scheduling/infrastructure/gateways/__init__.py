"""
Outbound payment provider adapters.
"""

from .payment_gateway import HttpPaymentGateway

__all__ = ["HttpPaymentGateway"]
