"""
Background jobs.
"""

from .payout_scheduler import PayoutScheduler

__all__ = ["PayoutScheduler"]
