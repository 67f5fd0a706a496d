"""
Inbound Event Idempotency

Redis-based deduplication for payment provider events, keyed by event id.

Key Design:
- SET NX PX acquires a short "processing" lock before the handler runs
- On success the key becomes "done" for WEBHOOK_IDEMPOTENCY_TTL_HOURS
- On failure the key is removed so the provider's retry is processed

This is the first layer only. The handlers themselves are idempotent on
settlement state, so a Redis outage degrades to at-least-once processing
without double effects.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

from medibook.core.cache import CacheKeys

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

PROCESSING_LOCK_TTL_MS = 5 * 60 * 1000
PROCESSING = "processing"
DONE = "done"


class EventIdempotencyGuard:
    """
    States of `medibook:event:{id}`:
    - missing: event not seen before
    - "processing": being handled by another worker
    - "done": handled, replays are acknowledged without work
    """

    def __init__(self, redis_client: Redis | None, keys: CacheKeys, ttl_hours: int = 24):
        self._redis = redis_client
        self._keys = keys
        self._done_ttl_ms = ttl_hours * 60 * 60 * 1000

    def _get_key(self, event_id: str) -> str:
        return self._keys.build("event", event_id)

    async def acquire(self, event_id: str) -> bool:
        """
        Try to take the processing lock.

        Returns:
            False when the event is a duplicate or in flight elsewhere
        """
        if self._redis is None:
            return True

        try:
            acquired = await self._redis.set(self._get_key(event_id), PROCESSING, nx=True, px=PROCESSING_LOCK_TTL_MS)
        except RedisError as e:
            logger.warning(f"[IDEMPOTENCY] Redis unavailable for event {event_id}, processing anyway: {e}")
            return True

        if not acquired:
            logger.info(f"[IDEMPOTENCY] Event {event_id} already processed or in progress")
            return False
        return True

    async def mark_done(self, event_id: str) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.set(self._get_key(event_id), DONE, px=self._done_ttl_ms)
        except RedisError as e:
            logger.warning(f"[IDEMPOTENCY] Could not mark event {event_id} done: {e}")

    async def release(self, event_id: str, error: str) -> None:
        """Drop the lock so the provider can redeliver."""
        if self._redis is None:
            return
        try:
            await self._redis.delete(self._get_key(event_id))
        except RedisError as e:
            logger.warning(f"[IDEMPOTENCY] Could not release event {event_id}: {e}")
            return
        logger.warning(f"[IDEMPOTENCY] Released event {event_id} after failure: {error}")
