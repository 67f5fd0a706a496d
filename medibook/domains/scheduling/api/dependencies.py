"""
Scheduling API Dependencies

FastAPI dependencies for the scheduling domain.
"""

import hashlib
import hmac
import logging
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from medibook.core.container import SchedulingContainer

logger = logging.getLogger(__name__)


def get_container(request: Request) -> SchedulingContainer:
    """Container created by the application factory."""
    return request.app.state.container


# Type alias for container dependency
ContainerDep = Annotated[SchedulingContainer, Depends(get_container)]


async def verify_webhook_signature(
    request: Request,
    container: ContainerDep,
    x_signature: str | None = Header(None),
) -> bool:
    """
    Verify the HMAC-SHA256 signature of an inbound payment event.

    The provider sends `X-Signature: sha256=<hex digest of the raw body>`.
    Verification is skipped when WEBHOOK_SECRET is not configured.
    """
    secret = container.settings.WEBHOOK_SECRET
    if not secret:
        return True

    if not x_signature:
        logger.warning("Missing X-Signature header")
        raise HTTPException(status_code=403, detail="Missing signature header")

    signature = x_signature[7:] if x_signature.startswith("sha256=") else x_signature
    body = await request.body()
    expected_signature = hmac.new(secret.encode("utf-8"), msg=body, digestmod=hashlib.sha256).hexdigest()

    if not hmac.compare_digest(expected_signature, signature):
        logger.warning("Signature verification failed")
        raise HTTPException(status_code=403, detail="Invalid signature")

    return True


async def verify_cron_secret(
    container: ContainerDep,
    authorization: str | None = Header(None),
) -> bool:
    """Require `Authorization: Bearer <CRON_SECRET>` on job triggers."""
    secret = container.settings.CRON_SECRET
    if not secret:
        logger.warning("CRON_SECRET is not configured, rejecting job trigger")
        raise HTTPException(status_code=403, detail="Job trigger is not configured")

    token = authorization[7:] if authorization and authorization.startswith("Bearer ") else None
    if not token or not hmac.compare_digest(token, secret):
        raise HTTPException(status_code=401, detail="Invalid cron secret", headers={"WWW-Authenticate": "Bearer"})

    return True


__all__ = [
    "ContainerDep",
    "get_container",
    "verify_cron_secret",
    "verify_webhook_signature",
]
