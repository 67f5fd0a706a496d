"""
Payment Webhook Routes

Receives payment and transfer events from the payment provider.
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from medibook.domains.scheduling.api.dependencies import ContainerDep, verify_webhook_signature
from medibook.domains.scheduling.api.schemas import WebhookResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/payments", response_model=WebhookResponse, dependencies=[Depends(verify_webhook_signature)])
async def receive_payment_event(request: Request, container: ContainerDep):
    """
    Handle one payment provider event.

    Duplicates and unknown event types are acknowledged with 200 so the
    provider stops redelivering them.
    """
    body = await request.body()
    try:
        event = json.loads(body)
    except json.JSONDecodeError as e:
        logger.warning(f"Rejected payment event with invalid JSON: {e}")
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from e

    if not isinstance(event, dict):
        raise HTTPException(status_code=400, detail="Event payload must be an object")

    result = await container.event_dispatcher.dispatch(event)
    return WebhookResponse(**result.to_dict())
