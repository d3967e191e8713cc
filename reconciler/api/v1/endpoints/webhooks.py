"""
Payment gateway webhook endpoints
"""

from typing import Any, Dict, Optional
import logging
import time

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.api.deps import get_event_lock, get_signature_verifier
from reconciler.config import settings
from reconciler.core.database import get_session
from reconciler.core.locks import EventLock
from reconciler.core.metrics import WEBHOOK_EVENTS, WEBHOOK_PROCESSING_SECONDS
from reconciler.core.security import require_admin
from reconciler.core.signature import SignatureVerifier
from reconciler.schemas.response import ListResponse, WebhookAck
from reconciler.schemas.transaction import WebhookLogEntry
from reconciler.schemas.webhook import KNOWN_EVENTS
from reconciler.services.report_service import ReportService
from reconciler.services.webhook_service import WebhookService

logger = logging.getLogger(__name__)

router = APIRouter()


def _event_label(event: str) -> str:
    # Gateway-supplied kinds outside the handled set share one label
    return event if event in KNOWN_EVENTS else "other"


def _ack(status_code: int, success: bool, message: str, error: Optional[str] = None) -> JSONResponse:
    body = WebhookAck(success=success, message=message, error=error)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.post("/razorpay", response_model=WebhookAck)
async def handle_razorpay_webhook(
    request: Request,
    db: AsyncSession = Depends(get_session),
    verifier: SignatureVerifier = Depends(get_signature_verifier),
    event_lock: Optional[EventLock] = Depends(get_event_lock),
) -> Any:
    """
    Receive a Razorpay event.

    400 on a bad signature, 500 with the error message when processing
    raises, 200 for everything else, including events this service does not
    handle, so the gateway stops retrying them.
    """
    raw_body = await request.body()
    signature = request.headers.get(settings.WEBHOOK_SIGNATURE_HEADER)
    service = WebhookService(db, verifier, event_lock=event_lock, provider=settings.PAYMENT_PROVIDER)

    if not await service.verify(raw_body, signature):
        logger.error("Invalid webhook signature")
        WEBHOOK_EVENTS.labels(event="unknown", result="invalid_signature").inc()
        return _ack(status.HTTP_400_BAD_REQUEST, False, "Invalid webhook signature")

    start_time = time.time()
    try:
        result = await service.process(raw_body)
    except Exception as e:
        logger.error(f"Webhook processing error: {e}", exc_info=True)
        WEBHOOK_EVENTS.labels(event=_event_label(getattr(e, "event", "unknown")), result="error").inc()
        return _ack(status.HTTP_500_INTERNAL_SERVER_ERROR, False, "Webhook processing failed", str(e))

    event_label = _event_label(result.event)
    WEBHOOK_EVENTS.labels(event=event_label, result=result.status.value).inc()
    WEBHOOK_PROCESSING_SECONDS.labels(event=event_label).observe(time.time() - start_time)

    return _ack(status.HTTP_200_OK, True, "Webhook processed successfully")


@router.get("/razorpay/logs", response_model=ListResponse[WebhookLogEntry])
async def get_webhook_logs(
    db: AsyncSession = Depends(get_session),
    admin: Dict = Depends(require_admin),
) -> Any:
    """
    Transactions updated by webhooks in the last 24 hours (admin only)
    """
    entries = await ReportService(db).webhook_logs()
    return ListResponse[WebhookLogEntry](data=entries)
