"""
Payment gateway webhooks.

Endpoints:
    POST /webhooks/paystack   - Paystack event callback (signed)
    GET  /webhooks/health     - webhook endpoint health

The signature is checked against the RAW body before anything is parsed;
an unsigned or mis-signed delivery never reaches the database.
"""
import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from domain.errors import UnauthorizedError, ValidationError
from services import paystack, webhook_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

SIGNATURE_HEADER = "x-paystack-signature"


@router.post("/paystack")
async def paystack_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Paystack webhook.

    401 bad signature, 400 unparseable body or unknown event. Everything
    past validation answers 200, including handler failures (logged and
    rolled back) and replays (`duplicate: true`).
    """
    body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER, "")

    if not paystack.verify_webhook_signature(body, signature):
        logger.warning("Rejected Paystack webhook: invalid signature")
        raise UnauthorizedError("Invalid signature")

    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("Invalid webhook data")
    if not isinstance(payload, dict) or not isinstance(payload.get("data", {}), dict):
        raise ValidationError("Invalid webhook data")

    event = payload.get("event")
    if event not in webhook_service.SUPPORTED_EVENTS:
        raise ValidationError("Invalid event type", details={"event": event})

    result = await webhook_service.process_event(db, payload)
    return {
        "success": True,
        "status": "success",
        "duplicate": result["duplicate"],
        "outcome": result["outcome"],
    }


@router.get("/health")
async def webhook_health():
    return {
        "status": "healthy",
        "signature_verification": bool(settings.paystack_webhook_secret),
        "supported_events": sorted(webhook_service.SUPPORTED_EVENTS),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
