import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from alumnihive.core.security import verify_webhook_signature
from alumnihive.db.session import get_db
from alumnihive.services.payment_webhook_handlers import dispatch_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscriptions/razorpay", tags=["Payment Webhook"])


@router.post("/callback")
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    """Razorpay event webhook, authenticated by HMAC of the raw body."""
    payload = await request.body()

    if not verify_webhook_signature(payload, x_razorpay_signature):
        logger.warning("Invalid webhook signature")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")

    try:
        event = json.loads(payload)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")

    logger.info(f"Razorpay webhook event: {event.get('event')}")

    try:
        dispatch_event(event, db)
    except Exception as e:
        db.rollback()
        logger.error(f"Webhook processing failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Webhook processing failed")

    return {"status": "success"}
