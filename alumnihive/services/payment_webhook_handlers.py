"""
Event handlers for Razorpay webhooks.

Handles payment.captured, payment.failed and order.paid. Activation already
happens on the synchronous verify endpoints, so these only reconcile the
status of payments we have on record and log the event.
"""
import logging
from typing import Callable, Dict
from sqlalchemy.orm import Session
from alumnihive.db.models.payment import Payment, PaymentStatus

logger = logging.getLogger(__name__)


def _entity(event: Dict, kind: str) -> Dict:
    return ((event.get("payload") or {}).get(kind) or {}).get("entity") or {}


def handle_payment_captured(event: Dict, db: Session) -> None:
    payment_data = _entity(event, "payment")
    payment_id = payment_data.get("id")

    if not payment_id:
        logger.warning("payment.captured: No payment ID in payload")
        return

    payment = db.query(Payment).filter(Payment.payment_id == payment_id).first()
    if payment and payment.status != PaymentStatus.COMPLETED:
        payment.status = PaymentStatus.COMPLETED
        db.commit()

    logger.info(f"Payment captured: payment_id={payment_id}, order_id={payment_data.get('order_id')}")


def handle_payment_failed(event: Dict, db: Session) -> None:
    payment_data = _entity(event, "payment")
    payment_id = payment_data.get("id")

    if not payment_id:
        logger.warning("payment.failed: No payment ID in payload")
        return

    payment = db.query(Payment).filter(Payment.payment_id == payment_id).first()
    if payment and payment.status == PaymentStatus.PENDING:
        payment.status = PaymentStatus.FAILED
        db.commit()

    logger.warning(
        f"Payment failed: payment_id={payment_id}, "
        f"reason={payment_data.get('error_description') or payment_data.get('error_code')}"
    )


def handle_order_paid(event: Dict, db: Session) -> None:
    order_data = _entity(event, "order")
    logger.info(f"Order paid: order_id={order_data.get('id')}, amount_paid={order_data.get('amount_paid')}")


EVENT_HANDLERS: Dict[str, Callable[[Dict, Session], None]] = {
    "payment.captured": handle_payment_captured,
    "payment.failed": handle_payment_failed,
    "order.paid": handle_order_paid,
}


def dispatch_event(event: Dict, db: Session) -> bool:
    """Run the handler for event["event"]. Returns False for unhandled event types."""
    event_type = event.get("event")
    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"Unhandled webhook event: {event_type}")
        return False
    handler(event, db)
    return True
