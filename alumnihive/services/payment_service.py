"""
Razorpay payment verification.

Every entry point checks the checkout signature (HMAC-SHA256 over
``order_id|payment_id``) before writing anything. Records are keyed on
(order_id, payment_id) so a replayed callback is a no-op.
"""
import logging
import time
from datetime import datetime
from typing import Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from alumnihive.core.config import CURRENCY
from alumnihive.core.errors import SignatureError, ValidationError
from alumnihive.core.logging_config import sanitize_log_data
from alumnihive.core.security import verify_payment_signature
from alumnihive.db.models.payment import Payment, PaymentStatus
from alumnihive.db.models.job_posting import JobPostingSubscription
from alumnihive.services import job_posting_service, mentorship_service
from alumnihive.services.subscription_service import AnySubscription, activate_subscription

logger = logging.getLogger(__name__)

MENTORSHIP_CALL_AMOUNT = 300


def build_receipt(request_id: str) -> str:
    return f"ment_{request_id[-8:]}_{str(int(time.time() * 1000))[-6:]}"


def ensure_valid_signature(order_id: str, payment_id: str, signature: Optional[str], context: Dict) -> None:
    if not verify_payment_signature(order_id, payment_id, signature):
        logger.warning(f"Payment signature mismatch: {sanitize_log_data(context)}")
        raise SignatureError("Payment verification failed")


def find_payment(db: Session, order_id: str, payment_id: str) -> Optional[Payment]:
    return db.query(Payment).filter(
        Payment.order_id == order_id,
        Payment.payment_id == payment_id,
    ).first()


def verify_mentorship_payment(
    db: Session,
    order_id: str,
    payment_id: str,
    signature: Optional[str],
    student_id: int,
    alumni_id: int,
    request_id: str,
    amount: int = MENTORSHIP_CALL_AMOUNT,
) -> Tuple[Payment, bool]:
    """
    Verify a mentorship-call payment and store it once.

    Returns:
        (payment, created) where created is False when the pair was already recorded

    Raises:
        SignatureError: Signature does not match
        NotFoundError: request_id is not a mentorship request between this student and alumni
    """
    ensure_valid_signature(order_id, payment_id, signature, {
        "order_id": order_id,
        "payment_id": payment_id,
        "signature": signature,
        "student_id": student_id,
        "alumni_id": alumni_id,
    })
    mentorship_service.get_request_for_pair(db, request_id, student_id, alumni_id)

    existing = find_payment(db, order_id, payment_id)
    if existing is not None:
        logger.info(f"Payment replay ignored: order_id={order_id}, payment_id={payment_id}")
        return existing, False

    payment = Payment(
        order_id=order_id,
        payment_id=payment_id,
        student_id=student_id,
        alumni_id=alumni_id,
        request_id=request_id,
        amount=amount,
        currency=CURRENCY,
        status=PaymentStatus.COMPLETED,
        receipt=build_receipt(request_id),
        type="mentorship_call",
    )
    db.add(payment)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent delivery of the same callback won the insert
        db.rollback()
        existing = find_payment(db, order_id, payment_id)
        if existing is None:
            raise
        return existing, False

    db.refresh(payment)
    logger.info(
        f"Payment verified: payment_id={payment_id}, student_id={student_id}, "
        f"alumni_id={alumni_id}, request_id={request_id}"
    )
    return payment, True


def get_payment_status(db: Session, student_id: int, alumni_id: int, request_id: str) -> Dict:
    payment = db.query(Payment).filter(
        Payment.student_id == student_id,
        Payment.alumni_id == alumni_id,
        Payment.request_id == request_id,
        Payment.status == PaymentStatus.COMPLETED,
    ).order_by(Payment.created_at.desc()).first()

    return {
        "hasPaid": payment is not None,
        "payment": serialize_payment(payment) if payment else None,
    }


def verify_subscription_payment(
    db: Session,
    order_id: str,
    payment_id: str,
    signature: Optional[str],
    student_id: int,
    alumni_id: Optional[int],
    subscription_type: str,
    now: Optional[datetime] = None,
) -> Tuple[AnySubscription, bool]:
    """Verify the checkout signature, then activate the subscription it paid for."""
    ensure_valid_signature(order_id, payment_id, signature, {
        "order_id": order_id,
        "payment_id": payment_id,
        "signature": signature,
        "student_id": student_id,
        "subscription_type": subscription_type,
    })
    return activate_subscription(db, student_id, alumni_id, subscription_type, payment_id=payment_id, now=now)


def verify_job_unlock_payment(
    db: Session,
    order_id: str,
    payment_id: str,
    signature: Optional[str],
    job_id: int,
    user_id: int,
    amount: Optional[int] = None,
) -> Dict:
    """Verify the signature, record the transaction and unlock the posting for user_id."""
    ensure_valid_signature(order_id, payment_id, signature, {
        "order_id": order_id,
        "payment_id": payment_id,
        "signature": signature,
        "job_id": job_id,
        "user_id": user_id,
    })

    job = job_posting_service.get_job_or_404(db, job_id)
    job_posting_service.get_user_or_404(db, user_id)

    already_recorded = db.query(JobPostingSubscription).filter(
        JobPostingSubscription.order_id == order_id,
        JobPostingSubscription.payment_id == payment_id,
    ).first()
    if already_recorded is not None and (already_recorded.job_id, already_recorded.user_id) != (job.id, user_id):
        raise ValidationError("Payment already used for another unlock")
    if already_recorded is not None or job.is_unlocked_by(user_id):
        return {"success": True, "message": "Job already unlocked"}

    paid = amount if amount is not None else job.unlock_price
    job_posting_service.ensure_unlockable(job, paid)
    db.add(JobPostingSubscription(
        job_id=job.id,
        user_id=user_id,
        order_id=order_id,
        payment_id=payment_id,
        amount=paid,
        currency=job.currency,
        status="completed",
    ))
    job_posting_service.record_unlock(db, job, user_id, payment_id, paid)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return {"success": True, "message": "Job already unlocked"}

    logger.info(f"Job unlocked via payment: job_id={job_id}, user_id={user_id}, payment_id={payment_id}")
    return {"success": True, "message": "Job unlocked successfully"}


def serialize_payment(payment: Payment) -> Dict:
    return {
        "id": payment.id,
        "orderId": payment.order_id,
        "paymentId": payment.payment_id,
        "studentId": payment.student_id,
        "alumniId": payment.alumni_id,
        "requestId": payment.request_id,
        "amount": payment.amount,
        "currency": payment.currency,
        "status": payment.status.value,
        "receipt": payment.receipt,
        "type": payment.type,
        "createdAt": payment.created_at.isoformat() if payment.created_at else None,
    }
