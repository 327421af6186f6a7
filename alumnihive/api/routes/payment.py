import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from alumnihive.core.errors import AlumniHiveError, to_http_exception
from alumnihive.db.session import get_db
from alumnihive.schemas.subscription import MentorshipPaymentVerifyRequest
from alumnihive.services import payment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payment", tags=["Payment"])


@router.post("/verify")
def verify_payment(payload: MentorshipPaymentVerifyRequest, db: Session = Depends(get_db)):
    """Verify a mentorship-call payment. Replays of the same (orderId, paymentId) are no-ops."""
    try:
        payment, created = payment_service.verify_mentorship_payment(
            db,
            payload.order_id,
            payload.payment_id,
            payload.signature,
            payload.student_id,
            payload.alumni_id,
            payload.request_id,
        )
    except AlumniHiveError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to verify payment: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to verify payment")

    return {
        "success": True,
        "message": "Payment verified and stored successfully" if created else "Payment already verified",
        "paymentId": payment.payment_id,
        "orderId": payment.order_id,
        "studentId": payment.student_id,
        "alumniId": payment.alumni_id,
        "requestId": payment.request_id,
    }


@router.get("/status/{student_id}/{alumni_id}/{request_id}")
def payment_status(student_id: int, alumni_id: int, request_id: str, db: Session = Depends(get_db)):
    try:
        return payment_service.get_payment_status(db, student_id, alumni_id, request_id)
    except Exception as e:
        logger.error(f"Failed to check payment status: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to check payment status")
