"""
Subscription endpoints: plans, activation, status and Razorpay verification.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from alumnihive.core.errors import AlumniHiveError, to_http_exception
from alumnihive.db.session import get_db
from alumnihive.schemas.subscription import (
    CreateSubscriptionRequest,
    JobUnlockVerifyRequest,
    SubscriptionPaymentVerifyRequest,
)
from alumnihive.services import payment_service, subscription_service
from alumnihive.services.subscription_service import serialize_subscription

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscriptions", tags=["Subscriptions"])


def _fail(db: Session, e: Exception, action: str):
    db.rollback()
    if isinstance(e, AlumniHiveError):
        return to_http_exception(e)
    logger.error(f"Failed to {action}: {e}", exc_info=True)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to {action}")


@router.get("/plans/{alumni_id}")
def get_plans(alumni_id: int, db: Session = Depends(get_db)):
    try:
        return subscription_service.list_plans(db, alumni_id)
    except Exception as e:
        raise _fail(db, e, "fetch subscription plans")


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_subscription(
    payload: CreateSubscriptionRequest,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Activate a monthly (one alumni) or quarterly (all alumni) subscription.

    Resubmitting a paymentId that already activated a subscription returns
    that subscription with 200 instead of creating another.
    """
    try:
        subscription, created = subscription_service.activate_subscription(
            db,
            payload.student_id,
            payload.alumni_id,
            payload.subscription_type,
            payment_id=payload.payment_id,
        )
    except Exception as e:
        raise _fail(db, e, "create subscription")

    if not created:
        response.status_code = status.HTTP_200_OK
        return {"message": "Subscription already active for this payment", "subscription": serialize_subscription(subscription)}

    return {"message": "Subscription created successfully", "subscription": serialize_subscription(subscription)}


@router.get("/status/{student_id}/{alumni_id}")
def check_subscription_status(student_id: int, alumni_id: int, db: Session = Depends(get_db)):
    try:
        return subscription_service.get_subscription_status(db, student_id, alumni_id)
    except Exception as e:
        raise _fail(db, e, "check subscription status")


@router.get("/student/{student_id}")
def get_student_subscriptions(student_id: int, db: Session = Depends(get_db)):
    try:
        subscriptions = subscription_service.list_student_subscriptions(db, student_id)
    except Exception as e:
        raise _fail(db, e, "fetch subscriptions")
    return {"subscriptions": [serialize_subscription(sub) for sub in subscriptions]}


@router.get("/alumni/{alumni_id}/earnings")
def get_alumni_earnings(alumni_id: int, db: Session = Depends(get_db)):
    try:
        return subscription_service.get_alumni_earnings(db, alumni_id)
    except Exception as e:
        raise _fail(db, e, "fetch earnings")


@router.post("/razorpay/verify", status_code=status.HTTP_201_CREATED)
def verify_subscription_payment(
    payload: SubscriptionPaymentVerifyRequest,
    response: Response,
    db: Session = Depends(get_db)
):
    try:
        subscription, created = payment_service.verify_subscription_payment(
            db,
            payload.order_id,
            payload.payment_id,
            payload.signature,
            payload.student_id,
            payload.alumni_id,
            payload.subscription_type,
        )
    except Exception as e:
        raise _fail(db, e, "verify payment")

    if not created:
        response.status_code = status.HTTP_200_OK
    return {
        "message": "Payment verified and subscription created successfully",
        "subscription": serialize_subscription(subscription),
    }


@router.post("/razorpay/job-unlock-verify")
def verify_job_unlock_payment(payload: JobUnlockVerifyRequest, db: Session = Depends(get_db)):
    try:
        return payment_service.verify_job_unlock_payment(
            db,
            payload.order_id,
            payload.payment_id,
            payload.signature,
            payload.job_id,
            payload.user_id,
            payload.amount,
        )
    except Exception as e:
        raise _fail(db, e, "unlock job")
