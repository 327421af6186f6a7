"""
Subscription engine for student -> alumni messaging.

Handles plan pricing, activation, and the read-time derivation of whether a
student may message an alumni without spending free messages.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union

from dateutil.relativedelta import relativedelta
from sqlalchemy import func
from sqlalchemy.orm import Session

from alumnihive.core.config import FREE_MESSAGES_PER_ALUMNI
from alumnihive.core.errors import ConflictError, NotFoundError, ValidationError
from alumnihive.db.models.user import User, Role
from alumnihive.db.models.message_limit import PerAlumniMessageLimit
from alumnihive.db.models.subscription import (
    AlumniSubscription,
    QuarterlySubscription,
    SubscriptionStatus,
    SubscriptionType,
)

logger = logging.getLogger(__name__)

AnySubscription = Union[AlumniSubscription, QuarterlySubscription]

PLANS: Dict[str, Dict] = {
    SubscriptionType.MONTHLY.value: {
        "id": "monthly",
        "name": "Individual Monthly Access",
        "duration": "1 month",
        "months": 1,
        "price": 300,
        "platformCommission": 90,
        "alumniEarnings": 210,
        "features": [
            "Unlimited messages with this alumni",
            "Priority response time",
            "Direct mentorship access",
        ],
    },
    SubscriptionType.QUARTERLY.value: {
        "id": "quarterly",
        "name": "All Alumni Access",
        "duration": "3 months",
        "months": 3,
        "price": 1000,
        "platformCommission": 200,
        "alumniEarnings": 800,
        "features": [
            "Unlimited messages with ALL alumni",
            "Priority response time",
            "Direct mentorship access",
            "Exclusive networking events",
            "Career guidance sessions",
            "Access to premium content",
        ],
    },
}


def parse_subscription_type(value: str) -> SubscriptionType:
    try:
        return SubscriptionType(value)
    except ValueError:
        raise ValidationError("Invalid subscription type")


def get_plan(subscription_type: SubscriptionType) -> Dict:
    return PLANS[subscription_type.value]


def subscription_window(start: datetime, subscription_type: SubscriptionType) -> Tuple[datetime, datetime]:
    """Calendar-month window; relativedelta clamps Jan 31 + 1 month to Feb 28/29."""
    months = get_plan(subscription_type)["months"]
    return start, start + relativedelta(months=months)


# ============================================
# ✅ READ-TIME DERIVATION
# ============================================

def get_live_alumni_subscription(
    db: Session, student_id: int, alumni_id: int, now: Optional[datetime] = None
) -> Optional[AlumniSubscription]:
    now = now or datetime.utcnow()
    return db.query(AlumniSubscription).filter(
        AlumniSubscription.student_id == student_id,
        AlumniSubscription.alumni_id == alumni_id,
        AlumniSubscription.status == SubscriptionStatus.ACTIVE,
        AlumniSubscription.end_date > now,
    ).order_by(AlumniSubscription.end_date.desc()).first()


def get_live_quarterly_subscription(
    db: Session, student_id: int, now: Optional[datetime] = None
) -> Optional[QuarterlySubscription]:
    now = now or datetime.utcnow()
    return db.query(QuarterlySubscription).filter(
        QuarterlySubscription.student_id == student_id,
        QuarterlySubscription.status == SubscriptionStatus.ACTIVE,
        QuarterlySubscription.end_date > now,
    ).order_by(QuarterlySubscription.end_date.desc()).first()


def find_covering_subscription(
    db: Session, student_id: int, alumni_id: int, now: Optional[datetime] = None
) -> Optional[AnySubscription]:
    """
    Return the live subscription that lets student_id message alumni_id, if any.

    A pair subscription wins over a quarterly one so callers can report the
    narrower plan.
    """
    now = now or datetime.utcnow()
    return (
        get_live_alumni_subscription(db, student_id, alumni_id, now)
        or get_live_quarterly_subscription(db, student_id, now)
    )


def reconcile_limit_flag(
    db: Session, limit: PerAlumniMessageLimit, now: Optional[datetime] = None
) -> Optional[AnySubscription]:
    """
    Bring limit.is_subscribed in line with the subscription tables.

    The flag is a mirror only: it is set when a live subscription exists and
    cleared when it does not. Does not commit.
    """
    covering = find_covering_subscription(db, limit.student_id, limit.alumni_id, now)
    if covering is None and limit.is_subscribed:
        logger.info(
            f"Clearing stale subscription flag: student_id={limit.student_id}, "
            f"alumni_id={limit.alumni_id}, subscription_id={limit.subscription_id}"
        )
        limit.is_subscribed = False
        limit.subscription_id = None
    elif covering is not None and (not limit.is_subscribed or limit.subscription_id != covering.id):
        limit.is_subscribed = True
        limit.subscription_id = covering.id
    return covering


def get_or_create_limit(
    db: Session, student_id: int, alumni_id: int, now: Optional[datetime] = None
) -> PerAlumniMessageLimit:
    """Fetch the pair's counter row, inserting a zeroed one if missing. Flushes, does not commit."""
    limit = db.query(PerAlumniMessageLimit).filter(
        PerAlumniMessageLimit.student_id == student_id,
        PerAlumniMessageLimit.alumni_id == alumni_id,
    ).first()
    if limit is None:
        limit = PerAlumniMessageLimit(
            student_id=student_id,
            alumni_id=alumni_id,
            message_count=0,
            last_reset_date=now or datetime.utcnow(),
            is_subscribed=False,
        )
        db.add(limit)
        db.flush()
    return limit


# ============================================
# ✅ ACTIVATION
# ============================================

def _load_role(db: Session, user_id: Optional[int], role: Role, label: str) -> User:
    user = db.query(User).filter(User.id == user_id).first() if user_id is not None else None
    if not user or user.role != role:
        raise NotFoundError(f"{label} not found")
    return user


def find_by_payment_id(db: Session, payment_id: Optional[str]) -> Optional[AnySubscription]:
    if not payment_id:
        return None
    return (
        db.query(AlumniSubscription).filter(AlumniSubscription.payment_id == payment_id).first()
        or db.query(QuarterlySubscription).filter(QuarterlySubscription.payment_id == payment_id).first()
    )


def _same_scope(
    existing: AnySubscription, student_id: int, alumni_id: Optional[int], plan_type: SubscriptionType
) -> bool:
    if existing.student_id != student_id or existing.subscription_type != plan_type:
        return False
    # Quarterly covers every alumni, so only the per-alumni plan pins one
    if isinstance(existing, AlumniSubscription):
        return existing.alumni_id == alumni_id
    return True


def activate_subscription(
    db: Session,
    student_id: int,
    alumni_id: Optional[int],
    subscription_type: str,
    payment_id: Optional[str] = None,
    now: Optional[datetime] = None,
    commit: bool = True,
) -> Tuple[AnySubscription, bool]:
    """
    Create a monthly or quarterly subscription and propagate it to the gate rows.

    Replaying a payment_id returns the subscription it already activated.

    Returns:
        (subscription, created) where created is False for an idempotent replay

    Raises:
        ValidationError: Unknown subscription type, or payment_id already activated a different scope
        NotFoundError: Student or alumni missing (or wrong role)
        ConflictError: An active subscription for the same scope exists
    """
    now = now or datetime.utcnow()
    plan_type = parse_subscription_type(subscription_type)

    existing = find_by_payment_id(db, payment_id)
    if existing is not None:
        if not _same_scope(existing, student_id, alumni_id, plan_type):
            logger.warning(
                f"Subscription replay with different scope rejected: payment_id={payment_id}, "
                f"subscription_id={existing.id}, student_id={student_id}"
            )
            raise ValidationError("Payment already used for another subscription")
        logger.info(f"Subscription replay ignored: payment_id={payment_id}, subscription_id={existing.id}")
        return existing, False

    _load_role(db, student_id, Role.STUDENT, "Student")
    if plan_type == SubscriptionType.MONTHLY or alumni_id is not None:
        _load_role(db, alumni_id, Role.ALUMNI, "Alumni")

    plan = get_plan(plan_type)
    start_date, end_date = subscription_window(now, plan_type)

    if plan_type == SubscriptionType.QUARTERLY:
        if get_live_quarterly_subscription(db, student_id, now):
            raise ConflictError("Active subscription already exists")

        subscription = QuarterlySubscription(
            student_id=student_id,
            subscription_type=SubscriptionType.QUARTERLY,
            amount=plan["price"],
            platform_commission=plan["platformCommission"],
            status=SubscriptionStatus.ACTIVE,
            start_date=start_date,
            end_date=end_date,
            payment_id=payment_id,
        )
        db.add(subscription)
        db.flush()

        # Existing pair rows only; rows created later consult the quarterly table themselves
        updated = db.query(PerAlumniMessageLimit).filter(
            PerAlumniMessageLimit.student_id == student_id
        ).update(
            {"is_subscribed": True, "subscription_id": subscription.id},
            synchronize_session="fetch",
        )
        logger.info(f"Quarterly subscription fanned out: student_id={student_id}, rows={updated}")
    else:
        if get_live_alumni_subscription(db, student_id, alumni_id, now):
            raise ConflictError("Active subscription already exists")

        subscription = AlumniSubscription(
            student_id=student_id,
            alumni_id=alumni_id,
            subscription_type=SubscriptionType.MONTHLY,
            amount=plan["price"],
            platform_commission=plan["platformCommission"],
            alumni_earnings=plan["alumniEarnings"],
            status=SubscriptionStatus.ACTIVE,
            start_date=start_date,
            end_date=end_date,
            payment_id=payment_id,
        )
        db.add(subscription)
        db.flush()

        limit = get_or_create_limit(db, student_id, alumni_id, now)
        limit.is_subscribed = True
        limit.subscription_id = subscription.id

    if commit:
        db.commit()
        db.refresh(subscription)

    logger.info(
        f"Subscription activated: type={plan_type.value}, student_id={student_id}, "
        f"alumni_id={alumni_id}, subscription_id={subscription.id}, until={end_date.isoformat()}"
    )
    return subscription, True


# ============================================
# ✅ QUERIES
# ============================================

def get_subscription_status(
    db: Session, student_id: int, alumni_id: int, now: Optional[datetime] = None
) -> Dict:
    now = now or datetime.utcnow()
    limit = db.query(PerAlumniMessageLimit).filter(
        PerAlumniMessageLimit.student_id == student_id,
        PerAlumniMessageLimit.alumni_id == alumni_id,
    ).first()

    covering = find_covering_subscription(db, student_id, alumni_id, now)

    if limit is None:
        return {
            "hasSubscription": covering is not None,
            "messageCount": 0,
            "remainingMessages": -1 if covering is not None else FREE_MESSAGES_PER_ALUMNI,
            "requiresSubscription": False,
            "subscription": serialize_subscription(covering) if covering else None,
        }

    if bool(limit.is_subscribed) != (covering is not None):
        reconcile_limit_flag(db, limit, now)
        db.commit()

    has_subscription = covering is not None
    return {
        "hasSubscription": has_subscription,
        "messageCount": limit.message_count,
        "remainingMessages": -1 if has_subscription else max(0, FREE_MESSAGES_PER_ALUMNI - limit.message_count),
        "requiresSubscription": not has_subscription and limit.message_count >= FREE_MESSAGES_PER_ALUMNI,
        "subscription": serialize_subscription(covering) if covering else None,
    }


def list_plans(db: Session, alumni_id: int) -> Dict:
    alumni = _load_role(db, alumni_id, Role.ALUMNI, "Alumni")
    plans = [
        {key: value for key, value in plan.items() if key != "months"}
        for plan in PLANS.values()
    ]
    return {"plans": plans, "alumni": {"id": alumni.id, "name": alumni.full_name}}


def list_student_subscriptions(db: Session, student_id: int) -> List[AnySubscription]:
    monthly = db.query(AlumniSubscription).filter(AlumniSubscription.student_id == student_id).all()
    quarterly = db.query(QuarterlySubscription).filter(QuarterlySubscription.student_id == student_id).all()
    return sorted(monthly + quarterly, key=lambda sub: sub.start_date, reverse=True)


def get_alumni_earnings(db: Session, alumni_id: int, now: Optional[datetime] = None) -> Dict:
    now = now or datetime.utcnow()
    live_filter = (
        AlumniSubscription.alumni_id == alumni_id,
        AlumniSubscription.status == SubscriptionStatus.ACTIVE,
        AlumniSubscription.end_date > now,
    )
    active_count, total_earnings, total_commission = db.query(
        func.count(AlumniSubscription.id),
        func.coalesce(func.sum(AlumniSubscription.alumni_earnings), 0),
        func.coalesce(func.sum(AlumniSubscription.platform_commission), 0),
    ).filter(*live_filter).one()

    history = db.query(AlumniSubscription).filter(
        AlumniSubscription.alumni_id == alumni_id
    ).order_by(AlumniSubscription.start_date.desc()).all()

    return {
        "activeSubscriptions": int(active_count),
        "totalEarnings": int(total_earnings),
        "totalPlatformCommission": int(total_commission),
        "subscriptions": [serialize_subscription(sub) for sub in history],
    }


def serialize_subscription(subscription: AnySubscription) -> Dict:
    data = {
        "id": subscription.id,
        "type": subscription.subscription_type.value,
        "studentId": subscription.student_id,
        "amount": subscription.amount,
        "platformCommission": subscription.platform_commission,
        "status": subscription.status.value,
        "startDate": subscription.start_date.isoformat(),
        "endDate": subscription.end_date.isoformat(),
        "paymentId": subscription.payment_id,
    }
    if isinstance(subscription, AlumniSubscription):
        data["alumniId"] = subscription.alumni_id
        data["alumniEarnings"] = subscription.alumni_earnings
    return data
