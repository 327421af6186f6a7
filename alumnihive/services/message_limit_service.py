"""
Per-user daily message counter.

Informational only: the per-alumni counter in core.message_gate decides
whether a send is allowed. This one backs the /message-limits endpoints.
"""
import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.orm import Session

from alumnihive.core.config import FREE_MESSAGES_PER_DAY
from alumnihive.core.errors import NotFoundError
from alumnihive.db.models.message_limit import MessageLimit
from alumnihive.db.models.user import User
from alumnihive.db.models.subscription import AlumniSubscription, QuarterlySubscription, SubscriptionStatus

logger = logging.getLogger(__name__)


def get_or_create_daily_limit(db: Session, user_id: int, now: Optional[datetime] = None) -> MessageLimit:
    now = now or datetime.utcnow()
    limit = db.query(MessageLimit).filter(MessageLimit.user_id == user_id).first()
    if limit is None:
        if not db.query(User.id).filter(User.id == user_id).first():
            raise NotFoundError("User not found")
        limit = MessageLimit(
            user_id=user_id,
            daily_message_count=0,
            last_reset_date=now,
            total_messages_sent=0,
            subscription_status="free",
        )
        db.add(limit)
        db.flush()
    else:
        limit.roll_over(now)
    return limit


def has_any_live_subscription(db: Session, user_id: int, now: datetime) -> bool:
    pair = db.query(AlumniSubscription.id).filter(
        AlumniSubscription.student_id == user_id,
        AlumniSubscription.status == SubscriptionStatus.ACTIVE,
        AlumniSubscription.end_date > now,
    ).first()
    if pair:
        return True
    quarterly = db.query(QuarterlySubscription.id).filter(
        QuarterlySubscription.student_id == user_id,
        QuarterlySubscription.status == SubscriptionStatus.ACTIVE,
        QuarterlySubscription.end_date > now,
    ).first()
    return quarterly is not None


def record_daily_send(db: Session, user_id: int, now: Optional[datetime] = None) -> MessageLimit:
    """Bump today's and lifetime counters. Does not commit."""
    limit = get_or_create_daily_limit(db, user_id, now)
    limit.daily_message_count += 1
    limit.total_messages_sent += 1
    return limit


def get_limit_status(db: Session, user_id: int, now: Optional[datetime] = None) -> Dict:
    now = now or datetime.utcnow()
    limit = get_or_create_daily_limit(db, user_id, now)
    is_premium = limit.subscription_status == "premium" or has_any_live_subscription(db, user_id, now)
    db.commit()

    return {
        "dailyMessageCount": limit.daily_message_count,
        "remainingMessages": -1 if is_premium else max(0, FREE_MESSAGES_PER_DAY - limit.daily_message_count),
        "isPremium": is_premium,
        "lastResetDate": limit.last_reset_date.isoformat(),
        "totalMessagesSent": limit.total_messages_sent,
    }


def can_send(db: Session, user_id: int, now: Optional[datetime] = None) -> Dict:
    status = get_limit_status(db, user_id, now)
    return {
        "canSend": status["isPremium"] or status["remainingMessages"] > 0,
        "isPremium": status["isPremium"],
        "remainingMessages": status["remainingMessages"],
    }


def increment(db: Session, user_id: int, now: Optional[datetime] = None) -> MessageLimit:
    limit = record_daily_send(db, user_id, now)
    db.commit()
    db.refresh(limit)
    logger.info(f"Daily message count incremented: user_id={user_id}, daily={limit.daily_message_count}")
    return limit
