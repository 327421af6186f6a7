"""
Messaging gate.

Students get FREE_MESSAGES_PER_ALUMNI lifetime messages per alumni. Past
that, a live monthly subscription for the pair or a live quarterly
subscription is required. Every other sender/receiver combination is ungated.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from alumnihive.core.config import FREE_MESSAGES_PER_ALUMNI
from alumnihive.db.models.user import User, Role
from alumnihive.db.models.message_limit import PerAlumniMessageLimit
from alumnihive.services.subscription_service import get_or_create_limit, reconcile_limit_flag

logger = logging.getLogger(__name__)


@dataclass
class GateDecision:
    gated: bool
    subscribed: bool = False
    message_count: int = 0

    @property
    def remaining_messages(self) -> Optional[int]:
        """-1 when subscribed, None when the pair is not gated at all."""
        if not self.gated:
            return None
        if self.subscribed:
            return -1
        return max(0, FREE_MESSAGES_PER_ALUMNI - self.message_count)


def is_gated(sender: User, receiver: User) -> bool:
    return sender.role == Role.STUDENT and receiver.role == Role.ALUMNI


def limit_reached_detail(receiver: User) -> dict:
    return {
        "error": "Message limit reached for this alumni",
        "message": (
            f"You have reached your limit of {FREE_MESSAGES_PER_ALUMNI} messages with this alumni. "
            "Subscribe to continue messaging."
        ),
        "remainingMessages": 0,
        "requiresSubscription": True,
        "alumniId": receiver.id,
        "alumniName": receiver.full_name,
    }


def _load_limit(db: Session, student_id: int, alumni_id: int, now: datetime) -> PerAlumniMessageLimit:
    try:
        return get_or_create_limit(db, student_id, alumni_id, now)
    except IntegrityError:
        # Another request created the row first
        db.rollback()
        return db.query(PerAlumniMessageLimit).filter(
            PerAlumniMessageLimit.student_id == student_id,
            PerAlumniMessageLimit.alumni_id == alumni_id,
        ).one()


def consume_free_message(db: Session, limit: PerAlumniMessageLimit) -> bool:
    """
    Spend one free message with a single conditional UPDATE.

    Returns False when the counter is already at the cap, including when a
    concurrent request took the last slot.
    """
    db.flush()
    updated = db.query(PerAlumniMessageLimit).filter(
        PerAlumniMessageLimit.id == limit.id,
        PerAlumniMessageLimit.message_count < FREE_MESSAGES_PER_ALUMNI,
    ).update(
        {"message_count": PerAlumniMessageLimit.message_count + 1},
        synchronize_session=False,
    )
    db.refresh(limit)
    return updated == 1


def enforce_message_gate(
    db: Session,
    sender: User,
    receiver: User,
    now: Optional[datetime] = None,
) -> GateDecision:
    """
    Decide whether sender may message receiver and record the attempt.

    Leaves its writes pending in the session; the caller commits them
    together with the message insert so a failed insert also undoes the
    counter increment.

    Raises HTTPException 429 with an upsell payload when the free allowance
    is spent and no subscription covers the pair.
    """
    if not is_gated(sender, receiver):
        return GateDecision(gated=False)

    now = now or datetime.utcnow()
    limit = _load_limit(db, sender.id, receiver.id, now)

    covering = reconcile_limit_flag(db, limit, now)
    if covering is not None:
        return GateDecision(gated=True, subscribed=True, message_count=limit.message_count)

    if not consume_free_message(db, limit):
        # Keep any flag reconciliation before rejecting
        db.commit()
        logger.warning(
            f"Message limit reached: student_id={sender.id}, alumni_id={receiver.id}, "
            f"count={limit.message_count}"
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=limit_reached_detail(receiver),
        )

    logger.info(
        f"Free message consumed: student_id={sender.id}, alumni_id={receiver.id}, "
        f"count={limit.message_count}/{FREE_MESSAGES_PER_ALUMNI}"
    )
    return GateDecision(gated=True, subscribed=False, message_count=limit.message_count)
