"""
Direct messaging between users.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import or_, and_
from sqlalchemy.orm import Session

from alumnihive.core.errors import NotFoundError, ValidationError
from alumnihive.core.message_gate import GateDecision, enforce_message_gate
from alumnihive.db.models.user import User
from alumnihive.db.models.message import Message, MessageType
from alumnihive.services.message_limit_service import record_daily_send

logger = logging.getLogger(__name__)


def _get_users(db: Session, *user_ids: int) -> List[User]:
    users = {user.id: user for user in db.query(User).filter(User.id.in_(user_ids)).all()}
    if len(users) != len(set(user_ids)):
        raise NotFoundError("One or both users not found")
    return [users[user_id] for user_id in user_ids]


def send_message(
    db: Session,
    sender_id: int,
    receiver_id: int,
    content: str,
    message_type: MessageType = MessageType.TEXT,
    now: Optional[datetime] = None,
) -> Tuple[Message, GateDecision]:
    """
    Send a direct message, passing through the messaging gate first.

    The gate's counter update and the message insert share one commit.
    """
    content = (content or "").strip()
    if not content:
        raise ValidationError("Message content is required")

    sender, receiver = _get_users(db, sender_id, receiver_id)
    decision = enforce_message_gate(db, sender, receiver, now)

    try:
        if decision.gated and not decision.subscribed:
            record_daily_send(db, sender.id, now)

        message = Message(
            sender_id=sender.id,
            receiver_id=receiver.id,
            content=content,
            message_type=message_type,
        )
        db.add(message)
        db.commit()
        db.refresh(message)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Message sent: message_id={message.id}, sender_id={sender_id}, receiver_id={receiver_id}")
    return message, decision


def get_conversation(
    db: Session,
    user_id: int,
    other_user_id: int,
    page: int = 1,
    limit: int = 50,
    now: Optional[datetime] = None,
) -> List[Message]:
    """
    Messages between two users, oldest first. Messages addressed to user_id
    are marked read as a side effect.
    """
    _get_users(db, user_id, other_user_id)

    pair_filter = or_(
        and_(Message.sender_id == user_id, Message.receiver_id == other_user_id),
        and_(Message.sender_id == other_user_id, Message.receiver_id == user_id),
    )
    messages = (
        db.query(Message)
        .filter(pair_filter)
        .order_by(Message.created_at.desc(), Message.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    messages.reverse()

    mark_as_read(db, user_id, other_user_id, now)
    return messages


def mark_as_read(db: Session, user_id: int, other_user_id: int, now: Optional[datetime] = None) -> int:
    """Mark every unread message from other_user_id to user_id as read."""
    updated = db.query(Message).filter(
        Message.sender_id == other_user_id,
        Message.receiver_id == user_id,
        Message.is_read.is_(False),
    ).update(
        {"is_read": True, "read_at": now or datetime.utcnow()},
        synchronize_session="fetch",
    )
    db.commit()
    return updated


def list_conversations(db: Session, user_id: int) -> List[Dict]:
    """One entry per counterpart: last message and unread count, newest first."""
    _get_users(db, user_id)

    messages = (
        db.query(Message)
        .filter(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
        .order_by(Message.created_at.desc(), Message.id.desc())
        .all()
    )

    conversations: Dict[int, Dict] = {}
    for message in messages:
        other_id = message.receiver_id if message.sender_id == user_id else message.sender_id
        entry = conversations.get(other_id)
        if entry is None:
            entry = conversations[other_id] = {
                "otherUserId": other_id,
                "lastMessage": message,
                "unreadCount": 0,
            }
        if message.receiver_id == user_id and not message.is_read:
            entry["unreadCount"] += 1

    if not conversations:
        return []

    others = {user.id: user for user in db.query(User).filter(User.id.in_(conversations.keys())).all()}
    result = []
    for other_id, entry in conversations.items():
        other = others.get(other_id)
        entry["otherUser"] = {
            "id": other_id,
            "name": other.full_name if other else None,
            "role": other.role.value if other else None,
            "profilePicture": other.profile_picture if other else None,
        }
        result.append(entry)
    return result
