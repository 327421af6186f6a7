"""
Batch group chat.

Only batch members post. Members and students may read. Reactions are one
per user per message (the latest wins). Deleting a message keeps the row but
replaces the content with a placeholder.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from alumnihive.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from alumnihive.db.models.batch import Batch
from alumnihive.db.models.batch_chat import (
    DELETED_PLACEHOLDER,
    BatchChatMessage,
    BatchChatReaction,
    BatchChatRead,
    BatchChatReply,
)
from alumnihive.db.models.message import MessageType
from alumnihive.db.models.user import User, Role
from alumnihive.services.batch_service import get_batch_or_404

logger = logging.getLogger(__name__)


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def _get_message(db: Session, message_id: int, missing: str = "Message not found") -> BatchChatMessage:
    message = db.query(BatchChatMessage).filter(BatchChatMessage.id == message_id).first()
    if not message:
        raise NotFoundError(missing)
    return message


def can_view(batch: Batch, user: User) -> bool:
    return batch.has_member(user.id) or user.role in (Role.STUDENT, Role.ADMIN)


def _require_member(batch: Batch, user: User, message: str) -> None:
    if not batch.has_member(user.id):
        raise PermissionDeniedError(message)


def get_messages(
    db: Session, batch_id: int, user_id: int, page: int = 1, limit: int = 50
) -> Tuple[List[BatchChatMessage], int]:
    """Page of messages, oldest first, with read receipts recorded for the viewer."""
    user = _get_user(db, user_id)
    batch = get_batch_or_404(db, batch_id)
    if not can_view(batch, user):
        raise PermissionDeniedError("Access denied. You are not authorized to view this batch.")

    query = db.query(BatchChatMessage).filter(BatchChatMessage.batch_id == batch.id)
    total = query.count()
    messages = (
        query.order_by(BatchChatMessage.created_at.desc(), BatchChatMessage.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    messages.reverse()

    receipts = 0
    for message in messages:
        if message.sender_id != user.id and not message.is_read_by(user.id):
            message.read_by.append(BatchChatRead(user_id=user.id))
            receipts += 1
    if receipts:
        db.commit()

    return messages, total


def send_message(
    db: Session,
    batch_id: int,
    user_id: int,
    content: str,
    message_type: MessageType = MessageType.TEXT,
    file_url: Optional[str] = None,
    file_name: Optional[str] = None,
) -> BatchChatMessage:
    content = (content or "").strip()
    if message_type == MessageType.TEXT and not content:
        raise ValidationError("Message content is required")
    if message_type != MessageType.TEXT and not file_url:
        raise ValidationError("File is required")

    user = _get_user(db, user_id)
    batch = get_batch_or_404(db, batch_id)
    _require_member(batch, user, "Access denied. Only batch members can send messages.")

    message = BatchChatMessage(
        batch_id=batch.id,
        sender_id=user.id,
        content=content or file_name or "",
        message_type=message_type,
        file_url=file_url,
        file_name=file_name,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info(f"Batch message sent: batch_id={batch_id}, message_id={message.id}, sender_id={user_id}")
    return message


def _find_reaction(message: BatchChatMessage, user_id: int) -> Optional[BatchChatReaction]:
    return next((reaction for reaction in message.reactions if reaction.user_id == user_id), None)


def add_reaction(db: Session, message_id: int, user_id: int, emoji: str) -> BatchChatMessage:
    message = _get_message(db, message_id)
    _get_user(db, user_id)

    current = _find_reaction(message, user_id)
    if current is not None:
        current.emoji = emoji
    else:
        message.reactions.append(BatchChatReaction(user_id=user_id, emoji=emoji))

    try:
        db.commit()
    except IntegrityError:
        # A concurrent request inserted this user's reaction first
        db.rollback()
        current = db.query(BatchChatReaction).filter(
            BatchChatReaction.message_id == message_id,
            BatchChatReaction.user_id == user_id,
        ).first()
        if current is None:
            raise
        current.emoji = emoji
        db.commit()

    db.refresh(message)
    return message


def remove_reaction(db: Session, message_id: int, user_id: int) -> BatchChatMessage:
    message = _get_message(db, message_id)
    message.reactions = [reaction for reaction in message.reactions if reaction.user_id != user_id]
    db.commit()
    db.refresh(message)
    return message


def reply_to_message(db: Session, message_id: int, user_id: int, content: str) -> BatchChatMessage:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Reply content is required")

    message = _get_message(db, message_id, missing="Original message not found")
    user = _get_user(db, user_id)
    _require_member(message_batch(db, message), user, "Access denied. Only batch members can reply.")

    message.replies.append(BatchChatReply(sender_id=user.id, content=content))
    db.commit()
    db.refresh(message)
    return message


def edit_message(
    db: Session, message_id: int, user_id: int, content: str, now: Optional[datetime] = None
) -> BatchChatMessage:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Message content is required")

    message = _get_message(db, message_id)
    if message.sender_id != user_id:
        raise PermissionDeniedError("You can only edit your own messages")
    if message.is_deleted:
        raise ValidationError("Cannot edit a deleted message")

    message.content = content
    message.is_edited = True
    message.edited_at = now or datetime.utcnow()
    db.commit()
    db.refresh(message)
    return message


def delete_message(db: Session, message_id: int, user_id: int, now: Optional[datetime] = None) -> BatchChatMessage:
    message = _get_message(db, message_id)
    if message.sender_id != user_id:
        raise PermissionDeniedError("You can only delete your own messages")

    message.content = DELETED_PLACEHOLDER
    message.is_deleted = True
    message.deleted_at = now or datetime.utcnow()
    message.file_url = None
    message.file_name = None
    db.commit()
    db.refresh(message)
    logger.info(f"Batch message deleted: message_id={message_id}, user_id={user_id}")
    return message


def message_batch(db: Session, message: BatchChatMessage) -> Batch:
    return get_batch_or_404(db, message.batch_id)


def get_chat_info(db: Session, batch_id: int) -> Dict:
    batch = get_batch_or_404(db, batch_id)
    last_message = (
        db.query(BatchChatMessage)
        .filter(BatchChatMessage.batch_id == batch.id, BatchChatMessage.is_deleted.is_(False))
        .order_by(BatchChatMessage.created_at.desc(), BatchChatMessage.id.desc())
        .first()
    )
    return {
        "batchId": batch.id,
        "batchName": batch.name,
        "memberCount": len(batch.members),
        "messageCount": db.query(BatchChatMessage).filter(BatchChatMessage.batch_id == batch.id).count(),
        "lastMessage": serialize_chat_message(last_message) if last_message else None,
    }


def get_chat_details(db: Session, batch_id: int, user_id: int) -> Dict:
    user = _get_user(db, user_id)
    batch = get_batch_or_404(db, batch_id)
    _require_member(batch, user, "Access denied. You are not a member of this batch.")

    messages = db.query(BatchChatMessage).filter(BatchChatMessage.batch_id == batch.id).all()
    unread = sum(1 for m in messages if m.sender_id != user.id and not m.is_read_by(user.id))

    members_by_role: Dict[str, int] = {role.value: 0 for role in Role}
    for member in batch.members:
        members_by_role[member.role.value] += 1

    return {
        "batch": {
            "id": batch.id,
            "name": batch.name,
            "college": batch.college,
            "graduationYear": batch.graduation_year,
        },
        "stats": {
            "totalMessages": len(messages),
            "unreadCount": unread,
            "deletedMessages": sum(1 for m in messages if m.is_deleted),
            "membersByRole": members_by_role,
            "totalMembers": len(batch.members),
        },
    }


def serialize_chat_message(message: BatchChatMessage, viewer_id: Optional[int] = None) -> Dict:
    data = {
        "id": message.id,
        "batchId": message.batch_id,
        "senderId": message.sender_id,
        "senderName": message.sender.full_name if message.sender else None,
        "content": message.content,
        "messageType": message.message_type.value,
        "fileUrl": message.file_url,
        "fileName": message.file_name,
        "isEdited": message.is_edited,
        "isDeleted": message.is_deleted,
        "reactions": [{"userId": r.user_id, "emoji": r.emoji} for r in message.reactions],
        "replies": [
            {"id": r.id, "senderId": r.sender_id, "content": r.content,
             "createdAt": r.created_at.isoformat() if r.created_at else None}
            for r in message.replies
        ],
        "readBy": [r.user_id for r in message.read_by],
        "createdAt": message.created_at.isoformat() if message.created_at else None,
    }
    if viewer_id is not None:
        data["isReadByMe"] = message.sender_id == viewer_id or message.is_read_by(viewer_id)
    return data
