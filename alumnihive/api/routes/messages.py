"""
Direct messaging endpoints.

Student -> alumni sends pass through the messaging gate (core.message_gate).
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from alumnihive.core.errors import AlumniHiveError, to_http_exception
from alumnihive.db.session import get_db
from alumnihive.schemas.message import MessageResponse, SendMessageRequest
from alumnihive.services import message_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/messages", tags=["Messages"])


def message_payload(message) -> dict:
    return MessageResponse.model_validate(message).model_dump(by_alias=True, mode="json")


@router.get("/conversations/{user_id}")
def list_conversations(user_id: int, db: Session = Depends(get_db)):
    try:
        conversations = message_service.list_conversations(db, user_id)
    except AlumniHiveError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to fetch conversations: user_id={user_id}, error={e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch conversations")

    for entry in conversations:
        entry["lastMessage"] = message_payload(entry["lastMessage"])
    return {"conversations": conversations}


@router.post("/{sender_id}/{receiver_id}", status_code=status.HTTP_201_CREATED)
def send_message(
    sender_id: int,
    receiver_id: int,
    payload: SendMessageRequest,
    db: Session = Depends(get_db)
):
    """
    Send a message. Returns 429 with an upsell payload once a student has
    used their free messages with an alumni and holds no subscription.
    """
    try:
        message, decision = message_service.send_message(
            db, sender_id, receiver_id, payload.content, payload.message_type
        )
    except HTTPException:
        raise
    except AlumniHiveError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to send message: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to send message")

    return {
        "message": "Message sent successfully",
        "data": message_payload(message),
        "remainingMessages": decision.remaining_messages,
    }


@router.get("/{user_id}/{other_user_id}")
def get_conversation(
    user_id: int,
    other_user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db)
):
    try:
        messages = message_service.get_conversation(db, user_id, other_user_id, page=page, limit=limit)
    except AlumniHiveError as e:
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to fetch conversation: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch messages")

    return {"messages": [message_payload(m) for m in messages], "page": page, "limit": limit}


@router.put("/{user_id}/{other_user_id}/read")
def mark_as_read(user_id: int, other_user_id: int, db: Session = Depends(get_db)):
    try:
        updated = message_service.mark_as_read(db, user_id, other_user_id)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to mark messages read: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to mark messages as read")

    return {"message": "Messages marked as read", "updated": updated}
