import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from alumnihive.core.errors import AlumniHiveError, to_http_exception
from alumnihive.db.session import get_db
from alumnihive.schemas.batch import BatchMessageCreate, ChatTextRequest, ReactionRequest
from alumnihive.services import batch_chat_service
from alumnihive.services.batch_chat_service import serialize_chat_message

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/batches/{batch_id}/chat", tags=["Batch Chat"])


def _raise(db: Session, e: Exception, action: str):
    db.rollback()
    if isinstance(e, AlumniHiveError):
        raise to_http_exception(e)
    logger.error(f"Failed to {action}: {e}", exc_info=True)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to {action}")


@router.get("/messages")
def get_messages(
    batch_id: int,
    user_id: int = Query(..., alias="userId"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db)
):
    try:
        messages, total = batch_chat_service.get_messages(db, batch_id, user_id, page, limit)
    except Exception as e:
        _raise(db, e, "fetch messages")

    return {
        "messages": [serialize_chat_message(m, viewer_id=user_id) for m in messages],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


@router.post("/messages", status_code=status.HTTP_201_CREATED)
def send_message(batch_id: int, payload: BatchMessageCreate, db: Session = Depends(get_db)):
    try:
        message = batch_chat_service.send_message(
            db,
            batch_id,
            payload.user_id,
            payload.content,
            payload.message_type,
            payload.file_url,
            payload.file_name,
        )
    except Exception as e:
        _raise(db, e, "send message")
    return {"message": "Message sent successfully", "data": serialize_chat_message(message)}


@router.post("/messages/{message_id}/reactions")
def add_reaction(batch_id: int, message_id: int, payload: ReactionRequest, db: Session = Depends(get_db)):
    try:
        message = batch_chat_service.add_reaction(db, message_id, payload.user_id, payload.emoji)
    except Exception as e:
        _raise(db, e, "add reaction")
    return {"message": "Reaction added", "data": serialize_chat_message(message)}


@router.delete("/messages/{message_id}/reactions")
def remove_reaction(
    batch_id: int,
    message_id: int,
    user_id: int = Query(..., alias="userId"),
    db: Session = Depends(get_db)
):
    try:
        message = batch_chat_service.remove_reaction(db, message_id, user_id)
    except Exception as e:
        _raise(db, e, "remove reaction")
    return {"message": "Reaction removed", "data": serialize_chat_message(message)}


@router.post("/messages/{message_id}/replies", status_code=status.HTTP_201_CREATED)
def reply(batch_id: int, message_id: int, payload: ChatTextRequest, db: Session = Depends(get_db)):
    try:
        message = batch_chat_service.reply_to_message(db, message_id, payload.user_id, payload.content)
    except Exception as e:
        _raise(db, e, "add reply")
    return {"message": "Reply added", "data": serialize_chat_message(message)}


@router.put("/messages/{message_id}")
def edit_message(batch_id: int, message_id: int, payload: ChatTextRequest, db: Session = Depends(get_db)):
    try:
        message = batch_chat_service.edit_message(db, message_id, payload.user_id, payload.content)
    except Exception as e:
        _raise(db, e, "edit message")
    return {"message": "Message updated", "data": serialize_chat_message(message)}


@router.delete("/messages/{message_id}")
def delete_message(
    batch_id: int,
    message_id: int,
    user_id: int = Query(..., alias="userId"),
    db: Session = Depends(get_db)
):
    try:
        message = batch_chat_service.delete_message(db, message_id, user_id)
    except Exception as e:
        _raise(db, e, "delete message")
    return {"message": "Message deleted", "data": serialize_chat_message(message)}


@router.get("/info")
def chat_info(batch_id: int, db: Session = Depends(get_db)):
    try:
        return batch_chat_service.get_chat_info(db, batch_id)
    except Exception as e:
        _raise(db, e, "fetch chat info")


@router.get("/details")
def chat_details(batch_id: int, user_id: int = Query(..., alias="userId"), db: Session = Depends(get_db)):
    try:
        return batch_chat_service.get_chat_details(db, batch_id, user_id)
    except Exception as e:
        _raise(db, e, "fetch chat details")
