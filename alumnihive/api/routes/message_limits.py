import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from alumnihive.core.errors import AlumniHiveError, to_http_exception
from alumnihive.db.session import get_db
from alumnihive.schemas.message import CanSendRequest, UserIdRequest
from alumnihive.services import message_limit_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/message-limits", tags=["Message Limits"])


@router.get("/{user_id}")
def get_status(user_id: int, db: Session = Depends(get_db)):
    try:
        return message_limit_service.get_limit_status(db, user_id)
    except AlumniHiveError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to get message limit status: user_id={user_id}, error={e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.post("/can-send")
def can_send(payload: CanSendRequest, db: Session = Depends(get_db)):
    try:
        return message_limit_service.can_send(db, payload.user_id)
    except AlumniHiveError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to check message limit: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.post("/increment")
def increment(payload: UserIdRequest, db: Session = Depends(get_db)):
    try:
        limit = message_limit_service.increment(db, payload.user_id)
    except AlumniHiveError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to increment message count: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")

    return {
        "success": True,
        "dailyMessageCount": limit.daily_message_count,
        "totalMessagesSent": limit.total_messages_sent,
    }
