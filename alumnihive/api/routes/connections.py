import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from alumnihive.core.errors import AlumniHiveError, to_http_exception
from alumnihive.db.session import get_db
from alumnihive.schemas.connection import ConnectionRequestCreate, ConnectionRequestUpdate
from alumnihive.services import connection_service
from alumnihive.services.connection_service import serialize_connection

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/connections", tags=["Connections"])


def _raise(db: Session, e: Exception, action: str):
    db.rollback()
    if isinstance(e, AlumniHiveError):
        raise to_http_exception(e)
    logger.error(f"Failed to {action}: {e}", exc_info=True)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to {action}")


@router.get("/status/{user_a}/{user_b}")
def connection_status(user_a: int, user_b: int, db: Session = Depends(get_db)):
    return {"status": connection_service.connection_status(db, user_a, user_b)}


@router.get("/stats/{user_id}")
def connection_stats(user_id: int, db: Session = Depends(get_db)):
    try:
        return {"stats": connection_service.connection_stats(db, user_id)}
    except Exception as e:
        _raise(db, e, "fetch connection stats")


@router.post("/{requester_id}/{recipient_id}", status_code=status.HTTP_201_CREATED)
def send_request(
    requester_id: int,
    recipient_id: int,
    payload: ConnectionRequestCreate = None,
    db: Session = Depends(get_db)
):
    try:
        request = connection_service.send_request(
            db, requester_id, recipient_id, payload.message if payload else None
        )
    except Exception as e:
        _raise(db, e, "send connection request")
    return {"message": "Connection request sent successfully", "data": serialize_connection(request)}


@router.get("/{user_id}")
def list_requests(user_id: int, type: str = Query("received"), db: Session = Depends(get_db)):
    try:
        requests = connection_service.list_requests(db, user_id, type)
    except Exception as e:
        _raise(db, e, "fetch connection requests")
    return {"requests": [serialize_connection(r) for r in requests]}


@router.put("/{request_id}")
def update_request(request_id: int, payload: ConnectionRequestUpdate, db: Session = Depends(get_db)):
    try:
        request = connection_service.update_request(db, request_id, payload.status)
    except Exception as e:
        _raise(db, e, "update connection request")
    return {"message": "Connection request updated successfully", "data": serialize_connection(request)}
