"""
Connection requests between users.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from alumnihive.core.errors import ConflictError, NotFoundError, ValidationError
from alumnihive.db.models.connection import ConnectionRequest, ConnectionStatus
from alumnihive.db.models.user import User

logger = logging.getLogger(__name__)


def _between(user_a: int, user_b: int):
    return or_(
        and_(ConnectionRequest.requester_id == user_a, ConnectionRequest.recipient_id == user_b),
        and_(ConnectionRequest.requester_id == user_b, ConnectionRequest.recipient_id == user_a),
    )


def send_request(db: Session, requester_id: int, recipient_id: int, message: Optional[str] = None) -> ConnectionRequest:
    """
    Raises:
        ValidationError: Requesting a connection with yourself
        NotFoundError: Either user missing
        ConflictError: A request already exists between the pair, in either direction
    """
    if requester_id == recipient_id:
        raise ValidationError("You cannot connect with yourself")

    found = db.query(User.id).filter(User.id.in_([requester_id, recipient_id])).count()
    if found != 2:
        raise NotFoundError("One or both users not found")

    existing = db.query(ConnectionRequest).filter(_between(requester_id, recipient_id)).first()
    if existing is not None:
        raise ConflictError("Connection request already exists", status=existing.status.value)

    request = ConnectionRequest(
        requester_id=requester_id,
        recipient_id=recipient_id,
        message=(message or "").strip(),
        status=ConnectionStatus.PENDING,
    )
    db.add(request)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Connection request already exists")

    db.refresh(request)
    logger.info(f"Connection requested: requester_id={requester_id}, recipient_id={recipient_id}")
    return request


def list_requests(db: Session, user_id: int, direction: str = "received") -> List[ConnectionRequest]:
    if direction not in ("sent", "received"):
        raise ValidationError("Invalid type. Must be 'sent' or 'received'")
    column = ConnectionRequest.requester_id if direction == "sent" else ConnectionRequest.recipient_id
    return (
        db.query(ConnectionRequest)
        .filter(column == user_id)
        .order_by(ConnectionRequest.created_at.desc(), ConnectionRequest.id.desc())
        .all()
    )


def update_request(db: Session, request_id: int, status: str) -> ConnectionRequest:
    if status not in (ConnectionStatus.ACCEPTED.value, ConnectionStatus.REJECTED.value):
        raise ValidationError("Invalid status. Must be 'accepted' or 'rejected'")

    request = db.query(ConnectionRequest).filter(ConnectionRequest.id == request_id).first()
    if not request:
        raise NotFoundError("Connection request not found")

    request.status = ConnectionStatus(status)
    db.commit()
    db.refresh(request)
    logger.info(f"Connection request {status}: request_id={request_id}")
    return request


def connection_status(db: Session, user_a: int, user_b: int) -> str:
    request = db.query(ConnectionRequest).filter(_between(user_a, user_b)).first()
    return request.status.value if request else "none"


def connection_stats(db: Session, user_id: int) -> Dict:
    def count(*criteria) -> int:
        return db.query(func.count(ConnectionRequest.id)).filter(*criteria).scalar() or 0

    return {
        "totalConnections": count(
            or_(ConnectionRequest.requester_id == user_id, ConnectionRequest.recipient_id == user_id),
            ConnectionRequest.status == ConnectionStatus.ACCEPTED,
        ),
        "pendingRequests": count(
            ConnectionRequest.recipient_id == user_id,
            ConnectionRequest.status == ConnectionStatus.PENDING,
        ),
        "sentRequests": count(
            ConnectionRequest.requester_id == user_id,
            ConnectionRequest.status == ConnectionStatus.PENDING,
        ),
        "receivedRequests": count(ConnectionRequest.recipient_id == user_id),
    }


def _person(user: User) -> Dict:
    return {
        "id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "profilePicture": user.profile_picture,
    }


def serialize_connection(request: ConnectionRequest) -> Dict:
    return {
        "id": request.id,
        "requester": _person(request.requester),
        "recipient": _person(request.recipient),
        "status": request.status.value,
        "message": request.message,
        "createdAt": request.created_at.isoformat() if request.created_at else None,
    }
