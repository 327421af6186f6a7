"""
Mentorship request endpoints.

Students open requests, alumni accept or reject them, finished calls are
logged against a request and completing it records a mentor session.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from alumnihive.core.errors import AlumniHiveError, to_http_exception
from alumnihive.db.session import get_db
from alumnihive.schemas.mentorship import (
    CompleteCallRequest,
    MentorshipRequestCreate,
    RejectMentorshipRequest,
    RespondMentorshipRequest,
)
from alumnihive.services import mentorship_service
from alumnihive.services.mentorship_service import serialize_request, serialize_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mentorship", tags=["Mentorship"])


def _raise(db: Session, e: Exception, action: str):
    db.rollback()
    if isinstance(e, AlumniHiveError):
        raise to_http_exception(e)
    logger.error(f"Failed to {action}: {e}", exc_info=True)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to {action}")


@router.post("/requests", status_code=status.HTTP_201_CREATED)
def create_request(payload: MentorshipRequestCreate, db: Session = Depends(get_db)):
    try:
        request = mentorship_service.create_request(
            db,
            payload.student_id,
            payload.alumni_id,
            payload.category,
            payload.title,
            payload.description,
            payload.skills_needed,
            payload.expected_duration,
            payload.preferred_communication,
            payload.priority,
            payload.student_message,
        )
    except Exception as e:
        _raise(db, e, "create mentorship request")
    return {"message": "Mentorship request created successfully", "request": serialize_request(request)}


@router.get("/requests/alumni/{alumni_id}")
def requests_for_alumni(alumni_id: int, db: Session = Depends(get_db)):
    try:
        requests = mentorship_service.list_for_alumni(db, alumni_id)
    except Exception as e:
        _raise(db, e, "fetch mentorship requests")
    return {"requests": [serialize_request(r, db=db) for r in requests]}


@router.get("/requests/student/{student_id}")
def requests_for_student(student_id: int, db: Session = Depends(get_db)):
    try:
        requests = mentorship_service.list_for_student(db, student_id)
    except Exception as e:
        _raise(db, e, "fetch mentorship requests")
    return {"requests": [serialize_request(r, db=db) for r in requests]}


@router.put("/requests/{request_id}/accept")
def accept_request(request_id: int, payload: RespondMentorshipRequest = None, db: Session = Depends(get_db)):
    try:
        request = mentorship_service.accept_request(db, request_id, payload.alumni_response if payload else None)
    except Exception as e:
        _raise(db, e, "accept mentorship request")
    return {"message": "Mentorship request accepted successfully", "request": serialize_request(request)}


@router.put("/requests/{request_id}/reject")
def reject_request(request_id: int, payload: RejectMentorshipRequest, db: Session = Depends(get_db)):
    try:
        request = mentorship_service.reject_request(db, request_id, payload.rejection_reason)
    except Exception as e:
        _raise(db, e, "reject mentorship request")
    return {"message": "Mentorship request rejected", "request": serialize_request(request)}


@router.post("/requests/complete-call")
def complete_call(payload: CompleteCallRequest, db: Session = Depends(get_db)):
    try:
        request = mentorship_service.complete_call(
            db,
            payload.request_id,
            payload.call_id,
            payload.start_time,
            payload.end_time,
            payload.duration,
            payload.call_type,
        )
    except Exception as e:
        _raise(db, e, "complete call")
    return {
        "success": True,
        "message": "Call completed successfully",
        "callDuration": payload.duration,
        "totalCalls": len(request.calls),
        "totalDuration": request.total_call_duration,
        "status": request.status.value,
    }


@router.put("/requests/{request_id}/complete")
def complete_session(request_id: int, db: Session = Depends(get_db)):
    try:
        session = mentorship_service.complete_session(db, request_id)
    except Exception as e:
        _raise(db, e, "complete mentorship session")
    return {
        "success": True,
        "message": "Mentorship session completed successfully",
        "session": serialize_session(session),
    }


@router.get("/sessions/completed/{alumni_id}")
def completed_sessions(alumni_id: int, db: Session = Depends(get_db)):
    try:
        sessions = mentorship_service.list_completed_sessions(db, alumni_id)
    except Exception as e:
        _raise(db, e, "fetch completed sessions")
    return {"sessions": [serialize_session(s) for s in sessions]}
