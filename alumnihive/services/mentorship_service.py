"""
Mentorship requests: a student asks an alumni for help, the alumni accepts
or rejects, calls are logged against the request and completing it writes a
MentorSession.

Status moves pending -> accepted|rejected, and pending|accepted -> completed.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from alumnihive.core.errors import NotFoundError, ValidationError
from alumnihive.db.models.mentorship import (
    CallType,
    CommunicationMode,
    MentorSession,
    MentorshipCall,
    MentorshipCategory,
    MentorshipPriority,
    MentorshipRequest,
    MentorshipStatus,
)
from alumnihive.db.models.payment import Payment, PaymentStatus
from alumnihive.db.models.user import User, Role

logger = logging.getLogger(__name__)

DEFAULT_DURATION = "2 weeks"
# Calls at least this long close the request
SIGNIFICANT_CALL_MINUTES = 5

REQUIRED_FIELDS = ("studentId", "alumniId", "category", "title", "description")

CATEGORY_INFO = {
    MentorshipCategory.CAREER_GUIDANCE: ("Software Engineering Career Guidance", "Help students navigate their tech careers"),
    MentorshipCategory.INTERVIEW_PREP: ("Interview Preparation", "Prepare students for technical interviews"),
    MentorshipCategory.PROJECT_HELP: ("Project Development Help", "Assist with coding projects and development"),
    MentorshipCategory.NETWORKING: ("Professional Networking", "Connect students with industry professionals"),
    MentorshipCategory.SKILL_DEVELOPMENT: ("Skill Development", "Help students develop new technical skills"),
}


def _require_role(db: Session, user_id: int, role: Role, label: str) -> User:
    user = db.query(User).filter(User.id == user_id, User.role == role).first()
    if not user:
        raise NotFoundError(f"{label} not found")
    return user


def get_request_or_404(db: Session, request_id: int) -> MentorshipRequest:
    request = db.query(MentorshipRequest).filter(MentorshipRequest.id == request_id).first()
    if not request:
        raise NotFoundError("Mentorship request not found")
    return request


def get_request_for_pair(db: Session, request_id: str, student_id: int, alumni_id: int) -> MentorshipRequest:
    """Resolve a payment's requestId to the student's request to that alumni."""
    request = None
    if str(request_id).isdigit():
        request = db.query(MentorshipRequest).filter(
            MentorshipRequest.id == int(request_id),
            MentorshipRequest.student_id == student_id,
            MentorshipRequest.alumni_id == alumni_id,
        ).first()
    if request is None:
        raise NotFoundError("Mentorship request not found")
    return request


def create_request(
    db: Session,
    student_id: int,
    alumni_id: int,
    category: str,
    title: str,
    description: str,
    skills_needed: Optional[List[str]] = None,
    expected_duration: Optional[str] = None,
    preferred_communication: Optional[CommunicationMode] = None,
    priority: MentorshipPriority = MentorshipPriority.MEDIUM,
    student_message: Optional[str] = None,
) -> MentorshipRequest:
    """
    Raises:
        ValidationError: Blank required field or unknown category
        NotFoundError: Student or alumni missing
    """
    values = dict(zip(REQUIRED_FIELDS, (student_id, alumni_id, category, title, description)))
    missing = [name for name, value in values.items() if value is None or not str(value).strip()]
    if missing:
        raise ValidationError("Missing required fields", missingFields=missing)

    try:
        category_value = MentorshipCategory(category.strip())
    except ValueError:
        raise ValidationError("Invalid mentorship category")

    _require_role(db, student_id, Role.STUDENT, "Student")
    _require_role(db, alumni_id, Role.ALUMNI, "Alumni")

    request = MentorshipRequest(
        student_id=student_id,
        alumni_id=alumni_id,
        category=category_value,
        title=title.strip(),
        description=description.strip(),
        priority=priority,
        skills_needed=[s.strip() for s in (skills_needed or []) if s.strip()],
        expected_duration=expected_duration or DEFAULT_DURATION,
        preferred_communication=preferred_communication or CommunicationMode.EMAIL,
        student_message=student_message,
        status=MentorshipStatus.PENDING,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info(
        f"Mentorship request created: request_id={request.id}, student_id={student_id}, "
        f"alumni_id={alumni_id}, category={category_value.value}"
    )
    return request


def list_for_alumni(db: Session, alumni_id: int) -> List[MentorshipRequest]:
    _require_role(db, alumni_id, Role.ALUMNI, "Alumni")
    return (
        db.query(MentorshipRequest)
        .filter(MentorshipRequest.alumni_id == alumni_id)
        .order_by(MentorshipRequest.created_at.desc(), MentorshipRequest.id.desc())
        .all()
    )


def list_for_student(db: Session, student_id: int) -> List[MentorshipRequest]:
    return (
        db.query(MentorshipRequest)
        .filter(MentorshipRequest.student_id == student_id)
        .order_by(MentorshipRequest.created_at.desc(), MentorshipRequest.id.desc())
        .all()
    )


def list_opportunities(db: Session, alumni_id: int, limit: int = 10) -> List[Dict]:
    """Pending requests for alumni_id grouped by category, newest first."""
    pending = (
        db.query(MentorshipRequest)
        .filter(
            MentorshipRequest.alumni_id == alumni_id,
            MentorshipRequest.status == MentorshipStatus.PENDING,
        )
        .order_by(MentorshipRequest.created_at.desc(), MentorshipRequest.id.desc())
        .limit(limit)
        .all()
    )

    groups: Dict[MentorshipCategory, Dict] = {}
    for request in pending:
        if request.category not in groups:
            title, description = CATEGORY_INFO[request.category]
            groups[request.category] = {
                "category": request.category.value,
                "title": title,
                "description": description,
                "interestedStudents": 0,
                "lastRequestAt": request.created_at.isoformat() if request.created_at else None,
                "requests": [],
            }
        group = groups[request.category]
        group["interestedStudents"] += 1
        group["requests"].append(serialize_request(request))
    return list(groups.values())


def _transition(request: MentorshipRequest, allowed: tuple, target: MentorshipStatus) -> None:
    if request.status not in allowed:
        raise ValidationError(
            f"Cannot mark a {request.status.value} request as {target.value}",
            status=request.status.value,
        )
    request.status = target


def accept_request(db: Session, request_id: int, alumni_response: Optional[str] = None) -> MentorshipRequest:
    request = get_request_or_404(db, request_id)
    _transition(request, (MentorshipStatus.PENDING, MentorshipStatus.ACCEPTED), MentorshipStatus.ACCEPTED)
    if alumni_response:
        request.alumni_response = alumni_response.strip()
    db.commit()
    db.refresh(request)
    logger.info(f"Mentorship request accepted: request_id={request_id}")
    return request


def reject_request(db: Session, request_id: int, rejection_reason: Optional[str]) -> MentorshipRequest:
    reason = (rejection_reason or "").strip()
    if not reason:
        raise ValidationError("Rejection reason is required")

    request = get_request_or_404(db, request_id)
    _transition(request, (MentorshipStatus.PENDING,), MentorshipStatus.REJECTED)
    request.rejection_reason = reason
    db.commit()
    db.refresh(request)
    logger.info(f"Mentorship request rejected: request_id={request_id}")
    return request


def complete_call(
    db: Session,
    request_id: int,
    call_id: str,
    start_time: datetime,
    end_time: datetime,
    duration: int,
    call_type: CallType,
) -> MentorshipRequest:
    """Log a finished call. A call of SIGNIFICANT_CALL_MINUTES or more completes the request."""
    request = get_request_or_404(db, request_id)
    if request.status == MentorshipStatus.REJECTED:
        raise ValidationError("Cannot log a call on a rejected request")

    request.calls.append(MentorshipCall(
        call_id=call_id,
        call_type=call_type,
        start_time=start_time,
        end_time=end_time,
        duration=duration,
        status="completed",
    ))
    request.last_call_completed_at = end_time
    request.total_call_duration = (request.total_call_duration or 0) + duration
    if duration >= SIGNIFICANT_CALL_MINUTES:
        request.status = MentorshipStatus.COMPLETED

    db.commit()
    db.refresh(request)
    logger.info(
        f"Mentorship call logged: request_id={request_id}, call_id={call_id}, duration={duration}, "
        f"status={request.status.value}"
    )
    return request


def complete_session(db: Session, request_id: int, now: Optional[datetime] = None) -> MentorSession:
    """Close the request and write the session record shown on the alumni dashboard."""
    now = now or datetime.utcnow()
    request = get_request_or_404(db, request_id)
    _transition(
        request,
        (MentorshipStatus.PENDING, MentorshipStatus.ACCEPTED, MentorshipStatus.COMPLETED),
        MentorshipStatus.COMPLETED,
    )

    existing = db.query(MentorSession).filter(MentorSession.mentorship_request_id == request.id).first()
    if existing is not None:
        raise ValidationError("Mentorship session already completed")

    session = MentorSession(
        mentorship_request_id=request.id,
        student_id=request.student_id,
        alumni_id=request.alumni_id,
        session_title=request.title,
        session_description=request.description,
        category=request.category,
        skills_needed=list(request.skills_needed or []),
        student_message=request.student_message,
        session_done=True,
        completed_at=now,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info(f"Mentor session completed: request_id={request_id}, session_id={session.id}")
    return session


def list_completed_sessions(db: Session, alumni_id: int) -> List[MentorSession]:
    return (
        db.query(MentorSession)
        .filter(MentorSession.alumni_id == alumni_id, MentorSession.session_done.is_(True))
        .order_by(MentorSession.completed_at.desc(), MentorSession.id.desc())
        .all()
    )


def has_paid(db: Session, request: MentorshipRequest) -> bool:
    """True when a verified mentorship-call payment references this request."""
    return db.query(Payment.id).filter(
        Payment.request_id == str(request.id),
        Payment.student_id == request.student_id,
        Payment.alumni_id == request.alumni_id,
        Payment.status == PaymentStatus.COMPLETED,
    ).first() is not None


def _person(user: Optional[User]) -> Optional[Dict]:
    if user is None:
        return None
    return {
        "id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "profilePicture": user.profile_picture,
    }


def serialize_request(request: MentorshipRequest, db: Optional[Session] = None) -> Dict:
    data = {
        "id": request.id,
        "studentId": request.student_id,
        "alumniId": request.alumni_id,
        "student": _person(request.student),
        "alumni": _person(request.alumni),
        "category": request.category.value,
        "title": request.title,
        "description": request.description,
        "status": request.status.value,
        "priority": request.priority.value,
        "skillsNeeded": request.skills_needed or [],
        "expectedDuration": request.expected_duration,
        "preferredCommunication": request.preferred_communication.value,
        "studentMessage": request.student_message,
        "alumniResponse": request.alumni_response,
        "rejectionReason": request.rejection_reason,
        "callHistory": [
            {
                "callId": call.call_id,
                "callType": call.call_type.value,
                "startTime": call.start_time.isoformat(),
                "endTime": call.end_time.isoformat(),
                "duration": call.duration,
                "status": call.status,
            }
            for call in request.calls
        ],
        "totalCallDuration": request.total_call_duration,
        "lastCallCompletedAt": request.last_call_completed_at.isoformat() if request.last_call_completed_at else None,
        "createdAt": request.created_at.isoformat() if request.created_at else None,
    }
    if db is not None:
        data["hasPaid"] = has_paid(db, request)
    return data


def serialize_session(session: MentorSession) -> Dict:
    return {
        "id": session.id,
        "mentorshipRequestId": session.mentorship_request_id,
        "studentId": session.student_id,
        "alumniId": session.alumni_id,
        "student": _person(session.student),
        "sessionTitle": session.session_title,
        "sessionDescription": session.session_description,
        "category": session.category.value,
        "skillsNeeded": session.skills_needed or [],
        "studentMessage": session.student_message,
        "sessionDone": session.session_done,
        "completedAt": session.completed_at.isoformat() if session.completed_at else None,
    }
