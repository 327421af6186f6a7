"""
Tests for mentorship requests: create, accept/reject, call logging and sessions.
"""
from datetime import datetime, timedelta

import pytest

from alumnihive.core.errors import NotFoundError, ValidationError
from alumnihive.core.security import compute_payment_signature
from alumnihive.db.models.mentorship import CallType, MentorSession, MentorshipStatus
from alumnihive.db.models.user import Role
from alumnihive.services import mentorship_service
from alumnihive.services.payment_service import verify_mentorship_payment

T0 = datetime(2026, 10, 18, 9, 0)


@pytest.fixture
def mentorship_request(db, student, alumni):
    return mentorship_service.create_request(
        db, student.id, alumni.id, "career_guidance", "Switching to backend", "Which skills to pick up first",
        skills_needed=[" Python ", ""],
    )


def test_create_validates_input(db, student, alumni):
    with pytest.raises(ValidationError) as missing:
        mentorship_service.create_request(db, student.id, alumni.id, "networking", " ", "")
    assert missing.value.extra["missingFields"] == ["title", "description"]

    with pytest.raises(ValidationError, match="Invalid mentorship category"):
        mentorship_service.create_request(db, student.id, alumni.id, "gossip", "Hi", "Hello")

    with pytest.raises(NotFoundError, match="Alumni not found"):
        mentorship_service.create_request(db, student.id, student.id, "networking", "Hi", "Hello")


def test_create_applies_defaults(mentorship_request):
    assert mentorship_request.status == MentorshipStatus.PENDING
    assert mentorship_request.skills_needed == ["Python"]
    assert mentorship_request.expected_duration == "2 weeks"
    assert mentorship_request.preferred_communication.value == "email"


def test_accept_and_reject_transitions(db, mentorship_request, student, alumni):
    accepted = mentorship_service.accept_request(db, mentorship_request.id, "Happy to help")
    assert accepted.status == MentorshipStatus.ACCEPTED
    assert accepted.alumni_response == "Happy to help"

    with pytest.raises(ValidationError, match="Cannot mark a accepted request as rejected"):
        mentorship_service.reject_request(db, mentorship_request.id, "Too busy")

    other = mentorship_service.create_request(db, student.id, alumni.id, "networking", "Intro", "Meet people")
    with pytest.raises(ValidationError, match="Rejection reason is required"):
        mentorship_service.reject_request(db, other.id, "   ")

    rejected = mentorship_service.reject_request(db, other.id, "Out of my area")
    assert rejected.status == MentorshipStatus.REJECTED
    assert rejected.rejection_reason == "Out of my area"

    with pytest.raises(ValidationError):
        mentorship_service.accept_request(db, other.id)
    with pytest.raises(NotFoundError, match="Mentorship request not found"):
        mentorship_service.accept_request(db, 9999)


def test_short_calls_keep_request_open(db, mentorship_request):
    request = mentorship_service.complete_call(
        db, mentorship_request.id, "call_1", T0, T0 + timedelta(minutes=3), 3, CallType.AUDIO
    )
    assert request.status == MentorshipStatus.PENDING

    request = mentorship_service.complete_call(
        db, mentorship_request.id, "call_2", T0 + timedelta(hours=1), T0 + timedelta(hours=1, minutes=12), 12,
        CallType.VIDEO,
    )
    assert request.status == MentorshipStatus.COMPLETED
    assert request.total_call_duration == 15
    assert [c.call_id for c in request.calls] == ["call_1", "call_2"]
    assert request.last_call_completed_at == T0 + timedelta(hours=1, minutes=12)


def test_calls_on_rejected_requests_fail(db, mentorship_request):
    mentorship_service.reject_request(db, mentorship_request.id, "No time")

    with pytest.raises(ValidationError, match="rejected request"):
        mentorship_service.complete_call(
            db, mentorship_request.id, "call_1", T0, T0 + timedelta(minutes=10), 10, CallType.VIDEO
        )


def test_complete_session_once(db, mentorship_request, student, alumni):
    session = mentorship_service.complete_session(db, mentorship_request.id, now=T0)

    assert session.session_done is True
    assert session.session_title == "Switching to backend"
    assert session.skills_needed == ["Python"]
    db.refresh(mentorship_request)
    assert mentorship_request.status == MentorshipStatus.COMPLETED

    with pytest.raises(ValidationError, match="already completed"):
        mentorship_service.complete_session(db, mentorship_request.id, now=T0)
    assert db.query(MentorSession).count() == 1

    later = mentorship_service.create_request(db, student.id, alumni.id, "project_help", "Review", "My repo")
    mentorship_service.complete_session(db, later.id, now=T0 + timedelta(days=1))

    sessions = mentorship_service.list_completed_sessions(db, alumni.id)
    assert [s.mentorship_request_id for s in sessions] == [later.id, mentorship_request.id]


def test_opportunities_group_pending_requests(db, make_user, alumni):
    for name, category in (("s1", "interview_prep"), ("s2", "interview_prep"), ("s3", "networking")):
        mentorship_service.create_request(db, make_user(Role.STUDENT, name).id, alumni.id, category, "Help", "Please")

    groups = {g["category"]: g for g in mentorship_service.list_opportunities(db, alumni.id)}

    assert groups["interview_prep"]["interestedStudents"] == 2
    assert groups["interview_prep"]["title"] == "Interview Preparation"
    assert groups["networking"]["interestedStudents"] == 1


def test_paid_flag_follows_verified_payment(client, db, mentorship_request, student, alumni):
    listing = client.get(f"/api/mentorship/requests/alumni/{alumni.id}").json()["requests"]
    assert listing[0]["hasPaid"] is False

    signature = compute_payment_signature("order_m1", "pay_m1")
    verify_mentorship_payment(db, "order_m1", "pay_m1", signature, student.id, alumni.id, str(mentorship_request.id))

    listing = client.get(f"/api/mentorship/requests/student/{student.id}").json()["requests"]
    assert listing[0]["hasPaid"] is True


def test_mentorship_endpoints(client, db, student, alumni):
    created = client.post("/api/mentorship/requests", json={
        "studentId": student.id,
        "alumniId": alumni.id,
        "category": "interview_prep",
        "title": "Mock interview",
        "description": "One practice round",
        "preferredCommunication": "video_call",
    })
    assert created.status_code == 201
    request_id = created.json()["request"]["id"]

    unreasoned = client.put(f"/api/mentorship/requests/{request_id}/reject", json={})
    assert unreasoned.status_code == 400
    assert unreasoned.json()["error"] == "Rejection reason is required"

    accepted = client.put(f"/api/mentorship/requests/{request_id}/accept")
    assert accepted.status_code == 200
    assert accepted.json()["request"]["status"] == "accepted"

    call = client.post("/api/mentorship/requests/complete-call", json={
        "requestId": request_id,
        "callId": "call_1",
        "startTime": "2026-10-18T09:00:00Z",
        "endTime": "2026-10-18T09:20:00Z",
        "duration": 20,
        "callType": "video",
    })
    assert call.status_code == 200
    assert call.json()["totalCalls"] == 1
    assert call.json()["status"] == "completed"

    backwards = client.post("/api/mentorship/requests/complete-call", json={
        "requestId": request_id,
        "callId": "call_2",
        "startTime": "2026-10-18T10:00:00Z",
        "endTime": "2026-10-18T09:00:00Z",
        "duration": 20,
        "callType": "audio",
    })
    assert backwards.status_code == 400

    done = client.put(f"/api/mentorship/requests/{request_id}/complete")
    assert done.status_code == 200
    assert done.json()["message"] == "Mentorship session completed successfully"

    sessions = client.get(f"/api/mentorship/sessions/completed/{alumni.id}").json()["sessions"]
    assert [s["mentorshipRequestId"] for s in sessions] == [request_id]
    assert sessions[0]["student"]["id"] == student.id

    assert client.get(f"/api/mentorship/requests/alumni/{student.id}").status_code == 404
