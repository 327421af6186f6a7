"""
Tests for the platform dashboard numbers.
"""
from datetime import datetime, timedelta

from alumnihive.db.models.message import Message
from alumnihive.db.models.user import Role
from alumnihive.services import profile_service
from alumnihive.services.dashboard_service import get_dashboard_stats

NOW = datetime(2026, 10, 18, 12, 0)


def _message(db, sender, receiver, created_at):
    db.add(Message(sender_id=sender.id, receiver_id=receiver.id, content="hi", created_at=created_at))


def test_dashboard_stats(db, make_user):
    mentor = make_user(Role.ALUMNI)
    busy = make_user(Role.ALUMNI)
    seeker = make_user(Role.STUDENT)
    browser = make_user(Role.STUDENT)

    mentor_profile = profile_service.create_default_profile(db, mentor, NOW)
    mentor_profile.is_available_for_mentoring = True
    mentor_profile.skills = ["Python", "SQL"]
    profile_service.create_default_profile(db, busy, NOW).skills = ["python "]
    seeker_profile = profile_service.create_default_profile(db, seeker, NOW)
    seeker_profile.is_looking_for_mentorship = True
    seeker_profile.skills = ["React"]
    profile_service.create_default_profile(db, browser, NOW)

    # Both directions of one pair count as one chat; old messages are ignored
    _message(db, seeker, mentor, NOW - timedelta(days=1))
    _message(db, mentor, seeker, NOW - timedelta(hours=2))
    _message(db, browser, busy, NOW - timedelta(days=3))
    _message(db, browser, mentor, NOW - timedelta(days=10))
    db.commit()

    assert get_dashboard_stats(db, now=NOW) == {
        "availableMentors": 1,
        "studentsLookingForMentorship": 1,
        "activeChats": 2,
        "upcomingEvents": 0,
        "skillsLearned": 3,
    }


def test_dashboard_endpoint(client):
    response = client.get("/api/dashboard/stats")

    assert response.status_code == 200
    assert response.json()["availableMentors"] == 0
