"""
Platform-wide numbers for the landing dashboard.
"""
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from alumnihive.db.models.message import Message
from alumnihive.db.models.profile import AlumniProfile, StudentProfile

ACTIVE_CHAT_WINDOW = timedelta(days=7)


def get_dashboard_stats(db: Session, now: Optional[datetime] = None) -> Dict:
    now = now or datetime.utcnow()

    available_mentors = db.query(func.count(AlumniProfile.id)).filter(
        AlumniProfile.is_available_for_mentoring.is_(True)
    ).scalar() or 0
    seeking_mentorship = db.query(func.count(StudentProfile.id)).filter(
        StudentProfile.is_looking_for_mentorship.is_(True)
    ).scalar() or 0

    # A chat is an unordered user pair with at least one message in the window
    pairs = db.query(Message.sender_id, Message.receiver_id).filter(
        Message.created_at >= now - ACTIVE_CHAT_WINDOW
    ).distinct().all()
    active_chats = len({frozenset(pair) for pair in pairs})

    skills = set()
    for (values,) in db.query(AlumniProfile.skills).all() + db.query(StudentProfile.skills).all():
        skills.update(s.strip().lower() for s in (values or []) if s and s.strip())

    return {
        "availableMentors": available_mentors,
        "studentsLookingForMentorship": seeking_mentorship,
        "activeChats": active_chats,
        "upcomingEvents": 0,
        "skillsLearned": len(skills),
    }
