"""
Mentorship requests from students to alumni, the calls held against them,
and the session record written when a mentorship is completed.
"""
import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index, Enum, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from alumnihive.db.base import Base


class MentorshipCategory(str, enum.Enum):
    CAREER_GUIDANCE = "career_guidance"
    INTERVIEW_PREP = "interview_prep"
    PROJECT_HELP = "project_help"
    NETWORKING = "networking"
    SKILL_DEVELOPMENT = "skill_development"


class MentorshipStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"


class MentorshipPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CommunicationMode(str, enum.Enum):
    EMAIL = "email"
    VIDEO_CALL = "video_call"
    IN_PERSON = "in_person"
    CHAT = "chat"


class CallType(str, enum.Enum):
    VIDEO = "video"
    AUDIO = "audio"


class MentorshipRequest(Base):
    __tablename__ = "mentorship_requests"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    alumni_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    category = Column(Enum(MentorshipCategory, name="mentorship_category"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(
        Enum(MentorshipStatus, name="mentorship_status"), default=MentorshipStatus.PENDING, nullable=False
    )
    priority = Column(
        Enum(MentorshipPriority, name="mentorship_priority"), default=MentorshipPriority.MEDIUM, nullable=False
    )
    skills_needed = Column(JSON, default=list, nullable=False)
    expected_duration = Column(String, default="2 weeks", nullable=False)
    preferred_communication = Column(
        Enum(CommunicationMode, name="communication_mode"), default=CommunicationMode.EMAIL, nullable=False
    )
    student_message = Column(Text, nullable=True)
    alumni_response = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    total_call_duration = Column(Integer, default=0, nullable=False)  # minutes
    last_call_completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    student = relationship("User", foreign_keys=[student_id])
    alumni = relationship("User", foreign_keys=[alumni_id])
    calls = relationship(
        "MentorshipCall", back_populates="request", cascade="all, delete-orphan", order_by="MentorshipCall.id"
    )

    __table_args__ = (
        Index("idx_mentorship_alumni_status", "alumni_id", "status"),
        Index("idx_mentorship_student_status", "student_id", "status"),
    )

    def __repr__(self):
        return f"<MentorshipRequest(id={self.id}, status='{self.status}')>"


class MentorshipCall(Base):
    """One completed call logged against a request."""
    __tablename__ = "mentorship_calls"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("mentorship_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    call_id = Column(String, nullable=False)
    call_type = Column(Enum(CallType, name="call_type"), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    status = Column(String, default="completed", nullable=False)

    request = relationship("MentorshipRequest", back_populates="calls")


class MentorSession(Base):
    __tablename__ = "mentor_sessions"

    id = Column(Integer, primary_key=True, index=True)
    mentorship_request_id = Column(
        Integer, ForeignKey("mentorship_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    alumni_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    session_title = Column(String, nullable=False)
    session_description = Column(Text, nullable=False)
    category = Column(Enum(MentorshipCategory, name="mentorship_category"), nullable=False)
    skills_needed = Column(JSON, default=list, nullable=False)
    student_message = Column(Text, nullable=True)
    session_done = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    student = relationship("User", foreign_keys=[student_id])
