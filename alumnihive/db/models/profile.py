"""
Role-specific profiles, one per user.

List-valued and nested fields (skills, experience, projects...) live in JSON
columns; the directory filters them in Python.
"""
import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Float, ForeignKey, Enum, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from alumnihive.db.base import Base

NOT_SPECIFIED = "Not specified"


class AcademicStanding(str, enum.Enum):
    GOOD = "good"
    PROBATION = "probation"
    SUSPENDED = "suspended"


class AlumniProfile(Base):
    __tablename__ = "alumni_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    graduation_year = Column(Integer, nullable=False)
    degree = Column(String, nullable=False, default="Bachelor's")
    branch = Column(String, nullable=False, default="Computer Science")
    current_company = Column(String, nullable=False, default="")
    current_position = Column(String, nullable=False, default="")
    industry = Column(String, nullable=False, default=NOT_SPECIFIED, index=True)

    city = Column(String, nullable=False, default=NOT_SPECIFIED, index=True)
    state = Column(String, nullable=False, default=NOT_SPECIFIED)
    country = Column(String, nullable=False, default=NOT_SPECIFIED)

    bio = Column(Text, nullable=True)
    skills = Column(JSON, default=list, nullable=False)
    experience = Column(JSON, default=list, nullable=False)
    education = Column(JSON, default=list, nullable=False)
    social_links = Column(JSON, default=dict, nullable=False)
    achievements = Column(JSON, default=list, nullable=False)

    is_available_for_mentoring = Column(Boolean, default=False, nullable=False, index=True)
    mentoring_interests = Column(JSON, default=list, nullable=False)

    # Impact counters shown on the alumni dashboard
    students_mentored = Column(Integer, default=0, nullable=False)
    events_hosted = Column(Integer, default=0, nullable=False)
    profile_views = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", lazy="joined")

    def __repr__(self):
        return f"<AlumniProfile(id={self.id}, user_id={self.user_id})>"


class StudentProfile(Base):
    __tablename__ = "student_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    student_number = Column(String, unique=True, nullable=False)

    current_year = Column(Integer, nullable=False, default=1)
    expected_graduation_year = Column(Integer, nullable=False, index=True)
    major = Column(String, nullable=False, default="Computer Science", index=True)
    minor = Column(String, nullable=False, default="")
    gpa = Column(Float, nullable=True)
    academic_standing = Column(
        Enum(AcademicStanding, name="academic_standing"), default=AcademicStanding.GOOD, nullable=False
    )

    interests = Column(JSON, default=list, nullable=False)
    career_goals = Column(JSON, default=list, nullable=False)
    skills = Column(JSON, default=list, nullable=False)
    projects = Column(JSON, default=list, nullable=False)
    internships = Column(JSON, default=list, nullable=False)
    certifications = Column(JSON, default=list, nullable=False)
    social_links = Column(JSON, default=dict, nullable=False)
    achievements = Column(JSON, default=list, nullable=False)

    is_looking_for_mentorship = Column(Boolean, default=False, nullable=False, index=True)
    mentorship_interests = Column(JSON, default=list, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", lazy="joined")

    def __repr__(self):
        return f"<StudentProfile(id={self.id}, user_id={self.user_id}, student_number='{self.student_number}')>"
