"""
Job postings published by alumni to their batch.

A posting may be locked behind a one-off payment; JobUnlock rows record who
paid, JobPostingSubscription rows record the verified gateway transaction.
"""
import enum
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index, UniqueConstraint, Enum, JSON,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from alumnihive.db.base import Base


class JobType(str, enum.Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    CONTRACT = "contract"
    INTERNSHIP = "internship"
    FREELANCE = "freelance"


class ExperienceLevel(str, enum.Enum):
    ENTRY = "entry"
    MID = "mid"
    SENIOR = "senior"
    EXECUTIVE = "executive"


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class JobPosting(Base):
    __tablename__ = "job_postings"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False)
    company = Column(String, nullable=False, index=True)
    location = Column(String, nullable=False)
    job_type = Column(Enum(JobType, name="job_type"), nullable=False)
    experience_level = Column(Enum(ExperienceLevel, name="experience_level"), nullable=False)

    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    salary_currency = Column(String, default="INR", nullable=False)

    skills = Column(JSON, default=list, nullable=False)
    requirements = Column(JSON, default=list, nullable=False)
    benefits = Column(JSON, default=list, nullable=False)

    posted_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    batch_id = Column(Integer, ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)

    is_active = Column(Boolean, default=True, nullable=False)
    is_locked = Column(Boolean, default=False, nullable=False)
    unlock_price = Column(Integer, default=0, nullable=False)
    currency = Column(String, default="INR", nullable=False)

    application_link = Column(String, nullable=True)
    application_deadline = Column(DateTime, nullable=True)
    max_applications = Column(Integer, nullable=True)
    current_applications = Column(Integer, default=0, nullable=False)
    views = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    poster = relationship("User", foreign_keys=[posted_by])
    batch = relationship("Batch")
    unlocks = relationship("JobUnlock", back_populates="job", cascade="all, delete-orphan", lazy="selectin")
    applications = relationship(
        "JobApplication", back_populates="job", cascade="all, delete-orphan", order_by="JobApplication.applied_at"
    )

    __table_args__ = (
        Index("idx_job_batch_active_created", "batch_id", "is_active", "created_at"),
    )

    def is_unlocked_by(self, user_id: int) -> bool:
        return any(unlock.user_id == user_id for unlock in self.unlocks)

    def __repr__(self):
        return f"<JobPosting(id={self.id}, company='{self.company}', title='{self.title}')>"


class JobUnlock(Base):
    """Append-only record of a user who paid to unlock a posting."""
    __tablename__ = "job_unlocks"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("job_postings.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_id = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)
    unlocked_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    job = relationship("JobPosting", back_populates="unlocks")

    __table_args__ = (
        UniqueConstraint("job_id", "user_id", name="uq_job_unlock_user"),
    )


class JobApplication(Base):
    __tablename__ = "job_applications"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("job_postings.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(Enum(ApplicationStatus, name="application_status"), default=ApplicationStatus.PENDING, nullable=False)
    cover_letter = Column(Text, nullable=True)
    resume_url = Column(String, nullable=True)
    applied_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    job = relationship("JobPosting", back_populates="applications")
    applicant = relationship("User")

    __table_args__ = (
        UniqueConstraint("job_id", "user_id", name="uq_job_application_user"),
    )


class JobPostingSubscription(Base):
    __tablename__ = "job_posting_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("job_postings.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id = Column(String, nullable=False)
    payment_id = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)
    currency = Column(String, default="INR", nullable=False)
    status = Column(String, default="completed", nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("order_id", "payment_id", name="uq_job_sub_order_payment"),
    )

    def __repr__(self):
        return f"<JobPostingSubscription(job_id={self.job_id}, user_id={self.user_id})>"
