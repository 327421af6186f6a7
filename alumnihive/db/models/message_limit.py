"""
Free-tier message counters.

PerAlumniMessageLimit is the authoritative gate for student -> alumni sends.
MessageLimit is the older per-user daily counter, kept for reporting.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from alumnihive.db.base import Base


class PerAlumniMessageLimit(Base):
    __tablename__ = "per_alumni_message_limits"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    alumni_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Only ever incremented
    message_count = Column(Integer, default=0, nullable=False)
    last_reset_date = Column(DateTime, nullable=False)

    # Mirror of the subscription tables, reconciled on read
    is_subscribed = Column(Boolean, default=False, nullable=False)
    subscription_id = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    student = relationship("User", foreign_keys=[student_id])
    alumni = relationship("User", foreign_keys=[alumni_id])

    __table_args__ = (
        UniqueConstraint("student_id", "alumni_id", name="uq_per_alumni_limit_pair"),
    )

    def __repr__(self):
        return (
            f"<PerAlumniMessageLimit(student_id={self.student_id}, alumni_id={self.alumni_id}, "
            f"count={self.message_count}, subscribed={self.is_subscribed})>"
        )


class MessageLimit(Base):
    __tablename__ = "message_limits"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    daily_message_count = Column(Integer, default=0, nullable=False)
    last_reset_date = Column(DateTime, nullable=False)
    total_messages_sent = Column(Integer, default=0, nullable=False)
    subscription_status = Column(String, default="free", nullable=False)  # free | premium

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def roll_over(self, now) -> bool:
        """Reset the daily counter when ``now`` falls on a later calendar day."""
        if self.last_reset_date is None or self.last_reset_date.date() != now.date():
            self.daily_message_count = 0
            self.last_reset_date = now
            return True
        return False

    def __repr__(self):
        return f"<MessageLimit(user_id={self.user_id}, daily={self.daily_message_count})>"
