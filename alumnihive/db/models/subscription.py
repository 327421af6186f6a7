"""
Paid messaging subscriptions.

AlumniSubscription unlocks one (student, alumni) pair for a month.
QuarterlySubscription unlocks every alumni for one student for three months.
Expiry is evaluated at read time (end_date > now); nothing sweeps rows.
"""
import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, Enum, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from alumnihive.db.base import Base


class SubscriptionType(str, enum.Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class AlumniSubscription(Base):
    __tablename__ = "alumni_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    alumni_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subscription_type = Column(
        Enum(SubscriptionType, name="subscription_type"),
        default=SubscriptionType.MONTHLY,
        nullable=False,
    )

    amount = Column(Integer, nullable=False)
    platform_commission = Column(Integer, nullable=False)
    alumni_earnings = Column(Integer, nullable=False)

    status = Column(
        Enum(SubscriptionStatus, name="subscription_status"),
        default=SubscriptionStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    payment_id = Column(String, unique=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    student = relationship("User", foreign_keys=[student_id])
    alumni = relationship("User", foreign_keys=[alumni_id])

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_alumni_subscription_window"),
        Index("idx_alumni_sub_pair_status", "student_id", "alumni_id", "status"),
    )

    def is_live(self, now) -> bool:
        return self.status == SubscriptionStatus.ACTIVE and self.end_date > now

    def __repr__(self):
        return f"<AlumniSubscription(id={self.id}, student_id={self.student_id}, alumni_id={self.alumni_id})>"


class QuarterlySubscription(Base):
    __tablename__ = "quarterly_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subscription_type = Column(
        Enum(SubscriptionType, name="subscription_type"),
        default=SubscriptionType.QUARTERLY,
        nullable=False,
    )

    amount = Column(Integer, nullable=False)
    platform_commission = Column(Integer, nullable=False)

    status = Column(
        Enum(SubscriptionStatus, name="subscription_status"),
        default=SubscriptionStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    payment_id = Column(String, unique=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    student = relationship("User", foreign_keys=[student_id])

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_quarterly_subscription_window"),
        Index("idx_quarterly_sub_student_status", "student_id", "status"),
    )

    def is_live(self, now) -> bool:
        return self.status == SubscriptionStatus.ACTIVE and self.end_date > now

    def __repr__(self):
        return f"<QuarterlySubscription(id={self.id}, student_id={self.student_id})>"
