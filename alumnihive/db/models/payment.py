"""
Verified Razorpay payments for mentorship calls.
"""
import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, Enum
from sqlalchemy.sql import func
from alumnihive.db.base import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String, nullable=False, index=True)
    payment_id = Column(String, nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    alumni_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    request_id = Column(String, nullable=False, index=True)

    amount = Column(Integer, nullable=False)
    currency = Column(String, default="INR", nullable=False)
    status = Column(Enum(PaymentStatus, name="payment_status"), default=PaymentStatus.COMPLETED, nullable=False)
    receipt = Column(String, nullable=True)
    type = Column(String, default="mentorship_call", nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("order_id", "payment_id", name="uq_payment_order_payment"),
    )

    def __repr__(self):
        return f"<Payment(id={self.id}, order_id='{self.order_id}', payment_id='{self.payment_id}')>"
