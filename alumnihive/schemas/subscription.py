"""
Pydantic schemas for subscriptions and payment verification.
"""
from typing import Optional
from pydantic import BaseModel, Field


class CreateSubscriptionRequest(BaseModel):
    """subscriptionType is validated by the service so an unknown value gets a 400 with its own message."""
    student_id: int = Field(..., alias="studentId")
    alumni_id: Optional[int] = Field(None, alias="alumniId")
    subscription_type: str = Field(..., alias="subscriptionType")
    payment_id: Optional[str] = Field(None, alias="paymentId", max_length=100)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"studentId": 1, "alumniId": 2, "subscriptionType": "monthly", "paymentId": "pay_x"}
        }


class SignedPayment(BaseModel):
    order_id: str = Field(..., alias="orderId", min_length=1)
    payment_id: str = Field(..., alias="paymentId", min_length=1)
    signature: str = Field(..., min_length=1)

    class Config:
        populate_by_name = True


class SubscriptionPaymentVerifyRequest(SignedPayment):
    student_id: int = Field(..., alias="studentId")
    alumni_id: Optional[int] = Field(None, alias="alumniId")
    subscription_type: str = Field(..., alias="subscriptionType")


class JobUnlockVerifyRequest(SignedPayment):
    job_id: int = Field(..., alias="jobId")
    user_id: int = Field(..., alias="userId")
    amount: Optional[int] = Field(None, ge=0)


class MentorshipPaymentVerifyRequest(SignedPayment):
    student_id: int = Field(..., alias="studentId")
    alumni_id: int = Field(..., alias="alumniId")
    request_id: str = Field(..., alias="requestId", min_length=1)
