"""
Pydantic schemas for mentorship requests and calls.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from alumnihive.db.models.mentorship import CallType, CommunicationMode, MentorshipPriority
from alumnihive.schemas.job import to_naive_utc


class MentorshipRequestCreate(BaseModel):
    """category is checked by the service so an unknown value gets its own message."""
    student_id: int = Field(..., alias="studentId")
    alumni_id: int = Field(..., alias="alumniId")
    category: str
    title: str = Field(..., max_length=200)
    description: str = Field(..., max_length=2000)
    skills_needed: List[str] = Field(default_factory=list, alias="skillsNeeded")
    expected_duration: Optional[str] = Field(None, alias="expectedDuration", max_length=50)
    preferred_communication: Optional[CommunicationMode] = Field(None, alias="preferredCommunication")
    priority: MentorshipPriority = MentorshipPriority.MEDIUM
    student_message: Optional[str] = Field(None, alias="studentMessage", max_length=1000)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "studentId": 1,
                "alumniId": 2,
                "category": "interview_prep",
                "title": "Mock system design round",
                "description": "Two practice interviews before placements",
                "skillsNeeded": ["System Design"],
            }
        }


class RejectMentorshipRequest(BaseModel):
    rejection_reason: Optional[str] = Field(None, alias="rejectionReason", max_length=1000)

    class Config:
        populate_by_name = True


class RespondMentorshipRequest(BaseModel):
    alumni_response: Optional[str] = Field(None, alias="alumniResponse", max_length=1000)

    class Config:
        populate_by_name = True


class CompleteCallRequest(BaseModel):
    request_id: int = Field(..., alias="requestId")
    call_id: str = Field(..., alias="callId", min_length=1)
    start_time: datetime = Field(..., alias="startTime")
    end_time: datetime = Field(..., alias="endTime")
    duration: int = Field(..., ge=1, description="Minutes")
    call_type: CallType = Field(..., alias="callType")

    @field_validator("start_time", "end_time")
    @classmethod
    def as_naive_utc(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_order(self):
        if self.end_time < self.start_time:
            raise ValueError("endTime cannot be before startTime")
        return self

    class Config:
        populate_by_name = True
