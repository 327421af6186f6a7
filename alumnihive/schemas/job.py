"""
Pydantic schemas for job posting endpoints.
"""
from typing import List, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator, model_validator

from alumnihive.db.models.job_posting import ApplicationStatus, ExperienceLevel, JobType
from alumnihive.schemas.subscription import SignedPayment


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Deadlines are compared against datetime.utcnow(), so store them naive in UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class JobPostingBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    company: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    job_type: JobType = Field(..., alias="jobType")
    experience_level: ExperienceLevel = Field(..., alias="experienceLevel")
    salary_min: Optional[int] = Field(None, alias="salaryMin", ge=0)
    salary_max: Optional[int] = Field(None, alias="salaryMax", ge=0)
    salary_currency: str = Field("INR", alias="salaryCurrency")
    skills: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)
    is_locked: bool = Field(False, alias="isLocked")
    unlock_price: int = Field(0, alias="unlockPrice", ge=0)
    application_link: Optional[str] = Field(None, alias="applicationLink")
    application_deadline: Optional[datetime] = Field(None, alias="applicationDeadline")
    max_applications: Optional[int] = Field(None, alias="maxApplications", ge=1)

    @field_validator("application_deadline")
    @classmethod
    def deadline_as_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_salary_range(self):
        if self.salary_min is not None and self.salary_max is not None and self.salary_min > self.salary_max:
            raise ValueError("salaryMin cannot exceed salaryMax")
        return self

    class Config:
        populate_by_name = True


class JobPostingCreate(JobPostingBase):
    user_id: int = Field(..., alias="userId")
    batch_id: int = Field(..., alias="batchId")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "userId": 2,
                "batchId": 1,
                "title": "Backend Engineer",
                "description": "Build payment services",
                "company": "Acme",
                "location": "Bengaluru",
                "jobType": "full-time",
                "experienceLevel": "entry",
                "isLocked": True,
                "unlockPrice": 49
            }
        }


class JobPostingUpdate(BaseModel):
    """All fields optional; only the ones sent are changed."""
    user_id: int = Field(..., alias="userId")
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    company: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = None
    job_type: Optional[JobType] = Field(None, alias="jobType")
    experience_level: Optional[ExperienceLevel] = Field(None, alias="experienceLevel")
    salary_min: Optional[int] = Field(None, alias="salaryMin", ge=0)
    salary_max: Optional[int] = Field(None, alias="salaryMax", ge=0)
    skills: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    is_active: Optional[bool] = Field(None, alias="isActive")
    is_locked: Optional[bool] = Field(None, alias="isLocked")
    unlock_price: Optional[int] = Field(None, alias="unlockPrice", ge=0)
    application_link: Optional[str] = Field(None, alias="applicationLink")
    application_deadline: Optional[datetime] = Field(None, alias="applicationDeadline")
    max_applications: Optional[int] = Field(None, alias="maxApplications", ge=1)

    @field_validator("application_deadline")
    @classmethod
    def deadline_as_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)

    class Config:
        populate_by_name = True


class JobUnlockRequest(SignedPayment):
    """Checkout result for a posting; the job id comes from the path."""
    user_id: int = Field(..., alias="userId")
    amount: Optional[int] = Field(None, ge=0)


class JobApplyRequest(BaseModel):
    user_id: int = Field(..., alias="userId")
    cover_letter: Optional[str] = Field(None, alias="coverLetter")
    resume_url: Optional[str] = Field(None, alias="resumeUrl")

    class Config:
        populate_by_name = True


class ApplicationStatusUpdate(BaseModel):
    user_id: int = Field(..., alias="userId")
    status: ApplicationStatus

    class Config:
        populate_by_name = True
