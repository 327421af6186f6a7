"""
Pydantic schemas for alumni and student profiles.

Every field is optional on update; only the fields sent are changed.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from alumnihive.db.models.profile import AcademicStanding


class Location(BaseModel):
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


class AlumniProfileUpdate(BaseModel):
    graduation_year: Optional[int] = Field(None, alias="graduationYear", ge=1950, le=2100)
    degree: Optional[str] = Field(None, min_length=1, max_length=100)
    branch: Optional[str] = Field(None, min_length=1, max_length=100)
    current_company: Optional[str] = Field(None, alias="currentCompany", max_length=200)
    current_position: Optional[str] = Field(None, alias="currentPosition", max_length=200)
    industry: Optional[str] = Field(None, min_length=1, max_length=100)
    location: Optional[Location] = None
    bio: Optional[str] = Field(None, max_length=1000)
    skills: Optional[List[str]] = None
    experience: Optional[List[Dict[str, Any]]] = None
    education: Optional[List[Dict[str, Any]]] = None
    social_links: Optional[Dict[str, str]] = Field(None, alias="socialLinks")
    achievements: Optional[List[Dict[str, Any]]] = None
    is_available_for_mentoring: Optional[bool] = Field(None, alias="isAvailableForMentoring")
    mentoring_interests: Optional[List[str]] = Field(None, alias="mentoringInterests")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "currentCompany": "Acme",
                "currentPosition": "Staff Engineer",
                "skills": ["Python", "System Design"],
                "isAvailableForMentoring": True,
            }
        }


class StudentProfileUpdate(BaseModel):
    current_year: Optional[int] = Field(None, alias="currentYear", ge=1, le=6)
    expected_graduation_year: Optional[int] = Field(None, alias="expectedGraduationYear", ge=1950, le=2100)
    major: Optional[str] = Field(None, min_length=1, max_length=100)
    minor: Optional[str] = Field(None, max_length=100)
    gpa: Optional[float] = Field(None, ge=0, le=4)
    academic_standing: Optional[AcademicStanding] = Field(None, alias="academicStanding")
    interests: Optional[List[str]] = None
    career_goals: Optional[List[str]] = Field(None, alias="careerGoals")
    skills: Optional[List[str]] = None
    projects: Optional[List[Dict[str, Any]]] = None
    internships: Optional[List[Dict[str, Any]]] = None
    certifications: Optional[List[Dict[str, Any]]] = None
    social_links: Optional[Dict[str, str]] = Field(None, alias="socialLinks")
    achievements: Optional[List[Dict[str, Any]]] = None
    is_looking_for_mentorship: Optional[bool] = Field(None, alias="isLookingForMentorship")
    mentorship_interests: Optional[List[str]] = Field(None, alias="mentorshipInterests")

    class Config:
        populate_by_name = True


class ImpactMetricUpdate(BaseModel):
    type: str
    increment: int = Field(1, ge=1, le=1000)
