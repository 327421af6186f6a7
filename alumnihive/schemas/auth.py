"""
Pydantic schemas for authentication endpoints.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from alumnihive.db.models.user import Role


class SignupRequest(BaseModel):
    """Request schema for user signup."""
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=8, description="User's password (min 8 characters)")
    first_name: str = Field(..., alias="firstName", min_length=1, max_length=100)
    last_name: str = Field("", alias="lastName", max_length=100)
    role: Role = Field(..., description="student or alumni")
    college: Optional[str] = Field(None, max_length=200)
    graduation_year: Optional[int] = Field(None, alias="graduationYear", ge=1950, le=2100)

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        """Validate password length in bytes (bcrypt limit is 72 bytes)."""
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password too long (bcrypt limit 72 bytes)")
        return v

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Role) -> Role:
        if v == Role.ADMIN:
            raise ValueError("Admin accounts cannot be self-registered")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "email": "priya.sharma@example.com",
                "password": "SecurePass123",
                "firstName": "Priya",
                "lastName": "Sharma",
                "role": "student",
                "college": "IIT Bombay",
                "graduationYear": 2026
            }
        }


class UserResponse(BaseModel):
    id: int
    email: str
    first_name: str = Field(..., serialization_alias="firstName")
    last_name: str = Field(..., serialization_alias="lastName")
    role: Role
    college: Optional[str] = None
    graduation_year: Optional[int] = Field(None, serialization_alias="graduationYear")
    batch_id: Optional[int] = Field(None, serialization_alias="batchId")
    is_verified: bool = Field(False, serialization_alias="isVerified")

    class Config:
        from_attributes = True
