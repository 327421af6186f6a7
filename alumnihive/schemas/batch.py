"""
Pydantic schemas for batches and batch chat.
"""
from typing import Optional
from pydantic import BaseModel, Field

from alumnihive.db.models.message import MessageType


class BatchCreate(BaseModel):
    college: str = Field(..., min_length=1, max_length=200)
    graduation_year: int = Field(..., alias="graduationYear", ge=1950, le=2100)
    description: Optional[str] = None

    class Config:
        populate_by_name = True
        json_schema_extra = {"example": {"college": "IIT Bombay", "graduationYear": 2020}}


class BatchUpdate(BaseModel):
    description: Optional[str] = None
    is_active: Optional[bool] = Field(None, alias="isActive")

    class Config:
        populate_by_name = True


class BatchMembershipRequest(BaseModel):
    user_id: int = Field(..., alias="userId")

    class Config:
        populate_by_name = True


class BatchMessageCreate(BaseModel):
    user_id: int = Field(..., alias="userId")
    content: str = Field("", max_length=5000)
    message_type: MessageType = Field(MessageType.TEXT, alias="messageType")
    file_url: Optional[str] = Field(None, alias="fileUrl")
    file_name: Optional[str] = Field(None, alias="fileName")

    class Config:
        populate_by_name = True


class ReactionRequest(BaseModel):
    user_id: int = Field(..., alias="userId")
    emoji: str = Field(..., min_length=1, max_length=16)

    class Config:
        populate_by_name = True


class ChatTextRequest(BaseModel):
    """Body for replies and edits."""
    user_id: int = Field(..., alias="userId")
    content: str = Field(..., min_length=1, max_length=5000)

    class Config:
        populate_by_name = True
