"""
Pydantic schemas for direct messages and message limits.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from alumnihive.db.models.message import MessageType


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    message_type: MessageType = Field(MessageType.TEXT, alias="messageType")

    class Config:
        populate_by_name = True
        json_schema_extra = {"example": {"content": "Hi! Could you review my resume?", "messageType": "text"}}


class MessageResponse(BaseModel):
    id: int
    sender_id: int = Field(..., serialization_alias="senderId")
    receiver_id: int = Field(..., serialization_alias="receiverId")
    content: str
    message_type: MessageType = Field(..., serialization_alias="messageType")
    is_read: bool = Field(..., serialization_alias="isRead")
    read_at: Optional[datetime] = Field(None, serialization_alias="readAt")
    created_at: Optional[datetime] = Field(None, serialization_alias="createdAt")

    class Config:
        from_attributes = True


class UserIdRequest(BaseModel):
    user_id: int = Field(..., alias="userId")

    class Config:
        populate_by_name = True


class CanSendRequest(UserIdRequest):
    target_user_id: Optional[int] = Field(None, alias="targetUserId")
