"""
Pydantic schemas for connection requests.
"""
from typing import Optional
from pydantic import BaseModel, Field


class ConnectionRequestCreate(BaseModel):
    message: Optional[str] = Field(None, max_length=500)


class ConnectionRequestUpdate(BaseModel):
    """status is validated by the service: only accepted or rejected."""
    status: str
