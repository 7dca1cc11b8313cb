"""사용자 프로필 스키마."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=200)
    avatar_url: Optional[str] = Field(None, max_length=500)
    website: Optional[str] = Field(None, max_length=500)


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    website: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None


class ProfileEnvelope(BaseModel):
    """GET /users/profile 응답. 프로필 행이 없으면 profile은 null."""
    email: Optional[str] = None
    profile: Optional[ProfileResponse] = None
    user: SessionUser


class ProfileUpdateResponse(BaseModel):
    profile: ProfileResponse
