"""클라이언트 스키마."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class ClientResponse(BaseModel):
    id: UUID
    name: str
    created_at: datetime
    automation_count: int = 0

    class Config:
        from_attributes = True
