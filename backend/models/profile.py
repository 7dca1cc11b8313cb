"""사용자 프로필 모델."""
from datetime import datetime

from sqlalchemy import Column, String, DateTime

from core.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    # 인증 서비스의 사용자 ID (JWT sub)
    id = Column(String(64), primary_key=True)
    email = Column(String(320), nullable=True)
    full_name = Column(String(200), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    website = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Profile {self.id}>"
