"""클라이언트(자동화 그룹) 모델."""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from core.database import Base


class Client(Base):
    """자동화를 묶는 읽기 전용 그룹."""
    __tablename__ = "clients"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(64), nullable=False)
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    automations = relationship("Automation", back_populates="client")

    __table_args__ = (
        Index("ix_clients_user", "user_id"),
    )

    def __repr__(self):
        return f"<Client {self.name}>"
