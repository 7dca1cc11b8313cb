"""n8n 텔레메트리 수신 기록."""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.dialects.postgresql import UUID

from core.database import Base


class AutomationTelemetry(Base):
    __tablename__ = "automation_telemetry"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user_id = Column(String(64), nullable=False, index=True)
    automation_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    execution_id = Column(String(200), nullable=True)

    metrics = Column(JSON, default=dict, nullable=False)
    performance_data = Column(JSON, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
