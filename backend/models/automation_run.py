"""자동화 실행 기록 모델.

웹훅 수신 1건당 1행이 생성되며 이후 변경되지 않는다.
"""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Text, Integer, DateTime, Enum, JSON, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from core.database import Base
from models.automation import RunStatus


class AutomationRun(Base):
    __tablename__ = "automation_runs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    automation_id = Column(
        UUID(as_uuid=True),
        ForeignKey("automations.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id = Column(String(64), nullable=False)

    # 중복 수신 시 같은 execution_id로 여러 행이 생길 수 있다 (unique 아님)
    execution_id = Column(String(200), nullable=True)
    status = Column(Enum(RunStatus, values_callable=lambda e: [m.value for m in e]), nullable=False)
    workflow_name = Column(String(200), nullable=True)
    trigger_data = Column(JSON, nullable=True)

    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    duration_ms = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)

    automation = relationship("Automation", back_populates="runs")

    __table_args__ = (
        Index("ix_automation_runs_automation", "automation_id", "started_at"),
        Index("ix_automation_runs_execution", "execution_id"),
    )

    def __repr__(self):
        return f"<AutomationRun {self.automation_id} - {self.status.value}>"
