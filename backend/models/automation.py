"""자동화(n8n 워크플로우) 모델."""
import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import Column, String, Text, Integer, Float, DateTime, Enum, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from core.database import Base


class AutomationStatus(str, PyEnum):
    """자동화 상태. DB/응답 값은 대문자로 시작한다."""
    RUNNING = "Running"
    STOPPED = "Stopped"
    ERROR = "Error"
    STALLED = "Stalled"


class RunStatus(str, PyEnum):
    """실행(run) 결과 상태."""
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"


FAILED_RUN_STATUSES = (RunStatus.ERROR, RunStatus.TIMEOUT)


class Automation(Base):
    __tablename__ = "automations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user_id = Column(String(64), nullable=False)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        Enum(AutomationStatus, values_callable=lambda e: [m.value for m in e]),
        default=AutomationStatus.STOPPED,
        nullable=False,
    )

    # 마지막 실행
    last_run_at = Column(DateTime, nullable=True)
    last_run_status = Column(
        Enum(RunStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=True,
    )

    # 집계 지표 (웹훅 수신 시 재계산)
    run_count = Column(Integer, default=0, nullable=False)
    error_count = Column(Integer, default=0, nullable=False)
    success_rate = Column(Float, default=0.0, nullable=False)  # 0-100 (%)
    avg_duration_ms = Column(Integer, nullable=True)

    # n8n 웹훅
    n8n_run_webhook_url = Column(String(500), nullable=False)
    n8n_stop_webhook_url = Column(String(500), nullable=True)

    client = relationship("Client", back_populates="automations")
    runs = relationship(
        "AutomationRun",
        back_populates="automation",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_automations_user", "user_id"),
        Index("ix_automations_status", "status"),
    )

    @property
    def client_name(self):
        return self.client.name if self.client else None

    def __repr__(self):
        return f"<Automation {self.name} ({self.status.value})>"
