"""자동화 관련 스키마."""
from datetime import datetime
from typing import Optional, Literal
from uuid import UUID

from pydantic import BaseModel, Field

from models.automation import AutomationStatus, RunStatus


# ============ Automation Schemas ============

class AutomationResponse(BaseModel):
    """자동화 응답 스키마."""
    id: UUID
    user_id: str
    client_id: Optional[UUID] = None
    client_name: Optional[str] = None
    name: str
    description: Optional[str] = None
    status: AutomationStatus
    last_run_at: Optional[datetime] = None
    last_run_status: Optional[RunStatus] = None
    avg_duration_ms: Optional[int] = None
    success_rate: float
    run_count: int
    error_count: int
    n8n_run_webhook_url: str
    n8n_stop_webhook_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AutomationRunResponse(BaseModel):
    """실행 기록 응답 스키마."""
    id: UUID
    automation_id: UUID
    user_id: str
    execution_id: Optional[str] = None
    status: RunStatus
    workflow_name: Optional[str] = None
    trigger_data: Optional[dict] = None
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration_ms: Optional[int] = None
    error_message: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AutomationMetrics(BaseModel):
    """자동화 단위 실행 지표."""
    automation_id: UUID
    total_runs: int
    successful_runs: int
    failed_runs: int
    success_rate: float
    average_duration_ms: int
    last_run_at: Optional[datetime] = None
    last_run_status: Optional[RunStatus] = None


class AutomationStats(BaseModel):
    """대시보드 집계 통계."""
    total_automations: int
    running: int
    stopped: int
    error: int
    stalled: int
    total_clients: int
    average_success_rate: float
    average_duration_ms: Optional[int] = None
    runs_24h: int
    failures_24h: int
    generated_at: datetime


# ============ Action Schemas ============

ActionName = Literal["run", "stop", "restart"]


class ActionResult(BaseModel):
    """웹훅 트리거 결과."""
    webhook_triggered: bool
    webhook_status: Optional[int] = None
    execution_id: Optional[str] = None
    message: str


class ActionResponse(BaseModel):
    """개별 액션 응답."""
    success: bool
    automation_id: UUID
    action: ActionName
    timestamp: datetime
    execution_time_ms: int
    result: ActionResult


class BulkActionRequest(BaseModel):
    """일괄 실행/중지 요청. filtered_ids가 있으면 automation_ids보다 우선한다."""
    action: Literal["run", "stop"]
    automation_ids: Optional[list[UUID]] = None
    filtered_ids: Optional[list[UUID]] = None

    @property
    def target_ids(self) -> list[UUID]:
        return list(self.filtered_ids or self.automation_ids or [])


class BulkActionItemResult(BaseModel):
    id: UUID
    success: bool
    result: Optional[ActionResult] = None
    error: Optional[str] = None
    timestamp: datetime


class BulkActionSummary(BaseModel):
    successful: int
    failed: int


class BulkActionResponse(BaseModel):
    success: bool
    action: Literal["run", "stop"]
    total_requested: int
    results: list[BulkActionItemResult]
    summary: BulkActionSummary
    execution_time_ms: int = Field(..., ge=0)
