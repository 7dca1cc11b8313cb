"""n8n 웹훅 수신 스키마."""
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, field_validator

from models.automation import RunStatus
from schemas.automation import AutomationRunResponse


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class WebhookPayload(BaseModel):
    """실행 완료/상태 보고 페이로드.

    `final_status`, `execution_time_ms` 필드명도 허용한다.
    """
    automation_id: UUID
    user_id: str = Field(..., min_length=1, max_length=64)
    status: RunStatus = Field(..., validation_alias=AliasChoices("status", "final_status"))

    execution_id: Optional[str] = Field(None, max_length=200)
    duration_ms: Optional[int] = Field(
        None, ge=0, validation_alias=AliasChoices("duration_ms", "execution_time_ms")
    )
    error_message: Optional[str] = None
    trigger_data: Optional[dict[str, Any]] = None
    workflow_name: Optional[str] = Field(None, max_length=200)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @field_validator("started_at", "completed_at")
    @classmethod
    def normalize_datetimes(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(value)


class WebhookSuccessResponse(BaseModel):
    success: bool = True
    data: AutomationRunResponse


class TelemetryPayload(BaseModel):
    """텔레메트리 페이로드. metrics 구조는 워크플로우마다 다르다."""
    user_id: str = Field(..., min_length=1, max_length=64)
    metrics: dict[str, Any]
    automation_id: Optional[UUID] = None
    execution_id: Optional[str] = Field(None, max_length=200)
    performance_data: Optional[dict[str, Any]] = None
    timestamp: Optional[datetime] = None

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(value)


class TelemetryResult(BaseModel):
    telemetry_id: UUID


class TelemetrySuccessResponse(BaseModel):
    success: bool = True
    data: TelemetryResult
