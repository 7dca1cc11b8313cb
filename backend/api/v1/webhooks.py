"""n8n 웹훅 수신 엔드포인트.

시크릿 검증이 본문 파싱보다 먼저 수행되어야 하므로
본문은 FastAPI 바디 파라미터가 아닌 Request에서 직접 읽는다.
"""
import logging
from typing import Type, TypeVar

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from core.database import get_db
from core.error_handlers import summarize_validation_errors
from core.exceptions import WebhookValidationError
from core.security import verify_webhook_secret
from schemas import (
    AutomationRunResponse,
    TelemetryPayload,
    TelemetryResult,
    TelemetrySuccessResponse,
    WebhookPayload,
    WebhookSuccessResponse,
)
from services import WebhookService

logger = logging.getLogger(__name__)

router = APIRouter()

PayloadT = TypeVar("PayloadT", bound=BaseModel)


async def _parse_body(request: Request, model: Type[PayloadT]) -> PayloadT:
    try:
        body = await request.json()
    except ValueError:
        raise WebhookValidationError("Request body must be valid JSON")
    if not isinstance(body, dict):
        raise WebhookValidationError("Request body must be a JSON object")

    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise WebhookValidationError(summarize_validation_errors(e.errors()))


@router.post("/n8n", response_model=WebhookSuccessResponse)
async def receive_n8n_webhook(request: Request, db: Session = Depends(get_db)):
    """n8n 실행 결과 수신. 실행 기록을 저장하고 자동화 지표를 갱신한다."""
    verify_webhook_secret(request)
    payload = await _parse_body(request, WebhookPayload)

    run = WebhookService(db).ingest_run(payload)
    return WebhookSuccessResponse(data=AutomationRunResponse.model_validate(run))


@router.post("/n8n/telemetry", response_model=TelemetrySuccessResponse)
async def receive_n8n_telemetry(request: Request, db: Session = Depends(get_db)):
    """n8n 텔레메트리 수신."""
    verify_webhook_secret(request)
    payload = await _parse_body(request, TelemetryPayload)

    record = WebhookService(db).record_telemetry(payload)
    return TelemetrySuccessResponse(data=TelemetryResult(telemetry_id=record.id))
