"""자동화 API 엔드포인트."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from core.config import get_settings
from core.database import get_db
from core.security import CurrentUser, get_current_user
from integrations.n8n import N8nWebhookClient, get_n8n_client
from models import AutomationStatus
from schemas import (
    ActionResponse,
    AutomationMetrics,
    AutomationResponse,
    AutomationRunResponse,
    AutomationStats,
    BulkActionRequest,
    BulkActionResponse,
)
from services import AutomationService, StatsService

router = APIRouter()


@router.get("", response_model=list[AutomationResponse])
def list_automations(
    response: Response,
    status: Optional[AutomationStatus] = None,
    client: Optional[str] = Query(None, max_length=200),
    q: Optional[str] = Query(None, max_length=200),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """사용자 자동화 목록. 브라우저 전용 캐시 60초."""
    automations = AutomationService(db).get_all(
        user.id, status=status, client_name=client, search=q
    )
    response.headers["Cache-Control"] = f"private, max-age={get_settings().automations_cache_max_age}"
    response.headers["X-Total-Count"] = str(len(automations))
    return automations


@router.get("/stats", response_model=AutomationStats)
def get_automation_stats(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return StatsService(db).get_stats(user.id)


@router.post("/bulk-action", response_model=BulkActionResponse)
async def bulk_action(
    data: BulkActionRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    n8n_client: N8nWebhookClient = Depends(get_n8n_client),
):
    """여러 자동화를 일괄 실행/중지. 항목별 실패는 전체 요청을 실패시키지 않는다."""
    service = AutomationService(db, n8n_client)
    return await service.bulk_action(data, user)


@router.get("/{automation_id}", response_model=AutomationResponse)
def get_automation(
    automation_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return AutomationService(db).get_owned(automation_id, user.id)


@router.get("/{automation_id}/runs", response_model=list[AutomationRunResponse])
def get_automation_runs(
    automation_id: UUID,
    limit: int = Query(20, ge=1, le=200),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """최근 실행 기록 (최신순)."""
    service = AutomationService(db)
    automation = service.get_owned(automation_id, user.id)
    return service.get_runs(automation, limit=limit)


@router.get("/{automation_id}/metrics", response_model=AutomationMetrics)
def get_automation_metrics(
    automation_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = AutomationService(db)
    automation = service.get_owned(automation_id, user.id)
    return service.get_metrics(automation)


# ============ Actions ============

@router.post("/{automation_id}/run", response_model=ActionResponse)
async def run_automation(
    automation_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    n8n_client: N8nWebhookClient = Depends(get_n8n_client),
):
    return await AutomationService(db, n8n_client).run(automation_id, user)


@router.post("/{automation_id}/stop", response_model=ActionResponse)
async def stop_automation(
    automation_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    n8n_client: N8nWebhookClient = Depends(get_n8n_client),
):
    return await AutomationService(db, n8n_client).stop(automation_id, user)


@router.post("/{automation_id}/restart", response_model=ActionResponse)
async def restart_automation(
    automation_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    n8n_client: N8nWebhookClient = Depends(get_n8n_client),
):
    """stop 웹훅(설정된 경우) 호출 후 run 웹훅 호출."""
    return await AutomationService(db, n8n_client).restart(automation_id, user)


@router.delete("/{automation_id}", status_code=204)
def delete_automation(
    automation_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """자동화 및 실행 기록 삭제."""
    AutomationService(db).delete(automation_id, user)
    return Response(status_code=204)
