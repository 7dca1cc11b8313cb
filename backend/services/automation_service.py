"""자동화 조회 및 사용자 액션(run/stop/restart/delete/bulk).

액션은 자동화에 등록된 n8n 웹훅을 호출한 뒤 상태를 갱신하고 감사 로그를 남긴다.
웹훅 호출이 실패하면 상태는 바뀌지 않는다.
"""
import asyncio
import logging
import time
from datetime import timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager

from core.cache import api_cache, stats_cache_key
from core.config import get_settings
from core.exceptions import (
    AppError,
    AutomationNotFoundError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    RepositoryError,
    WebhookTriggerError,
)
from core.security import CurrentUser
from core.timezone import utcnow, isoformat_utc
from integrations.n8n import N8nWebhookClient, WebhookTriggerResult
from models import Automation, AutomationRun, AutomationStatus, Client, EventLog
from schemas import (
    ActionResponse,
    ActionResult,
    AutomationMetrics,
    BulkActionItemResult,
    BulkActionRequest,
    BulkActionResponse,
    BulkActionSummary,
)
from services.run_metrics import compute_run_metrics

logger = logging.getLogger(__name__)

# 중지 가능한 상태 (Stalled는 아직 실행 중일 수 있다)
STOPPABLE_STATUSES = (AutomationStatus.RUNNING, AutomationStatus.STALLED)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class AutomationService:
    def __init__(self, db: Session, n8n_client: Optional[N8nWebhookClient] = None):
        self.db = db
        self.n8n_client = n8n_client

    # ============ 조회 ============

    def get_all(
        self,
        user_id: str,
        status: Optional[AutomationStatus] = None,
        client_name: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Automation]:
        """사용자 자동화 목록 (최신 생성순)."""
        query = (
            self.db.query(Automation)
            .outerjoin(Automation.client)
            .options(contains_eager(Automation.client))
            .filter(Automation.user_id == user_id)
        )
        if status:
            query = query.filter(Automation.status == status)
        if client_name:
            query = query.filter(Client.name == client_name)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Automation.name.ilike(pattern), Client.name.ilike(pattern)))

        return query.order_by(Automation.created_at.desc()).all()

    def get(self, automation_id: UUID) -> Optional[Automation]:
        return self.db.get(Automation, automation_id)

    def get_owned(self, automation_id: UUID, user_id: str) -> Automation:
        """소유권 확인 후 자동화 반환. 없으면 404, 타인 소유면 403."""
        automation = self.get(automation_id)
        if automation is None:
            raise AutomationNotFoundError(automation_id)
        if automation.user_id != user_id:
            logger.warning(f"User {user_id} attempted to access automation {automation_id}")
            raise ForbiddenError("You do not have access to this automation")
        return automation

    def get_runs(self, automation: Automation, limit: int = 20) -> list[AutomationRun]:
        return (
            self.db.query(AutomationRun)
            .filter(AutomationRun.automation_id == automation.id)
            .order_by(AutomationRun.started_at.desc(), AutomationRun.created_at.desc())
            .limit(limit)
            .all()
        )

    def get_metrics(self, automation: Automation) -> AutomationMetrics:
        metrics = compute_run_metrics(self.db, automation.id)
        if metrics.run_count == 0:
            # 실행 기록이 없으면 저장된 집계값 사용 (외부에서 이관된 자동화)
            return AutomationMetrics(
                automation_id=automation.id,
                total_runs=automation.run_count,
                successful_runs=max(automation.run_count - automation.error_count, 0),
                failed_runs=automation.error_count,
                success_rate=round(automation.success_rate or 0.0, 2),
                average_duration_ms=automation.avg_duration_ms or 0,
                last_run_at=automation.last_run_at,
                last_run_status=automation.last_run_status,
            )

        return AutomationMetrics(
            automation_id=automation.id,
            total_runs=metrics.run_count,
            successful_runs=metrics.success_count,
            failed_runs=metrics.error_count,
            success_rate=metrics.success_rate,
            average_duration_ms=metrics.avg_duration_ms or 0,
            last_run_at=automation.last_run_at,
            last_run_status=automation.last_run_status,
        )

    # ============ 액션 ============

    async def run(self, automation_id: UUID, user: CurrentUser) -> ActionResponse:
        started = time.perf_counter()
        automation = self.get_owned(automation_id, user.id)
        if automation.status == AutomationStatus.RUNNING:
            raise ConflictError("Automation is already running", automation_id=str(automation_id))

        trigger = await self._trigger(automation, "run", automation.n8n_run_webhook_url, user)
        previous = automation.status
        automation.status = AutomationStatus.RUNNING
        automation.updated_at = utcnow()  # 정체 감지 기준 시각
        self._record_event(
            "automation_run", automation, user.id,
            {"previous_status": previous.value, "webhook_status": trigger.status_code},
        )
        self._commit("run_automation", automation.id)
        self._invalidate_stats(user.id)

        logger.info(f"Automation started: {automation.id} by {user.id}")
        return self._action_response(
            automation.id, "run", started, self._result_from(trigger, "Automation started")
        )

    async def stop(self, automation_id: UUID, user: CurrentUser) -> ActionResponse:
        started = time.perf_counter()
        automation = self.get_owned(automation_id, user.id)
        if automation.status not in STOPPABLE_STATUSES:
            raise ConflictError("Automation is not running", automation_id=str(automation_id))
        if not automation.n8n_stop_webhook_url:
            raise BadRequestError("Automation has no stop webhook configured")

        trigger = await self._trigger(automation, "stop", automation.n8n_stop_webhook_url, user)
        previous = automation.status
        automation.status = AutomationStatus.STOPPED
        self._record_event(
            "automation_stop", automation, user.id,
            {"previous_status": previous.value, "webhook_status": trigger.status_code},
        )
        self._commit("stop_automation", automation.id)
        self._invalidate_stats(user.id)

        logger.info(f"Automation stopped: {automation.id} by {user.id}")
        return self._action_response(
            automation.id, "stop", started, self._result_from(trigger, "Automation stopped")
        )

    async def restart(self, automation_id: UUID, user: CurrentUser) -> ActionResponse:
        """실행 중이고 stop 웹훅이 있으면 먼저 중지한 뒤 다시 실행."""
        started = time.perf_counter()
        automation = self.get_owned(automation_id, user.id)
        previous = automation.status

        if previous in STOPPABLE_STATUSES and automation.n8n_stop_webhook_url:
            await self._trigger(automation, "stop", automation.n8n_stop_webhook_url, user)

        trigger = await self._trigger(automation, "run", automation.n8n_run_webhook_url, user)
        automation.status = AutomationStatus.RUNNING
        automation.updated_at = utcnow()  # 정체 감지 기준 시각
        self._record_event(
            "automation_restart", automation, user.id,
            {"previous_status": previous.value, "webhook_status": trigger.status_code},
        )
        self._commit("restart_automation", automation.id)
        self._invalidate_stats(user.id)

        logger.info(f"Automation restarted: {automation.id} by {user.id}")
        return self._action_response(
            automation.id, "restart", started, self._result_from(trigger, "Automation restarted")
        )

    def delete(self, automation_id: UUID, user: CurrentUser) -> None:
        automation = self.get_owned(automation_id, user.id)
        self._record_event("automation_delete", automation, user.id, {"name": automation.name})
        self.db.delete(automation)
        self._commit("delete_automation", automation_id)
        self._invalidate_stats(user.id)
        logger.info(f"Automation deleted: {automation_id} by {user.id}")

    async def bulk_action(self, request: BulkActionRequest, user: CurrentUser) -> BulkActionResponse:
        """일괄 run/stop. 배치 단위로 동시 실행하고 항목별 결과를 반환한다."""
        settings = get_settings()
        started = time.perf_counter()

        ids = list(dict.fromkeys(request.target_ids))
        if not ids:
            raise BadRequestError("automation_ids must be a non-empty array")
        if len(ids) > settings.bulk_max_automations:
            raise BadRequestError(f"Batch size limited to {settings.bulk_max_automations} automations")

        batch_size = max(settings.bulk_batch_size, 1)
        results: list[BulkActionItemResult] = []
        for offset in range(0, len(ids), batch_size):
            batch = ids[offset:offset + batch_size]
            results.extend(
                await asyncio.gather(*(self._bulk_item(request.action, aid, user) for aid in batch))
            )
            if settings.bulk_batch_delay_seconds > 0 and offset + batch_size < len(ids):
                await asyncio.sleep(settings.bulk_batch_delay_seconds)

        successful = sum(1 for r in results if r.success)
        logger.info(
            f"Bulk {request.action} by {user.id}: {successful}/{len(ids)} succeeded"
        )
        return BulkActionResponse(
            success=successful == len(ids),
            action=request.action,
            total_requested=len(ids),
            results=results,
            summary=BulkActionSummary(successful=successful, failed=len(ids) - successful),
            execution_time_ms=_elapsed_ms(started),
        )

    async def _bulk_item(self, action: str, automation_id: UUID, user: CurrentUser) -> BulkActionItemResult:
        handler = self.run if action == "run" else self.stop
        try:
            response = await handler(automation_id, user)
        except AppError as e:
            return BulkActionItemResult(
                id=automation_id, success=False, error=e.message, timestamp=utcnow()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Bulk {action} failed for {automation_id}: {e}")
            return BulkActionItemResult(
                id=automation_id, success=False, error=RepositoryError.error, timestamp=utcnow()
            )
        return BulkActionItemResult(
            id=automation_id, success=True, result=response.result, timestamp=response.timestamp
        )

    # ============ 상태 감시 ============

    def mark_stalled(self, threshold_minutes: int) -> list[Automation]:
        """마지막 실행 이후 threshold_minutes 동안 보고가 없는 Running 자동화를 Stalled로 전환."""
        cutoff = utcnow() - timedelta(minutes=threshold_minutes)
        candidates = (
            self.db.query(Automation)
            .filter(Automation.status == AutomationStatus.RUNNING)
            .all()
        )

        stalled = []
        for automation in candidates:
            # 사용자 액션(run/restart)도 활동으로 본다
            last_seen = max(t for t in (automation.last_run_at, automation.updated_at) if t is not None)
            if last_seen < cutoff:
                automation.status = AutomationStatus.STALLED
                self._record_event(
                    "automation_stalled", automation, None,
                    {"last_seen": isoformat_utc(last_seen), "threshold_minutes": threshold_minutes},
                )
                stalled.append(automation)

        if stalled:
            self._commit("mark_stalled", None)
            for user_id in {a.user_id for a in stalled}:
                self._invalidate_stats(user_id)
        return stalled

    # ============ 내부 ============

    async def _trigger(
        self, automation: Automation, action: str, url: str, user: CurrentUser
    ) -> WebhookTriggerResult:
        if self.n8n_client is None:
            raise WebhookTriggerError("n8n client is not configured")

        payload = {
            "automation_id": str(automation.id),
            "action": action,
            "triggered_by": user.id,
            "triggered_at": isoformat_utc(utcnow()),
        }
        try:
            return await self.n8n_client.trigger(url, payload)
        except WebhookTriggerError as e:
            logger.warning(f"Automation {action} failed for {automation.id}: {e.message}")
            self._record_event(
                f"automation_{action}_failed", automation, user.id, {"error": e.message}
            )
            self._commit(f"{action}_automation_failed", automation.id)
            raise

    def _record_event(self, event_type: str, automation: Automation, user_id: Optional[str], payload: dict):
        self.db.add(EventLog(
            event_type=event_type,
            entity_type="automation",
            entity_id=str(automation.id),
            user_id=user_id,
            payload=payload,
        ))

    def _commit(self, operation: str, automation_id: Optional[UUID]) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(
                f"Failed to {operation.replace('_', ' ')}: {e}",
                operation=operation,
                automation_id=str(automation_id) if automation_id else None,
            )

    def _invalidate_stats(self, user_id: str) -> None:
        api_cache.invalidate_prefix(stats_cache_key(user_id))

    @staticmethod
    def _result_from(trigger: WebhookTriggerResult, message: str) -> ActionResult:
        return ActionResult(
            webhook_triggered=True,
            webhook_status=trigger.status_code,
            execution_id=trigger.execution_id,
            message=message,
        )

    @staticmethod
    def _action_response(automation_id: UUID, action: str, started: float, result: ActionResult) -> ActionResponse:
        return ActionResponse(
            success=True,
            automation_id=automation_id,
            action=action,
            timestamp=utcnow(),
            execution_time_ms=_elapsed_ms(started),
            result=result,
        )
