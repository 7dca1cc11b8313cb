"""n8n 웹훅 수신 처리.

실행 기록 저장(1차 쓰기) 후 상위 자동화의 마지막 실행 정보/지표를 갱신(2차 쓰기)한다.
두 쓰기는 별도 커밋이며, 2차 쓰기 실패는 로그만 남기고 성공으로 응답한다.
멱등성 키가 없으므로 같은 execution_id가 재전송되면 실행 기록이 중복 생성된다.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.cache import api_cache, stats_cache_key
from core.exceptions import AutomationNotFoundError, RepositoryError, WebhookValidationError
from core.timezone import utcnow
from models import Automation, AutomationRun, AutomationTelemetry, RunStatus
from schemas import WebhookPayload, TelemetryPayload
from services.run_metrics import compute_run_metrics

logger = logging.getLogger(__name__)


class WebhookService:
    def __init__(self, db: Session):
        self.db = db

    def ingest_run(self, payload: WebhookPayload) -> AutomationRun:
        automation = self.db.get(Automation, payload.automation_id)
        if automation is None:
            raise AutomationNotFoundError(payload.automation_id)
        owner_id = automation.user_id
        if payload.user_id != owner_id:
            logger.warning(
                f"Webhook user mismatch for automation {payload.automation_id}: "
                f"payload={payload.user_id} owner={owner_id}"
            )
            raise WebhookValidationError("user_id does not match the automation owner")

        run = self._build_run(payload)
        self.db.add(run)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(
                f"Failed to create automation run: {e}",
                operation="create_automation_run",
                automation_id=str(payload.automation_id),
            )
        self.db.refresh(run)
        logger.info(
            f"Automation run recorded: automation={run.automation_id} run={run.id} "
            f"status={run.status.value} execution={run.execution_id}"
        )

        try:
            self._apply_run_to_automation(automation, run)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Automation update failed after run insert (run kept): "
                f"automation={payload.automation_id} run={run.id}: {e}"
            )

        api_cache.invalidate_prefix(stats_cache_key(owner_id))
        return run

    def _build_run(self, payload: WebhookPayload) -> AutomationRun:
        now = utcnow()
        started_at = payload.started_at or now
        completed_at = payload.completed_at
        if completed_at is None and payload.status != RunStatus.RUNNING:
            completed_at = now

        duration_ms = payload.duration_ms
        if duration_ms is None and payload.started_at and completed_at:
            duration_ms = max(int((completed_at - started_at).total_seconds() * 1000), 0)

        return AutomationRun(
            automation_id=payload.automation_id,
            user_id=payload.user_id,
            execution_id=payload.execution_id,
            status=payload.status,
            workflow_name=payload.workflow_name,
            trigger_data=payload.trigger_data,
            started_at=started_at,
            completed_at=completed_at,
            duration_ms=duration_ms,
            error_message=payload.error_message,
        )

    def _apply_run_to_automation(self, automation: Automation, run: AutomationRun) -> None:
        """마지막 실행 정보와 집계 지표 갱신 (2차 쓰기)."""
        metrics = compute_run_metrics(self.db, automation.id)

        automation.last_run_at = run.completed_at or run.started_at
        automation.last_run_status = run.status
        automation.run_count = metrics.run_count
        automation.error_count = metrics.error_count
        automation.success_rate = metrics.success_rate
        if metrics.avg_duration_ms is not None:
            automation.avg_duration_ms = metrics.avg_duration_ms

        self.db.commit()

    def record_telemetry(self, payload: TelemetryPayload) -> AutomationTelemetry:
        record = AutomationTelemetry(
            user_id=payload.user_id,
            automation_id=payload.automation_id,
            execution_id=payload.execution_id,
            metrics=payload.metrics,
            performance_data=payload.performance_data,
            timestamp=payload.timestamp or utcnow(),
        )
        self.db.add(record)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(
                f"Failed to store telemetry: {e}",
                operation="record_telemetry",
                user_id=payload.user_id,
            )
        self.db.refresh(record)
        logger.info(f"Telemetry recorded: {record.id} (user={record.user_id}, automation={record.automation_id})")
        return record
