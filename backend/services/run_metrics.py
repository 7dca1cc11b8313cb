"""실행 기록 기반 지표 계산.

- run_count: 완료된 실행 수 (status != running)
- error_count: error/timeout 실행 수
- success_rate: success / run_count * 100, 소수 둘째 자리 반올림
- avg_duration_ms: duration_ms가 있는 실행의 평균
"""
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from models import AutomationRun, RunStatus, FAILED_RUN_STATUSES


@dataclass
class RunMetrics:
    run_count: int
    success_count: int
    error_count: int
    success_rate: float
    avg_duration_ms: Optional[int]


def compute_run_metrics(db: Session, automation_id: UUID) -> RunMetrics:
    row = (
        db.query(
            func.count(AutomationRun.id),
            func.sum(case((AutomationRun.status == RunStatus.SUCCESS, 1), else_=0)),
            func.sum(case((AutomationRun.status.in_(FAILED_RUN_STATUSES), 1), else_=0)),
            func.avg(AutomationRun.duration_ms),
        )
        .filter(
            AutomationRun.automation_id == automation_id,
            AutomationRun.status != RunStatus.RUNNING,
        )
        .one()
    )
    total, successes, errors, avg_duration = row
    total = total or 0
    successes = int(successes or 0)
    errors = int(errors or 0)

    success_rate = round(successes / total * 100, 2) if total else 0.0
    return RunMetrics(
        run_count=total,
        success_count=successes,
        error_count=errors,
        success_rate=success_rate,
        avg_duration_ms=int(round(avg_duration)) if avg_duration is not None else None,
    )
