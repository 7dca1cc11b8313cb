"""대시보드 자동화 통계 (사용자별 캐시)."""
import logging
from datetime import timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.cache import api_cache, stats_cache_key
from core.config import get_settings
from core.timezone import utcnow
from models import Automation, AutomationRun, AutomationStatus, Client, FAILED_RUN_STATUSES
from schemas import AutomationStats

logger = logging.getLogger(__name__)


class StatsService:
    def __init__(self, db: Session):
        self.db = db

    def get_stats(self, user_id: str) -> AutomationStats:
        cache_key = stats_cache_key(user_id)
        cached = api_cache.get(cache_key)
        if cached is not None:
            return cached

        stats = self._compute(user_id)
        api_cache.set(cache_key, stats, ttl=get_settings().stats_cache_ttl_seconds)
        return stats

    def _compute(self, user_id: str) -> AutomationStats:
        status_counts = dict(
            self.db.query(Automation.status, func.count(Automation.id))
            .filter(Automation.user_id == user_id)
            .group_by(Automation.status)
            .all()
        )
        total = sum(status_counts.values())

        # 실행 이력이 있는 자동화만 평균에 포함
        avg_success_rate, avg_duration = (
            self.db.query(func.avg(Automation.success_rate), func.avg(Automation.avg_duration_ms))
            .filter(Automation.user_id == user_id, Automation.run_count > 0)
            .one()
        )

        total_clients = (
            self.db.query(func.count(Client.id))
            .filter(Client.user_id == user_id)
            .scalar()
        ) or 0

        since = utcnow() - timedelta(hours=24)
        runs_query = (
            self.db.query(func.count(AutomationRun.id))
            .join(Automation, AutomationRun.automation_id == Automation.id)
            .filter(Automation.user_id == user_id, AutomationRun.created_at >= since)
        )
        runs_24h = runs_query.scalar() or 0
        failures_24h = runs_query.filter(AutomationRun.status.in_(FAILED_RUN_STATUSES)).scalar() or 0

        return AutomationStats(
            total_automations=total,
            running=status_counts.get(AutomationStatus.RUNNING, 0),
            stopped=status_counts.get(AutomationStatus.STOPPED, 0),
            error=status_counts.get(AutomationStatus.ERROR, 0),
            stalled=status_counts.get(AutomationStatus.STALLED, 0),
            total_clients=total_clients,
            average_success_rate=round(float(avg_success_rate), 2) if avg_success_rate is not None else 0.0,
            average_duration_ms=int(round(avg_duration)) if avg_duration is not None else None,
            runs_24h=runs_24h,
            failures_24h=failures_24h,
            generated_at=utcnow(),
        )
