"""APScheduler 설정 및 관리."""
import logging
from typing import Optional, Callable, Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent

from core.config import get_settings

logger = logging.getLogger(__name__)


class SchedulerManager:
    """스케줄러 관리자.

    APScheduler의 AsyncIOScheduler를 래핑하여
    작업 등록, 상태 조회, 시작/종료를 관리합니다.
    """

    def __init__(self):
        self.settings = get_settings()
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._initialized = False

    @property
    def scheduler(self) -> AsyncIOScheduler:
        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler(
                timezone="UTC",
                job_defaults={
                    "coalesce": True,  # 놓친 작업 한번만 실행
                    "max_instances": 1,  # 동시 실행 방지
                    "misfire_grace_time": 60,
                }
            )
            self._scheduler.add_listener(
                self._job_listener,
                EVENT_JOB_EXECUTED | EVENT_JOB_ERROR
            )
        return self._scheduler

    def _job_listener(self, event: JobExecutionEvent):
        """작업 실행 이벤트 리스너."""
        if event.exception:
            logger.error(
                f"Job {event.job_id} failed: {event.exception}",
                exc_info=event.exception
            )
        else:
            logger.debug(f"Job {event.job_id} executed successfully")

    def add_interval_job(
        self,
        func: Callable,
        job_id: str,
        minutes: int = 5,
        **kwargs: Any,
    ) -> None:
        """일정 간격으로 실행되는 작업 등록."""
        self.scheduler.add_job(
            func,
            trigger=IntervalTrigger(minutes=minutes),
            id=job_id,
            replace_existing=True,
            **kwargs,
        )
        logger.info(f"Added interval job: {job_id} (every {minutes} minutes)")

    def get_jobs(self) -> list[dict]:
        """등록된 작업 목록."""
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger),
            })
        return jobs

    def start(self) -> None:
        """스케줄러 시작."""
        if not self.settings.scheduler_enabled:
            logger.info("Scheduler is disabled by configuration")
            return

        if not self._initialized:
            self._setup_jobs()
            self._initialized = True

        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Scheduler started")

    def shutdown(self) -> None:
        """스케줄러 종료."""
        if self._scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler shutdown")

    def _setup_jobs(self) -> None:
        """기본 작업 등록."""
        from scheduler.jobs.stall_check import check_stalled_automations

        self.add_interval_job(
            check_stalled_automations,
            job_id="stall_check",
            minutes=self.settings.stall_check_interval_minutes,
        )

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running


# 싱글톤 인스턴스
_scheduler_manager: Optional[SchedulerManager] = None


def get_scheduler_manager() -> SchedulerManager:
    """스케줄러 매니저 싱글톤 반환."""
    global _scheduler_manager
    if _scheduler_manager is None:
        _scheduler_manager = SchedulerManager()
    return _scheduler_manager
