"""자동화 정체(Stalled) 감지 스케줄러 작업."""
import logging

from core.config import get_settings
from core.database import SessionLocal
from services.automation_service import AutomationService

logger = logging.getLogger(__name__)


async def check_stalled_automations() -> int:
    """
    일정 시간 동안 실행 보고가 없는 Running 자동화를 Stalled로 표시.
    """
    threshold = get_settings().stall_threshold_minutes
    logger.info("자동화 정체 감지 작업 시작")

    db = SessionLocal()
    try:
        stalled = AutomationService(db).mark_stalled(threshold)
        for automation in stalled:
            logger.warning(f"Automation marked as stalled: {automation.id} ({automation.name})")
        logger.info(f"자동화 정체 감지 완료: {len(stalled)}건")
        return len(stalled)
    except Exception as e:
        logger.error(f"자동화 정체 감지 작업 오류: {e}")
        raise
    finally:
        db.close()
