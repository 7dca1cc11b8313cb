"""API 헬스체크 엔드포인트."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import get_settings
from core.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def check_health(db: Session = Depends(get_db)):
    """DB 연결 및 시크릿 설정 상태 확인."""
    settings = get_settings()

    database = {"connected": False, "error": None}
    try:
        db.execute(text("SELECT 1"))
        database["connected"] = True
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {e}")
        database["error"] = str(e)[:100]

    return {
        "status": "healthy" if database["connected"] else "degraded",
        "database": database,
        "webhook_secret_configured": bool(settings.n8n_webhook_secret),
        "session_secret_configured": bool(settings.supabase_jwt_secret),
    }
