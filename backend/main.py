import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager

from core.config import get_settings
from core.database import engine, Base
from core.error_handlers import register_error_handlers
from api.v1 import automations, clients, health, users, webhooks
from integrations.n8n import close_n8n_client
from scheduler import get_scheduler_manager

settings = get_settings()

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    Base.metadata.create_all(bind=engine)

    scheduler = get_scheduler_manager()
    scheduler.start()
    logger.info("Application started")

    yield

    # Shutdown
    scheduler.shutdown()
    await close_n8n_client()
    logger.info("Application shutdown")


app = FastAPI(
    title="Communitee Control Hub API",
    description="n8n 자동화 모니터링 및 제어",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(webhooks.router, prefix="/api/webhooks", tags=["webhooks"])
app.include_router(automations.router, prefix="/api/automations", tags=["automations"])
app.include_router(clients.router, prefix="/api/clients", tags=["clients"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(health.router, prefix="/api/health", tags=["health"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.get("/api/scheduler/status")
async def scheduler_status():
    """스케줄러 상태 조회."""
    scheduler = get_scheduler_manager()
    return {
        "running": scheduler.is_running,
        "jobs": scheduler.get_jobs(),
    }


@app.get("/api/cache/stats")
async def cache_stats():
    """서버 사이드 캐시 통계 조회."""
    from core.cache import api_cache
    return api_cache.stats()
