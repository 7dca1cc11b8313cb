"""pytest 설정 및 fixtures."""
import os

# 앱 import 전에 테스트 환경 설정
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["N8N_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["SCHEDULER_ENABLED"] = "false"

import time
import uuid
from datetime import datetime, timedelta
from typing import Optional

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.cache import api_cache
from core.database import Base, get_db
from core.exceptions import WebhookTriggerError
from integrations.n8n import WebhookTriggerResult, get_n8n_client
from main import app
from models import Automation, AutomationRun, AutomationStatus, Client, RunStatus


# 테스트용 인메모리 SQLite DB
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

WEBHOOK_SECRET = "test-webhook-secret"
JWT_SECRET = "test-jwt-secret"
USER_ID = "user-1"
OTHER_USER_ID = "user-2"


def override_get_db():
    """테스트용 DB 세션."""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


def make_session_token(user_id: str = USER_ID, email: Optional[str] = "user1@example.com", expires_in: int = 3600) -> str:
    claims = {
        "sub": user_id,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(time.time()) + expires_in,
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, JWT_SECRET, algorithm="HS256")


class FakeN8nClient:
    """호출 기록만 남기는 n8n 클라이언트."""

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []
        self.failing_urls: set[str] = set()

    async def trigger(self, url: str, payload: dict) -> WebhookTriggerResult:
        self.calls.append((url, payload))
        if url in self.failing_urls:
            raise WebhookTriggerError("n8n webhook responded with status 500", url=url)
        return WebhookTriggerResult(status_code=200, execution_id="exec-fake", body={"ok": True})

    @property
    def called_urls(self) -> list[str]:
        return [url for url, _ in self.calls]


@pytest.fixture(scope="function")
def db():
    """각 테스트마다 새로운 DB 생성."""
    Base.metadata.create_all(bind=engine)
    api_cache.clear()
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def n8n():
    return FakeN8nClient()


@pytest.fixture(scope="function")
def client(db, n8n):
    """테스트 클라이언트."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_n8n_client] = lambda: n8n

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_session_token()}"}


@pytest.fixture
def other_auth_headers():
    return {"Authorization": f"Bearer {make_session_token(OTHER_USER_ID, 'user2@example.com')}"}


@pytest.fixture
def webhook_headers():
    return {"Authorization": f"Bearer {WEBHOOK_SECRET}"}


def create_client_record(db, name: str = "Acme", user_id: str = USER_ID) -> Client:
    record = Client(user_id=user_id, name=name)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def create_automation(
    db,
    name: str = "Lead sync",
    user_id: str = USER_ID,
    status: AutomationStatus = AutomationStatus.STOPPED,
    client: Optional[Client] = None,
    stop_url: Optional[str] = "https://n8n.example.com/webhook/stop",
    **kwargs,
) -> Automation:
    automation = Automation(
        user_id=user_id,
        name=name,
        status=status,
        client_id=client.id if client else None,
        n8n_run_webhook_url=f"https://n8n.example.com/webhook/run/{uuid.uuid4().hex[:8]}",
        n8n_stop_webhook_url=stop_url,
        **kwargs,
    )
    db.add(automation)
    db.commit()
    db.refresh(automation)
    return automation


def create_run(
    db,
    automation: Automation,
    status: RunStatus = RunStatus.SUCCESS,
    duration_ms: Optional[int] = 1000,
    created_at: Optional[datetime] = None,
) -> AutomationRun:
    now = datetime.utcnow()
    run = AutomationRun(
        automation_id=automation.id,
        user_id=automation.user_id,
        status=status,
        started_at=now - timedelta(seconds=5),
        completed_at=now,
        duration_ms=duration_ms,
    )
    if created_at:
        run.created_at = created_at
    db.add(run)
    db.commit()
    db.refresh(run)
    return run
