"""자동화 액션 API 테스트 (run/stop/restart/delete/bulk)."""
import uuid
from datetime import datetime

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from conftest import USER_ID, OTHER_USER_ID, create_automation, create_run
from models import Automation, AutomationRun, AutomationStatus, EventLog
from schemas import ActionResponse, ActionResult
from services import AutomationService


def _events(db, automation_id, event_type=None):
    query = db.query(EventLog).filter(EventLog.entity_id == str(automation_id))
    if event_type:
        query = query.filter(EventLog.event_type == event_type)
    return query.all()


class TestRunAction:
    """실행 액션 테스트."""

    def test_run_triggers_webhook_and_sets_running(self, client, db, n8n, auth_headers):
        automation = create_automation(db)

        response = client.post(f"/api/automations/{automation.id}/run", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["action"] == "run"
        assert data["automation_id"] == str(automation.id)
        assert data["execution_time_ms"] >= 0
        assert data["result"]["webhook_triggered"] is True
        assert data["result"]["execution_id"] == "exec-fake"

        assert n8n.called_urls == [automation.n8n_run_webhook_url]
        _, payload = n8n.calls[0]
        assert payload["action"] == "run"
        assert payload["automation_id"] == str(automation.id)
        assert payload["triggered_by"] == USER_ID

        db.refresh(automation)
        assert automation.status == AutomationStatus.RUNNING
        assert len(_events(db, automation.id, "automation_run")) == 1

    def test_run_already_running_returns_409(self, client, db, n8n, auth_headers):
        automation = create_automation(db, status=AutomationStatus.RUNNING)
        response = client.post(f"/api/automations/{automation.id}/run", headers=auth_headers)
        assert response.status_code == 409
        assert n8n.calls == []

    def test_run_webhook_failure_returns_502_and_keeps_status(self, client, db, n8n, auth_headers):
        automation = create_automation(db, status=AutomationStatus.ERROR)
        n8n.failing_urls.add(automation.n8n_run_webhook_url)

        response = client.post(f"/api/automations/{automation.id}/run", headers=auth_headers)
        assert response.status_code == 502
        assert response.json()["error"] == "Webhook trigger failed"

        db.refresh(automation)
        assert automation.status == AutomationStatus.ERROR
        assert len(_events(db, automation.id, "automation_run_failed")) == 1

    def test_run_other_users_automation_returns_403(self, client, db, n8n, other_auth_headers):
        automation = create_automation(db)
        response = client.post(f"/api/automations/{automation.id}/run", headers=other_auth_headers)
        assert response.status_code == 403
        assert n8n.calls == []

    def test_run_unknown_returns_404(self, client, auth_headers):
        response = client.post(f"/api/automations/{uuid.uuid4()}/run", headers=auth_headers)
        assert response.status_code == 404

    def test_run_requires_session(self, client, db):
        automation = create_automation(db)
        assert client.post(f"/api/automations/{automation.id}/run").status_code == 401


class TestStopAction:
    """중지 액션 테스트."""

    def test_stop_running_automation(self, client, db, n8n, auth_headers):
        automation = create_automation(db, status=AutomationStatus.RUNNING)

        response = client.post(f"/api/automations/{automation.id}/stop", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["action"] == "stop"
        assert n8n.called_urls == [automation.n8n_stop_webhook_url]

        db.refresh(automation)
        assert automation.status == AutomationStatus.STOPPED

    def test_stop_stalled_automation(self, client, db, auth_headers):
        automation = create_automation(db, status=AutomationStatus.STALLED)
        response = client.post(f"/api/automations/{automation.id}/stop", headers=auth_headers)
        assert response.status_code == 200

    def test_stop_not_running_returns_409(self, client, db, n8n, auth_headers):
        automation = create_automation(db, status=AutomationStatus.STOPPED)
        response = client.post(f"/api/automations/{automation.id}/stop", headers=auth_headers)
        assert response.status_code == 409
        assert n8n.calls == []

    def test_stop_without_webhook_returns_400(self, client, db, n8n, auth_headers):
        automation = create_automation(db, status=AutomationStatus.RUNNING, stop_url=None)
        response = client.post(f"/api/automations/{automation.id}/stop", headers=auth_headers)
        assert response.status_code == 400
        assert n8n.calls == []


class TestRestartAction:
    """재시작 액션 테스트."""

    def test_restart_running_calls_stop_then_run(self, client, db, n8n, auth_headers):
        automation = create_automation(db, status=AutomationStatus.RUNNING)

        response = client.post(f"/api/automations/{automation.id}/restart", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["action"] == "restart"
        assert n8n.called_urls == [automation.n8n_stop_webhook_url, automation.n8n_run_webhook_url]

        db.refresh(automation)
        assert automation.status == AutomationStatus.RUNNING

    def test_restart_stopped_only_runs(self, client, db, n8n, auth_headers):
        automation = create_automation(db, status=AutomationStatus.STOPPED)

        response = client.post(f"/api/automations/{automation.id}/restart", headers=auth_headers)
        assert response.status_code == 200
        assert n8n.called_urls == [automation.n8n_run_webhook_url]

        db.refresh(automation)
        assert automation.status == AutomationStatus.RUNNING

    def test_restart_without_stop_webhook(self, client, db, n8n, auth_headers):
        automation = create_automation(db, status=AutomationStatus.RUNNING, stop_url=None)
        response = client.post(f"/api/automations/{automation.id}/restart", headers=auth_headers)
        assert response.status_code == 200
        assert n8n.called_urls == [automation.n8n_run_webhook_url]


class TestDeleteAction:
    """삭제 액션 테스트."""

    def test_delete_removes_automation_and_runs(self, client, db, auth_headers):
        automation = create_automation(db)
        create_run(db, automation)
        automation_id = automation.id

        response = client.delete(f"/api/automations/{automation_id}", headers=auth_headers)
        assert response.status_code == 204

        db.expire_all()
        assert db.get(Automation, automation_id) is None
        assert db.query(AutomationRun).filter_by(automation_id=automation_id).count() == 0
        assert len(_events(db, automation_id, "automation_delete")) == 1

    def test_delete_other_users_automation_returns_403(self, client, db, other_auth_headers):
        automation = create_automation(db)
        response = client.delete(f"/api/automations/{automation.id}", headers=other_auth_headers)
        assert response.status_code == 403

        db.expire_all()
        assert db.get(Automation, automation.id) is not None


class TestBulkAction:
    """일괄 액션 테스트."""

    def test_bulk_run_reports_per_item_results(self, client, db, n8n, auth_headers):
        stopped = create_automation(db, name="stopped")
        running = create_automation(db, name="running", status=AutomationStatus.RUNNING)
        foreign = create_automation(db, name="foreign", user_id=OTHER_USER_ID)
        missing = uuid.uuid4()

        response = client.post(
            "/api/automations/bulk-action",
            json={
                "action": "run",
                "automation_ids": [str(stopped.id), str(running.id), str(foreign.id), str(missing)],
            },
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["total_requested"] == 4
        assert data["summary"] == {"successful": 1, "failed": 3}

        results = {r["id"]: r for r in data["results"]}
        assert results[str(stopped.id)]["success"] is True
        assert results[str(running.id)]["error"] == "Automation is already running"
        assert results[str(foreign.id)]["success"] is False
        assert results[str(missing)]["success"] is False
        assert n8n.called_urls == [stopped.n8n_run_webhook_url]

    def test_bulk_stop_in_batches(self, client, db, n8n, auth_headers):
        automations = [
            create_automation(db, name=f"a{i}", status=AutomationStatus.RUNNING) for i in range(12)
        ]

        response = client.post(
            "/api/automations/bulk-action",
            json={"action": "stop", "automation_ids": [str(a.id) for a in automations]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["summary"]["successful"] == 12
        assert len(n8n.calls) == 12

        db.expire_all()
        assert all(db.get(Automation, a.id).status == AutomationStatus.STOPPED for a in automations)

    def test_filtered_ids_take_precedence(self, client, db, n8n, auth_headers):
        first = create_automation(db, name="first")
        second = create_automation(db, name="second")

        response = client.post(
            "/api/automations/bulk-action",
            json={
                "action": "run",
                "automation_ids": [str(first.id)],
                "filtered_ids": [str(second.id)],
            },
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert [r["id"] for r in response.json()["results"]] == [str(second.id)]

    def test_webhook_failure_is_per_item(self, client, db, n8n, auth_headers):
        ok = create_automation(db, name="ok")
        broken = create_automation(db, name="broken")
        n8n.failing_urls.add(broken.n8n_run_webhook_url)

        response = client.post(
            "/api/automations/bulk-action",
            json={"action": "run", "automation_ids": [str(ok.id), str(broken.id)]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["summary"] == {"successful": 1, "failed": 1}

    def test_database_error_is_per_item(self, client, db, n8n, auth_headers, monkeypatch):
        healthy = create_automation(db, name="healthy")
        broken = create_automation(db, name="broken")
        original_get_owned = AutomationService.get_owned

        def flaky_get_owned(self, automation_id, user_id):
            if automation_id == broken.id:
                raise SQLAlchemyError("connection lost")
            return original_get_owned(self, automation_id, user_id)

        monkeypatch.setattr(AutomationService, "get_owned", flaky_get_owned)

        response = client.post(
            "/api/automations/bulk-action",
            json={"action": "run", "automation_ids": [str(healthy.id), str(broken.id)]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["summary"] == {"successful": 1, "failed": 1}
        results = {r["id"]: r for r in data["results"]}
        assert results[str(broken.id)]["error"] == "Database operation failed"
        assert "connection lost" not in response.text
        assert n8n.called_urls == [healthy.n8n_run_webhook_url]

    def test_empty_ids_returns_400(self, client, auth_headers):
        response = client.post(
            "/api/automations/bulk-action",
            json={"action": "run", "automation_ids": []},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_too_many_ids_returns_400(self, client, auth_headers):
        response = client.post(
            "/api/automations/bulk-action",
            json={"action": "run", "automation_ids": [str(uuid.uuid4()) for _ in range(51)]},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert "50" in response.json()["message"]

    def test_invalid_action_returns_400(self, client, auth_headers):
        response = client.post(
            "/api/automations/bulk-action",
            json={"action": "delete", "automation_ids": [str(uuid.uuid4())]},
            headers=auth_headers,
        )
        assert response.status_code == 400


class TestActionResponseSchema:
    """액션 응답 스키마 테스트."""

    def test_delete_is_not_an_action_response(self):
        with pytest.raises(ValidationError):
            ActionResponse(
                success=True,
                automation_id=uuid.uuid4(),
                action="delete",
                timestamp=datetime.utcnow(),
                execution_time_ms=0,
                result=ActionResult(webhook_triggered=False, message="deleted"),
            )
