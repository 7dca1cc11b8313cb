"""n8n 웹훅 클라이언트 테스트."""
import asyncio
import json

import httpx
import pytest
from tenacity import wait_none

from core.exceptions import WebhookTriggerError
from integrations.base_client import BaseAPIClient
from integrations.n8n import N8nWebhookClient


def _run(coro):
    return asyncio.run(coro)


class TestN8nWebhookClient:
    """httpx MockTransport 기반 테스트."""

    def test_trigger_posts_json_and_parses_execution_id(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"executionId": 1234})

        async def scenario():
            client = N8nWebhookClient(transport=httpx.MockTransport(handler))
            try:
                return await client.trigger("https://n8n.example.com/webhook/run", {"action": "run"})
            finally:
                await client.close()

        result = _run(scenario())
        assert result.status_code == 200
        assert result.execution_id == "1234"
        assert seen["url"] == "https://n8n.example.com/webhook/run"
        assert seen["body"] == {"action": "run"}

    def test_text_response_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="Workflow was started")

        async def scenario():
            client = N8nWebhookClient(transport=httpx.MockTransport(handler))
            try:
                return await client.trigger("https://n8n.example.com/webhook/run", {})
            finally:
                await client.close()

        result = _run(scenario())
        assert result.body == "Workflow was started"
        assert result.execution_id is None

    def test_error_status_raises_trigger_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "webhook not registered"})

        async def scenario():
            client = N8nWebhookClient(transport=httpx.MockTransport(handler))
            try:
                await client.trigger("https://n8n.example.com/webhook/missing", {})
            finally:
                await client.close()

        with pytest.raises(WebhookTriggerError) as exc_info:
            _run(scenario())
        assert "404" in exc_info.value.message


class TestN8nWebhookRetry:
    """재시도 정책 테스트 (연결 오류/타임아웃만 재시도)."""

    @pytest.fixture(autouse=True)
    def no_retry_wait(self, monkeypatch):
        monkeypatch.setattr(BaseAPIClient._request.retry, "wait", wait_none())

    def _trigger_with(self, handler):
        async def scenario():
            client = N8nWebhookClient(transport=httpx.MockTransport(handler))
            try:
                return await client.trigger("https://n8n.example.com/webhook/run", {})
            finally:
                await client.close()

        return _run(scenario())

    def test_connect_error_retried_three_times(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(WebhookTriggerError) as exc_info:
            self._trigger_with(handler)

        assert len(attempts) == 3
        assert exc_info.value.message == "n8n webhook unreachable (ConnectError)"
        assert exc_info.value.status_code == 502

    def test_recovers_after_timeout(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, json={"executionId": "42"})

        result = self._trigger_with(handler)
        assert len(attempts) == 2
        assert result.execution_id == "42"

    def test_server_error_not_retried(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            return httpx.Response(500, text="internal error")

        with pytest.raises(WebhookTriggerError) as exc_info:
            self._trigger_with(handler)

        assert len(attempts) == 1
        assert "500" in exc_info.value.message
