"""n8n 웹훅 클라이언트.

자동화별로 등록된 run/stop 웹훅 URL을 호출한다.
n8n은 JSON 또는 텍스트로 응답하므로 본문 파싱은 선택적으로 처리한다.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from core.config import get_settings
from core.exceptions import WebhookTriggerError
from integrations.base_client import BaseAPIClient

logger = logging.getLogger(__name__)


@dataclass
class WebhookTriggerResult:
    status_code: int
    execution_id: Optional[str] = None
    body: Any = None


def _extract_execution_id(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    for key in ("executionId", "execution_id", "id"):
        value = body.get(key)
        if value is not None:
            return str(value)
    data = body.get("data")
    if isinstance(data, dict):
        return _extract_execution_id(data)
    return None


class N8nWebhookClient(BaseAPIClient):
    """n8n 웹훅 트리거 클라이언트."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        settings = get_settings()
        super().__init__(
            base_url=settings.n8n_base_url,
            rate_limit=settings.n8n_rate_limit_per_second,
            timeout=settings.n8n_webhook_timeout_seconds,
            transport=transport,
        )

    def get_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "User-Agent": "communitee-control-hub/1.0",
        }

    async def trigger(self, url: str, payload: dict) -> WebhookTriggerResult:
        """웹훅 호출. 실패 시 WebhookTriggerError."""
        try:
            response = await self.post(url, json_data=payload)
        except httpx.HTTPStatusError as e:
            raise WebhookTriggerError(
                f"n8n webhook responded with status {e.response.status_code}",
                url=url,
            )
        except httpx.RequestError as e:
            raise WebhookTriggerError(
                f"n8n webhook unreachable ({e.__class__.__name__})",
                url=url,
            )

        body: Any = None
        if response.content:
            try:
                body = response.json()
            except ValueError:
                body = response.text

        result = WebhookTriggerResult(
            status_code=response.status_code,
            execution_id=_extract_execution_id(body),
            body=body,
        )
        logger.info(f"n8n webhook triggered: {url} -> {response.status_code} (execution={result.execution_id})")
        return result


# 싱글톤 인스턴스
_n8n_client: Optional[N8nWebhookClient] = None


def get_n8n_client() -> N8nWebhookClient:
    """n8n 웹훅 클라이언트 싱글톤 반환."""
    global _n8n_client
    if _n8n_client is None:
        _n8n_client = N8nWebhookClient()
    return _n8n_client


async def close_n8n_client() -> None:
    global _n8n_client
    if _n8n_client is not None:
        await _n8n_client.close()
        _n8n_client = None
