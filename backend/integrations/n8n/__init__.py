# n8n 워크플로우 웹훅 연동
from integrations.n8n.client import (
    N8nWebhookClient,
    WebhookTriggerResult,
    get_n8n_client,
    close_n8n_client,
)

__all__ = [
    "N8nWebhookClient",
    "WebhookTriggerResult",
    "get_n8n_client",
    "close_n8n_client",
]
