from .automation_service import AutomationService
from .webhook_service import WebhookService
from .stats_service import StatsService
from .client_service import ClientService
from .profile_service import ProfileService

__all__ = [
    "AutomationService",
    "WebhookService",
    "StatsService",
    "ClientService",
    "ProfileService",
]
