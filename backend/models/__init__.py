from .client import Client
from .automation import Automation, AutomationStatus, RunStatus, FAILED_RUN_STATUSES
from .automation_run import AutomationRun
from .automation_telemetry import AutomationTelemetry
from .profile import Profile
from .event_log import EventLog

__all__ = [
    "Client",
    "Automation",
    "AutomationStatus",
    "RunStatus",
    "FAILED_RUN_STATUSES",
    "AutomationRun",
    "AutomationTelemetry",
    "Profile",
    "EventLog",
]
