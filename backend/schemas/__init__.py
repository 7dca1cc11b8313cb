from .automation import (
    AutomationResponse,
    AutomationRunResponse,
    AutomationMetrics,
    AutomationStats,
    ActionResult,
    ActionResponse,
    BulkActionRequest,
    BulkActionItemResult,
    BulkActionSummary,
    BulkActionResponse,
)
from .webhook import (
    WebhookPayload,
    WebhookSuccessResponse,
    TelemetryPayload,
    TelemetryResult,
    TelemetrySuccessResponse,
)
from .client import ClientResponse
from .profile import (
    ProfileUpdate,
    ProfileResponse,
    ProfileEnvelope,
    ProfileUpdateResponse,
    SessionUser,
)

__all__ = [
    "AutomationResponse",
    "AutomationRunResponse",
    "AutomationMetrics",
    "AutomationStats",
    "ActionResult",
    "ActionResponse",
    "BulkActionRequest",
    "BulkActionItemResult",
    "BulkActionSummary",
    "BulkActionResponse",
    "WebhookPayload",
    "WebhookSuccessResponse",
    "TelemetryPayload",
    "TelemetryResult",
    "TelemetrySuccessResponse",
    "ClientResponse",
    "ProfileUpdate",
    "ProfileResponse",
    "ProfileEnvelope",
    "ProfileUpdateResponse",
    "SessionUser",
]
