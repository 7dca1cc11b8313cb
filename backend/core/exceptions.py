"""애플리케이션 예외 정의.

모든 예외는 HTTP 상태 코드와 함께 `{"error", "message"}` 형태로 응답된다.
"""
from typing import Any, Optional


class AppError(Exception):
    """기본 애플리케이션 예외."""

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.error
        self.context = context
        super().__init__(self.message)


class UnauthorizedError(AppError):
    status_code = 401
    error = "Unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    error = "Forbidden"


class BadRequestError(AppError):
    status_code = 400
    error = "Bad request"


class WebhookValidationError(BadRequestError):
    """웹훅 본문 검증 실패."""

    error = "Invalid payload format"


class AutomationNotFoundError(AppError):
    status_code = 404
    error = "Automation not found"

    def __init__(self, automation_id: Any):
        self.automation_id = automation_id
        super().__init__(f"Automation not found: {automation_id}", automation_id=str(automation_id))


class ConflictError(AppError):
    """현재 상태에서 수행할 수 없는 액션."""

    status_code = 409
    error = "Conflict"


class WebhookTriggerError(AppError):
    """n8n 웹훅 호출 실패."""

    status_code = 502
    error = "Webhook trigger failed"


class RepositoryError(AppError):
    """DB 작업 실패. 클라이언트에는 상세 내용을 노출하지 않는다."""

    status_code = 500
    error = "Database operation failed"

    def __init__(self, message: str, operation: str, **context: Any):
        self.operation = operation
        super().__init__(message, operation=operation, **context)
