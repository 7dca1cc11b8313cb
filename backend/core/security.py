"""세션 검증 및 웹훅 시크릿 검증.

세션은 호스팅 인증 서비스(Supabase)가 발급한 HS256 JWT 액세스 토큰이다.
`Authorization: Bearer <token>` 헤더 또는 세션 쿠키로 전달된다.
"""
import hmac
import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Request

from core.config import get_settings
from core.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass
class CurrentUser:
    id: str
    email: Optional[str] = None
    role: Optional[str] = None


def _strip_bearer(value: str) -> str:
    value = value.strip()
    if value.startswith(BEARER_PREFIX):
        return value[len(BEARER_PREFIX):].strip()
    return value


def decode_session_token(token: str) -> dict:
    """세션 토큰을 검증하고 클레임을 반환."""
    settings = get_settings()
    if not settings.supabase_jwt_secret:
        logger.error("SUPABASE_JWT_SECRET is not configured; rejecting session")
        raise UnauthorizedError("Valid session required")

    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience=settings.supabase_jwt_audience,
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Session expired")
    except jwt.PyJWTError as e:
        logger.debug(f"Session token rejected: {e}")
        raise UnauthorizedError("Valid session required")


def get_current_user(request: Request) -> CurrentUser:
    """현재 세션 사용자 의존성. 세션이 없거나 유효하지 않으면 401."""
    settings = get_settings()
    token = None

    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.startswith(BEARER_PREFIX):
        token = _strip_bearer(auth_header)
    if not token:
        token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise UnauthorizedError("Valid session required")

    claims = decode_session_token(token)
    return CurrentUser(
        id=str(claims["sub"]),
        email=claims.get("email"),
        role=claims.get("role"),
    )


def verify_webhook_secret(request: Request) -> None:
    """n8n 웹훅 공유 시크릿 검증.

    `Authorization: Bearer <secret>`, `Authorization: <secret>`,
    `X-Webhook-Secret: <secret>` 중 하나를 허용한다.
    시크릿이 설정되지 않은 경우 모든 요청을 거부한다.
    """
    expected = get_settings().n8n_webhook_secret
    if not expected:
        logger.error("N8N_WEBHOOK_SECRET is not configured; rejecting webhook")
        raise UnauthorizedError("Invalid or missing Authorization header", reason="secret_not_configured")

    candidates = []
    auth_header = request.headers.get("authorization")
    if auth_header:
        candidates.append(_strip_bearer(auth_header))
    secret_header = request.headers.get("x-webhook-secret")
    if secret_header:
        candidates.append(secret_header.strip())

    for provided in candidates:
        if hmac.compare_digest(provided.encode(), expected.encode()):
            return

    client_host = request.client.host if request.client else "unknown"
    logger.warning(f"Unauthorized webhook attempt on {request.url.path} from {client_host}")
    raise UnauthorizedError("Invalid or missing Authorization header")
