"""UTC 시간 유틸리티.

DB에는 타임존 없는(naive) UTC 값을 저장한다.
모든 모듈에서 datetime.now() 대신 utcnow()를 사용할 것.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """현재 UTC 시간 (naive) 반환."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat_utc(value: datetime) -> str:
    """naive UTC datetime을 'Z' 접미사가 붙은 ISO 문자열로 변환."""
    return value.replace(microsecond=0).isoformat() + "Z"
