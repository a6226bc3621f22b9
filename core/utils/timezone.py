"""
타임존 유틸리티

내부 저장: UTC ISO 8601 문자열 (마이크로초 포함, 고정 폭)
고정 폭이어야 SQLite의 문자열 비교가 시간 순서와 일치함.
"""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """UTC aware datetime으로 변환 (naive는 UTC로 간주)"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso(dt: datetime) -> str:
    """datetime을 저장용 ISO 문자열로 변환

    naive datetime은 UTC로 간주.

    Example:
        >>> to_iso(datetime(2026, 2, 20, 16, 0, 0, tzinfo=timezone.utc))
        '2026-02-20T16:00:00.000000+00:00'
    """
    return ensure_utc(dt).isoformat(timespec="microseconds")


def parse_iso(value: str) -> datetime:
    """저장된 ISO 문자열 → UTC datetime"""
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_iso_or_none(value: str | None) -> datetime | None:
    return parse_iso(value) if value else None
