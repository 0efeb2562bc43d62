"""Timestamps as Drive reports them (RFC3339, UTC)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

COMPACT_FORMAT: str = "%Y%m%d%H%M%S"


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def require_aware(dt: datetime) -> datetime:
    """Reject naive datetimes; Drive times are always absolute."""
    if not isinstance(dt, datetime):
        raise TypeError(f"expected a datetime, got {type(dt).__name__}")
    if dt.utcoffset() is None:
        raise ValueError("timezone-aware datetime required")
    return dt


def parse_rfc3339(value: str) -> datetime:
    """
    '2025-01-01T12:34:56.123Z' or '...+09:00' -> aware datetime in UTC.

    Raises:
        ValueError: on an empty or malformed value.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("RFC3339 value must be a non-empty string")

    text = value.strip()
    if text[-1] in "zZ":
        # fromisoformat accepts 'Z' only from 3.11 on.
        text = text[:-1] + "+00:00"
    return require_aware(datetime.fromisoformat(text)).astimezone(timezone.utc)


def parse_optional(value: Any) -> Optional[datetime]:
    """Lenient variant for response fields: None when absent or unparsable."""
    if not isinstance(value, str):
        return None
    try:
        return parse_rfc3339(value)
    except ValueError:
        return None


def to_rfc3339(dt: datetime) -> str:
    """Aware datetime -> 'YYYY-mm-ddTHH:MM:SS.ffffffZ'."""
    utc = require_aware(dt).astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def optional_rfc3339(dt: Optional[datetime]) -> Optional[str]:
    return None if dt is None else to_rfc3339(dt)


def compact_timestamp(dt: Optional[datetime] = None) -> str:
    """YYYYmmddHHMMSS in UTC, used for placeholder names."""
    return (dt or now_utc()).astimezone(timezone.utc).strftime(COMPACT_FORMAT)
