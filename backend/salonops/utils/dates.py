from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes (as returned by SQLite) are taken to be UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iso(dt: Optional[datetime]) -> Optional[str]:
    dt = as_utc(dt)
    return dt.isoformat().replace('+00:00', 'Z') if dt else None


def parse_datetime(value: Any) -> Optional[datetime]:
    """Accept ISO 8601 (with optional Z) or plain YYYY-MM-DD; None when unparseable."""
    if not value:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str):
        return None
    try:
        return as_utc(datetime.fromisoformat(value.replace('Z', '+00:00')))
    except ValueError:
        pass
    for fmt in ('%Y-%m-%d', '%Y-%m-%dT%H:%M:%S'):
        try:
            return as_utc(datetime.strptime(value, fmt))
        except ValueError:
            continue
    return None
