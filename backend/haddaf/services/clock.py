from __future__ import annotations
from datetime import datetime, timezone as dt_tz


def utcnow() -> datetime:
    return datetime.now(dt_tz.utc)


def as_utc(dt: datetime) -> datetime:
    """
    Normalize a stored timestamp to an aware UTC datetime.

    SQLite hands back naive values for timezone-aware columns; those are UTC
    by construction (server_default=now()). Aware values are converted.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=dt_tz.utc)
    return dt.astimezone(dt_tz.utc)


def is_past(end_at: datetime, now: datetime | None = None) -> bool:
    now = now or utcnow()
    return as_utc(now) >= as_utc(end_at)
