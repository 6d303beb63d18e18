"""Time helpers; SQLite hands datetimes back without tzinfo."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from the database."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_date(now: Optional[datetime] = None) -> date:
    """Calendar date of ``now`` (default: the current instant) in local time."""

    return (as_utc(now) or utcnow()).astimezone().date()


__all__ = ["as_utc", "local_date", "utcnow"]
