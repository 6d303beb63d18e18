"""Recurrence rules: structured config to RRULE, and date matching.

Rules are RFC 5545 ``RRULE`` bodies (``FREQ=WEEKLY;BYDAY=MO,WE``) evaluated
with :mod:`dateutil.rrule`. Every rule is anchored at the template's creation
date, so nothing ever matches before the template existed.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from functools import lru_cache
from typing import Any, Mapping, Optional

from dateutil.rrule import rrule, rrulestr

# Index 0 is Sunday, matching the daysOfWeek convention of recurrence_config.
WEEKDAY_CODES = ("SU", "MO", "TU", "WE", "TH", "FR", "SA")
WORKDAYS = ("MO", "TU", "WE", "TH", "FR")
RECURRENCE_TYPES = ("daily", "weekly", "monthly", "custom")


def build_rrule(config: Optional[Mapping[str, Any]]) -> str:
    """Translate a ``recurrence_config`` mapping into an RRULE body.

    >>> build_rrule({"type": "weekly", "daysOfWeek": [1, 3]})
    'FREQ=WEEKLY;BYDAY=MO,WE'
    """

    config = config or {}
    kind = config.get("type") or "daily"
    if kind not in RECURRENCE_TYPES:
        raise ValueError(f"Unknown recurrence type: {kind}")
    interval = int(config.get("interval") or 1)
    if interval < 1:
        raise ValueError("Recurrence interval must be at least 1.")

    parts: list[str]
    if kind == "weekly":
        parts = ["FREQ=WEEKLY"]
        days = sorted({int(d) for d in config.get("daysOfWeek") or []})
        if any(d < 0 or d > 6 for d in days):
            raise ValueError("daysOfWeek values must be between 0 (Sunday) and 6.")
        if days:
            parts.append("BYDAY=" + ",".join(WEEKDAY_CODES[d] for d in days))
    elif kind == "monthly":
        parts = ["FREQ=MONTHLY"]
        days = sorted({int(d) for d in config.get("daysOfMonth") or []})
        if any(d < 1 or d > 31 for d in days):
            raise ValueError("daysOfMonth values must be between 1 and 31.")
        if days:
            parts.append("BYMONTHDAY=" + ",".join(str(d) for d in days))
    else:
        parts = ["FREQ=DAILY"]
        if config.get("excludeWeekends"):
            parts.append("BYDAY=" + ",".join(WORKDAYS))
    if interval > 1:
        parts.append(f"INTERVAL={interval}")
    return ";".join(parts)


def _strip_prefix(rule: str) -> str:
    rule = rule.strip()
    if rule.upper().startswith("RRULE:"):
        return rule[len("RRULE:"):]
    return rule


@lru_cache(maxsize=512)
def _compile(rule: str, anchor: date) -> rrule:
    dtstart = datetime.combine(anchor, time.min)
    return rrulestr(_strip_prefix(rule), dtstart=dtstart)


def validate_rule(rule: str) -> str:
    """Return the normalized rule or raise ValueError when it does not parse."""

    normalized = _strip_prefix(rule)
    if not normalized:
        raise ValueError("Recurrence rule is empty.")
    try:
        _compile(normalized, date(2000, 1, 1))
    except (ValueError, TypeError) as exc:
        raise ValueError(f"Invalid recurrence rule: {rule!r}") from exc
    return normalized


def matches_date(rule: str, on: date, *, anchor: date) -> bool:
    """True when ``rule`` (anchored at ``anchor``) has an occurrence on ``on``."""

    if on < anchor:
        return False
    target = datetime.combine(on, time.min)
    occurrence = _compile(rule, anchor).after(target, inc=True)
    return occurrence is not None and occurrence.date() == on


def occurrences_between(rule: str, start: date, end: date, *, anchor: date) -> list[date]:
    """All matching dates within [start, end], inclusive."""

    if end < start:
        return []
    start = max(start, anchor)
    window_start = datetime.combine(start, time.min)
    window_end = datetime.combine(end, time.min) + timedelta(days=1) - timedelta(microseconds=1)
    return [dt.date() for dt in _compile(rule, anchor).between(window_start, window_end, inc=True)]


__all__ = [
    "RECURRENCE_TYPES",
    "build_rrule",
    "matches_date",
    "occurrences_between",
    "validate_rule",
]
