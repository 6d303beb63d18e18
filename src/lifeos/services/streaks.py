"""Streak tracking for routine templates."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING, Optional

from ..models.routine import InstanceStatus, Streak

if TYPE_CHECKING:
    from ..context import AppContext

logger = logging.getLogger("lifeos.streaks")

COUNTED_STATUSES = {InstanceStatus.COMPLETED.value, InstanceStatus.PARTIAL.value}


@dataclass(slots=True)
class StreakState:
    """Counters for one template, detached from storage."""

    current: int = 0
    longest: int = 0
    last_completed: Optional[date] = None


def advance_streak(state: StreakState, completed_on: date) -> StreakState:
    """Apply a completion (or partial) on ``completed_on``.

    Consecutive days extend the run, the same day is a no-op, and any gap
    restarts at 1. Completions older than ``last_completed`` leave the
    counters alone.
    """

    last = state.last_completed
    if last == completed_on:
        return state
    if last is not None and completed_on < last:
        return state
    if last is not None and completed_on - last == timedelta(days=1):
        current = state.current + 1
    else:
        current = 1
    return StreakState(current=current, longest=max(state.longest, current), last_completed=completed_on)


def break_streak(state: StreakState) -> StreakState:
    """A skip resets the current run; the longest run is kept."""

    return StreakState(current=0, longest=state.longest, last_completed=state.last_completed)


def _load(ctx: "AppContext", template_id: int, user_id: int) -> StreakState:
    row = ctx.streak_repo.get(template_id, user_id=user_id)
    if row is None:
        return StreakState()
    return StreakState(
        current=row.current_streak,
        longest=row.longest_streak,
        last_completed=row.last_completed_date,
    )


def _store(ctx: "AppContext", template_id: int, user_id: int, state: StreakState) -> Streak:
    return ctx.streak_repo.save(
        Streak(
            user_id=user_id,
            template_id=template_id,
            current_streak=state.current,
            longest_streak=state.longest,
            last_completed_date=state.last_completed,
        ),
        user_id=user_id,
    )


def record_completion(ctx: "AppContext", template_id: int, completed_on: date) -> Streak:
    """Advance the streak after a completed or partial instance."""

    uid = ctx.require_user_id()
    state = advance_streak(_load(ctx, template_id, uid), completed_on)
    streak = _store(ctx, template_id, uid, state)
    logger.info(
        "Streak advanced",
        extra={"template_id": template_id, "current": streak.current_streak, "longest": streak.longest_streak},
    )
    return streak


def record_skip(ctx: "AppContext", template_id: int) -> Streak:
    """Reset the current streak after a skipped instance."""

    uid = ctx.require_user_id()
    streak = _store(ctx, template_id, uid, break_streak(_load(ctx, template_id, uid)))
    logger.info("Streak reset", extra={"template_id": template_id})
    return streak


def get_streaks(ctx: "AppContext") -> list[Streak]:
    return ctx.streak_repo.list_all(user_id=ctx.require_user_id())


def get_top_streaks(ctx: "AppContext", limit: int = 5) -> list[Streak]:
    """Streaks with a running count, longest first."""

    return [s for s in get_streaks(ctx) if s.current_streak > 0][:limit]


def completion_rate(
    ctx: "AppContext", template_id: int, *, days: int = 30, today: Optional[date] = None
) -> int:
    """Percentage of a template's instances in the last ``days`` that counted."""

    today = today or date.today()
    since = today - timedelta(days=days - 1)
    uid = ctx.require_user_id()
    instances = [
        inst
        for inst in ctx.routine_repo.list_instances_between(since, today, user_id=uid)
        if inst.template_id == template_id
    ]
    if not instances:
        return 0
    counted = sum(1 for inst in instances if inst.status in COUNTED_STATUSES)
    return round(counted / len(instances) * 100)


__all__ = [
    "StreakState",
    "advance_streak",
    "break_streak",
    "completion_rate",
    "get_streaks",
    "get_top_streaks",
    "record_completion",
    "record_skip",
]
