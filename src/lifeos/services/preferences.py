"""User planning preferences and their translation into allocator settings."""

from __future__ import annotations

from datetime import time
from typing import TYPE_CHECKING, Any, Mapping, Optional

from ..forms import PlanPreferences, PreferencesForm
from ..models.preferences import UserPreferences, default_time_blocks
from .allocator import AllocatorSettings, TimeWindow, to_minutes

if TYPE_CHECKING:
    from ..context import AppContext


def get_preferences(ctx: "AppContext") -> UserPreferences:
    """Stored preferences, or an unsaved defaults row."""

    uid = ctx.require_user_id()
    stored = ctx.preferences_repo.get(user_id=uid)
    if stored is not None:
        return stored
    return UserPreferences(user_id=uid, time_blocks=default_time_blocks())


def update_preferences(ctx: "AppContext", changes: Mapping[str, Any]) -> UserPreferences:
    """Validate and persist a partial preferences update."""

    uid = ctx.require_user_id()
    current = get_preferences(ctx)
    merged = {
        "time_blocks": current.time_blocks,
        "auto_position_routines": current.auto_position_routines,
        "auto_position_tasks": current.auto_position_tasks,
        "week_starts_on": current.week_starts_on,
        "routine_generation_horizon_days": current.routine_generation_horizon_days,
        **dict(changes),
    }
    form = PreferencesForm.model_validate(merged)
    row = UserPreferences(
        user_id=uid,
        time_blocks=form.blocks_for_storage(),
        auto_position_routines=form.auto_position_routines,
        auto_position_tasks=form.auto_position_tasks,
        week_starts_on=form.week_starts_on,
        routine_generation_horizon_days=form.routine_generation_horizon_days,
    )
    return ctx.preferences_repo.upsert(row, user_id=uid)


def _window(raw: Mapping[str, str]) -> TimeWindow:
    return TimeWindow(to_minutes(time.fromisoformat(raw["start"])), to_minutes(time.fromisoformat(raw["end"])))


def build_allocator_settings(
    prefs: UserPreferences, day: Optional[PlanPreferences] = None
) -> AllocatorSettings:
    """Combine persisted blocks and per-call day bounds into allocator input."""

    day = day or PlanPreferences()
    blocks = {name: _window(window) for name, window in (prefs.time_blocks or default_time_blocks()).items()}
    bounds = TimeWindow(to_minutes(day.wake_time), to_minutes(day.sleep_time))
    lunch = None
    if day.lunch_break_start is not None and day.lunch_break_duration > 0:
        start = to_minutes(day.lunch_break_start)
        lunch = TimeWindow(start, start + day.lunch_break_duration).clip(bounds)
    return AllocatorSettings(
        day=bounds,
        blocks=blocks,
        lunch=lunch,
        auto_position_routines=prefs.auto_position_routines,
        auto_position_tasks=prefs.auto_position_tasks,
    )


__all__ = ["build_allocator_settings", "get_preferences", "update_preferences"]
