"""Task timer: start/pause/stop with elapsed time recomputed from stored state.

The running session is never trusted from client memory. Elapsed time is
always ``accumulated_seconds + (now - started_at)``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from ..errors import AlreadyRunning, NotRunning
from ..models.task import Task
from .clock import as_utc, utcnow
from .tasks import get_task

if TYPE_CHECKING:
    from ..context import AppContext

logger = logging.getLogger("lifeos.timer")


@dataclass(slots=True)
class TimerState:
    task_id: int
    is_running: bool
    accumulated_seconds: int
    started_at: Optional[datetime]
    current_session_seconds: int

    @property
    def total_seconds(self) -> int:
        return self.accumulated_seconds + self.current_session_seconds

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["started_at"] = self.started_at.isoformat() if self.started_at else None
        payload["total_seconds"] = self.total_seconds
        return payload


def session_seconds(task: Task, now: datetime) -> int:
    """Whole seconds elapsed in the running session (0 when stopped)."""

    started = as_utc(task.timer_started_at)
    if not task.timer_is_running or started is None:
        return 0
    return max(0, math.floor((now - started).total_seconds()))


def timer_state(task: Task, now: Optional[datetime] = None) -> TimerState:
    now = as_utc(now) or utcnow()
    return TimerState(
        task_id=task.id,  # type: ignore[arg-type]
        is_running=task.timer_is_running,
        accumulated_seconds=task.timer_accumulated_seconds,
        started_at=as_utc(task.timer_started_at),
        current_session_seconds=session_seconds(task, now),
    )


def start_timer(ctx: "AppContext", task_id: int, *, now: Optional[datetime] = None) -> TimerState:
    """Start (or resume) the timer; fails with AlreadyRunning when running."""

    now = as_utc(now) or utcnow()
    task = get_task(ctx, task_id)
    if task.timer_is_running:
        raise AlreadyRunning(f"Timer for task {task_id} is already running")
    task.timer_is_running = True
    task.timer_started_at = now
    task = ctx.task_repo.update(task, user_id=ctx.require_user_id())
    logger.info("Timer started", extra={"task_id": task_id})
    return timer_state(task, now)


def pause_timer(ctx: "AppContext", task_id: int, *, now: Optional[datetime] = None) -> TimerState:
    """Bank the running session into ``accumulated_seconds``."""

    now = as_utc(now) or utcnow()
    task = get_task(ctx, task_id)
    if not task.timer_is_running:
        raise NotRunning(f"Timer for task {task_id} is not running")
    task.timer_accumulated_seconds += session_seconds(task, now)
    task.timer_is_running = False
    task.timer_started_at = None
    task = ctx.task_repo.update(task, user_id=ctx.require_user_id())
    logger.info("Timer paused", extra={"task_id": task_id, "accumulated": task.timer_accumulated_seconds})
    return timer_state(task, now)


def stop_timer(ctx: "AppContext", task_id: int, *, now: Optional[datetime] = None) -> TimerState:
    """Persist the total to ``actual_minutes`` (nearest minute) and reset the timer."""

    now = as_utc(now) or utcnow()
    task = get_task(ctx, task_id)
    total = task.timer_accumulated_seconds + session_seconds(task, now)
    minutes = int(total / 60 + 0.5)
    task.actual_minutes = (task.actual_minutes or 0) + minutes
    task.timer_is_running = False
    task.timer_started_at = None
    task.timer_accumulated_seconds = 0
    task = ctx.task_repo.update(task, user_id=ctx.require_user_id())
    logger.info("Timer stopped", extra={"task_id": task_id, "seconds": total, "minutes_added": minutes})
    return timer_state(task, now)


def get_timer_state(ctx: "AppContext", task_id: int, *, now: Optional[datetime] = None) -> TimerState:
    return timer_state(get_task(ctx, task_id), now)


def get_running_timers(ctx: "AppContext", *, now: Optional[datetime] = None) -> list[TimerState]:
    return [timer_state(t, now) for t in ctx.task_repo.list_running_timers(user_id=ctx.require_user_id())]


__all__ = [
    "TimerState",
    "get_running_timers",
    "get_timer_state",
    "pause_timer",
    "session_seconds",
    "start_timer",
    "stop_timer",
    "timer_state",
]
