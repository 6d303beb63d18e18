"""Read-only rollups over routine instances, tasks and streaks.

Nothing here is cached; each call recomputes from the stored rows.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import TYPE_CHECKING, Any, Optional

from ..models.routine import InstanceStatus, RoutineInstance
from ..models.task import Task, TaskStatus
from .clock import local_date

if TYPE_CHECKING:
    from ..context import AppContext

NO_DOMAIN_KEY = "none"
NO_DOMAIN_NAME = "No domain"
NO_DOMAIN_COLOR = "#888888"


@dataclass
class DomainStats:
    domain_id: Optional[int]
    domain_name: str
    domain_color: str
    routines_completed: int = 0
    routines_total: int = 0
    tasks_completed: int = 0
    time_minutes: int = 0


@dataclass
class DayStats:
    date: date
    day_name: str
    routines_completed: int = 0
    routines_total: int = 0
    tasks_completed: int = 0
    time_minutes: int = 0

    @property
    def activity(self) -> int:
        """Heat value: completed instances plus done tasks."""
        return self.routines_completed + self.tasks_completed


@dataclass
class WeeklyStats:
    week_start: date
    routine_completion_rate: int = 0
    tasks_completed: int = 0
    total_time_minutes: int = 0
    by_domain: list[DomainStats] = field(default_factory=list)
    by_day: list[DayStats] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["week_start"] = self.week_start.isoformat()
        for day, raw in zip(self.by_day, payload["by_day"]):
            raw["date"] = day.date.isoformat()
            raw["activity"] = day.activity
        return payload


@dataclass
class OverviewStats:
    total_routines: int
    total_tasks: int
    total_projects: int
    weekly_completion_rate: int
    longest_streak: int
    current_best_streak: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def completion_percentage(instances: list[RoutineInstance]) -> int:
    """Completed share of ``instances`` as a rounded percentage (0 when empty)."""

    if not instances:
        return 0
    completed = sum(1 for inst in instances if inst.status == InstanceStatus.COMPLETED.value)
    return round(completed / len(instances) * 100)


def week_start_for(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def _day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    return (
        datetime.combine(start, time.min, tzinfo=timezone.utc),
        datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc),
    )


def _completed_on(task: Task) -> Optional[date]:
    return task.completed_at.date() if task.completed_at else None


def weekly_completion_rate(ctx: "AppContext", *, today: Optional[date] = None) -> int:
    """Completion rate over the 7 days ending ``today``."""

    today = today or local_date()
    instances = ctx.routine_repo.list_instances_between(
        today - timedelta(days=6), today, user_id=ctx.require_user_id()
    )
    return completion_percentage(instances)


def get_weekly_stats(ctx: "AppContext", week_start: Optional[date] = None) -> WeeklyStats:
    """Monday-based week rollup broken down by domain and by day."""

    uid = ctx.require_user_id()
    start = week_start_for(week_start or local_date())
    end = start + timedelta(days=6)
    instances = ctx.routine_repo.list_instances_between(start, end, user_id=uid)
    tasks = [
        t
        for t in ctx.task_repo.list_completed_between(*_day_bounds(start, end), user_id=uid)
        if t.status == TaskStatus.DONE.value
    ]
    templates = {t.id: t for t in ctx.routine_repo.list_templates(user_id=uid, include_inactive=True)}
    domains = {d.id: d for d in ctx.domain_repo.list_all(user_id=uid)}

    by_domain: dict[Any, DomainStats] = {}

    def _bucket(domain_id: Optional[int]) -> DomainStats:
        key = domain_id if domain_id in domains else NO_DOMAIN_KEY
        if key not in by_domain:
            domain = domains.get(domain_id)
            by_domain[key] = DomainStats(
                domain_id=domain.id if domain else None,
                domain_name=domain.name if domain else NO_DOMAIN_NAME,
                domain_color=domain.color if domain else NO_DOMAIN_COLOR,
            )
        return by_domain[key]

    by_day = {
        start + timedelta(days=i): DayStats(
            date=start + timedelta(days=i), day_name=(start + timedelta(days=i)).strftime("%A")
        )
        for i in range(7)
    }

    for inst in instances:
        template = templates.get(inst.template_id)
        bucket = _bucket(template.domain_id if template else None)
        day = by_day[inst.scheduled_date]
        minutes = inst.duration_minutes
        done = inst.status == InstanceStatus.COMPLETED.value
        for stats in (bucket, day):
            stats.routines_total += 1
            stats.routines_completed += int(done)
            stats.time_minutes += minutes

    for task in tasks:
        bucket = _bucket(task.domain_id)
        bucket.tasks_completed += 1
        bucket.time_minutes += task.actual_minutes or 0
        day_key = _completed_on(task)
        if day_key in by_day:
            by_day[day_key].tasks_completed += 1
            by_day[day_key].time_minutes += task.actual_minutes or 0

    return WeeklyStats(
        week_start=start,
        routine_completion_rate=completion_percentage(instances),
        tasks_completed=len(tasks),
        total_time_minutes=sum(d.time_minutes for d in by_day.values()),
        by_domain=sorted(by_domain.values(), key=lambda s: (-s.time_minutes, s.domain_name)),
        by_day=list(by_day.values()),
    )


def get_activity_heat(ctx: "AppContext", *, days: int = 28, today: Optional[date] = None) -> dict[date, int]:
    """Completed instances plus done tasks for each of the last ``days`` days."""

    uid = ctx.require_user_id()
    today = today or local_date()
    start = today - timedelta(days=days - 1)
    heat = {start + timedelta(days=i): 0 for i in range(days)}
    for inst in ctx.routine_repo.list_instances_between(start, today, user_id=uid):
        if inst.status == InstanceStatus.COMPLETED.value:
            heat[inst.scheduled_date] += 1
    for task in ctx.task_repo.list_completed_between(*_day_bounds(start, today), user_id=uid):
        day = _completed_on(task)
        if task.status == TaskStatus.DONE.value and day in heat:
            heat[day] += 1
    return heat


def get_overview_stats(ctx: "AppContext", *, today: Optional[date] = None) -> OverviewStats:
    uid = ctx.require_user_id()
    streaks = ctx.streak_repo.list_all(user_id=uid)
    return OverviewStats(
        total_routines=len(ctx.routine_repo.list_templates(user_id=uid, include_inactive=True)),
        total_tasks=len(ctx.task_repo.search(user_id=uid)),
        total_projects=len(ctx.project_repo.list_all(user_id=uid)),
        weekly_completion_rate=weekly_completion_rate(ctx, today=today),
        longest_streak=max((s.longest_streak for s in streaks), default=0),
        current_best_streak=max((s.current_streak for s in streaks), default=0),
    )


__all__ = [
    "DayStats",
    "DomainStats",
    "OverviewStats",
    "WeeklyStats",
    "completion_percentage",
    "get_activity_heat",
    "get_overview_stats",
    "get_weekly_stats",
    "week_start_for",
    "weekly_completion_rate",
]
