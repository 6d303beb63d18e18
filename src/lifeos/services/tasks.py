"""Task CRUD and the task status state machine."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any, Mapping, Optional

from ..errors import InvalidState, NotFound, ValidationError
from ..forms import TaskForm
from ..models.task import Task, TaskStatus
from .clock import as_utc, local_date, utcnow

if TYPE_CHECKING:
    from ..context import AppContext

logger = logging.getLogger("lifeos.tasks")

_S = TaskStatus
TRANSITIONS: dict[str, frozenset[str]] = {
    _S.BACKLOG.value: frozenset({_S.TODO.value, _S.CANCELLED.value, _S.ARCHIVED.value}),
    _S.TODO.value: frozenset(
        {_S.IN_PROGRESS.value, _S.BLOCKED.value, _S.BACKLOG.value, _S.CANCELLED.value, _S.ARCHIVED.value}
    ),
    _S.IN_PROGRESS.value: frozenset(
        {_S.DONE.value, _S.BLOCKED.value, _S.TODO.value, _S.CANCELLED.value, _S.ARCHIVED.value}
    ),
    _S.BLOCKED.value: frozenset({_S.TODO.value, _S.IN_PROGRESS.value, _S.CANCELLED.value, _S.ARCHIVED.value}),
    _S.DONE.value: frozenset({_S.ARCHIVED.value, _S.TODO.value, _S.CANCELLED.value}),
    _S.CANCELLED.value: frozenset({_S.ARCHIVED.value, _S.TODO.value}),
    _S.ARCHIVED.value: frozenset(),
}
OPEN_STATUSES = frozenset({_S.BACKLOG.value, _S.TODO.value, _S.IN_PROGRESS.value, _S.BLOCKED.value})
PLANNABLE_STATUSES = (_S.TODO.value, _S.IN_PROGRESS.value)


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def check_transition(current: str, target: str) -> None:
    """Raise InvalidState unless ``current -> target`` is allowed."""

    if target not in TRANSITIONS:
        raise ValidationError(f"Unknown task status: {target}")
    if not can_transition(current, target):
        raise InvalidState(
            f"Cannot move task from {current} to {target}",
            details={"from": current, "to": target, "allowed": sorted(TRANSITIONS.get(current, ()))},
        )


@dataclass
class TaskFilters:
    """Filters applied to task listings."""

    statuses: Optional[list[str]] = None
    domain_id: Optional[int] = None
    project_id: Optional[int] = None
    due_on: Optional[date] = None
    text: Optional[str] = None


@dataclass
class TaskStats:
    total: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    overdue: int = 0
    due_today: int = 0
    due_this_week: int = 0


def list_tasks(ctx: "AppContext", filters: Optional[TaskFilters] = None) -> list[Task]:
    filters = filters or TaskFilters()
    return ctx.task_repo.search(
        user_id=ctx.require_user_id(),
        statuses=filters.statuses,
        domain_id=filters.domain_id,
        project_id=filters.project_id,
        due_on=filters.due_on,
        text=filters.text,
    )


def get_task(ctx: "AppContext", task_id: int) -> Task:
    task = ctx.task_repo.get_by_id(task_id, user_id=ctx.require_user_id())
    if task is None:
        raise NotFound(f"Task {task_id} not found")
    return task


def _check_references(ctx: "AppContext", form: TaskForm, task_id: Optional[int] = None) -> None:
    uid = ctx.require_user_id()
    if form.domain_id is not None and ctx.domain_repo.get_by_id(form.domain_id, user_id=uid) is None:
        raise NotFound(f"Domain {form.domain_id} not found")
    if form.project_id is not None and ctx.project_repo.get_by_id(form.project_id, user_id=uid) is None:
        raise NotFound(f"Project {form.project_id} not found")
    if form.parent_task_id is not None:
        if task_id is not None and form.parent_task_id == task_id:
            raise ValidationError("A task cannot be its own parent")
        if ctx.task_repo.get_by_id(form.parent_task_id, user_id=uid) is None:
            raise NotFound(f"Parent task {form.parent_task_id} not found")


def create_task(ctx: "AppContext", payload: Mapping[str, Any], *, now: Optional[datetime] = None) -> Task:
    """Validate and create a task (``todo`` unless another status is given)."""

    uid = ctx.require_user_id()
    form = TaskForm.model_validate(payload)
    _check_references(ctx, form)
    data = form.model_dump()
    data["priority"] = form.priority.value
    data["status"] = form.status.value
    task = Task(user_id=uid, **data)
    if task.status == _S.DONE.value:
        task.completed_at = as_utc(now) or utcnow()
    created = ctx.task_repo.create(task, user_id=uid)
    logger.info("Task created", extra={"task_id": created.id, "status": created.status})
    return created


def update_task(
    ctx: "AppContext", task_id: int, changes: Mapping[str, Any], *, now: Optional[datetime] = None
) -> Task:
    """Apply field edits; a status change goes through the transition table."""

    uid = ctx.require_user_id()
    task = get_task(ctx, task_id)
    current = task.model_dump(include=set(TaskForm.model_fields))
    form = TaskForm.model_validate({**current, **changes})
    _check_references(ctx, form, task_id)
    if form.status.value != task.status:
        check_transition(task.status, form.status.value)
        _apply_status(task, form.status.value, now)
    for key, value in form.model_dump(exclude={"status"}).items():
        setattr(task, key, value)
    task.priority = form.priority.value
    return ctx.task_repo.update(task, user_id=uid)


def _apply_status(task: Task, target: str, now: Optional[datetime]) -> None:
    if target == _S.DONE.value:
        task.completed_at = as_utc(now) or utcnow()
    elif task.status == _S.DONE.value:
        task.completed_at = None
    task.status = target


def update_task_status(
    ctx: "AppContext", task_id: int, status: str, *, now: Optional[datetime] = None
) -> Task:
    """Move a task to ``status``; ``done`` stamps completed_at, reopening clears it."""

    uid = ctx.require_user_id()
    task = get_task(ctx, task_id)
    if status == task.status:
        return task
    check_transition(task.status, status)
    previous = task.status
    _apply_status(task, status, now)
    updated = ctx.task_repo.update(task, user_id=uid)
    logger.info("Task status changed", extra={"task_id": task_id, "from": previous, "to": status})
    return updated


def delete_task(ctx: "AppContext", task_id: int) -> Task:
    task = get_task(ctx, task_id)
    ctx.task_repo.delete(task_id, user_id=ctx.require_user_id())
    logger.info("Task deleted", extra={"task_id": task_id})
    return task


def add_time(ctx: "AppContext", task_id: int, minutes: int) -> Task:
    """Add manually logged minutes to ``actual_minutes``."""

    if minutes <= 0:
        raise ValidationError("minutes must be positive")
    task = get_task(ctx, task_id)
    task.actual_minutes = (task.actual_minutes or 0) + minutes
    return ctx.task_repo.update(task, user_id=ctx.require_user_id())


def get_overdue_tasks(ctx: "AppContext", *, today: Optional[date] = None) -> list[Task]:
    """Open tasks whose due date is before ``today``, oldest first."""

    today = today or local_date()
    tasks = [
        t
        for t in list_tasks(ctx, TaskFilters(statuses=sorted(OPEN_STATUSES)))
        if t.due_date is not None and t.due_date < today
    ]
    return sorted(tasks, key=lambda t: (t.due_date, t.id))


def get_task_stats(ctx: "AppContext", *, today: Optional[date] = None) -> TaskStats:
    """Counts of open tasks by status and by due-date bucket."""

    today = today or local_date()
    end_of_week = today + timedelta(days=6 - today.weekday())
    stats = TaskStats(by_status={status: 0 for status in sorted(OPEN_STATUSES)})
    for task in list_tasks(ctx, TaskFilters(statuses=sorted(OPEN_STATUSES))):
        stats.total += 1
        stats.by_status[task.status] = stats.by_status.get(task.status, 0) + 1
        if task.due_date is None:
            continue
        if task.due_date < today:
            stats.overdue += 1
        elif task.due_date == today:
            stats.due_today += 1
        elif task.due_date <= end_of_week:
            stats.due_this_week += 1
    return stats


__all__ = [
    "OPEN_STATUSES",
    "PLANNABLE_STATUSES",
    "TRANSITIONS",
    "TaskFilters",
    "TaskStats",
    "add_time",
    "can_transition",
    "check_transition",
    "create_task",
    "delete_task",
    "get_overdue_tasks",
    "get_task",
    "get_task_stats",
    "list_tasks",
    "update_task",
    "update_task_status",
]
