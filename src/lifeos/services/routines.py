"""Routine templates, recurrence expansion and the instance state machine."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any, Mapping, Optional

from ..errors import InvalidState, NotFound, ValidationError
from ..forms import AmendForm, CompletionForm, RoutineTemplateForm, SkipForm
from ..models.routine import InstanceStatus, RoutineInstance, RoutineInstanceTask, RoutineTemplate
from . import streaks
from .clock import as_utc, local_date, utcnow
from .recurrence import build_rrule, matches_date

if TYPE_CHECKING:
    from ..context import AppContext

logger = logging.getLogger("lifeos.routines")

MISSED_REASON = "Automatically marked as missed"

_TEMPLATE_FIELDS = (
    "name",
    "description",
    "domain_id",
    "category_moment",
    "category_type",
    "priority",
    "is_flexible",
    "is_active",
    "constraints",
    "recurrence_config",
    "recurrence_rule",
)


def compute_completion_score(actual_value: Optional[float], target: Optional[float]) -> int:
    """100 when nothing measurable was tracked, else the capped percentage of target."""

    if actual_value is None or not target:
        return 100
    return min(100, round(actual_value / target * 100))


# Templates
def list_templates(ctx: "AppContext", *, include_inactive: bool = False) -> list[RoutineTemplate]:
    return ctx.routine_repo.list_templates(user_id=ctx.require_user_id(), include_inactive=include_inactive)


def get_template(ctx: "AppContext", template_id: int) -> RoutineTemplate:
    template = ctx.routine_repo.get_template(template_id, user_id=ctx.require_user_id())
    if template is None:
        raise NotFound(f"Routine template {template_id} not found")
    return template


def _check_domain(ctx: "AppContext", domain_id: Optional[int]) -> None:
    if domain_id is not None and ctx.domain_repo.get_by_id(domain_id, user_id=ctx.require_user_id()) is None:
        raise NotFound(f"Domain {domain_id} not found")


def _apply_form(template: RoutineTemplate, form: RoutineTemplateForm) -> RoutineTemplate:
    recurrence_config = form.recurrence_config.to_storage()
    template.name = form.name
    template.description = form.description
    template.domain_id = form.domain_id
    template.category_moment = form.category_moment.value if form.category_moment else None
    template.category_type = form.category_type.value if form.category_type else None
    template.priority = form.priority.value
    template.is_flexible = form.is_flexible
    template.is_active = form.is_active
    template.constraints = form.constraints.to_storage()
    template.recurrence_config = recurrence_config
    template.recurrence_rule = form.recurrence_rule or build_rrule(recurrence_config)
    return template


def create_template(ctx: "AppContext", payload: Mapping[str, Any]) -> RoutineTemplate:
    """Validate and create a template; the RRULE is derived from the config when omitted."""

    uid = ctx.require_user_id()
    form = RoutineTemplateForm.model_validate(payload)
    _check_domain(ctx, form.domain_id)
    template = _apply_form(RoutineTemplate(user_id=uid, name=form.name), form)
    created = ctx.routine_repo.create_template(template, user_id=uid)
    logger.info("Routine template created", extra={"template_id": created.id, "rule": created.recurrence_rule})
    return created


def update_template(ctx: "AppContext", template_id: int, changes: Mapping[str, Any]) -> RoutineTemplate:
    uid = ctx.require_user_id()
    template = get_template(ctx, template_id)
    current = {name: getattr(template, name) for name in _TEMPLATE_FIELDS}
    if "recurrence_config" in changes and "recurrence_rule" not in changes:
        current["recurrence_rule"] = None
    form = RoutineTemplateForm.model_validate({**current, **changes})
    _check_domain(ctx, form.domain_id)
    return ctx.routine_repo.update_template(_apply_form(template, form), user_id=uid)


def delete_template(ctx: "AppContext", template_id: int) -> bool:
    """Delete a template, or deactivate it when instances exist.

    Returns True when the template was soft-deactivated.
    """

    uid = ctx.require_user_id()
    template = get_template(ctx, template_id)
    if ctx.routine_repo.count_instances(template_id, user_id=uid):
        template.is_active = False
        ctx.routine_repo.update_template(template, user_id=uid)
        logger.info("Routine template deactivated", extra={"template_id": template_id})
        return True
    ctx.routine_repo.delete_template(template_id, user_id=uid)
    return False


# Expansion
def _expand(ctx: "AppContext", on: date) -> tuple[list[RoutineInstance], int]:
    uid = ctx.require_user_id()
    created = 0
    for template in ctx.routine_repo.list_templates(user_id=uid):
        anchor = template.created_at.date()
        if not matches_date(template.recurrence_rule, on, anchor=anchor):
            continue
        _, was_created = ctx.routine_repo.ensure_instance(template, on, user_id=uid)
        created += int(was_created)
    return ctx.routine_repo.list_instances_for_date(on, user_id=uid), created


def expand_for_date(ctx: "AppContext", on: date) -> list[RoutineInstance]:
    """Create pending instances for every active template matching ``on``.

    Safe to call repeatedly: existing (template, date) instances are reused.
    Returns every instance scheduled on the date.
    """

    instances, created = _expand(ctx, on)
    logger.info("Expanded routines", extra={"date": on.isoformat(), "instances_created": created})
    return instances


def expand_horizon(ctx: "AppContext", start: date, days: Optional[int] = None) -> int:
    """Expand ``days`` consecutive dates from ``start``; returns instances created."""

    from .preferences import get_preferences

    horizon = days or get_preferences(ctx).routine_generation_horizon_days
    total = 0
    for offset in range(horizon):
        _, created = _expand(ctx, start + timedelta(days=offset))
        total += created
    logger.info(
        "Expanded routine horizon",
        extra={"start": start.isoformat(), "days": horizon, "instances_created": total},
    )
    return total


def get_instances_for_date(ctx: "AppContext", on: date) -> list[RoutineInstance]:
    return ctx.routine_repo.list_instances_for_date(on, user_id=ctx.require_user_id())


def get_instance(ctx: "AppContext", instance_id: int) -> RoutineInstance:
    instance = ctx.routine_repo.get_instance(instance_id, user_id=ctx.require_user_id())
    if instance is None:
        raise NotFound(f"Routine instance {instance_id} not found")
    return instance


# State machine
def _actionable(ctx: "AppContext", instance_id: int, today: date) -> RoutineInstance:
    instance = get_instance(ctx, instance_id)
    if instance.is_terminal:
        raise InvalidState(
            f"Routine instance {instance_id} is already {instance.status}",
            details={"status": instance.status},
        )
    if instance.scheduled_date < today:
        raise InvalidState(
            f"Routine instance {instance_id} is in the past and can no longer change state",
            details={"scheduled_date": instance.scheduled_date.isoformat()},
        )
    return instance


def _transition(
    ctx: "AppContext", instance: RoutineInstance, values: dict[str, Any]
) -> RoutineInstance:
    updated = ctx.routine_repo.transition_instance(instance.id, values, user_id=ctx.require_user_id())  # type: ignore[arg-type]
    if updated is None:
        # Lost the race against another writer; the row is no longer pending.
        raise InvalidState(f"Routine instance {instance.id} was already acted upon")
    logger.info(
        "Routine instance transitioned",
        extra={"instance_id": instance.id, "status": updated.status},
    )
    return updated


def _finish(
    ctx: "AppContext",
    instance_id: int,
    status: InstanceStatus,
    payload: Optional[Mapping[str, Any]],
    now: Optional[datetime],
) -> RoutineInstance:
    now = as_utc(now) or utcnow()
    form = CompletionForm.model_validate(payload or {})
    instance = _actionable(ctx, instance_id, local_date(now))
    template = ctx.routine_repo.get_template(instance.template_id, user_id=ctx.require_user_id())
    target = template.target_value if template is not None else None
    values: dict[str, Any] = {
        "status": status.value,
        "actual_end": now,
        "completion_score": compute_completion_score(form.actual_value, target),
    }
    tracked = form.model_dump(exclude_none=True)
    if "actual_start" in tracked:
        tracked["actual_start"] = as_utc(form.actual_start)
    values.update(tracked)
    updated = _transition(ctx, instance, values)
    streaks.record_completion(ctx, updated.template_id, updated.scheduled_date)
    return updated


def complete_instance(
    ctx: "AppContext",
    instance_id: int,
    payload: Optional[Mapping[str, Any]] = None,
    *,
    now: Optional[datetime] = None,
) -> RoutineInstance:
    """Mark a pending instance completed and advance its streak."""

    return _finish(ctx, instance_id, InstanceStatus.COMPLETED, payload, now)


def partial_instance(
    ctx: "AppContext",
    instance_id: int,
    payload: Optional[Mapping[str, Any]] = None,
    *,
    now: Optional[datetime] = None,
) -> RoutineInstance:
    """Mark a pending instance partially done; it still continues the streak."""

    return _finish(ctx, instance_id, InstanceStatus.PARTIAL, payload, now)


def skip_instance(
    ctx: "AppContext",
    instance_id: int,
    skip_reason: str,
    *,
    now: Optional[datetime] = None,
) -> RoutineInstance:
    """Skip a pending instance; a reason is mandatory and the streak resets."""

    form = SkipForm.model_validate({"skip_reason": skip_reason})
    instance = _actionable(ctx, instance_id, local_date(now))
    updated = _transition(
        ctx,
        instance,
        {
            "status": InstanceStatus.SKIPPED.value,
            "skip_reason": form.skip_reason,
            "completion_score": 0,
        },
    )
    streaks.record_skip(ctx, updated.template_id)
    return updated


def amend_instance(
    ctx: "AppContext",
    instance_id: int,
    payload: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
) -> RoutineInstance:
    """Edit notes at any time, and ``mood_after`` on the instance's own day only."""

    form = AmendForm.model_validate(payload)
    instance = get_instance(ctx, instance_id)
    if form.mood_after is not None:
        if instance.scheduled_date != local_date(now):
            raise InvalidState("mood_after can only be amended on the instance's own day")
        instance.mood_after = form.mood_after
    if form.notes is not None:
        instance.notes = form.notes
    return ctx.routine_repo.update_instance(instance, user_id=ctx.require_user_id())


def sweep_missed(ctx: "AppContext", *, today: Optional[date] = None) -> int:
    """Skip every pending instance dated before ``today`` and reset its streak."""

    uid = ctx.require_user_id()
    today = today or local_date()
    swept = 0
    for instance in ctx.routine_repo.list_pending_before(today, user_id=uid):
        updated = ctx.routine_repo.transition_instance(
            instance.id,  # type: ignore[arg-type]
            {
                "status": InstanceStatus.SKIPPED.value,
                "skip_reason": MISSED_REASON,
                "completion_score": 0,
            },
            user_id=uid,
        )
        if updated is None:
            continue
        streaks.record_skip(ctx, updated.template_id)
        swept += 1
    if swept:
        logger.info("Swept missed routine instances", extra={"count": swept, "before": today.isoformat()})
    return swept


def link_task(
    ctx: "AppContext",
    instance_id: int,
    task_id: int,
    *,
    time_spent_minutes: int = 0,
    notes: Optional[str] = None,
) -> RoutineInstanceTask:
    """Record time spent on a task while performing a routine instance."""

    uid = ctx.require_user_id()
    get_instance(ctx, instance_id)
    if ctx.task_repo.get_by_id(task_id, user_id=uid) is None:
        raise NotFound(f"Task {task_id} not found")
    if time_spent_minutes < 0:
        raise ValidationError("time_spent_minutes must not be negative")
    link = RoutineInstanceTask(
        instance_id=instance_id,
        task_id=task_id,
        user_id=uid,
        time_spent_minutes=time_spent_minutes,
        notes=notes,
    )
    return ctx.routine_repo.upsert_link(link, user_id=uid)


__all__ = [
    "MISSED_REASON",
    "amend_instance",
    "complete_instance",
    "compute_completion_score",
    "create_template",
    "delete_template",
    "expand_for_date",
    "expand_horizon",
    "get_instance",
    "get_instances_for_date",
    "get_template",
    "link_task",
    "list_templates",
    "partial_instance",
    "skip_instance",
    "sweep_missed",
    "update_template",
]
