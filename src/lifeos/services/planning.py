"""Daily plan generation, regeneration and slot bookkeeping.

A plan is generated once per (user, date). Regenerating keeps every locked
or executed slot where it is and re-allocates everything else around them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from sqlalchemy.exc import IntegrityError

from ..errors import AlreadyExists, Conflict, InvalidState, NotFound
from ..forms import PlanPreferences
from ..models.plan import GeneratedPlan, PlanSlot, PlanStatus, SlotType
from ..models.routine import InstanceStatus, RoutineInstance, RoutineTemplate
from ..models.task import Task
from . import routines
from .allocator import (
    Allocation,
    AllocatorSettings,
    Candidate,
    TimeWindow,
    Unscheduled,
    allocate_slots,
    to_minutes,
    to_time,
)
from .preferences import build_allocator_settings, get_preferences
from .tasks import PLANNABLE_STATUSES

if TYPE_CHECKING:
    from ..context import AppContext

logger = logging.getLogger("lifeos.planning")

DEFAULT_TASK_MINUTES = 30
LUNCH_REASONING = "Lunch break"


@dataclass
class PlanView:
    """A plan with its ordered slots and what could not be placed."""

    plan: GeneratedPlan
    slots: list[PlanSlot]
    unscheduled: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload = self.plan.model_dump(mode="json")
        payload["slots"] = [slot.model_dump(mode="json") for slot in self.slots]
        payload["unscheduled"] = list(self.unscheduled)
        return payload


@dataclass
class SlotDetail:
    """A slot joined with the routine instance or task it points at."""

    slot: PlanSlot
    instance: Optional[RoutineInstance] = None
    template: Optional[RoutineTemplate] = None
    task: Optional[Task] = None
    domain: Optional[Any] = None

    @property
    def title(self) -> str:
        if self.template is not None:
            return self.template.name
        if self.task is not None:
            return self.task.title
        return self.slot.ai_reasoning or self.slot.slot_type

    def to_dict(self) -> dict[str, Any]:
        return {
            "slot": self.slot.model_dump(mode="json"),
            "title": self.title,
            "instance": self.instance.model_dump(mode="json") if self.instance else None,
            "task": self.task.model_dump(mode="json") if self.task else None,
            "domain": self.domain.model_dump(mode="json") if self.domain else None,
        }


def _routine_candidate(
    instance: RoutineInstance, template: RoutineTemplate, settings: AllocatorSettings
) -> Union[Candidate, Unscheduled]:
    explicit = template.time_slot
    if explicit is None and instance.scheduled_start and instance.scheduled_end:
        explicit = (instance.scheduled_start, instance.scheduled_end)

    window: Optional[TimeWindow] = None
    moment = template.category_moment
    if explicit is not None:
        window = TimeWindow(to_minutes(explicit[0]), to_minutes(explicit[1]))
        moment = moment or settings.block_of(window.start)
    elif not settings.auto_position_routines:
        return Unscheduled("routine", instance.id, "Auto-positioning of routines is off")  # type: ignore[arg-type]
    elif moment is None:
        window = settings.day

    return Candidate(
        entity_type="routine",
        entity_id=instance.id,  # type: ignore[arg-type]
        label=template.name,
        priority=template.priority,
        created_at=template.created_at,
        duration=template.duration_minutes,
        window=window,
        moment=moment,
        flexible=template.is_flexible,
    )


def _task_candidate(task: Task, on: date, settings: AllocatorSettings) -> Union[Candidate, Unscheduled]:
    window: Optional[TimeWindow] = None
    moment: Optional[str] = None
    if task.due_time is not None and task.due_date == on:
        deadline = to_minutes(task.due_time)
        window = TimeWindow(settings.day.start, deadline)
        moment = settings.block_of(max(deadline - 1, 0))
    elif settings.auto_position_tasks:
        window = settings.day
    else:
        return Unscheduled("task", task.id, "Auto-positioning of tasks is off")  # type: ignore[arg-type]

    return Candidate(
        entity_type="task",
        entity_id=task.id,  # type: ignore[arg-type]
        label=task.title,
        priority=task.priority,
        created_at=task.created_at,
        duration=task.estimated_minutes or DEFAULT_TASK_MINUTES,
        window=window,
        moment=moment,
        flexible=not task.is_deadline_strict,
    )


def collect_candidates(
    ctx: "AppContext",
    on: date,
    instances: list[RoutineInstance],
    settings: AllocatorSettings,
    *,
    exclude: set[tuple[str, int]],
) -> tuple[list[Candidate], list[Unscheduled]]:
    """Routine instances and tasks asking for time on ``on``."""

    uid = ctx.require_user_id()
    templates = {t.id: t for t in ctx.routine_repo.list_templates(user_id=uid, include_inactive=True)}
    candidates: list[Candidate] = []
    rejected: list[Unscheduled] = []

    def _add(outcome: Union[Candidate, Unscheduled]) -> None:
        if isinstance(outcome, Candidate):
            candidates.append(outcome)
        else:
            rejected.append(outcome)

    for instance in instances:
        template = templates.get(instance.template_id)
        if template is None or not template.is_active:
            continue
        if instance.status == InstanceStatus.SKIPPED.value or ("routine", instance.id) in exclude:
            continue
        _add(_routine_candidate(instance, template, settings))

    for task in ctx.task_repo.list_for_date(on, user_id=uid, statuses=PLANNABLE_STATUSES):
        if ("task", task.id) in exclude:
            continue
        _add(_task_candidate(task, on, settings))
    return candidates, rejected


def _build_slots(allocation: Allocation, settings: AllocatorSettings, preserved: list[PlanSlot]) -> list[PlanSlot]:
    slots = [
        PlanSlot(
            user_id=0,
            plan_id=0,
            slot_type=placement.entity_type,
            entity_type=placement.entity_type,
            entity_id=placement.entity_id,
            start_time=to_time(placement.start),
            end_time=to_time(placement.end),
            ai_reasoning=placement.reasoning,
        )
        for placement in allocation.placements
    ]
    lunch = settings.lunch
    if lunch is not None and not any(
        lunch.overlaps(to_minutes(s.start_time), to_minutes(s.end_time)) for s in preserved
    ):
        slots.append(
            PlanSlot(
                user_id=0,
                plan_id=0,
                slot_type=SlotType.BREAK.value,
                start_time=to_time(lunch.start),
                end_time=to_time(lunch.end),
                ai_reasoning=LUNCH_REASONING,
            )
        )
    return slots


def generate_plan(
    ctx: "AppContext",
    on: date,
    *,
    regenerate: bool = False,
    preferences: Optional[Mapping[str, Any]] = None,
) -> PlanView:
    """Create the plan for ``on``, or rebuild its unlocked slots.

    Without ``regenerate`` an existing plan is an error. With it, locked and
    executed slots are kept verbatim and block time for everything else.
    """

    uid = ctx.require_user_id()
    day = PlanPreferences.model_validate(preferences or {})
    existing = ctx.plan_repo.get_for_date(on, user_id=uid)
    if existing is not None and not regenerate:
        raise AlreadyExists(
            f"A plan already exists for {on.isoformat()}",
            details={"plan_id": existing.id},
        )

    instances = routines.expand_for_date(ctx, on)
    preserved: list[PlanSlot] = []
    if existing is not None:
        preserved = [s for s in ctx.plan_repo.list_slots(existing.id, user_id=uid) if s.is_preserved]  # type: ignore[arg-type]

    settings = build_allocator_settings(get_preferences(ctx), day)
    exclude = {key for key in (s.entity_key for s in preserved) if key is not None}
    candidates, rejected = collect_candidates(ctx, on, instances, settings, exclude=exclude)
    allocation = allocate_slots(
        candidates,
        settings,
        occupied=[(to_minutes(s.start_time), to_minutes(s.end_time)) for s in preserved],
    )
    allocation.unscheduled.extend(rejected)
    slots = _build_slots(allocation, settings, preserved)
    unscheduled = [item.to_dict() for item in allocation.unscheduled]
    params = {
        "preferences": day.model_dump(mode="json", by_alias=True),
        "unscheduled": unscheduled,
        "preserved_slots": len(preserved),
    }

    if existing is None:
        plan = GeneratedPlan(
            user_id=uid,
            date=on,
            status=PlanStatus.DRAFT.value,
            optimization_score=allocation.optimization_score,
            generation_params=params,
        )
        try:
            plan = ctx.plan_repo.create_with_slots(plan, slots, user_id=uid)
        except IntegrityError as exc:
            raise Conflict(f"A plan for {on.isoformat()} was generated concurrently") from exc
    else:
        plan = ctx.plan_repo.replace_unpreserved_slots(
            existing.id,  # type: ignore[arg-type]
            slots,
            user_id=uid,
            optimization_score=allocation.optimization_score,
            generation_params=params,
        )

    logger.info(
        "Plan generated",
        extra={
            "date": on.isoformat(),
            "plan_id": plan.id,
            "regenerated": existing is not None,
            "placed": len(allocation.placements),
            "unscheduled": len(unscheduled),
            "preserved": len(preserved),
            "score": allocation.optimization_score,
        },
    )
    return PlanView(plan=plan, slots=ctx.plan_repo.list_slots(plan.id, user_id=uid), unscheduled=unscheduled)  # type: ignore[arg-type]


def get_plan_for_date(ctx: "AppContext", on: date) -> Optional[PlanView]:
    """The stored plan for ``on``, or None when none was generated."""

    uid = ctx.require_user_id()
    plan = ctx.plan_repo.get_for_date(on, user_id=uid)
    if plan is None:
        return None
    return PlanView(
        plan=plan,
        slots=ctx.plan_repo.list_slots(plan.id, user_id=uid),  # type: ignore[arg-type]
        unscheduled=list((plan.generation_params or {}).get("unscheduled", [])),
    )


def _require_plan(ctx: "AppContext", on: date) -> GeneratedPlan:
    plan = ctx.plan_repo.get_for_date(on, user_id=ctx.require_user_id())
    if plan is None:
        raise NotFound(f"No plan for {on.isoformat()}")
    return plan


def get_plan_slots_with_details(ctx: "AppContext", on: date) -> list[SlotDetail]:
    uid = ctx.require_user_id()
    plan = _require_plan(ctx, on)
    templates = {t.id: t for t in ctx.routine_repo.list_templates(user_id=uid, include_inactive=True)}
    domains = {d.id: d for d in ctx.domain_repo.list_all(user_id=uid)}
    details: list[SlotDetail] = []
    for slot in ctx.plan_repo.list_slots(plan.id, user_id=uid):  # type: ignore[arg-type]
        detail = SlotDetail(slot=slot)
        if slot.entity_type == "routine" and slot.entity_id is not None:
            detail.instance = ctx.routine_repo.get_instance(slot.entity_id, user_id=uid)
            if detail.instance is not None:
                detail.template = templates.get(detail.instance.template_id)
            if detail.template is not None:
                detail.domain = domains.get(detail.template.domain_id)
        elif slot.entity_type == "task" and slot.entity_id is not None:
            detail.task = ctx.task_repo.get_by_id(slot.entity_id, user_id=uid)
            if detail.task is not None:
                detail.domain = domains.get(detail.task.domain_id)
        details.append(detail)
    return details


def _get_slot(ctx: "AppContext", slot_id: int) -> PlanSlot:
    slot = ctx.plan_repo.get_slot(slot_id, user_id=ctx.require_user_id())
    if slot is None:
        raise NotFound(f"Plan slot {slot_id} not found")
    return slot


def _set_slot_flag(ctx: "AppContext", slot_id: int, name: str, value: bool) -> PlanSlot:
    slot = _get_slot(ctx, slot_id)
    setattr(slot, name, value)
    updated = ctx.plan_repo.update_slot(slot, user_id=ctx.require_user_id())
    logger.info("Plan slot updated", extra={"slot_id": slot_id, name: value})
    return updated


def lock_slot(ctx: "AppContext", slot_id: int) -> PlanSlot:
    """Pin a slot so regeneration leaves it untouched."""
    return _set_slot_flag(ctx, slot_id, "is_locked", True)


def unlock_slot(ctx: "AppContext", slot_id: int) -> PlanSlot:
    return _set_slot_flag(ctx, slot_id, "is_locked", False)


def mark_slot_executed(ctx: "AppContext", slot_id: int, executed: bool = True) -> PlanSlot:
    return _set_slot_flag(ctx, slot_id, "was_executed", executed)


def finalize_plan(ctx: "AppContext", on: date) -> GeneratedPlan:
    """Promote a draft plan to final."""

    plan = _require_plan(ctx, on)
    if plan.status != PlanStatus.DRAFT.value:
        raise InvalidState(f"Plan for {on.isoformat()} is already {plan.status}")
    plan.status = PlanStatus.FINAL.value
    return ctx.plan_repo.update_plan(plan, user_id=ctx.require_user_id())


def mark_plan_stale(ctx: "AppContext", on: date) -> GeneratedPlan:
    """Return a final plan to draft after its inputs changed."""

    plan = _require_plan(ctx, on)
    if plan.status == PlanStatus.DRAFT.value:
        return plan
    plan.status = PlanStatus.DRAFT.value
    return ctx.plan_repo.update_plan(plan, user_id=ctx.require_user_id())


__all__ = [
    "PlanView",
    "SlotDetail",
    "collect_candidates",
    "finalize_plan",
    "generate_plan",
    "get_plan_for_date",
    "get_plan_slots_with_details",
    "lock_slot",
    "mark_plan_stale",
    "mark_slot_executed",
    "unlock_slot",
]
