"""Tests for plan generation, regeneration and slot bookkeeping."""

from __future__ import annotations

from datetime import time
from itertools import combinations

import pytest

from lifeos.errors import AlreadyExists, InvalidState, NotFound
from lifeos.models import PlanStatus
from lifeos.services import planning, preferences, routines

from tests.conftest import DAY, noon


def assert_no_overlap(slots):
    for a, b in combinations(slots, 2):
        assert a.end_time <= b.start_time or b.end_time <= a.start_time, (a, b)


@pytest.fixture
def day_setup(ctx, template_factory, task_factory):
    """A fixed-time high-priority routine plus an hour-long task due today."""

    preferences.update_preferences(ctx, {"auto_position_tasks": True})
    run = template_factory("Run", priority="high", slot=("07:00", "07:30"))
    task = task_factory("Deep work", due_date=DAY, estimated_minutes=60)
    return run, task


class TestGeneratePlan:
    def test_generates_ordered_slots(self, ctx, day_setup):
        view = planning.generate_plan(ctx, DAY)

        assert view.plan.status == PlanStatus.DRAFT.value
        assert view.plan.optimization_score == 100
        assert view.unscheduled == []
        assert [s.sort_order for s in view.slots] == [0, 1]
        routine_slot, task_slot = view.slots
        assert routine_slot.entity_type == "routine"
        assert (routine_slot.start_time, routine_slot.end_time) == (time(7, 0), time(7, 30))
        assert task_slot.entity_id == day_setup[1].id
        assert (task_slot.start_time, task_slot.end_time) == (time(7, 30), time(8, 30))

    def test_generation_expands_routines(self, ctx, day_setup):
        planning.generate_plan(ctx, DAY)

        assert len(routines.get_instances_for_date(ctx, DAY)) == 1

    def test_second_generate_is_rejected(self, ctx, day_setup):
        first = planning.generate_plan(ctx, DAY)

        with pytest.raises(AlreadyExists) as excinfo:
            planning.generate_plan(ctx, DAY)

        assert excinfo.value.details["plan_id"] == first.plan.id
        assert len(planning.get_plan_for_date(ctx, DAY).slots) == 2

    def test_regenerate_without_plan_creates_one(self, ctx, day_setup):
        view = planning.generate_plan(ctx, DAY, regenerate=True)

        assert len(view.slots) == 2

    def test_lunch_break_slot(self, ctx, day_setup):
        view = planning.generate_plan(ctx, DAY, preferences={"lunchBreakStart": "12:00", "lunchBreakDuration": 60})

        breaks = [s for s in view.slots if s.slot_type == "break"]
        assert len(breaks) == 1
        assert (breaks[0].start_time, breaks[0].end_time) == (time(12, 0), time(13, 0))
        assert breaks[0].entity_id is None
        assert view.plan.generation_params["preferences"]["lunchBreakStart"] == "12:00:00"
        assert_no_overlap(view.slots)

    def test_lunch_before_wake_is_clipped(self, ctx):
        view = planning.generate_plan(
            ctx, DAY, preferences={"wakeTime": "07:00", "lunchBreakStart": "06:30", "lunchBreakDuration": 60}
        )

        breaks = [s for s in view.slots if s.slot_type == "break"]
        assert len(breaks) == 1
        assert (breaks[0].start_time, breaks[0].end_time) == (time(7, 0), time(7, 30))
        assert all(s.start_time >= time(7, 0) for s in view.slots)

    def test_due_time_bounds_the_task(self, ctx, template_factory, task_factory):
        template_factory("Run", priority="high", slot=("07:00", "07:30"))
        task = task_factory("Pay bill", due_date=DAY, due_time=time(10, 0), estimated_minutes=30)

        view = planning.generate_plan(ctx, DAY)

        slot = next(s for s in view.slots if s.entity_id == task.id and s.entity_type == "task")
        assert slot.start_time == time(7, 30)

    def test_strict_deadline_that_cannot_fit_is_unscheduled(self, ctx, template_factory, task_factory):
        template_factory("Run", priority="high", slot=("07:00", "07:30"))
        task = task_factory(
            "Submit form", due_date=DAY, due_time=time(7, 30), estimated_minutes=30, is_deadline_strict=True
        )

        view = planning.generate_plan(ctx, DAY)

        assert view.unscheduled == [
            {"entity_type": "task", "entity_id": task.id, "reason": "Fixed window is already occupied"}
        ]
        assert view.plan.optimization_score == 50
        stored = planning.get_plan_for_date(ctx, DAY)
        assert stored.unscheduled == view.unscheduled

    def test_moment_block_positions_routine(self, ctx, template_factory):
        template_factory("Walk", moment="afternoon", minutes=45)

        view = planning.generate_plan(ctx, DAY)

        (slot,) = view.slots
        assert (slot.start_time, slot.end_time) == (time(14, 0), time(14, 45))

    def test_auto_positioning_switches(self, ctx, template_factory, task_factory):
        template_factory("Walk", moment="afternoon")
        task_factory("Inbox zero", due_date=DAY)
        preferences.update_preferences(ctx, {"auto_position_routines": False})

        view = planning.generate_plan(ctx, DAY)

        assert view.slots == []
        reasons = sorted(item["reason"] for item in view.unscheduled)
        assert reasons == ["Auto-positioning of routines is off", "Auto-positioning of tasks is off"]

    def test_skipped_instances_are_not_planned(self, ctx, template_factory):
        template = template_factory("Run", slot=("07:00", "07:30"))
        (instance,) = routines.expand_for_date(ctx, DAY)
        routines.skip_instance(ctx, instance.id, "Injured", now=noon(DAY))

        view = planning.generate_plan(ctx, DAY)

        assert view.slots == []
        assert template.id is not None

    def test_done_tasks_are_not_planned(self, ctx, task_factory):
        preferences.update_preferences(ctx, {"auto_position_tasks": True})
        task_factory("Already done", due_date=DAY, status="done")

        assert planning.generate_plan(ctx, DAY).slots == []

    def test_many_items_never_overlap(self, ctx, template_factory, task_factory):
        preferences.update_preferences(ctx, {"auto_position_tasks": True})
        for i in range(4):
            template_factory(f"Routine {i}", moment="morning", minutes=90)
        for i in range(6):
            task_factory(f"Task {i}", due_date=DAY, estimated_minutes=120)

        view = planning.generate_plan(ctx, DAY)

        assert_no_overlap(view.slots)
        assert [s.sort_order for s in view.slots] == list(range(len(view.slots)))


class TestRegenerate:
    def test_locked_slot_survives_regeneration(self, ctx, template_factory, day_setup):
        view = planning.generate_plan(ctx, DAY)
        routine_slot, task_slot = view.slots
        planning.lock_slot(ctx, task_slot.id)
        template_factory("Stretch", slot=("07:30", "08:00"))

        regenerated = planning.generate_plan(ctx, DAY, regenerate=True)

        kept = next(s for s in regenerated.slots if s.id == task_slot.id)
        assert kept.is_locked
        assert (kept.start_time, kept.end_time) == (task_slot.start_time, task_slot.end_time)
        assert (kept.entity_type, kept.entity_id, kept.ai_reasoning) == (
            task_slot.entity_type,
            task_slot.entity_id,
            task_slot.ai_reasoning,
        )
        assert routine_slot.id not in {s.id for s in regenerated.slots}
        assert [s.entity_type for s in regenerated.slots].count("task") == 1
        assert len(regenerated.slots) == 3
        assert_no_overlap(regenerated.slots)
        assert regenerated.plan.generation_params["preserved_slots"] == 1

    def test_executed_slot_survives_regeneration(self, ctx, day_setup):
        view = planning.generate_plan(ctx, DAY)
        executed = planning.mark_slot_executed(ctx, view.slots[0].id)

        regenerated = planning.generate_plan(ctx, DAY, regenerate=True)

        assert executed.id in {s.id for s in regenerated.slots}
        assert len(regenerated.slots) == 2

    def test_regenerate_returns_plan_to_draft(self, ctx, day_setup):
        planning.generate_plan(ctx, DAY)
        planning.finalize_plan(ctx, DAY)

        regenerated = planning.generate_plan(ctx, DAY, regenerate=True)

        assert regenerated.plan.status == PlanStatus.DRAFT.value

    def test_unlock(self, ctx, day_setup):
        slot = planning.generate_plan(ctx, DAY).slots[0]
        planning.lock_slot(ctx, slot.id)

        assert planning.unlock_slot(ctx, slot.id).is_locked is False

    def test_unknown_slot(self, ctx):
        with pytest.raises(NotFound):
            planning.lock_slot(ctx, 12345)


class TestPlanLifecycle:
    def test_missing_plan_is_none(self, ctx):
        assert planning.get_plan_for_date(ctx, DAY) is None

    def test_plans_are_per_user(self, ctx, other_ctx, day_setup):
        planning.generate_plan(ctx, DAY)

        assert planning.get_plan_for_date(other_ctx, DAY) is None

    def test_finalize_then_stale(self, ctx, day_setup):
        planning.generate_plan(ctx, DAY)

        assert planning.finalize_plan(ctx, DAY).status == PlanStatus.FINAL.value
        with pytest.raises(InvalidState):
            planning.finalize_plan(ctx, DAY)
        assert planning.mark_plan_stale(ctx, DAY).status == PlanStatus.DRAFT.value
        assert planning.mark_plan_stale(ctx, DAY).status == PlanStatus.DRAFT.value

    def test_finalize_without_plan(self, ctx):
        with pytest.raises(NotFound):
            planning.finalize_plan(ctx, DAY)

    def test_slot_details(self, ctx, domain_factory, day_setup):
        run, task = day_setup
        health = domain_factory("Health")
        routines.update_template(ctx, run.id, {"domain_id": health.id})
        planning.generate_plan(ctx, DAY)

        details = planning.get_plan_slots_with_details(ctx, DAY)

        assert [d.title for d in details] == ["Run", "Deep work"]
        assert details[0].domain.name == "Health"
        assert details[0].instance.scheduled_date == DAY
        assert details[1].task.id == task.id
        assert details[1].to_dict()["title"] == "Deep work"

    def test_view_serializes(self, ctx, day_setup):
        payload = planning.generate_plan(ctx, DAY).to_dict()

        assert payload["date"] == DAY.isoformat()
        assert len(payload["slots"]) == 2
        assert payload["unscheduled"] == []
