"""Public operation contracts.

Each function takes an explicit :class:`~lifeos.context.AppContext` carrying
the authenticated user and returns a :class:`~lifeos.errors.Result`; none of
them raise.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

from .errors import Result, run_operation
from .models.domain import Domain
from .models.plan import GeneratedPlan, PlanSlot
from .models.preferences import UserPreferences
from .models.project import Project
from .models.routine import RoutineInstance, RoutineTemplate, Streak
from .models.task import Task
from .services import analytics, domains, planning, preferences, projects, routines, streaks, tasks, timer

if TYPE_CHECKING:
    from .context import AppContext


# Planning
def get_plan_for_date(ctx: "AppContext", on: date) -> Result[Optional[planning.PlanView]]:
    return run_operation(lambda: planning.get_plan_for_date(ctx, on), name="get_plan_for_date", read_only=True)


def generate_plan(
    ctx: "AppContext",
    on: date,
    *,
    regenerate: bool = False,
    preferences: Optional[Mapping[str, Any]] = None,
) -> Result[planning.PlanView]:
    return run_operation(
        lambda: planning.generate_plan(ctx, on, regenerate=regenerate, preferences=preferences),
        name="generate_plan",
    )


def get_plan_slots_with_details(ctx: "AppContext", on: date) -> Result[list[planning.SlotDetail]]:
    return run_operation(
        lambda: planning.get_plan_slots_with_details(ctx, on), name="get_plan_slots_with_details", read_only=True
    )


def lock_slot(ctx: "AppContext", slot_id: int) -> Result[PlanSlot]:
    return run_operation(lambda: planning.lock_slot(ctx, slot_id), name="lock_slot")


def unlock_slot(ctx: "AppContext", slot_id: int) -> Result[PlanSlot]:
    return run_operation(lambda: planning.unlock_slot(ctx, slot_id), name="unlock_slot")


def mark_slot_executed(ctx: "AppContext", slot_id: int, executed: bool = True) -> Result[PlanSlot]:
    return run_operation(lambda: planning.mark_slot_executed(ctx, slot_id, executed), name="mark_slot_executed")


def finalize_plan(ctx: "AppContext", on: date) -> Result[GeneratedPlan]:
    return run_operation(lambda: planning.finalize_plan(ctx, on), name="finalize_plan")


def mark_plan_stale(ctx: "AppContext", on: date) -> Result[GeneratedPlan]:
    return run_operation(lambda: planning.mark_plan_stale(ctx, on), name="mark_plan_stale")


# Routine instances
def get_routine_instances(ctx: "AppContext", on: date) -> Result[list[RoutineInstance]]:
    return run_operation(lambda: routines.get_instances_for_date(ctx, on), name="get_routine_instances", read_only=True)


def expand_routines(ctx: "AppContext", on: date) -> Result[list[RoutineInstance]]:
    return run_operation(lambda: routines.expand_for_date(ctx, on), name="expand_routines")


def complete_routine_instance(
    ctx: "AppContext",
    instance_id: int,
    payload: Optional[Mapping[str, Any]] = None,
    *,
    now: Optional[datetime] = None,
) -> Result[RoutineInstance]:
    return run_operation(
        lambda: routines.complete_instance(ctx, instance_id, payload, now=now), name="complete_routine_instance"
    )


def partial_routine_instance(
    ctx: "AppContext",
    instance_id: int,
    payload: Optional[Mapping[str, Any]] = None,
    *,
    now: Optional[datetime] = None,
) -> Result[RoutineInstance]:
    return run_operation(
        lambda: routines.partial_instance(ctx, instance_id, payload, now=now), name="partial_routine_instance"
    )


def skip_routine_instance(
    ctx: "AppContext", instance_id: int, skip_reason: str, *, now: Optional[datetime] = None
) -> Result[RoutineInstance]:
    return run_operation(
        lambda: routines.skip_instance(ctx, instance_id, skip_reason, now=now), name="skip_routine_instance"
    )


def amend_routine_instance(
    ctx: "AppContext", instance_id: int, payload: Mapping[str, Any], *, now: Optional[datetime] = None
) -> Result[RoutineInstance]:
    return run_operation(
        lambda: routines.amend_instance(ctx, instance_id, payload, now=now), name="amend_routine_instance"
    )


def link_task_to_instance(
    ctx: "AppContext", instance_id: int, task_id: int, *, minutes: int = 0, notes: Optional[str] = None
):
    return run_operation(
        lambda: routines.link_task(ctx, instance_id, task_id, time_spent_minutes=minutes, notes=notes),
        name="link_task_to_instance",
    )


# Routine templates
def list_routine_templates(ctx: "AppContext", *, include_inactive: bool = False) -> Result[list[RoutineTemplate]]:
    return run_operation(
        lambda: routines.list_templates(ctx, include_inactive=include_inactive),
        name="list_routine_templates",
        read_only=True,
    )


def create_routine_template(ctx: "AppContext", payload: Mapping[str, Any]) -> Result[RoutineTemplate]:
    return run_operation(lambda: routines.create_template(ctx, payload), name="create_routine_template")


def update_routine_template(
    ctx: "AppContext", template_id: int, changes: Mapping[str, Any]
) -> Result[RoutineTemplate]:
    return run_operation(lambda: routines.update_template(ctx, template_id, changes), name="update_routine_template")


def delete_routine_template(ctx: "AppContext", template_id: int) -> Result[bool]:
    return run_operation(lambda: routines.delete_template(ctx, template_id), name="delete_routine_template")


# Tasks
def list_tasks(ctx: "AppContext", filters: Optional[tasks.TaskFilters] = None) -> Result[list[Task]]:
    return run_operation(lambda: tasks.list_tasks(ctx, filters), name="list_tasks", read_only=True)


def create_task(ctx: "AppContext", payload: Mapping[str, Any]) -> Result[Task]:
    return run_operation(lambda: tasks.create_task(ctx, payload), name="create_task")


def update_task(ctx: "AppContext", task_id: int, changes: Mapping[str, Any]) -> Result[Task]:
    return run_operation(lambda: tasks.update_task(ctx, task_id, changes), name="update_task")


def update_task_status(
    ctx: "AppContext", task_id: int, status: str, *, now: Optional[datetime] = None
) -> Result[Task]:
    return run_operation(lambda: tasks.update_task_status(ctx, task_id, status, now=now), name="update_task_status")


def delete_task(ctx: "AppContext", task_id: int) -> Result[Task]:
    return run_operation(lambda: tasks.delete_task(ctx, task_id), name="delete_task")


def add_task_time(ctx: "AppContext", task_id: int, minutes: int) -> Result[Task]:
    return run_operation(lambda: tasks.add_time(ctx, task_id, minutes), name="add_task_time")


def get_task_stats(ctx: "AppContext", *, today: Optional[date] = None) -> Result[tasks.TaskStats]:
    return run_operation(lambda: tasks.get_task_stats(ctx, today=today), name="get_task_stats", read_only=True)


def get_overdue_tasks(ctx: "AppContext", *, today: Optional[date] = None) -> Result[list[Task]]:
    return run_operation(lambda: tasks.get_overdue_tasks(ctx, today=today), name="get_overdue_tasks", read_only=True)


# Timer
def start_task_timer(ctx: "AppContext", task_id: int, *, now: Optional[datetime] = None) -> Result[timer.TimerState]:
    return run_operation(lambda: timer.start_timer(ctx, task_id, now=now), name="start_task_timer")


def pause_task_timer(ctx: "AppContext", task_id: int, *, now: Optional[datetime] = None) -> Result[timer.TimerState]:
    return run_operation(lambda: timer.pause_timer(ctx, task_id, now=now), name="pause_task_timer")


def stop_task_timer(ctx: "AppContext", task_id: int, *, now: Optional[datetime] = None) -> Result[timer.TimerState]:
    return run_operation(lambda: timer.stop_timer(ctx, task_id, now=now), name="stop_task_timer")


def get_timer_state(ctx: "AppContext", task_id: int, *, now: Optional[datetime] = None) -> Result[timer.TimerState]:
    return run_operation(lambda: timer.get_timer_state(ctx, task_id, now=now), name="get_timer_state", read_only=True)


def get_running_timers(ctx: "AppContext", *, now: Optional[datetime] = None) -> Result[list[timer.TimerState]]:
    return run_operation(lambda: timer.get_running_timers(ctx, now=now), name="get_running_timers", read_only=True)


# Streaks and analytics
def get_streaks(ctx: "AppContext") -> Result[list[Streak]]:
    return run_operation(lambda: streaks.get_streaks(ctx), name="get_streaks", read_only=True)


def get_weekly_stats(ctx: "AppContext", week_start: Optional[date] = None) -> Result[analytics.WeeklyStats]:
    return run_operation(lambda: analytics.get_weekly_stats(ctx, week_start), name="get_weekly_stats", read_only=True)


def get_overview_stats(ctx: "AppContext", *, today: Optional[date] = None) -> Result[analytics.OverviewStats]:
    return run_operation(lambda: analytics.get_overview_stats(ctx, today=today), name="get_overview_stats", read_only=True)


def get_activity_heat(ctx: "AppContext", *, days: int = 28, today: Optional[date] = None) -> Result[dict[date, int]]:
    return run_operation(
        lambda: analytics.get_activity_heat(ctx, days=days, today=today), name="get_activity_heat", read_only=True
    )


# Domains
def list_domains(ctx: "AppContext") -> Result[list[Domain]]:
    return run_operation(lambda: domains.list_domains(ctx), name="list_domains", read_only=True)


def create_domain(ctx: "AppContext", payload: Mapping[str, Any]) -> Result[Domain]:
    return run_operation(lambda: domains.create_domain(ctx, payload), name="create_domain")


def update_domain(ctx: "AppContext", domain_id: int, changes: Mapping[str, Any]) -> Result[Domain]:
    return run_operation(lambda: domains.update_domain(ctx, domain_id, changes), name="update_domain")


def reorder_domains(ctx: "AppContext", ordered_ids: Iterable[int]) -> Result[list[Domain]]:
    return run_operation(lambda: domains.reorder_domains(ctx, list(ordered_ids)), name="reorder_domains")


def delete_domain(ctx: "AppContext", domain_id: int) -> Result[Domain]:
    return run_operation(lambda: domains.delete_domain(ctx, domain_id), name="delete_domain")


def seed_default_domains(ctx: "AppContext") -> Result[list[Domain]]:
    return run_operation(lambda: domains.seed_default_domains(ctx), name="seed_default_domains")


# Projects
def list_projects(ctx: "AppContext", *, status: Optional[str] = None) -> Result[list[Project]]:
    return run_operation(lambda: projects.list_projects(ctx, status=status), name="list_projects", read_only=True)


def create_project(ctx: "AppContext", payload: Mapping[str, Any]) -> Result[Project]:
    return run_operation(lambda: projects.create_project(ctx, payload), name="create_project")


def update_project(ctx: "AppContext", project_id: int, changes: Mapping[str, Any]) -> Result[Project]:
    return run_operation(lambda: projects.update_project(ctx, project_id, changes), name="update_project")


def delete_project(ctx: "AppContext", project_id: int) -> Result[Project]:
    return run_operation(lambda: projects.delete_project(ctx, project_id), name="delete_project")


def get_project_progress(ctx: "AppContext", project_id: int) -> Result[projects.ProjectProgress]:
    return run_operation(lambda: projects.get_progress(ctx, project_id), name="get_project_progress", read_only=True)


# Preferences
def get_preferences(ctx: "AppContext") -> Result[UserPreferences]:
    return run_operation(lambda: preferences.get_preferences(ctx), name="get_preferences", read_only=True)


def update_preferences(ctx: "AppContext", changes: Mapping[str, Any]) -> Result[UserPreferences]:
    return run_operation(lambda: preferences.update_preferences(ctx, changes), name="update_preferences")
