"""Task routes, including the timer."""

from __future__ import annotations

from flask import request

from ... import operations
from ...services.tasks import TaskFilters
from ..api import api_view, int_field, json_body, optional_date, optional_int
from . import bp


@bp.get("/")
@api_view()
def list_tasks(ctx):
    raw_status = request.args.get("status")
    filters = TaskFilters(
        statuses=[s.strip() for s in raw_status.split(",") if s.strip()] if raw_status else None,
        domain_id=optional_int(request.args.get("domain_id"), field="domain_id"),
        project_id=optional_int(request.args.get("project_id"), field="project_id"),
        due_on=optional_date(request.args.get("due"), field="due"),
        text=request.args.get("q") or None,
    )
    return operations.list_tasks(ctx, filters)


@bp.post("/")
@api_view(success_status=201)
def create_task(ctx):
    return operations.create_task(ctx, json_body())


@bp.get("/stats")
@api_view()
def task_stats(ctx):
    return operations.get_task_stats(ctx)


@bp.get("/overdue")
@api_view()
def overdue_tasks(ctx):
    return operations.get_overdue_tasks(ctx)


@bp.get("/timers")
@api_view()
def running_timers(ctx):
    return operations.get_running_timers(ctx)


@bp.patch("/<int:task_id>")
@api_view()
def update_task(ctx, task_id: int):
    return operations.update_task(ctx, task_id, json_body())


@bp.delete("/<int:task_id>")
@api_view()
def delete_task(ctx, task_id: int):
    return operations.delete_task(ctx, task_id)


@bp.post("/<int:task_id>/status")
@api_view()
def update_status(ctx, task_id: int):
    return operations.update_task_status(ctx, task_id, str(json_body().get("status", "")))


@bp.post("/<int:task_id>/time")
@api_view()
def add_time(ctx, task_id: int):
    return operations.add_task_time(ctx, task_id, int_field(json_body(), "minutes"))


@bp.get("/<int:task_id>/timer")
@api_view()
def timer_state(ctx, task_id: int):
    return operations.get_timer_state(ctx, task_id)


@bp.post("/<int:task_id>/timer/start")
@api_view()
def start_timer(ctx, task_id: int):
    return operations.start_task_timer(ctx, task_id)


@bp.post("/<int:task_id>/timer/pause")
@api_view()
def pause_timer(ctx, task_id: int):
    return operations.pause_task_timer(ctx, task_id)


@bp.post("/<int:task_id>/timer/stop")
@api_view()
def stop_timer(ctx, task_id: int):
    return operations.stop_task_timer(ctx, task_id)
