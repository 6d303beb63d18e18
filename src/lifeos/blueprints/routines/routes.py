"""Routine template and instance routes."""

from __future__ import annotations

from flask import request

from ... import operations
from ...services.clock import local_date
from ..api import api_view, int_field, json_body, optional_date, parse_date
from . import bp


@bp.get("/templates")
@api_view()
def list_templates(ctx):
    include_inactive = request.args.get("include_inactive", "").lower() in {"1", "true", "yes"}
    return operations.list_routine_templates(ctx, include_inactive=include_inactive)


@bp.post("/templates")
@api_view(success_status=201)
def create_template(ctx):
    return operations.create_routine_template(ctx, json_body())


@bp.patch("/templates/<int:template_id>")
@api_view()
def update_template(ctx, template_id: int):
    return operations.update_routine_template(ctx, template_id, json_body())


@bp.delete("/templates/<int:template_id>")
@api_view()
def delete_template(ctx, template_id: int):
    return operations.delete_routine_template(ctx, template_id)


@bp.get("/instances")
@api_view()
def list_instances(ctx):
    day = optional_date(request.args.get("date")) or local_date()
    return operations.get_routine_instances(ctx, day)


@bp.post("/instances/expand")
@api_view()
def expand_instances(ctx):
    return operations.expand_routines(ctx, parse_date(json_body().get("date")))


@bp.post("/instances/<int:instance_id>/complete")
@api_view()
def complete_instance(ctx, instance_id: int):
    return operations.complete_routine_instance(ctx, instance_id, json_body())


@bp.post("/instances/<int:instance_id>/partial")
@api_view()
def partial_instance(ctx, instance_id: int):
    return operations.partial_routine_instance(ctx, instance_id, json_body())


@bp.post("/instances/<int:instance_id>/skip")
@api_view()
def skip_instance(ctx, instance_id: int):
    return operations.skip_routine_instance(ctx, instance_id, json_body().get("skip_reason", ""))


@bp.patch("/instances/<int:instance_id>")
@api_view()
def amend_instance(ctx, instance_id: int):
    return operations.amend_routine_instance(ctx, instance_id, json_body())


@bp.post("/instances/<int:instance_id>/tasks")
@api_view(success_status=201)
def link_task(ctx, instance_id: int):
    payload = json_body()
    return operations.link_task_to_instance(
        ctx,
        instance_id,
        int_field(payload, "task_id"),
        minutes=int_field(payload, "minutes", default=0),
        notes=payload.get("notes"),
    )
