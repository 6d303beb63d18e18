"""Project routes."""

from __future__ import annotations

from flask import request

from ... import operations
from ..api import api_view, json_body
from . import bp


@bp.get("/")
@api_view()
def list_projects(ctx):
    return operations.list_projects(ctx, status=request.args.get("status") or None)


@bp.post("/")
@api_view(success_status=201)
def create_project(ctx):
    return operations.create_project(ctx, json_body())


@bp.patch("/<int:project_id>")
@api_view()
def update_project(ctx, project_id: int):
    return operations.update_project(ctx, project_id, json_body())


@bp.delete("/<int:project_id>")
@api_view()
def delete_project(ctx, project_id: int):
    return operations.delete_project(ctx, project_id)


@bp.get("/<int:project_id>/progress")
@api_view()
def project_progress(ctx, project_id: int):
    return operations.get_project_progress(ctx, project_id)
