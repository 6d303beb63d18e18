"""Domain routes."""

from __future__ import annotations

from ... import operations
from ...errors import ValidationError
from ..api import api_view, json_body
from . import bp


@bp.get("/")
@api_view()
def list_domains(ctx):
    return operations.list_domains(ctx)


@bp.post("/")
@api_view(success_status=201)
def create_domain(ctx):
    return operations.create_domain(ctx, json_body())


@bp.post("/seed")
@api_view()
def seed_domains(ctx):
    return operations.seed_default_domains(ctx)


@bp.post("/reorder")
@api_view()
def reorder_domains(ctx):
    ids = json_body().get("ids")
    if not isinstance(ids, list):
        raise ValidationError("ids must be a list of domain ids")
    return operations.reorder_domains(ctx, ids)


@bp.patch("/<int:domain_id>")
@api_view()
def update_domain(ctx, domain_id: int):
    return operations.update_domain(ctx, domain_id, json_body())


@bp.delete("/<int:domain_id>")
@api_view()
def delete_domain(ctx, domain_id: int):
    return operations.delete_domain(ctx, domain_id)
