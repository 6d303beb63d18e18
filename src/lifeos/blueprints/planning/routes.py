"""Plan routes."""

from __future__ import annotations

from ... import operations
from ..api import api_view, json_body, parse_date
from . import bp


@bp.get("/preferences")
@api_view()
def get_preferences(ctx):
    return operations.get_preferences(ctx)


@bp.patch("/preferences")
@api_view()
def update_preferences(ctx):
    return operations.update_preferences(ctx, json_body())


@bp.get("/<day>")
@api_view()
def get_plan(ctx, day: str):
    return operations.get_plan_for_date(ctx, parse_date(day))


@bp.post("/<day>/generate")
@api_view(success_status=201)
def generate_plan(ctx, day: str):
    payload = json_body()
    return operations.generate_plan(
        ctx,
        parse_date(day),
        regenerate=bool(payload.get("regenerate", False)),
        preferences=payload.get("preferences"),
    )


@bp.get("/<day>/slots")
@api_view()
def plan_slots(ctx, day: str):
    return operations.get_plan_slots_with_details(ctx, parse_date(day))


@bp.post("/<day>/finalize")
@api_view()
def finalize_plan(ctx, day: str):
    return operations.finalize_plan(ctx, parse_date(day))


@bp.post("/<day>/stale")
@api_view()
def mark_plan_stale(ctx, day: str):
    return operations.mark_plan_stale(ctx, parse_date(day))


@bp.post("/slots/<int:slot_id>/lock")
@api_view()
def lock_slot(ctx, slot_id: int):
    return operations.lock_slot(ctx, slot_id)


@bp.post("/slots/<int:slot_id>/unlock")
@api_view()
def unlock_slot(ctx, slot_id: int):
    return operations.unlock_slot(ctx, slot_id)


@bp.post("/slots/<int:slot_id>/executed")
@api_view()
def mark_slot_executed(ctx, slot_id: int):
    return operations.mark_slot_executed(ctx, slot_id, bool(json_body().get("executed", True)))
