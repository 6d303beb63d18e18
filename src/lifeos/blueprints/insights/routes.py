"""Streak and analytics routes."""

from __future__ import annotations

from flask import request

from ... import operations
from ..api import api_view, optional_date, optional_int
from . import bp


@bp.get("/streaks")
@api_view()
def streaks(ctx):
    return operations.get_streaks(ctx)


@bp.get("/weekly")
@api_view()
def weekly(ctx):
    return operations.get_weekly_stats(ctx, optional_date(request.args.get("week_start"), field="week_start"))


@bp.get("/overview")
@api_view()
def overview(ctx):
    return operations.get_overview_stats(ctx)


@bp.get("/heat")
@api_view()
def heat(ctx):
    days = optional_int(request.args.get("days"), field="days") or 28
    return operations.get_activity_heat(ctx, days=days)
