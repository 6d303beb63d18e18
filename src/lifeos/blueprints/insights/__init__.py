"""Streak and analytics endpoints."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("insights", __name__, url_prefix="/api/insights")

from . import routes  # noqa: E402,F401 - import routes for registration

__all__ = ["bp"]
