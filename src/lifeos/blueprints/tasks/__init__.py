"""Task, status and timer endpoints."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")

from . import routes  # noqa: E402,F401 - import routes for registration

__all__ = ["bp"]
