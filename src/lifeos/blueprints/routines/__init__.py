"""Routine template and instance endpoints."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("routines", __name__, url_prefix="/api/routines")

from . import routes  # noqa: E402,F401 - import routes for registration

__all__ = ["bp"]
