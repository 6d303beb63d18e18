"""Daily plan endpoints."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("planning", __name__, url_prefix="/api/plans")

from . import routes  # noqa: E402,F401 - import routes for registration

__all__ = ["bp"]
