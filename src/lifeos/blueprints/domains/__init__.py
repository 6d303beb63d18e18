"""Domain registry endpoints."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("domains", __name__, url_prefix="/api/domains")

from . import routes  # noqa: E402,F401 - import routes for registration

__all__ = ["bp"]
