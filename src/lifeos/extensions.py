"""Database and context wiring for the Flask app."""

from __future__ import annotations

from flask import Flask, current_app

from .config import BaseConfig
from .context import AppContext, build_app_context
from .infra.database import bootstrap_database


def init_db(app: Flask) -> None:
    """Build the engine, create the schema and store a shared context on the app."""

    config: BaseConfig = app.config["LIFEOS_CONFIG"]
    engine, session_factory = bootstrap_database(config)
    app.extensions["lifeos_engine"] = engine
    app.extensions["lifeos"] = build_app_context(config, session_factory)


def get_base_context() -> AppContext:
    """Return the unauthenticated context of the current app."""

    if "lifeos" not in current_app.extensions:  # pragma: no cover - misconfigured app
        raise RuntimeError("Database not initialized")
    return current_app.extensions["lifeos"]
