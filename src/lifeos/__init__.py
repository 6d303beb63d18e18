"""LifeOS daily planning application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable, Optional

from flask import Flask

from . import cli as _cli
from .config import BaseConfig, DevConfig, TestConfig

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    """Yield blueprint import paths exposed under ``/api``."""

    yield "lifeos.blueprints.planning"
    yield "lifeos.blueprints.routines"
    yield "lifeos.blueprints.tasks"
    yield "lifeos.blueprints.projects"
    yield "lifeos.blueprints.domains"
    yield "lifeos.blueprints.insights"


def create_app(config_name: str | None = None, *, config: Optional[BaseConfig] = None) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__, instance_relative_config=True)
    config_obj = config or _resolve_config(config_name)()
    app.config.from_object(config_obj)
    app.config["LIFEOS_CONFIG"] = config_obj

    from .logging_config import setup_logging

    setup_logging(config_obj)
    _register_blueprints(app)

    # Deferred so that importing models alone does not build the engine.
    from .extensions import init_db

    init_db(app)
    _cli.init_app(app)

    if config_obj.SCHEDULER_ENABLED:
        from .scheduler import create_scheduler

        app.extensions["lifeos_scheduler"] = create_scheduler(app.extensions["lifeos"], auto_start=True)

    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        blueprint = getattr(module, "bp")
        app.register_blueprint(blueprint)


__all__ = ["BaseConfig", "DevConfig", "TestConfig", "create_app"]
