"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, falling back on malformed values."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "LifeOS"
    DB_FILENAME = "lifeos.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}
    DEFAULT_DB_TIMEOUT = 5.0

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("LIFEOS_SECRET_KEY", "replace-me")
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("LIFEOS_DEV_MODE", default=True)
        self.DB_TIMEOUT = _env_float("LIFEOS_DB_TIMEOUT", self.DEFAULT_DB_TIMEOUT)
        self.SCHEDULER_ENABLED = _env_bool("LIFEOS_SCHEDULER_ENABLED", default=False)
        self.DATABASE_URL = os.getenv("LIFEOS_DATABASE_URL", self._build_sqlite_url())
        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("LIFEOS_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("LIFEOS_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {}
        if self.is_sqlite:
            # sqlite3 busy timeout doubles as the connect timeout
            connect_args.update({"check_same_thread": False, "timeout": self.DB_TIMEOUT})
        else:
            connect_args["connect_timeout"] = int(self.DB_TIMEOUT)
        return {"connect_args": connect_args, "pool_pre_ping": True}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration used by the test-suite; callers usually override DATABASE_URL."""

    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.SCHEDULER_ENABLED = False


__all__ = ["BaseConfig", "DevConfig", "TestConfig"]
