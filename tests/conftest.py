"""Pytest configuration and shared fixtures for LifeOS tests.

Every test gets its own SQLite file, a session factory bound to it, a default
user and an :class:`~lifeos.context.AppContext` authenticated as that user.
Dates are fixed so recurrence anchors and "today" checks are deterministic.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import Any

import pytest
from sqlmodel import select

from lifeos.config import TestConfig
from lifeos.context import AppContext, build_app_context
from lifeos.infra.database import create_db_engine, create_session_factory, init_database
from lifeos.models import Domain, RoutineTemplate, Task, User
from lifeos.services import tasks as task_service

# Templates are anchored here so every test date below recurs normally.
ANCHOR = datetime(2030, 1, 1, 8, 0, tzinfo=timezone.utc)
# A Monday.
DAY = date(2030, 3, 4)


def noon(day: date) -> datetime:
    """Midday UTC, which falls on ``day`` in every common local timezone."""

    return datetime.combine(day, time(12, 0), tzinfo=timezone.utc)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def config(tmp_path, monkeypatch):
    """Test configuration pointing at a throwaway data directory and database."""

    monkeypatch.setenv("LIFEOS_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("LIFEOS_DEV_MODE", "true")
    cfg = TestConfig()
    cfg.DATABASE_URL = f"sqlite:///{tmp_path / 'lifeos-test.db'}"
    return cfg


@pytest.fixture(scope="function")
def db_engine(config):
    """Create an isolated SQLite database for each test.

    Yields:
        Engine: engine with every table created
    """
    engine = create_db_engine(config)
    init_database(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Transactional session factory with a bootstrapped default user."""

    factory = create_session_factory(db_engine)
    with factory() as session:
        existing = session.exec(select(User).where(User.username == "tester")).first()
        if existing is None:
            existing = User(username="tester", password_hash="dummy-hash", role="admin")
            session.add(existing)
            session.commit()
            session.refresh(existing)
        session.expunge(existing)
    factory.user = existing  # type: ignore[attr-defined]
    return factory


@pytest.fixture
def user(session_factory) -> User:
    return session_factory.user  # type: ignore[attr-defined]


@pytest.fixture
def ctx(config, session_factory, user) -> AppContext:
    """Context authenticated as the default user."""

    return build_app_context(config, session_factory).for_user(user)


@pytest.fixture
def other_ctx(config, session_factory) -> AppContext:
    """Context for a second user, to check ownership scoping."""

    with session_factory() as session:
        other = User(username="someone-else", password_hash="dummy-hash")
        session.add(other)
        session.commit()
        session.refresh(other)
        session.expunge(other)
    return build_app_context(config, session_factory).for_user(other)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def domain_factory(ctx):
    """Factory for persisted domains."""

    def _create_domain(name: str = "Health", color: str = "#10B981", **extra: Any) -> Domain:
        return ctx.domain_repo.create(
            Domain(user_id=ctx.require_user_id(), name=name, color=color, **extra),
            user_id=ctx.require_user_id(),
        )

    return _create_domain


@pytest.fixture
def template_factory(ctx):
    """Factory for routine templates anchored at :data:`ANCHOR`.

    Keyword shortcuts: ``minutes`` sets the duration constraint, ``slot`` a
    ``(start, end)`` timeSlot as HH:MM strings and ``target`` a target value.
    """

    def _create_template(
        name: str = "Morning run",
        *,
        rule: str = "FREQ=DAILY",
        priority: str = "medium",
        moment: str | None = None,
        minutes: int | None = None,
        slot: tuple[str, str] | None = None,
        target: float | None = None,
        created_at: datetime = ANCHOR,
        **extra: Any,
    ) -> RoutineTemplate:
        constraints: dict[str, Any] = {}
        if minutes is not None:
            constraints["duration"] = {"required": True, "minutes": minutes}
        if slot is not None:
            constraints["timeSlot"] = {"required": True, "startTime": slot[0], "endTime": slot[1]}
        if target is not None:
            constraints["targetValue"] = {"required": True, "value": target, "unit": "km"}
        template = RoutineTemplate(
            user_id=ctx.require_user_id(),
            name=name,
            priority=priority,
            category_moment=moment,
            constraints=constraints,
            recurrence_rule=rule,
            created_at=created_at,
            **extra,
        )
        return ctx.routine_repo.create_template(template, user_id=ctx.require_user_id())

    return _create_template


@pytest.fixture
def task_factory(ctx):
    """Factory for tasks created through the task service."""

    def _create_task(title: str = "Write report", **fields: Any) -> Task:
        return task_service.create_task(ctx, {"title": title, **fields})

    return _create_task


@pytest.fixture(autouse=True)
def lifeos_logging():
    """Emit every ``lifeos`` record at DEBUG, then detach handlers installed by ``setup_logging``."""

    logger = logging.getLogger("lifeos")
    logger.setLevel(logging.DEBUG)
    yield logger
    logger.setLevel(logging.NOTSET)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
