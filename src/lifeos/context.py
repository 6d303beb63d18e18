"""Explicit per-request context passed to every core operation."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .config import BaseConfig
from .domain.repositories import (
    DomainRepository,
    PlanRepository,
    PreferencesRepository,
    ProjectRepository,
    RoutineRepository,
    StreakRepository,
    TaskRepository,
)
from .errors import Unauthenticated
from .infra.database import SessionFactory
from .infra.repositories import (
    SQLModelDomainRepository,
    SQLModelPlanRepository,
    SQLModelPreferencesRepository,
    SQLModelProjectRepository,
    SQLModelRoutineRepository,
    SQLModelStreakRepository,
    SQLModelTaskRepository,
)
from .models.user import User


@dataclass
class AppContext:
    """Configuration, repositories and the authenticated user for one request."""

    # Configuration
    config: BaseConfig

    # Session factory
    session_factory: SessionFactory

    # Repositories
    domain_repo: DomainRepository
    routine_repo: RoutineRepository
    streak_repo: StreakRepository
    task_repo: TaskRepository
    project_repo: ProjectRepository
    plan_repo: PlanRepository
    preferences_repo: PreferencesRepository

    current_user: Optional[User] = None

    def require_user_id(self) -> int:
        """Return the current user id or raise if not set."""

        if self.current_user is None or self.current_user.id is None:
            raise Unauthenticated("User is not authenticated")
        return self.current_user.id

    def for_user(self, user: Optional[User]) -> "AppContext":
        """Return a copy bound to ``user``; repositories are shared."""
        return replace(self, current_user=user)


def build_app_context(config: BaseConfig, session_factory: SessionFactory) -> AppContext:
    """Wire the SQLModel repositories around an existing session factory."""

    return AppContext(
        config=config,
        session_factory=session_factory,
        domain_repo=SQLModelDomainRepository(session_factory),
        routine_repo=SQLModelRoutineRepository(session_factory),
        streak_repo=SQLModelStreakRepository(session_factory),
        task_repo=SQLModelTaskRepository(session_factory),
        project_repo=SQLModelProjectRepository(session_factory),
        plan_repo=SQLModelPlanRepository(session_factory),
        preferences_repo=SQLModelPreferencesRepository(session_factory),
    )


__all__ = ["AppContext", "build_app_context"]
