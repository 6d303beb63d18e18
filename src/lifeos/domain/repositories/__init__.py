"""Repository protocols used by the service layer."""

from .domain import DomainRepository
from .plan import PlanRepository, PreferencesRepository
from .routine import RoutineRepository, StreakRepository
from .task import ProjectRepository, TaskRepository

__all__ = [
    "DomainRepository",
    "PlanRepository",
    "PreferencesRepository",
    "ProjectRepository",
    "RoutineRepository",
    "StreakRepository",
    "TaskRepository",
]
