"""SQLModel repository implementations."""

from .domain import SQLModelDomainRepository
from .plan import SQLModelPlanRepository
from .preferences import SQLModelPreferencesRepository
from .project import SQLModelProjectRepository
from .routine import SQLModelRoutineRepository
from .streak import SQLModelStreakRepository
from .task import SQLModelTaskRepository

__all__ = [
    "SQLModelDomainRepository",
    "SQLModelPlanRepository",
    "SQLModelPreferencesRepository",
    "SQLModelProjectRepository",
    "SQLModelRoutineRepository",
    "SQLModelStreakRepository",
    "SQLModelTaskRepository",
]
