"""SQLModel table exports."""

from .domain import Domain
from .plan import GeneratedPlan, PlanSlot, PlanStatus, SlotType
from .preferences import UserPreferences
from .project import Project, ProjectStatus
from .routine import (
    CategoryMoment,
    CategoryType,
    InstanceStatus,
    Priority,
    RoutineInstance,
    RoutineInstanceTask,
    RoutineTemplate,
    Streak,
)
from .task import Task, TaskStatus
from .user import User

__all__ = [
    "CategoryMoment",
    "CategoryType",
    "Domain",
    "GeneratedPlan",
    "InstanceStatus",
    "PlanSlot",
    "PlanStatus",
    "Priority",
    "Project",
    "ProjectStatus",
    "RoutineInstance",
    "RoutineInstanceTask",
    "RoutineTemplate",
    "SlotType",
    "Streak",
    "Task",
    "TaskStatus",
    "User",
    "UserPreferences",
]
