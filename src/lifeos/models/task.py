"""Task entity with its status lifecycle and persisted timer state."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class TaskStatus(str, Enum):
    BACKLOG = "backlog"
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    DONE = "done"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"


class Task(SQLModel, table=True):
    """One-off or project-linked unit of work."""

    __tablename__: ClassVar[str] = "task"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    title: str = Field(nullable=False, max_length=200, index=True)
    description: Optional[str] = Field(default=None, max_length=2000)
    domain_id: Optional[int] = Field(default=None, foreign_key="domain.id", index=True)
    project_id: Optional[int] = Field(default=None, foreign_key="project.id", index=True)
    parent_task_id: Optional[int] = Field(default=None, foreign_key="task.id")
    priority: str = Field(default="medium", max_length=8, nullable=False)
    status: str = Field(default=TaskStatus.TODO.value, max_length=16, nullable=False, index=True)
    due_date: Optional[date] = Field(default=None, index=True)
    due_time: Optional[time] = Field(default=None)
    pinned_date: Optional[date] = Field(default=None, index=True)
    estimated_minutes: Optional[int] = Field(default=None, ge=0)
    actual_minutes: int = Field(default=0, nullable=False, ge=0)
    is_deadline_strict: bool = Field(default=False, nullable=False)
    completed_at: Optional[datetime] = Field(default=None)

    # Timer state survives client restarts; elapsed time is always recomputed.
    timer_is_running: bool = Field(default=False, nullable=False)
    timer_started_at: Optional[datetime] = Field(default=None)
    timer_accumulated_seconds: int = Field(default=0, nullable=False, ge=0)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
