"""Projects group tasks; their progress is derived, never stored."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class Project(SQLModel, table=True):
    """A user project owning zero or more tasks."""

    __tablename__: ClassVar[str] = "project"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120, index=True)
    description: Optional[str] = Field(default=None, max_length=1000)
    domain_id: Optional[int] = Field(default=None, foreign_key="domain.id", index=True)
    color: Optional[str] = Field(default=None, max_length=7)
    status: str = Field(default=ProjectStatus.ACTIVE.value, max_length=16, nullable=False)
    start_date: Optional[date] = Field(default=None)
    target_date: Optional[date] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
