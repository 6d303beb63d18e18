"""Routine templates, their dated instances and per-template streaks."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, ClassVar, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel


class CategoryMoment(str, Enum):
    """Moment-of-day blocks used for coarse auto-placement."""

    MORNING = "morning"
    NOON = "noon"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class CategoryType(str, Enum):
    PROFESSIONAL = "professional"
    PERSONAL = "personal"
    SPIRITUAL = "spiritual"
    HEALTH = "health"
    LEARNING = "learning"
    LEISURE = "leisure"
    ENERGY = "energy"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_RANK = {Priority.HIGH.value: 0, Priority.MEDIUM.value: 1, Priority.LOW.value: 2}


class InstanceStatus(str, Enum):
    """Routine instance lifecycle; everything but ``pending`` is terminal."""

    PENDING = "pending"
    COMPLETED = "completed"
    PARTIAL = "partial"
    SKIPPED = "skipped"


class RoutineTemplate(SQLModel, table=True):
    """Recurring activity definition that expands into dated instances."""

    __tablename__: ClassVar[str] = "routine_template"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120, index=True)
    description: Optional[str] = Field(default=None, max_length=500)
    domain_id: Optional[int] = Field(default=None, foreign_key="domain.id", index=True)
    category_moment: Optional[str] = Field(default=None, max_length=16)
    category_type: Optional[str] = Field(default=None, max_length=16)
    priority: str = Field(default=Priority.MEDIUM.value, max_length=8, nullable=False)
    is_flexible: bool = Field(default=True, nullable=False)
    is_active: bool = Field(default=True, nullable=False, index=True)
    constraints: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    recurrence_rule: str = Field(default="FREQ=DAILY", max_length=255, nullable=False)
    recurrence_config: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    instances: list["RoutineInstance"] = Relationship(
        back_populates="template",
        sa_relationship=relationship("RoutineInstance", back_populates="template"),
    )

    @property
    def duration_minutes(self) -> int:
        """Planned duration from the ``duration`` constraint, defaulting to 30."""

        duration = (self.constraints or {}).get("duration") or {}
        minutes = duration.get("minutes")
        return int(minutes) if minutes else 30

    @property
    def target_value(self) -> Optional[float]:
        target = (self.constraints or {}).get("targetValue") or {}
        value = target.get("value")
        return float(value) if value else None

    @property
    def time_slot(self) -> Optional[tuple[time, time]]:
        """Explicit ``timeSlot`` window, when both ends are set."""

        slot = (self.constraints or {}).get("timeSlot") or {}
        start, end = slot.get("startTime"), slot.get("endTime")
        if not start or not end:
            return None
        return time.fromisoformat(start), time.fromisoformat(end)


class RoutineInstance(SQLModel, table=True):
    """One concrete occurrence of a template on ``scheduled_date``."""

    __tablename__: ClassVar[str] = "routine_instance"
    __table_args__ = (UniqueConstraint("template_id", "scheduled_date", name="uq_instance_template_date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    template_id: int = Field(foreign_key="routine_template.id", nullable=False, index=True)
    scheduled_date: date = Field(nullable=False, index=True)
    scheduled_start: Optional[time] = Field(default=None)
    scheduled_end: Optional[time] = Field(default=None)
    actual_start: Optional[datetime] = Field(default=None)
    actual_end: Optional[datetime] = Field(default=None)
    status: str = Field(default=InstanceStatus.PENDING.value, max_length=16, nullable=False, index=True)
    actual_value: Optional[float] = Field(default=None)
    mood_before: Optional[int] = Field(default=None)
    mood_after: Optional[int] = Field(default=None)
    energy_level: Optional[int] = Field(default=None)
    notes: Optional[str] = Field(default=None, max_length=2000)
    skip_reason: Optional[str] = Field(default=None, max_length=200)
    completion_score: Optional[int] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    template: "RoutineTemplate" = Relationship(
        back_populates="instances",
        sa_relationship=relationship("RoutineTemplate", back_populates="instances"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status != InstanceStatus.PENDING.value

    @property
    def duration_minutes(self) -> int:
        """Minutes actually spent, derived from the actual start/end stamps."""

        if self.actual_start is None or self.actual_end is None:
            return 0
        start = self.actual_start.replace(tzinfo=None)
        end = self.actual_end.replace(tzinfo=None)
        return max(0, round((end - start).total_seconds() / 60))


class RoutineInstanceTask(SQLModel, table=True):
    """Join row recording time spent on a task during a routine instance."""

    __tablename__: ClassVar[str] = "routine_instance_task"

    instance_id: int = Field(foreign_key="routine_instance.id", primary_key=True)
    task_id: int = Field(foreign_key="task.id", primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    time_spent_minutes: int = Field(default=0, nullable=False, ge=0)
    notes: Optional[str] = Field(default=None, max_length=500)


class Streak(SQLModel, table=True):
    """Derived consecutive-completion counters per (user, template)."""

    __tablename__: ClassVar[str] = "streak"
    __table_args__ = (UniqueConstraint("user_id", "template_id", name="uq_streak_user_template"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    template_id: int = Field(foreign_key="routine_template.id", nullable=False, index=True)
    current_streak: int = Field(default=0, nullable=False)
    longest_streak: int = Field(default=0, nullable=False)
    last_completed_date: Optional[date] = Field(default=None)
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
