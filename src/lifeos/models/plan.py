"""Generated day plans and their time-boxed slots."""

from __future__ import annotations

import datetime as dt
from datetime import datetime, time, timezone
from enum import Enum
from typing import Any, ClassVar, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel


class PlanStatus(str, Enum):
    DRAFT = "draft"
    FINAL = "final"


class SlotType(str, Enum):
    ROUTINE = "routine"
    TASK = "task"
    BREAK = "break"


class GeneratedPlan(SQLModel, table=True):
    """The single plan for a (user, date) pair."""

    __tablename__: ClassVar[str] = "generated_plan"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_plan_user_date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    date: dt.date = Field(nullable=False, index=True)
    status: str = Field(default=PlanStatus.DRAFT.value, max_length=8, nullable=False)
    optimization_score: Optional[int] = Field(default=None)
    ai_model: Optional[str] = Field(default=None, max_length=64)
    generation_params: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    slots: list["PlanSlot"] = Relationship(
        back_populates="plan",
        sa_relationship=relationship(
            "PlanSlot",
            back_populates="plan",
            cascade="all, delete-orphan",
            order_by="PlanSlot.sort_order",
        ),
    )


class PlanSlot(SQLModel, table=True):
    """A time-boxed entry referencing a routine instance, a task or a break."""

    __tablename__: ClassVar[str] = "plan_slot"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    plan_id: int = Field(foreign_key="generated_plan.id", nullable=False, index=True)
    slot_type: str = Field(default=SlotType.TASK.value, max_length=8, nullable=False)
    entity_type: Optional[str] = Field(default=None, max_length=8)
    entity_id: Optional[int] = Field(default=None, index=True)
    start_time: time = Field(nullable=False)
    end_time: time = Field(nullable=False)
    sort_order: int = Field(default=0, nullable=False)
    is_locked: bool = Field(default=False, nullable=False)
    was_executed: bool = Field(default=False, nullable=False)
    ai_reasoning: Optional[str] = Field(default=None, max_length=500)

    plan: "GeneratedPlan" = Relationship(
        back_populates="slots",
        sa_relationship=relationship("GeneratedPlan", back_populates="slots"),
    )

    @property
    def is_preserved(self) -> bool:
        """Locked or executed slots survive regeneration untouched."""
        return self.is_locked or self.was_executed

    @property
    def entity_key(self) -> Optional[tuple[str, int]]:
        if self.entity_type is None or self.entity_id is None:
            return None
        return self.entity_type, self.entity_id
