"""Per-user planning preferences consumed by the slot allocator."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, ClassVar

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

DEFAULT_TIME_BLOCKS: dict[str, dict[str, str]] = {
    "morning": {"start": "06:00", "end": "12:00"},
    "noon": {"start": "12:00", "end": "14:00"},
    "afternoon": {"start": "14:00", "end": "18:00"},
    "evening": {"start": "18:00", "end": "21:00"},
    "night": {"start": "21:00", "end": "23:59"},
}


def default_time_blocks() -> dict[str, dict[str, str]]:
    return {name: dict(window) for name, window in DEFAULT_TIME_BLOCKS.items()}


class UserPreferences(SQLModel, table=True):
    """Time-block boundaries and auto-positioning switches for one user."""

    __tablename__: ClassVar[str] = "user_preferences"

    user_id: int = Field(foreign_key="user.id", primary_key=True)
    time_blocks: dict[str, Any] = Field(
        default_factory=default_time_blocks, sa_column=Column(JSON, nullable=False)
    )
    auto_position_routines: bool = Field(default=True, nullable=False)
    auto_position_tasks: bool = Field(default=False, nullable=False)
    week_starts_on: int = Field(default=1, nullable=False, ge=0, le=6)
    routine_generation_horizon_days: int = Field(default=14, nullable=False, ge=1, le=90)
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
