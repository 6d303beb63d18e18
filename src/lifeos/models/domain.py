"""Life-area domains used to tag routines, tasks and projects."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

DEFAULT_DOMAIN_ICON = "📌"
DEFAULT_DOMAIN_COLOR = "#6B7280"


class Domain(SQLModel, table=True):
    """A user-owned life area, referenced (never owned) by other entities."""

    __tablename__: ClassVar[str] = "domain"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=80, index=True)
    color: str = Field(default=DEFAULT_DOMAIN_COLOR, max_length=7)
    icon: str = Field(default=DEFAULT_DOMAIN_ICON, max_length=16)
    vision: Optional[str] = Field(default=None, max_length=500)
    sort_order: int = Field(default=0, nullable=False)
    is_default: bool = Field(default=False, nullable=False)
    daily_target_minutes: Optional[int] = Field(default=None, ge=0)
    weekly_target_minutes: Optional[int] = Field(default=None, ge=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
