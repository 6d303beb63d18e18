"""Input models validating operation payloads before they reach the services."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .models.domain import DEFAULT_DOMAIN_COLOR, DEFAULT_DOMAIN_ICON
from .models.preferences import default_time_blocks
from .models.project import ProjectStatus
from .models.routine import CategoryMoment, CategoryType, Priority
from .models.task import TaskStatus
from .services.recurrence import RECURRENCE_TYPES, validate_rule

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class _Form(BaseModel):
    """Shared configuration for all forms."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True, extra="ignore")


class DomainForm(_Form):
    """Create or edit a life-area domain."""

    name: str = Field(min_length=1, max_length=80)
    color: str = Field(default=DEFAULT_DOMAIN_COLOR, pattern=HEX_COLOR)
    icon: str = Field(default=DEFAULT_DOMAIN_ICON, max_length=16)
    vision: Optional[str] = Field(default=None, max_length=500)
    daily_target_minutes: Optional[int] = Field(default=None, ge=0, le=1440)
    weekly_target_minutes: Optional[int] = Field(default=None, ge=0, le=10080)


class DurationConstraint(_Form):
    required: bool = False
    minutes: int = Field(default=30, ge=1, le=1440)


class TimeSlotConstraint(_Form):
    required: bool = False
    start_time: time = Field(alias="startTime")
    end_time: time = Field(alias="endTime")

    @model_validator(mode="after")
    def check_order(self) -> "TimeSlotConstraint":
        if self.end_time <= self.start_time:
            raise ValueError("timeSlot endTime must be after startTime.")
        return self


class TargetValueConstraint(_Form):
    required: bool = False
    value: float = Field(gt=0)
    unit: str = Field(default="", max_length=32)


class RoutineConstraints(_Form):
    duration: Optional[DurationConstraint] = None
    time_slot: Optional[TimeSlotConstraint] = Field(default=None, alias="timeSlot")
    target_value: Optional[TargetValueConstraint] = Field(default=None, alias="targetValue")

    def to_storage(self) -> dict[str, Any]:
        """Camel-cased JSON stored on the template; times as HH:MM."""

        payload = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        slot = payload.get("timeSlot")
        if slot:
            slot["startTime"] = self.time_slot.start_time.strftime("%H:%M")  # type: ignore[union-attr]
            slot["endTime"] = self.time_slot.end_time.strftime("%H:%M")  # type: ignore[union-attr]
        return payload


class RecurrenceConfig(_Form):
    type: str = "daily"
    interval: int = Field(default=1, ge=1, le=365)
    days_of_week: list[int] = Field(default_factory=list, alias="daysOfWeek")
    days_of_month: list[int] = Field(default_factory=list, alias="daysOfMonth")
    exclude_weekends: bool = Field(default=False, alias="excludeWeekends")

    @field_validator("type")
    @classmethod
    def known_type(cls, value: str) -> str:
        if value not in RECURRENCE_TYPES:
            raise ValueError(f"Recurrence type must be one of {', '.join(RECURRENCE_TYPES)}.")
        return value

    @field_validator("days_of_week")
    @classmethod
    def weekday_range(cls, value: list[int]) -> list[int]:
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("daysOfWeek values must be between 0 (Sunday) and 6.")
        return sorted(set(value))

    @field_validator("days_of_month")
    @classmethod
    def monthday_range(cls, value: list[int]) -> list[int]:
        if any(day < 1 or day > 31 for day in value):
            raise ValueError("daysOfMonth values must be between 1 and 31.")
        return sorted(set(value))

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class RoutineTemplateForm(_Form):
    """Create or edit a routine template."""

    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)
    domain_id: Optional[int] = None
    category_moment: Optional[CategoryMoment] = None
    category_type: Optional[CategoryType] = None
    priority: Priority = Priority.MEDIUM
    is_flexible: bool = True
    is_active: bool = True
    constraints: RoutineConstraints = Field(default_factory=RoutineConstraints)
    recurrence_config: RecurrenceConfig = Field(default_factory=RecurrenceConfig)
    recurrence_rule: Optional[str] = Field(default=None, max_length=255)

    @field_validator("recurrence_rule")
    @classmethod
    def parseable_rule(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return validate_rule(value)


class CompletionForm(_Form):
    """Tracking fields recorded when an instance is completed or partially done."""

    actual_value: Optional[float] = Field(default=None, ge=0)
    mood_before: Optional[int] = Field(default=None, ge=1, le=5)
    mood_after: Optional[int] = Field(default=None, ge=1, le=5)
    energy_level: Optional[int] = Field(default=None, ge=1, le=10)
    notes: Optional[str] = Field(default=None, max_length=2000)
    actual_start: Optional[datetime] = None


class SkipForm(_Form):
    skip_reason: str = Field(min_length=1, max_length=200)

    @field_validator("skip_reason")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("A skip reason is required.")
        return value


class AmendForm(_Form):
    """Same-day amendments allowed on a terminal instance."""

    notes: Optional[str] = Field(default=None, max_length=2000)
    mood_after: Optional[int] = Field(default=None, ge=1, le=5)


class TaskForm(_Form):
    """Create or edit a task."""

    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    domain_id: Optional[int] = None
    project_id: Optional[int] = None
    parent_task_id: Optional[int] = None
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    due_date: Optional[date] = None
    due_time: Optional[time] = None
    pinned_date: Optional[date] = None
    estimated_minutes: Optional[int] = Field(default=None, ge=0, le=1440)
    is_deadline_strict: bool = False

    @model_validator(mode="after")
    def due_time_needs_date(self) -> "TaskForm":
        if self.due_time is not None and self.due_date is None:
            raise ValueError("due_time requires a due_date.")
        return self


class ProjectForm(_Form):
    """Create or edit a project."""

    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=1000)
    domain_id: Optional[int] = None
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)
    status: ProjectStatus = ProjectStatus.ACTIVE
    start_date: Optional[date] = None
    target_date: Optional[date] = None

    @model_validator(mode="after")
    def dates_in_order(self) -> "ProjectForm":
        if self.start_date and self.target_date and self.target_date < self.start_date:
            raise ValueError("target_date must not precede start_date.")
        return self


class TimeBlock(_Form):
    start: time
    end: time

    @model_validator(mode="after")
    def check_order(self) -> "TimeBlock":
        if self.end <= self.start:
            raise ValueError("Time block end must be after its start.")
        return self


class PreferencesForm(_Form):
    """Persisted per-user planning preferences."""

    time_blocks: dict[CategoryMoment, TimeBlock] = Field(
        default_factory=lambda: {CategoryMoment(k): TimeBlock.model_validate(v) for k, v in default_time_blocks().items()}
    )
    auto_position_routines: bool = True
    auto_position_tasks: bool = False
    week_starts_on: int = Field(default=1, ge=0, le=6)
    routine_generation_horizon_days: int = Field(default=14, ge=1, le=90)

    @field_validator("time_blocks")
    @classmethod
    def all_blocks_present(cls, value: dict[CategoryMoment, TimeBlock]) -> dict[CategoryMoment, TimeBlock]:
        missing = [m.value for m in CategoryMoment if m not in value]
        if missing:
            raise ValueError(f"Missing time blocks: {', '.join(missing)}.")
        return value

    def blocks_for_storage(self) -> dict[str, dict[str, str]]:
        return {
            moment.value: {"start": block.start.strftime("%H:%M"), "end": block.end.strftime("%H:%M")}
            for moment, block in self.time_blocks.items()
        }


class PlanPreferences(_Form):
    """Per-call day bounds for plan generation."""

    wake_time: time = Field(default=time(7, 0), alias="wakeTime")
    sleep_time: time = Field(default=time(22, 0), alias="sleepTime")
    lunch_break_start: Optional[time] = Field(default=None, alias="lunchBreakStart")
    lunch_break_duration: int = Field(default=0, ge=0, le=240, alias="lunchBreakDuration")

    @model_validator(mode="after")
    def wake_before_sleep(self) -> "PlanPreferences":
        if self.sleep_time <= self.wake_time:
            raise ValueError("sleepTime must be after wakeTime.")
        return self


__all__ = [
    "AmendForm",
    "CompletionForm",
    "DomainForm",
    "PlanPreferences",
    "PreferencesForm",
    "ProjectForm",
    "RecurrenceConfig",
    "RoutineConstraints",
    "RoutineTemplateForm",
    "SkipForm",
    "TaskForm",
]
