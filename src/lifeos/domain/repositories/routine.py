"""Routine template/instance and streak repository protocols."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional, Protocol

from ...models.routine import RoutineInstance, RoutineInstanceTask, RoutineTemplate, Streak


class RoutineRepository(Protocol):
    """Repository for routine templates and their dated instances."""

    def get_template(self, template_id: int, *, user_id: int) -> Optional[RoutineTemplate]:
        ...

    def list_templates(self, *, user_id: int, include_inactive: bool = False) -> list[RoutineTemplate]:
        ...

    def create_template(self, template: RoutineTemplate, *, user_id: int) -> RoutineTemplate:
        ...

    def update_template(self, template: RoutineTemplate, *, user_id: int) -> RoutineTemplate:
        ...

    def delete_template(self, template_id: int, *, user_id: int) -> None:
        ...

    def count_instances(self, template_id: int, *, user_id: int) -> int:
        ...

    def get_instance(self, instance_id: int, *, user_id: int) -> Optional[RoutineInstance]:
        ...

    def list_instances_between(
        self, start_date: date, end_date: date, *, user_id: int
    ) -> list[RoutineInstance]:
        """Instances scheduled within [start_date, end_date], inclusive."""
        ...

    def list_instances_for_date(self, on: date, *, user_id: int) -> list[RoutineInstance]:
        ...

    def list_pending_before(self, day: date, *, user_id: int) -> list[RoutineInstance]:
        ...

    def ensure_instance(
        self, template: RoutineTemplate, on: date, *, user_id: int
    ) -> tuple[RoutineInstance, bool]:
        """Return the (instance, created) pair for a template/date."""
        ...

    def transition_instance(
        self,
        instance_id: int,
        values: dict[str, Any],
        *,
        user_id: int,
        expected_status: str = "pending",
    ) -> Optional[RoutineInstance]:
        """Guarded update; None when the precondition no longer holds."""
        ...

    def update_instance(self, instance: RoutineInstance, *, user_id: int) -> RoutineInstance:
        ...

    def upsert_link(self, link: RoutineInstanceTask, *, user_id: int) -> RoutineInstanceTask:
        ...

    def list_links(self, instance_id: int, *, user_id: int) -> list[RoutineInstanceTask]:
        ...


class StreakRepository(Protocol):
    """Repository for per-template streak counters."""

    def get(self, template_id: int, *, user_id: int) -> Optional[Streak]:
        ...

    def list_all(self, *, user_id: int) -> list[Streak]:
        ...

    def save(self, streak: Streak, *, user_id: int) -> Streak:
        ...
