"""Plan and preferences repository protocols."""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Optional, Protocol

from ...models.plan import GeneratedPlan, PlanSlot
from ...models.preferences import UserPreferences


class PlanRepository(Protocol):
    """Repository for generated plans and their slots."""

    def get_for_date(self, on: date, *, user_id: int) -> Optional[GeneratedPlan]:
        """Retrieve the plan for a date, if any."""
        ...

    def get_by_id(self, plan_id: int, *, user_id: int) -> Optional[GeneratedPlan]:
        ...

    def list_slots(self, plan_id: int, *, user_id: int) -> list[PlanSlot]:
        ...

    def get_slot(self, slot_id: int, *, user_id: int) -> Optional[PlanSlot]:
        ...

    def create_with_slots(
        self, plan: GeneratedPlan, slots: Iterable[PlanSlot], *, user_id: int
    ) -> GeneratedPlan:
        """Insert plan + slots atomically."""
        ...

    def replace_unpreserved_slots(
        self,
        plan_id: int,
        slots: Iterable[PlanSlot],
        *,
        user_id: int,
        optimization_score: Optional[int],
        generation_params: dict[str, Any],
    ) -> GeneratedPlan:
        """Replace unlocked, unexecuted slots atomically."""
        ...

    def update_plan(self, plan: GeneratedPlan, *, user_id: int) -> GeneratedPlan:
        ...

    def update_slot(self, slot: PlanSlot, *, user_id: int) -> PlanSlot:
        ...


class PreferencesRepository(Protocol):
    """Repository for per-user planning preferences."""

    def get(self, *, user_id: int) -> Optional[UserPreferences]:
        ...

    def upsert(self, prefs: UserPreferences, *, user_id: int) -> UserPreferences:
        ...
