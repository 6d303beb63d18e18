"""SQLModel implementation of generated plan and slot storage."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional

from sqlmodel import Session, select

from ...models.plan import GeneratedPlan, PlanSlot, PlanStatus
from ..database import SessionFactory


def _renumber(session: Session, plan_id: int) -> None:
    """Assign sequential sort_order by ascending start time."""
    slots = session.exec(select(PlanSlot).where(PlanSlot.plan_id == plan_id)).all()
    ordered = sorted(slots, key=lambda s: (s.start_time, s.end_time, s.id or 0))
    for position, slot in enumerate(ordered):
        slot.sort_order = position
        session.add(slot)


class SQLModelPlanRepository:
    """Plans are unique per (user, date); slot batches are written atomically."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_for_date(self, on: date, *, user_id: int) -> Optional[GeneratedPlan]:
        """Retrieve the plan for a date, if any."""
        with self.session_factory() as session:
            obj = session.exec(
                select(GeneratedPlan).where(GeneratedPlan.user_id == user_id, GeneratedPlan.date == on)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def get_by_id(self, plan_id: int, *, user_id: int) -> Optional[GeneratedPlan]:
        with self.session_factory() as session:
            obj = session.exec(
                select(GeneratedPlan).where(GeneratedPlan.id == plan_id, GeneratedPlan.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_slots(self, plan_id: int, *, user_id: int) -> list[PlanSlot]:
        """Slots of a plan in display order."""
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(PlanSlot)
                    .where(PlanSlot.plan_id == plan_id, PlanSlot.user_id == user_id)
                    .order_by(PlanSlot.sort_order, PlanSlot.start_time)  # type: ignore
                ).all()
            )
            session.expunge_all()
            return rows

    def get_slot(self, slot_id: int, *, user_id: int) -> Optional[PlanSlot]:
        with self.session_factory() as session:
            obj = session.exec(
                select(PlanSlot).where(PlanSlot.id == slot_id, PlanSlot.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def create_with_slots(
        self, plan: GeneratedPlan, slots: Iterable[PlanSlot], *, user_id: int
    ) -> GeneratedPlan:
        """Insert a plan and its slot batch in one transaction.

        A concurrent insert for the same (user, date) raises IntegrityError and
        nothing is written.
        """
        with self.session_factory() as session:
            plan.user_id = user_id
            session.add(plan)
            session.flush()
            for slot in slots:
                slot.user_id = user_id
                slot.plan_id = plan.id  # type: ignore[assignment]
                session.add(slot)
            session.flush()
            _renumber(session, plan.id)  # type: ignore[arg-type]
            session.commit()
            session.refresh(plan)
            session.expunge(plan)
            return plan

    def replace_unpreserved_slots(
        self,
        plan_id: int,
        slots: Iterable[PlanSlot],
        *,
        user_id: int,
        optimization_score: Optional[int],
        generation_params: dict[str, Any],
    ) -> GeneratedPlan:
        """Swap every unlocked, unexecuted slot for ``slots`` atomically.

        The plan reverts to draft; preserved slots keep their rows untouched
        apart from sort_order.
        """
        with self.session_factory() as session:
            plan = session.exec(
                select(GeneratedPlan).where(GeneratedPlan.id == plan_id, GeneratedPlan.user_id == user_id)
            ).one()
            existing = session.exec(select(PlanSlot).where(PlanSlot.plan_id == plan_id)).all()
            for slot in existing:
                if not slot.is_preserved:
                    session.delete(slot)
            session.flush()
            for slot in slots:
                slot.user_id = user_id
                slot.plan_id = plan_id
                session.add(slot)
            session.flush()
            _renumber(session, plan_id)
            plan.status = PlanStatus.DRAFT.value
            plan.optimization_score = optimization_score
            plan.generation_params = dict(generation_params)
            plan.updated_at = datetime.now(timezone.utc)
            session.add(plan)
            session.commit()
            session.refresh(plan)
            session.expunge(plan)
            return plan

    def update_plan(self, plan: GeneratedPlan, *, user_id: int) -> GeneratedPlan:
        with self.session_factory() as session:
            plan.user_id = user_id
            plan.updated_at = datetime.now(timezone.utc)
            merged = session.merge(plan)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def update_slot(self, slot: PlanSlot, *, user_id: int) -> PlanSlot:
        with self.session_factory() as session:
            slot.user_id = user_id
            merged = session.merge(slot)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged
