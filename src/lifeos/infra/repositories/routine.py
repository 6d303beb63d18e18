"""SQLModel implementation of routine template and instance storage."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from ...models.routine import (
    InstanceStatus,
    RoutineInstance,
    RoutineInstanceTask,
    RoutineTemplate,
)
from ..database import SessionFactory


class SQLModelRoutineRepository:
    """Templates, their dated instances and instance/task links."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    # Template operations
    def get_template(self, template_id: int, *, user_id: int) -> Optional[RoutineTemplate]:
        """Retrieve a template by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(RoutineTemplate).where(
                    RoutineTemplate.id == template_id, RoutineTemplate.user_id == user_id
                )
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_templates(self, *, user_id: int, include_inactive: bool = False) -> list[RoutineTemplate]:
        """List templates, optionally including deactivated ones."""
        with self.session_factory() as session:
            statement = (
                select(RoutineTemplate)
                .where(RoutineTemplate.user_id == user_id)
                .order_by(RoutineTemplate.name)  # type: ignore
            )
            if not include_inactive:
                statement = statement.where(RoutineTemplate.is_active == True)  # noqa: E712
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create_template(self, template: RoutineTemplate, *, user_id: int) -> RoutineTemplate:
        """Create a new template."""
        with self.session_factory() as session:
            template.user_id = user_id
            session.add(template)
            session.commit()
            session.refresh(template)
            session.expunge(template)
            return template

    def update_template(self, template: RoutineTemplate, *, user_id: int) -> RoutineTemplate:
        """Update an existing template."""
        with self.session_factory() as session:
            template.user_id = user_id
            merged = session.merge(template)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete_template(self, template_id: int, *, user_id: int) -> None:
        """Hard-delete a template that never produced instances."""
        with self.session_factory() as session:
            template = session.exec(
                select(RoutineTemplate).where(
                    RoutineTemplate.id == template_id, RoutineTemplate.user_id == user_id
                )
            ).first()
            if template:
                session.delete(template)
                session.commit()

    def count_instances(self, template_id: int, *, user_id: int) -> int:
        with self.session_factory() as session:
            return session.exec(
                select(func.count())
                .select_from(RoutineInstance)
                .where(RoutineInstance.template_id == template_id, RoutineInstance.user_id == user_id)
            ).one()

    # Instance operations
    def get_instance(self, instance_id: int, *, user_id: int) -> Optional[RoutineInstance]:
        """Retrieve an instance by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(RoutineInstance).where(
                    RoutineInstance.id == instance_id, RoutineInstance.user_id == user_id
                )
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def get_instance_for(self, template_id: int, on: date, *, user_id: int) -> Optional[RoutineInstance]:
        with self.session_factory() as session:
            obj = session.exec(
                select(RoutineInstance)
                .where(RoutineInstance.user_id == user_id)
                .where(RoutineInstance.template_id == template_id)
                .where(RoutineInstance.scheduled_date == on)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_instances_between(
        self, start_date: date, end_date: date, *, user_id: int
    ) -> list[RoutineInstance]:
        """Instances scheduled within [start_date, end_date], inclusive."""
        with self.session_factory() as session:
            statement = (
                select(RoutineInstance)
                .where(RoutineInstance.user_id == user_id)
                .where(RoutineInstance.scheduled_date >= start_date)
                .where(RoutineInstance.scheduled_date <= end_date)
                .order_by(RoutineInstance.scheduled_date, RoutineInstance.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_instances_for_date(self, on: date, *, user_id: int) -> list[RoutineInstance]:
        return self.list_instances_between(on, on, user_id=user_id)

    def list_instances_for_template(self, template_id: int, *, user_id: int, since: date | None = None) -> list[RoutineInstance]:
        with self.session_factory() as session:
            statement = (
                select(RoutineInstance)
                .where(RoutineInstance.user_id == user_id)
                .where(RoutineInstance.template_id == template_id)
                .order_by(RoutineInstance.scheduled_date)  # type: ignore
            )
            if since is not None:
                statement = statement.where(RoutineInstance.scheduled_date >= since)
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_pending_before(self, day: date, *, user_id: int) -> list[RoutineInstance]:
        """Pending instances whose date is strictly before ``day``."""
        with self.session_factory() as session:
            statement = (
                select(RoutineInstance)
                .where(RoutineInstance.user_id == user_id)
                .where(RoutineInstance.status == InstanceStatus.PENDING.value)
                .where(RoutineInstance.scheduled_date < day)
                .order_by(RoutineInstance.scheduled_date)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def ensure_instance(self, template: RoutineTemplate, on: date, *, user_id: int) -> tuple[RoutineInstance, bool]:
        """Return the instance for (template, date), creating a pending one if missing.

        The unique (template_id, scheduled_date) constraint settles races: the
        losing insert re-reads the winner's row instead of failing.
        """
        with self.session_factory() as session:
            statement = (
                select(RoutineInstance)
                .where(RoutineInstance.template_id == template.id)
                .where(RoutineInstance.scheduled_date == on)
            )
            existing = session.exec(statement).first()
            if existing:
                session.expunge(existing)
                return existing, False

            start_end = template.time_slot
            instance = RoutineInstance(
                user_id=user_id,
                template_id=template.id,
                scheduled_date=on,
                scheduled_start=start_end[0] if start_end else None,
                scheduled_end=start_end[1] if start_end else None,
                status=InstanceStatus.PENDING.value,
            )
            session.add(instance)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                existing = session.exec(statement).one()
                session.expunge(existing)
                return existing, False
            session.refresh(instance)
            session.expunge(instance)
            return instance, True

    def transition_instance(
        self,
        instance_id: int,
        values: dict[str, Any],
        *,
        user_id: int,
        expected_status: str = InstanceStatus.PENDING.value,
    ) -> Optional[RoutineInstance]:
        """Apply ``values`` only if the row is still in ``expected_status``.

        Returns the updated instance, or None when another writer got there
        first (zero rows matched the guarded UPDATE).
        """
        with self.session_factory() as session:
            statement = (
                update(RoutineInstance)
                .where(RoutineInstance.id == instance_id)
                .where(RoutineInstance.user_id == user_id)
                .where(RoutineInstance.status == expected_status)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            result = session.execute(statement)
            if result.rowcount != 1:
                session.rollback()
                return None
            session.commit()
            obj = session.get(RoutineInstance, instance_id)
            session.expunge(obj)
            return obj

    def update_instance(self, instance: RoutineInstance, *, user_id: int) -> RoutineInstance:
        """Persist free-form edits (notes, mood) on an instance."""
        with self.session_factory() as session:
            instance.user_id = user_id
            merged = session.merge(instance)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    # Instance/task links
    def upsert_link(self, link: RoutineInstanceTask, *, user_id: int) -> RoutineInstanceTask:
        """Insert or update the time spent on a task during an instance."""
        with self.session_factory() as session:
            link.user_id = user_id
            merged = session.merge(link)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def list_links(self, instance_id: int, *, user_id: int) -> list[RoutineInstanceTask]:
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(RoutineInstanceTask)
                    .where(RoutineInstanceTask.user_id == user_id)
                    .where(RoutineInstanceTask.instance_id == instance_id)
                ).all()
            )
            session.expunge_all()
            return rows
