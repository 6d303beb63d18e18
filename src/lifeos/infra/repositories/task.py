"""SQLModel implementation of the Task repository."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Iterable, Optional

from sqlmodel import or_, select

from ...models.routine import RoutineInstanceTask
from ...models.task import Task
from ..database import SessionFactory


class SQLModelTaskRepository:
    """SQLModel-based task repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, task_id: int, *, user_id: int) -> Optional[Task]:
        """Retrieve a task by ID."""
        with self.session_factory() as session:
            obj = session.exec(select(Task).where(Task.id == task_id, Task.user_id == user_id)).first()
            if obj:
                session.expunge(obj)
            return obj

    def search(
        self,
        *,
        user_id: int,
        statuses: Optional[Iterable[str]] = None,
        domain_id: Optional[int] = None,
        project_id: Optional[int] = None,
        due_on: Optional[date] = None,
        text: Optional[str] = None,
    ) -> list[Task]:
        """Filter tasks; every argument narrows the result."""
        with self.session_factory() as session:
            statement = select(Task).where(Task.user_id == user_id)
            if statuses is not None:
                statement = statement.where(Task.status.in_(list(statuses)))  # type: ignore[attr-defined]
            if domain_id is not None:
                statement = statement.where(Task.domain_id == domain_id)
            if project_id is not None:
                statement = statement.where(Task.project_id == project_id)
            if due_on is not None:
                statement = statement.where(Task.due_date == due_on)
            if text:
                statement = statement.where(Task.title.ilike(f"%{text}%"))  # type: ignore[attr-defined]
            statement = statement.order_by(Task.created_at, Task.id)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_for_date(self, on: date, *, user_id: int, statuses: Iterable[str]) -> list[Task]:
        """Tasks due on or pinned to ``on`` in one of ``statuses``."""
        with self.session_factory() as session:
            statement = (
                select(Task)
                .where(Task.user_id == user_id)
                .where(Task.status.in_(list(statuses)))  # type: ignore[attr-defined]
                .where(or_(Task.due_date == on, Task.pinned_date == on))
                .order_by(Task.created_at, Task.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_running_timers(self, *, user_id: int) -> list[Task]:
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(Task).where(Task.user_id == user_id, Task.timer_is_running == True)  # noqa: E712
                ).all()
            )
            session.expunge_all()
            return rows

    def list_completed_between(self, start: datetime, end: datetime, *, user_id: int) -> list[Task]:
        """Tasks whose ``completed_at`` falls in [start, end)."""
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(Task)
                    .where(Task.user_id == user_id)
                    .where(Task.completed_at != None)  # noqa: E711
                    .where(Task.completed_at >= start)
                    .where(Task.completed_at < end)
                ).all()
            )
            session.expunge_all()
            return rows

    def create(self, task: Task, *, user_id: int) -> Task:
        """Create a new task."""
        with self.session_factory() as session:
            task.user_id = user_id
            session.add(task)
            session.commit()
            session.refresh(task)
            session.expunge(task)
            return task

    def update(self, task: Task, *, user_id: int) -> Task:
        """Update an existing task, bumping ``updated_at``."""
        with self.session_factory() as session:
            task.user_id = user_id
            task.updated_at = datetime.now(timezone.utc)
            merged = session.merge(task)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, task_id: int, *, user_id: int) -> None:
        """Delete a task, its instance links, and detach its subtasks."""
        with self.session_factory() as session:
            task = session.exec(select(Task).where(Task.id == task_id, Task.user_id == user_id)).first()
            if task is None:
                return
            for link in session.exec(
                select(RoutineInstanceTask).where(RoutineInstanceTask.task_id == task_id)
            ).all():
                session.delete(link)
            for child in session.exec(select(Task).where(Task.parent_task_id == task_id)).all():
                child.parent_task_id = None
                session.add(child)
            session.flush()
            session.delete(task)
            session.commit()
