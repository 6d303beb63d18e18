"""SQLModel implementation of the Project repository."""

from __future__ import annotations

from typing import Optional

from sqlmodel import select

from ...models.project import Project
from ...models.task import Task
from ..database import SessionFactory


class SQLModelProjectRepository:
    """SQLModel-based project repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_id(self, project_id: int, *, user_id: int) -> Optional[Project]:
        """Retrieve a project by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Project).where(Project.id == project_id, Project.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int, status: Optional[str] = None) -> list[Project]:
        with self.session_factory() as session:
            statement = select(Project).where(Project.user_id == user_id)
            if status is not None:
                statement = statement.where(Project.status == status)
            rows = list(session.exec(statement.order_by(Project.name)).all())  # type: ignore
            session.expunge_all()
            return rows

    def list_tasks(self, project_id: int, *, user_id: int) -> list[Task]:
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(Task).where(Task.project_id == project_id, Task.user_id == user_id)
                ).all()
            )
            session.expunge_all()
            return rows

    def create(self, project: Project, *, user_id: int) -> Project:
        with self.session_factory() as session:
            project.user_id = user_id
            session.add(project)
            session.commit()
            session.refresh(project)
            session.expunge(project)
            return project

    def update(self, project: Project, *, user_id: int) -> Project:
        with self.session_factory() as session:
            project.user_id = user_id
            merged = session.merge(project)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, project_id: int, *, user_id: int) -> None:
        """Delete a project, detaching its tasks first."""
        with self.session_factory() as session:
            project = session.exec(
                select(Project).where(Project.id == project_id, Project.user_id == user_id)
            ).first()
            if project is None:
                return
            for task in session.exec(
                select(Task).where(Task.project_id == project_id, Task.user_id == user_id)
            ).all():
                task.project_id = None
                session.add(task)
            session.delete(project)
            session.commit()
