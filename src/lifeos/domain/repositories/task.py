"""Task and project repository protocols."""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol

from ...models.project import Project
from ...models.task import Task


class TaskRepository(Protocol):
    """Repository for managing tasks."""

    def get_by_id(self, task_id: int, *, user_id: int) -> Optional[Task]:
        """Retrieve a task by ID."""
        ...

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
        ...

    def list_for_date(self, on: date, *, user_id: int, statuses: Iterable[str]) -> list[Task]:
        """Tasks due on or pinned to a date."""
        ...

    def list_running_timers(self, *, user_id: int) -> list[Task]:
        ...

    def list_completed_between(self, start: datetime, end: datetime, *, user_id: int) -> list[Task]:
        ...

    def create(self, task: Task, *, user_id: int) -> Task:
        ...

    def update(self, task: Task, *, user_id: int) -> Task:
        ...

    def delete(self, task_id: int, *, user_id: int) -> None:
        ...


class ProjectRepository(Protocol):
    """Repository for managing projects."""

    def get_by_id(self, project_id: int, *, user_id: int) -> Optional[Project]:
        ...

    def list_all(self, *, user_id: int, status: Optional[str] = None) -> list[Project]:
        ...

    def list_tasks(self, project_id: int, *, user_id: int) -> list[Task]:
        ...

    def create(self, project: Project, *, user_id: int) -> Project:
        ...

    def update(self, project: Project, *, user_id: int) -> Project:
        ...

    def delete(self, project_id: int, *, user_id: int) -> None:
        ...
