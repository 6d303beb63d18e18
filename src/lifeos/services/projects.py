"""Project CRUD with derived progress."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Optional

from ..errors import NotFound
from ..forms import ProjectForm
from ..models.project import Project
from ..models.task import TaskStatus

if TYPE_CHECKING:
    from ..context import AppContext

logger = logging.getLogger("lifeos.projects")

_EXCLUDED_FROM_PROGRESS = {TaskStatus.CANCELLED.value, TaskStatus.ARCHIVED.value}


@dataclass(slots=True)
class ProjectProgress:
    project_id: int
    total_tasks: int
    done_tasks: int
    progress: int
    estimated_minutes: int
    actual_minutes: int

    def to_dict(self) -> dict[str, int]:
        return {
            "project_id": self.project_id,
            "total_tasks": self.total_tasks,
            "done_tasks": self.done_tasks,
            "progress": self.progress,
            "estimated_minutes": self.estimated_minutes,
            "actual_minutes": self.actual_minutes,
        }


def list_projects(ctx: "AppContext", *, status: Optional[str] = None) -> list[Project]:
    return ctx.project_repo.list_all(user_id=ctx.require_user_id(), status=status)


def get_project(ctx: "AppContext", project_id: int) -> Project:
    project = ctx.project_repo.get_by_id(project_id, user_id=ctx.require_user_id())
    if project is None:
        raise NotFound(f"Project {project_id} not found")
    return project


def _apply_form(ctx: "AppContext", project: Project, form: ProjectForm) -> Project:
    uid = ctx.require_user_id()
    if form.domain_id is not None and ctx.domain_repo.get_by_id(form.domain_id, user_id=uid) is None:
        raise NotFound(f"Domain {form.domain_id} not found")
    for key, value in form.model_dump(exclude={"status"}).items():
        setattr(project, key, value)
    project.status = form.status.value
    return project


def create_project(ctx: "AppContext", payload: Mapping[str, Any]) -> Project:
    uid = ctx.require_user_id()
    form = ProjectForm.model_validate(payload)
    project = _apply_form(ctx, Project(user_id=uid, name=form.name), form)
    created = ctx.project_repo.create(project, user_id=uid)
    logger.info("Project created", extra={"project_id": created.id})
    return created


def update_project(ctx: "AppContext", project_id: int, changes: Mapping[str, Any]) -> Project:
    project = get_project(ctx, project_id)
    current = project.model_dump(include=set(ProjectForm.model_fields))
    form = ProjectForm.model_validate({**current, **changes})
    return ctx.project_repo.update(_apply_form(ctx, project, form), user_id=ctx.require_user_id())


def delete_project(ctx: "AppContext", project_id: int) -> Project:
    """Delete a project; its tasks survive, detached."""

    project = get_project(ctx, project_id)
    ctx.project_repo.delete(project_id, user_id=ctx.require_user_id())
    logger.info("Project deleted", extra={"project_id": project_id})
    return project


def get_progress(ctx: "AppContext", project_id: int) -> ProjectProgress:
    """Done share of the project's live tasks, plus minute totals.

    Cancelled and archived tasks are left out of the denominator.
    """

    get_project(ctx, project_id)
    tasks = [
        t
        for t in ctx.project_repo.list_tasks(project_id, user_id=ctx.require_user_id())
        if t.status not in _EXCLUDED_FROM_PROGRESS
    ]
    done = sum(1 for t in tasks if t.status == TaskStatus.DONE.value)
    return ProjectProgress(
        project_id=project_id,
        total_tasks=len(tasks),
        done_tasks=done,
        progress=round(done / len(tasks) * 100) if tasks else 0,
        estimated_minutes=sum(t.estimated_minutes or 0 for t in tasks),
        actual_minutes=sum(t.actual_minutes or 0 for t in tasks),
    )


__all__ = [
    "ProjectProgress",
    "create_project",
    "delete_project",
    "get_progress",
    "get_project",
    "list_projects",
    "update_project",
]
