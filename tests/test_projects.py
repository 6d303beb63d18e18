"""Tests for projects and their progress rollup."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from lifeos.errors import NotFound
from lifeos.services import projects, tasks


@pytest.fixture
def project(ctx):
    return projects.create_project(ctx, {"name": "Website relaunch", "color": "#3B82F6"})


class TestProjects:
    def test_create_and_list(self, ctx, project):
        assert project.status == "active"
        assert [p.name for p in projects.list_projects(ctx)] == ["Website relaunch"]
        assert projects.list_projects(ctx, status="completed") == []

    def test_dates_must_be_ordered(self, ctx):
        with pytest.raises(PydanticValidationError):
            projects.create_project(ctx, {"name": "Backwards", "start_date": "2030-03-10", "target_date": "2030-03-01"})

    def test_update(self, ctx, project):
        updated = projects.update_project(ctx, project.id, {"status": "paused"})

        assert updated.status == "paused"
        assert updated.name == "Website relaunch"

    def test_progress_excludes_cancelled(self, ctx, project, task_factory):
        done = task_factory("Design", project_id=project.id, estimated_minutes=60)
        task_factory("Build", project_id=project.id, estimated_minutes=120)
        dropped = task_factory("Print flyers", project_id=project.id, estimated_minutes=30)
        tasks.update_task_status(ctx, done.id, "in_progress")
        tasks.update_task_status(ctx, done.id, "done")
        tasks.add_time(ctx, done.id, 75)
        tasks.update_task_status(ctx, dropped.id, "cancelled")

        progress = projects.get_progress(ctx, project.id)

        assert (progress.total_tasks, progress.done_tasks, progress.progress) == (2, 1, 50)
        assert progress.estimated_minutes == 180
        assert progress.actual_minutes == 75

    def test_empty_progress(self, ctx, project):
        assert projects.get_progress(ctx, project.id).progress == 0

    def test_delete_detaches_tasks(self, ctx, project, task_factory):
        task = task_factory("Orphaned", project_id=project.id)

        projects.delete_project(ctx, project.id)

        assert tasks.get_task(ctx, task.id).project_id is None
        with pytest.raises(NotFound):
            projects.get_project(ctx, project.id)
