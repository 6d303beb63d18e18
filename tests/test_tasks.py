"""Tests for task CRUD, the status state machine and task rollups."""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from lifeos.errors import InvalidState, NotFound, ValidationError
from lifeos.models import TaskStatus
from lifeos.services import tasks
from lifeos.services.tasks import TaskFilters, can_transition

from tests.conftest import DAY, noon


def _finish(ctx, task_id, now=None):
    tasks.update_task_status(ctx, task_id, "in_progress", now=now)
    return tasks.update_task_status(ctx, task_id, "done", now=now)


class TestCreateTask:
    def test_defaults(self, task_factory):
        task = task_factory()

        assert task.status == TaskStatus.TODO.value
        assert task.priority == "medium"
        assert task.completed_at is None
        assert task.actual_minutes == 0

    def test_created_done_is_stamped(self, ctx):
        task = tasks.create_task(ctx, {"title": "Old chore", "status": "done"}, now=noon(DAY))

        assert task.completed_at is not None

    def test_due_time_requires_due_date(self, ctx):
        with pytest.raises(PydanticValidationError):
            tasks.create_task(ctx, {"title": "Call", "due_time": "09:00"})

    def test_blank_title_rejected(self, ctx):
        with pytest.raises(PydanticValidationError):
            tasks.create_task(ctx, {"title": "   "})

    def test_unknown_project_rejected(self, ctx):
        with pytest.raises(NotFound):
            tasks.create_task(ctx, {"title": "Lost", "project_id": 77})

    def test_subtask_needs_existing_parent(self, ctx, task_factory):
        parent = task_factory("Parent")

        child = tasks.create_task(ctx, {"title": "Child", "parent_task_id": parent.id})

        assert child.parent_task_id == parent.id
        with pytest.raises(ValidationError):
            tasks.update_task(ctx, parent.id, {"parent_task_id": parent.id})


class TestTransitions:
    @pytest.mark.parametrize(
        "current, target, allowed",
        [
            ("todo", "in_progress", True),
            ("in_progress", "done", True),
            ("done", "todo", True),
            ("blocked", "in_progress", True),
            ("todo", "done", False),
            ("backlog", "in_progress", False),
            ("archived", "todo", False),
            ("cancelled", "done", False),
        ],
    )
    def test_table(self, current, target, allowed):
        assert can_transition(current, target) is allowed

    def test_done_stamps_and_reopen_clears(self, ctx, task_factory):
        task = task_factory()

        done = _finish(ctx, task.id, now=noon(DAY))
        assert done.completed_at is not None

        reopened = tasks.update_task_status(ctx, task.id, "todo")
        assert reopened.status == "todo"
        assert reopened.completed_at is None

    def test_illegal_transition(self, ctx, task_factory):
        task = task_factory()

        with pytest.raises(InvalidState) as excinfo:
            tasks.update_task_status(ctx, task.id, "done")

        assert excinfo.value.details["from"] == "todo"
        assert "in_progress" in excinfo.value.details["allowed"]
        assert tasks.get_task(ctx, task.id).status == "todo"

    def test_unknown_status(self, ctx, task_factory):
        task = task_factory()

        with pytest.raises(ValidationError):
            tasks.update_task_status(ctx, task.id, "someday")

    def test_same_status_is_a_no_op(self, ctx, task_factory):
        task = task_factory()

        assert tasks.update_task_status(ctx, task.id, "todo").status == "todo"

    def test_update_checks_status_changes(self, ctx, task_factory):
        task = task_factory()

        with pytest.raises(InvalidState):
            tasks.update_task(ctx, task.id, {"status": "done", "title": "Renamed"})

        assert tasks.get_task(ctx, task.id).title == "Write report"

    def test_update_fields(self, ctx, task_factory):
        task = task_factory()

        updated = tasks.update_task(ctx, task.id, {"priority": "high", "estimated_minutes": 90})

        assert updated.priority == "high"
        assert updated.estimated_minutes == 90
        assert updated.title == "Write report"


class TestQueries:
    def test_filters(self, ctx, task_factory):
        task_factory("Buy milk")
        task_factory("Write essay", status="backlog")

        assert [t.title for t in tasks.list_tasks(ctx, TaskFilters(text="milk"))] == ["Buy milk"]
        assert [t.title for t in tasks.list_tasks(ctx, TaskFilters(statuses=["backlog"]))] == ["Write essay"]

    def test_stats_and_overdue(self, ctx, task_factory):
        late = task_factory("Late", due_date=DAY - timedelta(days=1))
        task_factory("Today", due_date=DAY)
        task_factory("Wednesday", due_date=DAY + timedelta(days=2))
        task_factory("Next week", due_date=DAY + timedelta(days=8))
        finished = task_factory("Finished", due_date=DAY - timedelta(days=3))
        _finish(ctx, finished.id)

        stats = tasks.get_task_stats(ctx, today=DAY)

        assert stats.total == 4
        assert stats.by_status["todo"] == 4
        assert (stats.overdue, stats.due_today, stats.due_this_week) == (1, 1, 1)
        assert [t.id for t in tasks.get_overdue_tasks(ctx, today=DAY)] == [late.id]

    def test_tasks_are_scoped_to_their_owner(self, other_ctx, task_factory):
        task = task_factory()

        with pytest.raises(NotFound):
            tasks.get_task(other_ctx, task.id)


class TestTimeAndDelete:
    def test_add_time(self, ctx, task_factory):
        task = task_factory()

        tasks.add_time(ctx, task.id, 15)

        assert tasks.add_time(ctx, task.id, 10).actual_minutes == 25

    @pytest.mark.parametrize("minutes", [0, -5])
    def test_add_time_must_be_positive(self, ctx, task_factory, minutes):
        task = task_factory()

        with pytest.raises(ValidationError):
            tasks.add_time(ctx, task.id, minutes)

    def test_delete_returns_task(self, ctx, task_factory):
        task = task_factory()

        deleted = tasks.delete_task(ctx, task.id)

        assert deleted.id == task.id
        with pytest.raises(NotFound):
            tasks.get_task(ctx, task.id)

    def test_delete_unknown(self, ctx):
        with pytest.raises(NotFound):
            tasks.delete_task(ctx, 999)
