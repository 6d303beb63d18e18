"""Tests for the Result envelope and error-kind mapping."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from lifeos import operations
from lifeos.errors import LifeOSError, Result, map_exception, run_operation

from tests.conftest import DAY


def _operational():
    return OperationalError("SELECT 1", {}, Exception("database is locked"))


class TestEnvelope:
    def test_success(self, ctx):
        result = operations.create_task(ctx, {"title": "Plan sprint"})

        assert result.ok
        assert result.error is None
        assert result.data.title == "Plan sprint"
        assert result.unwrap() is result.data

    def test_failure_carries_kind_and_details(self, ctx):
        result = operations.create_task(ctx, {"title": ""})

        assert not result.ok
        assert result.data is None
        assert result.error.kind == "ValidationError"
        assert "title" in result.error.details
        with pytest.raises(LifeOSError):
            result.unwrap()

    def test_not_found(self, ctx):
        assert operations.delete_task(ctx, 999).error.kind == "NotFound"

    def test_unauthenticated(self, ctx):
        anonymous = ctx.for_user(None)

        result = operations.list_tasks(anonymous)

        assert result.error.kind == "Unauthenticated"
        assert result.error.to_dict() == {"kind": "Unauthenticated", "message": "User is not authenticated"}

    def test_already_exists(self, ctx):
        assert operations.generate_plan(ctx, DAY).ok

        result = operations.generate_plan(ctx, DAY)

        assert result.error.kind == "AlreadyExists"
        assert "plan_id" in result.error.details

    def test_invalid_state(self, ctx, task_factory):
        task = task_factory()

        assert operations.update_task_status(ctx, task.id, "done").error.kind == "InvalidState"

    def test_missing_plan_is_empty_data(self, ctx):
        result = operations.get_plan_for_date(ctx, DAY)

        assert result.ok
        assert result.data is None


class TestRunOperation:
    def test_reads_retry_once(self):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise _operational()
            return "ok"

        result = run_operation(flaky, name="flaky_read", read_only=True)

        assert result == Result(data="ok")
        assert len(calls) == 2

    def test_mutations_do_not_retry(self):
        calls = []

        def failing():
            calls.append(1)
            raise _operational()

        result = run_operation(failing, name="flaky_write")

        assert result.error.kind == "Unavailable"
        assert len(calls) == 1

    @pytest.mark.parametrize(
        "exc, kind",
        [
            (IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")), "Conflict"),
            (ValueError("bad rule"), "ValidationError"),
            (RuntimeError("boom"), "Internal"),
        ],
    )
    def test_exception_mapping(self, exc, kind):
        assert map_exception(exc).kind == kind

    def test_unexpected_error_is_not_raised(self):
        def broken():
            raise KeyError("missing")

        result = run_operation(broken, name="broken")

        assert result.error.kind == "Internal"
        assert "KeyError" not in result.error.message
