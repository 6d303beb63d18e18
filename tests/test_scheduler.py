"""Tests for the nightly maintenance job."""

from __future__ import annotations

from datetime import timedelta

from lifeos.models import InstanceStatus
from lifeos.scheduler import MaintenanceScheduler, create_scheduler, run_nightly_maintenance
from lifeos.services import routines

from tests.conftest import DAY


def test_nightly_maintenance_sweeps_and_expands(ctx, template_factory):
    template = template_factory()
    past, _ = ctx.routine_repo.ensure_instance(template, DAY, user_id=ctx.require_user_id())
    tomorrow = DAY + timedelta(days=1)

    totals = run_nightly_maintenance(ctx.for_user(None), today=tomorrow)

    assert totals == {"users": 1, "swept": 1, "instances_created": 14, "failed": 0}
    assert routines.get_instance(ctx, past.id).status == InstanceStatus.SKIPPED.value
    assert len(routines.get_instances_for_date(ctx, tomorrow + timedelta(days=13))) == 1


def test_nightly_maintenance_is_repeatable(ctx, template_factory):
    template_factory()

    run_nightly_maintenance(ctx, today=DAY)
    totals = run_nightly_maintenance(ctx, today=DAY)

    assert totals["instances_created"] == 0
    assert totals["swept"] == 0


def test_scheduler_registers_nightly_job(ctx):
    scheduler = create_scheduler(ctx)
    assert isinstance(scheduler, MaintenanceScheduler)
    assert not scheduler.running

    scheduler.start()
    try:
        assert scheduler.running
        job = scheduler.scheduler.get_job("nightly_maintenance")
        assert job is not None
    finally:
        scheduler.stop()

    assert not scheduler.running
