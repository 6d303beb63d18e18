"""Background jobs: nightly routine expansion and missed-instance sweep."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Optional

from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.cron import CronTrigger

from .services import auth, routines
from .services.clock import local_date

if TYPE_CHECKING:
    from .context import AppContext

logger = logging.getLogger("lifeos.scheduler")


def run_nightly_maintenance(ctx: "AppContext", *, today: Optional[date] = None) -> dict[str, int]:
    """Sweep missed instances and expand the horizon for every user.

    A failure for one user is logged and does not stop the others.
    """

    today = today or local_date()
    totals = {"users": 0, "swept": 0, "instances_created": 0, "failed": 0}
    for user in auth.list_users(ctx.session_factory):
        user_ctx = ctx.for_user(user)
        try:
            totals["swept"] += routines.sweep_missed(user_ctx, today=today)
            totals["instances_created"] += routines.expand_horizon(user_ctx, today)
        except Exception:
            logger.exception("Nightly maintenance failed", extra={"user_id": user.id})
            totals["failed"] += 1
            continue
        totals["users"] += 1
    logger.info("Nightly maintenance finished", extra=totals)
    return totals


class MaintenanceScheduler:
    """Owns the APScheduler instance running the nightly jobs."""

    def __init__(self, ctx: "AppContext", *, hour: int = 0, minute: int = 5):
        self.ctx = ctx
        self.hour = hour
        self.minute = minute
        self.scheduler: Optional[APScheduler] = None

    def start(self) -> None:
        """Start the background scheduler."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = APScheduler()
        self.scheduler.add_job(
            func=run_nightly_maintenance,
            args=(self.ctx,),
            trigger=CronTrigger(hour=self.hour, minute=self.minute),
            id="nightly_maintenance",
            name="Sweep missed routines and expand the horizon",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(
            "Background scheduler started",
            extra={"job": "nightly_maintenance", "hour": self.hour, "minute": self.minute},
        )

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running


def create_scheduler(ctx: "AppContext", *, auto_start: bool = False) -> MaintenanceScheduler:
    """Create and optionally start the maintenance scheduler."""
    scheduler = MaintenanceScheduler(ctx)
    if auto_start:
        scheduler.start()
    return scheduler


__all__ = ["MaintenanceScheduler", "create_scheduler", "run_nightly_maintenance"]
