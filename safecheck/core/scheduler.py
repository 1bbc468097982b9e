"""In-process schedule for the reminder and escalation passes.

Only used when SCHEDULER_ENABLED is set. Deployments driven by an external
cron hitting /tasks/* leave it off; running both is harmless because passes
tolerate overlap.
"""

from __future__ import annotations

import logging
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from safecheck.core.clock import Clock
from safecheck.core.config import settings
from safecheck.services.batch import BatchRunner
from safecheck.services.factory import build_batch_runner

logger = logging.getLogger(__name__)


def _run_reminders(runner: BatchRunner, clock: Clock) -> None:
    try:
        runner.run_reminder_pass(clock.now())
    except Exception:  # noqa: BLE001 - keep the job scheduled
        logger.exception("Reminder pass crashed")


def _run_escalation(runner: BatchRunner, clock: Clock) -> None:
    try:
        runner.run_escalation_pass(clock.now())
    except Exception:  # noqa: BLE001 - keep the job scheduled
        logger.exception("Escalation pass crashed")


def create_scheduler(
    session_factory: Callable[[], Session],
    runner: BatchRunner | None = None,
    clock: Clock | None = None,
) -> BackgroundScheduler:
    """Build (but do not start) a scheduler with both pass jobs."""
    clock = clock or Clock()
    runner = runner or build_batch_runner(session_factory, clock=clock)
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        _run_reminders,
        "interval",
        minutes=settings.reminder_pass_minutes,
        args=(runner, clock),
        id="reminder-pass",
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        _run_escalation,
        "interval",
        minutes=settings.escalation_pass_minutes,
        args=(runner, clock),
        id="escalation-pass",
        max_instances=1,
        coalesce=True,
    )
    return scheduler
