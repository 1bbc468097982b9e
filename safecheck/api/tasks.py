"""Scheduled pass endpoints, called by the external cron trigger."""

from dataclasses import asdict

from fastapi import APIRouter, Depends

from safecheck.core.clock import Clock
from safecheck.core.deps import get_batch_runner, get_clock, require_cron_secret
from safecheck.schemas.passes import EscalationPassResponse, ReminderPassResponse
from safecheck.services.batch import BatchRunner

router = APIRouter(prefix="/tasks", tags=["tasks"], dependencies=[Depends(require_cron_secret)])


@router.post("/run-escalation-pass", response_model=EscalationPassResponse)
def run_escalation_pass(
    runner: BatchRunner = Depends(get_batch_runner),
    clock: Clock = Depends(get_clock),
):
    """Send due warnings and SMS alerts. Safe to call repeatedly or concurrently."""
    now = clock.now()
    summary = runner.run_escalation_pass(now)
    return EscalationPassResponse(timestamp=now, **asdict(summary))


@router.post("/run-reminder-pass", response_model=ReminderPassResponse)
def run_reminder_pass(
    runner: BatchRunner = Depends(get_batch_runner),
    clock: Clock = Depends(get_clock),
):
    """Send due reminder pushes outside quiet hours."""
    now = clock.now()
    summary = runner.run_reminder_pass(now)
    return ReminderPassResponse(timestamp=now, **asdict(summary))
