"""In-process scheduler tests."""

from safecheck.core.scheduler import _run_escalation, _run_reminders, create_scheduler


class RecordingRunner:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def run_reminder_pass(self, now):
        self.calls.append(("reminders", now))
        if self.fail:
            raise RuntimeError("database gone")

    def run_escalation_pass(self, now):
        self.calls.append(("escalation", now))
        if self.fail:
            raise RuntimeError("database gone")


def test_scheduler_registers_both_passes(clock):
    scheduler = create_scheduler(session_factory=None, runner=RecordingRunner(), clock=clock)

    jobs = {job.id: job for job in scheduler.get_jobs()}

    assert set(jobs) == {"reminder-pass", "escalation-pass"}
    assert jobs["reminder-pass"].trigger.interval.total_seconds() == 15 * 60
    assert jobs["escalation-pass"].trigger.interval.total_seconds() == 5 * 60
    assert jobs["escalation-pass"].max_instances == 1


def test_jobs_run_passes_with_clock_time(clock):
    runner = RecordingRunner()

    _run_reminders(runner, clock)
    _run_escalation(runner, clock)

    assert runner.calls == [("reminders", clock.now()), ("escalation", clock.now())]


def test_job_crash_is_logged_not_raised(clock, caplog):
    runner = RecordingRunner(fail=True)

    _run_escalation(runner, clock)

    assert "Escalation pass crashed" in caplog.text
