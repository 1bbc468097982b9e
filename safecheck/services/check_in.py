"""Check-in: the only operation that resets an escalation episode."""

from __future__ import annotations

import logging

from safecheck.core import policies
from safecheck.core.clock import Clock
from safecheck.models.check_in import CheckInEvent
from safecheck.services.state_store import SubjectStateStore

logger = logging.getLogger(__name__)


class CheckInHandler:
    def __init__(self, store: SubjectStateStore, clock: Clock | None = None) -> None:
        self._store = store
        self._clock = clock or Clock()

    def check_in(self, subject_id: int, source: str = policies.DEFAULT_CHECK_IN_SOURCE) -> CheckInEvent:
        """Mark subject as seen now and reset status to ok from any state."""
        if source not in policies.CHECK_IN_SOURCES:
            raise ValueError(f"Unknown check-in source {source!r}")
        now = self._clock.now()
        event = self._store.check_in(subject_id, source, now)
        logger.info("Subject %s checked in via %s", subject_id, source)
        return event
