"""Escalation state as a closed set of variants.

The database keeps ``alert_status`` as a string plus a nullable
``warning_sent_at``. The engine only ever sees one of the three variants
below, so a ``warning_sent`` row without a timestamp cannot reach it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Union


class AlertStatus(str, enum.Enum):
    OK = "ok"
    WARNING_SENT = "warning_sent"
    ALERT_SENT = "alert_sent"


@dataclass(frozen=True)
class Ok:
    status = AlertStatus.OK


@dataclass(frozen=True)
class WarningSent:
    at: datetime
    status = AlertStatus.WARNING_SENT


@dataclass(frozen=True)
class AlertSent:
    status = AlertStatus.ALERT_SENT


EscalationState = Union[Ok, WarningSent, AlertSent]


def state_from_columns(alert_status: str, warning_sent_at: datetime | None) -> EscalationState:
    """Build the variant from stored columns. Raises ValueError on invalid combinations."""
    try:
        status = AlertStatus(alert_status)
    except ValueError:
        raise ValueError(f"Unknown alert_status {alert_status!r}") from None

    if status is AlertStatus.WARNING_SENT:
        if warning_sent_at is None:
            raise ValueError("warning_sent without warning_sent_at")
        return WarningSent(at=warning_sent_at)
    if warning_sent_at is not None:
        raise ValueError(f"warning_sent_at set while status is {status.value}")
    if status is AlertStatus.OK:
        return Ok()
    return AlertSent()
