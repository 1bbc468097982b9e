"""Domain errors raised by the monitoring engine."""

from __future__ import annotations


class SafeCheckError(Exception):
    """Base class for engine errors."""


class ConfigurationError(SafeCheckError):
    """A gateway is missing credentials or configuration."""

    def __init__(self, gateway: str, detail: str) -> None:
        super().__init__(f"{gateway} is not configured: {detail}")
        self.gateway = gateway


class GatewayDeliveryError(SafeCheckError):
    """A single push or SMS send was rejected or never reached the provider."""


class StoreConflictError(SafeCheckError):
    """A conditional update lost a race with another pass or a check-in."""


class StoreReadError(SafeCheckError):
    """The state store could not be read."""


class StoreWriteError(SafeCheckError):
    """The state store could not be written."""


class SubjectNotFoundError(SafeCheckError):
    """No subject exists with the given id."""


class NoContactsError(SafeCheckError):
    """The grace period expired but the subject has no trusted contacts."""

    def __init__(self, subject_id: int) -> None:
        super().__init__(f"No contacts for subject {subject_id}")
        self.subject_id = subject_id
