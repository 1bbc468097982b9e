"""Monitoring policy constants."""

from __future__ import annotations

# Defaults applied by onboarding when a subject has not picked a value (hours)
DEFAULT_INACTIVITY_THRESHOLD_HOURS = 24
DEFAULT_GRACE_PERIOD_HOURS = 2
DEFAULT_REMINDER_FREQUENCY_HOURS = 4

# Values the app offers in its pickers (hours)
INACTIVITY_THRESHOLD_OPTIONS = (24, 48, 72)
GRACE_PERIOD_OPTIONS = (1, 2, 4)
REMINDER_FREQUENCY_OPTIONS = (1, 2, 4, 6, 12)

# Product limit on trusted contacts, enforced by contact management
MAX_TRUSTED_CONTACTS = 3

CHECK_IN_SOURCES = ("app_open", "manual", "notification")
DEFAULT_CHECK_IN_SOURCE = "manual"

# Used in SMS text when the subject has no display name
FALLBACK_DISPLAY_NAME = "A SafeCheck user"

REMINDER_TITLE = "SafeCheck Reminder"
REMINDER_BODY = "Take a moment to check in and let your loved ones know you're okay."

WARNING_TITLE = "SafeCheck: Please Check In"
WARNING_BODY = (
    "You haven't checked in for {hours} hours. "
    "Your contacts will be notified in {grace_hours} hours if you don't respond."
)

SMS_ALERT_BODY = (
    "This is an automated message from SafeCheck. "
    "{name} has not checked in for {hours} hours. "
    "Please try contacting them directly."
)

# Push payload telling the app to open straight into check-in
CHECK_IN_ACTION_DATA = {"action": "check_in"}
