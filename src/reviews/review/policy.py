"""Review timing policy — availability delay, review window and reminder schedule.

Values are read from the environment once at import, falling back to the
platform defaults.
"""

import os
from datetime import timedelta


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _hours_env(name: str, default: tuple[int, ...]) -> tuple[int, ...]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return tuple(int(part) for part in raw.split(",") if part.strip())


# Reviews become writable this long after the tour completes
REVIEW_AVAILABILITY_DELAY = timedelta(hours=_int_env("REVIEW_AVAILABILITY_DELAY_HOURS", 24))

# Drafts expire this long after they become writable
REVIEW_WINDOW = timedelta(days=_int_env("REVIEW_WINDOW_DAYS", 30))

# Reminder n is due at available_at + REMINDER_OFFSETS[n]. With the default
# availability delay that is 24h, 48h and 96h after the tour completes.
REMINDER_OFFSETS = tuple(
    timedelta(hours=h) for h in _hours_env("REVIEW_REMINDER_OFFSETS_HOURS", (0, 24, 72))
)
REMINDER_KINDS = ("first_reminder", "second_reminder", "final_reminder")
MAX_REMINDERS = min(len(REMINDER_OFFSETS), len(REMINDER_KINDS))

# Attempts for a command that loses an optimistic-concurrency race
COMMAND_MAX_ATTEMPTS = _int_env("REVIEW_COMMAND_MAX_ATTEMPTS", 3)


def availability_for(completed_at):
    return completed_at + REVIEW_AVAILABILITY_DELAY


def expiry_for(available_at):
    return available_at + REVIEW_WINDOW
