"""
Free-time errors.

Only malformed input is an error. Empty windows, empty free time and
non-positive event counts produce empty results instead.
"""


class FreeTimeError(Exception):
    """Base class for free-time failures."""

    pass


class InvalidIntervalError(FreeTimeError, ValueError):
    """Raised when an instant or interval cannot be used (bad type, end < start, mixed tz)."""

    pass


class NoFreeTimeError(FreeTimeError, LookupError):
    """Raised when a user has no stored free-time ledger to reserve against."""

    def __init__(self, user_id: str):
        super().__init__(f"No free time stored for user {user_id!r}. Sync the calendar first.")
        self.user_id = user_id
