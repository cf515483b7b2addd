"""
Scheduling errors

Every failure the scheduling core reports to its callers. Money
derivation never raises; everything else maps to one of these.
"""

from __future__ import annotations


class SchedulingError(Exception):
    """Base class for scheduling failures."""

    code = "scheduling_error"

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class BookingValidationError(SchedulingError):
    """Missing field, end before start, start in the past, illegal transition."""

    code = "invalid"


class BookingConflictError(SchedulingError):
    """Raised when a resource (or staff member, or client) is busy for the requested window."""

    code = "conflict"

    def __init__(self, message: str = "Resource busy in that window.", *, conflicts=(), **details):
        super().__init__(message, **details)
        self.conflicts = tuple(conflicts)


class PersistenceError(SchedulingError):
    """The datastore rejected or failed the call; the message is shown as-is."""

    code = "persistence_error"


class BookingNotFound(PersistenceError):
    code = "not_found"


class NotificationError(SchedulingError):
    """Delivery of a side-effect notification failed. Never propagated past the dispatcher."""

    code = "notification_error"
