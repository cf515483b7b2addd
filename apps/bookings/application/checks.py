"""Validation steps shared by the lifecycle coordinator and the reschedule engine."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from apps.bookings.application.context import SchedulingContext
from apps.bookings.domain.conflicts import (
    Candidate,
    Conflict,
    ConflictDimension,
    ensure_no_conflict,
    find_conflicts,
)
from apps.bookings.domain.errors import BookingConflictError, BookingValidationError

logger = logging.getLogger(__name__)

PAST_START_MESSAGE = "Bookings cannot start in the past."


def reject_past(context: SchedulingContext, start: datetime) -> None:
    """A start before the current minute is in the past."""
    if start.tzinfo is None:
        raise BookingValidationError("Start time must include a timezone.")
    current_minute = context.now().replace(second=0, microsecond=0)
    if start < current_minute:
        raise BookingValidationError(PAST_START_MESSAGE, start=start.isoformat())


def _candidate_set(context: SchedulingContext, candidate: Candidate):
    # Staff/client dimensions need bookings on every resource in the window.
    cross_resource = context.policy.dimensions != frozenset({ConflictDimension.RESOURCE})
    resource_filter = None if cross_resource else candidate.resource_id
    return context.repository.list_bookings(resource_filter, candidate.window)


def conflicts_for(context: SchedulingContext, candidate: Candidate) -> List[Conflict]:
    conflicts = find_conflicts(candidate, _candidate_set(context, candidate), context.policy)
    if conflicts:
        logger.warning(
            f"Conflict for resource {candidate.resource_id} in {candidate.window}: "
            f"{', '.join(c.dimension.value for c in conflicts)}"
        )
    return conflicts


def ensure_fits(context: SchedulingContext, candidate: Candidate) -> None:
    """Raise BookingConflictError if the candidate collides with an active booking."""
    bookings = _candidate_set(context, candidate)
    try:
        ensure_no_conflict(candidate, bookings, context.policy)
    except BookingConflictError:
        logger.warning(f"Rejected {candidate.window} on resource {candidate.resource_id}: slot taken")
        raise
