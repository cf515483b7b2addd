"""Read-side use cases: nothing here writes."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import List
from uuid import UUID

from shared.domain.value_objects import TimeRange

from apps.bookings.application.context import SchedulingContext
from apps.bookings.domain.availability import available_start_times


def check_availability(
    context: SchedulingContext,
    resource_id: UUID,
    day: date,
    duration_minutes: int | None = None,
) -> List[datetime]:
    """Start times on `day` at which `resource_id` is free for `duration_minutes`."""
    duration = duration_minutes or context.default_duration_minutes
    opening, closing = context.grid.day_bounds(day)
    # A candidate may run past closing when fit_within_hours is off.
    horizon = closing + timedelta(minutes=duration)
    bookings = context.repository.list_bookings(resource_id, TimeRange(opening, horizon))
    return available_start_times(
        context.grid,
        day,
        duration,
        bookings,
        now=context.now(),
        guard_minutes=context.guard_minutes,
        fit_within_hours=context.fit_within_hours,
    )
