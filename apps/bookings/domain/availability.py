"""
Availability calculator

For one resource and one day, the start times a client could pick. A
pure query: an empty list means a fully booked (or already past) day.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, List

from apps.bookings.domain.conflicts import overlaps
from apps.bookings.domain.grid import TimeGrid

DEFAULT_GUARD_MINUTES = 15


def available_start_times(
    grid: TimeGrid,
    day: date,
    duration_minutes: int,
    bookings: Iterable,
    now: datetime,
    guard_minutes: int = DEFAULT_GUARD_MINUTES,
    fit_within_hours: bool = True,
) -> List[datetime]:
    """
    Walk the day's grid in slot steps and keep every candidate start that

    - is not before now + guard_minutes,
    - ends no later than the grid's closing time (unless
      fit_within_hours is off),
    - does not overlap a non-cancelled booking.

    `bookings` must already be limited to the resource being queried.
    """
    if duration_minutes <= 0:
        return []

    length = timedelta(minutes=duration_minutes)
    earliest = now + timedelta(minutes=guard_minutes)
    closing = grid.day_close(day)
    busy = [(b.start, b.end) for b in bookings if b.blocks_resource]

    accepted: List[datetime] = []
    for candidate in grid.slots_for_day(day):
        candidate_end = candidate + length
        if candidate < earliest:
            continue
        if fit_within_hours and candidate_end > closing:
            continue
        if any(overlaps(candidate, candidate_end, start, end) for start, end in busy):
            continue
        accepted.append(candidate)
    return accepted
