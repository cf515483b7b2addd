"""
Pointer gestures on the calendar grid

A resize drag holds its new end as a local preview while the pointer
moves; nothing is validated or written until release.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from apps.bookings.application.reschedule import RescheduleEngine, RescheduleResult
from apps.bookings.domain.entities import Booking


def slot_delta(delta_px: float, cell_height: float) -> int:
    """
    Whole slots covered by a vertical pointer delta.

    Growing counts only fully covered slots (floor), shrinking likewise
    (ceil of a negative value).
    """
    slots = delta_px / cell_height
    return math.floor(slots) if slots >= 0 else math.ceil(slots)


@dataclass
class ResizeGesture:
    engine: RescheduleEngine
    booking: Booking
    cell_height: float
    preview_end: datetime | None = field(default=None, init=False)

    @property
    def slot_minutes(self) -> int:
        return self.engine.context.grid.slot_minutes

    def update(self, delta_px: float) -> datetime:
        """Move the preview; returns the previewed end time."""
        step = timedelta(minutes=self.slot_minutes)
        proposed = self.booking.end + slot_delta(delta_px, self.cell_height) * step
        self.preview_end = max(proposed, self.booking.start + step)
        return self.preview_end

    def cancel(self):
        self.preview_end = None

    def release(self) -> RescheduleResult | None:
        """Commit the previewed end. Without a preview (or an unchanged end) nothing happens."""
        preview, self.preview_end = self.preview_end, None
        if preview is None or preview == self.booking.end:
            return None
        return self.engine.apply_resize(self.booking.id, preview)
