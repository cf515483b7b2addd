"""
Reschedule engine

The mutation paths that change a booking's time or resource after
creation:

- move (drag): new resource and start, duration preserved
- resize: new end time, price recomputed for the new duration
- change (edit form): any of resource, start and end at once

All of them run the conflict detector and the pricing engine on the final
state only, and write nothing when the conflict check fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Tuple
from uuid import UUID

from shared.domain.value_objects import TimeRange

from apps.bookings.application.checks import conflicts_for, reject_past
from apps.bookings.application.context import SchedulingContext
from apps.bookings.domain.conflicts import Candidate, Conflict
from apps.bookings.domain.entities import Booking
from apps.bookings.domain.errors import BookingConflictError, BookingValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RescheduleResult:
    ok: bool
    booking: Booking
    conflicts: Tuple[Conflict, ...] = field(default_factory=tuple)

    @property
    def conflict(self) -> bool:
        return not self.ok

    @property
    def message(self) -> str:
        if self.ok:
            return ''
        if self.conflicts:
            return self.conflicts[0].message
        return "Resource busy in that window."


class RescheduleEngine:

    def __init__(self, context: SchedulingContext):
        self.context = context

    def apply_move(self, booking_id: UUID, new_resource_id: UUID, new_start: datetime) -> RescheduleResult:
        """
        Move a booking to `new_resource_id` starting at `new_start`.

        The duration is preserved. On conflict the booking stays where it
        was and nothing is written.
        """
        booking = self.context.repository.get(booking_id)
        reject_past(self.context, new_start)
        return self._reschedule(booking, new_resource_id, booking.window.shifted_to(new_start))

    def move_to_slot(self, booking_id: UUID, resource_id: UUID, day: date, slot_index: int) -> RescheduleResult:
        """Grid-driven move: the drop target is a (resource, day, slot) cell."""
        new_start = self.context.grid.slot_index_to_timestamp(day, slot_index)
        return self.apply_move(booking_id, resource_id, new_start)

    def apply_resize(self, booking_id: UUID, new_end: datetime) -> RescheduleResult:
        """
        Change a booking's end time.

        The new duration must be at least one slot. On success duration,
        total, balance and payment status are recomputed and written in
        one update.
        """
        booking = self.context.repository.get(booking_id)
        window = self._window(booking, booking.start, new_end)
        return self._reschedule(booking, booking.resource_id, window)

    def apply_change(
        self,
        booking_id: UUID,
        *,
        resource_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        details: dict[str, Any] | None = None,
    ) -> RescheduleResult:
        """
        Edit resource, start and end together.

        A new start without a new end keeps the duration. Only the final
        window is checked and priced, and `details` go out in the same
        write.
        """
        booking = self.context.repository.get(booking_id)
        resource_id = resource_id or booking.resource_id
        start = start or booking.start
        if end is None:
            end = start + booking.window.duration
        if resource_id != booking.resource_id or start != booking.start:
            reject_past(self.context, start)
        window = self._window(booking, start, end)
        return self._reschedule(booking, resource_id, window, details=details)

    def _window(self, booking: Booking, start: datetime, end: datetime) -> TimeRange:
        slot_minutes = self.context.grid.slot_minutes
        if end < start + timedelta(minutes=slot_minutes):
            raise BookingValidationError(
                f"A booking lasts at least {slot_minutes} minutes.",
                booking_id=str(booking.id),
            )
        return TimeRange(start, end)

    def _reschedule(
        self,
        booking: Booking,
        resource_id: UUID,
        window: TimeRange,
        details: dict[str, Any] | None = None,
    ) -> RescheduleResult:
        context = self.context
        details = details or {}
        candidate = Candidate(
            resource_id=resource_id,
            window=window,
            staff_id=details.get('staff_id', booking.staff_id),
            client_id=booking.client_id,
            exclude_id=booking.id,
        )
        with context.unit_of_work() as uow:
            conflicts = conflicts_for(context, candidate)
            if conflicts:
                return RescheduleResult(ok=False, booking=booking, conflicts=tuple(conflicts))

            now = context.now()
            booking.reschedule(resource_id=resource_id, window=window, now=now)
            if details:
                booking.update_details(now=now, **details)
            saved = self._persist(booking)
            if saved is None:
                return RescheduleResult(ok=False, booking=context.repository.get(booking.id))
            uow.collect_events(booking)

        logger.info(
            f"Booking {booking.id} now on resource {resource_id} at {window} "
            f"(total {saved.total_price}, status {saved.payment_status.value})"
        )
        return RescheduleResult(ok=True, booking=saved)

    def _persist(self, booking: Booking) -> Booking | None:
        """Write pending changes; a storage-level overlap rejection yields None."""
        try:
            return self.context.repository.update(booking.id, booking.take_changes())
        except BookingConflictError:
            logger.warning(f"Datastore rejected new window for booking {booking.id}")
            booking.clear_events()
            return None
