"""
Scheduling session

The owned store behind one calendar view: which window and resource are
visible, and the bookings in it. The booking tuple is only ever replaced
wholesale by a fetch; mutations go through the command bus and are
followed by a refresh.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Tuple
from uuid import UUID

from shared.application.message_bus import MessageBus
from shared.domain.value_objects import TimeRange

from apps.bookings.application.ports import BookingRepository
from apps.bookings.application.reschedule import RescheduleResult
from apps.bookings.domain.entities import Booking

logger = logging.getLogger(__name__)


@dataclass
class SchedulingSession:
    repository: BookingRepository
    bus: MessageBus
    window: TimeRange | None = None
    resource_id: UUID | None = None
    bookings: Tuple[Booking, ...] = field(default=(), init=False)
    generation: int = field(default=0, init=False)

    def navigate(self, window: TimeRange, resource_id: UUID | None = None) -> int:
        """Show another window. Fetches still in flight for the old one become stale."""
        self.window = window
        self.resource_id = resource_id
        self.generation += 1
        return self.generation

    def begin_fetch(self) -> int:
        return self.generation

    def apply_fetch(self, generation: int, bookings) -> bool:
        """Install a fetch result; a result for an older generation is dropped."""
        if generation != self.generation:
            logger.debug(f"Discarding stale fetch (generation {generation}, current {self.generation})")
            return False
        self.bookings = tuple(bookings)
        return True

    def refresh(self) -> Tuple[Booking, ...]:
        generation = self.begin_fetch()
        fetched = self.repository.list_bookings(self.resource_id, self.window)
        self.apply_fetch(generation, fetched)
        return self.bookings

    def dispatch(self, command) -> Any:
        """
        Run a command through the bus and refresh on success.

        A rejected reschedule (conflict) and any raised error leave the
        visible bookings untouched.
        """
        result = self.bus.handle_command(command)
        if isinstance(result, RescheduleResult) and not result.ok:
            return result
        self.refresh()
        return result

    def find(self, booking_id: UUID) -> Booking | None:
        return next((b for b in self.bookings if b.id == booking_id), None)
