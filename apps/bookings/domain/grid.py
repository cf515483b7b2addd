"""
Time grid

Single source of truth for slot arithmetic. A grid is a day split into
fixed-width slots from `start_hour` to `end_hour`; `end_hour` may go past
24 to express opening hours that run into the next morning (28 means
"until 04:00").
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterator
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class TimeGrid:
    start_hour: int = 8
    end_hour: int = 23
    slot_minutes: int = 30
    tz: tzinfo = ZoneInfo("UTC")

    def __post_init__(self):
        if self.slot_minutes <= 0:
            raise ValueError("slot_minutes must be positive")
        if not 0 <= self.start_hour < self.end_hour <= 48:
            raise ValueError(
                f"Invalid opening hours {self.start_hour}..{self.end_hour}"
            )
        if ((self.end_hour - self.start_hour) * 60) % self.slot_minutes:
            raise ValueError("Opening hours must be a whole number of slots")

    @property
    def total_slots(self) -> int:
        return (self.end_hour - self.start_hour) * 60 // self.slot_minutes

    def day_open(self, day: date) -> datetime:
        midnight = datetime.combine(day, time(0), tzinfo=self.tz)
        return midnight + timedelta(hours=self.start_hour)

    def day_close(self, day: date) -> datetime:
        midnight = datetime.combine(day, time(0), tzinfo=self.tz)
        return midnight + timedelta(hours=self.end_hour)

    def day_bounds(self, day: date) -> tuple[datetime, datetime]:
        return self.day_open(day), self.day_close(day)

    def clamp_slot(self, slot_index: int) -> int:
        return max(0, min(self.total_slots - 1, slot_index))

    def slot_index_to_timestamp(self, day: date, slot_index: int) -> datetime:
        """`day` at start_hour:00 plus `slot_index` slots, index clamped into the day."""
        minutes = self.clamp_slot(slot_index) * self.slot_minutes
        return self.day_open(day) + timedelta(minutes=minutes)

    def timestamp_to_slot_float(self, moment: datetime, day: date | None = None) -> float:
        """
        Position of `moment` on the grid of `day` in slot units.

        Fractional results are expected: a booking need not start on a
        slot boundary. The result is clamped into [0, total_slots].
        """
        if day is None:
            day = self.grid_day(moment)
        offset = (moment - self.day_open(day)).total_seconds() / 60
        position = offset / self.slot_minutes
        return max(0.0, min(float(self.total_slots), position))

    def grid_day(self, moment: datetime) -> date:
        """
        Calendar day whose grid contains `moment`.

        With end_hour past 24, 02:00 belongs to the previous day's grid.
        """
        local = moment.astimezone(self.tz)
        if self.end_hour > 24 and local.hour < self.end_hour - 24 and local.hour < self.start_hour:
            return local.date() - timedelta(days=1)
        return local.date()

    def snap_to_grid(self, minutes: float) -> int:
        """Nearest multiple of slot_minutes. For pointer gestures, never for validation."""
        return int(round(minutes / self.slot_minutes)) * self.slot_minutes

    def slots_for_day(self, day: date) -> Iterator[datetime]:
        opening = self.day_open(day)
        for index in range(self.total_slots):
            yield opening + timedelta(minutes=index * self.slot_minutes)
