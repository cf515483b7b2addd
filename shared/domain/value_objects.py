"""
Common Value Objects

- TimeRange: a half-open interval [start, end) of aware datetimes,
  the unit of everything the scheduler reserves
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from shared.domain.base import ValueObject


@dataclass(frozen=True)
class TimeRange(ValueObject):
    """
    Time range value object

    Represents the interval from `start` (inclusive) to `end` (exclusive).
    Ranges that merely touch (one ends at 10:00, the next starts at 10:00)
    do not overlap.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("TimeRange requires timezone-aware datetimes")
        if self.start >= self.end:
            raise ValueError(f"Start ({self.start.isoformat()}) must be before end ({self.end.isoformat()})")

    @classmethod
    def from_duration(cls, start: datetime, minutes: int) -> 'TimeRange':
        return cls(start, start + timedelta(minutes=minutes))

    def overlaps_with(self, other: 'TimeRange') -> bool:
        """
        Check if this range overlaps with another

        Overlap formula: start1 < end2 AND end1 > start2

        Examples:
            - 10:00-11:00 overlaps with 10:30-11:30 -> True
            - 10:00-11:00 overlaps with 11:00-12:00 -> False (touching)
        """
        if not isinstance(other, TimeRange):
            raise TypeError("Can only check overlap with another TimeRange")
        return self.start < other.end and self.end > other.start

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    def shifted_to(self, start: datetime) -> 'TimeRange':
        """Same length, new start"""
        return TimeRange(start, start + (self.end - self.start))

    def with_end(self, end: datetime) -> 'TimeRange':
        return TimeRange(self.start, end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_minutes(self) -> int:
        return int(self.duration.total_seconds() // 60)

    def __str__(self):
        return f"{self.start.strftime('%d.%m.%Y %H:%M')} - {self.end.strftime('%d.%m.%Y %H:%M')}"

    def __repr__(self):
        return f"TimeRange({self.start.isoformat()}, {self.end.isoformat()})"
