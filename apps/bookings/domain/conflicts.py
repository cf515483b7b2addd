"""
Conflict detector

The single authoritative predicate for "does this booking fit". It is
called before insert and before a move, resize or restore is committed,
and nowhere else.

Rule: [s1, e1) and [s2, e2) overlap iff s1 < e2 and e1 > s2. Touching
endpoints do not conflict. Cancelled bookings and the booking being
edited are left out of the comparison.

Resource exclusivity is always enforced. Staff and client exclusivity
(no double-booking a person across resources) are opt-in dimensions of
the ConflictPolicy.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, List
from uuid import UUID

from shared.domain.value_objects import TimeRange

from apps.bookings.domain.errors import BookingConflictError


class ConflictDimension(Enum):
    RESOURCE = 'resource'
    STAFF = 'staff'
    CLIENT = 'client'


CONFLICT_MESSAGES = {
    ConflictDimension.RESOURCE: "Resource busy in that window.",
    ConflictDimension.STAFF: "Staff member already has a session in that window.",
    ConflictDimension.CLIENT: "Client already has a session in that window.",
}


@dataclass(frozen=True)
class ConflictPolicy:
    dimensions: frozenset = frozenset({ConflictDimension.RESOURCE})

    def __post_init__(self):
        if ConflictDimension.RESOURCE not in self.dimensions:
            raise ValueError("Resource exclusivity cannot be disabled")

    @classmethod
    def from_names(cls, names: Iterable[str]) -> 'ConflictPolicy':
        dimensions = {ConflictDimension(name) for name in names}
        dimensions.add(ConflictDimension.RESOURCE)
        return cls(frozenset(dimensions))

    def enforces(self, dimension: ConflictDimension) -> bool:
        return dimension in self.dimensions


RESOURCE_ONLY = ConflictPolicy()


@dataclass(frozen=True)
class Candidate:
    """What is being placed: a resource/time window plus who is in it."""
    resource_id: UUID
    window: TimeRange
    staff_id: UUID | None = None
    client_id: UUID | None = None
    exclude_id: UUID | None = None


@dataclass(frozen=True)
class Conflict:
    dimension: ConflictDimension
    booking_id: UUID
    window: TimeRange

    @property
    def message(self) -> str:
        return CONFLICT_MESSAGES[self.dimension]


def _is_comparable(booking, exclude_id: UUID | None) -> bool:
    return booking.blocks_resource and (exclude_id is None or booking.id != exclude_id)


def overlaps(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    return start1 < end2 and end1 > start2


def has_conflict(resource_id: UUID, start: datetime, end: datetime, bookings: Iterable, exclude_id: UUID | None = None) -> bool:
    """True if [start, end) overlaps an active booking on the same resource."""
    for booking in bookings:
        if booking.resource_id != resource_id or not _is_comparable(booking, exclude_id):
            continue
        if overlaps(start, end, booking.start, booking.end):
            return True
    return False


def find_conflicts(candidate: Candidate, bookings: Iterable, policy: ConflictPolicy = RESOURCE_ONLY) -> List[Conflict]:
    """
    Every booking the candidate collides with, tagged with the dimension
    it collides on. One booking may appear once per dimension.
    """
    conflicts: List[Conflict] = []
    for booking in bookings:
        if not _is_comparable(booking, candidate.exclude_id):
            continue
        if not booking.window.overlaps_with(candidate.window):
            continue
        if booking.resource_id == candidate.resource_id:
            conflicts.append(Conflict(ConflictDimension.RESOURCE, booking.id, booking.window))
        if (
            policy.enforces(ConflictDimension.STAFF)
            and candidate.staff_id is not None
            and booking.staff_id == candidate.staff_id
        ):
            conflicts.append(Conflict(ConflictDimension.STAFF, booking.id, booking.window))
        if (
            policy.enforces(ConflictDimension.CLIENT)
            and candidate.client_id is not None
            and booking.client_id == candidate.client_id
        ):
            conflicts.append(Conflict(ConflictDimension.CLIENT, booking.id, booking.window))
    return conflicts


def ensure_no_conflict(candidate: Candidate, bookings: Iterable, policy: ConflictPolicy = RESOURCE_ONLY) -> None:
    """
    Raise BookingConflictError naming the first busy dimension.

    Resource conflicts are reported first; the caller never shifts times
    to make the booking fit.
    """
    conflicts = find_conflicts(candidate, bookings, policy)
    if not conflicts:
        return
    conflicts.sort(key=lambda c: list(ConflictDimension).index(c.dimension))
    first = conflicts[0]
    raise BookingConflictError(
        first.message,
        conflicts=conflicts,
        window=str(candidate.window),
        booking_id=str(first.booking_id),
    )
