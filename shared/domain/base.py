"""
Base Domain Classes

Building blocks shared by the scheduling domain:
- Entity: objects with identity (a booking, a resource)
- ValueObject: immutable objects compared by value (a time range)
- Aggregate: consistency boundary that records domain events
- DomainEvent: something that happened to an aggregate

All timestamps produced here are timezone-aware (UTC).
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(eq=False, kw_only=True)
class Entity(ABC):
    """
    Base class for all entities

    Two entities are equal if their IDs are equal, whatever the
    state of their other attributes.
    """
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    """
    pass


@dataclass(eq=False, kw_only=True)
class Aggregate(Entity):
    """
    Base class for aggregate roots

    Events recorded here are handed to the unit of work and published
    only after the datastore accepted the change.
    """
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False)

    def add_event(self, event: 'DomainEvent'):
        self._events.append(event)

    def clear_events(self):
        self._events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Copy of the pending events"""
        return self._events.copy()


@dataclass(kw_only=True)
class DomainEvent:
    """
    Base class for domain events

    Subclasses add the fields their subscribers need; `to_dict` gives
    the envelope written to the log when the event is published.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=utcnow)
    aggregate_id: UUID | None = None

    def to_dict(self) -> dict:
        return {
            'event_id': str(self.event_id),
            'event_type': self.__class__.__name__,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': str(self.aggregate_id) if self.aggregate_id else None,
        }
