"""
Booking Domain Events

Published after the datastore accepted the change.
"""

from dataclasses import dataclass
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import TimeRange


@dataclass(kw_only=True)
class BookingCreated(DomainEvent):
    """
    Event: A new booking was created

    Triggers:
    - Booking confirmation to the client (email / SMS)
    """
    booking_id: UUID
    resource_id: UUID
    window: TimeRange
    total_price: int


@dataclass(kw_only=True)
class BookingRescheduled(DomainEvent):
    """Event: A booking was dragged to another slot and/or resource"""
    booking_id: UUID
    old_resource_id: UUID
    new_resource_id: UUID
    old_window: TimeRange
    new_window: TimeRange


@dataclass(kw_only=True)
class BookingResized(DomainEvent):
    """Event: A booking's end time changed and it was repriced"""
    booking_id: UUID
    old_window: TimeRange
    new_window: TimeRange
    total_price: int


@dataclass(kw_only=True)
class BookingPaymentChanged(DomainEvent):
    booking_id: UUID
    payment_status: str
    balance: int


@dataclass(kw_only=True)
class BookingCancelled(DomainEvent):
    """Event: Booking cancelled; its slot is free again"""
    booking_id: UUID
    resource_id: UUID
    old_status: str


@dataclass(kw_only=True)
class BookingRestored(DomainEvent):
    """Event: A cancelled booking was put back on the grid"""
    booking_id: UUID
    resource_id: UUID


@dataclass(kw_only=True)
class BookingDeleted(DomainEvent):
    booking_id: UUID
    resource_id: UUID


@dataclass(kw_only=True)
class SessionStarted(DomainEvent):
    booking_id: UUID


@dataclass(kw_only=True)
class SessionStopped(DomainEvent):
    booking_id: UUID
    minutes: int
