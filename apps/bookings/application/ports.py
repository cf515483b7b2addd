"""
Contracts of the external collaborators

The scheduling core talks to the datastore, the catalog and the
notification dispatcher only through these interfaces. Django-backed
implementations live in `apps.bookings.repositories` and
`apps.notifications.dispatch`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List
from uuid import UUID

from shared.domain.value_objects import TimeRange

from apps.bookings.domain.entities import Booking


@dataclass(frozen=True)
class ServiceTerms:
    id: UUID
    name: str
    duration_minutes: int
    price: int
    active: bool = True


@dataclass(frozen=True)
class StaffMember:
    id: UUID
    name: str
    role: str = ''
    active: bool = True


@dataclass(frozen=True)
class ClientRecord:
    id: UUID
    name: str
    phone: str = ''
    email: str = ''


class BookingRepository(ABC):
    """
    Persistence contract for bookings.

    Every method raises PersistenceError (BookingNotFound for a missing
    id) with the store's message on failure. A storage-level overlap
    violation surfaces as BookingConflictError.
    """

    @abstractmethod
    def list_bookings(self, resource_id: UUID | None = None, window: TimeRange | None = None) -> List[Booking]:
        """Bookings overlapping `window` (all when None), optionally for one resource."""

    @abstractmethod
    def get(self, booking_id: UUID) -> Booking:
        pass

    @abstractmethod
    def insert(self, booking: Booking) -> Booking:
        pass

    @abstractmethod
    def update(self, booking_id: UUID, fields: dict[str, Any]) -> Booking:
        pass

    @abstractmethod
    def delete(self, booking_id: UUID) -> None:
        pass


class CatalogRepository(ABC):
    """Read-only lookups of services, staff and clients."""

    @abstractmethod
    def get_service(self, service_id: UUID) -> ServiceTerms | None:
        pass

    @abstractmethod
    def get_staff(self, staff_id: UUID) -> StaffMember | None:
        pass

    @abstractmethod
    def get_client(self, client_id: UUID) -> ClientRecord | None:
        pass

    @abstractmethod
    def find_client_by_name(self, name: str) -> ClientRecord | None:
        """Case-insensitive exact match, None when absent or ambiguous."""


class NotificationDispatcher(ABC):
    """Fire-and-forget: implementations log failures and never raise."""

    @abstractmethod
    def notify_booking_created(self, booking_id: UUID) -> None:
        pass
