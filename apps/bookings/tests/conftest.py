"""In-memory collaborators for exercising the scheduling core without a database."""

from __future__ import annotations

import copy
from datetime import datetime, timedelta
from functools import partial
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from shared.application.message_bus import MessageBus
from shared.application.uow import ImmediateUnitOfWork
from shared.domain.value_objects import TimeRange

from apps.bookings.application.context import SchedulingContext
from apps.bookings.application.ports import (
    BookingRepository,
    CatalogRepository,
    ClientRecord,
    NotificationDispatcher,
    ServiceTerms,
    StaffMember,
)
from apps.bookings.bootstrap import register_handlers
from apps.bookings.domain.conflicts import RESOURCE_ONLY
from apps.bookings.domain.entities import Booking
from apps.bookings.domain.errors import BookingConflictError, BookingNotFound, PersistenceError
from apps.bookings.domain.grid import TimeGrid
from apps.bookings.domain.pricing import BillingBasis

SANTIAGO = ZoneInfo("America/Santiago")


class InMemoryBookingRepository(BookingRepository):
    """
    Dict-backed store. Hands out copies, like a real datastore would.

    With `guard_overlaps` it also rejects overlapping writes, standing in
    for the exclusion constraint.
    """

    def __init__(self, guard_overlaps: bool = False):
        self.rows: dict = {}
        self.guard_overlaps = guard_overlaps
        self.fail_with: str | None = None
        self.writes = 0

    def _copy(self, booking: Booking) -> Booking:
        fresh = copy.deepcopy(booking)
        fresh.clear_events()
        fresh._dirty.clear()
        return fresh

    def _check(self):
        if self.fail_with:
            raise PersistenceError(self.fail_with)

    def _guard(self, booking: Booking):
        if not self.guard_overlaps or not booking.blocks_resource:
            return
        for other in self.rows.values():
            if (
                other.id != booking.id
                and other.blocks_resource
                and other.resource_id == booking.resource_id
                and other.window.overlaps_with(booking.window)
            ):
                raise BookingConflictError()

    def list_bookings(self, resource_id=None, window: TimeRange | None = None):
        self._check()
        found = [
            self._copy(b) for b in self.rows.values()
            if (resource_id is None or b.resource_id == resource_id)
            and (window is None or b.window.overlaps_with(window))
        ]
        return sorted(found, key=lambda b: b.start)

    def get(self, booking_id):
        self._check()
        if booking_id not in self.rows:
            raise BookingNotFound("Booking not found.")
        return self._copy(self.rows[booking_id])

    def insert(self, booking: Booking) -> Booking:
        self._check()
        self._guard(booking)
        self.rows[booking.id] = self._copy(booking)
        self.writes += 1
        return self._copy(booking)

    def update(self, booking_id, fields):
        self._check()
        if booking_id not in self.rows:
            raise BookingNotFound("Booking not found.")
        candidate = self._copy(self.rows[booking_id])
        for name, value in fields.items():
            setattr(candidate, name, value)
        self._guard(candidate)
        self.rows[booking_id] = candidate
        self.writes += 1
        return self._copy(candidate)

    def delete(self, booking_id) -> None:
        self._check()
        if self.rows.pop(booking_id, None) is None:
            raise BookingNotFound("Booking not found.")


class InMemoryCatalog(CatalogRepository):

    def __init__(self):
        self.service_rows: dict = {}
        self.staff_rows: dict = {}
        self.client_rows: dict = {}

    def add_service(self, name="Mix", duration_minutes=60, price=60000, active=True) -> ServiceTerms:
        service = ServiceTerms(uuid4(), name, duration_minutes, price, active)
        self.service_rows[service.id] = service
        return service

    def add_staff(self, name="Engineer", role="engineer", active=True) -> StaffMember:
        staff = StaffMember(uuid4(), name, role, active)
        self.staff_rows[staff.id] = staff
        return staff

    def add_client(self, name="Ana Pérez", phone="+56911111111", email="ana@example.com") -> ClientRecord:
        client = ClientRecord(uuid4(), name, phone, email)
        self.client_rows[client.id] = client
        return client

    def get_service(self, service_id):
        return self.service_rows.get(service_id)

    def get_staff(self, staff_id):
        return self.staff_rows.get(staff_id)

    def get_client(self, client_id):
        return self.client_rows.get(client_id)

    def find_client_by_name(self, name):
        matches = [c for c in self.client_rows.values() if c.name.lower() == name.strip().lower()]
        return matches[0] if len(matches) == 1 else None


class RecordingDispatcher(NotificationDispatcher):

    def __init__(self):
        self.created = []

    def notify_booking_created(self, booking_id) -> None:
        self.created.append(booking_id)


class Clock:

    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta):
        self.current += timedelta(**delta)


@pytest.fixture
def grid() -> TimeGrid:
    return TimeGrid(start_hour=8, end_hour=23, slot_minutes=30, tz=SANTIAGO)


@pytest.fixture
def day():
    return datetime(2030, 6, 3).date()


@pytest.fixture
def at(day):
    """Local wall-clock time on the test day: at(10, 30)."""

    def build(hour: int, minute: int = 0, days: int = 0) -> datetime:
        return datetime(day.year, day.month, day.day, hour, minute, tzinfo=SANTIAGO) + timedelta(days=days)

    return build


@pytest.fixture
def clock(at) -> Clock:
    return Clock(at(7, 0))


@pytest.fixture
def repository() -> InMemoryBookingRepository:
    return InMemoryBookingRepository()


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def bus() -> MessageBus:
    return MessageBus()


@pytest.fixture
def context(repository, catalog, grid, clock, bus) -> SchedulingContext:
    return SchedulingContext(
        repository=repository,
        catalog=catalog,
        grid=grid,
        policy=RESOURCE_ONLY,
        clock=clock,
        uow_factory=partial(ImmediateUnitOfWork, bus),
    )


@pytest.fixture
def wired_bus(bus, context, dispatcher) -> MessageBus:
    register_handlers(bus, context, dispatcher)
    return bus


@pytest.fixture
def resource_id():
    return uuid4()


@pytest.fixture
def make_booking(repository, resource_id, at, clock):
    """Store a booking directly, bypassing the coordinator."""

    def build(start: datetime, end: datetime, *, resource=None, billing=None, **attrs) -> Booking:
        booking = Booking.schedule(
            resource_id=resource or resource_id,
            window=TimeRange(start, end),
            billing=billing or BillingBasis.none(),
            now=clock(),
            **attrs,
        )
        return repository.insert(booking)

    return build
