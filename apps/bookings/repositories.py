"""Django ORM adapters for the scheduling core's persistence contracts."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, List
from uuid import UUID

from django.db import DatabaseError, IntegrityError, transaction  # type: ignore
from django.db.models import Q  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from shared.domain.value_objects import TimeRange

from apps.bookings.application.ports import (
    BookingRepository,
    CatalogRepository,
    ClientRecord,
    ServiceTerms,
    StaffMember,
)
from apps.bookings.domain.entities import Booking, BookingStatus
from apps.bookings.domain.errors import BookingConflictError, BookingNotFound, PersistenceError
from apps.bookings.domain.pricing import BillingBasis, BillingMode, PaymentMethod, PaymentStatus
from apps.bookings.models import NO_OVERLAP_CONSTRAINT
from apps.bookings.models import Booking as BookingRow
from apps.studio.models import Client, Service, Staff

logger = logging.getLogger(__name__)

# Domain attributes stored under the same column name.
PLAIN_FIELDS = (
    'org_id', 'resource_id', 'staff_id', 'service_id', 'client_id',
    'client_name', 'client_phone', 'total_price', 'discount', 'deposit',
    'paid_at', 'settled_deposit', 'started_at', 'ended_at', 'notes', 'color',
    'created_at', 'updated_at',
)


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def to_domain(row: BookingRow) -> Booking:
    return Booking(
        id=row.id,
        org_id=row.org_id,
        resource_id=row.resource_id,
        staff_id=row.staff_id,
        service_id=row.service_id,
        client_id=row.client_id,
        client_name=row.client_name,
        client_phone=row.client_phone,
        window=TimeRange(row.start_at, row.end_at),
        billing=BillingBasis(BillingMode(row.billing_mode), row.unit_price, row.unit_minutes),
        total_price=row.total_price,
        discount=row.discount,
        deposit=row.deposit,
        payment_status=PaymentStatus(row.payment_status),
        payment_method=PaymentMethod(row.payment_method) if row.payment_method else None,
        paid_at=row.paid_at,
        settled_deposit=row.settled_deposit,
        status=BookingStatus(row.status),
        started_at=row.started_at,
        ended_at=row.ended_at,
        notes=row.notes,
        color=row.color,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_columns(fields: dict[str, Any]) -> dict[str, Any]:
    """Translate changed domain attributes into model column values."""
    columns: dict[str, Any] = {}
    for name, value in fields.items():
        if name == 'window':
            columns.update(start_at=value.start, end_at=value.end, duration_minutes=value.duration_minutes)
        elif name == 'billing':
            columns.update(
                billing_mode=value.mode.value,
                unit_price=value.unit_price,
                unit_minutes=value.unit_minutes,
            )
        elif name in ('status', 'payment_status'):
            columns[name] = value.value
        elif name == 'payment_method':
            columns[name] = value.value if value else ''
        elif name in PLAIN_FIELDS:
            columns[name] = value
        else:
            raise PersistenceError(f"Unknown booking field: {name}")
    return columns


@contextmanager
def store_errors():
    """Savepoint around one write, mapping database errors onto scheduling errors."""
    try:
        with transaction.atomic():
            yield
    except IntegrityError as e:
        if NO_OVERLAP_CONSTRAINT in str(e):
            logger.warning(f"Datastore overlap guard rejected write: {e}")
            raise BookingConflictError() from e
        logger.error(f"Booking write failed: {e}")
        raise PersistenceError(str(e)) from e
    except DatabaseError as e:
        logger.error(f"Booking write failed: {e}")
        raise PersistenceError(str(e)) from e


class DjangoBookingRepository(BookingRepository):
    """
    Bookings over the ORM.

    Writes run in their own savepoint so a rejected write leaves the
    surrounding transaction usable. The PostgreSQL exclusion constraint
    is reported as BookingConflictError.
    """

    def list_bookings(self, resource_id: UUID | None = None, window: TimeRange | None = None) -> List[Booking]:
        queryset = BookingRow.objects.all()
        if resource_id is not None:
            queryset = queryset.filter(resource_id=resource_id)
        if window is not None:
            queryset = queryset.filter(Q(start_at__lt=window.end) & Q(end_at__gt=window.start))
        queryset = _lock_queryset_if_possible(queryset.order_by('start_at'))
        try:
            return [to_domain(row) for row in queryset]
        except DatabaseError as e:
            raise PersistenceError(str(e)) from e

    def get(self, booking_id: UUID) -> Booking:
        try:
            return to_domain(BookingRow.objects.get(pk=booking_id))
        except BookingRow.DoesNotExist:
            raise BookingNotFound("Booking not found.", booking_id=str(booking_id))
        except DatabaseError as e:
            raise PersistenceError(str(e)) from e

    def insert(self, booking: Booking) -> Booking:
        columns = to_columns({
            'window': booking.window,
            'billing': booking.billing,
            'status': booking.status,
            'payment_status': booking.payment_status,
            'payment_method': booking.payment_method,
            **{name: getattr(booking, name) for name in PLAIN_FIELDS},
        })
        with store_errors():
            row = BookingRow.objects.create(id=booking.id, **columns)
        logger.debug(f"Inserted booking row {row.id}")
        return to_domain(row)

    def update(self, booking_id: UUID, fields: dict[str, Any]) -> Booking:
        if fields:
            columns = to_columns(fields)
            with store_errors():
                updated = BookingRow.objects.filter(pk=booking_id).update(**columns)
            if not updated:
                raise BookingNotFound("Booking not found.", booking_id=str(booking_id))
        return self.get(booking_id)

    def delete(self, booking_id: UUID) -> None:
        with store_errors():
            deleted, _ = BookingRow.objects.filter(pk=booking_id).delete()
        if not deleted:
            raise BookingNotFound("Booking not found.", booking_id=str(booking_id))


class DjangoCatalogRepository(CatalogRepository):

    def get_service(self, service_id: UUID) -> ServiceTerms | None:
        service = Service.objects.filter(pk=service_id).first()
        if service is None:
            return None
        return ServiceTerms(
            id=service.id,
            name=service.name,
            duration_minutes=service.duration_minutes,
            price=service.price,
            active=service.active,
        )

    def get_staff(self, staff_id: UUID) -> StaffMember | None:
        staff = Staff.objects.filter(pk=staff_id).first()
        if staff is None:
            return None
        return StaffMember(id=staff.id, name=staff.name, role=staff.role, active=staff.active)

    def get_client(self, client_id: UUID) -> ClientRecord | None:
        client = Client.objects.filter(pk=client_id).first()
        return self._client_record(client) if client else None

    def find_client_by_name(self, name: str) -> ClientRecord | None:
        if not name:
            return None
        matches = list(Client.objects.filter(name__iexact=name.strip())[:2])
        if len(matches) != 1:
            return None
        return self._client_record(matches[0])

    @staticmethod
    def _client_record(client: Client) -> ClientRecord:
        return ClientRecord(id=client.id, name=client.name, phone=client.phone, email=client.email)
