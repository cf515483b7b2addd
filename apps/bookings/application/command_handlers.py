"""
Booking Command Handlers

The use cases of the scheduling core. Each handler sequences
validation -> conflict check -> pricing -> persistence -> events, and
nothing else writes bookings.

Commands:
- CreateBookingCommand / QuoteBookingCommand
- MoveBookingCommand / ResizeBookingCommand (delegated to RescheduleEngine)
- UpdateBillingCommand / TogglePaymentCommand / UpdateDetailsCommand
- CancelBookingCommand / RestoreBookingCommand / DeleteBookingCommand
- StartSessionCommand / StopSessionCommand
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from uuid import UUID

from shared.domain.value_objects import TimeRange

from apps.bookings.application.checks import conflicts_for, ensure_fits, reject_past
from apps.bookings.application.context import SchedulingContext
from apps.bookings.application.reschedule import RescheduleEngine, RescheduleResult
from apps.bookings.domain.conflicts import Candidate, Conflict
from apps.bookings.domain.entities import Booking
from apps.bookings.domain.errors import BookingValidationError
from apps.bookings.domain.events import BookingCreated
from apps.bookings.domain.pricing import (
    BillingBasis,
    BillingMode,
    PaymentMethod,
    PaymentStatus,
    price_booking,
)

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    `end` is optional: without it the duration comes from
    `duration_minutes`, then the service, then the configured default.
    """
    resource_id: UUID | None
    start: datetime | None
    client_id: UUID | None = None
    client_name: str = ''
    client_phone: str = ''
    service_id: UUID | None = None
    staff_id: UUID | None = None
    end: datetime | None = None
    duration_minutes: int | None = None
    billing_mode: BillingMode | None = None
    hourly_rate: int | None = None
    discount: int = 0
    deposit: int = 0
    payment_method: PaymentMethod | None = None
    notes: str = ''
    color: str = ''
    org_id: UUID | None = None


@dataclass
class QuoteBookingCommand:
    """Validate and price a draft without writing it"""
    draft: CreateBookingCommand


@dataclass
class MoveBookingCommand:
    booking_id: UUID
    resource_id: UUID
    start: datetime


@dataclass
class MoveToSlotCommand:
    booking_id: UUID
    resource_id: UUID
    day: date
    slot_index: int


@dataclass
class ResizeBookingCommand:
    booking_id: UUID
    end: datetime


@dataclass
class UpdateBillingCommand:
    booking_id: UUID
    discount: int | None = None
    deposit: int | None = None
    billing_mode: BillingMode | None = None
    hourly_rate: int | None = None
    payment_method: PaymentMethod | None = None


@dataclass
class TogglePaymentCommand:
    """Operator marks a booking paid, or reverts it to pending"""
    booking_id: UUID
    method: PaymentMethod | None = None
    reopen_deposit: int | None = None


@dataclass
class UpdateDetailsCommand:
    booking_id: UUID
    color: str | None = None
    notes: str | None = None
    staff_id: UUID | None = None
    client_name: str | None = None
    client_phone: str | None = None
    resource_id: UUID | None = None
    start: datetime | None = None
    end: datetime | None = None
    clear_staff: bool = False


@dataclass
class CancelBookingCommand:
    booking_id: UUID


@dataclass
class RestoreBookingCommand:
    booking_id: UUID


@dataclass
class DeleteBookingCommand:
    booking_id: UUID


@dataclass
class StartSessionCommand:
    booking_id: UUID


@dataclass
class StopSessionCommand:
    booking_id: UUID


# ===== Results =====

@dataclass(frozen=True)
class Quote:
    ok: bool
    start: datetime | None = None
    end: datetime | None = None
    total: int = 0
    discount: int = 0
    deposit: int = 0
    due: int = 0
    balance: int = 0
    status: PaymentStatus = PaymentStatus.PENDING
    conflicts: tuple[Conflict, ...] = ()

    @property
    def conflict(self) -> bool:
        return bool(self.conflicts)


@dataclass(frozen=True)
class Draft:
    """A create command after validation, ready for conflict check and pricing"""
    resource_id: UUID
    window: TimeRange
    billing: BillingBasis
    client_id: UUID | None
    client_name: str
    client_phone: str
    staff_id: UUID | None
    service_id: UUID | None


# ===== Command Handlers =====

class BookingHandler:

    def __init__(self, context: SchedulingContext):
        self.context = context

    @property
    def repository(self):
        return self.context.repository

    def _save(self, booking: Booking) -> Booking:
        return self.repository.update(booking.id, booking.take_changes())


class DraftValidator(BookingHandler):
    """
    Turns a CreateBookingCommand into a Draft.

    Order: required fields -> past start -> client resolution ->
    staff/service checks -> duration -> end -> billing basis.
    """

    def validate(self, command: CreateBookingCommand) -> Draft:
        missing = [
            name for name, present in (
                ('resource_id', command.resource_id is not None),
                ('client', command.client_id is not None or bool(command.client_name.strip())),
                ('start', command.start is not None),
            ) if not present
        ]
        if missing:
            raise BookingValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)

        reject_past(self.context, command.start)

        client_id, client_name, client_phone = self._resolve_client(command)

        catalog = self.context.catalog
        if command.staff_id is not None:
            staff = catalog.get_staff(command.staff_id)
            if staff is None or not staff.active:
                raise BookingValidationError("Staff member is not available for new bookings.")

        service = None
        if command.service_id is not None:
            service = catalog.get_service(command.service_id)
            if service is None or not service.active:
                raise BookingValidationError("Service is not available for new bookings.")

        if command.end is not None:
            if command.end <= command.start:
                raise BookingValidationError("End must be after start.")
            end = command.end
        else:
            duration = (
                command.duration_minutes
                or (service.duration_minutes if service else None)
                or self.context.default_duration_minutes
            )
            if duration <= 0:
                raise BookingValidationError("Duration must be positive.")
            end = command.start + timedelta(minutes=duration)

        return Draft(
            resource_id=command.resource_id,
            window=TimeRange(command.start, end),
            billing=self._billing_basis(command.billing_mode, command.hourly_rate, service),
            client_id=client_id,
            client_name=client_name,
            client_phone=client_phone,
            staff_id=command.staff_id,
            service_id=command.service_id,
        )

    def _resolve_client(self, command: CreateBookingCommand):
        """Fill the name/phone snapshot from the client record, or find a walk-in by name."""
        name = command.client_name.strip()
        phone = command.client_phone.strip()
        catalog = self.context.catalog
        if command.client_id is not None:
            record = catalog.get_client(command.client_id)
            if record is None:
                raise BookingValidationError("Client not found.", client_id=str(command.client_id))
            return record.id, name or record.name, phone or record.phone
        record = catalog.find_client_by_name(name)
        if record is not None:
            return record.id, record.name, phone or record.phone
        return None, name, phone

    def _billing_basis(self, mode: BillingMode | None, hourly_rate: int | None, service) -> BillingBasis:
        if mode is BillingMode.HOURLY:
            rate = self.context.default_hourly_rate if hourly_rate is None else hourly_rate
            return BillingBasis.hourly(rate)
        if mode is BillingMode.NONE:
            return BillingBasis.none()
        if service is not None:
            return BillingBasis.for_service(service.duration_minutes, service.price)
        if mode is BillingMode.SERVICE:
            raise BookingValidationError("Service billing needs a service.")
        return BillingBasis.none()


class QuoteBookingHandler(DraftValidator):
    """validateAndPrice: the create pipeline up to (not including) persistence"""

    def handle(self, command: QuoteBookingCommand) -> Quote:
        draft = self.validate(command.draft)
        candidate = Candidate(
            resource_id=draft.resource_id,
            window=draft.window,
            staff_id=draft.staff_id,
            client_id=draft.client_id,
        )
        conflicts = conflicts_for(self.context, candidate)
        if conflicts:
            return Quote(ok=False, start=draft.window.start, end=draft.window.end, conflicts=tuple(conflicts))

        breakdown = price_booking(
            draft.billing,
            draft.window.duration_minutes,
            command.draft.discount,
            command.draft.deposit,
        )
        return Quote(
            ok=True,
            start=draft.window.start,
            end=draft.window.end,
            total=breakdown.total,
            discount=breakdown.discount,
            deposit=breakdown.deposit,
            due=breakdown.due,
            balance=breakdown.balance,
            status=breakdown.status,
        )


class CreateBookingHandler(DraftValidator):
    """
    Handler for CreateBooking command

    1. Validate required fields, reject past starts
    2. Resolve duration and end
    3. Conflict check against the resource's bookings in the window
       (read under SELECT FOR UPDATE when the store supports it)
    4. Price
    5. Insert; the datastore's exclusion constraint is the final gate
    6. Publish BookingCreated after commit (notification subscriber)
    """

    def handle(self, command: CreateBookingCommand) -> Booking:
        draft = self.validate(command)
        logger.info(
            f"Creating booking for resource {draft.resource_id} "
            f"in {draft.window} (client {draft.client_name or draft.client_id})"
        )

        with self.context.unit_of_work() as uow:
            ensure_fits(self.context, Candidate(
                resource_id=draft.resource_id,
                window=draft.window,
                staff_id=draft.staff_id,
                client_id=draft.client_id,
            ))

            booking = Booking.schedule(
                org_id=command.org_id,
                resource_id=draft.resource_id,
                window=draft.window,
                billing=draft.billing,
                now=self.context.now(),
                discount=command.discount,
                deposit=command.deposit,
                payment_method=command.payment_method,
                staff_id=draft.staff_id,
                service_id=draft.service_id,
                client_id=draft.client_id,
                client_name=draft.client_name,
                client_phone=draft.client_phone,
                notes=command.notes.strip(),
                color=command.color,
            )
            booking.add_event(BookingCreated(
                aggregate_id=booking.id,
                booking_id=booking.id,
                resource_id=booking.resource_id,
                window=booking.window,
                total_price=booking.total_price,
            ))

            saved = self.repository.insert(booking)
            uow.collect_events(booking)

        logger.info(
            f"Booking created successfully: {saved.id} "
            f"(total {saved.total_price}, balance {saved.balance}, {saved.payment_status.value})"
        )
        return saved


class MoveBookingHandler(BookingHandler):

    def handle(self, command: MoveBookingCommand | MoveToSlotCommand) -> RescheduleResult:
        engine = RescheduleEngine(self.context)
        if isinstance(command, MoveToSlotCommand):
            return engine.move_to_slot(command.booking_id, command.resource_id, command.day, command.slot_index)
        return engine.apply_move(command.booking_id, command.resource_id, command.start)


class ResizeBookingHandler(BookingHandler):

    def handle(self, command: ResizeBookingCommand) -> RescheduleResult:
        return RescheduleEngine(self.context).apply_resize(command.booking_id, command.end)


class UpdateBillingHandler(BookingHandler):
    """Discount/deposit/billing-mode edits; no conflict check, time is unchanged"""

    def handle(self, command: UpdateBillingCommand) -> Booking:
        with self.context.unit_of_work() as uow:
            booking = self.repository.get(command.booking_id)
            billing = None
            if command.billing_mode is BillingMode.HOURLY:
                rate = command.hourly_rate
                if rate is None:
                    rate = (
                        booking.billing.unit_price
                        if booking.billing.mode is BillingMode.HOURLY
                        else self.context.default_hourly_rate
                    )
                billing = BillingBasis.hourly(rate)
            elif command.billing_mode is BillingMode.SERVICE:
                service = self.context.catalog.get_service(booking.service_id) if booking.service_id else None
                if service is None:
                    raise BookingValidationError("Service billing needs a service.")
                billing = BillingBasis.for_service(service.duration_minutes, service.price)
            elif command.billing_mode is BillingMode.NONE:
                billing = BillingBasis.none()

            breakdown = booking.reprice(
                now=self.context.now(),
                billing=billing,
                discount=command.discount,
                deposit=command.deposit,
                payment_method=command.payment_method,
            )
            saved = self._save(booking)
            uow.collect_events(booking)

        logger.info(f"Booking {saved.id} repriced: total {breakdown.total}, balance {breakdown.balance}")
        return saved


class TogglePaymentHandler(BookingHandler):

    def handle(self, command: TogglePaymentCommand) -> Booking:
        with self.context.unit_of_work() as uow:
            booking = self.repository.get(command.booking_id)
            now = self.context.now()
            if booking.payment_status is PaymentStatus.PAID:
                booking.reopen(deposit=command.reopen_deposit, now=now)
            else:
                booking.settle(method=command.method, now=now)
            saved = self._save(booking)
            uow.collect_events(booking)

        logger.info(f"Booking {saved.id} payment status is now {saved.payment_status.value}")
        return saved


class UpdateDetailsHandler(BookingHandler):
    """
    Color/notes/staff/contact edits. A changed resource, start or end
    goes through the reschedule engine as one change, together with the
    other edits.
    """

    def handle(self, command: UpdateDetailsCommand) -> Booking | RescheduleResult:
        values = {
            name: getattr(command, name)
            for name in ('color', 'notes', 'staff_id', 'client_name', 'client_phone')
            if getattr(command, name) is not None
        }
        if 'staff_id' in values:
            staff = self.context.catalog.get_staff(values['staff_id'])
            if staff is None or not staff.active:
                raise BookingValidationError("Staff member is not available for new bookings.")
        elif command.clear_staff:
            values['staff_id'] = None

        if any(value is not None for value in (command.resource_id, command.start, command.end)):
            result = RescheduleEngine(self.context).apply_change(
                command.booking_id,
                resource_id=command.resource_id,
                start=command.start,
                end=command.end,
                details=values,
            )
            return result.booking if result.ok else result

        if not values:
            return self.repository.get(command.booking_id)
        with self.context.unit_of_work() as uow:
            booking = self.repository.get(command.booking_id)
            booking.update_details(now=self.context.now(), **values)
            saved = self._save(booking)
            uow.collect_events(booking)
        return saved


class CancelBookingHandler(BookingHandler):
    """Cancellation is a status change; the booking stays and frees its slot"""

    def handle(self, command: CancelBookingCommand) -> Booking:
        logger.info(f"Cancelling booking {command.booking_id}")
        with self.context.unit_of_work() as uow:
            booking = self.repository.get(command.booking_id)
            booking.cancel(now=self.context.now())
            saved = self._save(booking)
            uow.collect_events(booking)
        logger.info(f"Booking {saved.id} cancelled")
        return saved


class RestoreBookingHandler(BookingHandler):
    """Undo a cancellation, subject to whatever now occupies the slot"""

    def handle(self, command: RestoreBookingCommand) -> Booking:
        with self.context.unit_of_work() as uow:
            booking = self.repository.get(command.booking_id)
            ensure_fits(self.context, Candidate(
                resource_id=booking.resource_id,
                window=booking.window,
                staff_id=booking.staff_id,
                client_id=booking.client_id,
                exclude_id=booking.id,
            ))
            booking.restore(now=self.context.now())
            saved = self._save(booking)
            uow.collect_events(booking)
        logger.info(f"Booking {saved.id} restored")
        return saved


class DeleteBookingHandler(BookingHandler):
    """Permanent removal"""

    def handle(self, command: DeleteBookingCommand) -> None:
        with self.context.unit_of_work() as uow:
            booking = self.repository.get(command.booking_id)
            self.repository.delete(booking.id)
            booking.mark_deleted()
            uow.collect_events(booking)
        logger.info(f"Booking {command.booking_id} deleted")


class StartSessionHandler(BookingHandler):
    """Records when the session actually began; scheduling fields untouched"""

    def handle(self, command: StartSessionCommand) -> Booking:
        with self.context.unit_of_work() as uow:
            booking = self.repository.get(command.booking_id)
            booking.start_session(now=self.context.now())
            saved = self._save(booking)
            uow.collect_events(booking)
        return saved


class StopSessionHandler(BookingHandler):

    def handle(self, command: StopSessionCommand) -> Booking:
        with self.context.unit_of_work() as uow:
            booking = self.repository.get(command.booking_id)
            booking.stop_session(now=self.context.now())
            saved = self._save(booking)
            uow.collect_events(booking)
        return saved
