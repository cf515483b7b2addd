from uuid import uuid4

import pytest

from shared.domain.value_objects import TimeRange

from apps.bookings.domain.entities import Booking, BookingStatus
from apps.bookings.domain.errors import BookingValidationError
from apps.bookings.domain.events import (
    BookingCancelled,
    BookingPaymentChanged,
    BookingRescheduled,
    BookingResized,
    SessionStopped,
)
from apps.bookings.domain.pricing import BillingBasis, PaymentMethod, PaymentStatus


@pytest.fixture
def booking(at, clock):
    return Booking.schedule(
        resource_id=uuid4(),
        window=TimeRange(at(10), at(11)),
        billing=BillingBasis.for_service(60, 60000),
        now=clock(),
        deposit=20000,
    )


def test_schedule_prices_the_booking_without_pending_changes(booking):
    assert booking.total_price == 60000
    assert booking.deposit == 20000
    assert booking.balance == 40000
    assert booking.payment_status is PaymentStatus.PENDING
    assert booking.status is BookingStatus.PROGRAMMED
    assert booking.take_changes() == {}
    assert booking.events == []


def test_move_keeps_duration_and_price(booking, at, clock):
    new_resource = uuid4()

    booking.reschedule(resource_id=new_resource, window=booking.window.shifted_to(at(14)), now=clock())

    assert booking.window == TimeRange(at(14), at(15))
    assert booking.resource_id == new_resource
    assert booking.total_price == 60000
    assert isinstance(booking.events[-1], BookingRescheduled)
    assert {'resource_id', 'window'} <= set(booking.take_changes())


def test_resize_reprices_for_new_duration(booking, at, clock):
    booking.reschedule(resource_id=booking.resource_id, window=booking.window.with_end(at(11, 30)), now=clock())

    assert booking.duration_minutes == 90
    assert booking.total_price == 90000
    assert booking.balance == 70000
    assert isinstance(booking.events[-1], BookingResized)


def test_reschedule_prices_the_final_window_once(booking, at, clock):
    booking.reschedule(resource_id=booking.resource_id, window=TimeRange(at(13), at(13, 30)), now=clock())

    assert booking.total_price == 30000
    assert booking.deposit == 20000
    assert [type(e) for e in booking.events] == [BookingRescheduled, BookingResized]


def test_settle_marks_paid_and_records_method(booking, clock):
    booking.settle(method=PaymentMethod.TRANSFER, now=clock())

    assert booking.payment_status is PaymentStatus.PAID
    assert booking.deposit == 60000
    assert booking.balance == 0
    assert booking.payment_method is PaymentMethod.TRANSFER
    assert booking.paid_at == clock()
    assert any(isinstance(e, BookingPaymentChanged) for e in booking.events)


def test_reopen_brings_back_the_recorded_deposit(booking, clock):
    booking.settle(method=PaymentMethod.CASH, now=clock())

    booking.reopen(now=clock())

    assert booking.payment_status is PaymentStatus.PENDING
    assert booking.deposit == 20000
    assert booking.balance == 40000
    assert booking.settled_deposit is None
    assert booking.payment_method is None
    assert booking.paid_at is None


def test_reopen_with_explicit_deposit(booking, clock):
    booking.settle(method=PaymentMethod.CASH, now=clock())

    booking.reopen(deposit=0, now=clock())

    assert booking.deposit == 0
    assert booking.balance == 60000


def test_new_deposit_replaces_the_recorded_one(booking, clock):
    booking.settle(method=PaymentMethod.CASH, now=clock())
    booking.reprice(now=clock(), deposit=60000)

    booking.reopen(now=clock())

    assert booking.deposit == 0


def test_free_booking_cannot_be_settled(at, clock):
    free = Booking.schedule(
        resource_id=uuid4(), window=TimeRange(at(10), at(11)), billing=BillingBasis.none(), now=clock(),
    )

    with pytest.raises(BookingValidationError):
        free.settle(method=PaymentMethod.CASH, now=clock())


def test_resize_that_covers_the_balance_stays_paid(booking, at, clock):
    booking.settle(method=PaymentMethod.CARD, now=clock())
    paid_at = booking.paid_at

    # shrinking lowers the total; the deposit is clamped to it
    booking.reschedule(resource_id=booking.resource_id, window=booking.window.with_end(at(10, 30)), now=clock())

    assert booking.total_price == 30000
    assert booking.deposit == 30000
    assert booking.payment_status is PaymentStatus.PAID
    assert booking.paid_at == paid_at


def test_growing_a_paid_booking_reopens_the_balance(booking, at, clock):
    booking.settle(method=PaymentMethod.CARD, now=clock())

    booking.reschedule(resource_id=booking.resource_id, window=booking.window.with_end(at(12)), now=clock())

    assert booking.payment_status is PaymentStatus.PENDING
    assert booking.balance == 60000
    assert booking.payment_method is None


def test_cancel_and_restore(booking, clock):
    booking.cancel(now=clock())

    assert booking.status is BookingStatus.CANCELLED
    assert not booking.blocks_resource
    assert isinstance(booking.events[-1], BookingCancelled)

    booking.restore(now=clock())
    assert booking.status is BookingStatus.PROGRAMMED


def test_cancelled_booking_cannot_be_cancelled_again_or_moved(booking, at, clock):
    booking.cancel(now=clock())

    with pytest.raises(BookingValidationError):
        booking.cancel(now=clock())
    with pytest.raises(BookingValidationError):
        booking.reschedule(resource_id=booking.resource_id, window=booking.window.shifted_to(at(12)), now=clock())


def test_only_cancelled_bookings_can_be_restored(booking, clock):
    with pytest.raises(BookingValidationError):
        booking.restore(now=clock())


def test_session_timing_leaves_schedule_alone(booking, clock):
    window = booking.window

    booking.start_session(now=clock())
    clock.advance(minutes=75)
    booking.stop_session(now=clock())

    assert booking.status is BookingStatus.COMPLETED
    assert booking.window == window
    assert isinstance(booking.events[-1], SessionStopped)
    assert booking.events[-1].minutes == 75


def test_stop_without_running_session(booking, clock):
    with pytest.raises(BookingValidationError):
        booking.stop_session(now=clock())


def test_update_details_only_accepts_editable_fields(booking, clock):
    clock.advance(minutes=5)
    booking.update_details(now=clock(), color="#ff0000", notes="Bring drums")

    assert booking.take_changes().keys() >= {'color', 'notes', 'updated_at'}

    with pytest.raises(BookingValidationError):
        booking.update_details(now=clock(), total_price=1)
