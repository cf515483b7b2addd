import pytest

from shared.domain.value_objects import TimeRange

from apps.bookings.application.command_handlers import CancelBookingCommand, MoveBookingCommand
from apps.bookings.application.session import SchedulingSession
from apps.bookings.domain.entities import BookingStatus
from apps.bookings.domain.errors import BookingValidationError


@pytest.fixture
def session(repository, wired_bus, resource_id, at):
    session = SchedulingSession(repository, wired_bus)
    session.navigate(TimeRange(at(0), at(0, days=1)), resource_id)
    return session


def test_refresh_loads_the_visible_window(session, make_booking, at):
    make_booking(at(10), at(11))
    make_booking(at(10, days=1), at(11, days=1))

    bookings = session.refresh()

    assert len(bookings) == 1
    assert bookings[0].start == at(10)


def test_stale_fetch_is_discarded(session, make_booking, at):
    make_booking(at(10), at(11))
    generation = session.begin_fetch()

    session.navigate(TimeRange(at(0, days=1), at(0, days=2)))

    assert not session.apply_fetch(generation, [object()])
    assert session.bookings == ()


def test_successful_command_refreshes(session, make_booking, at):
    booking = make_booking(at(10), at(11))
    session.refresh()

    session.dispatch(CancelBookingCommand(booking.id))

    assert session.find(booking.id).status is BookingStatus.CANCELLED


def test_rejected_move_leaves_bookings_untouched(session, make_booking, at):
    booking = make_booking(at(10), at(11))
    make_booking(at(12), at(13))
    session.refresh()
    before = session.bookings

    result = session.dispatch(MoveBookingCommand(booking.id, booking.resource_id, at(12)))

    assert result.conflict
    assert session.bookings is before


def test_failed_command_propagates(session, make_booking, at):
    booking = make_booking(at(10), at(11))
    session.refresh()
    session.dispatch(CancelBookingCommand(booking.id))

    with pytest.raises(BookingValidationError):
        session.dispatch(CancelBookingCommand(booking.id))


def test_find_unknown_booking(session):
    assert session.find(object()) is None
