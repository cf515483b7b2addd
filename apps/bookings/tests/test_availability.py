from dataclasses import replace
from datetime import timedelta
from uuid import uuid4

from apps.bookings.application.queries import check_availability
from apps.bookings.domain.availability import available_start_times
from apps.bookings.domain.entities import BookingStatus


def test_empty_day_offers_every_start_that_fits_before_closing(grid, day, at, clock):
    starts = available_start_times(grid, day, 60, [], now=clock())

    assert starts[0] == at(8, 0)
    assert starts[-1] == at(22, 0)
    assert len(starts) == 29


def test_existing_booking_blocks_overlapping_starts(grid, day, at, clock, make_booking, repository):
    make_booking(at(10), at(11))

    starts = available_start_times(grid, day, 60, repository.list_bookings(), now=clock())

    assert at(9, 0) in starts
    assert at(9, 30) not in starts
    assert at(10, 0) not in starts
    assert at(10, 30) not in starts
    assert at(11, 0) in starts


def test_cancelled_bookings_free_their_slots(grid, day, at, clock, make_booking, repository):
    make_booking(at(10), at(11), status=BookingStatus.CANCELLED)

    starts = available_start_times(grid, day, 60, repository.list_bookings(), now=clock())

    assert at(10, 0) in starts


def test_guard_interval_hides_imminent_starts(grid, day, at):
    starts = available_start_times(grid, day, 30, [], now=at(12, 5))

    assert starts[0] == at(12, 30)


def test_past_day_is_empty(grid, day, at):
    assert available_start_times(grid, day, 30, [], now=at(9, 0, days=1)) == []


def test_without_fit_within_hours_late_starts_may_run_past_closing(grid, day, at, clock):
    starts = available_start_times(grid, day, 60, [], now=clock(), fit_within_hours=False)

    assert starts[-1] == at(22, 30)


def test_non_positive_duration_has_no_starts(grid, day, clock):
    assert available_start_times(grid, day, 0, [], now=clock()) == []


def test_check_availability_only_looks_at_the_requested_resource(context, day, at, make_booking, resource_id):
    make_booking(at(10), at(11), resource=uuid4())

    starts = check_availability(context, resource_id, day, duration_minutes=60)

    assert at(10, 0) in starts


def test_check_availability_uses_default_duration(context, day, at, make_booking, resource_id):
    make_booking(at(10), at(11))

    starts = check_availability(context, resource_id, day)

    assert at(9, 0) in starts
    assert at(9, 30) not in starts
    assert starts[-1] == at(22, 0)


def test_check_availability_sees_bookings_after_closing(context, day, at, make_booking, resource_id):
    context = replace(context, fit_within_hours=False)
    make_booking(at(23, 0), at(23, 0) + timedelta(minutes=60))

    starts = check_availability(context, resource_id, day, duration_minutes=60)

    assert at(22, 0) in starts
    assert at(22, 30) not in starts
