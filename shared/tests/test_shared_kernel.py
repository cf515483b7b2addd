from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from shared.application.message_bus import MessageBus
from shared.application.uow import ImmediateUnitOfWork
from shared.domain.base import Aggregate, DomainEvent
from shared.domain.value_objects import TimeRange

TEN = datetime(2030, 6, 3, 10, 0, tzinfo=timezone.utc)


def hours(start: float, end: float) -> TimeRange:
    return TimeRange(TEN + timedelta(hours=start - 10), TEN + timedelta(hours=end - 10))


@dataclass(kw_only=True)
class Happened(DomainEvent):
    note: str = ''


@dataclass(eq=False, kw_only=True)
class Thing(Aggregate):
    name: str = ''


class TestTimeRange:

    def test_half_open_overlap(self):
        assert hours(10, 11).overlaps_with(hours(10.5, 11.5))
        assert not hours(10, 11).overlaps_with(hours(11, 12))
        assert hours(9, 12).overlaps_with(hours(10, 11))

    def test_contains_start_but_not_end(self):
        window = hours(10, 11)

        assert window.contains(TEN)
        assert not window.contains(TEN + timedelta(hours=1))

    def test_shift_keeps_length(self):
        shifted = hours(10, 11.5).shifted_to(TEN + timedelta(hours=4))

        assert shifted == hours(14, 15.5)
        assert shifted.duration_minutes == 90

    @pytest.mark.parametrize("start, end", [(TEN, TEN), (TEN, TEN - timedelta(minutes=1))])
    def test_empty_or_reversed_ranges_are_rejected(self, start, end):
        with pytest.raises(ValueError):
            TimeRange(start, end)

    def test_naive_datetimes_are_rejected(self):
        with pytest.raises(ValueError):
            TimeRange(datetime(2030, 6, 3, 10), datetime(2030, 6, 3, 11))


class TestMessageBus:

    def test_command_result_is_returned(self):
        bus = MessageBus()
        bus.register_command_handler(str, lambda command: command.upper())

        assert bus.handle_command("cancel") == "CANCEL"

    def test_one_handler_per_command(self):
        bus = MessageBus()
        bus.register_command_handler(str, str.upper)

        with pytest.raises(ValueError):
            bus.register_command_handler(str, str.lower)

    def test_unknown_command(self):
        with pytest.raises(ValueError):
            MessageBus().handle_command(42)

    def test_failing_subscriber_does_not_stop_the_others(self):
        bus = MessageBus()
        received = []

        def broken(event):
            raise RuntimeError("smtp down")

        bus.register_event_handler(Happened, broken)
        bus.register_event_handler(Happened, received.append)
        event = Happened(note="created")

        bus.publish_events([event])

        assert received == [event]


class TestUnitOfWork:

    def test_events_are_published_on_commit(self):
        bus = MessageBus()
        received = []
        bus.register_event_handler(Happened, received.append)
        thing = Thing(name="room")
        thing.add_event(Happened(aggregate_id=thing.id))

        with ImmediateUnitOfWork(bus) as uow:
            uow.collect_events(thing)

        assert len(received) == 1
        assert thing.events == []

    def test_events_are_dropped_on_error(self):
        bus = MessageBus()
        received = []
        bus.register_event_handler(Happened, received.append)
        thing = Thing()
        thing.add_event(Happened(aggregate_id=thing.id))

        with pytest.raises(RuntimeError):
            with ImmediateUnitOfWork(bus) as uow:
                uow.collect_events(thing)
                raise RuntimeError("write failed")

        assert received == []

    def test_entities_compare_by_identity(self):
        first = Thing(name="a")
        same = Thing(id=first.id, name="b")

        assert first == same
        assert first != Thing(name="a")
