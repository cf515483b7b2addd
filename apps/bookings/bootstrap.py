"""
Wiring of the scheduling core to Django

Builds a SchedulingContext over the ORM repositories and a MessageBus
with every booking command handler registered and the notification
dispatcher subscribed to BookingCreated.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial

from django.utils import timezone  # type: ignore

from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork

from apps.bookings.application import command_handlers as handlers
from apps.bookings.application.context import SchedulingContext
from apps.bookings.application.ports import NotificationDispatcher
from apps.bookings.conf import get_time_grid, scheduling_setting
from apps.bookings.domain.conflicts import ConflictPolicy
from apps.bookings.domain.events import BookingCreated
from apps.bookings.repositories import DjangoBookingRepository, DjangoCatalogRepository

COMMAND_HANDLERS = {
    handlers.CreateBookingCommand: handlers.CreateBookingHandler,
    handlers.QuoteBookingCommand: handlers.QuoteBookingHandler,
    handlers.MoveBookingCommand: handlers.MoveBookingHandler,
    handlers.MoveToSlotCommand: handlers.MoveBookingHandler,
    handlers.ResizeBookingCommand: handlers.ResizeBookingHandler,
    handlers.UpdateBillingCommand: handlers.UpdateBillingHandler,
    handlers.TogglePaymentCommand: handlers.TogglePaymentHandler,
    handlers.UpdateDetailsCommand: handlers.UpdateDetailsHandler,
    handlers.CancelBookingCommand: handlers.CancelBookingHandler,
    handlers.RestoreBookingCommand: handlers.RestoreBookingHandler,
    handlers.DeleteBookingCommand: handlers.DeleteBookingHandler,
    handlers.StartSessionCommand: handlers.StartSessionHandler,
    handlers.StopSessionCommand: handlers.StopSessionHandler,
}


@dataclass
class Scheduling:
    context: SchedulingContext
    bus: MessageBus


def register_handlers(bus: MessageBus, context: SchedulingContext, dispatcher: NotificationDispatcher | None = None):
    for command_type, handler_class in COMMAND_HANDLERS.items():
        bus.register_command_handler(command_type, handler_class(context).handle)
    if dispatcher is not None:
        bus.register_event_handler(
            BookingCreated,
            lambda event: dispatcher.notify_booking_created(event.booking_id),
        )


def bootstrap(*, repository=None, catalog=None, dispatcher=None, clock=None) -> Scheduling:
    if dispatcher is None:
        from apps.notifications.dispatch import CeleryNotificationDispatcher

        dispatcher = CeleryNotificationDispatcher()

    bus = MessageBus()
    context = SchedulingContext(
        repository=repository or DjangoBookingRepository(),
        catalog=catalog or DjangoCatalogRepository(),
        grid=get_time_grid(),
        policy=ConflictPolicy.from_names(scheduling_setting("CONFLICT_DIMENSIONS")),
        clock=clock or timezone.now,
        uow_factory=partial(DjangoUnitOfWork, bus),
        default_duration_minutes=scheduling_setting("DEFAULT_DURATION_MINUTES"),
        guard_minutes=scheduling_setting("GUARD_MINUTES"),
        default_hourly_rate=scheduling_setting("DEFAULT_HOURLY_RATE"),
        fit_within_hours=scheduling_setting("FIT_WITHIN_HOURS"),
    )
    register_handlers(bus, context, dispatcher)
    return Scheduling(context=context, bus=bus)
