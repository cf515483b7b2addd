"""
Message Bus

Commands go to exactly one handler and its return value goes back to the
caller (the booking, a quote or a reschedule result). Domain events fan
out to subscribers after the unit of work committed.
"""

from collections import defaultdict
from typing import Any, Callable, DefaultDict, Dict, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """
    Dispatch table for one scheduling context.

    A subscriber that raises is logged and skipped; the change that
    produced the event is already stored and stays stored.
    """

    def __init__(self):
        self._command_handlers: Dict[Type, Callable[[Any], Any]] = {}
        self._event_handlers: DefaultDict[Type[DomainEvent], List[EventHandler]] = defaultdict(list)

    def register_command_handler(self, command_type: Type, handler: Callable[[Any], Any]):
        if command_type in self._command_handlers:
            raise ValueError(f"{command_type.__name__} already has a handler")
        self._command_handlers[command_type] = handler
        logger.debug(f"Registered command handler for {command_type.__name__}")

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        self._event_handlers[event_type].append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {event_type.__name__}")

    def handle_command(self, command: Any) -> Any:
        """Run the handler for `command`. Scheduling errors reach the caller unchanged."""
        name = type(command).__name__
        try:
            handler = self._command_handlers[type(command)]
        except KeyError:
            raise ValueError(f"No handler registered for command {name}") from None

        logger.info(f"Handling command: {name}")
        try:
            return handler(command)
        except Exception as e:
            logger.warning(f"Command {name} failed: {e}")
            raise

    def publish_events(self, events: List[DomainEvent]):
        for event in events:
            subscribers = self._event_handlers.get(type(event), [])
            if not subscribers:
                logger.debug(f"No subscribers for {type(event).__name__}")
                continue
            logger.info(f"Publishing event: {event.to_dict()}")
            for handler in subscribers:
                self._deliver(handler, event)

    def _deliver(self, handler: EventHandler, event: DomainEvent):
        try:
            handler(event)
        except Exception as e:
            logger.error(
                f"Subscriber {getattr(handler, '__name__', handler)} failed on "
                f"{type(event).__name__} for aggregate {event.aggregate_id}: {e}",
                exc_info=True,
            )
