"""
Unit of Work Pattern

Collects domain events while a use case runs and publishes them only
after the change was accepted by the datastore. A failed use case
discards its events.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern"""

    def __init__(self, bus):
        self._events: List[DomainEvent] = []
        self._bus = bus

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Commit the unit and hand events to the bus"""
        pass

    def rollback(self):
        """Discard collected events"""
        if self._events:
            logger.warning(f"Rolling back unit of work, discarding {len(self._events)} events")
        self._events.clear()

    def collect_events(self, aggregate):
        """
        Collect events from aggregate root

        Extracts all pending domain events from the aggregate and
        clears them from the aggregate.
        """
        new_events = getattr(aggregate, 'events', None)
        if new_events:
            self._events.extend(new_events)
            aggregate.clear_events()
            logger.debug(
                f"Collected {len(new_events)} events from "
                f"{aggregate.__class__.__name__} (ID: {aggregate.id})"
            )

    def _take_events(self) -> List[DomainEvent]:
        events = self._events.copy()
        self._events.clear()
        return events

    def _publish_events(self, events: List[DomainEvent]):
        """
        Publish collected events to the message bus

        Subscribers are side effects (notifications); a failing
        subscriber never undoes the committed change.
        """
        logger.info(f"Publishing {len(events)} domain events after commit")

        try:
            self._bus.publish_events(events)
        except Exception as e:
            logger.error(f"Error publishing events: {e}", exc_info=True)


class ImmediateUnitOfWork(AbstractUnitOfWork):
    """
    Unit of Work for stores without client-side transactions

    Each repository call is already final when it returns, so commit
    publishes right away.
    """

    def commit(self):
        events = self._take_events()
        if events:
            self._publish_events(events)


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Wraps the use case in `transaction.atomic()` so that the candidate
    read (locked with SELECT FOR UPDATE where supported) and the write
    share one transaction, and publishes events with
    `transaction.on_commit()`.

    Usage:
        with DjangoUnitOfWork(bus) as uow:
            booking = repo.get(booking_id)
            booking.cancel(now=now)
            repo.update(booking.id, booking.take_changes())
            uow.collect_events(booking)
        # events are published after commit
    """

    def __init__(self, bus):
        super().__init__(bus)
        self._transaction = None

    def __enter__(self):
        self._transaction = transaction.atomic()
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            if self._transaction:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)

    def commit(self):
        events = self._take_events()
        logger.debug(f"Committing transaction with {len(events)} events")
        if events:
            transaction.on_commit(lambda: self._publish_events(events))
