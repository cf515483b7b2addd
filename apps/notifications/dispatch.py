"""Notification dispatcher handed to the scheduling core."""

from __future__ import annotations

import logging
from uuid import UUID

from apps.bookings.application.ports import NotificationDispatcher

logger = logging.getLogger(__name__)


class CeleryNotificationDispatcher(NotificationDispatcher):
    """Queues notification tasks. Enqueue failures are logged, never raised."""

    def notify_booking_created(self, booking_id: UUID) -> None:
        from .tasks import notify_booking_created

        try:
            notify_booking_created.delay(str(booking_id))
        except Exception as e:
            logger.error(f"Could not queue creation notification for booking {booking_id}: {e}", exc_info=True)
