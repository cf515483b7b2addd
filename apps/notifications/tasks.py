"""Celery tasks for client notifications."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from apps.bookings.domain.errors import NotificationError

from . import services

logger = logging.getLogger(__name__)


@shared_task(
    name="notifications.notify_booking_created",
    autoretry_for=(NotificationError,),
    retry_backoff=True,
    max_retries=3,
)
def notify_booking_created(booking_id: str) -> dict[str, bool]:
    """Confirmation to the client of a newly created booking."""
    from apps.bookings.models import Booking

    try:
        return services.notify_booking_created(booking_id)
    except Booking.DoesNotExist:
        logger.error(f"Booking {booking_id} not found for creation notification")
        return {"email": False, "sms": False}
