"""Notification services for sending booking emails and SMS."""

from __future__ import annotations

import logging
from uuid import UUID

import requests
from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.domain.errors import NotificationError

from .models import NotificationLog

logger = logging.getLogger(__name__)


# ============================================================================
# CHANNELS
# ============================================================================

def send_email_notification(recipient_email: str, subject: str, message: str) -> None:
    """Send a plain-text email. Raises NotificationError when the backend fails."""
    try:
        send_mail(
            subject=subject,
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            fail_silently=False,
        )
    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        raise NotificationError(f"Email delivery failed: {e}", to=recipient_email) from e

    logger.info(f"Email sent successfully to {recipient_email}: {subject}")


def send_sms_notification(phone: str, message: str) -> bool:
    """
    Post an SMS to the configured HTTP gateway.

    Returns False without sending when no gateway is configured.
    """
    gateway = getattr(settings, "SMS_GATEWAY_URL", "")
    if not gateway:
        logger.info(f"[SMS] No gateway configured, skipping message to {phone}")
        return False

    headers = {}
    token = getattr(settings, "SMS_GATEWAY_TOKEN", "")
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        response = requests.post(
            gateway,
            json={"to": phone, "body": message},
            headers=headers,
            timeout=getattr(settings, "SMS_GATEWAY_TIMEOUT", 10),
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Failed to send SMS to {phone}: {e}", exc_info=True)
        raise NotificationError(f"SMS delivery failed: {e}", to=phone) from e

    logger.info(f"SMS sent successfully to {phone}")
    return True


# ============================================================================
# BOOKING MESSAGES
# ============================================================================

def booking_created_message(client_name: str, start_at, end_at) -> str:
    start = timezone.localtime(start_at)
    end = timezone.localtime(end_at)
    return (
        "Booking confirmed\n"
        f"Client: {client_name}\n"
        f"Start: {start:%d-%m-%Y %H:%M}\n"
        f"End: {end:%d-%m-%Y %H:%M}\n"
        "\n"
        "Reply to this message if you need to change your time."
    )


def already_sent(booking_id: UUID, channel: str, kind: str, to_value: str) -> bool:
    return NotificationLog.objects.filter(
        booking_id=booking_id,
        channel=channel,
        kind=kind,
        to_value=to_value,
    ).exists()


def notify_booking_created(booking_id: UUID) -> dict[str, bool]:
    """
    Tell the client their booking is confirmed, by email and by SMS.

    A channel is used when the client has an address for it and that
    exact message was not sent before. Returns which channels sent.
    """
    from apps.bookings.models import Booking

    booking = Booking.objects.select_related("client").get(pk=booking_id)
    client = booking.client

    client_name = (client.name if client else "") or booking.client_name or "Client"
    email = client.email if client else ""
    phone = (client.phone if client else "") or booking.client_phone

    message = booking_created_message(client_name, booking.start_at, booking.end_at)
    kind = NotificationLog.Kind.CREATED
    results = {"email": False, "sms": False}

    if email and not already_sent(booking.id, NotificationLog.Channel.EMAIL, kind, email):
        send_email_notification(email, "Booking confirmed", message)
        NotificationLog.objects.create(
            org_id=booking.org_id,
            booking_id=booking.id,
            channel=NotificationLog.Channel.EMAIL,
            kind=kind,
            to_value=email,
        )
        results["email"] = True

    if phone and not already_sent(booking.id, NotificationLog.Channel.SMS, kind, phone):
        if send_sms_notification(phone, message):
            NotificationLog.objects.create(
                org_id=booking.org_id,
                booking_id=booking.id,
                channel=NotificationLog.Channel.SMS,
                kind=kind,
                to_value=phone,
            )
            results["sms"] = True

    logger.info(f"[NOTIFICATION] Booking created notifications for {booking.id}: {results}")
    return results
