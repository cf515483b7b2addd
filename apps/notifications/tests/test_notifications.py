from datetime import timedelta
from unittest import mock
from uuid import uuid4

import pytest
import requests
from django.utils import timezone

from apps.bookings.domain.errors import NotificationError
from apps.bookings.models import Booking
from apps.notifications import services, tasks
from apps.notifications.dispatch import CeleryNotificationDispatcher
from apps.notifications.models import NotificationLog
from apps.studio.models import Client, Resource

pytestmark = pytest.mark.django_db


@pytest.fixture
def booking():
    start = timezone.now() + timedelta(days=1)
    client = Client.objects.create(name="Ana Pérez", email="ana@example.com", phone="+56911111111")
    return Booking.objects.create(
        resource=Resource.objects.create(name="Room A"),
        client=client,
        client_name=client.name,
        start_at=start,
        end_at=start + timedelta(hours=1),
        duration_minutes=60,
    )


@pytest.fixture
def gateway(settings):
    settings.SMS_GATEWAY_URL = "https://sms.example.com/send"
    settings.SMS_GATEWAY_TOKEN = "secret"
    return settings.SMS_GATEWAY_URL


def test_email_is_sent_once(booking, mailoutbox):
    first = services.notify_booking_created(booking.id)
    second = services.notify_booking_created(booking.id)

    assert first == {"email": True, "sms": False}
    assert second == {"email": False, "sms": False}
    assert len(mailoutbox) == 1
    assert mailoutbox[0].to == ["ana@example.com"]
    assert NotificationLog.objects.filter(booking_id=booking.id).count() == 1


def test_sms_goes_through_the_gateway(booking, gateway, mailoutbox):
    with mock.patch("apps.notifications.services.requests.post") as post:
        result = services.notify_booking_created(booking.id)

    assert result == {"email": True, "sms": True}
    post.assert_called_once()
    assert post.call_args.args == (gateway,)
    assert post.call_args.kwargs["json"]["to"] == "+56911111111"
    assert post.call_args.kwargs["headers"] == {"Authorization": "Bearer secret"}


def test_walk_in_phone_is_used_when_there_is_no_client(booking, gateway):
    Booking.objects.filter(pk=booking.pk).update(client=None, client_phone="+56922222222")

    with mock.patch("apps.notifications.services.requests.post") as post:
        result = services.notify_booking_created(booking.id)

    assert result == {"email": False, "sms": True}
    assert post.call_args.kwargs["json"]["to"] == "+56922222222"


def test_gateway_failure_raises_notification_error(gateway):
    with mock.patch(
        "apps.notifications.services.requests.post",
        side_effect=requests.ConnectionError("gateway down"),
    ):
        with pytest.raises(NotificationError):
            services.send_sms_notification("+56911111111", "hello")


def test_sms_is_skipped_without_gateway(settings):
    settings.SMS_GATEWAY_URL = ""

    with mock.patch("apps.notifications.services.requests.post") as post:
        assert services.send_sms_notification("+56911111111", "hello") is False

    post.assert_not_called()


def test_message_mentions_client_and_local_times(booking):
    message = services.booking_created_message("Ana Pérez", booking.start_at, booking.end_at)

    assert "Ana Pérez" in message
    assert f"{timezone.localtime(booking.start_at):%d-%m-%Y %H:%M}" in message


def test_task_for_missing_booking_sends_nothing(mailoutbox):
    assert tasks.notify_booking_created(str(uuid4())) == {"email": False, "sms": False}
    assert mailoutbox == []


def test_dispatcher_queues_the_task(booking, mailoutbox):
    CeleryNotificationDispatcher().notify_booking_created(booking.id)

    assert len(mailoutbox) == 1


def test_dispatcher_never_raises():
    with mock.patch("apps.notifications.tasks.notify_booking_created") as task:
        task.delay.side_effect = RuntimeError("broker down")
        CeleryNotificationDispatcher().notify_booking_created(uuid4())

    task.delay.assert_called_once()
