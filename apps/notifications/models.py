"""Notification delivery log.

One row per message actually handed to a channel. The log is what keeps
a retried or re-published BookingCreated from messaging the client
twice: a (booking, channel, kind, recipient) combination is sent once.
"""

from __future__ import annotations

import uuid

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class NotificationLog(models.Model):
    """A message sent to a client about a booking."""

    class Channel(models.TextChoices):
        EMAIL = "email", _("Email")
        SMS = "sms", _("SMS")

    class Kind(models.TextChoices):
        CREATED = "created", _("Booking created")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    org_id = models.UUIDField(null=True, blank=True)
    booking_id = models.UUIDField(db_index=True)
    channel = models.CharField(max_length=10, choices=Channel.choices)
    kind = models.CharField(max_length=20, choices=Kind.choices)
    to_value = models.CharField(max_length=255)
    status = models.CharField(max_length=20, default="sent")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["booking_id", "channel", "kind", "to_value"],
                name="notification_sent_once",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.channel} {self.kind} to {self.to_value} for {self.booking_id}"
