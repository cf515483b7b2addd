"""Booking storage model.

The row twin of `apps.bookings.domain.entities.Booking`. Rows are written
only through `apps.bookings.repositories`; nothing here prices or
validates.
"""

from __future__ import annotations

import uuid

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

NO_OVERLAP_CONSTRAINT = "bookings_no_overlap"


class Booking(models.Model):
    """One reservation of a resource for [start_at, end_at)."""

    class Status(models.TextChoices):
        PROGRAMMED = "programmed", _("Programmed")
        IN_PROGRESS = "in_progress", _("In progress")
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PAID = "paid", _("Paid")

    class PaymentMethod(models.TextChoices):
        CASH = "cash", _("Cash")
        TRANSFER = "transfer", _("Transfer")
        CARD = "card", _("Card")

    class BillingMode(models.TextChoices):
        SERVICE = "service", _("Per service")
        HOURLY = "hourly", _("Hourly")
        NONE = "none", _("Not billed")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    org_id = models.UUIDField(null=True, blank=True, db_index=True)

    resource = models.ForeignKey(
        "studio.Resource",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    staff = models.ForeignKey(
        "studio.Staff",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    service = models.ForeignKey(
        "studio.Service",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    client = models.ForeignKey(
        "studio.Client",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    client_name = models.CharField(max_length=160, blank=True)
    client_phone = models.CharField(max_length=40, blank=True)

    start_at = models.DateTimeField()
    end_at = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField(default=0)

    billing_mode = models.CharField(max_length=10, choices=BillingMode.choices, default=BillingMode.NONE)
    unit_price = models.PositiveIntegerField(default=0)
    unit_minutes = models.PositiveIntegerField(default=0)

    total_price = models.PositiveIntegerField(default=0)
    discount = models.PositiveIntegerField(default=0)
    deposit = models.PositiveIntegerField(default=0)
    payment_status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_method = models.CharField(max_length=10, choices=PaymentMethod.choices, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    settled_deposit = models.PositiveIntegerField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PROGRAMMED)
    started_at = models.DateTimeField(null=True, blank=True)
    ended_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True)
    color = models.CharField(max_length=20, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["start_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_at__gt=models.F("start_at")),
                name="booking_valid_window",
            ),
        ]
        indexes = [
            models.Index(fields=["resource", "start_at", "end_at"], name="booking_resource_window_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.id} on {self.resource_id} at {self.start_at:%Y-%m-%d %H:%M}"
