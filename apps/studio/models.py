"""Catalog models for the studio."""

from __future__ import annotations

import uuid

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Resource(models.Model):
    """A room or piece of equipment that can be booked."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    org_id = models.UUIDField(null=True, blank=True, db_index=True)
    name = models.CharField(max_length=120)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Resource")
        verbose_name_plural = _("Resources")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Staff(models.Model):
    """Engineer, producer or artist who can be assigned to a booking."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    org_id = models.UUIDField(null=True, blank=True, db_index=True)
    name = models.CharField(max_length=120)
    role = models.CharField(max_length=60, blank=True)
    active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _("Staff member")
        verbose_name_plural = _("Staff")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Service(models.Model):
    """
    A sellable service. `duration_minutes` and `price` are the pricing
    template: a booking of a different length is charged pro rata.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    org_id = models.UUIDField(null=True, blank=True, db_index=True)
    name = models.CharField(max_length=120)
    duration_minutes = models.PositiveIntegerField(default=60)
    price = models.PositiveIntegerField(default=0, help_text=_("Whole currency units."))
    active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _("Service")
        verbose_name_plural = _("Services")
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.duration_minutes} min)"


class Client(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    org_id = models.UUIDField(null=True, blank=True, db_index=True)
    name = models.CharField(max_length=160)
    phone = models.CharField(max_length=40, blank=True)
    email = models.EmailField(blank=True)
    avatar_url = models.URLField(blank=True)

    class Meta:
        verbose_name = _("Client")
        verbose_name_plural = _("Clients")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name
