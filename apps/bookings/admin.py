"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Read-mostly: scheduling fields change only through the booking API."""

    list_display = (
        "start_at",
        "end_at",
        "resource",
        "client_name",
        "status",
        "payment_status",
        "total_price",
        "deposit",
    )
    list_filter = ("status", "payment_status", "billing_mode", "resource")
    search_fields = ("client_name", "client_phone", "notes")
    date_hierarchy = "start_at"
    readonly_fields = (
        "resource",
        "start_at",
        "end_at",
        "duration_minutes",
        "billing_mode",
        "unit_price",
        "unit_minutes",
        "total_price",
        "discount",
        "deposit",
        "payment_status",
        "payment_method",
        "paid_at",
        "status",
        "started_at",
        "ended_at",
        "created_at",
        "updated_at",
    )
