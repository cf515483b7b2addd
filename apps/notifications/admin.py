"""Admin registration for the notification log."""

from __future__ import annotations

from django.contrib import admin

from .models import NotificationLog


@admin.register(NotificationLog)
class NotificationLogAdmin(admin.ModelAdmin):
    list_display = ("booking_id", "channel", "kind", "to_value", "status", "created_at")
    list_filter = ("channel", "kind", "status")
    search_fields = ("to_value", "booking_id")
    readonly_fields = ("created_at",)
