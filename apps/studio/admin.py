"""Admin registrations for the studio catalog."""

from __future__ import annotations

from django.contrib import admin

from .models import Client, Resource, Service, Staff


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = ("name", "org_id", "created_at")
    search_fields = ("name",)


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ("name", "role", "active")
    list_filter = ("active", "role")
    search_fields = ("name",)


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("name", "duration_minutes", "price", "active")
    list_filter = ("active",)
    search_fields = ("name",)


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "email")
    search_fields = ("name", "phone", "email")
