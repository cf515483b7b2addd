"""FilterSet for listing bookings by visible window."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Booking


class BookingFilterSet(django_filters.FilterSet):
    """
    `start` / `end` select bookings overlapping [start, end), so a booking
    that began before the visible window but runs into it is listed.
    """

    start = django_filters.IsoDateTimeFilter(field_name="end_at", lookup_expr="gt")
    end = django_filters.IsoDateTimeFilter(field_name="start_at", lookup_expr="lt")
    resource = django_filters.UUIDFilter(field_name="resource_id")
    staff = django_filters.UUIDFilter(field_name="staff_id")
    client = django_filters.UUIDFilter(field_name="client_id")
    status = django_filters.ChoiceFilter(choices=Booking.Status.choices)
    payment_status = django_filters.ChoiceFilter(choices=Booking.PaymentStatus.choices)
    include_cancelled = django_filters.BooleanFilter(method="filter_include_cancelled")

    class Meta:
        model = Booking
        fields = ["resource", "staff", "client", "status", "payment_status"]

    def filter_include_cancelled(self, queryset, name, value):  # type: ignore
        if value is False:
            return queryset.exclude(status=Booking.Status.CANCELLED)
        return queryset
