"""URL routing for the booking API (mounted at /api/v1/bookings/)."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import BookingViewSet

app_name = "bookings"

router = DefaultRouter()
router.include_root_view = False
router.register(r"", BookingViewSet, basename="booking")

urlpatterns = [
    path("", include(router.urls)),
]
