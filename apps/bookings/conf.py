"""Access to the SCHEDULING settings dict."""

from __future__ import annotations

from typing import Any
from zoneinfo import ZoneInfo

from django.conf import settings  # type: ignore

from apps.bookings.domain.grid import TimeGrid

DEFAULTS: dict[str, Any] = {
    "START_HOUR": 8,
    "END_HOUR": 23,
    "SLOT_MINUTES": 30,
    "GUARD_MINUTES": 15,
    "DEFAULT_DURATION_MINUTES": 60,
    "CONFLICT_DIMENSIONS": ("resource",),
    "DEFAULT_HOURLY_RATE": 0,
    "FIT_WITHIN_HOURS": True,
    "CURRENCY": "CLP",
}


def scheduling_setting(name: str) -> Any:
    configured = getattr(settings, "SCHEDULING", {})
    if name in configured:
        return configured[name]
    return DEFAULTS[name]


def get_time_grid() -> TimeGrid:
    return TimeGrid(
        start_hour=scheduling_setting("START_HOUR"),
        end_hour=scheduling_setting("END_HOUR"),
        slot_minutes=scheduling_setting("SLOT_MINUTES"),
        tz=ZoneInfo(settings.TIME_ZONE),
    )
