"""Dependencies shared by the scheduling use cases."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from shared.application.uow import AbstractUnitOfWork
from shared.domain.base import utcnow

from apps.bookings.application.ports import BookingRepository, CatalogRepository
from apps.bookings.domain.conflicts import RESOURCE_ONLY, ConflictPolicy
from apps.bookings.domain.grid import TimeGrid


@dataclass
class SchedulingContext:
    repository: BookingRepository
    catalog: CatalogRepository
    uow_factory: Callable[[], AbstractUnitOfWork]
    grid: TimeGrid = field(default_factory=TimeGrid)
    policy: ConflictPolicy = RESOURCE_ONLY
    clock: Callable[[], datetime] = utcnow
    default_duration_minutes: int = 60
    guard_minutes: int = 15
    default_hourly_rate: int = 0
    fit_within_hours: bool = True

    def now(self) -> datetime:
        return self.clock()

    def unit_of_work(self) -> AbstractUnitOfWork:
        return self.uow_factory()
