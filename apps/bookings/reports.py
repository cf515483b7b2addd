"""Calendar reports: the figures shown above the grid and the CSV export."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import tzinfo
from typing import Iterable, Mapping
from uuid import UUID

from apps.bookings.domain.entities import Booking
from apps.bookings.domain.pricing import PaymentStatus

CSV_HEADERS = ["Client", "Service", "Resource", "Date", "Start", "End", "Price", "Status"]


@dataclass(frozen=True)
class Summary:
    collected_revenue: int
    estimated_revenue: int
    total_hours: float
    total_count: int

    @property
    def collection_rate(self) -> int:
        """Collected share of the estimate, in whole percent."""
        if self.estimated_revenue <= 0:
            return 0
        return round(self.collected_revenue * 100 / self.estimated_revenue)

    def to_dict(self) -> dict:
        return {
            "collected_revenue": self.collected_revenue,
            "estimated_revenue": self.estimated_revenue,
            "total_hours": self.total_hours,
            "total_count": self.total_count,
            "collection_rate": self.collection_rate,
        }


def summarize(bookings: Iterable[Booking]) -> Summary:
    """Cancelled bookings are left out of every figure."""
    active = [b for b in bookings if b.blocks_resource]
    collected = sum(b.due for b in active if b.payment_status is PaymentStatus.PAID)
    estimated = sum(b.due for b in active)
    minutes = sum(b.duration_minutes for b in active)
    return Summary(
        collected_revenue=collected,
        estimated_revenue=estimated,
        total_hours=round(minutes / 60, 1),
        total_count=len(active),
    )


def export_csv(
    bookings: Iterable[Booking],
    resources: Mapping[UUID, str],
    services: Mapping[UUID, str],
    tz: tzinfo,
) -> str:
    """Semicolon separated, BOM prefixed so spreadsheet apps pick UTF-8."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for booking in bookings:
        start = booking.start.astimezone(tz)
        end = booking.end.astimezone(tz)
        writer.writerow([
            booking.client_name,
            services.get(booking.service_id, "") if booking.service_id else "",
            resources.get(booking.resource_id, ""),
            start.strftime("%d/%m/%Y"),
            start.strftime("%H:%M"),
            end.strftime("%H:%M"),
            booking.total_price,
            booking.payment_status.value,
        ])
    return "\ufeff" + buffer.getvalue()
