from uuid import uuid4
from zoneinfo import ZoneInfo

from apps.bookings.domain.entities import BookingStatus
from apps.bookings.domain.pricing import BillingBasis, PaymentStatus
from apps.bookings.reports import CSV_HEADERS, export_csv, summarize

SANTIAGO = ZoneInfo("America/Santiago")


def test_summary_figures(make_booking, repository, at):
    make_booking(at(10), at(11), billing=BillingBasis.hourly(20000), deposit=20000)
    make_booking(at(12), at(13, 30), billing=BillingBasis.hourly(20000), discount=5000)
    make_booking(at(15), at(16), billing=BillingBasis.hourly(20000), status=BookingStatus.CANCELLED)

    summary = summarize(repository.list_bookings())

    assert summary.total_count == 2
    assert summary.total_hours == 2.5
    assert summary.estimated_revenue == 20000 + 25000
    assert summary.collected_revenue == 20000
    assert summary.collection_rate == 44


def test_empty_summary():
    summary = summarize([])

    assert summary.to_dict() == {
        "collected_revenue": 0,
        "estimated_revenue": 0,
        "total_hours": 0.0,
        "total_count": 0,
        "collection_rate": 0,
    }


def test_csv_export(make_booking, repository, resource_id, at):
    service_id = uuid4()
    booking = make_booking(
        at(10),
        at(11, 30),
        billing=BillingBasis.for_service(60, 60000),
        deposit=90000,
        client_name="Los Jaivas",
        service_id=service_id,
    )
    assert booking.payment_status is PaymentStatus.PAID

    content = export_csv(repository.list_bookings(), {resource_id: "Room A"}, {service_id: "Mix"}, SANTIAGO)

    assert content.startswith("\ufeff")
    lines = content.lstrip("\ufeff").splitlines()
    assert lines[0] == ";".join(CSV_HEADERS)
    assert lines[1] == "Los Jaivas;Mix;Room A;03/06/2030;10:00;11:30;90000;paid"
