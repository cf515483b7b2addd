import doctest
from datetime import datetime, timezone

import pytest

from apps.bookings.domain import pricing
from apps.bookings.domain.pricing import (
    BillingBasis,
    BillingMode,
    PaymentMethod,
    PaymentStatus,
    apply_payment_transition,
    compute_total,
    derive_payment,
    price_booking,
)

NOW = datetime(2030, 6, 3, 12, 0, tzinfo=timezone.utc)
EARLIER = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_module_examples():
    assert doctest.testmod(pricing).failed == 0


def test_service_priced_proportionally_to_its_nominal_duration():
    # 90 minutes of a 60 minute / 60000 service, fully paid up front
    breakdown = price_booking(BillingBasis.for_service(60, 60000), 90, discount=0, deposit=90000)

    assert breakdown.total == 90000
    assert breakdown.balance == 0
    assert breakdown.status is PaymentStatus.PAID


def test_hourly_rate_for_45_minutes():
    assert compute_total(BillingBasis.hourly(20000), 45) == 15000


def test_service_without_nominal_duration_charges_flat_price():
    assert compute_total(BillingBasis(BillingMode.SERVICE, 25000, 0), 200) == 25000


def test_no_billing_basis_is_free():
    assert compute_total(BillingBasis.none(), 120) == 0


def test_rounding_is_half_up():
    # 1 unit per hour for 30 minutes is exactly half a unit
    assert compute_total(BillingBasis.hourly(1), 30) == 1
    assert compute_total(BillingBasis.hourly(3), 10) == 1
    assert compute_total(BillingBasis.hourly(5), 90) == 8


@pytest.mark.parametrize(
    "total, discount, deposit, expected",
    [
        (100, 0, 0, (0, 0, 100, 100, PaymentStatus.PENDING)),
        (100, 20, 30, (20, 30, 80, 50, PaymentStatus.PENDING)),
        (100, 20, 80, (20, 80, 80, 0, PaymentStatus.PAID)),
        (100, 150, 10, (100, 0, 0, 0, PaymentStatus.PENDING)),
        (100, 0, 500, (0, 100, 100, 0, PaymentStatus.PAID)),
        (100, -5, -5, (0, 0, 100, 100, PaymentStatus.PENDING)),
        (0, 0, 0, (0, 0, 0, 0, PaymentStatus.PENDING)),
    ],
)
def test_derive_payment(total, discount, deposit, expected):
    breakdown = derive_payment(total, discount, deposit)

    assert (breakdown.discount, breakdown.deposit, breakdown.due, breakdown.balance, breakdown.status) == expected
    assert breakdown.discount <= breakdown.total
    assert breakdown.deposit <= max(breakdown.total - breakdown.discount, 0)
    assert breakdown.balance == max(breakdown.total - breakdown.discount - breakdown.deposit, 0)


def test_paid_transition_records_method_and_time():
    paid = derive_payment(100, 0, 100)

    method, paid_at = apply_payment_transition(
        PaymentStatus.PENDING, paid, method=None, paid_at=None, now=NOW, new_method=PaymentMethod.CARD,
    )

    assert method is PaymentMethod.CARD
    assert paid_at == NOW


def test_staying_paid_keeps_original_paid_at():
    paid = derive_payment(100, 0, 100)

    method, paid_at = apply_payment_transition(
        PaymentStatus.PAID, paid, method=PaymentMethod.CASH, paid_at=EARLIER, now=NOW,
    )

    assert method is PaymentMethod.CASH
    assert paid_at == EARLIER


def test_reverting_to_pending_clears_method_and_time():
    pending = derive_payment(100, 0, 40)

    assert apply_payment_transition(
        PaymentStatus.PAID, pending, method=PaymentMethod.CASH, paid_at=EARLIER, now=NOW,
    ) == (None, None)
