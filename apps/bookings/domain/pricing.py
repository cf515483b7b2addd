"""
Pricing & payment engine

Pure derivation of every money field of a booking from its duration and
billing inputs:

    duration -> total -> discount -> due -> deposit -> balance -> status

All amounts are integer currency units. Rounding is ROUND_HALF_UP through
`round_amount`, the only rounding helper in the engine, so repeated
resizes never drift.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum


class BillingMode(Enum):
    SERVICE = 'service'   # proportional to a service's nominal duration/price
    HOURLY = 'hourly'     # flat rate per hour
    NONE = 'none'         # nothing to bill (no service, no rate)


class PaymentStatus(Enum):
    PENDING = 'pending'
    PAID = 'paid'


class PaymentMethod(Enum):
    CASH = 'cash'
    TRANSFER = 'transfer'
    CARD = 'card'


def round_amount(value: Decimal) -> int:
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


@dataclass(frozen=True)
class BillingBasis:
    """
    Snapshot of what a booking is billed against.

    A service is billed at `price` per `duration_minutes`; an hourly rate
    is the same thing with a 60 minute unit. The snapshot is stored on the
    booking so later edits to the service do not reprice past bookings.
    """
    mode: BillingMode = BillingMode.NONE
    unit_price: int = 0
    unit_minutes: int = 0

    @classmethod
    def for_service(cls, duration_minutes: int, price: int) -> 'BillingBasis':
        return cls(BillingMode.SERVICE, max(int(price), 0), max(int(duration_minutes), 0))

    @classmethod
    def hourly(cls, rate: int) -> 'BillingBasis':
        return cls(BillingMode.HOURLY, max(int(rate), 0), 60)

    @classmethod
    def none(cls) -> 'BillingBasis':
        return cls()


def compute_total(basis: BillingBasis, duration_minutes: int) -> int:
    """
    Total price for `duration_minutes` under `basis`.

    >>> compute_total(BillingBasis.for_service(60, 60000), 90)
    90000
    >>> compute_total(BillingBasis.hourly(20000), 45)
    15000
    """
    if basis.mode is BillingMode.NONE:
        return 0
    if basis.unit_minutes <= 0:
        return basis.unit_price
    duration = max(int(duration_minutes), 0)
    return round_amount(Decimal(basis.unit_price) * duration / basis.unit_minutes)


@dataclass(frozen=True)
class PaymentBreakdown:
    total: int
    discount: int
    deposit: int
    due: int
    balance: int
    status: PaymentStatus

    @property
    def is_paid(self) -> bool:
        return self.status is PaymentStatus.PAID


def derive_payment(total: int, discount: int = 0, deposit: int = 0) -> PaymentBreakdown:
    """
    Clamp discount and deposit into range and derive due/balance/status.

    Negative inputs are clamped, never rejected:
        discount in [0, total], deposit in [0, due].
    """
    total = max(int(total), 0)
    discount = clamp(int(discount), 0, total)
    due = total - discount
    deposit = clamp(int(deposit), 0, due)
    balance = due - deposit
    status = PaymentStatus.PAID if balance == 0 and due > 0 else PaymentStatus.PENDING
    return PaymentBreakdown(
        total=total,
        discount=discount,
        deposit=deposit,
        due=due,
        balance=balance,
        status=status,
    )


def price_booking(basis: BillingBasis, duration_minutes: int, discount: int = 0, deposit: int = 0) -> PaymentBreakdown:
    return derive_payment(compute_total(basis, duration_minutes), discount, deposit)


def apply_payment_transition(
    previous: PaymentStatus,
    breakdown: PaymentBreakdown,
    *,
    method: PaymentMethod | None,
    paid_at: datetime | None,
    now: datetime,
    new_method: PaymentMethod | None = None,
) -> tuple[PaymentMethod | None, datetime | None]:
    """
    Payment method and paid-at after moving to `breakdown.status`.

    Set on the transition to paid, kept while the booking stays paid,
    cleared when it reverts to pending.
    """
    if not breakdown.is_paid:
        return None, None
    if previous is PaymentStatus.PAID and paid_at is not None:
        return new_method or method, paid_at
    return new_method or method, now
