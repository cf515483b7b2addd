"""
Booking Domain Entities

- Booking: aggregate root for one reservation of a resource
- BookingStatus: lifecycle states

The aggregate owns the money invariants: every mutation that touches
time or billing inputs goes back through the pricing engine, so
total/discount/deposit/balance/status are never assembled by hand.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from shared.domain.base import Aggregate
from shared.domain.value_objects import TimeRange

from apps.bookings.domain.errors import BookingValidationError
from apps.bookings.domain.pricing import (
    BillingBasis,
    PaymentBreakdown,
    PaymentMethod,
    PaymentStatus,
    apply_payment_transition,
    compute_total,
    derive_payment,
)


class BookingStatus(Enum):
    """
    Booking lifecycle

    State transitions:
    - PROGRAMMED -> IN_PROGRESS (session started)
    - IN_PROGRESS -> COMPLETED (session stopped)
    - COMPLETED -> IN_PROGRESS (session restarted)
    - PROGRAMMED / IN_PROGRESS -> CANCELLED
    - CANCELLED -> PROGRAMMED (restored, after a fresh conflict check)

    Session state never affects conflicts: a booking occupies its
    scheduled window whenever the session actually runs.
    """
    PROGRAMMED = 'programmed'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


@dataclass(eq=False, kw_only=True)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    Key invariants:
    - window.end > window.start
    - discount <= total_price, deposit <= total_price - discount
    - payment_status is PAID iff balance == 0 and due > 0
    - payment_method / paid_at are set iff PAID
    """

    org_id: UUID | None = None

    # Assignment
    resource_id: UUID
    staff_id: UUID | None = None
    service_id: UUID | None = None
    client_id: UUID | None = None
    client_name: str = ''
    client_phone: str = ''

    # Time
    window: TimeRange

    # Money
    billing: BillingBasis = field(default_factory=BillingBasis.none)
    total_price: int = 0
    discount: int = 0
    deposit: int = 0
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: PaymentMethod | None = None
    paid_at: datetime | None = None
    # deposit recorded before the operator marked the booking paid
    settled_deposit: int | None = None

    # Lifecycle
    status: BookingStatus = BookingStatus.PROGRAMMED
    started_at: datetime | None = None
    ended_at: datetime | None = None

    notes: str = ''
    color: str = ''

    _dirty: set = field(default_factory=set, repr=False, init=False)

    # ----- construction ---------------------------------------------------

    @classmethod
    def schedule(
        cls,
        *,
        resource_id: UUID,
        window: TimeRange,
        billing: BillingBasis,
        now: datetime,
        discount: int = 0,
        deposit: int = 0,
        payment_method: PaymentMethod | None = None,
        **attrs: Any,
    ) -> 'Booking':
        """Build a new, priced booking. Only the lifecycle coordinator calls this."""
        booking = cls(resource_id=resource_id, window=window, billing=billing, created_at=now, updated_at=now, **attrs)
        booking._apply_breakdown(
            derive_payment(compute_total(billing, window.duration_minutes), discount, deposit),
            now=now,
            new_method=payment_method,
        )
        booking._dirty.clear()
        booking.clear_events()
        return booking

    # ----- derived values -------------------------------------------------

    @property
    def start(self) -> datetime:
        return self.window.start

    @property
    def end(self) -> datetime:
        return self.window.end

    @property
    def duration_minutes(self) -> int:
        return self.window.duration_minutes

    @property
    def breakdown(self) -> PaymentBreakdown:
        return derive_payment(self.total_price, self.discount, self.deposit)

    @property
    def due(self) -> int:
        return self.breakdown.due

    @property
    def balance(self) -> int:
        return self.breakdown.balance

    @property
    def blocks_resource(self) -> bool:
        """Cancelled bookings free their slot; every other state occupies it."""
        return self.status is not BookingStatus.CANCELLED

    # ----- money ----------------------------------------------------------

    def _set(self, **values):
        for name, value in values.items():
            if getattr(self, name) != value:
                setattr(self, name, value)
                self._dirty.add(name)

    def _apply_breakdown(self, breakdown: PaymentBreakdown, *, now: datetime, new_method: PaymentMethod | None = None):
        method, paid_at = apply_payment_transition(
            self.payment_status,
            breakdown,
            method=self.payment_method,
            paid_at=self.paid_at,
            now=now,
            new_method=new_method,
        )
        old_status = self.payment_status
        self._set(
            total_price=breakdown.total,
            discount=breakdown.discount,
            deposit=breakdown.deposit,
            payment_status=breakdown.status,
            payment_method=method,
            paid_at=paid_at,
        )
        if breakdown.status is not PaymentStatus.PAID:
            self._set(settled_deposit=None)
        if old_status is not breakdown.status:
            from apps.bookings.domain.events import BookingPaymentChanged

            self.add_event(BookingPaymentChanged(
                aggregate_id=self.id,
                booking_id=self.id,
                payment_status=breakdown.status.value,
                balance=breakdown.balance,
            ))

    def reprice(
        self,
        *,
        now: datetime,
        billing: BillingBasis | None = None,
        discount: int | None = None,
        deposit: int | None = None,
        payment_method: PaymentMethod | None = None,
    ) -> PaymentBreakdown:
        """Recompute total from the billing basis and current duration, then payment fields."""
        if billing is not None:
            self._set(billing=billing)
        if deposit is not None:
            self._set(settled_deposit=None)
        breakdown = derive_payment(
            compute_total(self.billing, self.duration_minutes),
            self.discount if discount is None else discount,
            self.deposit if deposit is None else deposit,
        )
        self._apply_breakdown(breakdown, now=now, new_method=payment_method)
        self._touch(now)
        return breakdown

    def rederive_payment(self, *, now: datetime) -> PaymentBreakdown:
        """Re-derive payment fields from the stored total (duration unchanged)."""
        breakdown = derive_payment(self.total_price, self.discount, self.deposit)
        self._apply_breakdown(breakdown, now=now)
        return breakdown

    def settle(self, *, method: PaymentMethod | None, now: datetime) -> PaymentBreakdown:
        """
        Operator marks the booking paid: the outstanding balance is recorded
        as deposited so the derived status becomes PAID. The deposit held
        before is kept in `settled_deposit` for `reopen`.
        """
        current = self.breakdown
        if current.due <= 0:
            raise BookingValidationError("Nothing to collect on this booking.", booking_id=str(self.id))
        prior_deposit = self.deposit if self.payment_status is not PaymentStatus.PAID else self.settled_deposit
        breakdown = derive_payment(self.total_price, self.discount, current.due)
        self._apply_breakdown(breakdown, now=now, new_method=method)
        self._set(settled_deposit=prior_deposit)
        self._touch(now)
        return breakdown

    def reopen(self, *, deposit: int | None = None, now: datetime) -> PaymentBreakdown:
        """
        Operator reverts a payment. The deposit goes back to what it was
        before the booking was settled unless `deposit` is given.
        """
        if deposit is None:
            deposit = self.settled_deposit or 0
        breakdown = derive_payment(self.total_price, self.discount, deposit)
        self._apply_breakdown(breakdown, now=now)
        self._set(settled_deposit=None)
        self._touch(now)
        return breakdown

    # ----- time -----------------------------------------------------------

    def _ensure_schedulable(self):
        if self.status is BookingStatus.CANCELLED:
            raise BookingValidationError(
                "Cancelled bookings must be restored before they can be rescheduled.",
                booking_id=str(self.id),
            )

    def reschedule(self, *, resource_id: UUID, window: TimeRange, now: datetime) -> PaymentBreakdown:
        """
        Put the booking on `resource_id` over `window` in one step.

        A new resource or start emits BookingRescheduled, a new duration
        emits BookingResized. The price is recomputed once, for the final
        duration only.
        """
        self._ensure_schedulable()
        from apps.bookings.domain.events import BookingRescheduled, BookingResized

        old_resource, old_window = self.resource_id, self.window
        self._set(resource_id=resource_id, window=window)
        if window.duration != old_window.duration:
            breakdown = self.reprice(now=now)
        else:
            breakdown = self.rederive_payment(now=now)
            self._touch(now)

        if resource_id != old_resource or window.start != old_window.start:
            self.add_event(BookingRescheduled(
                aggregate_id=self.id,
                booking_id=self.id,
                old_resource_id=old_resource,
                new_resource_id=resource_id,
                old_window=old_window,
                new_window=window,
            ))
        if window.duration != old_window.duration:
            self.add_event(BookingResized(
                aggregate_id=self.id,
                booking_id=self.id,
                old_window=old_window,
                new_window=window,
                total_price=breakdown.total,
            ))
        return breakdown

    # ----- lifecycle ------------------------------------------------------

    def cancel(self, *, now: datetime):
        if self.status not in (BookingStatus.PROGRAMMED, BookingStatus.IN_PROGRESS):
            raise BookingValidationError(
                f"Cannot cancel booking with status {self.status.value}",
                booking_id=str(self.id),
            )
        from apps.bookings.domain.events import BookingCancelled

        old_status = self.status
        self._set(status=BookingStatus.CANCELLED)
        self._touch(now)
        self.add_event(BookingCancelled(
            aggregate_id=self.id,
            booking_id=self.id,
            resource_id=self.resource_id,
            old_status=old_status.value,
        ))

    def restore(self, *, now: datetime):
        """Put a cancelled booking back. The caller re-checks conflicts first."""
        if self.status is not BookingStatus.CANCELLED:
            raise BookingValidationError(
                f"Only cancelled bookings can be restored (status {self.status.value})",
                booking_id=str(self.id),
            )
        from apps.bookings.domain.events import BookingRestored

        self._set(status=BookingStatus.PROGRAMMED)
        self._touch(now)
        self.add_event(BookingRestored(
            aggregate_id=self.id,
            booking_id=self.id,
            resource_id=self.resource_id,
        ))

    def start_session(self, *, now: datetime):
        if self.status is BookingStatus.CANCELLED:
            raise BookingValidationError("Cannot start a session for a cancelled booking.", booking_id=str(self.id))
        from apps.bookings.domain.events import SessionStarted

        self._set(status=BookingStatus.IN_PROGRESS, started_at=now, ended_at=None)
        self._touch(now)
        self.add_event(SessionStarted(aggregate_id=self.id, booking_id=self.id))

    def stop_session(self, *, now: datetime):
        if self.status is not BookingStatus.IN_PROGRESS or self.started_at is None:
            raise BookingValidationError("No session in progress.", booking_id=str(self.id))
        from apps.bookings.domain.events import SessionStopped

        self._set(status=BookingStatus.COMPLETED, ended_at=now)
        self._touch(now)
        self.add_event(SessionStopped(
            aggregate_id=self.id,
            booking_id=self.id,
            minutes=int((now - self.started_at).total_seconds() // 60),
        ))

    def mark_deleted(self):
        from apps.bookings.domain.events import BookingDeleted

        self.add_event(BookingDeleted(
            aggregate_id=self.id,
            booking_id=self.id,
            resource_id=self.resource_id,
        ))

    # ----- details --------------------------------------------------------

    def update_details(self, *, now: datetime, **values):
        allowed = {'color', 'notes', 'staff_id', 'client_name', 'client_phone'}
        unknown = set(values) - allowed
        if unknown:
            raise BookingValidationError(f"Fields cannot be edited here: {', '.join(sorted(unknown))}")
        self._set(**values)
        self._touch(now)

    # ----- change tracking ------------------------------------------------

    def _touch(self, now: datetime):
        if self._dirty:
            self._set(updated_at=now)

    def take_changes(self) -> dict[str, Any]:
        """Changed attributes since the last call, for a partial update."""
        changes = {name: getattr(self, name) for name in self._dirty}
        self._dirty.clear()
        return changes

    def __str__(self):
        return f"Booking {self.id} ({self.status.value})"

    def __repr__(self):
        return (
            f"Booking(id={self.id}, resource_id={self.resource_id}, "
            f"status={self.status.value}, window={self.window!r})"
        )
