"""Serializers for the booking API.

Input serializers only shape requests into commands; every scheduling
rule is enforced by the command handlers behind the bus.
"""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.studio.models import Client, Resource, Service, Staff

from .application.command_handlers import (
    CreateBookingCommand,
    MoveBookingCommand,
    MoveToSlotCommand,
    ResizeBookingCommand,
    TogglePaymentCommand,
    UpdateBillingCommand,
    UpdateDetailsCommand,
)
from .domain.pricing import BillingMode, PaymentMethod, derive_payment
from .models import Booking

BILLING_MODES = [mode.value for mode in BillingMode]
PAYMENT_METHODS = [method.value for method in PaymentMethod]


def _enum(enum_type, value):
    return enum_type(value) if value else None


def _pk(instance):
    return instance.pk if instance is not None else None


class BookingSerializer(serializers.ModelSerializer):
    """Detailed booking representation."""

    resource_id = serializers.ReadOnlyField()
    resource_name = serializers.ReadOnlyField(source="resource.name")
    staff_id = serializers.ReadOnlyField()
    service_id = serializers.ReadOnlyField()
    service_name = serializers.SerializerMethodField()
    client_id = serializers.ReadOnlyField()
    due = serializers.SerializerMethodField()
    balance = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "org_id",
            "resource_id",
            "resource_name",
            "staff_id",
            "service_id",
            "service_name",
            "client_id",
            "client_name",
            "client_phone",
            "start_at",
            "end_at",
            "duration_minutes",
            "billing_mode",
            "unit_price",
            "unit_minutes",
            "total_price",
            "discount",
            "deposit",
            "due",
            "balance",
            "payment_status",
            "payment_method",
            "paid_at",
            "status",
            "started_at",
            "ended_at",
            "notes",
            "color",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_service_name(self, obj: Booking) -> str:
        return obj.service.name if obj.service_id else ""

    def get_due(self, obj: Booking) -> int:
        return derive_payment(obj.total_price, obj.discount, obj.deposit).due

    def get_balance(self, obj: Booking) -> int:
        return derive_payment(obj.total_price, obj.discount, obj.deposit).balance


class BookingCreateSerializer(serializers.Serializer):
    """Draft of a new booking, also used for quotes."""

    resource = serializers.PrimaryKeyRelatedField(queryset=Resource.objects.all())
    start = serializers.DateTimeField()
    end = serializers.DateTimeField(required=False, allow_null=True)
    duration_minutes = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    client = serializers.PrimaryKeyRelatedField(queryset=Client.objects.all(), required=False, allow_null=True)
    client_name = serializers.CharField(required=False, allow_blank=True, default="")
    client_phone = serializers.CharField(required=False, allow_blank=True, default="")
    service = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all(), required=False, allow_null=True)
    staff = serializers.PrimaryKeyRelatedField(queryset=Staff.objects.all(), required=False, allow_null=True)
    billing_mode = serializers.ChoiceField(choices=BILLING_MODES, required=False, allow_null=True)
    hourly_rate = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    discount = serializers.IntegerField(required=False, default=0, min_value=0)
    deposit = serializers.IntegerField(required=False, default=0, min_value=0)
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHODS, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    color = serializers.CharField(required=False, allow_blank=True, default="", max_length=20)

    def to_command(self) -> CreateBookingCommand:
        data = self.validated_data
        resource = data["resource"]
        return CreateBookingCommand(
            resource_id=resource.pk,
            start=data["start"],
            end=data.get("end"),
            duration_minutes=data.get("duration_minutes"),
            client_id=_pk(data.get("client")),
            client_name=data["client_name"],
            client_phone=data["client_phone"],
            service_id=_pk(data.get("service")),
            staff_id=_pk(data.get("staff")),
            billing_mode=_enum(BillingMode, data.get("billing_mode")),
            hourly_rate=data.get("hourly_rate"),
            discount=data["discount"],
            deposit=data["deposit"],
            payment_method=_enum(PaymentMethod, data.get("payment_method")),
            notes=data["notes"],
            color=data["color"],
            org_id=resource.org_id,
        )


class MoveSerializer(serializers.Serializer):
    """Either an explicit `start`, or a grid cell (`day` + `slot_index`)."""

    resource = serializers.PrimaryKeyRelatedField(queryset=Resource.objects.all(), required=False)
    start = serializers.DateTimeField(required=False)
    day = serializers.DateField(required=False)
    slot_index = serializers.IntegerField(required=False, min_value=0)

    def validate(self, attrs):  # type: ignore
        has_cell = "day" in attrs and "slot_index" in attrs
        if "start" not in attrs and not has_cell:
            raise serializers.ValidationError("Provide start, or day and slot_index.")
        return attrs

    def to_command(self, booking: Booking) -> MoveBookingCommand | MoveToSlotCommand:
        data = self.validated_data
        resource_id = data["resource"].pk if "resource" in data else booking.resource_id
        if "start" in data:
            return MoveBookingCommand(booking_id=booking.pk, resource_id=resource_id, start=data["start"])
        return MoveToSlotCommand(
            booking_id=booking.pk,
            resource_id=resource_id,
            day=data["day"],
            slot_index=data["slot_index"],
        )


class ResizeSerializer(serializers.Serializer):
    end = serializers.DateTimeField()

    def to_command(self, booking: Booking) -> ResizeBookingCommand:
        return ResizeBookingCommand(booking_id=booking.pk, end=self.validated_data["end"])


class BillingSerializer(serializers.Serializer):
    discount = serializers.IntegerField(required=False, min_value=0)
    deposit = serializers.IntegerField(required=False, min_value=0)
    billing_mode = serializers.ChoiceField(choices=BILLING_MODES, required=False)
    hourly_rate = serializers.IntegerField(required=False, min_value=0)
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHODS, required=False)

    def to_command(self, booking: Booking) -> UpdateBillingCommand:
        data = self.validated_data
        return UpdateBillingCommand(
            booking_id=booking.pk,
            discount=data.get("discount"),
            deposit=data.get("deposit"),
            billing_mode=_enum(BillingMode, data.get("billing_mode")),
            hourly_rate=data.get("hourly_rate"),
            payment_method=_enum(PaymentMethod, data.get("payment_method")),
        )


class PaymentToggleSerializer(serializers.Serializer):
    """
    `method` applies when marking paid, `deposit` when reverting to pending.
    Without `deposit` the deposit held before the payment comes back.
    """

    method = serializers.ChoiceField(choices=PAYMENT_METHODS, required=False, allow_null=True)
    deposit = serializers.IntegerField(required=False, allow_null=True, min_value=0)

    def to_command(self, booking: Booking) -> TogglePaymentCommand:
        data = self.validated_data
        return TogglePaymentCommand(
            booking_id=booking.pk,
            method=_enum(PaymentMethod, data.get("method")),
            reopen_deposit=data.get("deposit"),
        )


class BookingDetailsSerializer(serializers.Serializer):
    color = serializers.CharField(required=False, allow_blank=True, max_length=20)
    notes = serializers.CharField(required=False, allow_blank=True)
    staff = serializers.PrimaryKeyRelatedField(queryset=Staff.objects.all(), required=False, allow_null=True)
    client_name = serializers.CharField(required=False, allow_blank=True)
    client_phone = serializers.CharField(required=False, allow_blank=True)
    resource = serializers.PrimaryKeyRelatedField(queryset=Resource.objects.all(), required=False)
    start = serializers.DateTimeField(required=False)
    end = serializers.DateTimeField(required=False)

    def to_command(self, booking: Booking) -> UpdateDetailsCommand:
        data = self.validated_data
        return UpdateDetailsCommand(
            booking_id=booking.pk,
            color=data.get("color"),
            notes=data.get("notes"),
            staff_id=_pk(data.get("staff")),
            client_name=data.get("client_name"),
            client_phone=data.get("client_phone"),
            resource_id=_pk(data.get("resource")),
            start=data.get("start"),
            end=data.get("end"),
            clear_staff="staff" in data and data["staff"] is None,
        )


class AvailabilityQuerySerializer(serializers.Serializer):
    resource = serializers.PrimaryKeyRelatedField(queryset=Resource.objects.all())
    date = serializers.DateField()
    duration_minutes = serializers.IntegerField(required=False, min_value=1)
