"""API views for the booking domain."""

from __future__ import annotations

import logging

from django.http import HttpResponse  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.functional import cached_property  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from drf_spectacular.utils import extend_schema  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .application.command_handlers import (
    CancelBookingCommand,
    DeleteBookingCommand,
    QuoteBookingCommand,
    RestoreBookingCommand,
    StartSessionCommand,
    StopSessionCommand,
)
from .application.queries import check_availability
from .application.reschedule import RescheduleResult
from .bootstrap import bootstrap
from .domain.errors import (
    BookingConflictError,
    BookingNotFound,
    BookingValidationError,
    PersistenceError,
    SchedulingError,
)
from .filters import BookingFilterSet
from .models import Booking
from .reports import export_csv, summarize
from .repositories import to_domain
from .serializers import (
    AvailabilityQuerySerializer,
    BillingSerializer,
    BookingCreateSerializer,
    BookingDetailsSerializer,
    BookingSerializer,
    MoveSerializer,
    PaymentToggleSerializer,
    ResizeSerializer,
)

logger = logging.getLogger(__name__)

# Most specific first: BookingNotFound is a PersistenceError.
ERROR_STATUS = (
    (BookingNotFound, status.HTTP_404_NOT_FOUND),
    (BookingConflictError, status.HTTP_409_CONFLICT),
    (BookingValidationError, status.HTTP_400_BAD_REQUEST),
    (PersistenceError, status.HTTP_502_BAD_GATEWAY),
)


def _conflict_payload(conflicts) -> list[dict]:
    return [
        {
            "dimension": conflict.dimension.value,
            "booking_id": str(conflict.booking_id),
            "start": conflict.window.start.isoformat(),
            "end": conflict.window.end.isoformat(),
            "message": conflict.message,
        }
        for conflict in conflicts
    ]


def scheduling_error_response(exc: SchedulingError) -> Response:
    """Render a scheduling error as {"detail", "code"} with the matching status."""
    http_status = next(
        (code for error_type, code in ERROR_STATUS if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    body = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, BookingConflictError) and exc.conflicts:
        body["conflicts"] = _conflict_payload(exc.conflicts)
    if http_status >= 500:
        logger.error(f"Datastore failure: {exc.message}")
    return Response(body, status=http_status)


class BookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Bookings of the studio calendar.

    Reads go straight to the ORM; every write is a command on the
    scheduling bus.
    """

    queryset = Booking.objects.select_related("resource", "service").all()
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_class = BookingFilterSet

    @cached_property
    def scheduling(self):
        return bootstrap()

    def handle_exception(self, exc):  # type: ignore
        if isinstance(exc, SchedulingError):
            return scheduling_error_response(exc)
        return super().handle_exception(exc)

    def _run(self, command):
        return self.scheduling.bus.handle_command(command)

    def _booking_response(self, booking_id, http_status=status.HTTP_200_OK) -> Response:
        row = self.get_queryset().get(pk=booking_id)
        return Response(BookingSerializer(row, context=self.get_serializer_context()).data, status=http_status)

    def _reschedule_response(self, result: RescheduleResult) -> Response:
        if result.ok:
            return self._booking_response(result.booking.id)
        row = self.get_queryset().get(pk=result.booking.id)
        return Response(
            {
                "detail": result.message,
                "code": BookingConflictError.code,
                "conflicts": _conflict_payload(result.conflicts),
                "booking": BookingSerializer(row, context=self.get_serializer_context()).data,
            },
            status=status.HTTP_409_CONFLICT,
        )

    # ----- collection -----------------------------------------------------

    @extend_schema(request=BookingCreateSerializer, responses=BookingSerializer)
    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = self._run(serializer.to_command())
        return self._booking_response(booking.id, status.HTTP_201_CREATED)

    @extend_schema(request=BookingCreateSerializer)
    @action(detail=False, methods=["post"])
    def quote(self, request):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quote = self._run(QuoteBookingCommand(draft=serializer.to_command()))
        return Response({
            "ok": quote.ok,
            "conflict": quote.conflict,
            "conflicts": _conflict_payload(quote.conflicts),
            "start": quote.start,
            "end": quote.end,
            "total_price": quote.total,
            "discount": quote.discount,
            "deposit": quote.deposit,
            "due": quote.due,
            "balance": quote.balance,
            "payment_status": quote.status.value,
        })

    @extend_schema(parameters=[AvailabilityQuerySerializer])
    @action(detail=False, methods=["get"])
    def availability(self, request):  # type: ignore
        serializer = AvailabilityQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        context = self.scheduling.context
        duration = data.get("duration_minutes") or context.default_duration_minutes
        start_times = check_availability(context, data["resource"].pk, data["date"], duration)
        return Response({
            "resource": str(data["resource"].pk),
            "date": data["date"].isoformat(),
            "duration_minutes": duration,
            "start_times": [moment.isoformat() for moment in start_times],
        })

    @action(detail=False, methods=["get"])
    def summary(self, request):  # type: ignore
        rows = self.filter_queryset(self.get_queryset())
        return Response(summarize(to_domain(row) for row in rows).to_dict())

    @action(detail=False, methods=["get"])
    def export(self, request):  # type: ignore
        rows = list(self.filter_queryset(self.get_queryset()))
        resources = {row.resource_id: row.resource.name for row in rows}
        services = {row.service_id: row.service.name for row in rows if row.service_id}
        content = export_csv(
            [to_domain(row) for row in rows],
            resources,
            services,
            timezone.get_current_timezone(),
        )
        response = HttpResponse(content, content_type="text/csv; charset=utf-8")
        filename = f"report_{timezone.localdate():%Y-%m-%d}.csv"
        response["Content-Disposition"] = f'attachment; filename="{filename}"'
        return response

    # ----- single booking -------------------------------------------------

    def destroy(self, request, *args, **kwargs):  # type: ignore
        booking = self.get_object()
        self._run(DeleteBookingCommand(booking_id=booking.pk))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=BookingDetailsSerializer, responses=BookingSerializer)
    def partial_update(self, request, *args, **kwargs):  # type: ignore
        booking = self.get_object()
        serializer = BookingDetailsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self._run(serializer.to_command(booking))
        if isinstance(result, RescheduleResult):
            return self._reschedule_response(result)
        return self._booking_response(result.id)

    @extend_schema(request=MoveSerializer, responses=BookingSerializer)
    @action(detail=True, methods=["post"])
    def move(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = MoveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._reschedule_response(self._run(serializer.to_command(booking)))

    @extend_schema(request=ResizeSerializer, responses=BookingSerializer)
    @action(detail=True, methods=["post"])
    def resize(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = ResizeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._reschedule_response(self._run(serializer.to_command(booking)))

    @extend_schema(request=None, responses=BookingSerializer)
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking = self._run(CancelBookingCommand(booking_id=self.get_object().pk))
        return self._booking_response(booking.id)

    @extend_schema(request=None, responses=BookingSerializer)
    @action(detail=True, methods=["post"])
    def restore(self, request, pk=None):  # type: ignore
        booking = self._run(RestoreBookingCommand(booking_id=self.get_object().pk))
        return self._booking_response(booking.id)

    @extend_schema(request=PaymentToggleSerializer, responses=BookingSerializer)
    @action(detail=True, methods=["post"])
    def payment(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = PaymentToggleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updated = self._run(serializer.to_command(booking))
        return self._booking_response(updated.id)

    @extend_schema(request=BillingSerializer, responses=BookingSerializer)
    @action(detail=True, methods=["post"])
    def billing(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = BillingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updated = self._run(serializer.to_command(booking))
        return self._booking_response(updated.id)

    @extend_schema(request=None, responses=BookingSerializer)
    @action(detail=True, methods=["post"], url_path="start-session")
    def start_session(self, request, pk=None):  # type: ignore
        booking = self._run(StartSessionCommand(booking_id=self.get_object().pk))
        return self._booking_response(booking.id)

    @extend_schema(request=None, responses=BookingSerializer)
    @action(detail=True, methods=["post"], url_path="stop-session")
    def stop_session(self, request, pk=None):  # type: ignore
        booking = self._run(StopSessionCommand(booking_id=self.get_object().pk))
        return self._booking_response(booking.id)
