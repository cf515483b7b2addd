import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("studio", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("org_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("client_name", models.CharField(blank=True, max_length=160)),
                ("client_phone", models.CharField(blank=True, max_length=40)),
                ("start_at", models.DateTimeField()),
                ("end_at", models.DateTimeField()),
                ("duration_minutes", models.PositiveIntegerField(default=0)),
                (
                    "billing_mode",
                    models.CharField(
                        choices=[("service", "Per service"), ("hourly", "Hourly"), ("none", "Not billed")],
                        default="none",
                        max_length=10,
                    ),
                ),
                ("unit_price", models.PositiveIntegerField(default=0)),
                ("unit_minutes", models.PositiveIntegerField(default=0)),
                ("total_price", models.PositiveIntegerField(default=0)),
                ("discount", models.PositiveIntegerField(default=0)),
                ("deposit", models.PositiveIntegerField(default=0)),
                (
                    "payment_status",
                    models.CharField(choices=[("pending", "Pending"), ("paid", "Paid")], default="pending", max_length=10),
                ),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[("cash", "Cash"), ("transfer", "Transfer"), ("card", "Card")],
                        max_length=10,
                    ),
                ),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("programmed", "Programmed"),
                            ("in_progress", "In progress"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="programmed",
                        max_length=20,
                    ),
                ),
                ("started_at", models.DateTimeField(blank=True, null=True)),
                ("ended_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                ("color", models.CharField(blank=True, max_length=20)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "client",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bookings",
                        to="studio.client",
                    ),
                ),
                (
                    "resource",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="studio.resource",
                    ),
                ),
                (
                    "service",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bookings",
                        to="studio.service",
                    ),
                ),
                (
                    "staff",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bookings",
                        to="studio.staff",
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["start_at"],
                "indexes": [
                    models.Index(fields=["resource", "start_at", "end_at"], name="booking_resource_window_idx"),
                    models.Index(fields=["status"], name="booking_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_at__gt", models.F("start_at"))),
                        name="booking_valid_window",
                    ),
                ],
            },
        ),
    ]
