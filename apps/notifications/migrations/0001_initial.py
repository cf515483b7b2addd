import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="NotificationLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("org_id", models.UUIDField(blank=True, null=True)),
                ("booking_id", models.UUIDField(db_index=True)),
                ("channel", models.CharField(choices=[("email", "Email"), ("sms", "SMS")], max_length=10)),
                ("kind", models.CharField(choices=[("created", "Booking created")], max_length=20)),
                ("to_value", models.CharField(max_length=255)),
                ("status", models.CharField(default="sent", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("booking_id", "channel", "kind", "to_value"),
                        name="notification_sent_once",
                    ),
                ],
            },
        ),
    ]
