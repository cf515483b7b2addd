from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("bookings", "0002_no_overlap_constraint"),
    ]

    operations = [
        migrations.AddField(
            model_name="booking",
            name="settled_deposit",
            field=models.PositiveIntegerField(blank=True, null=True),
        ),
    ]
