import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("bid_submitted", "New Bid Submitted"),
                            ("bid_revised", "Bid Updated"),
                            ("bid_withdrawn", "Bid Withdrawn"),
                            ("bid_accepted", "Bid Accepted"),
                            ("bid_rejected", "Bid Not Selected"),
                            ("tender_invitation", "New Tender Invitation"),
                            ("comment_added", "New Comment"),
                        ],
                        max_length=30,
                    ),
                ),
                ("title", models.CharField(max_length=200)),
                ("message", models.TextField()),
                ("reference_id", models.PositiveBigIntegerField(blank=True, null=True)),
                ("reference_type", models.CharField(blank=True, max_length=20)),
                ("is_read", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
