# Generated manually - Event and Booking

import uuid

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
            name="Event",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("title", models.CharField(help_text="Event display name", max_length=255)),
                (
                    "starts_at",
                    models.DateTimeField(blank=True, help_text="When the event starts", null=True),
                ),
                (
                    "ends_at",
                    models.DateTimeField(
                        blank=True,
                        db_index=True,
                        help_text="When the event ends (settlement may begin after this)",
                        null=True,
                    ),
                ),
                (
                    "payout_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("complete", "Complete")],
                        db_index=True,
                        default="pending",
                        help_text="Settlement state of the event's bookings",
                        max_length=20,
                    ),
                ),
                (
                    "payout_status_updated_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When payout_status was last reconciled",
                        null=True,
                    ),
                ),
            ],
            options={
                "verbose_name": "Event",
                "verbose_name_plural": "Events",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "total_price",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Gross amount paid by the renter (major units, e.g. dollars)",
                        max_digits=10,
                    ),
                ),
                (
                    "paid_out",
                    models.BooleanField(
                        db_index=True,
                        default=False,
                        help_text="Whether the host has been paid for this booking",
                    ),
                ),
                (
                    "paid_out_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the booking was marked paid out",
                        null=True,
                    ),
                ),
                (
                    "stripe_transfer_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Stripe Transfer ID (tr_xxx)",
                        max_length=255,
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        help_text="Event this booking is for",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="events.event",
                    ),
                ),
                (
                    "host",
                    models.ForeignKey(
                        help_text="Host who receives the payout",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="hosted_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "renter",
                    models.ForeignKey(
                        help_text="Renter who paid for the space",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="rented_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["event", "paid_out"],
                        name="events_book_event_i_0c7d1e_idx",
                    )
                ],
            },
        ),
    ]
