# Generated manually - HostAccount and PayoutAttempt

import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("events", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="HostAccount",
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
                    "stripe_account_id",
                    models.CharField(
                        blank=True,
                        help_text="Stripe Connect account ID (acct_xxx)",
                        max_length=255,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "waive_platform_fee",
                    models.BooleanField(
                        default=False,
                        help_text="If set, no platform fee is withheld from this host's payouts",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        help_text="Host this payout account belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="host_account",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Host Account",
                "verbose_name_plural": "Host Accounts",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="PayoutAttempt",
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
                    "outcome",
                    models.CharField(
                        choices=[
                            ("paid", "Paid"),
                            ("skipped", "Skipped"),
                            ("failed", "Failed"),
                            ("unknown", "Unknown"),
                            ("already_paid", "Already paid"),
                            ("unrecorded", "Unrecorded"),
                        ],
                        db_index=True,
                        help_text="Result of this attempt",
                        max_length=20,
                    ),
                ),
                (
                    "gross_amount_cents",
                    models.PositiveBigIntegerField(
                        blank=True, help_text="Booking total in cents", null=True
                    ),
                ),
                (
                    "platform_fee_cents",
                    models.PositiveBigIntegerField(
                        blank=True, help_text="Platform fee withheld in cents", null=True
                    ),
                ),
                (
                    "net_amount_cents",
                    models.PositiveBigIntegerField(
                        blank=True,
                        help_text="Amount transferred to the host in cents",
                        null=True,
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="usd",
                        help_text="ISO 4217 currency code (lowercase)",
                        max_length=3,
                    ),
                ),
                (
                    "idempotency_key",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        default="",
                        help_text="Idempotency key sent with the transfer",
                        max_length=255,
                    ),
                ),
                (
                    "transfer_group",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Stripe transfer group",
                        max_length=255,
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
                    "error_code",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Machine-readable failure code",
                        max_length=64,
                    ),
                ),
                (
                    "error_message",
                    models.TextField(blank=True, default="", help_text="Failure description"),
                ),
                (
                    "booking",
                    models.ForeignKey(
                        help_text="Booking being settled",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payout_attempts",
                        to="events.booking",
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        help_text="Event the booking belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payout_attempts",
                        to="events.event",
                    ),
                ),
                (
                    "host",
                    models.ForeignKey(
                        help_text="Host being paid",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payout_attempts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Payout Attempt",
                "verbose_name_plural": "Payout Attempts",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["booking", "outcome"],
                        name="payouts_pay_booking_5b1f7a_idx",
                    )
                ],
            },
        ),
    ]
