"""
Payout admin configuration.

HostAccount is editable so operators can set fee waivers. PayoutAttempt
is an append-only ledger and is read-only.
"""

from django.contrib import admin

from payouts.models import HostAccount, PayoutAttempt


@admin.register(HostAccount)
class HostAccountAdmin(admin.ModelAdmin):
    """Admin configuration for HostAccount."""

    list_display = [
        "user",
        "stripe_account_id",
        "waive_platform_fee",
        "created_at",
    ]
    list_filter = ["waive_platform_fee"]
    search_fields = ["user__email", "stripe_account_id"]
    readonly_fields = ["id", "created_at", "updated_at"]
    raw_id_fields = ["user"]
    ordering = ["-created_at"]


@admin.register(PayoutAttempt)
class PayoutAttemptAdmin(admin.ModelAdmin):
    """
    Admin configuration for PayoutAttempt.

    Rows with outcome "unrecorded" need manual reconciliation against
    Stripe: the transfer exists but the booking was not marked paid.
    """

    list_display = [
        "booking",
        "event",
        "host",
        "outcome",
        "amount_display",
        "stripe_transfer_id",
        "error_code",
        "created_at",
    ]
    list_filter = ["outcome", "error_code", "created_at"]
    search_fields = [
        "booking__id",
        "event__id",
        "host__email",
        "stripe_transfer_id",
        "idempotency_key",
    ]
    ordering = ["-created_at"]

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description="Net")
    def amount_display(self, obj):
        if obj.net_amount_cents is None:
            return "-"
        return f"{obj.net_amount_cents / 100:.2f} {obj.currency.upper()}"
