"""
Event admin configuration.

Adds the "Initiate payouts for selected events" action, which runs the
payout dispatcher as the requesting staff user. The operator guard still
applies, so staff who are not payout operators get an error message.
"""

from django.contrib import admin, messages

from core.exceptions import BaseApplicationError
from events.models import Booking, Event
from payouts.authorization import CallerIdentity
from payouts.services import PayoutDispatcher


class BookingInline(admin.TabularInline):
    """Read-only view of an event's bookings and their payout state."""

    model = Booking
    extra = 0
    can_delete = False
    fields = ["id", "host", "renter", "total_price", "paid_out", "paid_out_at", "stripe_transfer_id"]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    """
    Admin configuration for Event.

    payout_status is maintained by the reconciler and is read-only here.
    """

    list_display = ["title", "starts_at", "ends_at", "payout_status", "payout_status_updated_at"]
    list_filter = ["payout_status"]
    search_fields = ["id", "title"]
    readonly_fields = ["id", "payout_status", "payout_status_updated_at", "created_at", "updated_at"]
    ordering = ["-ends_at"]
    inlines = [BookingInline]
    actions = ["initiate_payouts"]

    @admin.action(description="Initiate payouts for selected events")
    def initiate_payouts(self, request, queryset):
        caller = CallerIdentity.from_user(request.user)
        for event in queryset:
            try:
                result = PayoutDispatcher.dispatch(event.id, caller)
            except BaseApplicationError as e:
                self.message_user(
                    request,
                    f"{event.title}: {e.message} ({e.error_code})",
                    level=messages.ERROR,
                )
                continue
            self.message_user(
                request,
                f"{event.title}: {result.payouts_issued} payout(s) issued, "
                f"status {result.payout_status}",
                level=messages.SUCCESS,
            )


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """
    Admin configuration for Booking.

    Payout fields are written by the dispatcher only.
    """

    list_display = ["id", "event", "host", "total_price", "paid_out", "paid_out_at"]
    list_filter = ["paid_out"]
    search_fields = ["id", "event__title", "host__email", "renter__email", "stripe_transfer_id"]
    readonly_fields = ["id", "paid_out", "paid_out_at", "stripe_transfer_id", "created_at", "updated_at"]
    raw_id_fields = ["event", "host", "renter"]
    ordering = ["-created_at"]
