"""
Events application.

Owns the marketplace's Event and Booking records. Booking creation and
renter charging happen elsewhere; this app only exposes the data the
payout engine settles and the admin action that triggers settlement.
"""
