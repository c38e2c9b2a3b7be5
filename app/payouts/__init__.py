"""
Payouts application: event settlement engine.

Components:
    fees: Platform fee / host net split
    authorization: Operator guard for settlement triggers
    services.PayoutDispatcher: Pays every unpaid booking of an event
    services.EventPayoutReconciler: Derives the event's payout status
    services.HostAccountService: Host onboarding and dashboard links
    adapters.StripeAdapter: The only gateway to Stripe
    locks.DistributedLock: Per-host mutual exclusion
"""
