"""Parcel booking payments: Stripe checkout, reconciliation and payment ledger."""

__version__ = "0.1.0"
