"""Dependency providers for request handlers."""

from fastapi import Request

from parcel_payments.reconciler import PaymentReconciler
from parcel_payments.stores import ParcelStore, PaymentLedger, UserStore


def get_gateway(request: Request):
    """Read the checkout gateway from app state."""
    return request.app.state.gateway


def get_users(request: Request) -> UserStore:
    return UserStore(request.app.state.database)


def get_parcels(request: Request) -> ParcelStore:
    return ParcelStore(request.app.state.database)


def get_ledger(request: Request) -> PaymentLedger:
    return PaymentLedger(request.app.state.database)


def get_reconciler(request: Request) -> PaymentReconciler:
    """Build a reconciler bound to this app's database and gateway."""
    state = request.app.state
    return PaymentReconciler(
        database=state.database,
        gateway=state.gateway,
        ledger=PaymentLedger(state.database),
        tracking_prefix=state.settings.tracking_prefix,
    )
