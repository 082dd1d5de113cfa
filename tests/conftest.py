"""Shared fixtures: a file-backed SQLite database and an in-memory checkout gateway."""

import dataclasses
import threading

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from parcel_payments.config import Settings
from parcel_payments.database import Base, Database
from parcel_payments.exceptions import SessionNotFound
from parcel_payments.main import create_app
from parcel_payments.reconciler import PaymentReconciler
from parcel_payments.stores import ParcelStore, PaymentLedger
from parcel_payments.stripe_service import CheckoutSession, to_minor_units

JWT_SECRET = "test-jwt-secret"


class FakeGateway:
    """Stands in for Stripe: sessions live in a dict and start unpaid."""

    def __init__(self):
        self.sessions = {}
        self.retrieve_calls = 0
        self.barrier = None
        self._counter = 0
        self._lock = threading.Lock()

    def create_session(self, parcel_id, cost, parcel_name, sender_email):
        with self._lock:
            self._counter += 1
            session_id = f"cs_test_{self._counter}"
        session = CheckoutSession(
            id=session_id,
            payment_status="unpaid",
            transaction_id=None,
            amount_total=to_minor_units(cost),
            currency="usd",
            customer_email=sender_email,
            metadata={"parcelId": parcel_id},
            url=f"https://checkout.stripe.test/c/pay/{session_id}",
        )
        self.sessions[session_id] = session
        return session

    def mark_paid(self, session_id, transaction_id):
        self.sessions[session_id] = dataclasses.replace(
            self.sessions[session_id],
            payment_status="paid",
            transaction_id=transaction_id,
        )

    def retrieve_session(self, session_id):
        with self._lock:
            self.retrieve_calls += 1
        if self.barrier is not None:
            self.barrier.wait(timeout=10)
        try:
            return self.sessions[session_id]
        except KeyError:
            raise SessionNotFound(session_id)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        stripe_secret_key="sk_test_123",
        database_url=f"sqlite:///{tmp_path / 'parcel_payments_test.db'}",
        stripe_webhook_secret="whsec_test",
        site_domain="http://localhost:5173",
        jwt_secret=JWT_SECRET,
    )


@pytest.fixture
def database(settings):
    db = Database(settings.database_url)
    db.connect()
    yield db
    Base.metadata.drop_all(bind=db.engine)
    db.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def parcels(database):
    return ParcelStore(database)


@pytest.fixture
def ledger(database):
    return PaymentLedger(database)


@pytest.fixture
def reconciler(database, gateway, ledger):
    return PaymentReconciler(database=database, gateway=gateway, ledger=ledger)


@pytest.fixture
def client(settings, database, gateway):
    app = create_app(settings=settings, database=database, gateway=gateway)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers():
    token = jwt.encode({"sub": "a@x.com"}, JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def paid_session(parcels, gateway):
    """A parcel costing 10.00 whose checkout session was paid with tx_1."""
    parcel = parcels.create(sender_email="a@x.com", parcel_name="Books", cost="10.00")
    session = gateway.create_session(parcel.id, "10.00", "Books", "a@x.com")
    gateway.mark_paid(session.id, "tx_1")
    return parcel, session
