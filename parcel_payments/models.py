import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, Numeric, String

from parcel_payments.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


def _new_id():
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=_new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(String, default="user")
    profile = Column(JSON, default=dict)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class Parcel(Base):
    __tablename__ = "parcels"

    id = Column(String, primary_key=True, default=_new_id)
    sender_email = Column(String, index=True)
    parcel_name = Column(String)
    cost = Column(Numeric(10, 2))
    details = Column(JSON, default=dict)            # any other booking fields
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    payment_status = Column(String, nullable=True)  # NULL | paid
    tracking_id = Column(String, nullable=True, index=True)


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(String, unique=True, index=True, nullable=False)  # Stripe PaymentIntent ID
    parcel_id = Column(String, index=True)
    amount = Column(Numeric(10, 2))
    currency = Column(String)
    customer_email = Column(String, index=True)
    payment_status = Column(String)
    paid_at = Column(DateTime(timezone=True), default=_utcnow)
    tracking_id = Column(String, unique=True, nullable=False)
