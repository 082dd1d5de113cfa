"""Persistence for users, parcels and the payment ledger.

Every method opens its own session from the injected ``Database`` so stores
can be shared across request threads.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select

from parcel_payments.database import Database
from parcel_payments.exceptions import ParcelNotFound
from parcel_payments.models import Parcel, Payment, User

logger = logging.getLogger(__name__)


class UserStore:
    def __init__(self, database: Database):
        self.database = database

    def register(self, email: str, **profile) -> Optional[User]:
        """Create a user with role ``user``; returns None if the email is taken."""
        with self.database.session() as db:
            if db.scalar(select(User).where(User.email == email)) is not None:
                return None

            user = User(email=email, role="user", profile=profile)
            db.add(user)
            db.commit()
            db.refresh(user)
            logger.info("Registered user %s", email)
            return user


class ParcelStore:
    def __init__(self, database: Database):
        self.database = database

    def create(self, sender_email: str, parcel_name: str, cost, **details) -> Parcel:
        with self.database.session() as db:
            parcel = Parcel(
                sender_email=sender_email,
                parcel_name=parcel_name,
                cost=Decimal(str(cost)),
                details=details,
            )
            db.add(parcel)
            db.commit()
            db.refresh(parcel)
            return parcel

    def list(self, sender_email: Optional[str] = None) -> List[Parcel]:
        stmt = select(Parcel).order_by(Parcel.created_at.desc())
        if sender_email:
            stmt = stmt.where(Parcel.sender_email == sender_email)
        with self.database.session() as db:
            return list(db.scalars(stmt))

    def get(self, parcel_id: str) -> Parcel:
        with self.database.session() as db:
            parcel = db.get(Parcel, parcel_id)
            if parcel is None:
                raise ParcelNotFound(parcel_id)
            return parcel

    def delete(self, parcel_id: str) -> int:
        with self.database.session() as db:
            parcel = db.get(Parcel, parcel_id)
            if parcel is None:
                return 0
            db.delete(parcel)
            db.commit()
            return 1


class PaymentLedger:
    """Read side of the payments table."""

    def __init__(self, database: Database):
        self.database = database

    def find_by_transaction(self, transaction_id: str) -> Optional[Payment]:
        with self.database.session() as db:
            return db.scalar(select(Payment).where(Payment.transaction_id == transaction_id))

    def list_payments(self, customer_email: Optional[str] = None) -> List[Payment]:
        stmt = select(Payment).order_by(Payment.paid_at.desc(), Payment.id.desc())
        if customer_email:
            stmt = stmt.where(Payment.customer_email == customer_email)
        with self.database.session() as db:
            return list(db.scalars(stmt))

    def tracking_id_in_use(self, tracking_id: str) -> bool:
        with self.database.session() as db:
            payment = db.scalar(select(Payment.id).where(Payment.tracking_id == tracking_id))
            if payment is not None:
                return True
            parcel = db.scalar(select(Parcel.id).where(Parcel.tracking_id == tracking_id))
            return parcel is not None
