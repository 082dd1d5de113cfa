import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from parcel_payments.database import Database
from parcel_payments.exceptions import ReconciliationError
from parcel_payments.models import Parcel, Payment
from parcel_payments.schemas import ParcelUpdateResult, PaymentRecordOut, ReconciliationResult
from parcel_payments.stores import PaymentLedger
from parcel_payments.stripe_service import CheckoutSession, from_minor_units
from parcel_payments.tracking import DEFAULT_PREFIX, generate_tracking_id

logger = logging.getLogger(__name__)

MAX_TRACKING_ID_ATTEMPTS = 5


class PaymentReconciler:
    """Applies the outcome of a checkout session exactly once.

    The order of steps matters:

    1. retrieve the session from the provider (errors are terminal),
    2. return the stored result if the transaction was already recorded,
    3. stop without writing if the session is not paid,
    4. mark the parcel paid and insert the ledger row in one transaction,
       both carrying the same freshly generated tracking id.

    Two concurrent calls may both get past step 2. The UNIQUE constraint on
    ``payments.transaction_id`` rejects the second insert, which is then
    answered from the ledger like any other repeat call.
    """

    def __init__(self, database: Database, gateway, ledger: PaymentLedger, tracking_prefix: str = DEFAULT_PREFIX):
        self.database = database
        self.gateway = gateway
        self.ledger = ledger
        self.tracking_prefix = tracking_prefix

    def reconcile(self, session_id: str) -> ReconciliationResult:
        session = self.gateway.retrieve_session(session_id)
        transaction_id = self.transaction_reference(session)

        previous = self._already_processed(transaction_id)
        if previous is not None:
            logger.info("Transaction %s already reconciled, skipping", transaction_id)
            return previous

        if session.payment_status != "paid":
            logger.info("Session %s is %s, nothing to record", session.id, session.payment_status)
            return ReconciliationResult(success=False)

        tracking_id = self._new_tracking_id()
        return self._commit(session, transaction_id, tracking_id)

    @staticmethod
    def transaction_reference(session: CheckoutSession) -> str:
        # sessions settled without a payment intent (fully discounted) fall back to their own id
        return session.transaction_id or session.id

    def _already_processed(self, transaction_id: str) -> Optional[ReconciliationResult]:
        payment = self.ledger.find_by_transaction(transaction_id)
        if payment is None:
            return None
        return ReconciliationResult(
            already_processed=True,
            message="Already exists",
            tracking_id=payment.tracking_id,
            transaction_id=payment.transaction_id,
        )

    def _new_tracking_id(self) -> str:
        for _ in range(MAX_TRACKING_ID_ATTEMPTS):
            tracking_id = generate_tracking_id(self.tracking_prefix)
            if not self.ledger.tracking_id_in_use(tracking_id):
                return tracking_id
            logger.warning("Tracking id %s collided, regenerating", tracking_id)
        raise ReconciliationError("Could not allocate a unique tracking id")

    def _commit(self, session: CheckoutSession, transaction_id: str, tracking_id: str) -> ReconciliationResult:
        parcel_id = session.parcel_id
        with self.database.session() as db:
            try:
                matched = db.execute(
                    update(Parcel)
                    .where(Parcel.id == parcel_id)
                    .values(payment_status="paid", tracking_id=tracking_id)
                ).rowcount
                payment = Payment(
                    amount=from_minor_units(session.amount_total),
                    currency=session.currency,
                    customer_email=session.customer_email,
                    parcel_id=parcel_id,
                    transaction_id=transaction_id,
                    payment_status=session.payment_status,
                    paid_at=datetime.now(timezone.utc),
                    tracking_id=tracking_id,
                )
                db.add(payment)
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                previous = self._already_processed(transaction_id)
                if previous is not None:
                    logger.info("Transaction %s was recorded by a concurrent request", transaction_id)
                    return previous
                logger.exception("Failed to record transaction %s", transaction_id)
                raise ReconciliationError(f"Could not record payment {transaction_id}") from exc
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("Failed to record transaction %s", transaction_id)
                raise ReconciliationError(f"Could not record payment {transaction_id}") from exc

            db.refresh(payment)
            if not matched:
                logger.warning("Parcel %s not found while recording transaction %s", parcel_id, transaction_id)

            logger.info("Parcel %s paid, transaction %s, tracking id %s", parcel_id, transaction_id, tracking_id)
            return ReconciliationResult(
                success=True,
                tracking_id=tracking_id,
                transaction_id=transaction_id,
                parcel_update_result=ParcelUpdateResult(matched_count=matched, modified_count=matched),
                payment_record=PaymentRecordOut.model_validate(payment),
            )
