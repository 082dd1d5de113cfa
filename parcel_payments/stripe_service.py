import logging
from dataclasses import dataclass, field
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Optional

import stripe

from parcel_payments.exceptions import PaymentProviderError, SessionNotFound

logger = logging.getLogger(__name__)

SUCCESS_PATH = "/dashboard/payment-success?session_id={CHECKOUT_SESSION_ID}"
CANCEL_PATH = "/dashboard/payment-cancelled"


def to_minor_units(cost) -> int:
    """Convert a currency amount to integer cents, truncating sub-cent digits."""
    try:
        amount = Decimal(str(cost)) * 100
    except InvalidOperation:
        raise PaymentProviderError(f"Invalid amount: {cost!r}")
    if not amount.is_finite():
        raise PaymentProviderError(f"Invalid amount: {cost!r}")
    return int(amount.to_integral_value(rounding=ROUND_DOWN))


def from_minor_units(amount: int) -> Decimal:
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    payment_status: str
    transaction_id: Optional[str]
    amount_total: int
    currency: str
    customer_email: Optional[str]
    metadata: dict = field(default_factory=dict)
    url: Optional[str] = None

    @property
    def parcel_id(self) -> Optional[str]:
        return self.metadata.get("parcelId")

    @classmethod
    def from_stripe(cls, session) -> "CheckoutSession":
        intent = session.payment_intent
        # payment_intent is an id unless the session was retrieved with expand
        if intent is not None and not isinstance(intent, str):
            intent = intent.id
        email = session.customer_email
        if not email and getattr(session, "customer_details", None):
            email = session.customer_details.email
        return cls(
            id=session.id,
            payment_status=session.payment_status,
            transaction_id=intent,
            amount_total=session.amount_total or 0,
            currency=session.currency,
            customer_email=email,
            metadata=dict(session.metadata or {}),
            url=session.url,
        )


class StripeCheckoutGateway:
    """Creates and reads Stripe Checkout Sessions."""

    def __init__(self, api_key: str, site_domain: str, currency: str = "usd"):
        self.api_key = api_key
        self.site_domain = site_domain.rstrip("/")
        self.currency = currency

    def create_session(self, parcel_id: str, cost, parcel_name: str, sender_email: str) -> CheckoutSession:
        amount = to_minor_units(cost)
        if amount < 1:
            raise PaymentProviderError(f"Invalid amount: {cost!r}")

        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                line_items=[
                    {
                        "price_data": {
                            "currency": self.currency,
                            "unit_amount": amount,
                            "product_data": {"name": f"Please pay for : {parcel_name}"},
                        },
                        "quantity": 1,
                    }
                ],
                mode="payment",
                metadata={"parcelId": parcel_id},
                customer_email=sender_email,
                success_url=self.site_domain + SUCCESS_PATH,
                cancel_url=self.site_domain + CANCEL_PATH,
            )
        except stripe.StripeError as exc:
            logger.warning("Checkout session for parcel %s rejected: %s", parcel_id, exc)
            raise PaymentProviderError(f"Could not create checkout session: {exc.user_message or exc}") from exc

        return CheckoutSession.from_stripe(session)

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        # stripe rejects a blank id locally, before any request is made
        if not session_id or not session_id.strip():
            raise SessionNotFound(session_id)

        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key)
        except stripe.InvalidRequestError as exc:
            if exc.code == "resource_missing":
                raise SessionNotFound(session_id) from exc
            raise PaymentProviderError(f"Could not retrieve checkout session: {exc}") from exc
        except stripe.StripeError as exc:
            raise PaymentProviderError(f"Could not retrieve checkout session: {exc}") from exc

        return CheckoutSession.from_stripe(session)


def create_checkout_session(gateway, parcel_id: str, cost, parcel_name: str, sender_email: str) -> str:
    session = gateway.create_session(parcel_id, cost, parcel_name, sender_email)
    logger.info("Checkout session %s created for parcel %s", session.id, parcel_id)
    return session.url
