import logging
from contextlib import asynccontextmanager

import stripe
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from parcel_payments.config import Settings
from parcel_payments.database import Database, StartupError
from parcel_payments.dependencies import get_reconciler
from parcel_payments.exceptions import register_exception_handlers
from parcel_payments.routes import router
from parcel_payments.stripe_service import StripeCheckoutGateway

logger = logging.getLogger(__name__)

RECONCILE_EVENTS = {
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
}


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Settings = None, database: Database = None, gateway=None) -> FastAPI:
    """Build the application.

    Anything not passed in is built from the environment when the app starts,
    so importing this module never touches the network or the database.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = app.state.settings or Settings.from_env()
        configure_logging(app.state.settings.log_level)
        app.state.database = app.state.database or Database(app.state.settings.database_url)
        app.state.gateway = app.state.gateway or StripeCheckoutGateway(
            api_key=app.state.settings.stripe_secret_key,
            site_domain=app.state.settings.site_domain,
            currency=app.state.settings.currency,
        )

        try:
            app.state.database.connect()
        except StartupError:
            logger.critical("Startup aborted: database unavailable")
            raise
        yield
        app.state.database.close()

    app = FastAPI(title="Parcel Payments Service", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.gateway = gateway

    register_exception_handlers(app)
    app.include_router(router)

    @app.get("/")
    def index():
        return "Parcel payments server is running"

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/webhook")
    async def stripe_webhook(
        request: Request,
        stripe_signature: str = Header(None),
        reconciler=Depends(get_reconciler),
    ):
        payload = await request.body()

        try:
            event = stripe.Webhook.construct_event(
                payload,
                stripe_signature,
                request.app.state.settings.stripe_webhook_secret,
            )
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid payload")
        except stripe.SignatureVerificationError:
            raise HTTPException(status_code=400, detail="Invalid signature")

        if event["type"] in RECONCILE_EVENTS:
            session_id = event["data"]["object"]["id"]
            result = await run_in_threadpool(reconciler.reconcile, session_id)
            logger.info("Webhook %s for session %s handled, success=%s", event["type"], session_id, result.success)

        return {"ok": True}

    return app


app = create_app()
