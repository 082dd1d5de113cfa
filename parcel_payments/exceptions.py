"""Error taxonomy for the payment flow and its FastAPI handlers."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ParcelPaymentsError(Exception):
    """Base application exception."""

    code = "parcel_payments_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = ""):
        self.message = message or self.__class__.__doc__.strip()
        super().__init__(self.message)


class PaymentProviderError(ParcelPaymentsError):
    """Payment provider request failed."""

    code = "payment_provider_error"
    status_code = status.HTTP_502_BAD_GATEWAY


class SessionNotFound(ParcelPaymentsError):
    """Checkout session not found."""

    code = "session_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Checkout session {session_id} not found")


class ReconciliationError(ParcelPaymentsError):
    """Payment could not be recorded."""

    code = "reconciliation_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class Unauthorized(ParcelPaymentsError):
    """Invalid or missing token"""

    code = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class ParcelNotFound(ParcelPaymentsError):
    """Parcel not found."""

    code = "parcel_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, parcel_id: str):
        self.parcel_id = parcel_id
        super().__init__(f"Parcel {parcel_id} not found")


def register_exception_handlers(app: FastAPI) -> None:
    """Render every ``ParcelPaymentsError`` as ``{"detail", "code"}``.

    The status code comes from the exception class, so subclasses need no
    handler of their own. Server-side failures are logged with traceback.
    """

    @app.exception_handler(ParcelPaymentsError)
    async def _parcel_payments_error(
        request: Request,
        exc: ParcelPaymentsError,
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "%s %s failed: %s",
                request.method,
                request.url.path,
                exc,
                exc_info=exc,
            )
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code},
            headers=headers,
        )
