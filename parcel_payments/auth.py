from typing import Optional

from fastapi import Header, Request
from jose import JWTError, jwt

from parcel_payments.exceptions import Unauthorized


def verify_token(request: Request, authorization: Optional[str] = Header(None)) -> dict:
    secret = request.app.state.settings.jwt_secret
    if not authorization or not secret:
        raise Unauthorized()

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise Unauthorized()
    if scheme.lower() != "bearer":
        raise Unauthorized()

    try:
        return jwt.decode(token, secret, algorithms=["HS256"])
    except JWTError:
        raise Unauthorized()
