import secrets
from datetime import datetime, timezone

DEFAULT_PREFIX = "PRCL"


def generate_tracking_id(prefix: str = DEFAULT_PREFIX, now: datetime = None) -> str:
    """Return ``<prefix>-<YYYYMMDD>-<6 hex>``, e.g. ``PRCL-20260105-A1B2C3``.

    The date is taken in UTC. The suffix is three random bytes, so ids are not
    guaranteed unique; callers that persist them check for collisions.
    """
    now = now or datetime.now(timezone.utc)
    date = now.astimezone(timezone.utc).strftime("%Y%m%d")
    return f"{prefix}-{date}-{secrets.token_hex(3).upper()}"
