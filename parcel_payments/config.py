import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"


@dataclass(frozen=True)
class Settings:
    stripe_secret_key: str
    database_url: str = "sqlite:///./parcel_payments.db"
    stripe_webhook_secret: Optional[str] = None
    site_domain: str = "http://localhost:5173"
    jwt_secret: Optional[str] = None
    currency: str = "usd"
    tracking_prefix: str = "PRCL"
    log_level: str = "INFO"
    port: int = 5000

    @classmethod
    def from_env(cls) -> "Settings":
        # Force-load .env (reload-safe)
        load_dotenv(dotenv_path=ENV_PATH)

        stripe_secret_key = os.getenv("STRIPE_SECRET_KEY")
        if not stripe_secret_key:
            raise RuntimeError("STRIPE_SECRET_KEY is not set. Check your .env file.")

        return cls(
            stripe_secret_key=stripe_secret_key,
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET"),
            site_domain=os.getenv("SITE_DOMAIN", cls.site_domain).rstrip("/"),
            jwt_secret=os.getenv("JWT_SECRET"),
            currency=os.getenv("CURRENCY", cls.currency).lower(),
            tracking_prefix=os.getenv("TRACKING_PREFIX", cls.tracking_prefix),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            port=int(os.getenv("PORT", cls.port)),
        )
