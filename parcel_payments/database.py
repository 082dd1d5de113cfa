import logging

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


class StartupError(RuntimeError):
    """Raised when the storage backend cannot be reached at startup."""


class Database:
    """Owns the engine and session factory for one running application.

    Built once by the application factory and handed to every store, so
    there is no module-level connection. ``connect`` must be called before
    the first request and ``close`` on shutdown.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30}
            if url.startswith("sqlite") else {},
        )
        self.session = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def connect(self):
        # import models so their tables register on Base
        from parcel_payments import models  # noqa: F401

        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as exc:
            raise StartupError(f"Could not connect to database at {self.engine.url!r}: {exc}") from exc

        logger.info("Connected to database %s", self.engine.url)

    def close(self):
        self.engine.dispose()
        logger.info("Database connection closed")
