from typing import Iterator, Optional

import structlog
from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import Settings
from .errors import NotReady

logger = structlog.get_logger(__name__)

# Base class for declarative ORM models.
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless asked per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """The single store-connection handle owned by the web app.

    Nothing connects until initialize() is called; `is_initialized` backs
    the readiness probe.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None
        self.is_initialized = False

    def initialize(self) -> None:
        """Create the engine and verify the server answers."""
        url = self.settings.sqlalchemy_url()
        connect_args = self.settings.connect_args()
        if url.get_backend_name() == "sqlite":
            connect_args = {**connect_args, "check_same_thread": False}

        engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        if url.get_backend_name() == "sqlite":
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)

        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))

        self.engine = engine
        # Create a configured "Session" class for database interactions.
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        self.is_initialized = True
        logger.info("database_connected", backend=url.get_backend_name(), database=url.database)

    def create_schema(self) -> None:
        """Create missing tables from the ORM models."""
        from . import models  # noqa: F401  registers the tables on Base.metadata

        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        if not self.is_initialized:
            raise NotReady()
        return self.SessionLocal()

    def dispose(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.is_initialized = False
        logger.info("database_closed")


def ensure_database_exists(settings: Settings) -> bool:
    """Create the target PostgreSQL database when it is missing.

    Returns True if the database was created.
    """
    target = settings.sqlalchemy_url()
    if target.get_backend_name() != "postgresql":
        logger.info("create_db_skipped", backend=target.get_backend_name())
        return False

    admin_engine = create_engine(
        settings.sqlalchemy_url(database="postgres"),
        connect_args=settings.connect_args(),
        isolation_level="AUTOCOMMIT",
    )
    try:
        with admin_engine.connect() as connection:
            exists = connection.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": target.database},
            ).first()
            if exists:
                logger.info("database_exists", database=target.database)
                return False
            quoted = admin_engine.dialect.identifier_preparer.quote(target.database)
            connection.execute(text(f"CREATE DATABASE {quoted}"))
            logger.info("database_created", database=target.database)
            return True
    finally:
        admin_engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency to get a DB session for a single request."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        # Ensure the session is always closed after the request is finished.
        db.close()
