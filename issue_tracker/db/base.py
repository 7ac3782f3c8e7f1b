"""Database base configuration and the explicit database handle."""

import logging
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from issue_tracker.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(settings: Settings) -> Engine:
    """Create and configure a SQLAlchemy engine.

    Args:
        settings: Application settings containing database URL.

    Returns:
        Configured SQLAlchemy engine.
    """
    url = settings.database_url
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url:
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=5,
        max_overflow=10,
    )


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory for the given engine.

    Args:
        engine: SQLAlchemy engine to bind sessions to.

    Returns:
        Session factory.
    """
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def get_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Context manager for database sessions.

    Commits on success, rolls back on any exception.

    Example:
        >>> with get_session(factory) as session:
        ...     session.query(User).all()
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


class Database:
    """Owns the engine and session factory for one application instance.

    Constructed at startup and handed to the app; nothing in the package
    reaches for a module-level engine.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.session_factory = get_session_factory(engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(get_engine(settings))

    def create_schema(self) -> None:
        # Importing the models registers their tables on Base.metadata
        from issue_tracker.db import models  # noqa: F401

        Base.metadata.create_all(self.engine)

    def session(self):
        """Transactional session scope (see :func:`get_session`)."""
        return get_session(self.session_factory)

    def ping(self) -> None:
        with self.session_factory() as session:
            session.execute(text("SELECT 1"))

    def dispose(self) -> None:
        logger.info("Disposing database engine")
        self.engine.dispose()
