"""
SQLAlchemy engine and session management.
"""

from typing import Generator, Optional

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker

from app.config import get_settings
from app.core.logging import get_logger
from app.db.base import Base

logger = get_logger(__name__)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def create_db_engine(url: str, echo: bool = False, **kwargs) -> Engine:
    """Create an engine, allowing SQLite connections to cross threads."""
    is_sqlite = url.startswith("sqlite")
    engine = create_engine(
        url,
        echo=echo,
        connect_args={"check_same_thread": False} if is_sqlite else {},
        pool_pre_ping=not is_sqlite,
        **kwargs,
    )

    if is_sqlite:
        # SQLite ignores foreign keys unless asked per connection
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def get_engine() -> Engine:
    """Get the global engine, creating it on first use."""
    global _engine, _session_factory
    if _engine is None:
        settings = get_settings()
        _engine = create_db_engine(settings.DATABASE_URL, settings.DATABASE_ECHO)
        _session_factory = sessionmaker(bind=_engine, autoflush=False, expire_on_commit=False)
    return _engine


def get_session_factory() -> sessionmaker:
    """Get the session factory bound to the global engine."""
    get_engine()
    return _session_factory


def init_db() -> None:
    """Create database tables."""
    from app.db import models  # noqa: F401 - ensure models are registered

    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized", extra={"dialect": engine.dialect.name})


def close_db() -> None:
    """Dispose of the global engine and its connection pool."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database connections closed")


def check_db() -> bool:
    """Return True when the database answers a trivial query."""
    try:
        with get_session_factory()() as db:
            db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return False


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
