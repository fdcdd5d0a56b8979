"""
Database session management for Ethos.

Provides the SQLAlchemy engine and session factory. Uses the settings
from config.py.

Usage:
    # As a context manager (scripts, outbox dispatch)
    from ethos.db import get_session

    with get_session() as session:
        match = session.get(Match, 1)
        # Commits automatically on exit, rolls back on exception

    # As a dependency (FastAPI)
    from ethos.db.session import get_db

    @app.get("/matches/{match_id}")
    def read_match(match_id: int, db: Session = Depends(get_db)):
        ...
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from ethos.config import settings


def get_engine(url: str | None = None):
    """
    Create a SQLAlchemy engine.

    Pool sizing only applies to server databases; SQLite gets foreign key
    enforcement switched on for every connection instead.
    """
    url = url or settings.database_url
    is_sqlite = url.startswith("sqlite")

    kwargs = {
        "pool_pre_ping": True,
        "echo": settings.log_level == "DEBUG",  # Log SQL only in debug mode
    }
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_size"] = settings.db_pool_size
        kwargs["max_overflow"] = settings.db_max_overflow

    engine = create_engine(url, **kwargs)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def on_connect(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


_engine = None


def _get_engine():
    """Get or create the singleton engine instance."""
    global _engine
    if _engine is None:
        _engine = get_engine()
    return _engine


SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=_get_engine(),
)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Commits on successful exit, rolls back on exception.

    Raises:
        Any exception from the database operation (after rollback)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """
    Request-scoped session for FastAPI's Depends().

    Route handlers commit explicitly; anything left uncommitted is
    discarded when the session closes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
