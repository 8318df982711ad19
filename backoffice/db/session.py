"""Database engine, session factory, and dependency injection.

The engine is built from ``settings.database_url``, which selects the
Postgres or MySQL driver from ``DB_TYPE`` when the process starts.
"""

from contextlib import contextmanager
from functools import lru_cache
from typing import Generator, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from backoffice.core.config import settings


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Create the process-wide engine on first use."""
    return create_engine(
        settings.database_url,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=settings.DEBUG,
    )


# Session factory, bound per call so tests can swap the engine
SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def new_session() -> Session:
    return SessionLocal(bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that provides a DB session per request."""
    db = new_session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit on success, roll back and re-raise on failure."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
