"""Database connection and session management."""

from functools import lru_cache
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from pgmanager.services.config import load_config


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite uses StaticPool for simplicity in dev/test."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


@lru_cache
def get_engine() -> Engine:
    """Engine for the configured DATABASE_URL, built on first use.

    Deferred until after load_config() has read .env, so a URL set only
    there is honoured. Call get_engine.cache_clear() after changing it.
    """
    return build_engine(load_config().database_url)


# Bound per call in new_session()
SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def new_session() -> Session:
    """Open a session on the configured engine."""
    return SessionLocal(bind=get_engine())


def init_db(bind: Engine | None = None) -> None:
    """Create all tables that do not exist yet."""
    from pgmanager.models import Base

    Base.metadata.create_all(bind=bind or get_engine())


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = new_session()
    try:
        yield db
    finally:
        db.close()


__all__ = [
    "SessionLocal",
    "build_engine",
    "get_db",
    "get_engine",
    "init_db",
    "new_session",
]
