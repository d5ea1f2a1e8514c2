"""Database engine, session factory and FastAPI dependency."""

import logging
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()

SessionLocal = sessionmaker(autocommit=False, autoflush=False)

_engine: Optional[Engine] = None


def create_db_engine(database_url: str) -> Engine:
    """Create an engine; SQLite URLs get thread-safe settings for FastAPI."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True, pool_size=5)


def init_db(database_url: str) -> Engine:
    """Bind the session factory and create missing tables."""
    global _engine
    # models must be imported so their tables are registered on Base
    from . import models  # noqa: F401

    _engine = create_db_engine(database_url)
    SessionLocal.configure(bind=_engine)
    Base.metadata.create_all(bind=_engine)
    logger.info("Database initialized")
    return _engine


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
