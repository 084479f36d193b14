# db.py
import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from config import get_settings

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


def build_engine(database_url: str) -> Engine:
    """
    Create the engine for the given URL.

    SQLite URLs get a single shared connection so an in-memory database
    survives across sessions and worker threads.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, echo=False, pool_pre_ping=True)


def get_engine() -> Engine:
    """Get or create the process-wide engine from DATABASE_URL."""
    global _engine

    if _engine is None:
        database_url = get_settings().database_url
        if not database_url:
            raise RuntimeError("DATABASE_URL is not set in the environment (.env)")
        _engine = build_engine(database_url)
        logger.info(f"Database engine created for {_engine.url.drivername}")

    return _engine


def reset_engine():
    """Dispose of the shared engine (useful for testing)."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def init_db(engine: Optional[Engine] = None) -> None:
    """
    Called on app startup to create tables if they don't exist.
    """
    # Import models here so SQLModel knows about them
    import models  # noqa: F401

    SQLModel.metadata.create_all(engine or get_engine())
