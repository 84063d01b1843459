"""
Database Session
Engine and session factory for scripts and the API dependency layer.
"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from ..api.config import get_settings
from .models import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: str, pool_size: int = 5, max_overflow: int = 10) -> Engine:
    """
    Create an engine for the given URL.

    SQLite URLs skip the pool sizing arguments, which its default pool
    does not accept.
    """
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,  # Verify connections before using
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")


def get_script_session():
    """Open a standalone session using DATABASE_URL (for CLI scripts)."""
    settings = get_settings()
    engine = build_engine(settings.database_url, settings.db_pool_size, settings.db_max_overflow)
    return engine, create_session_factory(engine)()
