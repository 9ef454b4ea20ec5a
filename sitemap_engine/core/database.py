"""
Database configuration and session management
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from typing import Any, Dict
import logging

from sitemap_engine.core.config import settings, DATABASE_URL
from sitemap_engine.models.base import Base

logger = logging.getLogger(__name__)


def engine_options(url: str) -> Dict[str, Any]:
    """
    Engine keyword arguments suited to the database backend
    """
    options: Dict[str, Any] = {
        "echo": settings.DEBUG,  # Log SQL queries in debug mode
    }

    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database
            options["poolclass"] = StaticPool
        return options

    options.update(
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=10,
        max_overflow=20,
        echo_pool=settings.DEBUG,
    )
    return options


def make_engine(url: str = DATABASE_URL) -> Engine:
    """
    Create a SQLAlchemy engine for the given URL
    """
    engine = create_engine(url, **engine_options(url))

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """Enforce foreign keys so association rows cascade on sqlite"""
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


# Create SQLAlchemy engine with optimized settings
engine = make_engine(DATABASE_URL)

# Create SessionLocal class
SessionLocal = sessionmaker(
    autoflush=False,
    bind=engine,
    expire_on_commit=False  # Keep objects accessible after commit
)


def create_tables(bind: Engine = None):
    """
    Create all database tables
    Note: In production, use Alembic migrations instead
    """
    try:
        Base.metadata.create_all(bind=bind or engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")
        raise
