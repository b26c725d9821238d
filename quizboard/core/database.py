"""
Database configuration and session management
Handles engine creation, connection pooling and table setup
"""

import logging
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from quizboard.core.config import settings

logger = logging.getLogger(__name__)

# Create Base class for models
Base = declarative_base()


def create_db_engine(url: Optional[str] = None) -> Engine:
    """
    Create an engine for the configured database

    SQLite gets a connection per thread and a busy timeout; server databases
    get a bounded connection pool.
    """
    url = url or settings.get_database_url()

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False, "timeout": 30}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # Single shared connection so every session sees the same in-memory database
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=settings.DEBUG, **kwargs)

        @event.listens_for(engine, "connect")
        def _enable_sqlite_wal(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

        return engine

    return create_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=settings.DB_POOL_PRE_PING,
        echo=settings.DEBUG,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to ``engine``"""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Initialize database, create tables if they don't exist"""
    # Import all models here to ensure they're registered
    from quizboard import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    # Test connection
    with engine.connect() as conn:
        if conn.execute(text("SELECT 1")).scalar() == 1:
            logger.info("Database connection successful")

