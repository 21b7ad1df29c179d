"""
Database connection and session management for Wallpaper Sync.

Provides:
- A lazily created SQLite engine for the metadata store
- Session factory with context manager support
- Database initialization and verification
- Configuration loading from environment variables
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from dotenv import load_dotenv
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "wallpapers.db"

# ────────────────────────────────────────────────────────────────────────────────
# Configuration
# ────────────────────────────────────────────────────────────────────────────────

def get_db_path() -> Path:
    """Return the path of the SQLite file holding the metadata store."""
    return Path(os.getenv("WALLPAPER_DB_PATH", DEFAULT_DB_PATH))


def get_database_url() -> str:
    """
    Build the SQLite connection URL from environment variables.

    Returns:
        SQLite connection string in SQLAlchemy format.
    """
    return f"sqlite:///{get_db_path()}"


# ────────────────────────────────────────────────────────────────────────────────
# Engine and Session Management
# ────────────────────────────────────────────────────────────────────────────────

# Global engine instance (lazy initialization)
_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def get_engine() -> Engine:
    """
    Get or create the SQLAlchemy engine.

    Returns:
        Configured SQLAlchemy Engine instance.
    """
    global _engine

    if _engine is None:
        database_url = get_database_url()

        logger.info(f"Opening metadata store at {get_db_path()}")
        _engine = create_engine(database_url, echo=False)

    return _engine


def get_session_factory() -> sessionmaker:
    """
    Get or create the session factory.

    Returns:
        Configured sessionmaker instance.
    """
    global _session_factory

    if _session_factory is None:
        engine = get_engine()
        _session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    return _session_factory


def get_session() -> Session:
    """
    Create a new database session.

    Note:
        Caller is responsible for closing the session.
        Prefer using session_scope() context manager instead.
    """
    factory = get_session_factory()
    return factory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Context manager for database sessions with automatic commit/rollback.

    Every metadata write goes through one of these scopes, so each upsert
    is committed as a single transaction.

    Yields:
        SQLAlchemy Session instance.

    Example:
        with session_scope() as session:
            image = session.get(Image, 1)
            image.words = ["sunset"]
        # Automatically commits on success, rolls back on exception
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Session rollback due to: {e}")
        raise
    finally:
        session.close()


# ────────────────────────────────────────────────────────────────────────────────
# Database Initialization
# ────────────────────────────────────────────────────────────────────────────────

def init_db() -> bool:
    """
    Initialize database by creating all tables.

    Returns:
        True if successful, False otherwise.
    """
    try:
        engine = get_engine()
        logger.info("Creating database tables...")
        Base.metadata.create_all(engine)
        logger.info("Database tables created successfully!")
        return True
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        return False


def verify_connection() -> bool:
    """
    Verify database connection is working.

    Returns:
        True if connection successful, False otherwise.
    """
    try:
        engine = get_engine()
        with engine.connect() as conn:
            result = conn.execute(text("SELECT 1"))
            result.fetchone()
        logger.info("Database connection verified successfully!")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


def get_db_info() -> dict:
    """Get database connection information (for debugging)."""
    path = get_db_path()
    return {
        "path": str(path.resolve()),
        "exists": path.exists(),
        "size_bytes": path.stat().st_size if path.exists() else 0,
    }


# ────────────────────────────────────────────────────────────────────────────────
# Cleanup
# ────────────────────────────────────────────────────────────────────────────────

def dispose_engine() -> None:
    """
    Dispose of the engine and close all connections.

    Call this when shutting down, or before pointing WALLPAPER_DB_PATH at
    a different file.
    """
    global _engine, _session_factory

    if _engine is not None:
        logger.info("Disposing database engine...")
        _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database engine disposed.")
