"""
Database base configuration and connection utilities.
"""
import asyncio
import logging
import os
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base
from sqlalchemy import text

from classboard.config.settings import settings

# Set up logging
logger = logging.getLogger(__name__)

# Create declarative base for models
Base = declarative_base()

# Global variables for engine and session factory
engine = None
AsyncSessionLocal = None


def _engine_options(database_url: str) -> dict:
    """Pool options per backend; SQLite runs without a connection pool."""
    url = make_url(database_url)
    options = {
        "echo": os.getenv("DATABASE_ECHO", "false").lower() == "true",
        "future": True,
    }

    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        return options

    options.update(
        pool_size=int(os.getenv("DB_POOL_SIZE", "5")),
        max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "10")),
        pool_pre_ping=True,
        pool_recycle=int(os.getenv("DB_POOL_RECYCLE", "3600")),
        pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
    )
    if url.get_backend_name() == "postgresql":
        options["connect_args"] = {
            "server_settings": {
                "application_name": "classboard",
            }
        }
    return options


def get_engine():
    """Get or create the database engine."""
    global engine
    if engine is None:
        engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))
    return engine


def get_session_factory():
    """Get or create the session factory."""
    global AsyncSessionLocal
    if AsyncSessionLocal is None:
        AsyncSessionLocal = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False
        )
    return AsyncSessionLocal


async def check_database_connection() -> bool:
    """
    Check if the database connection is healthy.

    Returns:
        bool: True if connection is healthy, False otherwise
    """
    try:
        async with get_engine().begin() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


async def wait_for_database(max_retries: int = 10, initial_delay: float = 1.0) -> bool:
    """
    Wait for database to be ready with exponential backoff retry logic.

    Args:
        max_retries: Maximum number of retry attempts
        initial_delay: Initial delay between retries in seconds

    Returns:
        bool: True if database is ready, False if max retries exceeded
    """
    delay = initial_delay

    for attempt in range(max_retries):
        if await check_database_connection():
            logger.info(f"Database connection established on attempt {attempt + 1}")
            return True

        if attempt < max_retries - 1:
            logger.info(f"Retrying database connection in {delay:.1f} seconds...")
            await asyncio.sleep(delay)
            delay = min(delay * 1.5, 30.0)

    logger.error(f"Database connection failed after {max_retries} attempts")
    return False


async def init_database():
    """
    Initialize database by creating all tables with connection retry logic.
    """
    # Register models on the metadata before create_all
    import classboard.models  # noqa: F401

    if not await wait_for_database():
        raise RuntimeError("Database connection failed during initialization")

    try:
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


async def close_database():
    """
    Close database connections gracefully.
    """
    global engine, AsyncSessionLocal

    try:
        if engine is not None:
            await engine.dispose()
            logger.info("Database connections closed successfully")
    except Exception as e:
        logger.error(f"Error closing database connections: {e}")
    finally:
        engine = None
        AsyncSessionLocal = None
