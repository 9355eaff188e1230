import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from hookrelay.config.settings import get_settings

logger = logging.getLogger(__name__)

# Configuration
settings = get_settings()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_async_database_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the async database engine."""
    try:
        database_url = database_url or settings.async_database_url

        base_config = {
            "echo": settings.DB_ECHO,
            "pool_pre_ping": True,
        }

        if database_url.startswith("sqlite"):
            # Local development and tests: one file, no pooling
            logger.info("Creating async database engine for SQLite (NullPool)")
            engine = create_async_engine(database_url, **base_config, poolclass=NullPool)
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
            return engine

        if settings.DEBUG:
            logger.info("Creating async database engine for DEVELOPMENT (NullPool)")
            engine_config = {
                **base_config,
                "poolclass": NullPool,
            }
        else:
            logger.info("Creating async database engine for PRODUCTION (pooled)")
            engine_config = {
                **base_config,
                "pool_size": settings.DB_POOL_SIZE,
                "max_overflow": settings.DB_MAX_OVERFLOW,
                "pool_recycle": settings.DB_POOL_RECYCLE,
                "pool_timeout": settings.DB_POOL_TIMEOUT,
            }

        return create_async_engine(database_url, **engine_config)

    except Exception as e:
        logger.error(f"Failed to create async database engine: {e}")
        raise


# Async engine shared by every request and background task
async_engine = create_async_database_engine()

# Async session maker
AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that yields an async database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error(f"Async database error: {e}")
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def get_async_db_context():
    """
    Context manager for async database work outside request dependencies
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error(f"Async database error: {e}")
            await session.rollback()
            raise
        finally:
            await session.close()


async def wait_for_database(attempts: int | None = None, delay: float | None = None) -> None:
    """
    Ping the database until it answers.

    Raises the last connection error once every attempt has failed.
    """
    attempts = attempts or settings.DB_CONNECT_RETRIES
    delay = settings.DB_CONNECT_RETRY_DELAY if delay is None else delay

    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            async with async_engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
            logger.info("Successfully connected to the database")
            return
        except Exception as e:
            last_error = e
            logger.warning(f"Failed to ping database (attempt {attempt}/{attempts}): {e}")
            if attempt < attempts:
                await asyncio.sleep(delay)

    raise RuntimeError(f"Failed to connect to database after {attempts} attempts") from last_error


async def create_tables() -> None:
    """Create missing tables (idempotent)."""
    from hookrelay.models.db import Base

    async with async_engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    logger.info("Database tables verified")


async def dispose_engine() -> None:
    """Close every pooled connection."""
    await async_engine.dispose()
