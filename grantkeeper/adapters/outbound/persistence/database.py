# grantkeeper/adapters/outbound/persistence/database.py (async version)

import logging
from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from grantkeeper.adapters.configuration.config import settings
from grantkeeper.adapters.outbound.persistence.models.base_model import Base

# Configure logger
logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine for a database URL.

    PostgreSQL gets a bounded connection pool. SQLite (used by the test suite)
    gets one connection per session so concurrent writers really contend on
    the database lock instead of sharing a connection, and has foreign keys
    switched on for every connection.
    """
    if database_url.startswith("sqlite"):
        sqlite_engine = create_async_engine(
            database_url,
            echo=echo,
            poolclass=NullPool,
            connect_args={"timeout": 30},
        )
        event.listen(sqlite_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine

    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
    )


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker:
    """Session factory shared by every repository."""
    return async_sessionmaker(
        bind=bind,
        autoflush=False,
        expire_on_commit=False,
    )


database_url = str(settings.DATABASE_URL)
logger.info(f"Configuring database: {database_url.split('@')[-1]}")

try:
    engine = build_engine(database_url)
    AsyncSessionLocal = build_sessionmaker(engine)
    logger.info("Async database connection configured successfully")

except SQLAlchemyError as e:
    logger.error(f"Error configuring database: {str(e)}")
    raise


async def create_tables(bind: Optional[AsyncEngine] = None) -> None:
    """Create every table registered on ``Base.metadata`` if missing."""
    # Registers the models on the metadata
    import grantkeeper.adapters.outbound.persistence.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def get_db_context(session_factory: Optional[async_sessionmaker] = None) -> AsyncGenerator[AsyncSession, None]:
    """
    Provides an async context for database operations,
    ensuring the session is committed or rolled back and closed at the end.

    Yields:
        AsyncSession: SQLAlchemy async session

    Example:
        ```python
        async with get_db_context() as db:
            result = await db.execute(select(GrantModel))
            grants = result.scalars().all()
        ```
    """
    session = (session_factory or AsyncSessionLocal)()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()
