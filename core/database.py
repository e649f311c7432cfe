"""
Database Management and Configuration.

Sets up the asynchronous database engine for the VidShare API. SQLModel
describes the tables, SQLAlchemy's asyncio extension runs the queries.

Key Components:
- `engine`: async engine built from the `DATABASE_URL` environment variable.
  SQLite through `aiosqlite` for development, PostgreSQL through `asyncpg` in
  production.
- `async_session`: session factory producing SQLModel `AsyncSession` objects.
- `create_db_and_tables`: startup hook creating every table in the metadata.
- `get_session`: FastAPI dependency yielding one session per request.
- `get_database_info`: connectivity probe used by the health router.
"""

import os
import logging
from typing import AsyncIterator
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import AsyncAdaptedQueuePool

# Get database URL from environment variable
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./vidshare.db")

logger = logging.getLogger(__name__)

if DATABASE_URL.startswith("sqlite"):
    engine = create_async_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        echo=False,  # Set to True for SQL debugging
        poolclass=AsyncAdaptedQueuePool,
    )
else:
    engine = create_async_engine(
        DATABASE_URL,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Validate connections before use
        echo=False,
    )

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_db_and_tables():
    """
    Initialize the database and create all tables.
    Called during application startup.
    """
    # Register the table classes on the metadata
    import core.models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("VidShare database tables created successfully")
    except Exception as e:
        logger.error(f"Failed to create VidShare database tables: {e}")
        raise


async def get_session() -> AsyncIterator[AsyncSession]:
    """
    Get an async database session for dependency injection.
    """
    async with async_session() as session:
        yield session


def _database_type() -> str:
    return "postgresql" if "postgresql" in DATABASE_URL else "sqlite"


async def get_database_info():
    """
    Get basic database information for health checks.
    """
    try:
        async with async_session() as session:
            result = await session.exec(select(1))
            result.one()
            connection_healthy = True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        connection_healthy = False

    return {
        "database_url": DATABASE_URL.split("@")[1]
        if "@" in DATABASE_URL
        else "masked",  # Hide credentials
        "connection_healthy": connection_healthy,
        "database_type": _database_type(),
    }
