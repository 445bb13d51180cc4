"""
Database connection and session management.

Uses SQLite with aiosqlite for async support.
"""

import os
import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from security_service.db.models import Base
from security_service.core.config import settings

logger = logging.getLogger(__name__)

# Database path
DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "data")
SQLITE_PATH = settings.sqlite_path or os.path.join(DATA_DIR, "security_service.db")
DATABASE_URL = settings.database_url or f"sqlite+aiosqlite:///{SQLITE_PATH}"


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.rstrip("/").endswith(":"))


def create_engine(url: str = DATABASE_URL) -> AsyncEngine:
    """
    Create an async engine. SQLite needs check_same_thread=False for async.

    Only in-memory SQLite shares a single connection (StaticPool); file
    databases keep the default pool so each session gets its own connection.
    """
    if _is_memory_sqlite(url):
        return create_async_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite"):
        return create_async_engine(
            url,
            echo=False,  # Set to True for SQL debugging
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(url, echo=False, pool_pre_ping=True)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_engine()

# Session factory
AsyncSessionLocal = create_session_factory(engine)


async def init_db() -> None:
    """
    Initialize the database - create all tables.
    Called on application startup.
    """
    if DATABASE_URL == f"sqlite+aiosqlite:///{SQLITE_PATH}":
        os.makedirs(os.path.dirname(SQLITE_PATH) or ".", exist_ok=True)

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Database initialized at: {DATABASE_URL}")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


async def close_db() -> None:
    """
    Close database connections.
    Called on application shutdown.
    """
    await engine.dispose()
    logger.info("Database connections closed")

