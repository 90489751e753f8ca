"""Async engine and per-request sessions for order and payment storage."""

import os
import logging
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.ext.asyncio import (
    create_async_engine as sa_create_async_engine,
    AsyncSession,
    async_sessionmaker,
    AsyncEngine,
)
from sqlalchemy.pool import StaticPool

from . import models

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./rozetkapay.db"

# Driver prefixes rewritten so a plain hosting-provider URL works with asyncpg
_ASYNC_DRIVERS = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
}

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_database_url() -> str:
    """DATABASE_URL with an async driver, or the local SQLite file."""
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        return DEFAULT_DATABASE_URL
    for prefix, replacement in _ASYNC_DRIVERS.items():
        if db_url.startswith(prefix):
            return replacement + db_url[len(prefix):]
    return db_url


def _engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        # one shared connection, otherwise each checkout of an in-memory
        # database would see an empty schema
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {
        "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
        "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", "10")),
        "pool_pre_ping": True,
    }


def create_async_engine(
    database_url: Optional[str] = None,
    echo: bool = False,
) -> AsyncEngine:
    """
    Create an async SQLAlchemy engine for ``database_url``.

    Args:
        database_url: Connection URL. Defaults to get_database_url().
        echo: Log every SQL statement.
    """
    url = database_url or get_database_url()
    return sa_create_async_engine(url, echo=echo, **_engine_options(url))


def get_async_session_factory(
    engine: Optional[AsyncEngine] = None,
) -> async_sessionmaker[AsyncSession]:
    """
    Session factory for ``engine``; without one, the factory set up by init_db().

    A factory is built fresh for every explicit engine, so tests using
    separate engines never share sessions.

    Raises:
        RuntimeError: If no engine is given and init_db() has not run.
    """
    if engine is not None:
        return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory


async def init_db(
    database_url: Optional[str] = None,
    echo: bool = False,
    create_tables: bool = True,
) -> None:
    """Open the application engine; create missing tables unless told not to.

    Production deployments run the alembic migrations instead and pass
    ``create_tables=False``.
    """
    global _engine, _session_factory

    _engine = create_async_engine(database_url, echo=echo)
    _session_factory = get_async_session_factory(_engine)
    logger.info(f"Database engine ready ({_engine.url.get_backend_name()})")

    if create_tables:
        async with _engine.begin() as conn:
            await conn.run_sync(models.Base.metadata.create_all)
        logger.info("Order and payment tables are in place")


async def close_db() -> None:
    global _engine, _session_factory

    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Database engine disposed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, committed when the handler
    returns and rolled back when it raises."""
    async with get_async_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
