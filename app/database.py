"""
Staff Ledger - Database Configuration

This module handles database connection setup using SQLAlchemy 2.0 async,
and the atomic unit of work used by every balance mutation.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from sqlalchemy import MetaData, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import (
    DBAPIError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.utils.error_handling import DatabaseException, StoreUnavailableException


logger = logging.getLogger(__name__)


# Naming convention for constraints (helps with migrations)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    metadata = MetaData(naming_convention=convention)


def _install_sqlite_write_locking(engine: AsyncEngine) -> None:
    """
    SQLite has no row-level locks, so FOR UPDATE is dropped when compiled.
    Starting every transaction with BEGIN IMMEDIATE takes the database write
    lock up front, which serializes conflicting atomic units instead.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine with a bounded pool.

    Pool checkout waits at most ``db_pool_timeout`` seconds and the driver
    connect at most ``db_connect_timeout`` seconds.
    """
    url = make_url(database_url)
    is_sqlite = url.get_backend_name() == "sqlite"

    connect_args: Dict[str, Any] = {"timeout": settings.db_connect_timeout}
    kwargs: Dict[str, Any] = {
        "echo": echo,
        "pool_pre_ping": True,  # Verify connections before use
        "connect_args": connect_args,
    }
    if not (is_sqlite and url.database in (None, "", ":memory:")):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
        )

    engine = create_async_engine(database_url, **kwargs)
    if is_sqlite:
        _install_sqlite_write_locking(engine)
    return engine


# Create async engine
engine = build_engine(settings.database_url_async, echo=settings.db_echo)

# Create async session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_async_session() -> AsyncIterator[AsyncSession]:
    """
    Dependency for getting async database session.
    Use with FastAPI's Depends().
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


def translate_store_error(exc: SQLAlchemyError) -> DatabaseException:
    """Map a SQLAlchemy failure onto the application's store exceptions."""
    if isinstance(exc, (PoolTimeoutError, OperationalError, InterfaceError)):
        return StoreUnavailableException(original_error=exc)
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return StoreUnavailableException(original_error=exc)
    return DatabaseException(
        message="The operation could not be completed and was rolled back",
        original_error=exc,
    )


@asynccontextmanager
async def atomic_unit(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run a block of reads and writes as one database transaction.

    Commits when the block completes and rolls back on any exception, so no
    partial effect of the block is ever visible. Store errors are re-raised
    as StoreUnavailableException / DatabaseException; application errors
    propagate unchanged.
    """
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error(f"Atomic unit rolled back after store error: {exc}", exc_info=True)
        raise translate_store_error(exc) from exc
    except BaseException:
        await session.rollback()
        raise


async def init_db():
    """
    Initialize database - create all tables.
    Use this for development/testing only.
    For production, use Alembic migrations.
    """
    import app.models  # noqa: F401  (registers mappers on Base.metadata)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_database() -> Dict[str, Any]:
    """Ping the database and report pool statistics."""
    pool = engine.pool
    pool_stats = {
        "size": getattr(pool, "size", lambda: None)(),
        "checked_out": getattr(pool, "checkedout", lambda: None)(),
        "overflow": getattr(pool, "overflow", lambda: None)(),
    }
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error(f"Database health check failed: {exc}")
        return {"database": "disconnected", "pool": pool_stats}
    return {"database": "connected", "pool": pool_stats}


async def close_db():
    """Close database connections."""
    await engine.dispose()
