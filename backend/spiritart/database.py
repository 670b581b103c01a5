"""
SpiritArt Backend: Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       per-request session dependency.
How:   The engine is created on first use from `settings.database_url`, so
       importing the application never needs a reachable database. The
       session dependency commits when the handler succeeds and rolls back
       when it raises.

Connection pooling (PostgreSQL):
    pool_size / max_overflow come from settings; pool_pre_ping validates
    connections before use and pool_recycle=3600 retires them hourly.
    SQLite (tests, local runs) uses SQLAlchemy's default pool.
"""

from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from spiritart.config import settings

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic."""

    pass


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if url.startswith("sqlite"):
        return options
    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
    )
    return options


def get_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it on first call."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            settings.database_url, **_engine_options(settings.database_url)
        )
    return _engine


def get_session_factory() -> async_sessionmaker:
    global _session_factory
    if _session_factory is None:
        # expire_on_commit=False keeps ORM attributes readable after commit
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Flow:
        1. Open a session from the factory
        2. Yield it to the handler (services flush as they go)
        3. Commit on success, roll back on any exception, always close

    Usage:
        @router.get("/api/user/{user_id}")
        async def get_user(store: LedgerStore = Depends(get_ledger_store)):
            ...
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_all() -> None:
    """Create missing tables directly from the models (local development)."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close all pooled connections; called from the application lifespan."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
