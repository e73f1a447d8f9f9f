"""Async SQLAlchemy engine, declarative base, and session factory.

Provides:
- Base: Declarative base for all Syndicate+ tables
- get_session(): AsyncSession generator used as the repository session_factory
- init_db()/close_db(): engine lifecycle hooks for the application lifespan

Every connection carries a statement timeout so no store call can block
indefinitely. Callers decide whether to retry; the core never does.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from src.app.config import get_settings

# ── Module-level engine (lazy init) ────────────────────────────────────────

_engine: AsyncEngine | None = None


def get_engine() -> AsyncEngine:
    """Get or create the async engine singleton."""
    global _engine
    if _engine is None:
        settings = get_settings()
        timeout_ms = settings.DB_STATEMENT_TIMEOUT_MS
        _engine = create_async_engine(
            settings.DATABASE_URL,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
            echo=False,
            connect_args={
                "command_timeout": timeout_ms / 1000,
                "server_settings": {"statement_timeout": str(timeout_ms)},
            },
        )
    return _engine


# ── Declarative Base ────────────────────────────────────────────────────────


class Base(DeclarativeBase):
    """Base class for all Syndicate+ models."""


# ── Session Factory ─────────────────────────────────────────────────────────


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an AsyncSession bound to the shared engine."""
    engine = get_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


# ── Database Initialization ─────────────────────────────────────────────────


async def init_db() -> None:
    """Create all tables that don't exist yet (development convenience).

    Production deployments run the Alembic migrations instead.
    """
    # Import models so their tables are registered on Base.metadata
    from src.app.syndicate import models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the engine and close all connections."""
    global _engine
    if _engine:
        await _engine.dispose()
        _engine = None
