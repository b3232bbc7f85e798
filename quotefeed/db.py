"""Storage for the SQL response cache (async SQLAlchemy, PostgreSQL or SQLite).

Only :class:`quotefeed.services.response_cache.SqlResponseCache` uses this
module.  Call :func:`init_db` once at startup and :func:`close_db` on
shutdown; in between, open units of work with :func:`session_scope`.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import Float, String, Text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

logger = logging.getLogger(__name__)

_ASYNC_DRIVERS = {
    "postgresql": "postgresql+asyncpg",
    "postgres": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


# ---------------------------------------------------------------------------
# ORM Models
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


class ResponseCacheEntry(Base):
    """One cached response body, keyed by its canonical request URL."""

    __tablename__ = "response_cache"

    cache_key: Mapped[str] = mapped_column(String, primary_key=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    stored_at: Mapped[float] = mapped_column(Float, nullable=False)
    # NULL means the entry never expires.
    expires_at: Mapped[Optional[float]] = mapped_column(Float, nullable=True, index=True)


# ---------------------------------------------------------------------------
# URL resolution
# ---------------------------------------------------------------------------


def resolve_database_url(
    database_url: Optional[str] = None,
    database_path: Optional[str] = None,
) -> str:
    """Return an async SQLAlchemy URL for the cache database.

    An explicit *database_url* wins; sync driver names are swapped for their
    async counterparts (``postgres://`` -> ``postgresql+asyncpg://``).
    Otherwise a SQLite file at *database_path* is used.  Arguments left as
    ``None`` come from :mod:`quotefeed.config`.
    """
    if database_url is None or database_path is None:
        from quotefeed.config import DATABASE_PATH, DATABASE_URL

        database_url = DATABASE_URL if database_url is None else database_url
        database_path = DATABASE_PATH if database_path is None else database_path

    if not database_url:
        return f"sqlite+aiosqlite:///{database_path}"

    scheme, sep, rest = database_url.partition("://")
    if sep and scheme in _ASYNC_DRIVERS:
        return f"{_ASYNC_DRIVERS[scheme]}://{rest}"
    return database_url


def _redacted(url: str) -> str:
    return make_url(url).render_as_string(hide_password=True)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


async def init_db(url: Optional[str] = None) -> None:
    """Create the engine and session factory, then the ``response_cache`` table."""
    global _engine, _session_factory

    actual_url = url or resolve_database_url()
    _engine = create_async_engine(actual_url, echo=False)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Response cache database ready: %s", _redacted(actual_url))


async def close_db() -> None:
    """Dispose of the engine.  Safe to call when not initialized."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("Response cache database closed")
    _engine = None
    _session_factory = None


def get_dialect() -> str:
    """Dialect of the current engine (``sqlite`` before :func:`init_db`)."""
    return _engine.dialect.name if _engine is not None else "sqlite"


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


async def get_session() -> AsyncSession:
    """Return a new session; the caller closes it."""
    if _session_factory is None:
        raise RuntimeError("Database not initialized - call init_db() first")
    return _session_factory()


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Session that commits on success and rolls back on error."""
    session = await get_session()
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise
    finally:
        await session.close()
