"""Response cache for raw quote bodies, keyed by canonical request URL.

Two backends share the :class:`ResponseCache` interface:

- :class:`MemoryResponseCache` keeps entries in a dict for the life of the
  process.
- :class:`SqlResponseCache` stores entries in the ``response_cache`` table
  via the async SQLAlchemy session from :mod:`quotefeed.db`.

Both treat an expired entry as a miss.  Concurrent writers race with
last-write-wins semantics.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from quotefeed.db import get_dialect, session_scope

logger = logging.getLogger(__name__)


class CacheMode(str, Enum):
    """How a fetch interacts with the response cache."""

    USE = "use"          # read before sending, write successful bodies
    REFRESH = "refresh"  # skip the read, still write
    BYPASS = "bypass"    # neither read nor write


class ResponseCache(ABC):
    """Interface every response-cache backend implements."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored body for *key*, or ``None`` on a miss."""

    @abstractmethod
    async def put(self, key: str, body: str, ttl: Optional[float] = None) -> None:
        """Store *body* under *key*, expiring after *ttl* seconds if given."""

    @abstractmethod
    async def clear(self) -> None:
        """Drop every entry."""


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class MemoryResponseCache(ResponseCache):
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, Optional[float]]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        body, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return body

    async def put(self, key: str, body: str, ttl: Optional[float] = None) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        self._entries[key] = (body, expires_at)

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# ---------------------------------------------------------------------------
# SQL backend
# ---------------------------------------------------------------------------


class SqlResponseCache(ResponseCache):
    """Cache backed by the ``response_cache`` table.  Requires ``init_db()``."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    async def get(self, key: str) -> Optional[str]:
        async with session_scope() as session:
            result = await session.execute(
                text("SELECT body, expires_at FROM response_cache WHERE cache_key = :key"),
                {"key": key},
            )
            row = result.mappings().first()

        if row is None:
            return None
        if row["expires_at"] is not None and self._clock() >= row["expires_at"]:
            logger.debug("Cache entry expired: %s", key)
            return None
        return row["body"]

    async def put(self, key: str, body: str, ttl: Optional[float] = None) -> None:
        """Upsert *body* under *key*.

        Uses dialect-aware upsert: ``ON CONFLICT DO UPDATE`` (PostgreSQL)
        or ``INSERT OR REPLACE`` (SQLite).  A failed write is logged and
        rolled back; the cache is best-effort.
        """
        now = self._clock()
        params = {
            "key": key,
            "body": body,
            "stored_at": now,
            "expires_at": now + ttl if ttl is not None else None,
        }
        if get_dialect() == "postgresql":
            stmt = text("""
                INSERT INTO response_cache (cache_key, body, stored_at, expires_at)
                VALUES (:key, :body, :stored_at, :expires_at)
                ON CONFLICT (cache_key) DO UPDATE SET
                    body = EXCLUDED.body,
                    stored_at = EXCLUDED.stored_at,
                    expires_at = EXCLUDED.expires_at
            """)
        else:
            stmt = text("""
                INSERT OR REPLACE INTO response_cache
                    (cache_key, body, stored_at, expires_at)
                VALUES (:key, :body, :stored_at, :expires_at)
            """)

        try:
            async with session_scope() as session:
                await session.execute(stmt, params)
        except SQLAlchemyError:
            logger.exception("Failed to cache response for %s", key)

    async def clear(self) -> None:
        async with session_scope() as session:
            await session.execute(text("DELETE FROM response_cache"))

    async def purge_expired(self) -> int:
        """Delete expired rows; return how many were removed."""
        async with session_scope() as session:
            result = await session.execute(
                text(
                    "DELETE FROM response_cache "
                    "WHERE expires_at IS NOT NULL AND expires_at <= :now"
                ),
                {"now": self._clock()},
            )
            removed = result.rowcount or 0

        logger.info("Purged %d expired cache entries", removed)
        return removed


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def cache_from_config(backend: str) -> Optional[ResponseCache]:
    """Build the cache named by *backend* (``memory``, ``sql`` or ``none``)."""
    if backend == "memory":
        return MemoryResponseCache()
    if backend == "sql":
        return SqlResponseCache()
    if backend == "none":
        return None
    raise ValueError(f"Unknown cache backend: {backend!r}")
