"""Session credentials (cookie + crumb) for the quote endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from quotefeed.config import COOKIE_URL, CRUMB_URL
from quotefeed.errors import AuthError

logger = logging.getLogger(__name__)


def _is_valid_crumb(text: str) -> bool:
    """A crumb is a short opaque token; HTML or JSON error pages are not."""
    return bool(text) and "<" not in text and "{" not in text and " " not in text


class CrumbManager:
    """Lazily acquires and holds the session crumb.

    The cookie jar lives on the shared ``httpx.AsyncClient``, so the crumb
    stays valid for every request that client sends.  Concurrent callers of
    :meth:`ensure_credentials` share a single acquisition.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        cookie_url: str = COOKIE_URL,
        crumb_url: str = CRUMB_URL,
    ) -> None:
        self._http = http
        self._cookie_url = cookie_url
        self._crumb_url = crumb_url
        self._crumb: Optional[str] = None
        self._lock = asyncio.Lock()

    async def crumb(self) -> Optional[str]:
        return self._crumb

    def invalidate(self) -> None:
        """Forget the crumb; the next :meth:`ensure_credentials` fetches a new one."""
        self._crumb = None

    async def ensure_credentials(self) -> None:
        """Populate the crumb if it is not set.  Idempotent.

        Raises :class:`AuthError` if the cookie or crumb cannot be obtained.
        """
        if self._crumb is not None:
            return

        async with self._lock:
            if self._crumb is not None:
                return
            self._crumb = await self._acquire()
            logger.info("Acquired quote session crumb")

    async def _acquire(self) -> str:
        try:
            # The cookie endpoint often answers 404 while still setting the
            # session cookie, so its status is not checked.
            await self._http.get(self._cookie_url)
            resp = await self._http.get(self._crumb_url)
        except httpx.HTTPError as exc:
            raise AuthError(f"Failed to acquire crumb: {exc}") from exc

        if not resp.is_success:
            raise AuthError(f"Crumb endpoint returned status {resp.status_code}")

        crumb = resp.text.strip()
        if not _is_valid_crumb(crumb):
            raise AuthError("Crumb endpoint returned an invalid crumb")
        return crumb
