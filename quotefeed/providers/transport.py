"""HTTP transport with a retry policy for transient failures.

This is the network-level retry (timeouts, dropped connections, 5xx and
429 answers).  The crumb handshake in :mod:`quotefeed.quotes` is separate
and sits on top of it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

from quotefeed.config import (
    RETRY_BACKOFF_BASE,
    RETRY_BACKOFF_MAX,
    RETRY_MAX_RETRIES,
    RETRY_ON_STATUS,
)
from quotefeed.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """Transient-failure retry policy for a single request."""

    enabled: bool = True
    max_retries: int = RETRY_MAX_RETRIES
    backoff_base: float = RETRY_BACKOFF_BASE
    backoff_max: float = RETRY_BACKOFF_MAX
    retry_on_status: tuple[int, ...] = RETRY_ON_STATUS
    retry_on_timeout: bool = True
    retry_on_connect: bool = True

    def delay(self, attempt: int) -> float:
        """Exponential backoff for the *attempt*-th retry (0-based), capped."""
        return min(self.backoff_base * (2 ** attempt), self.backoff_max)

    def allows(self, attempt: int) -> bool:
        return self.enabled and attempt < self.max_retries


NO_RETRY = RetryConfig(enabled=False)


async def _backoff(retry: RetryConfig, attempt: int, reason: str, url: str) -> None:
    delay = retry.delay(attempt)
    logger.debug(
        "Retrying %s after %s (attempt %d/%d, sleeping %.2fs)",
        url, reason, attempt + 1, retry.max_retries, delay,
    )
    if delay > 0:
        await asyncio.sleep(delay)


async def send_with_retry(
    http: httpx.AsyncClient,
    request: httpx.Request,
    retry: RetryConfig,
) -> httpx.Response:
    """Send *request*, retrying transient failures per *retry*.

    Returns the final response whatever its status; callers classify it.
    Raises :class:`TransportError` when no response could be obtained.
    """
    url = str(request.url)
    attempt = 0
    while True:
        try:
            response = await http.send(request)
        except httpx.TimeoutException as exc:
            if retry.retry_on_timeout and retry.allows(attempt):
                await _backoff(retry, attempt, "timeout", url)
                attempt += 1
                continue
            raise TransportError(url, exc) from exc
        except httpx.ConnectError as exc:
            if retry.retry_on_connect and retry.allows(attempt):
                await _backoff(retry, attempt, "connect error", url)
                attempt += 1
                continue
            raise TransportError(url, exc) from exc
        except httpx.HTTPError as exc:
            raise TransportError(url, exc) from exc

        if response.status_code in retry.retry_on_status and retry.allows(attempt):
            await response.aclose()
            await _backoff(retry, attempt, f"status {response.status_code}", url)
            attempt += 1
            continue

        return response
