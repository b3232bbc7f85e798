"""Quote pipeline exception hierarchy.

Every failure the fetch pipeline surfaces derives from :class:`QuoteError`,
so callers can catch all of them uniformly or pick out the cases they can
act on (for example :class:`RateLimitedError`).
"""

from __future__ import annotations


class QuoteError(Exception):
    """Base class for quote pipeline errors."""


class NotFoundError(QuoteError):
    """The endpoint answered 404."""

    def __init__(self, url: str) -> None:
        super().__init__(f"not found: {url}")
        self.url = url


class RateLimitedError(QuoteError):
    """The endpoint answered 429."""

    def __init__(self, url: str) -> None:
        super().__init__(f"rate limited: {url}")
        self.url = url


class ServerError(QuoteError):
    """The endpoint answered with a 5xx status."""

    def __init__(self, status: int, url: str) -> None:
        super().__init__(f"server error {status}: {url}")
        self.status = status
        self.url = url


class StatusError(QuoteError):
    """Any other non-2xx status."""

    def __init__(self, status: int, url: str) -> None:
        super().__init__(f"unexpected status {status}: {url}")
        self.status = status
        self.url = url


class AuthError(QuoteError):
    """Credential acquisition failed or left no crumb behind."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingDataError(QuoteError):
    """A successful response lacks a record the caller needs."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class DecodeError(QuoteError):
    """The response body does not match the expected JSON shape."""

    def __init__(self, underlying: Exception) -> None:
        super().__init__(f"failed to decode quote response: {underlying}")
        self.underlying = underlying


class TransportError(QuoteError):
    """The request never produced an HTTP response (connect, timeout, ...)."""

    def __init__(self, url: str, underlying: Exception) -> None:
        super().__init__(f"transport failure for {url}: {underlying}")
        self.url = url
        self.underlying = underlying


def error_for_status(status: int, url: str) -> QuoteError:
    """Map a non-2xx HTTP status to the matching error value."""
    if status == 404:
        return NotFoundError(url)
    if status == 429:
        return RateLimitedError(url)
    if 500 <= status <= 599:
        return ServerError(status, url)
    return StatusError(status, url)


__all__ = [
    "QuoteError",
    "NotFoundError",
    "RateLimitedError",
    "ServerError",
    "StatusError",
    "AuthError",
    "MissingDataError",
    "DecodeError",
    "TransportError",
    "error_for_status",
]
