"""Configuration: env vars, endpoints, retry policy, cache settings."""

import os
from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
QUOTE_BASE_URL: str = os.getenv(
    "QUOTE_BASE_URL", "https://query1.finance.yahoo.com/v7/finance/quote"
)
COOKIE_URL: str = os.getenv("COOKIE_URL", "https://fc.yahoo.com")
CRUMB_URL: str = os.getenv(
    "CRUMB_URL", "https://query1.finance.yahoo.com/v1/test/getcrumb"
)

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------
USER_AGENT: str = os.getenv(
    "USER_AGENT",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36",
)
HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "15.0"))

# ---------------------------------------------------------------------------
# Transient-failure retry (transport level, not the crumb retry)
# ---------------------------------------------------------------------------
RETRY_MAX_RETRIES: int = int(os.getenv("RETRY_MAX_RETRIES", "4"))
RETRY_BACKOFF_BASE: float = float(os.getenv("RETRY_BACKOFF_BASE", "0.2"))
RETRY_BACKOFF_MAX: float = float(os.getenv("RETRY_BACKOFF_MAX", "3.0"))
RETRY_ON_STATUS: tuple[int, ...] = tuple(
    int(code)
    for code in os.getenv("RETRY_ON_STATUS", "408,429,500,502,503,504").split(",")
    if code.strip()
)

# ---------------------------------------------------------------------------
# Response cache
# ---------------------------------------------------------------------------
CACHE_BACKEND: str = os.getenv("CACHE_BACKEND", "memory")  # memory | sql | none
CACHE_TTL_SECONDS: float = float(os.getenv("CACHE_TTL_SECONDS", "60"))

# ---------------------------------------------------------------------------
# Database (SQL cache backend only)
# ---------------------------------------------------------------------------
DATABASE_URL: str = os.getenv("DATABASE_URL", "")
DATABASE_PATH: str = os.getenv("DATABASE_PATH", "quotefeed_cache.db")
