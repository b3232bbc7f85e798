"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from quotefeed.config import CACHE_BACKEND
from quotefeed.conversions import node_to_quote
from quotefeed.db import close_db, init_db
from quotefeed.errors import (
    AuthError,
    MissingDataError,
    NotFoundError,
    QuoteError,
    RateLimitedError,
)
from quotefeed.providers.yahoo import YahooQuoteClient
from quotefeed.quotes import fast_info, fetch_quote, fetch_quotes, fetch_quotes_raw
from quotefeed.services.response_cache import CacheMode, cache_from_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources on startup, clean up on shutdown."""
    if CACHE_BACKEND == "sql":
        await init_db()
    app.state.quote_client = YahooQuoteClient(cache=cache_from_config(CACHE_BACKEND))

    logger.info("quotefeed started (cache backend: %s)", CACHE_BACKEND)
    yield

    await app.state.quote_client.close()
    if CACHE_BACKEND == "sql":
        await close_db()
    logger.info("quotefeed stopped")


app = FastAPI(title="quotefeed", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _split_csv(value: Optional[str]) -> list[str]:
    """Split a comma-separated query value, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _require_symbols(symbols: str) -> list[str]:
    parsed = _split_csv(symbols)
    if not parsed:
        raise HTTPException(status_code=400, detail="At least one symbol is required")
    return parsed


def _cache_mode(fresh: bool) -> CacheMode:
    return CacheMode.REFRESH if fresh else CacheMode.USE


def _to_http_error(exc: QuoteError) -> HTTPException:
    """Map a pipeline error onto the status this API answers with."""
    if isinstance(exc, (NotFoundError, MissingDataError)):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, RateLimitedError):
        return HTTPException(status_code=429, detail=str(exc))
    if isinstance(exc, AuthError):
        return HTTPException(status_code=502, detail=f"Upstream auth failed: {exc}")
    return HTTPException(status_code=502, detail=str(exc))


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/api/health")
async def health() -> dict:
    """Return service health status."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/api/quotes")
async def quotes(
    symbols: str = Query(..., description="Comma-separated symbols"),
    fields: Optional[str] = Query(None, description="Comma-separated field names"),
    fresh: bool = Query(False, description="Skip the cache read"),
) -> dict:
    """Return normalized quotes for several symbols in one upstream call."""
    symbol_list = _require_symbols(symbols)
    try:
        nodes = await fetch_quotes(
            app.state.quote_client,
            symbol_list,
            _split_csv(fields) or None,
            _cache_mode(fresh),
        )
    except QuoteError as exc:
        raise _to_http_error(exc) from exc

    results = [node_to_quote(node).model_dump(mode="json") for node in nodes]
    return {"quotes": results, "count": len(results)}


@app.get("/api/quotes/raw")
async def quotes_raw(
    symbols: str = Query(..., description="Comma-separated symbols"),
    fields: Optional[str] = Query(None, description="Comma-separated field names"),
    fresh: bool = Query(False, description="Skip the cache read"),
) -> dict:
    """Return the upstream quote objects untouched."""
    symbol_list = _require_symbols(symbols)
    try:
        documents = await fetch_quotes_raw(
            app.state.quote_client,
            symbol_list,
            _split_csv(fields) or None,
            _cache_mode(fresh),
        )
    except QuoteError as exc:
        raise _to_http_error(exc) from exc

    return {"quotes": documents, "count": len(documents)}


@app.get("/api/quote/{symbol}")
async def quote(symbol: str, fresh: bool = Query(False)) -> dict:
    """Return the normalized quote for one symbol."""
    try:
        result = await fetch_quote(app.state.quote_client, symbol, _cache_mode(fresh))
    except QuoteError as exc:
        raise _to_http_error(exc) from exc
    return result.model_dump(mode="json")


@app.get("/api/quote/{symbol}/fast_info")
async def quote_fast_info(symbol: str, fresh: bool = Query(False)) -> dict:
    """Return last price, previous close, currency and exchange for one symbol."""
    try:
        info = await fast_info(app.state.quote_client, symbol, _cache_mode(fresh))
    except QuoteError as exc:
        raise _to_http_error(exc) from exc
    return info.model_dump()
