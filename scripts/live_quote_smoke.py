#!/usr/bin/env python3
"""Smoke test of the quote pipeline against the live endpoint.

Usage: python scripts/live_quote_smoke.py [SYMBOL ...]   (default: AAPL MSFT)

Fetches a batch of quotes, then fast info for each symbol, and exits
non-zero if any step fails.
"""

import asyncio
import logging
import os
import sys

# Ensure project root is on sys.path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("live_quote_smoke")


async def main(symbols: list[str]) -> int:
    from quotefeed.conversions import money_to_float, node_to_quote
    from quotefeed.errors import QuoteError
    from quotefeed.providers.yahoo import YahooQuoteClient
    from quotefeed.quotes import fast_info, fetch_quotes
    from quotefeed.services.response_cache import CacheMode, MemoryResponseCache

    print("=" * 70)
    print("  QUOTEFEED - LIVE SMOKE TEST")
    print("=" * 70)

    async with YahooQuoteClient(cache=MemoryResponseCache()) as client:
        print(f"\n--- Step 1: Batch quotes for {', '.join(symbols)} ---")
        try:
            nodes = await fetch_quotes(client, symbols, cache_mode=CacheMode.BYPASS)
        except QuoteError as exc:
            print(f"  ERROR: batch fetch failed: {exc}")
            return 1

        for node in nodes:
            q = node_to_quote(node)
            price = money_to_float(q.price) if q.price else None
            print(f"    {q.symbol:10s}  {price!s:>12}  {q.exchange or '-':8s}  {q.market_state or '-'}")

        if len(nodes) != len(symbols):
            print(f"  WARNING: asked for {len(symbols)} symbols, got {len(nodes)}")

        print("\n--- Step 2: Fast info per symbol ---")
        failures = 0
        for symbol in symbols:
            try:
                info = await fast_info(client, symbol)
            except QuoteError as exc:
                print(f"    {symbol:10s}  ERROR: {exc}")
                failures += 1
                continue
            print(f"    {info.symbol:10s}  last={info.last_price:.2f} {info.currency or ''}")
            if info.last_price <= 0:
                failures += 1

        crumb = await client.crumb()
        print(f"\nCrumb acquired: {'yes' if crumb else 'no'}")

    print("=" * 70)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:] or ["AAPL", "MSFT"])))
