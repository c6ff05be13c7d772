#!/usr/bin/env python3
"""
Read-only smoke test for the Gopax adapter.

What it does:
  - Loads the market catalog and prints the pair count.
  - Fetches the ticker and top of book for one symbol.
  - With --balance (credentials required), fetches account balances.

Usage:
  python -m gopax_adapter.scripts.probe_gopax --symbol BTC/KRW
  python -m gopax_adapter.scripts.probe_gopax --symbol ETH/KRW --balance

Env it reads: GOPAX_API_KEY, GOPAX_SECRET, GOPAX_HOSTNAME, LOG_LEVEL
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from gopax_adapter.config import GopaxConfig, GopaxSettings
from gopax_adapter.core.logging_utils import configure_logging
from gopax_adapter.services.domain.exceptions import DomainExchangeError
from gopax_adapter.services.infrastructure.gopax import GopaxClient

LOG = logging.getLogger("scripts.probe_gopax")


def main(argv: Sequence[str] | None = None, client: GopaxClient | None = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--symbol", default="BTC/KRW", help="Canonical symbol (default: BTC/KRW).")
    ap.add_argument("--depth", type=int, default=5, help="Order book levels to print.")
    ap.add_argument("--balance", action="store_true", help="Also fetch balances (needs credentials).")
    args = ap.parse_args(argv)

    settings = GopaxSettings()
    configure_logging(settings.LOG_LEVEL)
    config = GopaxConfig.from_settings(settings)
    client = client or GopaxClient(config)

    try:
        catalog = client.load_markets()
        LOG.info("markets=%s currencies=%s", len(catalog.markets), len(catalog.currencies))

        ticker = client.fetch_ticker(args.symbol)
        LOG.info("ticker %s last=%s bid=%s ask=%s", ticker.symbol, ticker.last, ticker.bid, ticker.ask)

        book = client.fetch_order_book(args.symbol, limit=args.depth)
        for price, amount in book.bids:
            LOG.info("bid %s x %s", price, amount)
        for price, amount in book.asks:
            LOG.info("ask %s x %s", price, amount)

        if args.balance:
            if not config.api_key or not config.secret:
                LOG.warning("Missing GOPAX_API_KEY / GOPAX_SECRET; skipping balances")
            else:
                for code, balance in client.fetch_balance().items():
                    LOG.info("balance %s free=%s used=%s total=%s", code, balance.free, balance.used, balance.total)
    except DomainExchangeError as exc:
        LOG.error("probe failed: %s", exc)
        return 1

    LOG.info("All checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
