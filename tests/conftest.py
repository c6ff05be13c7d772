# tests/conftest.py
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

# ──────────────────────────────────────────────────────────────────────────────
# Ensure repo root on sys.path
# ──────────────────────────────────────────────────────────────────────────────
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from gopax_adapter.config import GopaxConfig  # noqa: E402
from gopax_adapter.services.infrastructure.gopax.markets import (  # noqa: E402
    MarketCatalog,
    parse_currencies,
    parse_markets,
)

NOW_MS = 1608400000000  # 2020-12-19T17:46:40Z

# Base64 of b"gopax-test-secret"
TEST_SECRET = "Z29wYXgtdGVzdC1zZWNyZXQ="


def trading_pairs_payload() -> List[Dict[str, Any]]:
    return [
        {
            "id": 1,
            "name": "ETH-KRW",
            "baseAsset": "ETH",
            "quoteAsset": "KRW",
            "baseAssetScale": 8,
            "quoteAssetScale": 0,
            "priceMin": 1,
            "restApiOrderAmountMin": {
                "limitAsk": {"amount": 10000, "unit": "KRW"},
                "limitBid": {"amount": 10000, "unit": "KRW"},
                "marketAsk": {"amount": 0.001, "unit": "ETH"},
                "marketBid": {"amount": 10000, "unit": "KRW"},
            },
            "makerFeePercent": 0.2,
            "takerFeePercent": 0.2,
        },
        {
            "id": 7,
            "name": "ZEC-KRW",
            "baseAsset": "ZEC",
            "quoteAsset": "KRW",
            "baseAssetScale": 4,
            "quoteAssetScale": 0,
            "priceMin": 1,
            "restApiOrderAmountMin": {
                "marketAsk": {"amount": 0.01, "unit": "ZEC"},
                "marketBid": {"amount": 10000, "unit": "KRW"},
            },
            "makerFeePercent": 0.04,
            "takerFeePercent": 0.04,
        },
        {
            "id": 12,
            "name": "XBT-KRW",
            "baseAsset": "xbt",
            "quoteAsset": "KRW",
            "baseAssetScale": 8,
            "quoteAssetScale": 0,
        },
    ]


def assets_payload() -> List[Dict[str, Any]]:
    return [
        {"id": "KRW", "name": "대한민국 원", "scale": 0, "withdrawalFee": 1000, "withdrawalAmountMin": 5000},
        {"id": "ETH", "name": "이더리움", "scale": 8, "withdrawalFee": 0.03, "withdrawalAmountMin": 0.015},
        {"id": "ZEC", "name": "지캐시", "scale": 8, "withdrawalFee": 0.001, "withdrawalAmountMin": 0.002},
        {"id": "BTC", "name": "비트코인", "scale": 8, "withdrawalFee": 0.0005, "withdrawalAmountMin": 0.001},
    ]


@pytest.fixture()
def config() -> GopaxConfig:
    return GopaxConfig(api_key="test-key", secret=TEST_SECRET)


@pytest.fixture()
def catalog(config: GopaxConfig) -> MarketCatalog:
    return MarketCatalog.build(
        config,
        parse_markets(trading_pairs_payload(), config),
        parse_currencies(assets_payload(), config),
    )


@pytest.fixture()
def now_ms() -> int:
    return NOW_MS


@pytest.fixture()
def trading_pairs_raw() -> List[Dict[str, Any]]:
    return trading_pairs_payload()


@pytest.fixture()
def assets_raw() -> List[Dict[str, Any]]:
    return assets_payload()
