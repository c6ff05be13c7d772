"""Market and currency normalization plus symbol resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from gopax_adapter.config import GopaxConfig
from gopax_adapter.services.domain.exceptions import DomainBadSymbol
from gopax_adapter.services.domain.models import (
    Currency,
    CurrencyLimits,
    Market,
    MarketLimits,
    MarketPrecision,
    MinMax,
)
from .utils.values import safe_decimal, safe_integer, safe_string, safe_value

logger = logging.getLogger("services.infrastructure.gopax.markets")

_HUNDRED = Decimal("100")


def safe_currency_code(currency_id: Optional[str], config: GopaxConfig) -> Optional[str]:
    """
    Canonical currency code for a native asset id.

    Upper-cases and applies the common-currency alias table; applying it to
    its own output returns the same code.
    """
    if currency_id is None:
        return None
    code = str(currency_id).strip().upper()
    if not code:
        return None
    return config.common_currencies.get(code, code)


def _percent_to_rate(value: Optional[Decimal]) -> Optional[Decimal]:
    return None if value is None else value / _HUNDRED


def parse_market(market: Mapping[str, Any], config: GopaxConfig) -> Market:
    """
    Listing entry:

    {
      "id": 1, "name": "ETH-KRW", "baseAsset": "ETH", "quoteAsset": "KRW",
      "baseAssetScale": 8, "quoteAssetScale": 0, "priceMin": 1,
      "restApiOrderAmountMin": {
        "limitAsk": {"amount": 10000, "unit": "KRW"},
        "limitBid": {"amount": 10000, "unit": "KRW"},
        "marketAsk": {"amount": 0.001, "unit": "ETH"},
        "marketBid": {"amount": 10000, "unit": "KRW"}
      },
      "makerFeePercent": 0.2, "takerFeePercent": 0.2
    }
    """
    base_id = safe_string(market, "baseAsset")
    quote_id = safe_string(market, "quoteAsset")
    base = safe_currency_code(base_id, config)
    quote = safe_currency_code(quote_id, config)
    minimums = safe_value(market, "restApiOrderAmountMin", {})
    market_ask = safe_value(minimums, "marketAsk", {})
    market_bid = safe_value(minimums, "marketBid", {})
    return Market(
        id=safe_string(market, "name"),
        numeric_id=safe_integer(market, "id"),
        symbol=f"{base}/{quote}",
        base=base,
        quote=quote,
        base_id=base_id,
        quote_id=quote_id,
        active=True,
        maker=_percent_to_rate(safe_decimal(market, "makerFeePercent")),
        taker=_percent_to_rate(safe_decimal(market, "takerFeePercent")),
        precision=MarketPrecision(
            price=safe_integer(market, "quoteAssetScale"),
            amount=safe_integer(market, "baseAssetScale"),
        ),
        limits=MarketLimits(
            amount=MinMax(min=safe_decimal(market_ask, "amount")),
            price=MinMax(min=safe_decimal(market, "priceMin")),
            cost=MinMax(min=safe_decimal(market_bid, "amount")),
        ),
        info=market,
    )


def parse_markets(response: Iterable[Mapping[str, Any]], config: GopaxConfig) -> List[Market]:
    return [parse_market(m, config) for m in response or []]


def parse_currency(currency: Mapping[str, Any], config: GopaxConfig) -> Currency:
    """
    Asset entry: {"id": "ETH", "name": "이더리움", "scale": 8,
    "withdrawalFee": 0.03, "withdrawalAmountMin": 0.015}
    """
    currency_id = safe_string(currency, "id")
    return Currency(
        id=currency_id,
        code=safe_currency_code(currency_id, config),
        name=safe_string(currency, "name"),
        active=True,
        fee=safe_decimal(currency, "withdrawalFee"),
        precision=safe_integer(currency, "scale"),
        limits=CurrencyLimits(
            withdraw=MinMax(min=safe_decimal(currency, "withdrawalAmountMin")),
        ),
        info=currency,
    )


def parse_currencies(response: Iterable[Mapping[str, Any]], config: GopaxConfig) -> List[Currency]:
    return [parse_currency(c, config) for c in response or []]


@dataclass(frozen=True)
class MarketCatalog:
    """Read-only view over one catalog refresh, used for symbol and code resolution."""

    config: GopaxConfig
    markets: Dict[str, Market] = field(default_factory=dict)        # by symbol
    markets_by_id: Dict[str, Market] = field(default_factory=dict)  # by native pair name
    currencies: Dict[str, Currency] = field(default_factory=dict)   # by code

    @classmethod
    def build(
        cls,
        config: GopaxConfig,
        markets: Iterable[Market],
        currencies: Iterable[Currency] = (),
    ) -> "MarketCatalog":
        markets = list(markets)
        return cls(
            config=config,
            markets={m.symbol: m for m in markets},
            markets_by_id={m.id: m for m in markets if m.id},
            currencies={c.code: c for c in currencies if c.code},
        )

    @property
    def symbols(self) -> List[str]:
        return sorted(self.markets)

    def market(self, symbol: str) -> Market:
        found = self.markets.get(symbol) or self.markets_by_id.get(symbol)
        if found is None:
            raise DomainBadSymbol(f"gopax does not have market symbol {symbol}")
        return found

    def safe_symbol(
        self,
        market_id: Optional[str],
        market: Optional[Market] = None,
        delimiter: str = "-",
    ) -> Optional[str]:
        """Resolve a native pair name; fall back to splitting on ``delimiter``, then to ``market``."""
        if market_id is not None:
            known = self.markets_by_id.get(market_id)
            if known is not None:
                return known.symbol
            if delimiter in market_id:
                base_id, quote_id = market_id.split(delimiter, 1)
                base = safe_currency_code(base_id, self.config)
                quote = safe_currency_code(quote_id, self.config)
                return f"{base}/{quote}"
            logger.debug("Unresolvable market id %r", market_id)
            return market_id
        if market is not None:
            return market.symbol
        return None

    def currency_code(self, currency_id: Optional[str]) -> Optional[str]:
        return safe_currency_code(currency_id, self.config)

    def currency(self, code: str) -> Optional[Currency]:
        return self.currencies.get(safe_currency_code(code, self.config) or "")


def split_symbol(symbol: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """``"ETH/KRW"`` -> ``("ETH", "KRW")``."""
    if not symbol or "/" not in symbol:
        return None, None
    base, quote = symbol.split("/", 1)
    return base, quote
