"""Command surface wiring request builders, the transport and the parsers together."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from gopax_adapter.config import GopaxConfig
from gopax_adapter.core.logging_utils import ensure_log_context, format_log_context
from gopax_adapter.services.domain.models import (
    Balances,
    Candle,
    Currency,
    DepositAddress,
    Market,
    Order,
    OrderBook,
    Ticker,
    Trade,
    Transaction,
)
from . import account, market_data, orders
from .gopax_rest import GopaxREST
from .markets import MarketCatalog, parse_currencies, parse_markets

logger = logging.getLogger("services.infrastructure.gopax.gopax_client")


class GopaxClient:
    """Canonical-model facade over :class:`GopaxREST`."""

    def __init__(
        self,
        config: GopaxConfig,
        *,
        gateway: GopaxREST | None = None,
        timestamp_provider: Callable[[], int] | None = None,
    ) -> None:
        self._config = config
        self._timestamp_provider = timestamp_provider or (
            lambda: int(time.time() * 1000)
        )
        self._gateway = gateway or GopaxREST(
            config, timestamp_provider=self._timestamp_provider
        )
        self._catalog: MarketCatalog | None = None

    def _now_ms(self) -> int:
        return self._timestamp_provider()

    # ---------------------------
    # Catalog
    # ---------------------------
    def fetch_markets(self, params: Mapping[str, Any] | None = None) -> List[Market]:
        return parse_markets(self._gateway.public_get("trading-pairs", params), self._config)

    def fetch_currencies(self, params: Mapping[str, Any] | None = None) -> List[Currency]:
        return parse_currencies(self._gateway.public_get("assets", params), self._config)

    def load_markets(self, reload: bool = False) -> MarketCatalog:
        """Fetch the market and currency listings once; ``reload`` forces a refetch."""
        if self._catalog is not None and not reload:
            return self._catalog
        catalog = MarketCatalog.build(
            self._config, self.fetch_markets(), self.fetch_currencies()
        )
        logger.info(
            "gopax_markets_loaded markets=%s currencies=%s",
            len(catalog.markets),
            len(catalog.currencies),
        )
        self._catalog = catalog
        return catalog

    def market(self, symbol: str) -> Market:
        return self.load_markets().market(symbol)

    def fetch_time(self, params: Mapping[str, Any] | None = None) -> Optional[int]:
        return market_data.parse_time(self._gateway.public_get("time", params))

    # ---------------------------
    # Market data
    # ---------------------------
    def fetch_ticker(self, symbol: str, params: Mapping[str, Any] | None = None) -> Ticker:
        catalog = self.load_markets()
        market = catalog.market(symbol)
        request = {"tradingPair": market.id, **(params or {})}
        response = self._gateway.public_get("trading-pairs/{tradingPair}/ticker", request)
        return market_data.parse_ticker(response, catalog, market)

    def fetch_tickers(
        self,
        symbols: Sequence[str] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Dict[str, Ticker]:
        catalog = self.load_markets()
        response = self._gateway.public_get("trading-pairs/stats", params)
        return market_data.parse_tickers(response, catalog, symbols)

    def fetch_order_book(
        self,
        symbol: str,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> OrderBook:
        market = self.market(symbol)
        request = {"tradingPair": market.id, **(params or {})}
        response = self._gateway.public_get("trading-pairs/{tradingPair}/book", request)
        return market_data.parse_order_book(response, market.symbol, limit)

    def fetch_trades(
        self,
        symbol: str,
        since: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> List[Trade]:
        catalog = self.load_markets()
        market = catalog.market(symbol)
        request = {**market_data.build_trades_request(market, since, limit), **(params or {})}
        response = self._gateway.public_get("trading-pairs/{tradingPair}/trades", request)
        return market_data.parse_trades(response, catalog, market, since, limit)

    def fetch_ohlcv(
        self,
        symbol: str,
        timeframe: str = "1m",
        since: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> List[Candle]:
        market = self.market(symbol)
        request = market_data.build_ohlcv_request(
            market, timeframe, self._config.timeframes, self._now_ms(), since, limit
        )
        request.update(params or {})
        response = self._gateway.public_get("trading-pairs/{tradingPair}/candles", request)
        return market_data.parse_ohlcvs(response, since, limit)

    # ---------------------------
    # Account
    # ---------------------------
    def fetch_balance(self, params: Mapping[str, Any] | None = None) -> Balances:
        catalog = self.load_markets()
        return account.parse_balance(self._gateway.private_get("balances", params), catalog)

    def fetch_deposit_addresses(
        self,
        codes: Sequence[str] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Dict[str, DepositAddress]:
        catalog = self.load_markets()
        response = self._gateway.private_get("crypto-deposit-addresses", params)
        return account.parse_deposit_addresses(response, catalog, codes)

    def fetch_deposit_address(
        self, code: str, params: Mapping[str, Any] | None = None
    ) -> DepositAddress:
        return account.select_deposit_address(self.fetch_deposit_addresses(None, params), code)

    def fetch_transactions(
        self,
        code: str | None = None,
        since: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> List[Transaction]:
        request = account.build_transactions_request(code, since, limit, self._now_ms(), params)
        catalog = self.load_markets()
        response = self._gateway.private_get("deposit-withdrawal-status", request)
        currency = None
        if code is not None:
            currency = catalog.currency(code) or Currency(id=code, code=catalog.currency_code(code))
        return account.parse_transactions(response, catalog, currency, since, limit)

    def fetch_my_trades(
        self,
        symbol: str | None = None,
        since: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> List[Trade]:
        request = account.build_my_trades_request(symbol, since, limit, self._now_ms(), params)
        catalog = self.load_markets()
        market = catalog.market(symbol) if symbol is not None else None
        response = self._gateway.private_get("trades", request)
        return market_data.parse_trades(response, catalog, market, since, limit)

    # ---------------------------
    # Orders
    # ---------------------------
    def create_order(
        self,
        symbol: str,
        order_type: str,
        side: str,
        amount: Any,
        price: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> Order:
        catalog = self.load_markets()
        market = catalog.market(symbol)
        request, residual = orders.build_create_order_request(
            market, order_type, side, amount, price, params, options=self._config.options
        )
        context = ensure_log_context(
            {"method": "POST", "path": "orders", "symbol": market.symbol},
            client_order_id=request.get("clientOrderId"),
        )
        logger.info("gopax_create_order %s", format_log_context(context))
        response = self._gateway.private_post("orders", {**request, **residual})
        return orders.parse_order(response, catalog, market)

    def cancel_order(
        self,
        order_id: str | None,
        symbol: str | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Order:
        catalog = self.load_markets()
        lookup = orders.build_order_lookup(order_id, params)
        logger.info(
            "gopax_cancel_order %s",
            format_log_context(
                {"method": "DELETE", "path": lookup.path, "symbol": symbol, "order_id": order_id,
                 "client_order_id": lookup.request.get("clientOrderId")}
            ),
        )
        response = self._gateway.private_delete(lookup.path, {**lookup.request, **lookup.params})
        return orders.parse_order(response or {}, catalog).with_id(order_id)

    def fetch_order(
        self,
        order_id: str | None,
        symbol: str | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Order:
        catalog = self.load_markets()
        lookup = orders.build_order_lookup(order_id, params)
        response = self._gateway.private_get(lookup.path, {**lookup.request, **lookup.params})
        return orders.parse_order(response, catalog)

    def fetch_orders(
        self,
        symbol: str | None = None,
        since: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
        *,
        include_past: bool = True,
    ) -> List[Order]:
        catalog = self.load_markets()
        market = catalog.market(symbol) if symbol is not None else None
        request = orders.build_orders_request(params, include_past=include_past)
        response = self._gateway.private_get("orders", request)
        return orders.parse_orders(response, catalog, market, since, limit)

    def fetch_open_orders(
        self,
        symbol: str | None = None,
        since: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> List[Order]:
        return self.fetch_orders(symbol, since, limit, params, include_past=False)

    def fetch_closed_orders(
        self,
        symbol: str | None = None,
        since: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> List[Order]:
        history = self.fetch_orders(symbol, since, None, params)
        return orders.filter_closed_orders(history, limit)

    # ---------------------------
    # Misc
    # ---------------------------
    @property
    def catalog(self) -> MarketCatalog | None:
        return self._catalog

    @property
    def base_url(self) -> str:
        return self._gateway.base_url
