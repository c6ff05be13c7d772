"""Parsers for public market-data snapshots (ticker, order book, trades, candles)."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from gopax_adapter.services.domain.exceptions import DomainBadRequest
from gopax_adapter.services.domain.models import (
    Candle,
    Fee,
    Market,
    OrderBook,
    PriceLevel,
    Ticker,
    Trade,
)
from .markets import MarketCatalog, split_symbol
from .utils.values import (
    filter_by_since_limit,
    iso8601,
    multiply,
    parse8601,
    safe_decimal,
    safe_decimal2,
    safe_integer,
    safe_string,
    safe_value,
)

logger = logging.getLogger("services.infrastructure.gopax.market_data")

DEFAULT_OHLCV_LIMIT = 1024

_TWO = Decimal("2")
_HUNDRED = Decimal("100")


# ---------- Tickers ----------

def _ticker(
    ticker: Mapping[str, Any],
    symbol: Optional[str],
    last: Optional[Decimal],
) -> Ticker:
    timestamp = parse8601(safe_string(ticker, "time"))
    open_ = safe_decimal(ticker, "open")
    change = percentage = average = None
    if last is not None and open_ is not None:
        average = (last + open_) / _TWO
        change = last - open_
        if open_ > 0:
            percentage = change / open_ * _HUNDRED
    base_volume = safe_decimal(ticker, "volume")
    quote_volume = safe_decimal(ticker, "quoteVolume")
    vwap = None
    if base_volume is not None and quote_volume is not None and base_volume > 0:
        vwap = quote_volume / base_volume
    return Ticker(
        symbol=symbol,
        timestamp=timestamp,
        datetime=iso8601(timestamp),
        high=safe_decimal(ticker, "high"),
        low=safe_decimal(ticker, "low"),
        bid=safe_decimal(ticker, "bid"),
        bid_volume=safe_decimal(ticker, "bidVolume"),
        ask=safe_decimal(ticker, "ask"),
        ask_volume=safe_decimal(ticker, "askVolume"),
        vwap=vwap,
        open=open_,
        close=last,
        last=last,
        previous_close=None,
        change=change,
        percentage=percentage,
        average=average,
        base_volume=base_volume,
        quote_volume=quote_volume,
        info=ticker,
    )


def _parse_single_ticker(
    ticker: Mapping[str, Any], catalog: MarketCatalog, market: Optional[Market]
) -> Ticker:
    """
    /trading-pairs/{pair}/ticker:
    {"price": 25087000, "ask": 25107000, "askVolume": 0.05837704, "bid": 25087000,
     "bidVolume": 0.00398628, "volume": 350.09171591, "quoteVolume": 8721016926.06529,
     "time": "2020-12-18T21:42:13.774Z"}
    """
    symbol = catalog.safe_symbol(safe_string(ticker, "name"), market)
    return _ticker(ticker, symbol, safe_decimal2(ticker, "price", "close"))


def _parse_stats_ticker(
    ticker: Mapping[str, Any], catalog: MarketCatalog, market: Optional[Market]
) -> Ticker:
    """
    /trading-pairs/stats entry:
    {"name": "ETH-KRW", "open": 690500, "high": 719500, "low": 681500,
     "close": 709500, "volume": 2784.6081544, "time": "2020-12-18T21:54:50.795Z"}
    """
    symbol = catalog.safe_symbol(safe_string(ticker, "name"), market)
    return _ticker(ticker, symbol, safe_decimal2(ticker, "price", "close"))


def parse_ticker(
    ticker: Mapping[str, Any],
    catalog: MarketCatalog,
    market: Optional[Market] = None,
) -> Ticker:
    if "price" in ticker:
        return _parse_single_ticker(ticker, catalog, market)
    return _parse_stats_ticker(ticker, catalog, market)


def parse_tickers(
    raw_tickers: Iterable[Mapping[str, Any]],
    catalog: MarketCatalog,
    symbols: Optional[Sequence[str]] = None,
) -> Dict[str, Ticker]:
    tickers = [parse_ticker(t, catalog) for t in raw_tickers or []]
    if symbols is not None:
        wanted = set(symbols)
        tickers = [t for t in tickers if t.symbol in wanted]
    return {t.symbol: t for t in tickers if t.symbol is not None}


# ---------- Order book ----------

def _book_side(levels: Any, *, descending: bool) -> tuple[PriceLevel, ...]:
    parsed: List[PriceLevel] = []
    for level in levels or []:
        price = safe_decimal(level, 1)
        amount = safe_decimal(level, 2)
        if price is None or amount is None:
            continue
        parsed.append((price, amount))
    parsed.sort(key=lambda lv: lv[0], reverse=descending)
    return tuple(parsed)


def parse_order_book(
    snapshot: Mapping[str, Any],
    symbol: Optional[str] = None,
    limit: Optional[int] = None,
) -> OrderBook:
    """
    {"sequence": 17691957,
     "bid": [["17690499", 25019000, 0.00008904, "1608326468921"], ...],
     "ask": [["17689176", 25024000, 0.000098, "1608326442006"], ...]}

    Levels are ``[level-id, price, amount, level-timestamp]``.
    """
    bids = _book_side(safe_value(snapshot, "bid", []), descending=True)
    asks = _book_side(safe_value(snapshot, "ask", []), descending=False)
    if limit is not None:
        bids, asks = bids[:limit], asks[:limit]
    return OrderBook(
        symbol=symbol,
        bids=bids,
        asks=asks,
        nonce=safe_integer(snapshot, "sequence"),
    )


# ---------- Trades ----------

def _parse_public_trade(trade: Mapping[str, Any], symbol: Optional[str]) -> Trade:
    """{"time": "2020-12-19T12:17:43.000Z", "date": 1608380263, "id": 23903608,
    "price": 25155000, "amount": 0.0505, "side": "sell"}"""
    timestamp = parse8601(safe_string(trade, "time"))
    price = safe_decimal(trade, "price")
    amount = safe_decimal(trade, "amount")
    return Trade(
        id=safe_string(trade, "id"),
        timestamp=timestamp,
        datetime=iso8601(timestamp),
        symbol=symbol,
        side=safe_string(trade, "side"),
        price=price,
        amount=amount,
        cost=multiply(price, amount),
        order=None,
        taker_or_maker=None,
        fee=None,
        info=trade,
    )


def _parse_private_trade(trade: Mapping[str, Any], catalog: MarketCatalog) -> Trade:
    """{"id": 73953, "orderId": 453324, "baseAmount": 3, "quoteAmount": 3000000,
    "fee": 0.0012, "price": 1000000, "timestamp": "2020-09-25T04:06:30.000Z",
    "side": "buy", "tradingPairName": "ZEC-KRW", "position": "maker"}"""
    timestamp = parse8601(safe_string(trade, "timestamp"))
    symbol = catalog.safe_symbol(safe_string(trade, "tradingPairName"))
    side = safe_string(trade, "side")
    price = safe_decimal(trade, "price")
    amount = safe_decimal(trade, "baseAmount")
    base, quote = split_symbol(symbol)
    return Trade(
        id=safe_string(trade, "id"),
        timestamp=timestamp,
        datetime=iso8601(timestamp),
        symbol=symbol,
        side=side,
        price=price,
        amount=amount,
        cost=multiply(price, amount),
        order=safe_integer(trade, "orderId"),
        taker_or_maker=safe_string(trade, "position"),
        fee=Fee(
            currency=quote if side == "sell" else base,
            cost=safe_decimal(trade, "fee"),
        ),
        info=trade,
    )


def parse_trade(
    trade: Mapping[str, Any],
    catalog: MarketCatalog,
    market: Optional[Market] = None,
) -> Trade:
    if "tradingPairName" in trade:
        return _parse_private_trade(trade, catalog)
    return _parse_public_trade(trade, market.symbol if market is not None else None)


def parse_trades(
    trades: Iterable[Mapping[str, Any]],
    catalog: MarketCatalog,
    market: Optional[Market] = None,
    since: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[Trade]:
    parsed = [parse_trade(t, catalog, market) for t in trades or []]
    if market is not None:
        parsed = [t for t in parsed if t.symbol == market.symbol]
    parsed.sort(key=lambda t: (t.timestamp is None, t.timestamp or 0))
    return filter_by_since_limit(parsed, since, limit)


def build_trades_request(
    market: Market, since: Optional[int] = None, limit: Optional[int] = None
) -> Dict[str, Any]:
    request: Dict[str, Any] = {"tradingPair": market.id}
    if since is not None:
        request["after"] = int(since // 1000)
    if limit is not None:
        request["limit"] = limit
    return request


# ---------- Candles ----------

def parse_ohlcv(row: Sequence[Any]) -> Candle:
    """Native ``[ts, low, high, open, close, volume]`` -> ``(ts, open, high, low, close, volume)``."""
    return Candle(
        timestamp=safe_integer(row, 0),
        open=safe_decimal(row, 3),
        high=safe_decimal(row, 2),
        low=safe_decimal(row, 1),
        close=safe_decimal(row, 4),
        volume=safe_decimal(row, 5),
    )


def parse_ohlcvs(
    rows: Iterable[Sequence[Any]],
    since: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[Candle]:
    candles = sorted(
        (parse_ohlcv(r) for r in rows or []),
        key=lambda c: (c.timestamp is None, c.timestamp or 0),
    )
    return filter_by_since_limit(candles, since, limit)


_TIMEFRAME_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800, "M": 2592000, "y": 31536000}


def parse_timeframe(timeframe: str) -> int:
    """Duration of ``timeframe`` in seconds, e.g. ``"5m"`` -> 300."""
    try:
        amount = int(timeframe[:-1])
        unit = _TIMEFRAME_UNITS[timeframe[-1]]
    except (KeyError, ValueError, IndexError) as exc:
        raise DomainBadRequest(f"Invalid timeframe '{timeframe}'") from exc
    return amount * unit


def build_ohlcv_request(
    market: Market,
    timeframe: str,
    timeframes: Mapping[str, str],
    now_ms: int,
    since: Optional[int] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Candle query window: without ``since`` the most recent ``limit`` intervals
    ending now, otherwise ``limit`` intervals starting at ``since``.
    """
    interval = timeframes.get(timeframe)
    if interval is None:
        raise DomainBadRequest(f"Unsupported timeframe '{timeframe}'")
    limit = DEFAULT_OHLCV_LIMIT if limit is None else limit
    span_ms = limit * parse_timeframe(timeframe) * 1000
    request: Dict[str, Any] = {"tradingPair": market.id, "interval": interval}
    if since is None:
        request["end"] = now_ms
        request["start"] = now_ms - span_ms
    else:
        request["start"] = since
        request["end"] = since + span_ms
    return request


def parse_time(response: Mapping[str, Any]) -> Optional[int]:
    """{"serverTime": 1608327726656}"""
    return safe_integer(response, "serverTime")
