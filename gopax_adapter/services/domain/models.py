"""Canonical, exchange-agnostic trading records.

Every record is immutable and keeps the native payload it was built from in
``info``. Numeric fields are ``Decimal`` or ``None``: a field the exchange did
not send stays ``None`` and is never replaced by zero.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from .enums import OrderStatus, TransactionType


# ---------- Catalog ----------

@dataclass(frozen=True)
class MinMax:
    min: Optional[Decimal] = None
    max: Optional[Decimal] = None


@dataclass(frozen=True)
class MarketPrecision:
    price: Optional[int] = None   # quote currency decimal scale
    amount: Optional[int] = None  # base currency decimal scale


@dataclass(frozen=True)
class MarketLimits:
    amount: MinMax = field(default_factory=MinMax)
    price: MinMax = field(default_factory=MinMax)
    cost: MinMax = field(default_factory=MinMax)


@dataclass(frozen=True)
class Market:
    id: str                      # native pair name, e.g. "ETH-KRW"
    symbol: str                  # canonical "ETH/KRW"
    base: str
    quote: str
    base_id: Optional[str]
    quote_id: Optional[str]
    numeric_id: Optional[int] = None
    active: bool = True
    maker: Optional[Decimal] = None  # fractional fee rate
    taker: Optional[Decimal] = None
    precision: MarketPrecision = field(default_factory=MarketPrecision)
    limits: MarketLimits = field(default_factory=MarketLimits)
    info: Any = None


@dataclass(frozen=True)
class CurrencyLimits:
    amount: MinMax = field(default_factory=MinMax)
    withdraw: MinMax = field(default_factory=MinMax)


@dataclass(frozen=True)
class Currency:
    id: Optional[str]
    code: Optional[str]
    name: Optional[str] = None
    active: bool = True
    fee: Optional[Decimal] = None  # withdrawal fee
    precision: Optional[int] = None
    limits: CurrencyLimits = field(default_factory=CurrencyLimits)
    info: Any = None


# ---------- Market data ----------

@dataclass(frozen=True)
class Ticker:
    symbol: Optional[str]
    timestamp: Optional[int]
    datetime: Optional[str]
    high: Optional[Decimal] = None
    low: Optional[Decimal] = None
    bid: Optional[Decimal] = None
    bid_volume: Optional[Decimal] = None
    ask: Optional[Decimal] = None
    ask_volume: Optional[Decimal] = None
    vwap: Optional[Decimal] = None
    open: Optional[Decimal] = None
    close: Optional[Decimal] = None
    last: Optional[Decimal] = None
    previous_close: Optional[Decimal] = None
    change: Optional[Decimal] = None
    percentage: Optional[Decimal] = None
    average: Optional[Decimal] = None
    base_volume: Optional[Decimal] = None
    quote_volume: Optional[Decimal] = None
    info: Any = None


PriceLevel = Tuple[Decimal, Decimal]


@dataclass(frozen=True)
class OrderBook:
    symbol: Optional[str]
    bids: Tuple[PriceLevel, ...]  # best (highest) price first
    asks: Tuple[PriceLevel, ...]  # best (lowest) price first
    nonce: Optional[int]
    timestamp: Optional[int] = None
    datetime: Optional[str] = None


@dataclass(frozen=True)
class Fee:
    currency: Optional[str]
    cost: Optional[Decimal]
    rate: Optional[Decimal] = None


@dataclass(frozen=True)
class Trade:
    id: Optional[str]
    timestamp: Optional[int]
    datetime: Optional[str]
    symbol: Optional[str]
    side: Optional[str]
    price: Optional[Decimal]
    amount: Optional[Decimal]
    cost: Optional[Decimal]
    order: Optional[int] = None
    type: Optional[str] = None
    taker_or_maker: Optional[str] = None
    fee: Optional[Fee] = None
    info: Any = None


@dataclass(frozen=True)
class Candle:
    timestamp: Optional[int]
    open: Optional[Decimal]
    high: Optional[Decimal]
    low: Optional[Decimal]
    close: Optional[Decimal]
    volume: Optional[Decimal]

    def as_list(self) -> list:
        """Conventional ``[timestamp, open, high, low, close, volume]`` row."""
        return [self.timestamp, self.open, self.high, self.low, self.close, self.volume]


# ---------- Account ----------

@dataclass(frozen=True)
class Balance:
    free: Optional[Decimal] = None
    used: Optional[Decimal] = None
    total: Optional[Decimal] = None


ZERO_BALANCE = Balance(free=Decimal("0"), used=Decimal("0"), total=Decimal("0"))


@dataclass(frozen=True)
class Balances(Mapping[str, Balance]):
    """Per-currency balances keyed by canonical code.

    Looking up a currency the exchange did not report yields a zero balance.
    """

    accounts: Dict[str, Balance]
    info: Any = None

    def __getitem__(self, code: str) -> Balance:
        return self.accounts[code]

    def __iter__(self) -> Iterator[str]:
        return iter(self.accounts)

    def __len__(self) -> int:
        return len(self.accounts)

    def get(self, code: str, default: Balance | None = None) -> Balance:  # type: ignore[override]
        if code in self.accounts:
            return self.accounts[code]
        return ZERO_BALANCE if default is None else default


@dataclass(frozen=True)
class DepositAddress:
    currency: Optional[str]
    address: str
    tag: Optional[str] = None
    info: Any = None


@dataclass(frozen=True)
class Transaction:
    id: Optional[int]
    txid: Optional[str]
    timestamp: Optional[int]
    datetime: Optional[str]
    type: TransactionType
    amount: Optional[Decimal]
    currency: Optional[str]
    status: Optional[str]
    fee: Fee
    updated: Optional[int] = None
    address_from: Optional[str] = None
    address_to: Optional[str] = None
    tag_from: Optional[str] = None
    tag_to: Optional[str] = None
    info: Any = None


# ---------- Orders ----------

@dataclass(frozen=True)
class Order:
    id: Optional[str]
    client_order_id: Optional[str]
    timestamp: Optional[int]
    datetime: Optional[str]
    last_trade_timestamp: Optional[int]
    status: OrderStatus
    symbol: Optional[str]
    type: Optional[str]
    time_in_force: Optional[str]
    side: Optional[str]
    price: Optional[Decimal]
    average: Optional[Decimal]
    amount: Optional[Decimal]
    filled: Optional[Decimal]
    remaining: Optional[Decimal]
    cost: Optional[Decimal]
    fee: Fee
    stop_price: Optional[Decimal] = None
    info: Any = None

    def with_id(self, order_id: str | None) -> "Order":
        """Return a copy addressed by ``order_id`` (cancel responses omit it)."""
        return replace(self, id=order_id)
