from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Tuple

import pytest

pytestmark = pytest.mark.unit

from gopax_adapter.config import GopaxConfig
from gopax_adapter.services.domain.enums import OrderStatus
from gopax_adapter.services.domain.exceptions import (
    DomainBadRequest,
    DomainBadSymbol,
    DomainInvalidAddress,
    DomainInvalidOrder,
)
from gopax_adapter.services.infrastructure.gopax.gopax_client import GopaxClient

NOW_MS = 1608400000000

PAIRS = [
    {
        "id": 1,
        "name": "ETH-KRW",
        "baseAsset": "ETH",
        "quoteAsset": "KRW",
        "baseAssetScale": 8,
        "quoteAssetScale": 0,
        "priceMin": 1,
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
    },
]

ASSETS = [
    {"id": "KRW", "name": "대한민국 원", "scale": 0},
    {"id": "ETH", "name": "이더리움", "scale": 8},
    {"id": "ZEC", "name": "지캐시", "scale": 8},
]


def _order(**overrides: Any) -> Dict[str, Any]:
    order = {
        "id": "453324",
        "status": "placed",
        "tradingPairName": "ZEC-KRW",
        "side": "buy",
        "type": "limit",
        "price": 1000000,
        "amount": 4,
        "remaining": 4,
        "timeInForce": "gtc",
        "createdAt": "2020-09-25T04:06:20.000Z",
    }
    order.update(overrides)
    return order


class _StubGateway:
    """Records every call and answers from a path -> payload table."""

    base_url = "https://api.gopax.co.kr"

    def __init__(self, responses: Dict[Tuple[str, str], Any]) -> None:
        self._responses = {
            ("GET", "trading-pairs"): PAIRS,
            ("GET", "assets"): ASSETS,
            **responses,
        }
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    def _answer(self, method: str, path: str, params: Any) -> Any:
        self.calls.append((method, path, dict(params or {})))
        return self._responses[(method, path)]

    def public_get(self, path: str, params: Any = None) -> Any:
        return self._answer("GET", path, params)

    def private_get(self, path: str, params: Any = None) -> Any:
        return self._answer("GET", path, params)

    def private_post(self, path: str, params: Any = None) -> Any:
        return self._answer("POST", path, params)

    def private_delete(self, path: str, params: Any = None) -> Any:
        return self._answer("DELETE", path, params)

    def paths(self) -> List[str]:
        return [path for _, path, _ in self.calls]


def _client(responses: Dict[Tuple[str, str], Any] | None = None, **cfg: Any) -> tuple[GopaxClient, _StubGateway]:
    gateway = _StubGateway(responses or {})
    config = GopaxConfig(api_key="test-key", secret="Z29wYXgtdGVzdC1zZWNyZXQ=", **cfg)
    return GopaxClient(config, gateway=gateway, timestamp_provider=lambda: NOW_MS), gateway


def test_load_markets_is_cached() -> None:
    client, gateway = _client()

    catalog = client.load_markets()
    assert catalog.symbols == ["ETH/KRW", "ZEC/KRW"]
    client.load_markets()
    assert gateway.paths() == ["trading-pairs", "assets"]

    client.load_markets(reload=True)
    assert gateway.paths().count("trading-pairs") == 2
    assert client.catalog is not None
    assert client.base_url == "https://api.gopax.co.kr"


def test_fetch_ticker_addresses_pair() -> None:
    client, gateway = _client(
        {("GET", "trading-pairs/{tradingPair}/ticker"): {"price": 25087000, "time": "2020-12-18T21:42:13.774Z"}}
    )
    ticker = client.fetch_ticker("ETH/KRW")

    assert ticker.symbol == "ETH/KRW"
    assert ticker.last == Decimal("25087000")
    assert gateway.calls[-1] == ("GET", "trading-pairs/{tradingPair}/ticker", {"tradingPair": "ETH-KRW"})


def test_fetch_ticker_unknown_symbol() -> None:
    client, _ = _client()
    with pytest.raises(DomainBadSymbol):
        client.fetch_ticker("DOGE/KRW")


def test_fetch_order_book_and_ohlcv() -> None:
    client, gateway = _client(
        {
            ("GET", "trading-pairs/{tradingPair}/book"): {"sequence": 5, "bid": [["1", 10, 1]], "ask": []},
            ("GET", "trading-pairs/{tradingPair}/candles"): [[NOW_MS - 60000, 1, 3, 2, 2.5, 10]],
        }
    )
    book = client.fetch_order_book("ZEC/KRW")
    assert book.symbol == "ZEC/KRW"
    assert book.nonce == 5

    candles = client.fetch_ohlcv("ZEC/KRW", "1m", limit=2)
    assert candles[0].open == Decimal("2")
    assert gateway.calls[-1][2] == {
        "tradingPair": "ZEC-KRW",
        "interval": "1",
        "start": NOW_MS - 120000,
        "end": NOW_MS,
    }


def test_fetch_balance() -> None:
    client, _ = _client({("GET", "balances"): [{"asset": "KRW", "avail": 100, "hold": 5, "pendingWithdrawal": 0}]})
    balances = client.fetch_balance()
    assert balances["KRW"].total == Decimal("105")
    assert balances.get("ETH").total == Decimal("0")


def test_fetch_deposit_address_missing() -> None:
    client, _ = _client({("GET", "crypto-deposit-addresses"): [{"asset": "ETH", "address": "0xabc123"}]})
    assert client.fetch_deposit_address("ETH").address == "0xabc123"
    with pytest.raises(DomainInvalidAddress):
        client.fetch_deposit_address("ZEC")


def test_fetch_transactions_validates_before_any_request() -> None:
    client, gateway = _client()
    with pytest.raises(DomainBadRequest):
        client.fetch_transactions(since=NOW_MS + 1)
    assert gateway.calls == []


def test_fetch_transactions_for_code() -> None:
    raw = [
        {"id": 1, "asset": "ETH", "type": "crypto_deposit", "netAmount": 1, "reviewStartedAt": 1600000000},
        {"id": 2, "asset": "ZEC", "type": "crypto_deposit", "netAmount": 1, "reviewStartedAt": 1600000001},
    ]
    client, gateway = _client({("GET", "deposit-withdrawal-status"): raw})
    txs = client.fetch_transactions("ETH", limit=5)
    assert [t.id for t in txs] == [1]
    assert gateway.calls[-1][2] == {}


def test_create_limit_order() -> None:
    client, gateway = _client({("POST", "orders"): _order()})
    order = client.create_order("ZEC/KRW", "limit", "buy", "4.00009", "1000000.5", {"clientOrderId": "abc", "protection": "yes"})

    method, path, body = gateway.calls[-1]
    assert (method, path) == ("POST", "orders")
    assert body == {
        "tradingPairName": "ZEC-KRW",
        "side": "buy",
        "type": "limit",
        "price": "1000000",
        "amount": "4",
        "clientOrderId": "abc",
        "protection": "yes",
    }
    assert order.status is OrderStatus.OPEN
    assert order.symbol == "ZEC/KRW"


def test_create_market_buy_without_price_never_reaches_gateway() -> None:
    client, gateway = _client()
    with pytest.raises(DomainInvalidOrder):
        client.create_order("ETH/KRW", "market", "buy", 1)
    assert ("POST", "orders") not in [(m, p) for m, p, _ in gateway.calls]


def test_cancel_order_reapplies_id() -> None:
    client, gateway = _client({("DELETE", "orders/{orderId}"): {}})
    order = client.cancel_order("453324")
    assert order.id == "453324"
    assert gateway.calls[-1] == ("DELETE", "orders/{orderId}", {"orderId": "453324"})


def test_fetch_order_by_client_id() -> None:
    client, gateway = _client({("GET", "orders/clientOrderId/{clientOrderId}"): _order(clientOrderId="abc")})
    order = client.fetch_order(None, params={"clientOrderId": "abc"})
    assert order.client_order_id == "abc"
    assert gateway.calls[-1][2] == {"clientOrderId": "abc"}


def test_open_and_closed_orders() -> None:
    history = [
        _order(id="1", status="completed"),
        _order(id="2", status="placed"),
        _order(id="3", status="completed", tradingPairName="ETH-KRW"),
        _order(id="4", status="completed", createdAt="2020-09-25T04:07:00.000Z"),
    ]
    client, gateway = _client({("GET", "orders"): history})

    client.fetch_open_orders()
    assert gateway.calls[-1][2] == {"includePast": "false"}

    closed = client.fetch_closed_orders("ZEC/KRW", limit=1)
    assert gateway.calls[-1][2] == {"includePast": "true"}
    assert [o.id for o in closed] == ["1"]


def test_fetch_my_trades() -> None:
    raw = [
        {"id": 1, "orderId": 9, "baseAmount": 1, "price": 10, "fee": 0.1, "side": "sell",
         "tradingPairName": "ETH-KRW", "timestamp": "2020-09-25T04:06:30.000Z", "position": "taker"},
    ]
    client, gateway = _client({("GET", "trades"): raw})
    trades = client.fetch_my_trades(since=NOW_MS - 5000, limit=10)
    assert gateway.calls[-1][2] == {"after": (NOW_MS - 5000) // 1000, "limit": 10}
    assert trades == []

    trades = client.fetch_my_trades()
    assert trades[0].fee.currency == "KRW"
