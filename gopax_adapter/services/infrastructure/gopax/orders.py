"""Order lifecycle translation: canonical intents -> wire requests, wire orders -> :class:`Order`."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from gopax_adapter.config import GopaxOptions
from gopax_adapter.services.domain.enums import OrderStatus
from gopax_adapter.services.domain.exceptions import DomainBadRequest, DomainInvalidOrder
from gopax_adapter.services.domain.models import Fee, Market, Order
from .markets import MarketCatalog, split_symbol
from .request_validators import (
    validate_client_order_id,
    validate_order_side,
    validate_order_type,
    validate_time_in_force,
)
from .utils.precision import truncate_to_precision
from .utils.values import (
    filter_by_since_limit,
    iso8601,
    multiply,
    omit,
    parse8601,
    safe_decimal,
    safe_string,
    safe_string_lower,
    safe_value,
    sum_present,
    to_decimal,
)

logger = logging.getLogger("services.infrastructure.gopax.orders")

ORDER_BY_ID_PATH = "orders/{orderId}"
ORDER_BY_CLIENT_ID_PATH = "orders/clientOrderId/{clientOrderId}"


# ---------- Outbound ----------

def _require_decimal(value: Any, name: str) -> Decimal:
    dec = to_decimal(value)
    if dec is None:
        raise DomainInvalidOrder(f"Missing {name}")
    if dec <= 0:
        raise DomainInvalidOrder(f"{name} must be > 0 (got {dec})")
    return dec


def _market_buy_total(
    amount: Decimal, price: Any, options: GopaxOptions
) -> Decimal:
    """Quote-currency amount to spend on a market buy."""
    if not options.create_market_buy_order_requires_price:
        return amount
    if price is None:
        raise DomainInvalidOrder(
            "gopax createOrder() requires the price argument with market buy orders to "
            "calculate total order cost (amount to spend), where cost = amount * price. "
            "Supply a price argument if you want the cost to be calculated for you from "
            "price and amount, or, alternatively, disable "
            "create_market_buy_order_requires_price and supply the total cost value in "
            "the amount argument"
        )
    return _require_decimal(price, "price") * amount


def build_create_order_request(
    market: Market,
    order_type: str,
    side: str,
    amount: Any,
    price: Any = None,
    params: Optional[Mapping[str, Any]] = None,
    *,
    options: GopaxOptions,
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Build the ``POST /orders`` body for a canonical order intent.

    Returns ``(request, residual_params)``; the optional fields lifted into the
    request are removed from the residual params so they are sent once.
    Prices and amounts are truncated to the market precision, never rounded up.
    """
    order_type = validate_order_type(order_type)
    side = validate_order_side(side)
    qty = _require_decimal(amount, "amount")
    request: Dict[str, Any] = {
        "tradingPairName": market.id,
        "side": side,
        "type": order_type,
    }
    if order_type == "limit":
        px = _require_decimal(price, "price")
        request["price"] = truncate_to_precision(px, market.precision.price)
        request["amount"] = truncate_to_precision(qty, market.precision.amount)
    elif side == "buy":
        total = _market_buy_total(qty, price, options)
        request["amount"] = truncate_to_precision(total, market.precision.price)
    else:
        request["amount"] = truncate_to_precision(qty, market.precision.amount)

    residual: Dict[str, Any] = dict(params or {})
    client_order_id = safe_string(residual, "clientOrderId")
    if client_order_id is not None:
        request["clientOrderId"] = validate_client_order_id(client_order_id)
        residual = omit(residual, "clientOrderId")
    stop_price = safe_decimal(residual, "stopPrice")
    if stop_price is not None:
        request["stopPrice"] = truncate_to_precision(stop_price, market.precision.price)
        residual = omit(residual, "stopPrice")
    time_in_force = safe_string_lower(residual, "timeInForce")
    if time_in_force is not None:
        request["timeInForce"] = validate_time_in_force(time_in_force)
        residual = omit(residual, "timeInForce")

    logger.debug(
        "gopax_create_order_request symbol=%s type=%s side=%s amount=%s price=%s",
        market.symbol,
        order_type,
        side,
        request.get("amount"),
        request.get("price"),
    )
    return request, residual


@dataclass(frozen=True)
class OrderLookup:
    """Endpoint variant and path parameters for one order, by id or by client id."""

    path: str
    request: Dict[str, Any]
    params: Dict[str, Any]


def build_order_lookup(
    order_id: Optional[str], params: Optional[Mapping[str, Any]] = None
) -> OrderLookup:
    """
    Address an order for fetch/cancel.

    A ``clientOrderId`` in ``params`` selects the client-id endpoint and the
    exchange id is not sent; otherwise ``order_id`` is used.
    """
    client_order_id = safe_string(params, "clientOrderId")
    residual = omit(params, "clientOrderId")
    if client_order_id is not None:
        return OrderLookup(
            path=ORDER_BY_CLIENT_ID_PATH,
            request={"clientOrderId": client_order_id},
            params=residual,
        )
    if order_id is None or str(order_id) == "":
        raise DomainBadRequest("Provide an order id or clientOrderId")
    return OrderLookup(
        path=ORDER_BY_ID_PATH,
        request={"orderId": str(order_id)},
        params=residual,
    )


def build_orders_request(
    params: Optional[Mapping[str, Any]] = None, *, include_past: bool = True
) -> Dict[str, Any]:
    """``GET /orders`` query; open-order listings exclude past orders at the source."""
    request = dict(params or {})
    if not include_past:
        request["includePast"] = "false"
    else:
        request.setdefault("includePast", "true")
    return request


# ---------- Inbound ----------

def _fee_component(balance_change: Any, key: str) -> Optional[Decimal]:
    component = safe_value(balance_change, key)
    taking = safe_decimal(component, "taking")
    making = safe_decimal(component, "making")
    return sum_present(
        abs(taking) if taking is not None else None,
        abs(making) if making is not None else None,
    )


def parse_order(
    order: Mapping[str, Any],
    catalog: MarketCatalog,
    market: Optional[Market] = None,
) -> Order:
    """
    {"id": "453324", "clientOrderId": "zeckrw23456", "status": "updated",
     "tradingPairName": "ZEC-KRW", "side": "buy", "type": "limit",
     "price": 1000000, "stopPrice": null, "amount": 4, "remaining": 1,
     "protection": "yes", "timeInForce": "gtc",
     "createdAt": "2020-09-25T04:06:20.000Z", "updatedAt": "2020-09-25T04:06:29.000Z",
     "balanceChange": {"baseGross": 3, "baseFee": {"taking": 0, "making": -0.0012},
                       "baseNet": 2.9988, "quoteGross": -3000000,
                       "quoteFee": {"taking": 0, "making": 0}, "quoteNet": -3000000}}
    """
    created = safe_string(order, "createdAt")
    timestamp = parse8601(created)
    price = safe_decimal(order, "price")
    amount = safe_decimal(order, "amount")
    remaining = safe_decimal(order, "remaining")
    filled = amount - remaining if amount is not None and remaining is not None else None
    side = safe_string(order, "side")
    symbol = catalog.safe_symbol(safe_string(order, "tradingPairName"), market)
    time_in_force = safe_string(order, "timeInForce")
    if time_in_force is not None:
        time_in_force = time_in_force.upper()

    base, quote = split_symbol(symbol)
    balance_change = safe_value(order, "balanceChange", {})
    if side == "buy":
        fee = Fee(currency=base, cost=_fee_component(balance_change, "baseFee"))
    else:
        fee = Fee(currency=quote, cost=_fee_component(balance_change, "quoteFee"))

    return Order(
        id=safe_string(order, "id"),
        client_order_id=safe_string(order, "clientOrderId"),
        timestamp=timestamp,
        datetime=iso8601(timestamp),
        last_trade_timestamp=parse8601(safe_string(order, "updatedAt")),
        status=OrderStatus.from_native(safe_string(order, "status")),
        symbol=symbol,
        type=safe_string(order, "type"),
        time_in_force=time_in_force,
        side=side,
        price=price,
        average=price,
        amount=amount,
        filled=filled,
        remaining=remaining,
        cost=multiply(filled, price),
        fee=fee,
        stop_price=safe_decimal(order, "stopPrice"),
        info=order,
    )


def parse_orders(
    orders: Iterable[Mapping[str, Any]],
    catalog: MarketCatalog,
    market: Optional[Market] = None,
    since: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[Order]:
    parsed = [parse_order(o, catalog, market) for o in orders or []]
    if market is not None:
        parsed = [o for o in parsed if o.symbol == market.symbol]
    parsed.sort(key=lambda o: (o.timestamp is None, o.timestamp or 0))
    return filter_by_since_limit(parsed, since, limit)


def filter_closed_orders(orders: Iterable[Order], limit: Optional[int] = None) -> List[Order]:
    """Closed orders in history order, stopping after the first ``limit`` matches."""
    closed: List[Order] = []
    for order in orders:
        if order.status is OrderStatus.CLOSED:
            closed.append(order)
            if limit is not None and len(closed) == limit:
                break
    return closed
