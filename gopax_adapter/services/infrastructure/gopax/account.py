"""Account payload normalization: balances, deposit addresses and transactions."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from gopax_adapter.services.domain.enums import TransactionType
from gopax_adapter.services.domain.exceptions import DomainInvalidAddress
from gopax_adapter.services.domain.models import (
    Balance,
    Balances,
    Currency,
    DepositAddress,
    Fee,
    Transaction,
)
from .markets import MarketCatalog
from .request_validators import validate_history_window
from .utils.values import (
    filter_by_since_limit,
    iso8601,
    safe_decimal,
    safe_integer,
    safe_string,
    sum_present,
)

logger = logging.getLogger("services.infrastructure.gopax.account")


# === Balances ===


def parse_balance(response: Sequence[Mapping[str, Any]], catalog: MarketCatalog) -> Balances:
    """
    [{"asset": "KRW", "avail": 1759466.76, "hold": 16500,
      "pendingWithdrawal": 0, "lastUpdatedAt": "1600684352032"}]

    free = avail; used = hold + pendingWithdrawal.
    """
    accounts: Dict[str, Balance] = {}
    for entry in response or []:
        code = catalog.currency_code(safe_string(entry, "asset"))
        if code is None:
            logger.debug("Balance entry without asset skipped: %r", entry)
            continue
        free = safe_decimal(entry, "avail")
        used = sum_present(safe_decimal(entry, "hold"), safe_decimal(entry, "pendingWithdrawal"))
        total = free + used if free is not None and used is not None else None
        accounts[code] = Balance(free=free, used=used, total=total)
    return Balances(accounts=accounts, info=response)


# === Deposit addresses ===


def check_address(address: Optional[str]) -> str:
    """Reject absent, blank, single-character-repeated or whitespace-containing addresses."""
    if address is None:
        raise DomainInvalidAddress("gopax address is undefined")
    if len(set(address)) <= 1 or " " in address:
        raise DomainInvalidAddress(f"gopax address is invalid: \"{address}\"")
    return address


def parse_deposit_address(entry: Mapping[str, Any], catalog: MarketCatalog) -> DepositAddress:
    """
    {"asset": "BTC", "address": "1CwC2cMFu1jRQUBtw925cENbT1kctJBMdm",
     "memoId": null, "createdAt": 1594802312}
    """
    address = check_address(safe_string(entry, "address"))
    return DepositAddress(
        currency=catalog.currency_code(safe_string(entry, "asset")),
        address=address,
        tag=safe_string(entry, "memoId"),
        info=entry,
    )


def parse_deposit_addresses(
    response: Iterable[Mapping[str, Any]],
    catalog: MarketCatalog,
    codes: Optional[Sequence[str]] = None,
) -> Dict[str, DepositAddress]:
    addresses = [parse_deposit_address(a, catalog) for a in response or []]
    if codes:
        wanted = {catalog.currency_code(c) for c in codes}
        addresses = [a for a in addresses if a.currency in wanted]
    return {a.currency: a for a in addresses if a.currency is not None}


def select_deposit_address(
    addresses: Mapping[str, DepositAddress], code: str
) -> DepositAddress:
    found = addresses.get(code)
    if found is None:
        raise DomainInvalidAddress(f"gopax fetchDepositAddress() {code} address not found")
    return found


# === Transactions ===


def _seconds_to_ms(value: Optional[int]) -> Optional[int]:
    return None if value is None else value * 1000


def parse_transaction(
    transaction: Mapping[str, Any],
    catalog: MarketCatalog,
    currency: Optional[Currency] = None,
) -> Transaction:
    """
    {"id": 640, "asset": "BTC", "type": "crypto_withdrawal", "netAmount": 0.0001,
     "feeAmount": 0.0005, "status": "completed", "reviewStartedAt": 1595556218,
     "completedAt": 1595556902, "txId": "eaca5ad3...", "sourceAddress": null,
     "destinationAddress": "3H8...", "sourceMemoId": null, "destinationMemoId": null}
    """
    amount = safe_decimal(transaction, "netAmount")
    fee_cost = safe_decimal(transaction, "feeAmount")
    rate: Optional[Decimal] = None
    if fee_cost is not None and amount is not None and amount != 0:
        rate = fee_cost / amount

    timestamp = _seconds_to_ms(safe_integer(transaction, "reviewStartedAt"))
    updated = timestamp
    completed = safe_integer(transaction, "completedAt")
    if completed:
        updated = completed * 1000

    code = catalog.currency_code(safe_string(transaction, "asset"))
    if not code and currency is not None:
        code = currency.code

    return Transaction(
        id=safe_integer(transaction, "id"),
        txid=safe_string(transaction, "txId"),
        timestamp=timestamp,
        datetime=iso8601(timestamp),
        type=TransactionType.from_native(safe_string(transaction, "type")),
        amount=amount,
        currency=code,
        status=safe_string(transaction, "status"),
        fee=Fee(currency=code, cost=fee_cost, rate=rate),
        updated=updated,
        address_from=safe_string(transaction, "sourceAddress"),
        address_to=safe_string(transaction, "destinationAddress"),
        tag_from=safe_string(transaction, "sourceMemoId"),
        tag_to=safe_string(transaction, "destinationMemoId"),
        info=transaction,
    )


def parse_transactions(
    response: Iterable[Mapping[str, Any]],
    catalog: MarketCatalog,
    currency: Optional[Currency] = None,
    since: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[Transaction]:
    parsed = [parse_transaction(t, catalog, currency) for t in response or []]
    if currency is not None and currency.code:
        parsed = [t for t in parsed if t.currency == currency.code]
    parsed.sort(key=lambda t: (t.timestamp is None, t.timestamp or 0))
    return filter_by_since_limit(parsed, since, limit)


def build_transactions_request(
    code: Optional[str],
    since: Optional[int],
    limit: Optional[int],
    now_ms: int,
    params: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """``GET /deposit-withdrawal-status`` query; validated before any request is sent."""
    validate_history_window(since, limit, now_ms)
    request: Dict[str, Any] = {}
    if since is not None:
        request["after"] = since
    if code is None and limit is not None:
        request["limit"] = limit
    request.update(params or {})
    return request


def build_my_trades_request(
    symbol: Optional[str],
    since: Optional[int],
    limit: Optional[int],
    now_ms: int,
    params: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """``GET /trades`` query; ``after`` is in seconds, ``limit`` only applies across all pairs."""
    request: Dict[str, Any] = {}
    if since is not None:
        validate_history_window(since, None, now_ms)
        request["after"] = since // 1000
    if limit is not None and symbol is None:
        validate_history_window(None, limit, now_ms)
        request["limit"] = limit
    request.update(params or {})
    return request
