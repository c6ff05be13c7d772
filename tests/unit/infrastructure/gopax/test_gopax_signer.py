from __future__ import annotations

import base64
import hashlib
import hmac

import pytest

pytestmark = pytest.mark.unit

from gopax_adapter.services.domain.exceptions import DomainAuthError
from gopax_adapter.services.infrastructure.gopax.signer import (
    Credentials,
    canonical_string,
    implode_params,
    sign,
)

BASE_URL = "https://api.gopax.co.kr"
TS = "1608400000000"
SECRET = base64.b64encode(b"gopax-test-secret").decode()
CREDS = Credentials(api_key="test-key", secret=SECRET)


def _expected_signature(message: str, secret: str = SECRET) -> str:
    digest = hmac.new(base64.b64decode(secret), message.encode(), hashlib.sha512).digest()
    return base64.b64encode(digest).decode()


def test_get_orders_signs_query_but_url_omits_it() -> None:
    signed = sign("orders", "private", "GET", {"a": 1}, base_url=BASE_URL, credentials=CREDS, timestamp=TS)

    assert signed.url == "https://api.gopax.co.kr/orders"
    assert signed.body is None
    assert signed.headers == {
        "api-key": "test-key",
        "timestamp": TS,
        "signature": _expected_signature("t" + TS + "GET/orders?a=1"),
    }


def test_post_orders_signs_minified_body() -> None:
    signed = sign("orders", "private", "POST", {"b": 2}, base_url=BASE_URL, credentials=CREDS, timestamp=TS)

    assert signed.url == "https://api.gopax.co.kr/orders"
    assert signed.body == '{"b":2}'
    assert signed.headers["signature"] == _expected_signature("t" + TS + 'POST/orders{"b":2}')


def test_private_get_elsewhere_drops_query_from_signature() -> None:
    signed = sign("balances", "private", "GET", {"x": "y"}, base_url=BASE_URL, credentials=CREDS, timestamp=TS)
    assert signed.url == "https://api.gopax.co.kr/balances"
    assert signed.headers["signature"] == _expected_signature("t" + TS + "GET/balances")


def test_path_parameters_are_substituted() -> None:
    signed = sign(
        "orders/{orderId}",
        "private",
        "DELETE",
        {"orderId": "453324"},
        base_url=BASE_URL,
        credentials=CREDS,
        timestamp=TS,
    )
    assert signed.url == "https://api.gopax.co.kr/orders/453324"
    assert signed.method == "DELETE"
    assert signed.headers["signature"] == _expected_signature("t" + TS + "DELETE/orders/453324")


def test_public_request_carries_query_and_no_auth() -> None:
    signed = sign(
        "trading-pairs/{tradingPair}/book",
        "public",
        "GET",
        {"tradingPair": "ETH-KRW", "level": 3},
        base_url=BASE_URL,
    )
    assert signed.url == "https://api.gopax.co.kr/trading-pairs/ETH-KRW/book?level=3"
    assert signed.headers is None


def test_caller_headers_are_replaced() -> None:
    signed = sign(
        "balances",
        "private",
        headers={"Content-Type": "application/json"},
        base_url=BASE_URL,
        credentials=CREDS,
        timestamp=TS,
    )
    assert set(signed.headers) == {"api-key", "timestamp", "signature"}


def test_secret_changes_signature_not_canonical_string() -> None:
    other = Credentials(api_key="test-key", secret=base64.b64encode(b"another-secret").decode())
    a = sign("orders", "private", "POST", {"b": 2}, base_url=BASE_URL, credentials=CREDS, timestamp=TS)
    b = sign("orders", "private", "POST", {"b": 2}, base_url=BASE_URL, credentials=other, timestamp=TS)

    assert a.body == b.body
    assert a.headers["signature"] != b.headers["signature"]
    assert canonical_string("POST", "/orders", TS, {"b": 2}) == ('t' + TS + 'POST/orders{"b":2}', '{"b":2}')


@pytest.mark.parametrize("creds", [None, Credentials(api_key=None, secret=SECRET), Credentials(api_key="k", secret="")])
def test_private_call_requires_credentials(creds) -> None:
    with pytest.raises(DomainAuthError):
        sign("balances", "private", base_url=BASE_URL, credentials=creds, timestamp=TS)


def test_non_base64_secret_rejected() -> None:
    with pytest.raises(DomainAuthError):
        sign("balances", "private", base_url=BASE_URL, credentials=Credentials("k", "not base64!"), timestamp=TS)


def test_implode_params_leaves_unknown_placeholders() -> None:
    assert implode_params("orders/{orderId}", {}) == "orders/{orderId}"
