from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List

import pytest
import requests

pytestmark = pytest.mark.unit

from gopax_adapter.config import GopaxConfig
from gopax_adapter.services.domain.exceptions import (
    DomainAuthError,
    DomainBadRequest,
    DomainExchangeDown,
    DomainInsufficientFunds,
    DomainRateLimit,
)
from gopax_adapter.services.infrastructure.gopax.gopax_rest import GopaxREST

NOW_MS = 1608400000000
TEST_SECRET = "Z29wYXgtdGVzdC1zZWNyZXQ="


@dataclass
class _DummyResponse:
    status_code: int
    text: str


class _RecordingSession:
    def __init__(self, *outcomes: Any) -> None:
        self._outcomes = list(outcomes)
        self.calls: List[dict] = []

    def request(self, method: str, url: str, **kwargs: Any) -> _DummyResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _ok(payload: Any) -> _DummyResponse:
    return _DummyResponse(200, json.dumps(payload))


def _gateway(session: _RecordingSession, **overrides: Any) -> tuple[GopaxREST, List[float]]:
    sleeps: List[float] = []
    cfg = GopaxConfig(api_key="test-key", secret=TEST_SECRET, **overrides)
    gateway = GopaxREST(cfg, session=session, timestamp_provider=lambda: NOW_MS, sleep=sleeps.append)
    return gateway, sleeps


def test_public_get_builds_url_and_decodes() -> None:
    session = _RecordingSession(_ok({"serverTime": NOW_MS}))
    gateway, _ = _gateway(session)

    assert gateway.public_get("time") == {"serverTime": NOW_MS}
    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://api.gopax.co.kr/time"
    assert call["headers"] is None
    assert call["data"] is None
    assert call["timeout"] == 10.0


def test_private_post_sends_signed_body() -> None:
    session = _RecordingSession(_ok({"id": "1"}))
    gateway, _ = _gateway(session)

    gateway.private_post("orders", {"tradingPairName": "ETH-KRW", "side": "buy"})
    call = session.calls[0]
    assert call["url"] == "https://api.gopax.co.kr/orders"
    assert call["data"] == '{"tradingPairName":"ETH-KRW","side":"buy"}'
    assert call["headers"]["timestamp"] == str(NOW_MS)
    assert set(call["headers"]) == {"api-key", "timestamp", "signature"}


def test_transport_errors_retried_with_backoff() -> None:
    session = _RecordingSession(
        requests.exceptions.ConnectionError("reset"),
        _DummyResponse(503, "unavailable"),
        _ok([]),
    )
    gateway, sleeps = _gateway(session)

    assert gateway.private_get("balances") == []
    assert len(session.calls) == 3
    assert sleeps == [0.25, 0.5]


def test_retries_exhausted_raise_exchange_down() -> None:
    session = _RecordingSession(requests.exceptions.Timeout("slow"), requests.exceptions.Timeout("slow"))
    gateway, sleeps = _gateway(session, max_retries=1)

    with pytest.raises(DomainExchangeDown):
        gateway.public_get("time")
    assert len(sleeps) == 1


def test_post_is_never_retried() -> None:
    session = _RecordingSession(requests.exceptions.ConnectionError("reset"), _ok({}))
    gateway, sleeps = _gateway(session)

    with pytest.raises(DomainExchangeDown):
        gateway.private_post("orders", {"side": "buy"})
    assert len(session.calls) == 1
    assert sleeps == []


def test_error_payload_classified_before_status() -> None:
    body = {"errorMessage": "Not enough amount"}
    session = _RecordingSession(_DummyResponse(400, json.dumps(body)))
    gateway, _ = _gateway(session)

    with pytest.raises(DomainInsufficientFunds):
        gateway.private_post("orders", {"side": "buy"})


def test_exact_code_auth_error() -> None:
    body = {"errorMessage": "Invalid API key", "errorCode": 10155}
    session = _RecordingSession(_DummyResponse(401, json.dumps(body)))
    gateway, _ = _gateway(session)

    with pytest.raises(DomainAuthError):
        gateway.private_get("balances")


@pytest.mark.parametrize(
    "status, kind",
    [(429, DomainRateLimit), (404, DomainBadRequest), (400, DomainBadRequest)],
)
def test_unclassified_http_errors(status, kind) -> None:
    session = _RecordingSession(_DummyResponse(status, "nope"))
    gateway, sleeps = _gateway(session)

    with pytest.raises(kind):
        gateway.public_get("time")
    assert sleeps == []


def test_empty_body_decodes_to_none() -> None:
    session = _RecordingSession(_DummyResponse(200, ""))
    gateway, _ = _gateway(session)

    assert gateway.private_delete("orders/{orderId}", {"orderId": "7"}) is None
    assert session.calls[0]["url"] == "https://api.gopax.co.kr/orders/7"


def test_private_call_without_credentials() -> None:
    session = _RecordingSession()
    gateway = GopaxREST(GopaxConfig(), session=session, timestamp_provider=lambda: NOW_MS)

    with pytest.raises(DomainAuthError):
        gateway.private_get("balances")
    assert session.calls == []
