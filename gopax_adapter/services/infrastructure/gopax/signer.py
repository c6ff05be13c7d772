"""Request signing for the Gopax REST API."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

from gopax_adapter.services.domain.exceptions import DomainAuthError

ORDERS_COLLECTION = "/orders"

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


@dataclass(frozen=True, slots=True)
class Credentials:
    api_key: str | None
    secret: str | None  # base64-encoded


@dataclass(frozen=True, slots=True)
class SignedRequest:
    url: str
    method: str
    body: Optional[str]
    headers: Optional[Dict[str, str]]


def _minified_json(obj: Any) -> str:
    """Return JSON string with no spaces between separators."""
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


def extract_params(path: str) -> list[str]:
    return _PLACEHOLDER.findall(path)


def implode_params(path: str, params: Mapping[str, Any]) -> str:
    """``orders/{orderId}`` + ``{"orderId": 7}`` -> ``orders/7``."""
    return _PLACEHOLDER.sub(lambda m: str(params.get(m.group(1), m.group(0))), path)


def canonical_string(
    method: str,
    endpoint: str,
    timestamp: str,
    query: Mapping[str, Any],
) -> tuple[str, Optional[str]]:
    """
    Build the string to sign and the request body.

    auth = "t" + timestamp + METHOD + endpoint
      POST:            + minified JSON body (also sent as the body)
      other on /orders: + "?" + urlencoded query (the URL does not carry it)
    """
    method = method.upper()
    auth = "t" + timestamp + method + endpoint
    body: Optional[str] = None
    if method == "POST":
        body = _minified_json(dict(query))
        auth += body
    elif endpoint == ORDERS_COLLECTION and query:
        auth += "?" + urlencode(query)
    return auth, body


def hmac_sha512_base64(message: str, secret: str) -> str:
    try:
        raw_secret = base64.b64decode(secret)
    except (binascii.Error, ValueError) as exc:
        raise DomainAuthError("gopax secret must be base64-encoded") from exc
    digest = hmac.new(raw_secret, message.encode("utf-8"), hashlib.sha512).digest()
    return base64.b64encode(digest).decode("ascii")


def sign(
    path: str,
    api: str = "public",
    method: str = "GET",
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    body: Optional[str] = None,
    *,
    base_url: str,
    credentials: Credentials | None = None,
    timestamp: int | str | None = None,
) -> SignedRequest:
    """
    Resolve ``path`` against ``params`` and authenticate private calls.

    Private calls get exactly the ``api-key``, ``timestamp`` and ``signature``
    headers; any caller-supplied headers are replaced, not merged.
    """
    params = dict(params or {})
    method = method.upper()
    endpoint = "/" + implode_params(path, params)
    url = base_url + endpoint
    path_keys = set(extract_params(path))
    query = {k: v for k, v in params.items() if k not in path_keys}

    if api == "public":
        if query:
            url += "?" + urlencode(query)
        return SignedRequest(url=url, method=method, body=body, headers=headers)

    if credentials is None or not credentials.api_key or not credentials.secret:
        raise DomainAuthError("gopax requires api_key and secret for private endpoints")
    if timestamp is None:
        raise ValueError("timestamp is required to sign private requests")
    ts = str(timestamp)
    auth, signed_body = canonical_string(method, endpoint, ts, query)
    if signed_body is not None:
        body = signed_body
    signature = hmac_sha512_base64(auth, credentials.secret)
    return SignedRequest(
        url=url,
        method=method,
        body=body,
        headers={
            "api-key": credentials.api_key,
            "timestamp": ts,
            "signature": signature,
        },
    )
