"""Synchronous Gopax REST transport with signing, error classification and retries."""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Mapping

import requests

from gopax_adapter.config import GopaxConfig
from gopax_adapter.core.logging_utils import format_log_context, redact
from gopax_adapter.services.domain.exceptions import (
    DomainBadRequest,
    DomainExchangeDown,
    DomainRateLimit,
)
from .errors import GopaxErrorClassifier
from .signer import Credentials, sign

logger = logging.getLogger("services.infrastructure.gopax.gopax_rest")


class GopaxREST:
    """Thin synchronous adapter over the Gopax REST API."""

    def __init__(
        self,
        config: GopaxConfig,
        *,
        session: requests.Session | Any | None = None,
        classifier: GopaxErrorClassifier | None = None,
        timestamp_provider: Callable[[], int] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._classifier = classifier or GopaxErrorClassifier.from_config(config)
        self._credentials = Credentials(api_key=config.api_key, secret=config.secret)
        self._timestamp_provider = timestamp_provider or (
            lambda: int(time.time() * 1000)
        )
        self._sleep = sleep
        self._timeout_s = config.timeout_ms / 1000.0
        self._max_retries = max(0, int(config.max_retries))
        self._backoff_factor = float(config.backoff_factor)

    # ------------------------------------------------------------------
    # Response handling
    # ------------------------------------------------------------------
    @staticmethod
    def _decode(body: str) -> Any:
        if not body:
            return None
        try:
            return json.loads(body)
        except ValueError:
            return None

    def _handle_response(self, resp: Any, context: Mapping[str, Any]) -> Any:
        body = resp.text or ""
        payload = self._decode(body)
        self._classifier.handle_errors(body, payload)
        status = int(resp.status_code)
        if status == 429:
            raise DomainRateLimit(f"gopax {body}", code=status)
        if status >= 500:
            raise DomainExchangeDown(f"gopax {status} {body}", code=status)
        if status >= 400:
            raise DomainBadRequest(f"gopax {status} {body}", code=status)
        if payload is None and body:
            logger.warning("gopax_non_json_response %s body=%s", format_log_context(context), body[:200])
        return payload

    # ------------------------------------------------------------------
    # Error mapping & retries
    # ------------------------------------------------------------------
    def _map_exception(self, exc: Exception) -> Exception:
        if isinstance(exc, requests.exceptions.ProxyError):
            return DomainExchangeDown("Proxy error communicating with Gopax")
        if isinstance(exc, (requests.exceptions.Timeout, TimeoutError)):
            return DomainExchangeDown("Request to Gopax timed out")
        if isinstance(exc, requests.exceptions.RequestException):
            return DomainExchangeDown(str(exc))
        return exc

    def _send(self, signed: Any) -> Any:
        try:
            return self._session.request(
                signed.method,
                signed.url,
                data=signed.body,
                headers=signed.headers,
                timeout=self._timeout_s,
            )
        except Exception as exc:  # noqa: BLE001 - map all transport exceptions
            mapped = self._map_exception(exc)
            if mapped is exc:
                raise
            raise mapped from exc

    def request(
        self,
        path: str,
        api: str = "public",
        method: str = "GET",
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Sign, send and decode one call; transport failures are retried with backoff.

        POST is never retried so an order cannot be submitted twice.
        """
        context = {"method": method, "path": path}
        max_retries = 0 if method.upper() == "POST" else self._max_retries
        attempt = 0
        while True:
            signed = sign(
                path,
                api,
                method,
                params,
                base_url=self._config.base_url,
                credentials=self._credentials,
                timestamp=self._timestamp_provider() if api == "private" else None,
            )
            logger.debug(
                "gopax_request %s url=%s headers=%s",
                format_log_context(context),
                signed.url,
                redact(signed.headers),
            )
            try:
                resp = self._send(signed)
                return self._handle_response(resp, context)
            except DomainExchangeDown as exc:
                if attempt >= max_retries:
                    logger.warning(
                        "gopax_request_failed %s err=%s", format_log_context(context), exc
                    )
                    raise
                delay = self._backoff_factor * (2**attempt)
                logger.warning(
                    "GopaxREST retry | %s attempt=%s/%s sleep=%.2fs reason=%s",
                    format_log_context(context),
                    attempt + 1,
                    max_retries + 1,
                    delay,
                    exc,
                )
                self._sleep(delay)
                attempt += 1

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------
    def public_get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self.request(path, "public", "GET", params)

    def private_get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self.request(path, "private", "GET", params)

    def private_post(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self.request(path, "private", "POST", params)

    def private_delete(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self.request(path, "private", "DELETE", params)

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def timeout_ms(self) -> int:
        return self._config.timeout_ms
