"""Classification of Gopax error payloads into the domain error taxonomy."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Tuple, Type

from gopax_adapter.config import GopaxConfig
from gopax_adapter.services.domain.exceptions import DomainExchangeError
from .utils.values import safe_string

logger = logging.getLogger("services.infrastructure.gopax.errors")

ErrorKind = Type[DomainExchangeError]


class GopaxErrorClassifier:
    """
    Two-tier matcher over a response body.

    1. ``errorCode`` present: verbatim lookup in the exact table; unknown codes
       are left to the transport.
    2. otherwise ``errorMessage`` present: scan the broad table in declaration
       order and raise the first pattern found anywhere in the raw body.

    {"errorMessage": "Invalid API key", "errorCode": 10155}
    """

    def __init__(
        self,
        exact: Mapping[str, ErrorKind],
        broad: Iterable[Tuple[str, ErrorKind]],
        *,
        exchange_id: str = "gopax",
    ) -> None:
        self._exact = dict(exact)
        self._broad: Tuple[Tuple[str, ErrorKind], ...] = tuple(broad)
        self._exchange_id = exchange_id

    @classmethod
    def from_config(cls, config: GopaxConfig) -> "GopaxErrorClassifier":
        return cls(config.exact_errors, config.broad_errors)

    def match(self, body: str, response: Any) -> Optional[tuple[ErrorKind, Optional[str]]]:
        """Return ``(error kind, error code)`` for an error payload, ``None`` when unclassified."""
        if response is None or isinstance(response, list) or not isinstance(response, Mapping):
            return None
        error_code = safe_string(response, "errorCode")
        error_message = safe_string(response, "errorMessage")
        if error_code is not None:
            kind = self._exact.get(error_code)
            return (kind, error_code) if kind is not None else None
        if error_message is not None:
            for pattern, kind in self._broad:
                if pattern in (body or ""):
                    return kind, None
        return None

    def handle_errors(self, body: str, response: Any) -> None:
        """Raise the classified error for ``response``; unclassified payloads pass through."""
        matched = self.match(body, response)
        if matched is None:
            return
        kind, code = matched
        feedback = f"{self._exchange_id} {body}"
        logger.debug("gopax_error_classified kind=%s code=%s", kind.__name__, code)
        raise kind(feedback, code=code)
