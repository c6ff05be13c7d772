"""Domain-level exceptions shared across services."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for domain-level failures."""


class DomainExchangeError(DomainError):
    """Base class for normalized exchange failures."""

    def __init__(self, message: str, *, code: int | str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.message} (code={self.code})" if self.code is not None else self.message


class DomainBadRequest(DomainExchangeError):
    """The request was rejected due to invalid parameters."""


class DomainAuthError(DomainExchangeError):
    """Authentication failed due to invalid credentials or permissions."""


class DomainRateLimit(DomainExchangeError):
    """Exchange rate limits were exceeded; caller should retry with backoff."""


class DomainExchangeDown(DomainExchangeError):
    """Exchange is unavailable due to network/server errors."""


class DomainInvalidOrder(DomainExchangeError):
    """The order intent cannot be accepted (type, amount, side or option combination)."""


class DomainInsufficientFunds(DomainExchangeError):
    """The account balance does not cover the order."""


class DomainOrderNotFound(DomainExchangeError):
    """No order matches the requested order id or client order id."""


class DomainBadSymbol(DomainExchangeError):
    """The trading pair is unknown to the exchange."""


class DomainInvalidAddress(DomainExchangeError):
    """A deposit address is missing or malformed."""


__all__ = [
    "DomainError",
    "DomainExchangeError",
    "DomainBadRequest",
    "DomainAuthError",
    "DomainRateLimit",
    "DomainExchangeDown",
    "DomainInvalidOrder",
    "DomainInsufficientFunds",
    "DomainOrderNotFound",
    "DomainBadSymbol",
    "DomainInvalidAddress",
]
