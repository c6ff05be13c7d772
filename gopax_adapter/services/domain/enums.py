from __future__ import annotations
from enum import Enum


class OrderStatus(str, Enum):
    """Canonical order status shared by every exchange adapter."""
    OPEN = "open"
    CLOSED = "closed"
    CANCELED = "canceled"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_native(cls, value: str | None) -> "OrderStatus":
        """Map the exchange status vocabulary; anything unrecognized is still open."""
        if value == "cancelled":
            return cls.CANCELED
        if value == "completed":
            return cls.CLOSED
        return cls.OPEN


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"

    def __str__(self) -> str:
        return self.value


class OrderType(str, Enum):
    LIMIT = "limit"
    MARKET = "market"

    def __str__(self) -> str:
        return self.value


class TransactionType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_native(cls, value: str | None) -> "TransactionType":
        if value in ("crypto_withdrawal", "fiat_withdrawal"):
            return cls.WITHDRAWAL
        return cls.DEPOSIT
