# gopax_adapter/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Tuple, Type

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gopax_adapter.services.domain.exceptions import (
    DomainAuthError,
    DomainBadSymbol,
    DomainExchangeError,
    DomainInsufficientFunds,
    DomainInvalidOrder,
    DomainOrderNotFound,
)

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILE = PROJECT_ROOT / ".env"

load_dotenv(ENV_FILE)  # load the root .env explicitly; missing file is a no-op


ErrorKind = Type[DomainExchangeError]

# Exact code -> error kind. {"errorMessage":"Invalid API key","errorCode":10155}
EXACT_ERRORS: Mapping[str, ErrorKind] = MappingProxyType(
    {
        "10155": DomainAuthError,
    }
)

# Substring -> error kind, scanned in this order; first match wins.
BROAD_ERRORS: Tuple[Tuple[str, ErrorKind], ...] = (
    ("ERROR_INVALID_ORDER_TYPE", DomainInvalidOrder),
    ("ERROR_INVALID_AMOUNT", DomainInvalidOrder),
    ("ERROR_INVALID_TRADING_PAIR", DomainBadSymbol),
    ("No such order ID:", DomainOrderNotFound),
    ("Not enough amount", DomainInsufficientFunds),
    ("Forbidden order type", DomainInvalidOrder),
    (
        "the client order ID will be reusable which order has already been completed or canceled",
        DomainInvalidOrder,
    ),
    ("ERROR_NO_SUCH_TRADING_PAIR", DomainBadSymbol),
    ("ERROR_INVALID_ORDER_SIDE", DomainInvalidOrder),
    ("ERROR_NOT_HEDGE_TOKEN_USER", DomainInvalidOrder),
    # only raised while the exchange is locked
    ("ORDER_EVENT_ERROR_NOT_ALLOWED_BID_ORDER", DomainInvalidOrder),
    ("ORDER_EVENT_ERROR_INSUFFICIENT_BALANCE", DomainInsufficientFunds),
    ("Invalid option combination", DomainInvalidOrder),
    ("No such client order ID", DomainOrderNotFound),
)

# Canonical timeframe -> native candle interval (minutes).
TIMEFRAMES: Mapping[str, str] = MappingProxyType(
    {
        "1m": "1",
        "5m": "5",
        "30m": "30",
        "1d": "1440",
    }
)

COMMON_CURRENCIES: Mapping[str, str] = MappingProxyType(
    {
        "XBT": "BTC",
        "BCC": "BCH",
        "BCHABC": "BCH",
        "BCHSV": "BSV",
        "DRK": "DASH",
    }
)


class GopaxSettings(BaseSettings):
    """Environment-driven settings (``GOPAX_*`` variables or the root ``.env``)."""

    API_KEY: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GOPAX_API_KEY", "API_KEY"),
    )
    SECRET: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GOPAX_SECRET", "GOPAX_API_SECRET", "SECRET"),
    )
    HOSTNAME: str = Field(default="gopax.co.kr", validation_alias="GOPAX_HOSTNAME")
    TIMEOUT_MS: int = Field(default=10_000, validation_alias="GOPAX_TIMEOUT_MS")
    MAX_RETRIES: int = Field(default=2, validation_alias="GOPAX_MAX_RETRIES")
    BACKOFF_FACTOR: float = Field(default=0.25, validation_alias="GOPAX_BACKOFF_FACTOR")
    CREATE_MARKET_BUY_ORDER_REQUIRES_PRICE: bool = Field(
        default=True,
        validation_alias="GOPAX_CREATE_MARKET_BUY_ORDER_REQUIRES_PRICE",
    )
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


@dataclass(frozen=True, slots=True)
class GopaxOptions:
    create_market_buy_order_requires_price: bool = True


@dataclass(frozen=True, slots=True)
class GopaxConfig:
    """Immutable configuration passed explicitly into every Gopax component."""

    api_key: str | None = None
    secret: str | None = None
    hostname: str = "gopax.co.kr"
    timeout_ms: int = 10_000
    max_retries: int = 2
    backoff_factor: float = 0.25
    options: GopaxOptions = field(default_factory=GopaxOptions)
    timeframes: Mapping[str, str] = field(default_factory=lambda: TIMEFRAMES)
    common_currencies: Mapping[str, str] = field(default_factory=lambda: COMMON_CURRENCIES)
    exact_errors: Mapping[str, ErrorKind] = field(default_factory=lambda: EXACT_ERRORS)
    broad_errors: Tuple[Tuple[str, ErrorKind], ...] = BROAD_ERRORS

    @property
    def base_url(self) -> str:
        return f"https://api.{self.hostname}"

    @classmethod
    def from_settings(cls, settings: GopaxSettings | None = None) -> "GopaxConfig":
        s = settings or GopaxSettings()
        return cls(
            api_key=s.API_KEY,
            secret=s.SECRET,
            hostname=s.HOSTNAME,
            timeout_ms=s.TIMEOUT_MS,
            max_retries=max(0, int(s.MAX_RETRIES)),
            backoff_factor=float(s.BACKOFF_FACTOR),
            options=GopaxOptions(
                create_market_buy_order_requires_price=s.CREATE_MARKET_BUY_ORDER_REQUIRES_PRICE,
            ),
        )
