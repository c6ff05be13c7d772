from __future__ import annotations

from decimal import Decimal, ROUND_DOWN
from typing import Any, Optional

from gopax_adapter.services.domain.exceptions import DomainInvalidOrder


def _D(x: Any) -> Decimal:
    if isinstance(x, Decimal):
        return x
    if x is None or x == "":
        raise DomainInvalidOrder("Missing numeric value")
    try:
        return Decimal(str(x))
    except Exception as exc:
        raise DomainInvalidOrder(f"Invalid numeric value '{x}'") from exc


def _quantize_to_precision(value: Decimal, digits: int) -> Decimal:
    """
    Clamp the number of decimal places by precision, truncating toward zero.
    Example: digits=3 -> quantize to Decimal('0.001').
    """
    if digits < 0:
        digits = 0
    quantum = Decimal(1).scaleb(-digits)  # 10**(-digits)
    return value.quantize(quantum, rounding=ROUND_DOWN)


def truncate_to_precision(value: Any, digits: Optional[int]) -> str:
    """
    Render ``value`` with at most ``digits`` decimals, never rounding up.

    Example: truncate_to_precision("1.23456789", 4) -> "1.2345";
    truncate_to_precision(25087000.9, 0) -> "25087000".
    When the market declares no precision the value is passed through unchanged.
    """
    dec = _D(value)
    if digits is None:
        return _format(dec)
    return _format(_quantize_to_precision(dec, int(digits)))


def _format(value: Decimal) -> str:
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text if text not in ("", "-0") else "0"
