from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional

logger = logging.getLogger("services.infrastructure.gopax.utils.values")

_NULL_STRINGS = {"", "none", "null", "nan", "inf", "-inf", "undefined"}


def safe_value(obj: Any, key: Any, default: Any = None) -> Any:
    """Return ``obj[key]`` for mappings and sequences, ``default`` when absent or None."""
    if obj is None:
        return default
    try:
        value = obj[key]
    except (KeyError, IndexError, TypeError):
        return default
    return default if value is None else value


def safe_string(obj: Any, key: Any, default: Optional[str] = None) -> Optional[str]:
    value = safe_value(obj, key)
    if value is None:
        return default
    return str(value)


def safe_string_lower(obj: Any, key: Any) -> Optional[str]:
    value = safe_string(obj, key)
    return value.lower() if value is not None else None


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert a wire value to Decimal.

    Treats None, '', 'null', 'NaN', 'inf', '-inf' (case-insensitive) as absent.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    s = str(value).strip()
    if s.lower() in _NULL_STRINGS:
        return None
    try:
        return Decimal(s)
    except (InvalidOperation, ValueError, TypeError) as e:
        logger.debug("Failed to parse Decimal from %r", value, exc_info=e)
        return None


def safe_decimal(obj: Any, key: Any) -> Optional[Decimal]:
    return to_decimal(safe_value(obj, key))


def safe_decimal2(obj: Any, key1: Any, key2: Any) -> Optional[Decimal]:
    """First non-absent of ``obj[key1]``, ``obj[key2]``."""
    value = safe_decimal(obj, key1)
    return value if value is not None else safe_decimal(obj, key2)


def safe_integer(obj: Any, key: Any) -> Optional[int]:
    value = safe_decimal(obj, key)
    if value is None:
        return None
    return int(value)


def sum_present(*values: Optional[Decimal]) -> Optional[Decimal]:
    """Sum the values that are present; ``None`` if none of them is."""
    present = [v for v in values if v is not None]
    if not present:
        return None
    total = Decimal("0")
    for v in present:
        total += v
    return total


def multiply(a: Optional[Decimal], b: Optional[Decimal]) -> Optional[Decimal]:
    if a is None or b is None:
        return None
    return a * b


def parse8601(value: Optional[str]) -> Optional[int]:
    """Parse an ISO-8601 timestamp (``2020-12-18T21:42:13.774Z``) into epoch milliseconds."""
    if not value:
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(round(dt.timestamp() * 1000))


def iso8601(timestamp_ms: Optional[int]) -> Optional[str]:
    if timestamp_ms is None:
        return None
    dt = datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{timestamp_ms % 1000:03d}Z"


def omit(params: Mapping[str, Any] | None, *keys: str) -> dict[str, Any]:
    return {k: v for k, v in (params or {}).items() if k not in keys}


def filter_by_since_limit(
    items: Iterable[Any], since: Optional[int] = None, limit: Optional[int] = None
) -> list:
    """Keep records at/after ``since`` (by ``timestamp``) and at most ``limit`` of them."""
    result = list(items)
    if since is not None:
        result = [
            item for item in result
            if getattr(item, "timestamp", None) is not None and item.timestamp >= since
        ]
    if limit is not None:
        result = result[:limit]
    return result
