from __future__ import annotations

import re
from typing import Any, Optional

from gopax_adapter.services.domain.enums import OrderSide, OrderType
from gopax_adapter.services.domain.exceptions import DomainBadRequest, DomainInvalidOrder

_VALID_SIDES = {s.value for s in OrderSide}
_VALID_TYPES = {t.value for t in OrderType}
_VALID_TIF = {"gtc", "po", "ioc", "fok"}
_CLIENT_ORDER_ID = re.compile(r"[a-zA-Z0-9_-]{1,20}")


def _validate_choice(value: Any, valid: set[str], field: str) -> str:
    if value is None:
        raise DomainInvalidOrder(f"Missing required field '{field}' for Gopax order")
    normalized = str(value).strip().lower()
    if normalized not in valid:
        raise DomainInvalidOrder(f"Invalid {field} '{value}'")
    return normalized


def validate_order_type(value: Any) -> str:
    return _validate_choice(value, _VALID_TYPES, "type")


def validate_order_side(value: Any) -> str:
    return _validate_choice(value, _VALID_SIDES, "side")


def validate_time_in_force(value: Any) -> str:
    return _validate_choice(value, _VALID_TIF, "timeInForce")


def validate_client_order_id(value: Any) -> str:
    """Client order ids are at most 20 characters of ``[a-zA-Z0-9_-]``."""
    cid = str(value)
    if not _CLIENT_ORDER_ID.fullmatch(cid):
        raise DomainInvalidOrder(f"Invalid clientOrderId '{value}'")
    return cid


def validate_history_window(
    since: Optional[int],
    limit: Optional[int],
    now_ms: int,
) -> None:
    """
    Reject history queries that cannot succeed before any request is sent.

    - since must not be in the future.
    - limit, when given, must be a positive number.
    """
    if since is not None and since > now_ms:
        raise DomainBadRequest("Starting time should be in the past.")
    if limit is not None and limit <= 0:
        raise DomainBadRequest("Limit should be a positive integer.")
