from __future__ import annotations

import logging
from typing import Any, Mapping, MutableMapping

_CONTEXT_FIELDS = ("method", "path", "symbol", "order_id", "client_order_id")
_REDACT_KEYS = {"api-key", "signature", "secret", "apiKey"}


def format_log_context(context: Mapping[str, Any]) -> str:
    """Return a stable log-friendly string for the common request context."""
    parts: list[str] = []
    for field in _CONTEXT_FIELDS:
        value = context.get(field, "") if context else ""
        if value in (None, ""):
            value = "-"
        parts.append(f"{field}={value}")
    return " ".join(parts)


def ensure_log_context(context: Mapping[str, Any] | None, **updates: Any) -> MutableMapping[str, Any]:
    """Copy the provided context and merge additional fields for downstream logs."""
    merged: MutableMapping[str, Any] = dict(context or {})
    for key, value in updates.items():
        if value is None:
            continue
        merged[key] = value
    return merged


def redact(payload: Mapping[str, Any] | None) -> dict[str, Any]:
    """Mask credentials and signatures before they reach a log line."""
    return {k: ("***" if k in _REDACT_KEYS else v) for k, v in (payload or {}).items()}


def configure_logging(level: str | int = "INFO") -> None:
    """Basic root handler for scripts; libraries only ever call ``getLogger``."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = ["format_log_context", "ensure_log_context", "redact", "configure_logging"]
