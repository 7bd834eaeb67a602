"""Normalization helpers.

Centralizes defensive number parsing for telemetry values.
"""

from __future__ import annotations

import math
from typing import Any

from pywaterflow._constants import LOG_MESSAGE_PREVIEW


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def finite_float_or_zero(value: Any) -> float:
    """Parse *value* as a finite float, falling back to ``0.0``."""
    parsed = safe_float(value)
    if parsed is None or math.isinf(parsed):
        return 0.0
    return parsed


def is_number(value: Any) -> bool:
    """True for real JSON numbers. Booleans are not numbers on the wire."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def preview(text: str, limit: int = LOG_MESSAGE_PREVIEW) -> str:
    """Shorten telemetry text for log lines."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}...(+{len(text) - limit} chars)"
