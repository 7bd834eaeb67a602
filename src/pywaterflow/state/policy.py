"""Deterministic state derivation rules.

This module intentionally contains *no* payload parsing. The ingestion
boundary is responsible for producing validated readings.
"""

from __future__ import annotations

from datetime import datetime

from pywaterflow._constants import ACTIVE_THRESHOLD


def is_active(flow_rate: float) -> bool:
    """A sensor is active only when flow is strictly above the threshold."""
    return flow_rate > ACTIVE_THRESHOLD


def next_update_time(previous: datetime | None, now: datetime) -> datetime:
    """Stamp for a newly applied reading.

    Never earlier than *previous*, so a clock stepping backwards cannot
    roll a record's ``last_update`` back.
    """
    if previous is None:
        return now
    return max(previous, now)
