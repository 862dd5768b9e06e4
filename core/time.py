# PATH: core/time.py
"""
Time utilities for ARBSCOPE.

Venue timestamp parsing and freshness scoring.
"""

import time
from datetime import datetime, timezone
from typing import Iterable, Union


def now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """Get current UTC datetime as ISO string."""
    return now_utc().isoformat()


def now_ms() -> int:
    """Get current Unix timestamp in milliseconds."""
    return int(time.time() * 1000)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts the trailing "Z" used by most market-data APIs.
    Naive values are assumed to be UTC.

    Raises:
        ValueError: value is not a recognizable timestamp
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def timestamp_skew_seconds(timestamps: Iterable[datetime]) -> float:
    """
    Spread between the oldest and newest timestamp, in seconds.

    Returns 0.0 for fewer than two timestamps.
    """
    values = list(timestamps)
    if len(values) < 2:
        return 0.0
    return (max(values) - min(values)).total_seconds()


def calculate_freshness_score(
    skew_seconds: float,
    synced_seconds: float = 60.0,
    stale_seconds: float = 300.0,
) -> float:
    """
    Calculate freshness score (1 = synchronized, 0 = stale).

    - skew <= synced_seconds: 1.0
    - synced_seconds < skew <= stale_seconds: linear decay 1.0 -> 0.5
    - skew > stale_seconds: 0.0

    Args:
        skew_seconds: Spread between compared venue timestamps
        synced_seconds: Skew still considered synchronized
        stale_seconds: Skew beyond which quotes are not comparable

    Returns:
        Freshness score between 0 and 1
    """
    skew = abs(skew_seconds)
    if skew <= synced_seconds:
        return 1.0
    if skew > stale_seconds:
        return 0.0
    window = stale_seconds - synced_seconds
    if window <= 0:
        return 0.0
    return 1.0 - 0.5 * (skew - synced_seconds) / window
