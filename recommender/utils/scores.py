"""
Score helpers — recency decay, clamping and time utilities used by the scorers.
"""

import math
from datetime import date, datetime, time, timezone


def clamp_unit(value: float) -> float:
    """Clamp to [0, 1]."""
    return max(0.0, min(1.0, value))


def start_of_day(day: date) -> datetime:
    """Midnight UTC of the given date."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def days_between(earlier: datetime, reference: date) -> float:
    """
    Fractional days from `earlier` to the start of `reference` (UTC).
    Timestamps after the reference count as 0 days old.
    """
    if earlier.tzinfo is None:
        earlier = earlier.replace(tzinfo=timezone.utc)
    delta = start_of_day(reference) - earlier
    return max(0.0, delta.total_seconds() / 86400.0)


def recency_score(days_old: float, decay_days: float = 30.0, floor: float = 0.05) -> float:
    """
    Recency score with exponential decay, saturating at `floor`.
    exp(-days_old / decay_days): 1.0 today, ~0.37 after decay_days (not a half-life).
    """
    if decay_days <= 0:
        return floor
    return clamp_unit(max(floor, math.exp(-days_old / decay_days)))


def logistic(value: float, steepness: float = 1.0) -> float:
    """Squash a real value into (0, 1); 0 maps to 0.5."""
    x = steepness * value
    # Guard exp overflow for large negative arguments
    if x < -700:
        return 0.0
    return 1.0 / (1.0 + math.exp(-x))
