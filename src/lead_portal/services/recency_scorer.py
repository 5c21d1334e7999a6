"""Decaying time-based score contributions.

Pure-function module: NO database access.

Both scores share one shape, ``round(peak / (1 + days / half_life))``:

    * Recency (deals-for-order):  peak 20, half-life 2 days of lead age
    * Expiry  (open-orders):      peak 30, half-life 3 days to expiry

Day counts are fractional (timestamp difference / 86400s) and floored at
zero, so clock skew or an already-passed expiry never goes negative.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

RECENCY_PEAK = 20
RECENCY_HALF_LIFE_DAYS = 2

EXPIRY_PEAK = 30
EXPIRY_HALF_LIFE_DAYS = 3

_SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class DecayScore:
    score: int
    days: int  # rounded, for display


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (``Math.round`` semantics)."""
    return int(math.floor(value + 0.5))


def as_utc(value: Union[datetime, str, None]) -> Optional[datetime]:
    """Coerce a datetime or ISO string to an aware UTC datetime.

    Naive values are assumed to already be UTC (SQLite drops tzinfo).
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _decay(days: float, peak: int, half_life: float) -> DecayScore:
    days = max(0.0, days)
    return DecayScore(
        score=round_half_up(peak / (1 + days / half_life)),
        days=round_half_up(days),
    )


def recency_score(created_at, now: Optional[datetime] = None) -> DecayScore:
    """Newer leads score closer to 20."""
    now = as_utc(now) or datetime.now(timezone.utc)
    created = as_utc(created_at)
    if created is None:
        return DecayScore(score=0, days=0)
    days = (now - created).total_seconds() / _SECONDS_PER_DAY
    return _decay(days, RECENCY_PEAK, RECENCY_HALF_LIFE_DAYS)


def expiry_priority_score(expires_at, now: Optional[datetime] = None) -> DecayScore:
    """Orders closer to expiry score closer to 30."""
    now = as_utc(now) or datetime.now(timezone.utc)
    expires = as_utc(expires_at)
    if expires is None:
        return DecayScore(score=0, days=0)
    days = (expires - now).total_seconds() / _SECONDS_PER_DAY
    return _decay(days, EXPIRY_PEAK, EXPIRY_HALF_LIFE_DAYS)
