from __future__ import annotations

import math
from datetime import date, datetime, time, timezone

from flipwise.domain.property import ComparableSale

RENOVATION_KEYWORDS = ("renovated", "updated", "remodeled")
DISTRESS_KEYWORDS = ("foreclosure", "short sale", "bank owned", "reo")

RENOVATION_MULTIPLIER = 1.3
TIME_DECAY = 0.115          # per month
DISTANCE_OFFSET = 0.1       # miles
SECONDS_PER_MONTH = 30 * 86400


def is_renovated(remarks: str | None) -> bool:
    text = (remarks or "").lower()
    return any(k in text for k in RENOVATION_KEYWORDS)


def is_distressed(remarks: str | None) -> bool:
    text = (remarks or "").lower()
    return any(k in text for k in DISTRESS_KEYWORDS)


def months_since(close_date: date | None, now: datetime) -> float:
    """30-day months between close_date (midnight UTC) and now; 0 when unknown or future."""
    if close_date is None:
        return 0.0
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    closed_at = datetime.combine(close_date, time.min, tzinfo=timezone.utc)
    return max(0.0, (now - closed_at).total_seconds() / SECONDS_PER_MONTH)


def calculate_weight(comp: ComparableSale, now: datetime) -> float:
    """
    weight = renovation_mult * exp(-0.115 * months) / (distance + 0.1)^2
    """
    reno = RENOVATION_MULTIPLIER if is_renovated(comp.remarks) else 1.0
    time_weight = math.exp(-TIME_DECAY * months_since(comp.close_date, now))
    distance = float(comp.distance_miles or 0.0)
    return round((reno * time_weight) / (distance + DISTANCE_OFFSET) ** 2, 6)
