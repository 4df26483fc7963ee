from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence

import numpy as np

from flipwise.analysis.weighting import months_since
from flipwise.domain.property import ComparableSale
from flipwise.domain.underwriting import ConfidenceLevel


def price_cv(prices: Iterable[float]) -> float | None:
    """
    Coefficient of variation (population std / mean) of the positive prices.
    None when fewer than two usable prices.
    """
    arr = np.asarray([p for p in prices if p and p > 0], dtype=float)
    if arr.size < 2:
        return None
    mean = float(arr.mean())
    if mean <= 0:
        return 1.0
    return float(arr.std() / mean)


def _count_points(n: int) -> int:
    if n == 0:
        return 0
    if n <= 2:
        return 15
    if n <= 4:
        return 25
    if n <= 7:
        return 35
    return 40


def _distance_points(avg_dist: float) -> int:
    if avg_dist < 0.5:
        return 30
    if avg_dist < 1.0:
        return 20
    if avg_dist < 2.0:
        return 10
    return 5


def _recency_points(avg_months: float) -> int:
    if avg_months < 3:
        return 20
    if avg_months < 6:
        return 15
    if avg_months < 9:
        return 10
    return 5


def _cv_points(cv: float | None) -> int:
    if cv is None:
        return 2
    if cv < 0.10:
        return 10
    if cv < 0.20:
        return 7
    if cv < 0.30:
        return 4
    return 2


def confidence_level(score: float) -> ConfidenceLevel:
    if score >= 75:
        return "high"
    if score >= 50:
        return "medium"
    if score >= 20:
        return "low"
    return "none"


def calculate_confidence(comps: Sequence[ComparableSale], now: datetime) -> tuple[float, ConfidenceLevel]:
    """
    Score 0-100 from comp count (40), average distance (30), average
    recency (20) and close price dispersion (10).
    """
    n = len(comps)
    avg_dist = sum(c.distance_miles for c in comps) / n if n else 0.0
    avg_months = sum(months_since(c.close_date, now) for c in comps) / n if n else 0.0
    cv = price_cv(c.close_price or 0.0 for c in comps)

    score = float(
        _count_points(n)
        + _distance_points(avg_dist)
        + _recency_points(avg_months)
        + _cv_points(cv)
    )
    return score, confidence_level(score)
