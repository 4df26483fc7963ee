# src/flipwise/analysis/valuation.py
from __future__ import annotations

import math
from datetime import date
from typing import Iterable

from flipwise.adapters.logging_utils import get_logger
from flipwise.analysis.adjustments import calculate_adjustments
from flipwise.analysis.comps import ComparableSearch, lookback_cutoff
from flipwise.analysis.confidence import calculate_confidence
from flipwise.analysis.weighting import calculate_weight
from flipwise.domain.assumptions import ArvAssumptions
from flipwise.domain.ports import Clock, PropertyStore
from flipwise.domain.property import ComparableSale, SubjectProperty
from flipwise.domain.underwriting import AdjustedComparable, ArvResult

logger = get_logger(__name__)


def nearest_rank_percentile(prices: Iterable[float], pct: float = 0.90) -> float | None:
    """
    Nearest-rank percentile: sort ascending and take index ceil(pct * n) - 1,
    clamped to the list bounds.
    """
    ordered = sorted(float(p) for p in prices)
    n = len(ordered)
    if n == 0:
        return None
    idx = max(0, min(math.ceil(pct * n) - 1, n - 1))
    return round(ordered[idx], 2)


def average_ppsf(comps: Iterable[ComparableSale]) -> float:
    ppsf = [
        c.close_price / c.living_area
        for c in comps
        if c.close_price and c.close_price > 0 and c.living_area and c.living_area > 0
    ]
    return sum(ppsf) / len(ppsf) if ppsf else 0.0


def neighborhood_ceiling(
    store: PropertyStore,
    subject: SubjectProperty,
    *,
    closed_since: date,
    radius_miles: float = 0.5,
    percentile: float = 0.90,
) -> float | None:
    """P90 closed price of same-type sales close to the subject, used as a sanity cap on ARV."""
    if not subject.has_coordinates:
        return None
    return store.percentile_closed_price(
        subject.latitude,
        subject.longitude,
        subject.property_type,
        radius_miles,
        percentile,
        closed_since=closed_since,
    )


class ArvCalculator:
    """
    Comparable-sales ARV: search, adjust, weight, then take the weighted mean
    of adjusted prices.
    """

    def __init__(
        self,
        store: PropertyStore,
        clock: Clock,
        assumptions: ArvAssumptions | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.assumptions = assumptions or ArvAssumptions()
        self.search = ComparableSearch(store, self.assumptions)

    def calculate(self, subject: SubjectProperty) -> ArvResult:
        a = self.assumptions
        now = self.clock.now()
        closed_since = lookback_cutoff(now, a.lookback_months)

        comps = self.search.search_tiers(subject, closed_since=closed_since)
        if not comps:
            logger.info("arv_no_comparables", extra={"context": {"listing_id": subject.listing_id}})
            return ArvResult.empty()

        avg_ppsf = average_ppsf(comps)

        enriched: list[AdjustedComparable] = []
        for comp in comps:
            adj = calculate_adjustments(subject, comp, avg_ppsf, a.max_adjustment_pct)
            enriched.append(
                AdjustedComparable(
                    comp=comp,
                    adjustments=adj.adjustments,
                    total_adjustment=adj.total,
                    adjusted_price=adj.adjusted_price,
                    gross_adjustment_pct=adj.gross_pct,
                    weight=calculate_weight(comp, now),
                )
            )

        total_weight = sum(e.weight for e in enriched)
        weighted_sum = sum(e.adjusted_price * e.weight for e in enriched)
        arv = weighted_sum / total_weight if total_weight > 0 else 0.0

        ceiling = neighborhood_ceiling(
            self.store,
            subject,
            closed_since=closed_since,
            radius_miles=a.ceiling_radius_miles,
            percentile=a.ceiling_percentile,
        )
        score, level = calculate_confidence(comps, now)

        result = ArvResult(
            arv=round(arv, 2),
            confidence=level,
            confidence_score=score,
            comp_count=len(comps),
            avg_ppsf=round(avg_ppsf, 2) if avg_ppsf > 0 else None,
            neighborhood_ceiling=ceiling,
            comparables=enriched,
        )

        logger.info(
            "arv_calculated",
            extra={
                "context": {
                    "listing_id": subject.listing_id,
                    "arv": result.arv,
                    "comp_count": result.comp_count,
                    "confidence": level,
                    "ceiling": ceiling,
                }
            },
        )
        return result
