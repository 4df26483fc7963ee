from __future__ import annotations

from datetime import date
from typing import Any, Iterable

import numpy as np

from flipwise.adapters.geo import haversine
from flipwise.analysis.comps import SearchCriteria
from flipwise.analysis.valuation import nearest_rank_percentile
from flipwise.analysis.weighting import is_distressed, is_renovated
from flipwise.domain.property import CLOSED, ComparableSale, PropertyRecord, SubjectProperty
from flipwise.domain.underwriting import AnalysisResult


def _within(records: list[PropertyRecord], lat: float, lng: float, radius_miles: float) -> list[tuple[float, PropertyRecord]]:
    if not records:
        return []
    lats = np.array([r.latitude for r in records], dtype=float)
    lngs = np.array([r.longitude for r in records], dtype=float)
    dists = haversine(lat, lng, lats, lngs)
    return [(float(d), r) for d, r in zip(dists, records) if d <= radius_miles]


class InMemoryPropertyStore:
    """Property store over a list of records; mainly for tests and the CLI."""

    def __init__(self, records: Iterable[PropertyRecord] = ()) -> None:
        self._items: list[PropertyRecord] = list(records)

    def find_closed_comparables(
        self,
        subject: SubjectProperty,
        radius_miles: float,
        limit: int,
        *,
        closed_since: date,
    ) -> list[ComparableSale]:
        if not subject.has_coordinates:
            return []
        criteria = SearchCriteria.for_subject(subject, closed_since)
        candidates = [r for r in self._items if criteria.matches(r)]

        hits = _within(candidates, subject.latitude, subject.longitude, radius_miles)
        hits.sort(key=lambda dr: dr[0])

        return [
            ComparableSale.model_validate({**rec.model_dump(), "distance_miles": dist})
            for dist, rec in hits[:limit]
        ]

    def percentile_closed_price(
        self,
        lat: float,
        lng: float,
        property_type: str,
        radius_miles: float = 0.5,
        percentile: float = 0.90,
        *,
        closed_since: date,
    ) -> float | None:
        candidates = [
            r for r in self._items
            if r.status == CLOSED
            and r.close_date is not None
            and r.close_date >= closed_since
            and r.property_type == property_type
            and (r.close_price or 0) > 0
            and r.has_coordinates
        ]
        hits = _within(candidates, lat, lng, radius_miles)
        return nearest_rank_percentile((r.close_price for _, r in hits), percentile)


class InMemoryAnalysisRepository:
    def __init__(self) -> None:
        self._analyses: dict[int, dict[str, Any]] = {}
        self._comparables: dict[int, list[dict[str, Any]]] = {}
        self._next_id = 1

    def save_analysis(self, result: AnalysisResult) -> int:
        analysis_id = self._next_id
        self._next_id += 1

        self._analyses[analysis_id] = {"id": analysis_id, **result.summary_row()}
        self._comparables[analysis_id] = [
            {
                "analysis_id": analysis_id,
                **c.to_row(),
                "is_renovated": is_renovated(c.comp.remarks),
                "is_distressed": is_distressed(c.comp.remarks),
            }
            for c in result.arv.comparables
        ]
        return analysis_id

    def get(self, analysis_id: int) -> dict[str, Any] | None:
        row = self._analyses.get(analysis_id)
        return dict(row) if row is not None else None

    def list_comparables(self, analysis_id: int) -> list[dict[str, Any]]:
        rows = self._comparables.get(analysis_id, [])
        return sorted(rows, key=lambda r: r["weight"], reverse=True)

    def find_by_listing(self, listing_id: str, limit: int = 10) -> list[dict[str, Any]]:
        rows = [r for r in self._analyses.values() if r["listing_id"] == listing_id]
        # newest first
        return sorted(rows, key=lambda r: r["id"], reverse=True)[:limit]

    def delete(self, analysis_id: int) -> bool:
        if analysis_id not in self._analyses:
            return False
        self._comparables.pop(analysis_id, None)
        del self._analyses[analysis_id]
        return True
