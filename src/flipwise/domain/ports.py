# src/flipwise/domain/ports.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Protocol

from flipwise.domain.property import ComparableSale, SubjectProperty
from flipwise.domain.underwriting import AnalysisResult


# ----------------------------
# Time
# ----------------------------

class Clock(Protocol):
    def now(self) -> datetime:
        ...


# ----------------------------
# Property / sales storage
# ----------------------------

class PropertyStore(Protocol):
    def find_closed_comparables(
        self,
        subject: SubjectProperty,
        radius_miles: float,
        limit: int,
        *,
        closed_since: date,
    ) -> list[ComparableSale]:
        """Closed sales matching the subject's search criteria, nearest first."""
        ...

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
        ...


# ----------------------------
# Analysis persistence
# ----------------------------

class AnalysisRepository(Protocol):
    def save_analysis(self, result: AnalysisResult) -> int:
        ...

    def get(self, analysis_id: int) -> Any:
        ...

    def list_comparables(self, analysis_id: int) -> list[Any]:
        ...

    def find_by_listing(self, listing_id: str, limit: int = 10) -> list[Any]:
        ...

    def delete(self, analysis_id: int) -> bool:
        ...
