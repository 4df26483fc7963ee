# src/flipwise/adapters/sql_repo.py
from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Iterable

from sqlmodel import JSON, Column, Field, Session, SQLModel, col, create_engine, select

from flipwise.adapters.geo import haversine
from flipwise.adapters.logging_utils import get_logger
from flipwise.analysis.comps import SearchCriteria
from flipwise.analysis.valuation import nearest_rank_percentile
from flipwise.analysis.weighting import is_distressed, is_renovated
from flipwise.domain.property import (
    CLOSED,
    ComparableSale,
    PropertyRecord,
    SubjectProperty,
    changed_fields,
)
from flipwise.domain.underwriting import AnalysisResult

logger = get_logger(__name__)

MILES_PER_DEGREE_LAT = 69.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- Property / sales storage ----------

class PropertyRow(SQLModel, table=True):
    __tablename__ = "properties"

    id: int | None = Field(default=None, primary_key=True)
    ts: datetime = Field(default_factory=_utcnow, index=True)

    listing_id: str = Field(index=True, unique=True)
    status: str = Field(default=CLOSED, index=True)
    address: str = ""
    city: str = ""
    property_type: str = Field(default="", index=True)

    latitude: float | None = Field(default=None, index=True)
    longitude: float | None = None

    bedrooms: int | None = None
    bathrooms: float | None = None
    living_area: int | None = None
    lot_size_acres: float | None = None
    year_built: int | None = None
    garage_spaces: int | None = None
    days_on_market: int | None = None

    list_price: float | None = None
    close_price: float | None = None
    close_date: date | None = Field(default=None, index=True)
    remarks: str = ""


def _bounding_box(lat: float, lng: float, radius_miles: float) -> tuple[float, float, float, float]:
    dlat = radius_miles / MILES_PER_DEGREE_LAT
    cos_lat = max(math.cos(math.radians(lat)), 1e-6)
    dlng = radius_miles / (MILES_PER_DEGREE_LAT * cos_lat)
    return lat - dlat, lat + dlat, lng - dlng, lng + dlng


def _with_distance(
    rows: list[PropertyRow], lat: float, lng: float, radius_miles: float
) -> list[tuple[float, PropertyRow]]:
    if not rows:
        return []
    dists = haversine(lat, lng, [r.latitude for r in rows], [r.longitude for r in rows])
    hits = [(float(d), r) for d, r in zip(dists, rows) if d <= radius_miles]
    hits.sort(key=lambda dr: dr[0])
    return hits


class SqlPropertyStore:
    """
    Property store on SQL. Attribute filters and a bounding box run in SQL,
    the exact haversine cut runs in Python.
    """

    def __init__(self, uri: str = "sqlite:///flipwise.db"):
        self.engine = create_engine(uri, echo=False)
        SQLModel.metadata.create_all(self.engine)

    def upsert_many(self, items: Iterable[PropertyRecord]) -> int:
        """Insert new listings, rewrite changed ones. Returns rows written."""
        written = 0
        with Session(self.engine) as session:
            for item in items:
                if not item.listing_id:
                    continue

                stmt = select(PropertyRow).where(PropertyRow.listing_id == item.listing_id)
                row = session.exec(stmt).first()

                if row is None:
                    session.add(PropertyRow(**item.model_dump(exclude={"distance_miles"})))
                    written += 1
                    continue

                changes = changed_fields(row.model_dump(), item)
                if not changes:
                    continue
                for name, value in changes.items():
                    setattr(row, name, value)
                if item.remarks:
                    row.remarks = item.remarks
                row.ts = _utcnow()
                session.add(row)
                written += 1
            session.commit()
        return written

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
        c = SearchCriteria.for_subject(subject, closed_since)
        lat_lo, lat_hi, lng_lo, lng_hi = _bounding_box(subject.latitude, subject.longitude, radius_miles)

        stmt = select(PropertyRow).where(
            PropertyRow.status == CLOSED,
            PropertyRow.close_date >= c.closed_since,
            col(PropertyRow.property_type).in_(c.property_types),
            col(PropertyRow.latitude).is_not(None),
            col(PropertyRow.longitude).is_not(None),
            col(PropertyRow.latitude).between(lat_lo, lat_hi),
            col(PropertyRow.longitude).between(lng_lo, lng_hi),
        )
        if c.exclude_listing_id:
            stmt = stmt.where(PropertyRow.listing_id != c.exclude_listing_id)
        if c.min_beds is not None:
            stmt = stmt.where(col(PropertyRow.bedrooms).between(c.min_beds, c.max_beds))
        if c.min_baths is not None:
            stmt = stmt.where(col(PropertyRow.bathrooms).between(c.min_baths, c.max_baths))

        with Session(self.engine) as session:
            rows = list(session.exec(stmt))

        hits = _with_distance(rows, subject.latitude, subject.longitude, radius_miles)
        return [
            ComparableSale.model_validate({**r.model_dump(), "distance_miles": d})
            for d, r in hits[:limit]
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
        lat_lo, lat_hi, lng_lo, lng_hi = _bounding_box(lat, lng, radius_miles)
        stmt = select(PropertyRow).where(
            PropertyRow.status == CLOSED,
            PropertyRow.close_date >= closed_since,
            PropertyRow.property_type == property_type,
            PropertyRow.close_price > 0,
            col(PropertyRow.latitude).between(lat_lo, lat_hi),
            col(PropertyRow.longitude).between(lng_lo, lng_hi),
        )
        with Session(self.engine) as session:
            rows = list(session.exec(stmt))

        hits = _with_distance(rows, lat, lng, radius_miles)
        return nearest_rank_percentile((r.close_price for _, r in hits), percentile)


# ---------- Analyses ----------

class AnalysisRow(SQLModel, table=True):
    __tablename__ = "flip_analyses"

    id: int | None = Field(default=None, primary_key=True)
    ts: datetime = Field(default_factory=_utcnow, index=True)

    listing_id: str = Field(index=True)
    address: str = ""
    city: str = ""
    state: str = ""
    zipcode: str = ""
    property_type: str = ""
    list_price: float = 0.0
    living_area: int | None = None
    year_built: int | None = None
    days_on_market: int | None = None

    estimated_arv: float = 0.0
    arv_confidence: str = "none"
    arv_confidence_score: float = 0.0
    comp_count: int = 0
    avg_comp_ppsf: float | None = None
    neighborhood_ceiling: float | None = None

    estimated_rehab_cost: float = 0.0
    rehab_per_sqft: float = 0.0
    estimated_hold_months: int = 0
    purchase_closing_cost: float = 0.0
    sale_costs: float = 0.0
    holding_costs: float = 0.0

    cash_profit: float = 0.0
    cash_roi: float = 0.0
    cash_investment: float = 0.0
    financed_profit: float = 0.0
    cash_on_cash_roi: float = 0.0
    annualized_roi: float = 0.0
    mao_classic: float = 0.0
    mao_adjusted: float = 0.0
    breakeven_arv: float = 0.0

    total_score: float = Field(default=0.0, index=True)
    financial_score: float = 0.0
    property_score: float = 0.0
    location_score: float = 0.0
    market_score: float = 0.0
    flip_score: float = 0.0
    rental_score: float = 0.0
    brrrr_score: float = 0.0

    best_strategy: str | None = None
    flip_viable: bool = False
    rental_viable: bool = False
    brrrr_viable: bool = False
    disqualified: bool = False
    dq_reason: str | None = None
    deal_risk_grade: str = "F"

    rental_analysis: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    brrrr_analysis: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    risk_factors: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))


class ComparableRow(SQLModel, table=True):
    __tablename__ = "flip_comparables"

    id: int | None = Field(default=None, primary_key=True)
    analysis_id: int = Field(foreign_key="flip_analyses.id", index=True)

    listing_id: str = Field(index=True)
    address: str = ""
    city: str = ""
    property_type: str = ""
    close_price: float | None = None
    close_date: date | None = None
    adjusted_price: float = 0.0
    adjustment_total: float = 0.0
    adjustments: dict[str, float] = Field(default_factory=dict, sa_column=Column(JSON))
    distance_miles: float = 0.0
    bedrooms: int | None = None
    bathrooms: float | None = None
    living_area: int | None = None
    year_built: int | None = None
    lot_size_acres: float | None = None
    garage_spaces: int | None = None
    days_on_market: int | None = None
    weight: float = 0.0
    is_renovated: bool = False
    is_distressed: bool = False


class SqlAnalysisRepository:
    def __init__(self, uri: str = "sqlite:///flipwise.db"):
        self.engine = create_engine(uri, echo=False)
        SQLModel.metadata.create_all(self.engine)

    def save_analysis(self, result: AnalysisResult) -> int:
        row = AnalysisRow(**result.summary_row())
        with Session(self.engine) as session:
            session.add(row)
            session.flush()
            analysis_id = int(row.id)  # type: ignore[arg-type]

            for comp in result.arv.comparables:
                data = comp.to_row()
                remarks = data.pop("remarks")
                session.add(
                    ComparableRow(
                        analysis_id=analysis_id,
                        is_renovated=is_renovated(remarks),
                        is_distressed=is_distressed(remarks),
                        **data,
                    )
                )
            session.commit()

        logger.debug(
            "analysis_row_written",
            extra={"context": {"analysis_id": analysis_id, "comparables": len(result.arv.comparables)}},
        )
        return analysis_id

    def get(self, analysis_id: int) -> AnalysisRow | None:
        with Session(self.engine) as session:
            return session.get(AnalysisRow, analysis_id)

    def list_comparables(self, analysis_id: int) -> list[ComparableRow]:
        with Session(self.engine) as session:
            stmt = (
                select(ComparableRow)
                .where(ComparableRow.analysis_id == analysis_id)
                .order_by(col(ComparableRow.weight).desc())
            )
            return list(session.exec(stmt))

    def find_by_listing(self, listing_id: str, limit: int = 10) -> list[AnalysisRow]:
        with Session(self.engine) as session:
            stmt = (
                select(AnalysisRow)
                .where(AnalysisRow.listing_id == listing_id)
                .order_by(col(AnalysisRow.ts).desc(), col(AnalysisRow.id).desc())
                .limit(limit)
            )
            return list(session.exec(stmt))

    def delete(self, analysis_id: int) -> bool:
        with Session(self.engine) as session:
            row = session.get(AnalysisRow, analysis_id)
            if row is None:
                return False
            # comparables first: they reference the analysis row
            comps = session.exec(select(ComparableRow).where(ComparableRow.analysis_id == analysis_id))
            for comp in comps.all():
                session.delete(comp)
            session.flush()
            session.delete(row)
            session.commit()
        return True
