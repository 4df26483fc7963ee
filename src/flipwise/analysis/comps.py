# src/flipwise/analysis/comps.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from flipwise.adapters.logging_utils import get_logger
from flipwise.domain.assumptions import ArvAssumptions
from flipwise.domain.ports import PropertyStore
from flipwise.domain.property import (
    CLOSED,
    CONDOMINIUM,
    MULTI_FAMILY,
    SINGLE_FAMILY,
    THREE_FAMILY,
    TOWNHOUSE,
    TWO_FAMILY,
    ComparableSale,
    PropertyRecord,
    SubjectProperty,
)

logger = get_logger(__name__)

_MULTI = (MULTI_FAMILY, TWO_FAMILY, THREE_FAMILY)

# Subject type -> comp types that may stand in for it.
PROPERTY_TYPE_GROUPS: dict[str, tuple[str, ...]] = {
    SINGLE_FAMILY: (SINGLE_FAMILY,),
    CONDOMINIUM: (CONDOMINIUM,),
    MULTI_FAMILY: _MULTI,
    TWO_FAMILY: _MULTI,
    THREE_FAMILY: _MULTI,
    TOWNHOUSE: (TOWNHOUSE, CONDOMINIUM),
}


def compatible_property_types(property_type: str) -> tuple[str, ...]:
    return PROPERTY_TYPE_GROUPS.get(property_type, (property_type,))


def lookback_cutoff(now: datetime | date, months: int) -> date:
    """Same calendar day `months` back, clamped to the end of shorter months."""
    d = now.date() if isinstance(now, datetime) else now
    total = d.year * 12 + (d.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    for day in (d.day, 30, 29, 28):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    raise ValueError(f"cannot compute cutoff for {d!r}")


@dataclass(frozen=True)
class SearchCriteria:
    """Attribute filters a store applies before the distance cut."""
    property_types: tuple[str, ...]
    closed_since: date
    exclude_listing_id: str = ""
    min_beds: int | None = None
    max_beds: int | None = None
    min_baths: float | None = None
    max_baths: float | None = None

    @classmethod
    def for_subject(cls, subject: SubjectProperty, closed_since: date) -> "SearchCriteria":
        min_beds = max_beds = None
        if subject.bedrooms is not None:
            min_beds, max_beds = max(0, subject.bedrooms - 1), subject.bedrooms + 1

        min_baths = max_baths = None
        if subject.bathrooms is not None:
            min_baths, max_baths = max(0.0, subject.bathrooms - 1), subject.bathrooms + 1

        return cls(
            property_types=compatible_property_types(subject.property_type),
            closed_since=closed_since,
            exclude_listing_id=subject.listing_id,
            min_beds=min_beds,
            max_beds=max_beds,
            min_baths=min_baths,
            max_baths=max_baths,
        )

    def matches(self, rec: PropertyRecord) -> bool:
        if rec.status != CLOSED:
            return False
        if rec.close_date is None or rec.close_date < self.closed_since:
            return False
        if rec.property_type not in self.property_types:
            return False
        if self.exclude_listing_id and rec.listing_id == self.exclude_listing_id:
            return False
        if not rec.has_coordinates:
            return False
        if self.min_beds is not None:
            if rec.bedrooms is None or not (self.min_beds <= rec.bedrooms <= self.max_beds):
                return False
        if self.min_baths is not None:
            if rec.bathrooms is None or not (self.min_baths <= rec.bathrooms <= self.max_baths):
                return False
        return True


class ComparableSearch:
    def __init__(self, store: PropertyStore, assumptions: ArvAssumptions | None = None) -> None:
        self.store = store
        self.assumptions = assumptions or ArvAssumptions()

    def find(
        self,
        subject: SubjectProperty,
        radius_miles: float,
        limit: int,
        *,
        closed_since: date,
    ) -> list[ComparableSale]:
        # Un-geocoded subjects get no comps rather than an error.
        if not subject.has_coordinates:
            return []
        comps = self.store.find_closed_comparables(
            subject, radius_miles, limit, closed_since=closed_since
        )
        return sorted(comps, key=lambda c: c.distance_miles)[:limit]

    def search_tiers(self, subject: SubjectProperty, *, closed_since: date) -> list[ComparableSale]:
        """
        Widen the radius tier by tier until we have enough comps.
        The last (possibly short) result set is returned when tiers run out.
        """
        a = self.assumptions
        comps: list[ComparableSale] = []
        for radius in a.radius_tiers:
            comps = self.find(subject, radius, a.max_comps, closed_since=closed_since)
            logger.debug(
                "comparable_search_tier",
                extra={"context": {"listing_id": subject.listing_id, "radius": radius, "found": len(comps)}},
            )
            if len(comps) >= a.min_comps:
                break
        return comps
