from __future__ import annotations

from datetime import date
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Property types as they arrive from the listing feed.
SINGLE_FAMILY = "Single Family Residence"
CONDOMINIUM = "Condominium"
TOWNHOUSE = "Townhouse"
MULTI_FAMILY = "Multi Family"
TWO_FAMILY = "Two Family"
THREE_FAMILY = "Three Family"

CLOSED = "Closed"


class PropertyFacts(BaseModel):
    """
    Physical attributes shared by a subject listing and a closed sale.

    Unknown values are None. Callers never need to check whether a field
    "exists" on the record.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    listing_id: str = ""
    address: str = ""
    city: str = ""
    property_type: str = ""

    latitude: float | None = None
    longitude: float | None = None

    bedrooms: int | None = None
    bathrooms: float | None = None
    living_area: int | None = None
    lot_size_acres: float | None = None
    year_built: int | None = None
    garage_spaces: int | None = None
    days_on_market: int | None = None

    @field_validator("latitude")
    @classmethod
    def _lat_range(cls, v: float | None) -> float | None:
        if v is not None and not (-90.0 <= v <= 90.0):
            raise ValueError("latitude must be between -90 and 90")
        return v

    @field_validator("longitude")
    @classmethod
    def _lng_range(cls, v: float | None) -> float | None:
        if v is not None and not (-180.0 <= v <= 180.0):
            raise ValueError("longitude must be between -180 and 180")
        return v

    @property
    def has_coordinates(self) -> bool:
        # 0.0 is what the feed sends for "not geocoded"
        return bool(self.latitude) and bool(self.longitude)


class SubjectProperty(PropertyFacts):
    state: str = ""
    zipcode: str = ""

    list_price: float = Field(0.0, ge=0.0, description="Asking price")
    original_list_price: float | None = Field(None, ge=0.0)
    tax_rate: float | None = Field(None, ge=0.0, description="Annual property tax rate, e.g. 0.011")


class PropertyRecord(PropertyFacts):
    """A listing or sale as the property store keeps it."""
    status: str = CLOSED
    list_price: float | None = None
    close_price: float | None = None
    close_date: date | None = None
    remarks: str = ""


class ComparableSale(PropertyRecord):
    """A closed sale returned for a specific subject, with its distance."""
    distance_miles: float = 0.0


# Fields compared when deciding whether a stored record needs rewriting.
# Identifiers, timestamps and free-text blobs are left out.
TRACKABLE_FIELDS: tuple[str, ...] = (
    "status",
    "property_type",
    "latitude",
    "longitude",
    "bedrooms",
    "bathrooms",
    "living_area",
    "lot_size_acres",
    "year_built",
    "garage_spaces",
    "days_on_market",
    "list_price",
    "close_price",
    "close_date",
)


def changed_fields(stored: Mapping[str, Any], fresh: PropertyRecord) -> dict[str, Any]:
    """
    Return {field: new_value} for every trackable field whose fresh value
    differs from the stored one. A None in the fresh record never clears a
    stored value.
    """
    changes: dict[str, Any] = {}
    for name in TRACKABLE_FIELDS:
        new = getattr(fresh, name)
        if new is None:
            continue
        if stored.get(name) != new:
            changes[name] = new
    return changes
