# src/flipwise/analysis/adjustments.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from flipwise.domain.property import ComparableSale, PropertyFacts

BASELINE_PPSF = 350.0

BEDROOM_FACTOR = 40.0
BATHROOM_FACTOR = 55.0
GARAGE_FACTOR = 40.0
SQFT_FACTOR = 0.5
YEAR_BUILT_RATE = 0.004     # of close price, per year
LOT_RATE = 0.02             # of close price, per lot unit
LOT_UNIT_ACRES = 0.25

SQFT_CAP_PCT = 0.15
YEAR_BUILT_CAP_PCT = 0.10
LOT_CAP_PCT = 0.10
MAX_ADJUSTMENT_PCT = 0.25


@dataclass(frozen=True)
class Adjustment:
    adjustments: Dict[str, float]
    total: float
    adjusted_price: float
    gross_pct: float


def _clamp(value: float, cap: float) -> float:
    return max(-cap, min(cap, value))


def _known(v: float | None) -> bool:
    return v is not None and v > 0


def calculate_adjustments(
    subject: PropertyFacts,
    comp: ComparableSale,
    avg_ppsf: float = 0.0,
    max_adjustment_pct: float = MAX_ADJUSTMENT_PCT,
) -> Adjustment:
    """
    Appraisal-style dollar adjustments that move a comp's price toward the subject.

    A positive adjustment means the subject has more of the feature than the comp.
    Features missing on either side are skipped. Per-feature caps and the
    aggregate cap are fractions of the comp's close price.
    """
    close_price = float(comp.close_price or 0.0)
    if close_price <= 0:
        return Adjustment(adjustments={}, total=0.0, adjusted_price=0.0, gross_pct=0.0)

    if avg_ppsf <= 0:
        avg_ppsf = close_price / comp.living_area if _known(comp.living_area) else BASELINE_PPSF

    ppsf = avg_ppsf
    scale = avg_ppsf / BASELINE_PPSF
    adj: Dict[str, float] = {}

    if _known(subject.bedrooms) and _known(comp.bedrooms):
        adj["bedroom"] = ppsf * BEDROOM_FACTOR * scale * (subject.bedrooms - comp.bedrooms)

    if _known(subject.bathrooms) and _known(comp.bathrooms):
        adj["bathroom"] = ppsf * BATHROOM_FACTOR * scale * (subject.bathrooms - comp.bathrooms)

    if _known(subject.living_area) and _known(comp.living_area):
        raw = ppsf * SQFT_FACTOR * (subject.living_area - comp.living_area)
        adj["sqft"] = _clamp(raw, close_price * SQFT_CAP_PCT)

    if _known(subject.year_built) and _known(comp.year_built):
        raw = YEAR_BUILT_RATE * close_price * (subject.year_built - comp.year_built)
        adj["year_built"] = _clamp(raw, close_price * YEAR_BUILT_CAP_PCT)

    # 0 garage spaces is real data, unlike 0 beds
    if subject.garage_spaces is not None and comp.garage_spaces is not None:
        diff = subject.garage_spaces - comp.garage_spaces
        if diff != 0:
            adj["garage"] = ppsf * GARAGE_FACTOR * scale * diff

    if _known(subject.lot_size_acres) and _known(comp.lot_size_acres):
        units = (subject.lot_size_acres - comp.lot_size_acres) / LOT_UNIT_ACRES
        adj["lot_size"] = _clamp(LOT_RATE * close_price * units, close_price * LOT_CAP_PCT)

    total = _clamp(sum(adj.values()), close_price * max_adjustment_pct)

    return Adjustment(
        adjustments=adj,
        total=round(total, 2),
        adjusted_price=round(close_price + total, 2),
        gross_pct=round(abs(total) / close_price * 100, 2),
    )
