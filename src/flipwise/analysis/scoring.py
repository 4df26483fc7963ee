# src/flipwise/analysis/scoring.py
from __future__ import annotations

from typing import Dict, Optional, Sequence

from flipwise.domain.property import SubjectProperty
from flipwise.domain.underwriting import CompositeScores, RiskGrade


def _bucket_ge(value: float, bands: Sequence[tuple[float, int]], floor: int) -> int:
    """First score whose threshold value reaches (>=)."""
    for threshold, score in bands:
        if value >= threshold:
            return score
    return floor


def _bucket_gt(value: float, bands: Sequence[tuple[float, int]], floor: int) -> int:
    for threshold, score in bands:
        if value > threshold:
            return score
    return floor


def _bucket_lt(value: float, bands: Sequence[tuple[float, int]], floor: int) -> int:
    for threshold, score in bands:
        if value < threshold:
            return score
    return floor


# =====================================================================
# Deal risk grade
# =====================================================================

RISK_WEIGHTS: Dict[str, float] = {
    "arv_confidence": 0.35,
    "margin_cushion": 0.25,
    "comp_consistency": 0.20,
    "market_velocity": 0.10,
    "comp_count_factor": 0.10,
}


def _grade_for(score: float) -> str:
    if score >= 80:
        return "A"
    if score >= 65:
        return "B"
    if score >= 50:
        return "C"
    if score >= 35:
        return "D"
    return "F"


def grade_risk(
    arv_confidence: float,
    breakeven_arv: float,
    arv: float,
    price_variance_cv: float,
    avg_dom: int,
    comp_count: int,
) -> RiskGrade:
    """
    Weighted composite of five 0-100 factors, mapped to a letter grade.
    Higher score means lower risk.
    """
    factors: Dict[str, int] = {}

    factors["arv_confidence"] = _bucket_ge(arv_confidence, [(75, 100), (50, 70), (20, 40)], 10)

    # how far ARV sits above breakeven, as a share of ARV
    if arv > 0 and breakeven_arv > 0:
        cushion = (arv - breakeven_arv) / arv
        factors["margin_cushion"] = _bucket_ge(cushion, [(0.30, 100), (0.20, 80), (0.10, 60), (0.0, 40)], 10)
    else:
        factors["margin_cushion"] = 10

    factors["comp_consistency"] = _bucket_lt(price_variance_cv, [(0.10, 100), (0.20, 70), (0.30, 40)], 15)

    if avg_dom > 90:
        factors["market_velocity"] = 30
    elif avg_dom > 60:
        factors["market_velocity"] = 50
    elif avg_dom > 30:
        factors["market_velocity"] = 70
    else:
        factors["market_velocity"] = 100

    factors["comp_count_factor"] = _bucket_ge(comp_count, [(8, 100), (5, 80), (3, 60), (1, 30)], 0)

    score = sum(factors[k] * w for k, w in RISK_WEIGHTS.items())

    return RiskGrade(grade=_grade_for(score), score=round(score, 2), factors=factors)  # type: ignore[arg-type]


# =====================================================================
# Composite opportunity scores
# =====================================================================

LOCATION_SCORE = 50.0  # no location data source yet; neutral


def _reduction_pct(list_price: float, original_list_price: Optional[float]) -> float:
    orig = original_list_price if original_list_price is not None else list_price
    if orig > 0 and orig > list_price:
        return (orig - list_price) / orig * 100
    return 0.0


def _reduction_score(pct: float) -> int:
    return _bucket_gt(pct, [(15, 100), (10, 80), (5, 60), (1, 40)], 20)


def _dom_score(dom: int) -> int:
    # stale listings mean a motivated seller
    return _bucket_gt(dom, [(90, 100), (60, 70), (30, 40)], 20)


def score_financial(
    list_price: float,
    arv: float,
    cash_roi: float,
    days_on_market: int,
    original_list_price: Optional[float] = None,
) -> float:
    """
    Financial score (0-100):
      price-to-ARV ratio 37.5%, price reduction 25%, DOM 12.5%, cash ROI 25%.
    """
    ratio = list_price / arv if arv > 0 else 1.0
    ratio_score = _bucket_lt(ratio, [(0.65, 100), (0.70, 80), (0.75, 60), (0.80, 40)], 20)
    reduction_score = _reduction_score(_reduction_pct(list_price, original_list_price))
    roi_score = _bucket_gt(cash_roi, [(30, 100), (20, 80), (15, 60), (10, 40)], 20)

    return (
        ratio_score * 0.375
        + reduction_score * 0.25
        + _dom_score(days_on_market) * 0.125
        + roi_score * 0.25
    )


def _age_score(age: int) -> int:
    # renovation sweet spot: 41-70 years old
    if 41 <= age <= 70:
        return 100
    if 21 <= age <= 40:
        return 80
    if 16 <= age <= 20:
        return 60
    if 6 <= age <= 15:
        return 40
    return 20


def score_property(subject: SubjectProperty, current_year: int) -> float:
    """Property score (0-100): lot 35%, living area 20%, age 30%, bedrooms 15%."""
    lot = subject.lot_size_acres or 0.0
    area = subject.living_area or 0
    beds = subject.bedrooms or 0
    year = subject.year_built or 0

    lot_score = _bucket_gt(lot, [(0.5, 100), (0.25, 80), (0.15, 60), (0.10, 40)], 20)
    sqft_score = _bucket_gt(area, [(2500, 100), (2000, 80), (1500, 60), (1000, 40)], 20)
    age = max(0, current_year - year) if year > 0 else 0
    bed_score = _bucket_ge(beds, [(4, 100), (3, 80), (2, 60)], 40)

    return lot_score * 0.35 + sqft_score * 0.20 + _age_score(age) * 0.30 + bed_score * 0.15


def season_score(month: int) -> int:
    if 1 <= month <= 3:
        return 30
    if 4 <= month <= 6:
        return 80
    if 7 <= month <= 9:
        return 100
    return 60


def score_market(
    list_price: float,
    days_on_market: int,
    month: int,
    original_list_price: Optional[float] = None,
) -> float:
    """Market score (0-100): DOM 40%, price reduction 30%, season 30%."""
    reduction_score = _reduction_score(_reduction_pct(list_price, original_list_price))
    return _dom_score(days_on_market) * 0.40 + reduction_score * 0.30 + season_score(month) * 0.30


def composite_scores(financial: float, property_: float, market: float) -> CompositeScores:
    total = 0.70 * financial + 0.20 * property_ + 0.10 * market
    rental = 0.60 * financial + 0.30 * property_ + 0.10 * market
    brrrr = 0.65 * financial + 0.25 * property_ + 0.10 * market

    return CompositeScores(
        total_score=round(total, 1),
        financial_score=round(financial, 1),
        property_score=round(property_, 1),
        location_score=round(LOCATION_SCORE, 1),
        market_score=round(market, 1),
        flip_score=round(total, 1),
        rental_score=round(rental, 1),
        brrrr_score=round(brrrr, 1),
    )
