# src/flipwise/adapters/rehab_estimator.py
from __future__ import annotations

from dataclasses import dataclass

from flipwise.domain.assumptions import FinancialAssumptions
from flipwise.domain.underwriting import RehabEstimate


@dataclass
class RehabEstimatorConfig:
    """
    Age-driven rehab model for flip underwriting.

    Older houses get a higher base cost per sqft; recently built ones are
    discounted hard by the age-condition multiplier.
    """
    base_ppsf: float = 10.0
    ppsf_per_year_of_age: float = 0.7
    min_base_ppsf: float = 5.0
    max_base_ppsf: float = 65.0
    min_effective_ppsf: float = 2.0
    default_age: int = 30
    lead_paint_allowance: float = 8000.0
    lead_paint_cutoff_year: int = 1978

    @classmethod
    def from_assumptions(cls, a: FinancialAssumptions) -> "RehabEstimatorConfig":
        return cls(
            max_base_ppsf=a.max_rehab_ppsf,
            min_effective_ppsf=a.min_rehab_ppsf,
            lead_paint_allowance=a.lead_paint_allowance,
            lead_paint_cutoff_year=a.lead_paint_cutoff_year,
        )


# (max age inclusive, multiplier)
_AGE_CONDITION_BANDS = ((5, 0.10), (10, 0.30), (15, 0.50), (20, 0.75))

# (max effective ppsf inclusive, contingency rate)
_CONTINGENCY_BANDS = ((20.0, 0.08), (35.0, 0.12), (50.0, 0.15))


def age_condition_multiplier(age: int) -> float:
    for max_age, mult in _AGE_CONDITION_BANDS:
        if age <= max_age:
            return mult
    return 1.0


def contingency_rate(effective_ppsf: float) -> float:
    for max_ppsf, rate in _CONTINGENCY_BANDS:
        if effective_ppsf <= max_ppsf:
            return rate
    return 0.20


class RehabEstimator:
    """
    Estimate rehab budget from living area and year built.

    Output is a RehabEstimate; total is 0 when living area is unknown.
    """

    def __init__(self, cfg: RehabEstimatorConfig | None = None) -> None:
        self.cfg = cfg or RehabEstimatorConfig()

    def estimate(
        self,
        living_area: int | None,
        year_built: int | None,
        current_year: int,
    ) -> RehabEstimate:
        if not living_area or living_area <= 0:
            return RehabEstimate(total=0.0, per_sqft=0.0, contingency_rate=0.0, lead_paint=0.0, base_cost=0.0)

        known_year = year_built is not None and year_built > 0
        age = max(0, current_year - year_built) if known_year else self.cfg.default_age

        base_ppsf = min(
            self.cfg.max_base_ppsf,
            max(self.cfg.min_base_ppsf, self.cfg.base_ppsf + age * self.cfg.ppsf_per_year_of_age),
        )
        effective_ppsf = max(self.cfg.min_effective_ppsf, base_ppsf * age_condition_multiplier(age))
        base_cost = living_area * effective_ppsf

        rate = contingency_rate(effective_ppsf)

        # pre-1978 housing: lead paint abatement
        lead_paint = (
            self.cfg.lead_paint_allowance
            if known_year and year_built < self.cfg.lead_paint_cutoff_year
            else 0.0
        )

        total = base_cost + base_cost * rate + lead_paint

        return RehabEstimate(
            total=round(total, 2),
            per_sqft=round(effective_ppsf, 2),
            contingency_rate=rate,
            lead_paint=float(lead_paint),
            base_cost=round(base_cost, 2),
        )
