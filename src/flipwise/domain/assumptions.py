# src/flipwise/domain/assumptions.py
from pydantic import BaseModel, ConfigDict


class FinancialAssumptions(BaseModel):
    """
    Market constants used by every cost and scenario calculator.

    Defaults are calibrated for the Greater Boston market.
    """
    model_config = ConfigDict(frozen=True)

    # transaction
    commission_rate: float = 0.045
    closing_rate_buy: float = 0.015
    closing_rate_sell: float = 0.01
    transfer_tax_rate: float = 0.00456  # MA deed excise

    # holding
    insurance_rate: float = 0.005
    default_tax_rate: float = 0.013
    monthly_utilities: float = 350.0

    # hard money
    hard_money_rate: float = 0.105
    hard_money_points: float = 0.02
    hard_money_ltv: float = 0.80

    # rehab
    lead_paint_allowance: float = 8000.0
    lead_paint_cutoff_year: int = 1978
    min_rehab_ppsf: float = 2.0
    max_rehab_ppsf: float = 65.0

    # rental
    vacancy_rate: float = 0.05
    management_rate: float = 0.08
    maintenance_rate: float = 0.01
    capex_rate: float = 0.05
    rental_insurance_rate: float = 0.006
    depreciation_years: float = 27.5
    land_value_pct: float = 0.20
    tax_bracket: float = 0.32
    rent_per_sqft: float = 1.80

    # BRRRR refinance
    refi_ltv: float = 0.75
    refi_rate: float = 0.072
    refi_term_years: int = 30

    # MAO rule
    mao_arv_pct: float = 0.70

    @property
    def sale_cost_pct(self) -> float:
        return self.commission_rate + self.closing_rate_sell + self.transfer_tax_rate


class ArvAssumptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    radius_tiers: tuple[float, ...] = (0.5, 1.0, 2.0, 5.0, 10.0)
    min_comps: int = 3
    max_comps: int = 15
    lookback_months: int = 12
    max_adjustment_pct: float = 0.25
    ceiling_radius_miles: float = 0.5
    ceiling_percentile: float = 0.90
