from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Optional

from flipwise.domain.property import ComparableSale, SubjectProperty

ConfidenceLevel = Literal["none", "low", "medium", "high"]
Strategy = Literal["flip", "rental", "brrrr"]


@dataclass(frozen=True)
class AdjustedComparable:
    comp: ComparableSale
    adjustments: Dict[str, float]   # feature -> dollars
    total_adjustment: float
    adjusted_price: float
    gross_adjustment_pct: float
    weight: float

    def to_row(self) -> Dict[str, Any]:
        c = self.comp
        return {
            "listing_id": c.listing_id,
            "address": c.address,
            "city": c.city,
            "property_type": c.property_type,
            "close_price": c.close_price,
            "close_date": c.close_date,
            "adjusted_price": self.adjusted_price,
            "adjustment_total": self.total_adjustment,
            "adjustments": dict(self.adjustments),
            "distance_miles": c.distance_miles,
            "bedrooms": c.bedrooms,
            "bathrooms": c.bathrooms,
            "living_area": c.living_area,
            "year_built": c.year_built,
            "lot_size_acres": c.lot_size_acres,
            "garage_spaces": c.garage_spaces,
            "days_on_market": c.days_on_market,
            "weight": self.weight,
            "remarks": c.remarks,
        }


@dataclass(frozen=True)
class ArvResult:
    arv: float
    confidence: ConfidenceLevel
    confidence_score: float         # 0-100
    comp_count: int
    avg_ppsf: Optional[float]
    neighborhood_ceiling: Optional[float]
    comparables: List[AdjustedComparable] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "ArvResult":
        return cls(
            arv=0.0,
            confidence="none",
            confidence_score=0.0,
            comp_count=0,
            avg_ppsf=None,
            neighborhood_ceiling=None,
            comparables=[],
        )


@dataclass(frozen=True)
class RehabEstimate:
    total: float
    per_sqft: float
    contingency_rate: float
    lead_paint: float
    base_cost: float


@dataclass(frozen=True)
class TransactionCosts:
    purchase_closing: float
    sale_costs: float
    transfer_tax_buy: float
    transfer_tax_sell: float


@dataclass(frozen=True)
class HoldingCosts:
    monthly_tax: float
    monthly_insurance: float
    monthly_utilities: float
    total: float


@dataclass(frozen=True)
class CashScenario:
    profit: float
    roi: float                      # percent
    investment: float


@dataclass(frozen=True)
class FinancedScenario:
    profit: float
    cash_on_cash_roi: float         # percent
    cash_invested: float
    loan_amount: float
    financing_costs: float
    annualized_roi: float           # percent


@dataclass(frozen=True)
class RentalScenario:
    monthly_rent: float
    annual_gross: float
    vacancy_loss: float
    operating_expenses: float
    noi: float                      # annual
    cap_rate: float                 # percent
    cash_on_cash: float             # percent
    grm: float
    annual_depreciation: float
    tax_shelter: float


@dataclass(frozen=True)
class BrrrrScenario:
    refi_loan: float
    monthly_payment: float
    annual_debt_service: float
    post_refi_cash_flow: float
    dscr: float
    cash_left: float


@dataclass(frozen=True)
class MaoResult:
    classic: float
    adjusted: float


@dataclass(frozen=True)
class RiskGrade:
    grade: Literal["A", "B", "C", "D", "F"]
    score: float                    # 0-100
    factors: Dict[str, int]


@dataclass(frozen=True)
class CompositeScores:
    total_score: float
    financial_score: float
    property_score: float
    location_score: float
    market_score: float
    flip_score: float
    rental_score: float
    brrrr_score: float


@dataclass(frozen=True)
class Viability:
    flip_viable: bool
    rental_viable: bool
    brrrr_viable: bool
    disqualified: bool              # no strategy is viable
    best_strategy: Optional[Strategy]


@dataclass(frozen=True)
class AnalysisResult:
    subject: SubjectProperty
    arv: ArvResult
    rehab: RehabEstimate
    hold_months: int
    transaction_costs: TransactionCosts
    holding_costs: HoldingCosts

    cash: CashScenario
    financed: FinancedScenario
    rental: RentalScenario
    brrrr: BrrrrScenario
    mao: MaoResult
    breakeven_arv: float

    viability: Viability
    dq_reason: Optional[str]
    scores: CompositeScores
    risk: RiskGrade

    # Diagnostics
    guardrail_flags: List[Dict[str, Any]] = field(default_factory=list)
    analysis_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["subject"] = self.subject.model_dump(mode="json")
        out["arv"]["comparables"] = [
            {**asdict(c), "comp": c.comp.model_dump(mode="json")} for c in self.arv.comparables
        ]
        return out

    def summary_row(self) -> Dict[str, Any]:
        """Flat record of the headline numbers, one column per metric."""
        s = self.subject
        return {
            "listing_id": s.listing_id,
            "address": s.address,
            "city": s.city,
            "state": s.state,
            "zipcode": s.zipcode,
            "property_type": s.property_type,
            "list_price": s.list_price,
            "living_area": s.living_area,
            "year_built": s.year_built,
            "days_on_market": s.days_on_market,
            "estimated_arv": self.arv.arv,
            "arv_confidence": self.arv.confidence,
            "arv_confidence_score": self.arv.confidence_score,
            "comp_count": self.arv.comp_count,
            "avg_comp_ppsf": self.arv.avg_ppsf,
            "neighborhood_ceiling": self.arv.neighborhood_ceiling,
            "estimated_rehab_cost": self.rehab.total,
            "rehab_per_sqft": self.rehab.per_sqft,
            "estimated_hold_months": self.hold_months,
            "purchase_closing_cost": self.transaction_costs.purchase_closing,
            "sale_costs": self.transaction_costs.sale_costs,
            "holding_costs": self.holding_costs.total,
            "cash_profit": self.cash.profit,
            "cash_roi": self.cash.roi,
            "cash_investment": self.cash.investment,
            "financed_profit": self.financed.profit,
            "cash_on_cash_roi": self.financed.cash_on_cash_roi,
            "annualized_roi": self.financed.annualized_roi,
            "mao_classic": self.mao.classic,
            "mao_adjusted": self.mao.adjusted,
            "breakeven_arv": self.breakeven_arv,
            "total_score": self.scores.total_score,
            "financial_score": self.scores.financial_score,
            "property_score": self.scores.property_score,
            "location_score": self.scores.location_score,
            "market_score": self.scores.market_score,
            "flip_score": self.scores.flip_score,
            "rental_score": self.scores.rental_score,
            "brrrr_score": self.scores.brrrr_score,
            "best_strategy": self.viability.best_strategy,
            "flip_viable": self.viability.flip_viable,
            "rental_viable": self.viability.rental_viable,
            "brrrr_viable": self.viability.brrrr_viable,
            "disqualified": self.viability.disqualified,
            "dq_reason": self.dq_reason,
            "deal_risk_grade": self.risk.grade,
            "rental_analysis": asdict(self.rental),
            "brrrr_analysis": asdict(self.brrrr),
            "risk_factors": dict(self.risk.factors),
        }
