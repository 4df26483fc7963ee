from __future__ import annotations

from dataclasses import replace
from typing import Optional

from flipwise.adapters.clock import SystemClock
from flipwise.adapters.logging_utils import get_logger
from flipwise.adapters.rehab_estimator import RehabEstimator, RehabEstimatorConfig
from flipwise.analysis.confidence import price_cv
from flipwise.analysis.finance import (
    calculate_breakeven_arv,
    calculate_brrrr,
    calculate_cash_scenario,
    calculate_financed_scenario,
    calculate_holding_costs,
    calculate_mao,
    calculate_rental_analysis,
    calculate_transaction_costs,
    estimate_hold_period,
    estimate_monthly_rent,
)
from flipwise.analysis.scoring import composite_scores, grade_risk, score_financial, score_market, score_property
from flipwise.analysis.valuation import ArvCalculator
from flipwise.domain.assumptions import ArvAssumptions, FinancialAssumptions
from flipwise.domain.ports import AnalysisRepository, Clock, PropertyStore
from flipwise.domain.property import SubjectProperty
from flipwise.domain.rules import check_disqualification, check_viability
from flipwise.domain.underwriting import AnalysisResult
from flipwise.services.guardrails import collect_guardrail_flags

logger = get_logger(__name__)

DEFAULT_DAYS_ON_MARKET = 30


class FlipAnalyzer:
    """
    Runs the full valuation + financial model for one subject property.

    Stateless between calls: the only I/O is the two property-store queries
    made by the ARV step and the optional save at the end.
    """

    def __init__(
        self,
        store: PropertyStore,
        assumptions: FinancialAssumptions | None = None,
        clock: Clock | None = None,
        repo: AnalysisRepository | None = None,
        arv_assumptions: ArvAssumptions | None = None,
    ) -> None:
        self.store = store
        self.assumptions = assumptions or FinancialAssumptions()
        self.clock = clock or SystemClock()
        self.repo = repo
        self.arv_calculator = ArvCalculator(store, self.clock, arv_assumptions)
        self.rehab_estimator = RehabEstimator(RehabEstimatorConfig.from_assumptions(self.assumptions))

    def analyze(self, subject: SubjectProperty, *, save: bool = True) -> AnalysisResult:
        a = self.assumptions
        now = self.clock.now()

        # 1. ARV
        arv_result = self.arv_calculator.calculate(subject)
        arv = arv_result.arv

        # 2. Rehab + hold period
        rehab = self.rehab_estimator.estimate(subject.living_area, subject.year_built, now.year)
        avg_dom = subject.days_on_market if subject.days_on_market is not None else DEFAULT_DAYS_ON_MARKET
        hold_months = estimate_hold_period(rehab.per_sqft, avg_dom)

        # 3. Costs
        list_price = subject.list_price
        txn = calculate_transaction_costs(list_price, arv, a)
        holding = calculate_holding_costs(list_price, hold_months, subject.tax_rate, a)

        # 4. Flip scenarios
        cash = calculate_cash_scenario(
            list_price, arv, rehab.total, txn.purchase_closing, txn.sale_costs, holding.total
        )
        financed = calculate_financed_scenario(
            list_price, arv, rehab.total, txn.purchase_closing, txn.sale_costs, holding.total, hold_months, a
        )
        mao = calculate_mao(arv, rehab.total, holding.total, financed.financing_costs, a)
        breakeven = calculate_breakeven_arv(
            list_price, rehab.total, txn.purchase_closing, holding.total, financed.financing_costs, a
        )

        # 5. Disqualification (recorded, never short-circuits)
        dq_reason = check_disqualification(subject, arv_result)

        # 6. Hold strategies
        monthly_rent = estimate_monthly_rent(subject.living_area, a)
        rental = calculate_rental_analysis(arv, monthly_rent, cash.investment, subject.tax_rate, a)
        brrrr = calculate_brrrr(arv, rental.noi, cash.investment, a)

        viability = check_viability(cash, rental, brrrr, dq_reason)

        # 7. Scores
        financial_score = score_financial(
            list_price, arv, cash.roi, avg_dom, subject.original_list_price
        )
        property_score = score_property(subject, now.year)
        market_score = score_market(list_price, avg_dom, now.month, subject.original_list_price)
        scores = composite_scores(financial_score, property_score, market_score)

        adjusted_cv = price_cv(c.adjusted_price for c in arv_result.comparables) or 0.0
        risk = grade_risk(
            arv_result.confidence_score,
            breakeven,
            arv,
            adjusted_cv,
            avg_dom,
            arv_result.comp_count,
        )

        flags = collect_guardrail_flags(list_price, arv_result, rehab, mao, cash, subject.listing_id)

        result = AnalysisResult(
            subject=subject,
            arv=arv_result,
            rehab=rehab,
            hold_months=hold_months,
            transaction_costs=txn,
            holding_costs=holding,
            cash=cash,
            financed=financed,
            rental=rental,
            brrrr=brrrr,
            mao=mao,
            breakeven_arv=breakeven,
            viability=viability,
            dq_reason=dq_reason,
            scores=scores,
            risk=risk,
            guardrail_flags=flags,
        )

        logger.info(
            "property_analyzed",
            extra={
                "context": {
                    "listing_id": subject.listing_id,
                    "arv": arv,
                    "best_strategy": viability.best_strategy,
                    "dq_reason": dq_reason,
                    "risk_grade": risk.grade,
                    "total_score": scores.total_score,
                }
            },
        )

        # Persistence: only if save=True AND repo provided
        if save and self.repo is not None:
            try:
                analysis_id = self.repo.save_analysis(result)
            except Exception as e:
                # a failed write must not lose the computed analysis
                logger.warning(
                    "save_analysis_failed",
                    extra={"context": {"listing_id": subject.listing_id, "error": str(e)}},
                )
            else:
                result = replace(result, analysis_id=analysis_id)
                logger.info(
                    "analysis_saved",
                    extra={"context": {"listing_id": subject.listing_id, "analysis_id": analysis_id}},
                )

        return result


def analyze_property(
    subject: SubjectProperty,
    store: PropertyStore,
    *,
    assumptions: Optional[FinancialAssumptions] = None,
    clock: Optional[Clock] = None,
    repo: Optional[AnalysisRepository] = None,
    arv_assumptions: Optional[ArvAssumptions] = None,
    save: bool = True,
) -> AnalysisResult:
    analyzer = FlipAnalyzer(
        store, assumptions=assumptions, clock=clock, repo=repo, arv_assumptions=arv_assumptions
    )
    return analyzer.analyze(subject, save=save)
