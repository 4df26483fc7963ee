from __future__ import annotations

from typing import Optional

from flipwise.domain.property import SubjectProperty
from flipwise.domain.underwriting import (
    ArvResult,
    BrrrrScenario,
    CashScenario,
    RentalScenario,
    Strategy,
    Viability,
)

MIN_LIST_PRICE = 100_000.0
MIN_LIVING_AREA = 600

MIN_FLIP_PROFIT = 25_000.0
MIN_FLIP_ROI = 15.0
MIN_RENTAL_CAP_RATE = 3.0
MIN_RENTAL_MONTHLY_NOI = -200.0
MIN_BRRRR_DSCR = 0.9
MAX_BRRRR_CASH_LEFT_MULTIPLE = 2.0

# Tie-break order when two viable strategies score the same.
STRATEGY_PRIORITY: tuple[Strategy, ...] = ("flip", "brrrr", "rental")


def check_disqualification(subject: SubjectProperty, arv: ArvResult) -> Optional[str]:
    """
    Universal disqualifiers. Returns the first matching reason, or None.
    """
    if subject.list_price < MIN_LIST_PRICE:
        return "List price below $100K minimum"
    if arv.comp_count == 0:
        return "No comparable sales found"
    if (subject.living_area or 0) < MIN_LIVING_AREA:
        return "Living area below 600 sqft minimum"
    return None


def strategy_scores(
    cash: CashScenario,
    rental: RentalScenario,
    brrrr: BrrrrScenario,
) -> dict[Strategy, float]:
    """Proxy score per strategy used only for ranking viable strategies."""
    return {
        "flip": cash.roi,
        "rental": rental.cap_rate * 10,
        "brrrr": brrrr.dscr * 50,
    }


def pick_best_strategy(candidates: dict[Strategy, float]) -> Optional[Strategy]:
    if not candidates:
        return None
    ranked = sorted(
        candidates.items(),
        key=lambda kv: (-kv[1], STRATEGY_PRIORITY.index(kv[0])),
    )
    return ranked[0][0]


def check_viability(
    cash: CashScenario,
    rental: RentalScenario,
    brrrr: BrrrrScenario,
    dq_reason: Optional[str],
) -> Viability:
    ok = dq_reason is None

    flip_viable = ok and cash.profit > MIN_FLIP_PROFIT and cash.roi > MIN_FLIP_ROI
    rental_viable = (
        ok
        and rental.cap_rate >= MIN_RENTAL_CAP_RATE
        and rental.noi / 12 > MIN_RENTAL_MONTHLY_NOI
    )
    brrrr_viable = (
        ok
        and brrrr.dscr >= MIN_BRRRR_DSCR
        and brrrr.cash_left < cash.investment * MAX_BRRRR_CASH_LEFT_MULTIPLE
    )

    viable = {"flip": flip_viable, "rental": rental_viable, "brrrr": brrrr_viable}
    scores = strategy_scores(cash, rental, brrrr)
    best = pick_best_strategy({k: v for k, v in scores.items() if viable[k]})

    return Viability(
        flip_viable=flip_viable,
        rental_viable=rental_viable,
        brrrr_viable=brrrr_viable,
        disqualified=not any(viable.values()),
        best_strategy=best,
    )
