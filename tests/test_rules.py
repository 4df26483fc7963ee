# tests/test_rules.py
from flipwise.domain.rules import check_disqualification, check_viability, pick_best_strategy
from flipwise.domain.underwriting import ArvResult, BrrrrScenario, CashScenario, RentalScenario

from .fixtures.sales import subject_property


def _arv(comp_count=5) -> ArvResult:
    if comp_count == 0:
        return ArvResult.empty()
    return ArvResult(
        arv=500_000.0,
        confidence="high",
        confidence_score=90.0,
        comp_count=comp_count,
        avg_ppsf=333.33,
        neighborhood_ceiling=None,
    )


def _cash(profit=100_000.0, roi=50.0, investment=200_000.0) -> CashScenario:
    return CashScenario(profit=profit, roi=roi, investment=investment)


def _rental(cap_rate=5.0, noi=20_000.0) -> RentalScenario:
    return RentalScenario(
        monthly_rent=2500.0,
        annual_gross=30_000.0,
        vacancy_loss=1500.0,
        operating_expenses=10_000.0,
        noi=noi,
        cap_rate=cap_rate,
        cash_on_cash=8.0,
        grm=8.0,
        annual_depreciation=10_000.0,
        tax_shelter=3200.0,
    )


def _brrrr(dscr=1.0, cash_left=0.0) -> BrrrrScenario:
    return BrrrrScenario(
        refi_loan=300_000.0,
        monthly_payment=2000.0,
        annual_debt_service=24_000.0,
        post_refi_cash_flow=-4000.0,
        dscr=dscr,
        cash_left=cash_left,
    )


def test_cheap_listing_is_disqualified():
    reason = check_disqualification(subject_property(list_price=90_000.0), _arv())
    assert reason == "List price below $100K minimum"


def test_no_comps_is_disqualified():
    reason = check_disqualification(subject_property(), _arv(comp_count=0))
    assert reason == "No comparable sales found"


def test_small_house_is_disqualified():
    reason = check_disqualification(subject_property(living_area=500), _arv())
    assert reason == "Living area below 600 sqft minimum"


def test_unknown_living_area_is_disqualified():
    reason = check_disqualification(subject_property(living_area=None), _arv())
    assert reason == "Living area below 600 sqft minimum"


def test_first_matching_reason_wins():
    subject = subject_property(list_price=50_000.0, living_area=400)
    assert check_disqualification(subject, _arv(comp_count=0)) == "List price below $100K minimum"


def test_clean_subject_passes():
    assert check_disqualification(subject_property(), _arv()) is None


def test_all_strategies_tied_prefers_flip():
    # flip 50, rental 5 * 10, brrrr 1.0 * 50
    v = check_viability(_cash(), _rental(), _brrrr(), None)
    assert v.flip_viable and v.rental_viable and v.brrrr_viable
    assert v.best_strategy == "flip"
    assert not v.disqualified


def test_brrrr_beats_rental_on_tie():
    v = check_viability(_cash(profit=1000.0), _rental(), _brrrr(), None)
    assert not v.flip_viable
    assert v.best_strategy == "brrrr"


def test_highest_proxy_score_wins():
    v = check_viability(_cash(roi=20.0), _rental(cap_rate=6.0), _brrrr(dscr=0.95), None)
    # flip 20, rental 60, brrrr 47.5
    assert v.best_strategy == "rental"


def test_flip_thresholds_are_strict():
    v = check_viability(_cash(profit=25_000.0, roi=30.0), _rental(cap_rate=1.0), _brrrr(dscr=0.5), None)
    assert not v.flip_viable
    v = check_viability(_cash(profit=30_000.0, roi=15.0), _rental(cap_rate=1.0), _brrrr(dscr=0.5), None)
    assert not v.flip_viable


def test_rental_needs_monthly_noi_above_floor():
    v = check_viability(_cash(profit=0.0), _rental(cap_rate=3.0, noi=-2400.0), _brrrr(dscr=0.5), None)
    assert not v.rental_viable
    v = check_viability(_cash(profit=0.0), _rental(cap_rate=3.0, noi=-2399.0), _brrrr(dscr=0.5), None)
    assert v.rental_viable


def test_brrrr_cash_left_limit():
    v = check_viability(_cash(profit=0.0, investment=100_000.0), _rental(cap_rate=1.0), _brrrr(cash_left=200_000.0), None)
    assert not v.brrrr_viable


def test_nothing_viable_means_disqualified():
    v = check_viability(_cash(profit=0.0), _rental(cap_rate=1.0), _brrrr(dscr=0.5), None)
    assert v.disqualified
    assert v.best_strategy is None


def test_disqualification_blocks_every_strategy():
    v = check_viability(_cash(), _rental(), _brrrr(), "No comparable sales found")
    assert not (v.flip_viable or v.rental_viable or v.brrrr_viable)
    assert v.disqualified
    assert v.best_strategy is None


def test_pick_best_strategy_empty():
    assert pick_best_strategy({}) is None
