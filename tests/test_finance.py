# tests/test_finance.py
import pytest

from flipwise.analysis.finance import (
    calculate_breakeven_arv,
    calculate_brrrr,
    calculate_cash_scenario,
    calculate_financed_scenario,
    calculate_holding_costs,
    calculate_mao,
    calculate_rental_analysis,
    calculate_transaction_costs,
    estimate_monthly_rent,
)
from flipwise.domain.assumptions import FinancialAssumptions
from flipwise.domain.finance import annuity_payment


def test_annuity_payment_standard_mortgage():
    # 300k at 7.2% for 30 years
    assert annuity_payment(0.072 / 12, 360, 300_000.0) == pytest.approx(2036.36, abs=0.05)


def test_annuity_payment_edges():
    assert annuity_payment(0.0, 360, 360_000.0) == pytest.approx(1000.0)
    assert annuity_payment(0.006, 360, 0.0) == 0.0
    assert annuity_payment(0.006, 0, 100_000.0) == 0.0


def test_transaction_costs():
    txn = calculate_transaction_costs(300_000.0, 500_000.0)
    assert txn.purchase_closing == pytest.approx(5868.0)
    assert txn.sale_costs == pytest.approx(29_780.0)
    assert txn.transfer_tax_buy == pytest.approx(1368.0)
    assert txn.transfer_tax_sell == pytest.approx(2280.0)


def test_holding_costs_use_default_tax_rate():
    hc = calculate_holding_costs(300_000.0, 6)
    assert hc.monthly_tax == pytest.approx(325.0)
    assert hc.monthly_insurance == pytest.approx(125.0)
    assert hc.monthly_utilities == 350.0
    assert hc.total == pytest.approx(4800.0)


def test_holding_costs_use_listing_tax_rate():
    hc = calculate_holding_costs(300_000.0, 6, tax_rate=0.011)
    assert hc.monthly_tax == pytest.approx(275.0)


def test_cash_scenario():
    cash = calculate_cash_scenario(300_000.0, 500_000.0, 40_000.0, 6000.0, 30_000.0, 20_000.0)
    assert cash.profit == pytest.approx(104_000.0)
    assert cash.investment == pytest.approx(366_000.0)
    assert cash.roi == pytest.approx(28.42)


def test_cash_scenario_zero_investment():
    cash = calculate_cash_scenario(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    assert cash.roi == 0.0


def test_financed_scenario():
    fin = calculate_financed_scenario(300_000.0, 500_000.0, 40_000.0, 6000.0, 30_000.0, 20_000.0, 6)

    assert fin.loan_amount == pytest.approx(240_000.0)
    # 2 points + 6 months interest-only at 10.5%
    assert fin.financing_costs == pytest.approx(4800.0 + 2100.0 * 6)
    assert fin.profit == pytest.approx(86_600.0)
    assert fin.cash_invested == pytest.approx(106_000.0)
    assert fin.cash_on_cash_roi == pytest.approx(81.7)
    assert fin.annualized_roi == pytest.approx(((1 + 86_600 / 106_000) ** 2 - 1) * 100, abs=0.01)


def test_financed_total_loss_annualizes_to_minus_100():
    fin = calculate_financed_scenario(300_000.0, 0.0, 40_000.0, 6000.0, 0.0, 20_000.0, 6)
    assert fin.cash_on_cash_roi < -100
    assert fin.annualized_roi == -100.0


def test_mao():
    mao = calculate_mao(500_000.0, 40_000.0, 4800.0, 17_400.0)
    assert mao.classic == pytest.approx(310_000.0)
    assert mao.adjusted == pytest.approx(287_800.0)


def test_breakeven_arv_covers_sale_costs():
    a = FinancialAssumptions()
    be = calculate_breakeven_arv(300_000.0, 40_000.0, 5868.0, 4800.0, 17_400.0)
    assert be == pytest.approx(368_068.0 / (1 - a.sale_cost_pct), abs=0.01)
    # selling at breakeven nets exactly the cost basis
    assert be * (1 - a.sale_cost_pct) == pytest.approx(368_068.0, abs=0.01)


def test_monthly_rent():
    assert estimate_monthly_rent(1500) == pytest.approx(2700.0)
    assert estimate_monthly_rent(None) == 0.0


def test_rental_analysis():
    r = calculate_rental_analysis(400_000.0, 2700.0, 300_000.0)

    assert r.annual_gross == pytest.approx(32_400.0)
    assert r.vacancy_loss == pytest.approx(1620.0)
    assert r.operating_expenses == pytest.approx(17_432.0)
    assert r.noi == pytest.approx(14_968.0)
    assert r.cap_rate == pytest.approx(3.74)
    assert r.cash_on_cash == pytest.approx(4.99)
    assert r.grm == pytest.approx(9.26)
    assert r.annual_depreciation == pytest.approx(11_636.36)
    assert r.tax_shelter == pytest.approx(3723.64)


def test_rental_analysis_zero_arv_has_no_cap_rate():
    r = calculate_rental_analysis(0.0, 0.0, 0.0)
    assert r.cap_rate == 0.0
    assert r.cash_on_cash == 0.0
    assert r.grm == 0.0


def test_brrrr():
    b = calculate_brrrr(400_000.0, 14_968.0, 300_000.0)

    assert b.refi_loan == pytest.approx(300_000.0)
    assert b.monthly_payment == pytest.approx(2036.36, abs=0.05)
    assert b.annual_debt_service == pytest.approx(b.monthly_payment * 12, abs=0.1)
    assert b.dscr == pytest.approx(0.61)
    assert b.cash_left == pytest.approx(0.0)
    assert b.post_refi_cash_flow < 0


def test_brrrr_uses_injected_assumptions():
    a = FinancialAssumptions(refi_ltv=0.5, refi_rate=0.0)
    b = calculate_brrrr(360_000.0, 12_000.0, 200_000.0, a)
    assert b.refi_loan == pytest.approx(180_000.0)
    assert b.monthly_payment == pytest.approx(500.0)
    assert b.dscr == pytest.approx(2.0)
    assert b.cash_left == pytest.approx(20_000.0)
