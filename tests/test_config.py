# tests/test_config.py
import pytest
from pydantic import ValidationError

from flipwise.adapters.config import AppConfig
from flipwise.adapters.rehab_estimator import RehabEstimator, RehabEstimatorConfig
from flipwise.analysis.finance import calculate_mao, calculate_rental_analysis


def test_defaults_match_financial_assumptions():
    cfg = AppConfig()
    a = cfg.financial_assumptions()
    assert a.commission_rate == pytest.approx(0.045)
    assert a.refi_term_years == 30
    assert cfg.arv_assumptions().max_comps == 15


@pytest.mark.parametrize(
    "raw,expected",
    [("5%", 0.05), ("6", 0.06), ("0.055", 0.055), (" 4.5 % ", 0.045), ("0.5%", 0.005), ("1%", 0.01)],
)
def test_percent_like_rates_are_normalized(monkeypatch, raw, expected):
    monkeypatch.setenv("FLIPWISE_COMMISSION_RATE", raw)
    cfg = AppConfig()
    assert cfg.COMMISSION_RATE == pytest.approx(expected)
    assert cfg.financial_assumptions().commission_rate == pytest.approx(expected)


def test_negative_rate_is_rejected(monkeypatch):
    monkeypatch.setenv("FLIPWISE_VACANCY_RATE", "-0.05")
    with pytest.raises(ValidationError):
        AppConfig()


def test_non_numeric_rate_is_rejected(monkeypatch):
    monkeypatch.setenv("FLIPWISE_REFI_RATE", "lots")
    with pytest.raises(ValidationError):
        AppConfig()


def test_lookback_must_be_positive(monkeypatch):
    monkeypatch.setenv("FLIPWISE_LOOKBACK_MONTHS", "0")
    with pytest.raises(ValidationError):
        AppConfig()


def test_arv_settings_from_env(monkeypatch):
    monkeypatch.setenv("FLIPWISE_LOOKBACK_MONTHS", "6")
    monkeypatch.setenv("FLIPWISE_MAX_COMPS", "8")
    arv = AppConfig().arv_assumptions()
    assert arv.lookback_months == 6
    assert arv.max_comps == 8


def test_sub_one_percent_strings_stay_fractions(monkeypatch):
    monkeypatch.setenv("FLIPWISE_INSURANCE_RATE", "0.5%")
    monkeypatch.setenv("FLIPWISE_TRANSFER_TAX_RATE", "0.456%")
    monkeypatch.setenv("FLIPWISE_MAINTENANCE_RATE", "1%")
    a = AppConfig().financial_assumptions()
    assert a.insurance_rate == pytest.approx(0.005)
    assert a.transfer_tax_rate == pytest.approx(0.00456)
    assert a.maintenance_rate == pytest.approx(0.01)


def test_bare_fraction_is_not_rescaled(monkeypatch):
    monkeypatch.setenv("FLIPWISE_REFI_LTV", "1")
    assert AppConfig().REFI_LTV == pytest.approx(1.0)


def test_rehab_settings_reach_the_estimator(monkeypatch):
    monkeypatch.setenv("FLIPWISE_MAX_REHAB_PPSF", "50")
    monkeypatch.setenv("FLIPWISE_LEAD_PAINT_ALLOWANCE", "12000")
    a = AppConfig().financial_assumptions()
    assert a.max_rehab_ppsf == 50.0
    assert a.lead_paint_allowance == 12_000.0

    est = RehabEstimator(RehabEstimatorConfig.from_assumptions(a)).estimate(1000, 1880, 2024)
    assert est.per_sqft == 50.0
    assert est.lead_paint == 12_000.0
    assert est.total == pytest.approx(1000 * 50.0 * 1.15 + 12_000, abs=0.01)


def test_min_rehab_rate_from_env(monkeypatch):
    monkeypatch.setenv("FLIPWISE_MIN_REHAB_PPSF", "3")
    a = AppConfig().financial_assumptions()
    assert a.min_rehab_ppsf == 3.0

    # age 4: 12.8 * 0.10 = 1.28 /sqft, floored at the configured minimum
    est = RehabEstimator(RehabEstimatorConfig.from_assumptions(a)).estimate(1500, 2020, 2024)
    assert est.per_sqft == 3.0


def test_lead_paint_cutoff_from_env(monkeypatch):
    monkeypatch.setenv("FLIPWISE_LEAD_PAINT_CUTOFF_YEAR", "1950")
    a = AppConfig().financial_assumptions()
    assert a.lead_paint_cutoff_year == 1950
    est = RehabEstimator(RehabEstimatorConfig.from_assumptions(a)).estimate(1500, 1970, 2024)
    assert est.lead_paint == 0.0


def test_depreciation_settings_from_env(monkeypatch):
    monkeypatch.setenv("FLIPWISE_DEPRECIATION_YEARS", "39")
    monkeypatch.setenv("FLIPWISE_LAND_VALUE_PCT", "25%")
    a = AppConfig().financial_assumptions()
    assert a.depreciation_years == 39.0
    assert a.land_value_pct == pytest.approx(0.25)

    rental = calculate_rental_analysis(390_000.0, 2700.0, 300_000.0, a=a)
    assert rental.annual_depreciation == pytest.approx(7500.0)


def test_mao_factor_from_env(monkeypatch):
    monkeypatch.setenv("FLIPWISE_MAO_ARV_PCT", "75")
    a = AppConfig().financial_assumptions()
    assert a.mao_arv_pct == pytest.approx(0.75)
    assert calculate_mao(400_000.0, 50_000.0, a=a).classic == pytest.approx(250_000.0)
