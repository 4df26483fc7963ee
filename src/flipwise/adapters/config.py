# src/flipwise/adapters/config.py
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from flipwise.domain.assumptions import ArvAssumptions, FinancialAssumptions


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # persistence
    DB_URI: str = Field(default="sqlite:///flipwise.db")

    # -----------------------------
    # Transaction / holding costs
    # -----------------------------
    COMMISSION_RATE: float = Field(default=0.045)
    CLOSING_RATE_BUY: float = Field(default=0.015)
    CLOSING_RATE_SELL: float = Field(default=0.01)
    TRANSFER_TAX_RATE: float = Field(default=0.00456)
    INSURANCE_RATE: float = Field(default=0.005)
    DEFAULT_TAX_RATE: float = Field(default=0.013)
    MONTHLY_UTILITIES: float = Field(default=350.0)

    # -----------------------------
    # Hard money
    # -----------------------------
    HARD_MONEY_RATE: float = Field(default=0.105)
    HARD_MONEY_POINTS: float = Field(default=0.02)
    HARD_MONEY_LTV: float = Field(default=0.80)

    # -----------------------------
    # Rehab
    # -----------------------------
    LEAD_PAINT_ALLOWANCE: float = Field(default=8000.0)
    LEAD_PAINT_CUTOFF_YEAR: int = Field(default=1978)
    MIN_REHAB_PPSF: float = Field(default=2.0)
    MAX_REHAB_PPSF: float = Field(default=65.0)

    # -----------------------------
    # Rental / BRRRR
    # -----------------------------
    VACANCY_RATE: float = Field(default=0.05)
    MANAGEMENT_RATE: float = Field(default=0.08)
    MAINTENANCE_RATE: float = Field(default=0.01)
    CAPEX_RATE: float = Field(default=0.05)
    RENTAL_INSURANCE_RATE: float = Field(default=0.006)
    TAX_BRACKET: float = Field(default=0.32)
    RENT_PER_SQFT: float = Field(default=1.80)

    DEPRECIATION_YEARS: float = Field(default=27.5)
    LAND_VALUE_PCT: float = Field(default=0.20)

    REFI_LTV: float = Field(default=0.75)
    REFI_RATE: float = Field(default=0.072)
    REFI_TERM_YEARS: int = Field(default=30)

    # 70% rule
    MAO_ARV_PCT: float = Field(default=0.70)

    # -----------------------------
    # Comparable search
    # -----------------------------
    LOOKBACK_MONTHS: int = Field(default=12)
    MAX_COMPS: int = Field(default=15)

    model_config = SettingsConfigDict(
        env_prefix="FLIPWISE_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "COMMISSION_RATE",
        "CLOSING_RATE_BUY",
        "CLOSING_RATE_SELL",
        "TRANSFER_TAX_RATE",
        "INSURANCE_RATE",
        "DEFAULT_TAX_RATE",
        "HARD_MONEY_RATE",
        "HARD_MONEY_POINTS",
        "HARD_MONEY_LTV",
        "VACANCY_RATE",
        "MANAGEMENT_RATE",
        "MAINTENANCE_RATE",
        "CAPEX_RATE",
        "RENTAL_INSURANCE_RATE",
        "TAX_BRACKET",
        "REFI_LTV",
        "REFI_RATE",
        "LAND_VALUE_PCT",
        "MAO_ARV_PCT",
        mode="before",
    )
    @classmethod
    def _to_non_negative_fraction(cls, v: Any) -> Any:
        if v is None:
            return v
        is_percent = False
        if isinstance(v, str):
            v = v.strip()
            is_percent = v.endswith("%")
            v = v.rstrip("%").strip()
        try:
            f = float(v)
        except Exception as err:
            raise ValueError("rate must be numeric or percent-like") from err
        # "0.5%" is half a percent; a bare 0.5 is already a fraction
        if is_percent or f > 1.0:
            f = f / 100.0
        if f < 0:
            raise ValueError("rate must be non-negative")
        return f

    @field_validator("MAX_COMPS", "LOOKBACK_MONTHS", "REFI_TERM_YEARS", "LEAD_PAINT_CUTOFF_YEAR", mode="before")
    @classmethod
    def _positive_int(cls, v: Any) -> Any:
        i = int(v)
        if i <= 0:
            raise ValueError("must be > 0")
        return i

    def financial_assumptions(self) -> FinancialAssumptions:
        return FinancialAssumptions(
            commission_rate=self.COMMISSION_RATE,
            closing_rate_buy=self.CLOSING_RATE_BUY,
            closing_rate_sell=self.CLOSING_RATE_SELL,
            transfer_tax_rate=self.TRANSFER_TAX_RATE,
            insurance_rate=self.INSURANCE_RATE,
            default_tax_rate=self.DEFAULT_TAX_RATE,
            monthly_utilities=self.MONTHLY_UTILITIES,
            hard_money_rate=self.HARD_MONEY_RATE,
            hard_money_points=self.HARD_MONEY_POINTS,
            hard_money_ltv=self.HARD_MONEY_LTV,
            lead_paint_allowance=self.LEAD_PAINT_ALLOWANCE,
            lead_paint_cutoff_year=self.LEAD_PAINT_CUTOFF_YEAR,
            min_rehab_ppsf=self.MIN_REHAB_PPSF,
            max_rehab_ppsf=self.MAX_REHAB_PPSF,
            vacancy_rate=self.VACANCY_RATE,
            management_rate=self.MANAGEMENT_RATE,
            maintenance_rate=self.MAINTENANCE_RATE,
            capex_rate=self.CAPEX_RATE,
            rental_insurance_rate=self.RENTAL_INSURANCE_RATE,
            depreciation_years=self.DEPRECIATION_YEARS,
            land_value_pct=self.LAND_VALUE_PCT,
            tax_bracket=self.TAX_BRACKET,
            rent_per_sqft=self.RENT_PER_SQFT,
            refi_ltv=self.REFI_LTV,
            refi_rate=self.REFI_RATE,
            refi_term_years=self.REFI_TERM_YEARS,
            mao_arv_pct=self.MAO_ARV_PCT,
        )

    def arv_assumptions(self) -> ArvAssumptions:
        return ArvAssumptions(
            lookback_months=self.LOOKBACK_MONTHS,
            max_comps=self.MAX_COMPS,
        )


config = AppConfig()
