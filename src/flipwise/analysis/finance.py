import math

from flipwise.domain.assumptions import FinancialAssumptions
from flipwise.domain.finance import annuity_payment
from flipwise.domain.underwriting import (
    BrrrrScenario,
    CashScenario,
    FinancedScenario,
    HoldingCosts,
    MaoResult,
    RentalScenario,
    TransactionCosts,
)

DEFAULT = FinancialAssumptions()


def estimate_hold_period(rehab_per_sqft: float, avg_dom: int) -> int:
    """
    Months from purchase to sale: rehab duration + time on market + a
    permit buffer for heavy rehabs.
    """
    if rehab_per_sqft <= 20:
        rehab_months = 1
    elif rehab_per_sqft <= 35:
        rehab_months = 2
    elif rehab_per_sqft <= 50:
        rehab_months = 4
    else:
        rehab_months = 6

    sale_months = max(1, math.ceil(avg_dom / 30))
    permit_buffer = 1 if rehab_per_sqft > 35 else 0

    return rehab_months + sale_months + permit_buffer


def calculate_transaction_costs(
    list_price: float,
    arv: float,
    a: FinancialAssumptions = DEFAULT,
) -> TransactionCosts:
    purchase_closing = list_price * (a.closing_rate_buy + a.transfer_tax_rate)
    sale_costs = arv * a.sale_cost_pct

    return TransactionCosts(
        purchase_closing=round(purchase_closing, 2),
        sale_costs=round(sale_costs, 2),
        transfer_tax_buy=round(list_price * a.transfer_tax_rate, 2),
        transfer_tax_sell=round(arv * a.transfer_tax_rate, 2),
    )


def calculate_holding_costs(
    list_price: float,
    hold_months: int,
    tax_rate: float | None = None,
    a: FinancialAssumptions = DEFAULT,
) -> HoldingCosts:
    effective_tax = tax_rate if tax_rate and tax_rate > 0 else a.default_tax_rate

    monthly_tax = list_price * effective_tax / 12
    monthly_insurance = list_price * a.insurance_rate / 12
    total = (monthly_tax + monthly_insurance + a.monthly_utilities) * hold_months

    return HoldingCosts(
        monthly_tax=round(monthly_tax, 2),
        monthly_insurance=round(monthly_insurance, 2),
        monthly_utilities=a.monthly_utilities,
        total=round(total, 2),
    )


def calculate_cash_scenario(
    list_price: float,
    arv: float,
    rehab_cost: float,
    purchase_closing: float,
    sale_costs: float,
    holding_costs: float,
) -> CashScenario:
    profit = arv - list_price - rehab_cost - purchase_closing - sale_costs - holding_costs
    investment = list_price + rehab_cost + purchase_closing + holding_costs
    roi = profit / investment * 100 if investment > 0 else 0.0

    return CashScenario(
        profit=round(profit, 2),
        roi=round(roi, 2),
        investment=round(investment, 2),
    )


def calculate_financed_scenario(
    list_price: float,
    arv: float,
    rehab_cost: float,
    purchase_closing: float,
    sale_costs: float,
    holding_costs: float,
    hold_months: int,
    a: FinancialAssumptions = DEFAULT,
) -> FinancedScenario:
    """Hard-money purchase: interest-only loan on the purchase price, rehab paid in cash."""
    loan_amount = list_price * a.hard_money_ltv
    origination = loan_amount * a.hard_money_points
    monthly_interest = loan_amount * (a.hard_money_rate / 12)
    financing_costs = origination + monthly_interest * hold_months

    cash_profit = arv - list_price - rehab_cost - purchase_closing - sale_costs - holding_costs
    profit = cash_profit - financing_costs
    cash_invested = list_price * (1 - a.hard_money_ltv) + rehab_cost + purchase_closing

    coc = profit / cash_invested * 100 if cash_invested > 0 else 0.0

    annualized = 0.0
    growth = 1 + coc / 100
    # a total loss (growth <= 0) has no real annualized rate; report -100%
    if hold_months > 0:
        annualized = (growth ** (12 / hold_months) - 1) * 100 if growth > 0 else -100.0

    return FinancedScenario(
        profit=round(profit, 2),
        cash_on_cash_roi=round(coc, 2),
        cash_invested=round(cash_invested, 2),
        loan_amount=round(loan_amount, 2),
        financing_costs=round(financing_costs, 2),
        annualized_roi=round(annualized, 2),
    )


def calculate_mao(
    arv: float,
    rehab_cost: float,
    holding_costs: float = 0.0,
    financing_costs: float = 0.0,
    a: FinancialAssumptions = DEFAULT,
) -> MaoResult:
    classic = arv * a.mao_arv_pct - rehab_cost
    adjusted = classic - holding_costs - financing_costs
    return MaoResult(classic=round(classic, 2), adjusted=round(adjusted, 2))


def calculate_breakeven_arv(
    list_price: float,
    rehab_cost: float,
    purchase_closing: float,
    holding_costs: float,
    financing_costs: float,
    a: FinancialAssumptions = DEFAULT,
) -> float:
    """Lowest sale price that recovers every cost after sale-side fees."""
    total_costs = list_price + rehab_cost + purchase_closing + holding_costs + financing_costs
    return round(total_costs / (1 - a.sale_cost_pct), 2)


def estimate_monthly_rent(living_area: int | None, a: FinancialAssumptions = DEFAULT) -> float:
    if not living_area or living_area <= 0:
        return 0.0
    return round(living_area * a.rent_per_sqft, 2)


def calculate_rental_analysis(
    arv: float,
    monthly_rent: float,
    total_investment: float,
    tax_rate: float | None = None,
    a: FinancialAssumptions = DEFAULT,
) -> RentalScenario:
    """
    Buy-and-hold after rehab. Operating expenses do NOT include debt service.

    Vacancy, management and capex scale with gross rent; maintenance,
    insurance and property tax scale with the post-rehab value.
    """
    annual_gross = monthly_rent * 12
    vacancy = annual_gross * a.vacancy_rate
    management = annual_gross * a.management_rate
    capex = annual_gross * a.capex_rate
    maintenance = arv * a.maintenance_rate
    insurance = arv * a.rental_insurance_rate
    effective_tax = tax_rate if tax_rate and tax_rate > 0 else a.default_tax_rate
    property_tax = arv * effective_tax

    operating = vacancy + management + maintenance + insurance + capex + property_tax
    noi = annual_gross - operating

    cap_rate = noi / arv * 100 if arv > 0 else 0.0
    cash_on_cash = noi / total_investment * 100 if total_investment > 0 else 0.0
    grm = total_investment / annual_gross if annual_gross > 0 else 0.0

    # straight-line, residential schedule; land is not depreciable
    depreciation = arv * (1 - a.land_value_pct) / a.depreciation_years
    tax_shelter = depreciation * a.tax_bracket

    return RentalScenario(
        monthly_rent=round(monthly_rent, 2),
        annual_gross=round(annual_gross, 2),
        vacancy_loss=round(vacancy, 2),
        operating_expenses=round(operating, 2),
        noi=round(noi, 2),
        cap_rate=round(cap_rate, 2),
        cash_on_cash=round(cash_on_cash, 2),
        grm=round(grm, 2),
        annual_depreciation=round(depreciation, 2),
        tax_shelter=round(tax_shelter, 2),
    )


def calculate_brrrr(
    arv: float,
    noi: float,
    total_cash_in: float,
    a: FinancialAssumptions = DEFAULT,
) -> BrrrrScenario:
    refi_loan = arv * a.refi_ltv
    monthly_payment = annuity_payment(a.refi_rate / 12, a.refi_term_years * 12, refi_loan)

    annual_debt_service = monthly_payment * 12
    dscr = noi / annual_debt_service if annual_debt_service > 0 else 0.0

    return BrrrrScenario(
        refi_loan=round(refi_loan, 2),
        monthly_payment=round(monthly_payment, 2),
        annual_debt_service=round(annual_debt_service, 2),
        post_refi_cash_flow=round(noi - annual_debt_service, 2),
        dscr=round(dscr, 2),
        cash_left=round(total_cash_in - refi_loan, 2),
    )
