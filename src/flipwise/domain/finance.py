def annuity_payment(rate_monthly: float, n_months: int, principal: float) -> float:
    """
    Standard fixed-rate amortization formula:
    M = P * [ r(1+r)^n / ((1+r)^n - 1) ]
    """
    if principal <= 0 or n_months <= 0:
        return 0.0
    r = rate_monthly
    if r == 0:
        return principal / n_months
    return principal * (r * (1 + r) ** n_months) / ((1 + r) ** n_months - 1)
