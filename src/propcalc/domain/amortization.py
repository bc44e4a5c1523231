# src/propcalc/domain/amortization.py
"""
Closed-form amortization helpers.

Rates are annual percentages (7.0 means 7%), terms are in years. All
functions are total: degenerate terms or rates fall back to the simple
closed form instead of dividing by zero, and growth factors too large for a
float fall back to their limits instead of raising.
"""
import math
from typing import Optional


def _monthly_rate(annual_rate_pct: float) -> float:
    return annual_rate_pct / 100.0 / 12.0


def compound_growth(rate: float, periods: float) -> Optional[float]:
    """
    (1 + rate) ** periods, or None when that is not a finite real number:
    a base at or below zero, or a power past the float range.
    """
    if periods == 0:
        return 1.0
    if rate <= -1:
        return None
    try:
        growth = (1 + rate) ** periods
    except OverflowError:
        return None
    return growth if math.isfinite(growth) else None


def fixed_payment(principal: float, annual_rate_pct: float, years: float) -> float:
    """
    Standard fixed-rate amortization formula:
    M = P * [ r(1+r)^n / ((1+r)^n - 1) ]
    P = loan principal
    r = monthly interest rate
    n = number of payments (months)
    """
    n = years * 12
    if principal == 0 or n <= 0:
        return 0.0

    r = _monthly_rate(annual_rate_pct)
    if r == 0:
        return principal / n
    if r <= -1:
        return 0.0

    growth = compound_growth(r, n)
    if growth is None:
        # (1+r)^n overflowed: the payment is interest-only in the limit
        return principal * r
    if growth == 1:
        return principal / n
    return principal * r * (growth / (growth - 1))


def max_loan_for_payment(monthly_payment: float, annual_rate_pct: float, years: float) -> float:
    """Inverse of `fixed_payment`: largest principal a payment ceiling services."""
    n = years * 12
    if n <= 0:
        return 0.0

    r = _monthly_rate(annual_rate_pct)
    if r == 0:
        return monthly_payment * n
    if r <= -1:
        return 0.0

    growth = compound_growth(r, n)
    if growth is None:
        return monthly_payment / r
    if growth == 1:
        return monthly_payment * n
    if growth == 0:
        # a negative rate deep enough to underflow has no finite ceiling
        return 0.0
    loan = monthly_payment * ((growth - 1) / growth) / r
    return loan if math.isfinite(loan) else 0.0


def remaining_balance(principal: float, annual_rate_pct: float, years: float, months_elapsed: float) -> float:
    """
    Outstanding balance after `months_elapsed` scheduled payments:
    B(k) = P(1+r)^k - M((1+r)^k - 1)/r = P((1+r)^n - (1+r)^k) / ((1+r)^n - 1)

    Only meaningful for k <= term; callers clamp past-term balances to 0.
    """
    n = years * 12
    if n <= 0:
        return 0.0

    r = _monthly_rate(annual_rate_pct)
    if r == 0:
        return principal - (principal / n) * months_elapsed
    if r <= -1:
        return 0.0

    growth_n = compound_growth(r, n)
    if growth_n is None:
        # interest-only in the limit: nothing amortizes before the term ends
        return principal if months_elapsed <= n else 0.0
    growth_k = compound_growth(r, months_elapsed)
    if growth_k is None:
        return 0.0
    if growth_n == 1:
        return principal - (principal / n) * months_elapsed
    balance = principal * ((growth_n - growth_k) / (growth_n - 1))
    # far past the term the closed form runs off the float range
    return balance if math.isfinite(balance) else 0.0


def cumulative_net_cash_flow(
    annual_effective_rent: float,
    annual_expenses: float,
    annual_debt_service: float,
    rent_growth_rate: float,
    cost_growth_rate: float,
    years: int,
) -> float:
    """
    Sum of yearly (rent - expenses - debt service) for years 1..N.

    Rent and expenses compound from year 2 onward (growth rates are
    fractions); debt service stays flat.
    """
    total = 0.0
    yearly_rent = annual_effective_rent
    yearly_exp = annual_expenses
    for y in range(1, int(years) + 1):
        if y > 1:
            yearly_rent *= 1 + rent_growth_rate
            yearly_exp *= 1 + cost_growth_rate
        total += yearly_rent - yearly_exp - annual_debt_service
    return total
