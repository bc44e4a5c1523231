"""
Long-horizon projection shared by the core metrics and every offer strategy.

Everything is parametrized by a starting value, an appreciation rate and a
`debt_at_month` callable, so the same milestone math serves a single
amortizing loan and a stack of notes alike.
"""
from __future__ import annotations

import math
from typing import Callable

from propcalc.domain.amortization import compound_growth, cumulative_net_cash_flow
from propcalc.domain.results import Milestone

CHART_YEARS = 30
MILESTONE_YEARS = (5, 10)

DebtAtMonth = Callable[[float], float]


def value_at(start_value: float, appreciation_rate: float, years: float) -> float:
    growth = compound_growth(appreciation_rate, years)
    if growth is None:
        # a rate at or below -100% wipes the value out; anything else overflowed
        if appreciation_rate <= -1 or start_value == 0:
            return 0.0
        return math.copysign(math.inf, start_value)
    return start_value * growth


def chart_series(start_value: float, appreciation_rate: float, debt_at_month: DebtAtMonth) -> tuple[list[float], list[float]]:
    """Asset value and debt for years 0..30 inclusive (31 points)."""
    assets = [value_at(start_value, appreciation_rate, y) for y in range(CHART_YEARS + 1)]
    loans = [debt_at_month(y * 12) for y in range(CHART_YEARS + 1)]
    return assets, loans


def milestone_at(
    year: int,
    *,
    start_value: float,
    appreciation_rate: float,
    debt_at_month: DebtAtMonth,
    annual_effective_rent: float,
    total_expenses: float,
    annual_debt_service: float,
    rent_growth_rate: float,
    cost_growth_rate: float,
    basis_for_gain: float,
) -> Milestone:
    value = value_at(start_value, appreciation_rate, year)
    debt = debt_at_month(year * 12)
    equity = value - debt
    flow = cumulative_net_cash_flow(
        annual_effective_rent,
        total_expenses,
        annual_debt_service,
        rent_growth_rate,
        cost_growth_rate,
        year,
    )
    return Milestone(
        year=year,
        value=value,
        balance=debt,
        equity=equity,
        flow=flow,
        net_gain=equity + flow - basis_for_gain,
    )


def project(
    *,
    start_value: float,
    appreciation_rate: float,
    debt_at_month: DebtAtMonth,
    annual_effective_rent: float,
    total_expenses: float,
    annual_debt_service: float,
    rent_growth_rate: float,
    cost_growth_rate: float,
    basis_for_gain: float,
) -> tuple[list[float], list[float], Milestone, Milestone]:
    """Chart series plus the year-5 and year-10 milestones in one call."""
    assets, loans = chart_series(start_value, appreciation_rate, debt_at_month)
    m5, m10 = (
        milestone_at(
            y,
            start_value=start_value,
            appreciation_rate=appreciation_rate,
            debt_at_month=debt_at_month,
            annual_effective_rent=annual_effective_rent,
            total_expenses=total_expenses,
            annual_debt_service=annual_debt_service,
            rent_growth_rate=rent_growth_rate,
            cost_growth_rate=cost_growth_rate,
            basis_for_gain=basis_for_gain,
        )
        for y in MILESTONE_YEARS
    )
    return assets, loans, m5, m10
