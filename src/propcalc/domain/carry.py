# src/propcalc/domain/carry.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from propcalc.domain.inputs import CarryTranche, coerce_tranches


@dataclass(frozen=True)
class TrancheAllocation:
    name: str
    amount: float      # what the tranche offered
    rate: float        # annual %
    points: float      # % of allocated
    allocated: float   # what it actually funds

    @property
    def monthly_interest(self) -> float:
        return self.allocated * (self.rate / 100.0) / 12.0

    @property
    def points_cost(self) -> float:
        return self.allocated * (self.points / 100.0)


@dataclass(frozen=True)
class ScheduleColumn:
    name: str
    values: list[float]


@dataclass(frozen=True)
class CarryScheduleTable:
    """Month-by-month interest, one column per tranche plus the default bucket."""
    months: list[int]
    tranches: list[ScheduleColumn]
    default_column: list[float]
    total: list[float]


@dataclass(frozen=True)
class CarrySchedule:
    tranche_allocations: list[TrancheAllocation]
    default_allocation: float
    schedule: CarryScheduleTable
    total_interest: float
    total_points: float
    total_carry_cost: float
    blended_rate: float        # annualized %, on total cash needed
    total_cash_needed: float
    default_rate: float = field(default=0.0)


def allocate_tranches(total_cash_needed: float, tranches: Sequence[CarryTranche]) -> tuple[list[TrancheAllocation], float]:
    """
    Greedy left-to-right allocation against the unmet cash need.

    A tranche larger than what is left only funds the remainder; whatever
    no tranche covers is the default-rate allocation.
    """
    remaining = total_cash_needed
    allocations: list[TrancheAllocation] = []
    for t in tranches:
        allocated = min(t.amount, remaining)
        remaining -= allocated
        allocations.append(
            TrancheAllocation(
                name=t.name,
                amount=t.amount,
                rate=t.rate,
                points=t.points,
                allocated=allocated,
            )
        )
    return allocations, remaining


def carry_schedule(
    purchase_price: float,
    closing_cost: float,
    rehab_cost: float,
    carry_months: float,
    default_rate: float,
    tranches: Sequence[CarryTranche] | None = None,
) -> CarrySchedule:
    """
    Interest-only bridge schedule for the holding period.

    Allocated principal never declines across months, so every row is the
    same; total cost = interest over the period + one-time points.
    """
    total_cash_needed = purchase_price + closing_cost + rehab_cost
    allocations, default_allocation = allocate_tranches(total_cash_needed, coerce_tranches(tranches))

    default_monthly = default_allocation * (default_rate / 100.0) / 12.0
    n_months = max(int(carry_months), 0)
    # fractional carry periods still accrue pro-rata interest below
    period = max(carry_months, 0.0)

    months = list(range(1, n_months + 1))
    columns = [ScheduleColumn(name=a.name, values=[a.monthly_interest] * n_months) for a in allocations]
    monthly_total = sum(a.monthly_interest for a in allocations) + default_monthly

    total_interest = monthly_total * period
    total_points = sum(a.points_cost for a in allocations)
    blended_rate = 0.0
    if total_cash_needed > 0 and period > 0:
        blended_rate = total_interest / period * 12 / total_cash_needed * 100

    return CarrySchedule(
        tranche_allocations=allocations,
        default_allocation=default_allocation,
        schedule=CarryScheduleTable(
            months=months,
            tranches=columns,
            default_column=[default_monthly] * n_months,
            total=[monthly_total] * n_months,
        ),
        total_interest=total_interest,
        total_points=total_points,
        total_carry_cost=total_interest + total_points,
        blended_rate=blended_rate,
        total_cash_needed=total_cash_needed,
        default_rate=default_rate,
    )


def carry_cost(
    purchase_price: float,
    closing_cost: float,
    rehab_cost: float,
    carry_months: float,
    default_rate: float,
    tranches: Sequence[CarryTranche] | None = None,
) -> float:
    """Total holding-period financing cost; same allocation as the schedule."""
    return carry_schedule(
        purchase_price, closing_cost, rehab_cost, carry_months, default_rate, tranches
    ).total_carry_cost
