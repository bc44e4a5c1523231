# src/propcalc/analysis/frames.py
"""
Tabular views of the core outputs, for CSV export and notebook work.

Nothing here computes; every frame is a reshaping of an existing result.
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Sequence

import pandas as pd

from propcalc.domain.carry import CarrySchedule
from propcalc.domain.results import CalculationResult, JvSimulationResult, OfferResult, StressScenario


def amortization_frame(offer: OfferResult) -> pd.DataFrame:
    """One row per year; one `<key>_balance` column per loan."""
    records = []
    for row in offer.amort_rows:
        rec = {
            "year": row.year,
            "is_balloon": row.is_balloon,
            "property_value": row.property_value,
        }
        rec.update({f"{key}_balance": bal for key, bal in row.balances.items()})
        rec.update(
            total_debt=row.total_debt,
            equity=row.equity,
            annual_cash_flow=row.annual_cash_flow,
            cumulative_cash_flow=row.cumulative_cash_flow,
        )
        records.append(rec)
    return pd.DataFrame.from_records(records).set_index("year")


def jv_frame(sim: JvSimulationResult) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "deal_cash_flow": sim.deal_cash_flow,
            "cash_to_investor": sim.cash_to_investor,
            "cash_to_operator": sim.cash_to_operator,
            "remaining_capital": sim.remaining_capital,
            "cum_cash_to_investor": sim.cum_cash_to_investor,
            "cum_cash_to_operator": sim.cum_cash_to_operator,
        },
        index=pd.Index(sim.months, name="month"),
    )


def carry_schedule_frame(schedule: CarrySchedule) -> pd.DataFrame:
    """Month x (tranche names..., default, total) interest grid."""
    table = schedule.schedule
    data: dict[str, list[float]] = {}
    for i, col in enumerate(table.tranches):
        name = col.name or f"tranche_{i + 1}"
        # repeated lender names still get their own column
        if name in data or name in ("default", "total"):
            name = f"{name} ({i + 1})"
        data[name] = col.values
    data["default"] = table.default_column
    data["total"] = table.total
    return pd.DataFrame(data, index=pd.Index(table.months, name="month"))


def stress_frame(scenarios: Sequence[StressScenario]) -> pd.DataFrame:
    return pd.DataFrame([asdict(s) for s in scenarios])


def projection_frame(result: CalculationResult | OfferResult) -> pd.DataFrame:
    """30-year asset value vs debt; equity is the gap between them."""
    df = pd.DataFrame(
        {"asset_value": result.chart_assets, "loan_balance": result.chart_loans},
        index=pd.RangeIndex(len(result.chart_assets), name="year"),
    )
    df["equity"] = df["asset_value"] - df["loan_balance"]
    return df
