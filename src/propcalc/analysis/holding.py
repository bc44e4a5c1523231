# src/propcalc/analysis/holding.py
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from propcalc.adapters.config import config
from propcalc.domain.carry import CarrySchedule, carry_schedule
from propcalc.domain.expenses import annualize_expenses
from propcalc.domain.inputs import (
    HOLDING_EXPENSE_FIELDS,
    CarryTranche,
    ExpenseConfig,
    PropertyInputs,
    coerce_expense_config,
    coerce_inputs,
    coerce_tranches,
)
from propcalc.domain.parsing import parse_number
from propcalc.domain.results import CarryBurn
from propcalc.domain.revenue import gross_monthly_rent

# Suggested names for new tranches, in the order they are usually layered.
TRANCHE_NAMES = ("Seller Financing", "Family/Friends", "Hard Money", "Private Lender", "Bridge Loan")


def cash_needed_for(inputs: PropertyInputs | Mapping[str, Any]) -> float:
    """Purchase + closing + rehab on the DSCR side: what carry financing must cover."""
    inputs = coerce_inputs(inputs)
    return (
        parse_number(inputs.purchase_price)
        + parse_number(inputs.closing_cost_dscr)
        + parse_number(inputs.rehab_cost_dscr)
    )


def property_carry_schedule(
    inputs: PropertyInputs | Mapping[str, Any],
    tranches: Optional[Sequence[CarryTranche | Mapping[str, Any]]] = None,
) -> CarrySchedule:
    """Carry schedule for the DSCR acquisition fields of a property."""
    inputs = coerce_inputs(inputs)
    return carry_schedule(
        parse_number(inputs.purchase_price),
        parse_number(inputs.closing_cost_dscr),
        parse_number(inputs.rehab_cost_dscr),
        parse_number(inputs.carry_months),
        parse_number(inputs.carry_rate),
        tranches,
    )


def carry_period_burn(
    inputs: PropertyInputs | Mapping[str, Any],
    expense_config: ExpenseConfig | Mapping[str, Any] | None = None,
    tranches: Optional[Sequence[CarryTranche | Mapping[str, Any]]] = None,
) -> CarryBurn:
    """
    Monthly cash burn while the property is being carried.

    Holding costs are taxes, insurance and utilities only; rent collected is
    the share of gross rent (`carry_rent_percent`) the property earns before
    it is stabilized.
    """
    inputs = coerce_inputs(inputs)
    expense_config = coerce_expense_config(expense_config)

    gross = gross_monthly_rent(inputs)
    holding = annualize_expenses(inputs, expense_config, gross * 12, only=HOLDING_EXPENSE_FIELDS)
    monthly_expenses = sum(holding.values()) / 12

    months = parse_number(inputs.carry_months)
    schedule = property_carry_schedule(inputs, tranches)
    monthly_interest = schedule.total_interest / months if months > 0 else 0.0
    rent_collected = gross * (parse_number(inputs.carry_rent_percent) / 100)
    net_burn = monthly_interest + monthly_expenses - rent_collected

    return CarryBurn(
        carry_months=months,
        monthly_holding_expenses=monthly_expenses,
        monthly_rent_collected=rent_collected,
        monthly_interest=monthly_interest,
        monthly_net_burn=net_burn,
        total_carry_period_cost=net_burn * months,
    )


def add_tranche(
    tranches: Optional[Sequence[CarryTranche | Mapping[str, Any]]],
    total_cash_needed: float,
) -> List[CarryTranche]:
    """
    Append a tranche sized to whatever the existing ones leave uncovered.

    Raises ValueError once the tranche limit is reached.
    """
    current = coerce_tranches(list(tranches or []))
    if len(current) >= config.MAX_CARRY_TRANCHES:
        raise ValueError(f"At most {config.MAX_CARRY_TRANCHES} carry tranches are supported")

    n = len(current)
    name = TRANCHE_NAMES[n] if n < len(TRANCHE_NAMES) else f"Tranche {n + 1}"
    used = sum(t.amount for t in current)
    return current + [CarryTranche(name=name, amount=max(0.0, total_cash_needed - used))]


def max_out_tranche(
    tranches: Sequence[CarryTranche | Mapping[str, Any]],
    index: int,
    total_cash_needed: float,
) -> List[CarryTranche]:
    """Resize one tranche to cover everything the others don't."""
    current = coerce_tranches(list(tranches))
    if not 0 <= index < len(current):
        raise ValueError(f"No carry tranche at index {index}")

    used_by_others = sum(t.amount for i, t in enumerate(current) if i != index)
    current[index] = current[index].model_copy(update={"amount": max(0.0, total_cash_needed - used_by_others)})
    return current
