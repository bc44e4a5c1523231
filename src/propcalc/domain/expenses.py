# src/propcalc/domain/expenses.py
from __future__ import annotations

from collections.abc import Iterable

from propcalc.domain.inputs import EXPENSE_FIELDS, ExpenseConfig, ExpenseLineConfig, PropertyInputs
from propcalc.domain.parsing import parse_number


def annualize_expense(value: float, config: ExpenseLineConfig, annual_gross_rent: float) -> float:
    """
    One expense line -> annual dollars.

    Percent lines are always a share of annual *gross* rent (pre-vacancy),
    whatever their frequency says.
    """
    if config.mode == "percent":
        return annual_gross_rent * (value / 100.0)
    if config.freq == "monthly":
        return value * 12
    return value


def annualize_expenses(
    inputs: PropertyInputs,
    expense_config: ExpenseConfig,
    annual_gross_rent: float,
    *,
    skip: Iterable[str] = (),
    only: Iterable[str] | None = None,
) -> dict[str, float]:
    """
    Normalize the operating-expense lines of a property.

    Operating expenses do NOT include mortgage. (Mortgage is financing, not
    operations.) Lines in `skip` are left out of the map entirely; `only`
    restricts the map to a subset (carry-period holding costs).
    """
    skipped = set(skip)
    fields = EXPENSE_FIELDS if only is None else tuple(f for f in EXPENSE_FIELDS if f in set(only))

    yearly: dict[str, float] = {}
    for field in fields:
        if field in skipped:
            continue
        line_cfg = expense_config.get(field)
        if line_cfg is None:
            raise ValueError(f"Missing expense config for field: {field}")
        raw = parse_number(getattr(inputs, field))
        yearly[field] = annualize_expense(raw, line_cfg, annual_gross_rent)
    return yearly
