# src/propcalc/analysis/jv.py
from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from propcalc.adapters.logging_utils import ctx, get_logger
from propcalc.analysis.finance import financing_basis
from propcalc.domain.amortization import fixed_payment
from propcalc.domain.expenses import annualize_expenses
from propcalc.domain.inputs import (
    HOLDING_EXPENSE_FIELDS,
    CarryTranche,
    ExpenseConfig,
    PropertyInputs,
    coerce_expense_config,
    coerce_inputs,
)
from propcalc.domain.parsing import parse_number
from propcalc.domain.results import JvInputs, JvSimulationResult
from propcalc.domain.revenue import build_revenue

logger = get_logger(__name__)


def run_jv_simulation(
    cash_in: float,
    pre_refi_cf: float,
    post_refi_cf: float,
    refi_month: int,
    payback_months: int,
    investor_split_pct: float,
    months_to_project: int,
) -> JvSimulationResult:
    """
    Month-by-month capital waterfall between an investor and an operator.

    - Deal cash flow switches from pre- to post-refi the month after
      `refi_month` (hard switch, no blend).
    - Months 1..`payback_months` pay 100% to the investor whatever the refi
      timing; afterwards cash splits `investor_split_pct` / remainder.
    - `full_payback_month` is the first month the investor's capital is
      fully returned; reported remaining capital never goes below 0.
    """
    months: list[int] = []
    deal_cf: list[float] = []
    to_investor: list[float] = []
    to_operator: list[float] = []
    remaining_out: list[float] = []
    cum_investor: list[float] = []
    cum_operator: list[float] = []

    remaining = cash_in
    cum_you = 0.0
    cum_op = 0.0
    full_payback_month: Optional[int] = None

    for month in range(1, int(months_to_project) + 1):
        cf = pre_refi_cf if month <= refi_month else post_refi_cf

        if month <= payback_months:
            you, op = cf, 0.0
        else:
            you = cf * (investor_split_pct / 100)
            op = cf * (1 - investor_split_pct / 100)

        remaining -= you
        if remaining <= 0 and full_payback_month is None:
            full_payback_month = month

        cum_you += you
        cum_op += op

        months.append(month)
        deal_cf.append(cf)
        to_investor.append(you)
        to_operator.append(op)
        remaining_out.append(max(remaining, 0.0))
        cum_investor.append(cum_you)
        cum_operator.append(cum_op)

    logger.debug(
        "run_jv_simulation",
        extra=ctx(cash_in=cash_in, months=len(months), full_payback_month=full_payback_month),
    )
    return JvSimulationResult(
        months=months,
        deal_cash_flow=deal_cf,
        cash_to_investor=to_investor,
        cash_to_operator=to_operator,
        remaining_capital=remaining_out,
        cum_cash_to_investor=cum_investor,
        cum_cash_to_operator=cum_operator,
        full_payback_month=full_payback_month,
    )


def jv_inputs_from_property(
    inputs: PropertyInputs | Mapping[str, Any],
    expense_config: ExpenseConfig | Mapping[str, Any] | None = None,
    tranches: Optional[Sequence[CarryTranche | Mapping[str, Any]]] = None,
) -> JvInputs:
    """
    Derive waterfall inputs from a DSCR (buy, rehab, refinance) deal.

    Before the refi the property collects full gross rent but still pays
    holding costs and bridge interest; after it, cash flow is NOI less the
    new loan's debt service.
    """
    inputs = coerce_inputs(inputs)
    expense_config = coerce_expense_config(expense_config)
    basis = financing_basis(inputs, "dscr", tranches)

    revenue = build_revenue(inputs)
    all_expenses = annualize_expenses(inputs, expense_config, revenue.annual_gross_rent)
    holding = sum(all_expenses[f] for f in HOLDING_EXPENSE_FIELDS) / 12

    carry_months = parse_number(inputs.carry_months)
    monthly_carry = basis.carry_amount / carry_months if carry_months > 0 else 0.0

    noi = revenue.annual_effective_rent - sum(all_expenses.values())
    payment = fixed_payment(basis.loan_amount, basis.interest_rate, basis.loan_term)

    return JvInputs(
        cash_in=max(basis.total_out_of_pocket, 0.0),
        pre_refi_cf=revenue.gross_monthly_rent - holding - monthly_carry,
        post_refi_cf=(noi - payment * 12) / 12,
    )
