# src/propcalc/analysis/stress.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence

from propcalc.adapters.logging_utils import ctx, get_logger
from propcalc.analysis.finance import FinancingBasis, financing_basis
from propcalc.domain.amortization import fixed_payment
from propcalc.domain.expenses import annualize_expenses
from propcalc.domain.inputs import (
    CarryTranche,
    ExpenseConfig,
    PropertyInputs,
    coerce_expense_config,
    coerce_inputs,
)
from propcalc.domain.results import StressScenario
from propcalc.domain.revenue import build_revenue
from propcalc.domain.rules import classify_stress, round_half_up

logger = get_logger(__name__)


@dataclass(frozen=True)
class Shock:
    """One perturbation of the base case. None means 'keep the base value'."""
    name: str
    rent: float = 1.0
    vacancy: Optional[float] = None
    rate: Optional[float] = None
    insurance: float = 1.0
    is_base: bool = False


def _shocks(interest_rate: float, base_insurance_yearly: float) -> List[Shock]:
    # Order is part of the contract: index 0 is always the base case.
    return [
        Shock("Base Case", is_base=True),
        Shock("Rent -10%", rent=0.9),
        Shock("Rent -20%", rent=0.8),
        Shock("Vacancy 15%", vacancy=15),
        Shock("Vacancy 25%", vacancy=25),
        Shock(f"Interest +1% ({interest_rate + 1:.1f}%)", rate=interest_rate + 1),
        Shock(f"Insurance 1.5x (${int(round_half_up(base_insurance_yearly * 1.5)):,}/yr)", insurance=1.5),
        Shock(f"Insurance 2x (${int(round_half_up(base_insurance_yearly * 2)):,}/yr)", insurance=2.0),
        Shock("Worst: Rent -15%, Vac 20%, Ins 2x", rent=0.85, vacancy=20, insurance=2.0),
    ]


def _evaluate(
    shock: Shock,
    inputs: PropertyInputs,
    expense_config: ExpenseConfig,
    basis: FinancingBasis,
) -> StressScenario:
    revenue = build_revenue(inputs, rent_multiplier=shock.rent, vacancy_override=shock.vacancy)
    expenses = annualize_expenses(inputs, expense_config, revenue.annual_gross_rent)
    expenses["insurance"] *= shock.insurance
    noi = revenue.annual_effective_rent - sum(expenses.values())

    rate = basis.interest_rate if shock.rate is None else shock.rate
    annual_debt = fixed_payment(basis.loan_amount, rate, basis.loan_term) * 12

    dscr = noi / annual_debt if annual_debt > 0 else 0.0
    cf = noi - annual_debt
    split = basis.jv_split / 100.0
    coc = (cf * split / basis.cash_basis) * 100 if basis.cash_basis > 0 else 0.0

    verdict = classify_stress(dscr)
    return StressScenario(
        name=shock.name,
        dscr=dscr,
        monthly_cf=cf / 12 * split,
        coc=coc,
        status=verdict.status,
        status_label=verdict.label,
        status_class=verdict.status_class,
        is_base=shock.is_base,
        rent_multiplier=shock.rent,
        vacancy_override=shock.vacancy,
        rate_override=shock.rate,
        insurance_multiplier=shock.insurance,
    )


def run_stress_test(
    inputs: PropertyInputs | Mapping[str, Any],
    expense_config: ExpenseConfig | Mapping[str, Any] | None = None,
    mode: str = "traditional",
    tranches: Optional[Sequence[CarryTranche | Mapping[str, Any]]] = None,
) -> List[StressScenario]:
    """
    Re-run NOI -> DSCR -> cash flow under nine fixed shocks.

    Loan and cash basis come from the same derivation as `calculate_all`;
    the insurance shock scales only the normalized insurance line.
    """
    inputs = coerce_inputs(inputs)
    expense_config = coerce_expense_config(expense_config)
    basis = financing_basis(inputs, mode, tranches)

    base_revenue = build_revenue(inputs)
    base_insurance = annualize_expenses(
        inputs, expense_config, base_revenue.annual_gross_rent, only=("insurance",)
    )["insurance"]

    scenarios = [_evaluate(s, inputs, expense_config, basis) for s in _shocks(basis.interest_rate, base_insurance)]

    failing = sum(1 for s in scenarios if s.status == "fail")
    logger.debug("run_stress_test", extra=ctx(mode=mode, failing=failing, base_dscr=round(scenarios[0].dscr, 4)))
    return scenarios
