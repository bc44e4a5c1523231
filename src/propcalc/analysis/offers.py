# src/propcalc/analysis/offers.py
"""
Creative-finance offer structures.

Morby, Seller Finance and Subject-To differ only in which notes they stack
and how those notes are sized. Each builder returns a `LoanSet`; a single
balloon/amortization pass turns any `LoanSet` into an `OfferResult`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from propcalc.adapters.logging_utils import ctx, get_logger
from propcalc.analysis.projection import project, value_at
from propcalc.domain.amortization import fixed_payment, remaining_balance
from propcalc.domain.expenses import annualize_expenses
from propcalc.domain.inputs import (
    ESCROW_FIELDS,
    ExpenseConfig,
    PropertyInputs,
    coerce_expense_config,
    coerce_inputs,
)
from propcalc.domain.parsing import parse_number, parse_override
from propcalc.domain.results import AmortizationRow, LoanSummary, OfferResult
from propcalc.domain.revenue import build_revenue
from propcalc.domain.rules import balloon_verdict
from propcalc.domain.strategies import MORBY, SELLER_FINANCE, SUBJECT_TO, normalize_strategy

logger = get_logger(__name__)

MIN_TABLE_YEARS = 10
YEARS_PAST_BALLOON = 3


@dataclass(frozen=True)
class LoanLeg:
    key: str
    label: str
    principal: float
    rate: float                 # annual %
    amortization_years: float
    clamp_after_term: bool = True

    def monthly_payment(self) -> float:
        return fixed_payment(self.principal, self.rate, self.amortization_years)

    def balance_at(self, months: float) -> float:
        if self.clamp_after_term and months > self.amortization_years * 12:
            return 0.0
        return remaining_balance(self.principal, self.rate, self.amortization_years, months)


@dataclass(frozen=True)
class LoanSet:
    strategy: str
    legs: Tuple[LoanLeg, ...]
    balloon_years: float
    refi_ltv: float
    appreciation_override: Optional[float] = None
    basis_for_gain: float = 0.0
    skip_expenses: Tuple[str, ...] = ()

    def debt_at_month(self, months: float) -> float:
        return sum(max(leg.balance_at(months), 0.0) for leg in self.legs)


# -----------------------------
# Builders
# -----------------------------
def morby_loan_set(inputs: PropertyInputs) -> LoanSet:
    """New DSCR loan funds the down payment; the seller carries the rest."""
    price = parse_number(inputs.purchase_price)
    down_pct = parse_number(inputs.morby_down_pct, 25)
    return LoanSet(
        strategy=MORBY,
        legs=(
            LoanLeg(
                key="dscr",
                label="DSCR Loan",
                principal=price * (down_pct / 100),
                rate=parse_number(inputs.morby_dscr_rate, 8),
                amortization_years=parse_number(inputs.morby_dscr_term, 30),
                clamp_after_term=False,
            ),
            LoanLeg(
                key="seller",
                label="Seller Carry",
                principal=price * (1 - down_pct / 100),
                rate=parse_number(inputs.morby_seller_rate, 5),
                amortization_years=parse_number(inputs.morby_seller_amort, 30),
            ),
        ),
        balloon_years=parse_number(inputs.morby_balloon_years, 7),
        refi_ltv=parse_number(inputs.morby_refi_ltv, 75),
        appreciation_override=parse_override(inputs.morby_appreciation),
    )


def seller_finance_loan_set(inputs: PropertyInputs) -> LoanSet:
    """Seller finances 100% of the purchase price."""
    return LoanSet(
        strategy=SELLER_FINANCE,
        legs=(
            LoanLeg(
                key="seller",
                label="Seller Loan",
                principal=parse_number(inputs.purchase_price),
                rate=parse_number(inputs.sf_seller_rate, 5),
                amortization_years=parse_number(inputs.sf_seller_amort, 30),
            ),
        ),
        balloon_years=parse_number(inputs.sf_balloon_years, 7),
        refi_ltv=parse_number(inputs.sf_refi_ltv, 75),
        appreciation_override=parse_override(inputs.sf_appreciation),
    )


def subject_to_loan_set(inputs: PropertyInputs) -> LoanSet:
    """
    Take over the existing mortgage; the seller carries any equity gap left
    after the cash down payment.

    The existing loan is re-amortized from its stated balance over its stated
    remaining term. That approximates, but does not rebuild, its original curve.
    """
    price = parse_number(inputs.purchase_price)
    existing = parse_number(inputs.sub_to_loan_balance)
    down = parse_number(inputs.sub_to_down_payment)

    legs: List[LoanLeg] = [
        LoanLeg(
            key="existing",
            label="Existing Loan",
            principal=existing,
            rate=parse_number(inputs.sub_to_rate),
            amortization_years=parse_number(inputs.sub_to_rem_term, 25),
            clamp_after_term=False,
        )
    ]
    equity_gap = max(price - existing - down, 0.0)
    if equity_gap > 0:
        legs.append(
            LoanLeg(
                key="seller",
                label="Seller Carry",
                principal=equity_gap,
                rate=parse_number(inputs.sub_to_seller_rate, 5),
                amortization_years=parse_number(inputs.sub_to_seller_amort, 30),
            )
        )

    escrow_included = inputs.sub_to_escrow.strip().lower() == "yes"
    return LoanSet(
        strategy=SUBJECT_TO,
        legs=tuple(legs),
        balloon_years=parse_number(inputs.sub_to_balloon_years, 7),
        refi_ltv=parse_number(inputs.sub_to_refi_ltv, 75),
        appreciation_override=parse_override(inputs.sub_to_appreciation),
        # cash to the seller is the only capital actually out of pocket
        basis_for_gain=down,
        skip_expenses=ESCROW_FIELDS if escrow_included else (),
    )


LOAN_SET_BUILDERS: Dict[str, Callable[[PropertyInputs], LoanSet]] = {
    MORBY: morby_loan_set,
    SELLER_FINANCE: seller_finance_loan_set,
    SUBJECT_TO: subject_to_loan_set,
}


# -----------------------------
# Shared balloon / amortization pass
# -----------------------------
def evaluate_loan_set(
    inputs: PropertyInputs,
    expense_config: ExpenseConfig,
    loan_set: LoanSet,
) -> OfferResult:
    purchase_price = parse_number(inputs.purchase_price)
    main_appreciation = parse_number(inputs.appreciation_rate)
    appreciation = (
        loan_set.appreciation_override if loan_set.appreciation_override is not None else main_appreciation
    ) / 100
    rent_growth = parse_number(inputs.rent_growth) / 100
    cost_growth = parse_number(inputs.cost_increase) / 100

    # --- operations ---
    revenue = build_revenue(inputs)
    expenses = annualize_expenses(
        inputs, expense_config, revenue.annual_gross_rent, skip=loan_set.skip_expenses
    )
    total_expenses = sum(expenses.values())
    noi = revenue.annual_effective_rent - total_expenses
    cap_rate = (noi / purchase_price) * 100 if purchase_price > 0 else 0.0

    # --- debt ---
    payments = {leg.key: leg.monthly_payment() for leg in loan_set.legs}
    total_monthly_debt = sum(payments.values())
    annual_debt = total_monthly_debt * 12
    monthly_cf = revenue.effective_monthly_rent - total_expenses / 12 - total_monthly_debt

    # --- balloon ---
    balloon_years = loan_set.balloon_years
    balloon_months = balloon_years * 12
    projected_value = value_at(purchase_price, appreciation, balloon_years)
    at_balloon = {leg.key: leg.balance_at(balloon_months) for leg in loan_set.legs}
    total_payoff = sum(at_balloon.values())
    max_refi = projected_value * (loan_set.refi_ltv / 100)
    surplus = max_refi - total_payoff

    # --- year-by-year table ---
    n_rows = int(max(balloon_years + YEARS_PAST_BALLOON, MIN_TABLE_YEARS))
    rows: List[AmortizationRow] = []
    yearly_rent = revenue.annual_effective_rent
    yearly_exp = total_expenses
    cumulative = 0.0
    for year in range(1, n_rows + 1):
        if year > 1:
            yearly_rent *= 1 + rent_growth
            yearly_exp *= 1 + cost_growth
        value = value_at(purchase_price, appreciation, year)
        balances = {leg.key: max(leg.balance_at(year * 12), 0.0) for leg in loan_set.legs}
        total_debt = sum(balances.values())
        annual_cf = yearly_rent - yearly_exp - annual_debt
        cumulative += annual_cf
        rows.append(
            AmortizationRow(
                year=year,
                is_balloon=year == balloon_years,
                property_value=value,
                balances=balances,
                total_debt=total_debt,
                equity=value - total_debt,
                annual_cash_flow=annual_cf,
                cumulative_cash_flow=cumulative,
            )
        )

    chart_assets, chart_loans, m5, m10 = project(
        start_value=purchase_price,
        appreciation_rate=appreciation,
        debt_at_month=loan_set.debt_at_month,
        annual_effective_rent=revenue.annual_effective_rent,
        total_expenses=total_expenses,
        annual_debt_service=annual_debt,
        rent_growth_rate=rent_growth,
        cost_growth_rate=cost_growth,
        basis_for_gain=loan_set.basis_for_gain,
    )

    verdict = balloon_verdict(surplus)
    logger.debug(
        "offer evaluated",
        extra=ctx(strategy=loan_set.strategy, surplus=round(surplus, 2), verdict=verdict),
    )

    return OfferResult(
        strategy=loan_set.strategy,  # type: ignore[arg-type]
        purchase_price=purchase_price,
        loans=[
            LoanSummary(
                key=leg.key,
                label=leg.label,
                principal=leg.principal,
                rate=leg.rate,
                amortization_years=leg.amortization_years,
                monthly_payment=payments[leg.key],
                balance_at_balloon=at_balloon[leg.key],
            )
            for leg in loan_set.legs
        ],
        total_monthly_debt=total_monthly_debt,
        total_expenses=total_expenses,
        noi=noi,
        cap_rate=cap_rate,
        monthly_cf=monthly_cf,
        balloon_years=balloon_years,
        appreciation_rate=appreciation,
        projected_value=projected_value,
        total_payoff=total_payoff,
        max_refi=max_refi,
        surplus=surplus,
        verdict=verdict,
        amort_rows=rows,
        chart_assets=chart_assets,
        chart_loans=chart_loans,
        milestone5=m5,
        milestone10=m10,
        basis_for_gain=loan_set.basis_for_gain,
    )


def _run(strategy: str, inputs: PropertyInputs | Mapping[str, Any], expense_config: Any) -> OfferResult:
    inputs = coerce_inputs(inputs)
    config = coerce_expense_config(expense_config)
    return evaluate_loan_set(inputs, config, LOAN_SET_BUILDERS[strategy](inputs))


def calculate_offer(
    inputs: PropertyInputs | Mapping[str, Any],
    expense_config: ExpenseConfig | Mapping[str, Any] | None = None,
) -> OfferResult:
    """Morby Method."""
    return _run(MORBY, inputs, expense_config)


def calculate_seller_finance(
    inputs: PropertyInputs | Mapping[str, Any],
    expense_config: ExpenseConfig | Mapping[str, Any] | None = None,
) -> OfferResult:
    return _run(SELLER_FINANCE, inputs, expense_config)


def calculate_subject_to(
    inputs: PropertyInputs | Mapping[str, Any],
    expense_config: ExpenseConfig | Mapping[str, Any] | None = None,
) -> OfferResult:
    return _run(SUBJECT_TO, inputs, expense_config)


def calculate_strategy(
    strategy: str,
    inputs: PropertyInputs | Mapping[str, Any],
    expense_config: ExpenseConfig | Mapping[str, Any] | None = None,
) -> OfferResult:
    """Dispatch by strategy key; unknown keys raise ValueError."""
    return _run(normalize_strategy(strategy), inputs, expense_config)
