# src/propcalc/analysis/finance.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from propcalc.adapters.logging_utils import ctx, get_logger
from propcalc.analysis.projection import project
from propcalc.domain.amortization import fixed_payment, max_loan_for_payment, remaining_balance
from propcalc.domain.carry import carry_cost
from propcalc.domain.expenses import annualize_expenses
from propcalc.domain.inputs import (
    CarryTranche,
    ExpenseConfig,
    PropertyInputs,
    coerce_expense_config,
    coerce_inputs,
)
from propcalc.domain.parsing import parse_number
from propcalc.domain.results import CalculationResult
from propcalc.domain.revenue import build_revenue
from propcalc.domain.rules import DSCR_BREAKPOINTS, classify_dscr, round_dscr, round_half_up

logger = get_logger(__name__)

FINANCED_MODES = ("traditional", "dscr")


@dataclass(frozen=True)
class FinancingBasis:
    """
    How the deal is financed and how much of the investor's cash stays in it.

    Shared by the core metrics and the stress matrix so both see the same
    loan and the same cash basis.
    """
    mode: str
    purchase_price: float
    exit_arv: float
    interest_rate: float
    loan_term: float
    loan_amount: float
    total_out_of_pocket: float  # may be negative on a DSCR cash-out
    cash_basis: float           # always >= 0
    jv_split: float             # % of cash flow to the investor

    closing_cost: float = 0.0
    rehab_cost: float = 0.0
    down_payment: float = 0.0   # traditional
    down_percent: float = 0.0   # traditional
    carry_amount: float = 0.0   # dscr
    dscr_ltv: float = 0.0       # dscr

    @property
    def basis_for_gain(self) -> float:
        # a cash-out refinance is not negative capital at risk
        if self.mode == "dscr":
            return max(self.total_out_of_pocket, 0.0)
        return self.total_out_of_pocket

    @property
    def financed_fraction(self) -> float:
        """Share of the purchase price the loan covers; sizes price breakpoints."""
        if self.mode == "dscr":
            return self.dscr_ltv / 100.0
        return 1 - self.down_percent / 100.0


def _check_mode(mode: str) -> None:
    if mode not in FINANCED_MODES:
        raise ValueError(f"Unsupported calculation mode: {mode!r} (expected one of {', '.join(FINANCED_MODES)})")


def financing_basis(
    inputs: PropertyInputs,
    mode: str,
    tranches: Optional[Sequence[CarryTranche]] = None,
) -> FinancingBasis:
    _check_mode(mode)

    purchase_price = parse_number(inputs.purchase_price)
    exit_arv = parse_number(inputs.exit_arv)
    interest_rate = parse_number(inputs.interest_rate)
    loan_term = parse_number(inputs.loan_term, 30.0, zero_is_unset=True)

    if mode == "dscr":
        closing = parse_number(inputs.closing_cost_dscr)
        rehab = parse_number(inputs.rehab_cost_dscr)
        ltv = parse_number(inputs.dscr_ltv)
        carry_amount = carry_cost(
            purchase_price,
            closing,
            rehab,
            parse_number(inputs.carry_months),
            parse_number(inputs.carry_rate),
            tranches,
        )
        loan_amount = exit_arv * (ltv / 100.0)
        cash_left = purchase_price + closing + rehab + carry_amount - loan_amount
        return FinancingBasis(
            mode=mode,
            purchase_price=purchase_price,
            exit_arv=exit_arv,
            interest_rate=interest_rate,
            loan_term=loan_term,
            loan_amount=loan_amount,
            total_out_of_pocket=cash_left,
            cash_basis=abs(cash_left),
            jv_split=parse_number(inputs.jv_split_main, 100.0, zero_is_unset=True),
            closing_cost=closing,
            rehab_cost=rehab,
            carry_amount=carry_amount,
            dscr_ltv=ltv,
        )

    closing = parse_number(inputs.closing_cost)
    rehab = parse_number(inputs.rehab_cost)
    down_percent = parse_number(inputs.down_percent)
    down_payment = purchase_price * (down_percent / 100.0)
    out_of_pocket = down_payment + closing + rehab
    return FinancingBasis(
        mode=mode,
        purchase_price=purchase_price,
        exit_arv=exit_arv,
        interest_rate=interest_rate,
        loan_term=loan_term,
        loan_amount=purchase_price - down_payment,
        total_out_of_pocket=out_of_pocket,
        cash_basis=out_of_pocket,
        jv_split=100.0,
        closing_cost=closing,
        rehab_cost=rehab,
        down_payment=down_payment,
        down_percent=down_percent,
    )


def dscr_price_ranges(
    noi: float,
    interest_rate: float,
    loan_term: float,
    financed_fraction: float,
) -> Optional[list[float]]:
    """
    Highest purchase price that still clears each DSCR breakpoint at the
    current NOI, rate and term. None when the inversion is undefined.
    """
    if noi <= 0 or interest_rate == 0 or financed_fraction <= 0:
        return None

    prices = []
    for threshold in DSCR_BREAKPOINTS:
        max_payment = noi / threshold / 12
        max_loan = max_loan_for_payment(max_payment, interest_rate, loan_term)
        prices.append(max_loan / financed_fraction)
    return prices


def _percent_display(value: float) -> str:
    return f"{value:g}%"


def _thousands_display(value: float) -> str:
    return f"${int(round_half_up(value / 1000))}k"


def calculate_all(
    inputs: PropertyInputs | Mapping[str, Any],
    expense_config: ExpenseConfig | Mapping[str, Any] | None = None,
    mode: str = "traditional",
    tranches: Optional[Sequence[CarryTranche | Mapping[str, Any]]] = None,
) -> CalculationResult:
    """
    Core underwriting brain for the financed modes.

    Recomputes everything from the input snapshot: revenue, expenses, NOI,
    debt service, DSCR tier, returns, milestones and the 30-year chart.
    """
    inputs = coerce_inputs(inputs)
    expense_config = coerce_expense_config(expense_config)
    basis = financing_basis(inputs, mode, tranches)

    # --- income side ---
    revenue = build_revenue(inputs)

    # --- operating expenses (percent lines ride on gross rent) ---
    expense_yearly = annualize_expenses(inputs, expense_config, revenue.annual_gross_rent)
    total_expenses = sum(expense_yearly.values())

    # --- NOI and debt ---
    noi = revenue.annual_effective_rent - total_expenses
    monthly_payment = fixed_payment(basis.loan_amount, basis.interest_rate, basis.loan_term)
    annual_debt_service = monthly_payment * 12
    cash_flow = noi - annual_debt_service
    monthly_cash_flow = cash_flow / 12

    dscr = noi / annual_debt_service if annual_debt_service > 0 else 0.0
    rounded_dscr = round_dscr(dscr)
    cap_rate = (noi / basis.purchase_price) * 100 if basis.purchase_price > 0 else 0.0

    # --- investor's share ---
    split = basis.jv_split / 100.0
    display_annual_cf = cash_flow * split
    cash_on_cash = (display_annual_cf / basis.cash_basis) * 100 if basis.cash_basis > 0 else 0.0
    full_cash_on_cash = (cash_flow / basis.cash_basis) * 100 if basis.cash_basis > 0 else 0.0

    # --- growth ---
    appreciation = parse_number(inputs.appreciation_rate) / 100.0
    rent_growth = parse_number(inputs.rent_growth) / 100.0
    cost_growth = parse_number(inputs.cost_increase) / 100.0
    term_months = basis.loan_term * 12

    def debt_at_month(months: float) -> float:
        if months > term_months:
            return 0.0
        return remaining_balance(basis.loan_amount, basis.interest_rate, basis.loan_term, months)

    chart_assets, chart_loans, m5, m10 = project(
        start_value=basis.exit_arv,
        appreciation_rate=appreciation,
        debt_at_month=debt_at_month,
        annual_effective_rent=revenue.annual_effective_rent,
        total_expenses=total_expenses,
        annual_debt_service=annual_debt_service,
        rent_growth_rate=rent_growth,
        cost_growth_rate=cost_growth,
        basis_for_gain=basis.basis_for_gain,
    )

    mode_fields: dict[str, Any]
    if mode == "dscr":
        cash_out = basis.total_out_of_pocket < 0
        mode_fields = dict(
            dscr_purchase=basis.purchase_price,
            dscr_fees=basis.closing_cost,
            dscr_rehab=basis.rehab_cost,
            dscr_carry=basis.carry_amount,
            dscr_loan_amount=basis.loan_amount,
            dscr_ltv_display=_percent_display(basis.dscr_ltv),
            dscr_arv_display=_thousands_display(basis.exit_arv),
            dscr_cash_left=basis.total_out_of_pocket,
            dscr_highlight_label="Cash Out!" if cash_out else "Cash Left in Deal",
            dscr_highlight_label_class="green" if cash_out else "",
        )
    else:
        mode_fields = dict(
            down_amount=basis.down_payment,
            fees_amount=basis.closing_cost,
            rehab_amount=basis.rehab_cost,
        )

    tier = classify_dscr(rounded_dscr)
    logger.debug(
        "calculate_all",
        extra=ctx(mode=mode, noi=round(noi, 2), dscr=rounded_dscr, tier=tier.status_text),
    )

    return CalculationResult(
        mode=mode,
        gross_monthly_rent=revenue.gross_monthly_rent,
        effective_monthly_rent=revenue.effective_monthly_rent,
        annual_gross_rent=revenue.annual_gross_rent,
        annual_effective_rent=revenue.annual_effective_rent,
        vacancy_rate=revenue.vacancy_rate,
        expense_yearly=expense_yearly,
        total_expenses=total_expenses,
        noi=noi,
        loan_amount=basis.loan_amount,
        interest_rate=basis.interest_rate,
        loan_term=basis.loan_term,
        monthly_payment=monthly_payment,
        annual_debt_service=annual_debt_service,
        cash_flow=cash_flow,
        monthly_cash_flow=monthly_cash_flow,
        dscr_ratio=rounded_dscr,
        cap_rate=cap_rate,
        jv_split=basis.jv_split,
        display_monthly_cf=monthly_cash_flow * split,
        display_annual_cf=display_annual_cf,
        cash_on_cash=cash_on_cash,
        full_cash_on_cash=full_cash_on_cash,
        cash_basis=basis.cash_basis,
        total_out_of_pocket=basis.total_out_of_pocket,
        basis_for_gain=basis.basis_for_gain,
        milestone5=m5,
        milestone10=m10,
        chart_assets=chart_assets,
        chart_loans=chart_loans,
        dscr_tier=tier,
        dscr_price_ranges=dscr_price_ranges(noi, basis.interest_rate, basis.loan_term, basis.financed_fraction),
        **mode_fields,
    )
