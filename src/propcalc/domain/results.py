from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

from propcalc.domain.rules import BalloonVerdict, DscrTier, StressStatus

StrategyKey = Literal["morby", "sellerFinance", "subjectTo"]


@dataclass(frozen=True)
class Milestone:
    year: int
    value: float      # projected property value
    balance: float    # total debt outstanding
    equity: float
    flow: float       # cumulative net cash flow through `year`
    net_gain: float   # equity + flow - basis for gain


@dataclass(frozen=True)
class CalculationResult:
    mode: str

    # Revenue
    gross_monthly_rent: float
    effective_monthly_rent: float
    annual_gross_rent: float
    annual_effective_rent: float
    vacancy_rate: float

    # Expenses
    expense_yearly: Dict[str, float]
    total_expenses: float

    # Core metrics
    noi: float
    loan_amount: float
    interest_rate: float
    loan_term: float
    monthly_payment: float
    annual_debt_service: float
    cash_flow: float
    monthly_cash_flow: float
    dscr_ratio: float          # rounded to the cent
    cap_rate: float

    # JV-adjusted
    jv_split: float
    display_monthly_cf: float
    display_annual_cf: float
    cash_on_cash: float
    full_cash_on_cash: float

    # Basis
    cash_basis: float
    total_out_of_pocket: float
    basis_for_gain: float

    milestone5: Milestone
    milestone10: Milestone

    # Chart, years 0..30
    chart_assets: List[float]
    chart_loans: List[float]

    dscr_tier: DscrTier
    dscr_price_ranges: Optional[List[float]]

    # Traditional only
    down_amount: Optional[float] = None
    fees_amount: Optional[float] = None
    rehab_amount: Optional[float] = None

    # DSCR only
    dscr_purchase: Optional[float] = None
    dscr_fees: Optional[float] = None
    dscr_rehab: Optional[float] = None
    dscr_carry: Optional[float] = None
    dscr_loan_amount: Optional[float] = None
    dscr_ltv_display: Optional[str] = None
    dscr_arv_display: Optional[str] = None
    dscr_cash_left: Optional[float] = None
    dscr_highlight_label: Optional[str] = None
    dscr_highlight_label_class: Optional[str] = None


@dataclass(frozen=True)
class StressScenario:
    name: str
    dscr: float
    monthly_cf: float
    coc: float
    status: StressStatus
    status_label: str
    status_class: str
    is_base: bool
    rent_multiplier: float
    vacancy_override: Optional[float]
    rate_override: Optional[float]
    insurance_multiplier: float


@dataclass(frozen=True)
class LoanSummary:
    key: str
    label: str
    principal: float
    rate: float
    amortization_years: float
    monthly_payment: float
    balance_at_balloon: float


@dataclass(frozen=True)
class AmortizationRow:
    year: int
    is_balloon: bool
    property_value: float
    balances: Dict[str, float]  # per loan key, floored at 0
    total_debt: float
    equity: float
    annual_cash_flow: float
    cumulative_cash_flow: float


@dataclass(frozen=True)
class OfferResult:
    strategy: StrategyKey
    purchase_price: float
    loans: List[LoanSummary]
    total_monthly_debt: float
    total_expenses: float
    noi: float
    cap_rate: float
    monthly_cf: float

    # Balloon analysis
    balloon_years: float
    appreciation_rate: float  # fraction
    projected_value: float
    total_payoff: float
    max_refi: float
    surplus: float
    verdict: BalloonVerdict

    amort_rows: List[AmortizationRow]
    chart_assets: List[float]
    chart_loans: List[float]
    milestone5: Milestone
    milestone10: Milestone
    basis_for_gain: float = 0.0

    def loan(self, key: str) -> Optional[LoanSummary]:
        for leg in self.loans:
            if leg.key == key:
                return leg
        return None

    def amount(self, key: str) -> float:
        leg = self.loan(key)
        return leg.principal if leg else 0.0


@dataclass(frozen=True)
class JvSimulationResult:
    months: List[int] = field(default_factory=list)
    deal_cash_flow: List[float] = field(default_factory=list)
    cash_to_investor: List[float] = field(default_factory=list)
    cash_to_operator: List[float] = field(default_factory=list)
    remaining_capital: List[float] = field(default_factory=list)
    cum_cash_to_investor: List[float] = field(default_factory=list)
    cum_cash_to_operator: List[float] = field(default_factory=list)
    full_payback_month: Optional[int] = None


@dataclass(frozen=True)
class JvInputs:
    cash_in: float
    pre_refi_cf: float
    post_refi_cf: float


@dataclass(frozen=True)
class CarryBurn:
    carry_months: float
    monthly_holding_expenses: float
    monthly_rent_collected: float
    monthly_interest: float
    monthly_net_burn: float
    total_carry_period_cost: float
