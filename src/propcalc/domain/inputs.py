# src/propcalc/domain/inputs.py
from __future__ import annotations

from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from propcalc.domain.parsing import parse_number

Mode = Literal["traditional", "dscr", "offer"]
ExpenseMode = Literal["dollar", "percent"]
ExpenseFreq = Literal["monthly", "yearly"]

# Fixed order; every consumer iterates this tuple.
EXPENSE_FIELDS: tuple[str, ...] = (
    "prop_taxes",
    "insurance",
    "maintenance",
    "utilities",
    "prop_mgmt",
    "capex",
    "mortgage_ins",
)

# Lines a carry-period holder still pays while the property is not yet rented.
HOLDING_EXPENSE_FIELDS: tuple[str, ...] = ("prop_taxes", "insurance", "utilities")

# Lines already inside an assumed PITI payment when escrow is included.
ESCROW_FIELDS: tuple[str, ...] = ("prop_taxes", "insurance")

_MODE_SPELLINGS = {"pct": "percent", "%": "percent", "$": "dollar"}
_FREQ_SPELLINGS = {"mo": "monthly", "month": "monthly", "yr": "yearly", "year": "yearly", "annual": "yearly"}


def _as_text(v: Any) -> Any:
    """Form fields are strings; accept numbers / None from JSON callers too."""
    if v is None:
        return ""
    if isinstance(v, bool):
        return ""
    if isinstance(v, (int, float)):
        return repr(v) if isinstance(v, float) else str(v)
    return v


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class RentUnit(_CamelModel):
    rent: str = ""
    misc: str = ""
    beds: str = ""  # display only
    bath: str = ""  # display only

    @field_validator("rent", "misc", "beds", "bath", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Any:
        return _as_text(v)

    def monthly_total(self) -> float:
        return parse_number(self.rent) + parse_number(self.misc)


class PropertyInputs(_CamelModel):
    """
    The canonical input record. Every numeric field is string-encoded; the
    calculation layer reads them through `parse_number` with the documented
    fallback, so an empty record is always valid.
    """

    property_name: str = "New Property Analysis"
    property_address: str = ""

    purchase_price: str = ""
    exit_arv: str = ""
    units: list[RentUnit] = Field(default_factory=lambda: [RentUnit()])
    vacancy_rate: str = ""

    # Operating expenses (unit/frequency is governed by ExpenseConfig)
    prop_taxes: str = ""
    insurance: str = ""
    maintenance: str = ""
    utilities: str = ""
    prop_mgmt: str = ""
    capex: str = ""
    mortgage_ins: str = ""

    # Utility breakdown (display only; `utilities` is what gets underwritten)
    util_electric: str = "0"
    util_gas: str = "0"
    util_water: str = "0"
    util_trash: str = "0"
    util_lawn: str = "0"
    util_other: str = "0"

    # Growth (percent per year)
    appreciation_rate: str = ""
    rent_growth: str = ""
    cost_increase: str = ""

    # Traditional financing
    down_percent: str = ""
    closing_cost: str = ""
    rehab_cost: str = ""
    interest_rate: str = ""
    loan_term: str = "30"

    # DSCR / BRRRR financing
    closing_cost_dscr: str = ""
    rehab_cost_dscr: str = ""
    dscr_ltv: str = ""
    carry_months: str = ""
    carry_rate: str = ""
    carry_rent_percent: str = "0"
    jv_split_main: str = "100"

    # Morby method
    morby_down_pct: str = "25"
    morby_dscr_rate: str = "8"
    morby_dscr_term: str = "30"
    morby_seller_rate: str = "5"
    morby_seller_amort: str = "30"
    morby_balloon_years: str = "7"
    morby_refi_ltv: str = "75"
    morby_appreciation: str = ""

    # Seller finance
    sf_seller_rate: str = "5"
    sf_seller_amort: str = "30"
    sf_balloon_years: str = "7"
    sf_refi_ltv: str = "75"
    sf_appreciation: str = ""

    # Subject-To
    sub_to_loan_balance: str = ""
    sub_to_rate: str = ""
    sub_to_rem_term: str = "25"
    sub_to_escrow: str = "yes"
    sub_to_down_payment: str = ""
    sub_to_seller_rate: str = "5"
    sub_to_seller_amort: str = "30"
    sub_to_balloon_years: str = "7"
    sub_to_refi_ltv: str = "75"
    sub_to_appreciation: str = ""

    @model_validator(mode="before")
    @classmethod
    def _null_units_unset(cls, data: Any) -> Any:
        # `units: null` in an older record means "no units list", so the
        # unitNRent fields apply
        if isinstance(data, Mapping) and "units" in data and data["units"] is None:
            data = {k: v for k, v in data.items() if k != "units"}
        return data

    @field_validator("*", mode="before")
    @classmethod
    def _text(cls, v: Any, info) -> Any:
        if info.field_name == "units":
            return v
        return _as_text(v)

    def legacy_unit_rents(self) -> float:
        """
        Older saved records carried unit1Rent..unit4Rent / unit1Misc..unit4Misc
        instead of a units list; they only count when no units list is present.
        """
        extra = self.model_extra or {}
        total = 0.0
        for i in range(1, 5):
            total += parse_number(extra.get(f"unit{i}Rent")) + parse_number(extra.get(f"unit{i}Misc"))
        return total

    def has_units(self) -> bool:
        return "units" in self.model_fields_set or not self._has_legacy_units()

    def _has_legacy_units(self) -> bool:
        extra = self.model_extra or {}
        return any(k.startswith("unit") and k[4:5].isdigit() for k in extra)


class ExpenseLineConfig(BaseModel):
    mode: ExpenseMode = "dollar"
    freq: ExpenseFreq = "yearly"

    @field_validator("mode", mode="before")
    @classmethod
    def _mode(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            return _MODE_SPELLINGS.get(v, v)
        return v

    @field_validator("freq", mode="before")
    @classmethod
    def _freq(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            return _FREQ_SPELLINGS.get(v, v)
        return v


ExpenseConfig = dict[str, ExpenseLineConfig]

_DEFAULT_EXPENSE_CONFIG: dict[str, dict[str, str]] = {
    "prop_taxes": {"mode": "dollar", "freq": "yearly"},
    "insurance": {"mode": "dollar", "freq": "yearly"},
    "maintenance": {"mode": "percent", "freq": "yearly"},
    "utilities": {"mode": "dollar", "freq": "monthly"},
    "prop_mgmt": {"mode": "percent", "freq": "yearly"},
    "capex": {"mode": "percent", "freq": "yearly"},
    "mortgage_ins": {"mode": "dollar", "freq": "monthly"},
}

_CAMEL_EXPENSE_KEYS = {to_camel(f): f for f in EXPENSE_FIELDS}


def default_expense_config() -> ExpenseConfig:
    return {k: ExpenseLineConfig(**v) for k, v in _DEFAULT_EXPENSE_CONFIG.items()}


def coerce_expense_config(raw: Mapping[str, Any] | None) -> ExpenseConfig:
    """
    Accept snake_case or camelCase keys, dict or model values.

    Every expense field must be configured; a missing entry is a caller error.
    """
    if raw is None:
        return default_expense_config()

    out: ExpenseConfig = {}
    for key, val in raw.items():
        field = _CAMEL_EXPENSE_KEYS.get(key, key)
        if isinstance(val, ExpenseLineConfig):
            out[field] = val
        else:
            out[field] = ExpenseLineConfig.model_validate(val)

    for field in EXPENSE_FIELDS:
        if field not in out:
            raise ValueError(f"Missing expense config for field: {field}")
    return out


class CarryTranche(BaseModel):
    name: str = ""
    amount: float = 0.0
    rate: float = 0.0    # annual %
    points: float = 0.0  # % of allocated amount, one-time

    @field_validator("amount", "rate", "points", mode="before")
    @classmethod
    def _numeric(cls, v: Any) -> float:
        return parse_number(v)


class JvConfig(_CamelModel):
    split_you: float = 50.0
    payback_months: int = 6
    refi_month: int = 4
    months_to_project: int = 60

    @field_validator("split_you", mode="before")
    @classmethod
    def _split(cls, v: Any) -> float:
        return parse_number(v, 50.0)

    @field_validator("payback_months", "refi_month", "months_to_project", mode="before")
    @classmethod
    def _months(cls, v: Any) -> int:
        return max(int(parse_number(v)), 0)


def coerce_inputs(raw: PropertyInputs | Mapping[str, Any]) -> PropertyInputs:
    if isinstance(raw, PropertyInputs):
        return raw
    return PropertyInputs.model_validate(raw)


def coerce_tranches(raw: list[Any] | None) -> list[CarryTranche]:
    if not raw:
        return []
    return [t if isinstance(t, CarryTranche) else CarryTranche.model_validate(t) for t in raw]
