# src/propcalc/domain/revenue.py
from __future__ import annotations

from dataclasses import dataclass

from propcalc.domain.inputs import PropertyInputs
from propcalc.domain.parsing import parse_number


@dataclass(frozen=True)
class Revenue:
    gross_monthly_rent: float
    effective_monthly_rent: float
    annual_gross_rent: float
    annual_effective_rent: float
    vacancy_rate: float  # percent


def gross_monthly_rent(inputs: PropertyInputs) -> float:
    """
    Determine total gross scheduled rent per month.
    - If a units list exists, sum rent + misc per unit.
    - Else fall back to the legacy unitNRent / unitNMisc fields.
    """
    if inputs.has_units():
        return sum(u.monthly_total() for u in inputs.units)
    return inputs.legacy_unit_rents()


def build_revenue(inputs: PropertyInputs, *, rent_multiplier: float = 1.0, vacancy_override: float | None = None) -> Revenue:
    """
    Apply vacancy to gross rent. The multiplier / override hooks exist for
    the stress matrix; the base case passes neither.
    """
    gross = gross_monthly_rent(inputs) * rent_multiplier
    vacancy = parse_number(inputs.vacancy_rate) if vacancy_override is None else vacancy_override
    effective = gross * (1 - vacancy / 100.0)
    return Revenue(
        gross_monthly_rent=gross,
        effective_monthly_rent=effective,
        annual_gross_rent=gross * 12,
        annual_effective_rent=effective * 12,
        vacancy_rate=vacancy,
    )
