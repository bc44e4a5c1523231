from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from propcalc.adapters.config import config
from propcalc.adapters.logging_utils import ctx, get_logger
from propcalc.analysis.finance import calculate_all
from propcalc.analysis.jv import jv_inputs_from_property, run_jv_simulation
from propcalc.analysis.offers import calculate_strategy
from propcalc.analysis.stress import run_stress_test
from propcalc.domain.inputs import (
    CarryTranche,
    ExpenseConfig,
    JvConfig,
    Mode,
    PropertyInputs,
    RentUnit,
    coerce_expense_config,
)
from propcalc.domain.results import (
    CalculationResult,
    JvInputs,
    JvSimulationResult,
    OfferResult,
    StressScenario,
)
from propcalc.domain.strategies import MORBY, normalize_strategy

logger = get_logger(__name__)


def default_jv_config() -> JvConfig:
    return JvConfig(
        split_you=config.JV_SPLIT_PCT,
        payback_months=config.JV_PAYBACK_MONTHS,
        refi_month=config.JV_REFI_MONTH,
        months_to_project=config.JV_MONTHS_TO_PROJECT,
    )


class UnderwritingSnapshot(BaseModel):
    """
    Everything the calculator needs, in one immutable record.

    Replaces a mutable UI store: callers edit their own copy and hand the
    whole snapshot to `recalculate` after every change.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    inputs: PropertyInputs = Field(default_factory=PropertyInputs)
    expense_config: ExpenseConfig = Field(default_factory=lambda: coerce_expense_config(None))
    mode: Mode = "traditional"
    offer_strategy: str = MORBY
    carry_tranches: List[CarryTranche] = Field(default_factory=list)
    jv_config: JvConfig = Field(default_factory=default_jv_config)

    @field_validator("expense_config", mode="before")
    @classmethod
    def _expense_config(cls, v: Any) -> ExpenseConfig:
        return coerce_expense_config(v)

    @field_validator("offer_strategy", mode="before")
    @classmethod
    def _strategy(cls, v: Any) -> str:
        return MORBY if v in (None, "") else normalize_strategy(v)

    @field_validator("carry_tranches", mode="before")
    @classmethod
    def _tranches(cls, v: Any) -> Any:
        if v is None:
            return []
        if len(v) > config.MAX_CARRY_TRANCHES:
            raise ValueError(f"At most {config.MAX_CARRY_TRANCHES} carry tranches are supported")
        return v

    @field_validator("jv_config", mode="before")
    @classmethod
    def _jv(cls, v: Any) -> Any:
        # partial configs keep the remaining defaults
        if isinstance(v, dict):
            return default_jv_config().model_copy(update=JvConfig.model_validate(v).model_dump(exclude_unset=True))
        return v if v is not None else default_jv_config()


@dataclass(frozen=True)
class UnderwritingResult:
    results: CalculationResult
    stress_results: List[StressScenario]
    offer_results: Optional[OfferResult] = None
    jv_inputs: Optional[JvInputs] = None
    jv: Optional[JvSimulationResult] = None


def recalculate(snapshot: UnderwritingSnapshot) -> UnderwritingResult:
    """
    Full snapshot in, full result out. No caching: identical snapshots give
    identical results.

    Offer mode still reports the financed metrics, under traditional
    financing; DSCR mode adds the JV waterfall.
    """
    financed_mode = "dscr" if snapshot.mode == "dscr" else "traditional"
    inputs = snapshot.inputs
    tranches = snapshot.carry_tranches

    results = calculate_all(inputs, snapshot.expense_config, financed_mode, tranches)
    stress = run_stress_test(inputs, snapshot.expense_config, financed_mode, tranches)

    offer = None
    if snapshot.mode == "offer":
        offer = calculate_strategy(snapshot.offer_strategy, inputs, snapshot.expense_config)

    jv_inputs = None
    jv = None
    if snapshot.mode == "dscr":
        jv_inputs = jv_inputs_from_property(inputs, snapshot.expense_config, tranches)
        cfg = snapshot.jv_config
        jv = run_jv_simulation(
            jv_inputs.cash_in,
            jv_inputs.pre_refi_cf,
            jv_inputs.post_refi_cf,
            cfg.refi_month,
            cfg.payback_months,
            cfg.split_you,
            cfg.months_to_project,
        )

    logger.info(
        "recalculated",
        extra=ctx(
            mode=snapshot.mode,
            strategy=snapshot.offer_strategy if offer else None,
            dscr=results.dscr_ratio,
            failing_scenarios=sum(1 for s in stress if s.status == "fail"),
        ),
    )
    return UnderwritingResult(
        results=results,
        stress_results=stress,
        offer_results=offer,
        jv_inputs=jv_inputs,
        jv=jv,
    )


# -----------------------------
# Rent-roll edits (return new records; inputs are never mutated)
# -----------------------------
def add_unit(inputs: PropertyInputs) -> PropertyInputs:
    if len(inputs.units) >= config.MAX_UNITS:
        raise ValueError(f"At most {config.MAX_UNITS} units are supported")
    return inputs.model_copy(update={"units": [*inputs.units, RentUnit()]})


def remove_unit(inputs: PropertyInputs, index: int) -> PropertyInputs:
    if not 0 <= index < len(inputs.units):
        raise ValueError(f"No unit at index {index}")
    # the last unit stays; an empty rent roll is not a valid form state
    if len(inputs.units) <= 1:
        return inputs
    return inputs.model_copy(update={"units": [u for i, u in enumerate(inputs.units) if i != index]})
