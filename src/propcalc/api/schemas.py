# src/propcalc/api/schemas.py
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from propcalc.adapters.config import config
from propcalc.domain.parsing import parse_number
from propcalc.services.underwriter import UnderwritingSnapshot

# Every property-level endpoint takes the same snapshot the service does.
SnapshotRequest = UnderwritingSnapshot


class JvSimulationRequest(BaseModel):
    """
    Explicit scalar inputs for /jv-simulation.

    Accepts snake_case or camelCase; unset fields fall back to the configured
    JV defaults and zero cash flows.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    cash_in: float = 0.0
    pre_refi_cf: float = 0.0
    post_refi_cf: float = 0.0
    refi_month: int = Field(default_factory=lambda: config.JV_REFI_MONTH)
    payback_months: int = Field(default_factory=lambda: config.JV_PAYBACK_MONTHS)
    investor_split_pct: float = Field(default_factory=lambda: config.JV_SPLIT_PCT)
    months_to_project: int = Field(default_factory=lambda: config.JV_MONTHS_TO_PROJECT)

    @field_validator("cash_in", "pre_refi_cf", "post_refi_cf", "investor_split_pct", mode="before")
    @classmethod
    def _num(cls, v: Any) -> float:
        return parse_number(v)

    @field_validator("refi_month", "payback_months", "months_to_project", mode="before")
    @classmethod
    def _months(cls, v: Any) -> int:
        return max(int(parse_number(v)), 0)


class CarryScheduleResponse(BaseModel):
    """Schedule + burn as plain dicts; the dataclasses carry the shape."""
    model_config = ConfigDict(extra="allow")

    schedule: dict[str, Any]
    burn: dict[str, Any]
