# src/propcalc/api/http.py
from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException

from propcalc.adapters.config import config
from propcalc.adapters.logging_utils import ctx, get_logger
from propcalc.analysis.holding import carry_period_burn, property_carry_schedule
from propcalc.analysis.jv import run_jv_simulation
from propcalc.analysis.offers import calculate_strategy
from propcalc.analysis.stress import run_stress_test
from propcalc.domain.strategies import STRATEGIES, STRATEGY_LABELS
from propcalc.services.underwriter import UnderwritingSnapshot, recalculate
from .schemas import CarryScheduleResponse, JvSimulationRequest, SnapshotRequest

logger = get_logger(__name__)

app = FastAPI(title="propcalc")


def _financed_mode(snapshot: UnderwritingSnapshot) -> str:
    # offer mode reports financed metrics under traditional financing
    return "dscr" if snapshot.mode == "dscr" else "traditional"


def _bad_request(e: ValueError, endpoint: str) -> HTTPException:
    logger.warning("rejected request", extra=ctx(endpoint=endpoint, error=str(e)))
    return HTTPException(status_code=400, detail=str(e))


@app.get("/health")
def health() -> dict[str, Any]:
    return {"status": "ok", "env": config.ENV}


@app.get("/defaults")
def defaults() -> dict[str, Any]:
    """Blank property, default expense config and JV defaults, camelCase keys."""
    snap = UnderwritingSnapshot()
    body = snap.model_dump(mode="json", by_alias=True)
    body["strategies"] = [{"key": k, "label": STRATEGY_LABELS[k]} for k in STRATEGIES]
    return body


@app.post("/calculate")
def calculate_endpoint(payload: SnapshotRequest) -> dict[str, Any]:
    try:
        return asdict(recalculate(payload))
    except ValueError as e:
        raise _bad_request(e, "/calculate") from e


@app.post("/stress-test")
def stress_endpoint(payload: SnapshotRequest) -> list[dict[str, Any]]:
    try:
        scenarios = run_stress_test(
            payload.inputs,
            payload.expense_config,
            _financed_mode(payload),
            payload.carry_tranches,
        )
    except ValueError as e:
        raise _bad_request(e, "/stress-test") from e
    return [asdict(s) for s in scenarios]


@app.post("/offers/{strategy}")
def offer_endpoint(strategy: str, payload: SnapshotRequest) -> dict[str, Any]:
    """
    One offer structure for the snapshot's property. Unknown strategy keys
    are a 400, not a 404: the route exists, the argument is bad.
    """
    try:
        offer = calculate_strategy(strategy, payload.inputs, payload.expense_config)
    except ValueError as e:
        raise _bad_request(e, "/offers") from e
    return asdict(offer)


@app.post("/carry-schedule", response_model=CarryScheduleResponse)
def carry_schedule_endpoint(payload: SnapshotRequest) -> CarryScheduleResponse:
    try:
        schedule = property_carry_schedule(payload.inputs, payload.carry_tranches)
        burn = carry_period_burn(payload.inputs, payload.expense_config, payload.carry_tranches)
    except ValueError as e:
        raise _bad_request(e, "/carry-schedule") from e
    return CarryScheduleResponse(schedule=asdict(schedule), burn=asdict(burn))


@app.post("/jv-simulation")
def jv_endpoint(payload: JvSimulationRequest) -> dict[str, Any]:
    sim = run_jv_simulation(
        payload.cash_in,
        payload.pre_refi_cf,
        payload.post_refi_cf,
        payload.refi_month,
        payload.payback_months,
        payload.investor_split_pct,
        payload.months_to_project,
    )
    return asdict(sim)
