from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from propcalc.adapters.formatting import fmt_compact, fmt_currency, fmt_pct
from propcalc.analysis.frames import (
    amortization_frame,
    carry_schedule_frame,
    jv_frame,
    projection_frame,
    stress_frame,
)
from propcalc.analysis.holding import property_carry_schedule
from propcalc.domain.strategies import STRATEGY_LABELS
from propcalc.services.underwriter import UnderwritingResult, UnderwritingSnapshot, recalculate

app = typer.Typer(help="Underwrite a property snapshot (traditional, DSCR or creative-finance offer).")


def _load_snapshot(path: Path, mode: Optional[str], strategy: Optional[str]) -> UnderwritingSnapshot:
    data = json.loads(path.read_text(encoding="utf-8"))
    if mode:
        data["mode"] = mode
    if strategy:
        data["offerStrategy"] = strategy
    return UnderwritingSnapshot.model_validate(data)


def _print_summary(snapshot: UnderwritingSnapshot, out: UnderwritingResult) -> None:
    r = out.results
    name = snapshot.inputs.property_name or "Untitled"
    typer.echo(f"{name} [{snapshot.mode}]")
    typer.echo(f"  NOI            {fmt_currency(r.noi)}")
    typer.echo(f"  Monthly CF     {fmt_currency(r.display_monthly_cf)}")
    typer.echo(f"  DSCR           {r.dscr_ratio:.2f} ({r.dscr_tier.status_text})")
    typer.echo(f"  Cap rate       {fmt_pct(r.cap_rate)}")
    typer.echo(f"  Cash-on-cash   {fmt_pct(r.cash_on_cash)}")
    if r.dscr_price_ranges:
        ranges = ", ".join(fmt_compact(p) for p in r.dscr_price_ranges)
        typer.echo(f"  Max price @ DSCR 1.25/1.15/1.05/1.00: {ranges}")

    failing = [s.name for s in out.stress_results if s.status == "fail"]
    typer.echo(f"  Stress         {len(out.stress_results) - len(failing)}/{len(out.stress_results)} scenarios hold")

    if out.offer_results is not None:
        o = out.offer_results
        typer.echo(f"{STRATEGY_LABELS[o.strategy]}: monthly CF {fmt_currency(o.monthly_cf)}")
        typer.echo(
            f"  Balloon yr {o.balloon_years:g}: payoff {fmt_currency(o.total_payoff)}, "
            f"max refi {fmt_currency(o.max_refi)} -> {o.verdict} ({fmt_currency(o.surplus)})"
        )

    if out.jv is not None:
        payback = out.jv.full_payback_month
        typer.echo(f"  JV payback     {'month ' + str(payback) if payback else 'not within horizon'}")


def _write_frames(snapshot: UnderwritingSnapshot, out: UnderwritingResult, csv_dir: Path) -> list[Path]:
    csv_dir.mkdir(parents=True, exist_ok=True)
    frames = {
        "projection": projection_frame(out.results),
        "stress": stress_frame(out.stress_results),
    }
    if out.offer_results is not None:
        frames["amortization"] = amortization_frame(out.offer_results)
    if out.jv is not None:
        frames["jv"] = jv_frame(out.jv)
    if snapshot.mode == "dscr":
        frames["carry_schedule"] = carry_schedule_frame(
            property_carry_schedule(snapshot.inputs, snapshot.carry_tranches)
        )

    written = []
    for name, df in frames.items():
        path = csv_dir / f"{name}.csv"
        df.to_csv(path, index=name != "stress")
        written.append(path)
    return written


@app.command()
def run(
    snapshot: Path = typer.Argument(..., exists=True, dir_okay=False, help="Snapshot JSON file"),
    mode: Optional[str] = typer.Option(None, help="Override mode: traditional | dscr | offer"),
    strategy: Optional[str] = typer.Option(None, help="Override offer strategy: morby | sellerFinance | subjectTo"),
    csv_dir: Optional[Path] = typer.Option(None, "--csv-dir", help="Write tabular outputs as CSV here"),
) -> None:
    """
    Recalculate a snapshot and print the headline metrics.
    """
    try:
        snap = _load_snapshot(snapshot, mode, strategy)
        out = recalculate(snap)
    except ValueError as e:
        logger.error("Snapshot rejected", path=str(snapshot), error=str(e))
        raise typer.Exit(code=1) from e

    _print_summary(snap, out)

    if csv_dir is not None:
        written = _write_frames(snap, out, csv_dir)
        logger.info("CSV exports written", count=len(written), directory=str(csv_dir))


@app.command()
def defaults() -> None:
    """
    Print a blank snapshot (default inputs, expense config, JV config) as JSON.
    """
    typer.echo(UnderwritingSnapshot().model_dump_json(by_alias=True, indent=2))


if __name__ == "__main__":
    app()
