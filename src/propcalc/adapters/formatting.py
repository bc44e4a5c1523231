# src/propcalc/adapters/formatting.py
from __future__ import annotations

from typing import Optional

from propcalc.domain.rules import round_half_up


def fmt_currency(n: float) -> str:
    """Whole dollars with thousands separators: 1234.56 -> '$1,235', -500 -> '$-500'."""
    return f"${int(round_half_up(n)):,}"


def fmt_pct(n: float) -> str:
    return f"{n:.2f}%"


def fmt_compact(n: Optional[float]) -> str:
    """'$150k' / '$1.5M'; '---' when there is nothing meaningful to show."""
    if not n or n <= 0:
        return "---"
    if n >= 1e6:
        return f"${n / 1e6:.1f}M"
    return f"${int(round_half_up(n / 1e3))}k"
