# src/propcalc/domain/rules.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal, Optional

StressStatus = Literal["pass", "warn", "fail"]
BalloonVerdict = Literal["PASS", "FAIL"]

# Thresholds the reverse-solved purchase-price breakpoints are computed for.
DSCR_BREAKPOINTS: tuple[float, ...] = (1.25, 1.15, 1.05, 1.00)


def round_half_up(x: float, ndigits: int = 0) -> float:
    """Rounds .5 toward +inf, the way every displayed figure is rounded."""
    scale = 10 ** ndigits
    scaled = x * scale
    if not math.isfinite(scaled):
        return x
    return math.floor(scaled + 0.5) / scale


def round_dscr(dscr: float) -> float:
    return round_half_up(dscr, 2)


@dataclass(frozen=True)
class DscrTier:
    """One row of the lender-guideline table."""
    status_text: str
    color_class: str
    row_index: int
    details: str
    emoji: str
    min_dscr: Optional[float]  # None for the catch-all row


# Ordered strongest first; the first tier whose floor is met wins.
DSCR_TIERS: tuple[DscrTier, ...] = (
    DscrTier("Strong", "dscr-status-green", 0, "Best rates & leverage. Minimal pushback.", "\U0001F7E2", 1.25),
    DscrTier("Acceptable", "dscr-status-yellow", 1, "Common approval range. Slightly higher rates.", "\U0001F7E1", 1.15),
    DscrTier("Edge Case", "dscr-status-orange", 2, "Expect lower LTV, higher rate, more reserves.", "\U0001F7E0", 1.05),
    DscrTier("Stretch", "dscr-status-red", 3, "Case-by-case. Needs strong borrower profile.", "\U0001F534", 1.00),
)

NO_DSCR_TIER = DscrTier(
    "No DSCR", "dscr-status-darkred", 4, "Not financeable as DSCR. Consider bridge/hard money.", "❌", None
)


def classify_dscr(rounded_dscr: float) -> DscrTier:
    """Map an already-rounded DSCR to its lender tier."""
    for tier in DSCR_TIERS:
        if rounded_dscr >= tier.min_dscr:
            return tier
    return NO_DSCR_TIER


@dataclass(frozen=True)
class StressVerdict:
    status: StressStatus
    label: str
    status_class: str


def classify_stress(dscr: float) -> StressVerdict:
    """3-tier pass/warn/fail on the unrounded scenario DSCR."""
    if dscr >= 1.25:
        return StressVerdict("pass", "Strong", "status-pass")
    if dscr >= 1.0:
        return StressVerdict("warn", "Tight", "status-warn")
    return StressVerdict("fail", "Fail", "status-fail")


def balloon_verdict(surplus: float) -> BalloonVerdict:
    """Refi proceeds cover every note due at the balloon date, or they don't."""
    return "PASS" if surplus >= 0 else "FAIL"
