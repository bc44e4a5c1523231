# src/propcalc/domain/parsing.py
from __future__ import annotations

import math
import re
from typing import Any

# Leading numeric prefix: "7.5" -> 7.5, "25%" -> 25, "12abc" -> 12.
# `$` and thousands separators are stripped first, so "$1,200" and "1,200"
# read as 1200 where a bare prefix read would give 0 and 1.
_NUMERIC_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_number(value: Any, fallback: float = 0.0, *, zero_is_unset: bool = False) -> float:
    """
    Lenient converter for every numeric input field.

    Returns `fallback` when the value is missing, blank, unparseable or not
    finite. With `zero_is_unset=True` a parsed zero also resolves to the
    fallback (loan term and JV split behave this way: "0" means "use the
    default", not "zero years").

    Never raises.
    """
    if value is None or isinstance(value, bool):
        return fallback

    if isinstance(value, (int, float)):
        f = float(value)
    elif isinstance(value, str):
        s = value.strip().replace(",", "").replace("$", "")
        m = _NUMERIC_PREFIX.match(s)
        if not m:
            return fallback
        try:
            f = float(m.group(0))
        except ValueError:
            return fallback
    else:
        return fallback

    if not math.isfinite(f):
        return fallback
    if zero_is_unset and f == 0.0:
        return fallback
    return f


def parse_override(value: Any) -> float | None:
    """
    For optional override fields (per-strategy appreciation): None when the
    field is blank, so the caller can fall back to the main assumption.
    """
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    parsed = parse_number(value, fallback=math.nan)
    return None if math.isnan(parsed) else parsed
