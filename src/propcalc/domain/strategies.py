# Offer strategy keys; every surface keys off these strings.
MORBY = "morby"
SELLER_FINANCE = "sellerFinance"
SUBJECT_TO = "subjectTo"

STRATEGIES = (MORBY, SELLER_FINANCE, SUBJECT_TO)

STRATEGY_LABELS = {
    MORBY: "Morby Method",
    SELLER_FINANCE: "Seller Finance",
    SUBJECT_TO: "Subject-To",
}

# card badges / tight spaces
STRATEGY_BADGES = {
    MORBY: "MORBY METHOD",
    SELLER_FINANCE: "SELLER FINANCE",
    SUBJECT_TO: "SUBJECT-TO",
}

STRATEGY_PILL_LABELS = {
    MORBY: "Morby",
    SELLER_FINANCE: "Seller Fin",
    SUBJECT_TO: "Sub-To",
}

_ALIASES = {
    "seller_finance": SELLER_FINANCE,
    "seller-finance": SELLER_FINANCE,
    "sellerfinance": SELLER_FINANCE,
    "subject_to": SUBJECT_TO,
    "subject-to": SUBJECT_TO,
    "subjectto": SUBJECT_TO,
}


def normalize_strategy(value: str) -> str:
    """Accept the canonical key or a snake/kebab spelling; raise on anything else."""
    if value in STRATEGIES:
        return value
    key = _ALIASES.get(str(value).strip().lower())
    if key is None:
        raise ValueError(f"Unknown offer strategy: {value!r} (expected one of {', '.join(STRATEGIES)})")
    return key
