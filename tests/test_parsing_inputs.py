import math

import pytest
from hypothesis import given, strategies as st

from propcalc.domain.expenses import annualize_expense, annualize_expenses
from propcalc.domain.inputs import (
    EXPENSE_FIELDS,
    ExpenseLineConfig,
    JvConfig,
    PropertyInputs,
    coerce_expense_config,
    default_expense_config,
)
from propcalc.domain.parsing import parse_number, parse_override
from propcalc.domain.rules import classify_dscr, round_dscr, round_half_up


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("7.5", 7.5),
        ("25%", 25.0),
        ("$1,200", 1200.0),
        ("1,200", 1200.0),
        ("12abc", 12.0),
        ("  42 ", 42.0),
        ("-3", -3.0),
        (".5", 0.5),
        (1500, 1500.0),
    ],
)
def test_parse_number_reads_numeric_prefix(raw, expected):
    assert parse_number(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", None, "nan", "inf", float("inf"), True, [], {}])
def test_parse_number_falls_back(raw):
    assert parse_number(raw, 9.0) == 9.0


def test_zero_is_unset_only_when_asked():
    assert parse_number("0", 30.0) == 0.0
    assert parse_number("0", 30.0, zero_is_unset=True) == 30.0


@given(st.text())
def test_parse_number_never_raises(s):
    out = parse_number(s)
    assert math.isfinite(out)


def test_parse_override_blank_vs_zero():
    assert parse_override("") is None
    assert parse_override("   ") is None
    assert parse_override(None) is None
    assert parse_override("abc") is None
    assert parse_override("0") == 0.0
    assert parse_override("4.5") == 4.5


def test_round_half_up_matches_display_rounding():
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_half_up(1.125, 2) == pytest.approx(1.13)
    assert round_dscr(1.2449) == 1.24


@pytest.mark.parametrize(
    "dscr, status, row",
    [
        (1.25, "Strong", 0),
        (1.24, "Acceptable", 1),
        (1.15, "Acceptable", 1),
        (1.05, "Edge Case", 2),
        (1.00, "Stretch", 3),
        (0.99, "No DSCR", 4),
        (0.0, "No DSCR", 4),
    ],
)
def test_dscr_tiers(dscr, status, row):
    tier = classify_dscr(dscr)
    assert tier.status_text == status
    assert tier.row_index == row


# -----------------------------
# Inputs / expense config
# -----------------------------
def test_inputs_accept_camel_and_snake_case():
    camel = PropertyInputs.model_validate({"purchasePrice": "100000", "vacancyRate": 5})
    snake = PropertyInputs.model_validate({"purchase_price": "100000", "vacancy_rate": 5})

    assert camel.purchase_price == snake.purchase_price == "100000"
    assert camel.vacancy_rate == "5"


def test_inputs_default_to_one_blank_unit():
    inputs = PropertyInputs()
    assert len(inputs.units) == 1
    assert inputs.units[0].rent == ""
    assert inputs.loan_term == "30"


def test_null_units_are_unset():
    inputs = PropertyInputs.model_validate({"units": None})

    assert "units" not in inputs.model_fields_set
    assert len(inputs.units) == 1
    assert inputs.units[0].rent == ""


def test_expense_config_spellings_normalize(expense_config):
    cfg = coerce_expense_config(expense_config)

    assert set(cfg) == set(EXPENSE_FIELDS)
    assert cfg["maintenance"].mode == "percent"
    assert cfg["utilities"].freq == "monthly"
    assert cfg["prop_taxes"].freq == "yearly"


def test_default_expense_config_matches_saved_shape(expense_config):
    assert coerce_expense_config(expense_config) == default_expense_config()
    assert coerce_expense_config(None) == default_expense_config()


def test_expense_config_rejects_unknown_mode():
    with pytest.raises(ValueError):
        ExpenseLineConfig.model_validate({"mode": "shares", "freq": "yr"})


def test_expense_config_missing_field():
    cfg = {k: {"mode": "dollar", "freq": "yearly"} for k in EXPENSE_FIELDS if k != "insurance"}
    with pytest.raises(ValueError, match="Missing expense config for field: insurance"):
        coerce_expense_config(cfg)


def test_annualize_expense_modes():
    assert annualize_expense(100, ExpenseLineConfig(mode="dollar", freq="monthly"), 0) == 1200
    assert annualize_expense(1200, ExpenseLineConfig(mode="dollar", freq="yearly"), 0) == 1200
    # percent ignores frequency
    assert annualize_expense(10, ExpenseLineConfig(mode="percent", freq="monthly"), 24_000) == 2400


def test_annualize_expenses_skip_and_only(traditional_inputs):
    inputs = PropertyInputs.model_validate(traditional_inputs)
    cfg = default_expense_config()

    full = annualize_expenses(inputs, cfg, 24_600)
    assert list(full) == list(EXPENSE_FIELDS)

    skipped = annualize_expenses(inputs, cfg, 24_600, skip=("prop_taxes", "insurance"))
    assert "prop_taxes" not in skipped
    assert sum(full.values()) - sum(skipped.values()) == pytest.approx(5400)

    holding = annualize_expenses(inputs, cfg, 24_600, only=("prop_taxes", "insurance", "utilities"))
    assert holding == {"prop_taxes": 3600, "insurance": 1800, "utilities": 2400}


def test_jv_config_coerces_form_values():
    cfg = JvConfig.model_validate({"splitYou": "60%", "paybackMonths": "3", "refiMonth": "-2"})

    assert cfg.split_you == 60
    assert cfg.payback_months == 3
    assert cfg.refi_month == 0
    assert cfg.months_to_project == 60
