import math

import pytest
from hypothesis import given, strategies as st

from propcalc.domain.amortization import (
    compound_growth,
    cumulative_net_cash_flow,
    fixed_payment,
    max_loan_for_payment,
    remaining_balance,
)


@pytest.mark.parametrize(
    "principal, rate, years, expected",
    [
        (200_000, 7, 30, 1330.60),
        (150_000, 6, 15, 1265.79),
        (100_000, 5, 30, 536.82),
        (300_000, 8, 30, 2201.29),
        (50_000, 12, 15, 600.08),
    ],
)
def test_fixed_payment_matches_bank_tables(principal, rate, years, expected):
    assert fixed_payment(principal, rate, years) == pytest.approx(expected, abs=0.02)


def test_fixed_payment_zero_rate_is_straight_line():
    assert fixed_payment(120_000, 0, 30) == pytest.approx(120_000 / 360)


def test_fixed_payment_zero_principal():
    assert fixed_payment(0, 7, 30) == 0


def test_fixed_payment_degenerate_term_is_zero():
    assert fixed_payment(100_000, 7, 0) == 0


def test_max_loan_known_value():
    assert max_loan_for_payment(1000, 7, 30) == pytest.approx(150_307.57, abs=1)


def test_max_loan_zero_rate():
    assert max_loan_for_payment(500, 0, 30) == pytest.approx(180_000)


@given(
    principal=st.floats(min_value=1_000, max_value=2_000_000),
    rate=st.floats(min_value=0, max_value=20),
    years=st.integers(min_value=1, max_value=40),
)
def test_max_loan_inverts_fixed_payment(principal, rate, years):
    payment = fixed_payment(principal, rate, years)
    assert max_loan_for_payment(payment, rate, years) == pytest.approx(principal, rel=0.01)


def test_balance_known_points():
    assert remaining_balance(200_000, 7, 30, 0) == pytest.approx(200_000)
    assert remaining_balance(200_000, 7, 30, 60) == pytest.approx(188_263.18, abs=1)
    assert remaining_balance(200_000, 7, 30, 120) == pytest.approx(171_624.77, abs=1)
    assert remaining_balance(100_000, 6, 30, 1) == pytest.approx(99_900.45, abs=0.1)


def test_balance_reaches_zero_at_term():
    assert remaining_balance(200_000, 7, 30, 360) == pytest.approx(0, abs=0.05)


def test_balance_zero_rate_closed_form():
    assert remaining_balance(120_000, 0, 30, 120) == pytest.approx(80_000)
    assert remaining_balance(120_000, 0, 30, 360) == pytest.approx(0)


@given(
    principal=st.floats(min_value=10_000, max_value=1_000_000),
    rate=st.floats(min_value=0.5, max_value=15),
    years=st.integers(min_value=5, max_value=30),
)
def test_balance_strictly_decreases_over_term(principal, rate, years):
    n = years * 12
    balances = [remaining_balance(principal, rate, years, k) for k in range(0, n + 1, 12)]
    assert all(a > b for a, b in zip(balances, balances[1:]))
    assert balances[-1] == pytest.approx(0, abs=principal * 0.001)


def test_cumulative_flow_without_growth():
    assert cumulative_net_cash_flow(24_000, 10_000, 12_000, 0, 0, 1) == 2000
    assert cumulative_net_cash_flow(24_000, 10_000, 12_000, 0, 0, 2) == 4000


def test_cumulative_flow_growth_starts_in_year_two():
    assert cumulative_net_cash_flow(24_000, 10_000, 12_000, 0.03, 0, 2) == pytest.approx(4720)
    assert cumulative_net_cash_flow(24_000, 10_000, 12_000, 0, 0.02, 2) == pytest.approx(3800)
    assert cumulative_net_cash_flow(24_000, 10_000, 12_000, 0.03, 0.02, 3) == pytest.approx(7577.6, abs=0.1)


def test_cumulative_flow_zero_years_and_negative_flow():
    assert cumulative_net_cash_flow(24_000, 10_000, 12_000, 0.03, 0.02, 0) == 0
    assert cumulative_net_cash_flow(12_000, 10_000, 12_000, 0, 0, 1) == -10_000


def test_growth_factor_limits():
    assert compound_growth(0.05, 0) == 1.0
    assert compound_growth(-1.5, 0) == 1.0
    assert compound_growth(-1, 12) is None
    assert compound_growth(-2, 12.5) is None
    assert compound_growth(7.5, 12_000) is None
    assert compound_growth(0.01, 12) == pytest.approx(1.01**12)


def test_huge_rate_payment_tends_to_interest_only():
    """(1+r)^n past the float range: payment is P*r, nothing amortizes."""
    r = 9000 / 100 / 12
    assert fixed_payment(200_000, 9000, 30) == pytest.approx(200_000 * r)
    assert max_loan_for_payment(200_000 * r, 9000, 30) == pytest.approx(200_000)
    assert remaining_balance(200_000, 9000, 30, 60) == pytest.approx(200_000)
    assert remaining_balance(200_000, 9000, 30, 361) == 0


def test_rate_at_or_below_minus_hundred_percent_a_month():
    for rate in (-1200, -2400, -9000):
        assert fixed_payment(200_000, rate, 30) == 0
        assert max_loan_for_payment(1000, rate, 30) == 0
        assert remaining_balance(200_000, rate, 30, 60) == 0


def test_balance_far_past_term_is_finite():
    out = remaining_balance(75_000, 8, 30, 12_000 * 12)
    assert math.isfinite(out)


def test_rate_too_small_to_move_growth_is_straight_line():
    assert fixed_payment(120_000, 1e-300, 30) == pytest.approx(120_000 / 360)
    assert remaining_balance(120_000, 1e-300, 30, 120) == pytest.approx(80_000)


@given(
    principal=st.floats(min_value=0, max_value=10_000_000),
    rate=st.floats(min_value=-20_000, max_value=20_000),
    years=st.integers(min_value=-50, max_value=2_000),
    months=st.floats(min_value=0, max_value=50_000),
)
def test_amortization_is_total(principal, rate, years, months):
    assert math.isfinite(fixed_payment(principal, rate, years))
    assert math.isfinite(max_loan_for_payment(principal, rate, years))
    assert math.isfinite(remaining_balance(principal, rate, years, months))
