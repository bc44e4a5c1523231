import pytest

from propcalc.analysis.offers import (
    calculate_offer,
    calculate_seller_finance,
    calculate_strategy,
    calculate_subject_to,
)
from propcalc.domain.amortization import fixed_payment, remaining_balance
from propcalc.domain.strategies import (
    SELLER_FINANCE,
    STRATEGIES,
    STRATEGY_BADGES,
    STRATEGY_LABELS,
    STRATEGY_PILL_LABELS,
    SUBJECT_TO,
)


@pytest.fixture
def subject_to_inputs(offer_inputs):
    return {
        **offer_inputs,
        "subToLoanBalance": "200000",
        "subToRate": "3.5",
        "subToRemTerm": "25",
        "subToDownPayment": "20000",
        "subToEscrow": "yes",
    }


# -----------------------------
# Morby
# -----------------------------
def test_morby_splits_price_between_two_notes(offer_inputs, expense_config):
    o = calculate_offer(offer_inputs, expense_config)

    assert o.strategy == "morby"
    assert o.amount("dscr") == pytest.approx(75_000)
    assert o.amount("seller") == pytest.approx(225_000)
    assert o.amount("dscr") + o.amount("seller") == pytest.approx(o.purchase_price)
    assert o.total_monthly_debt == pytest.approx(
        fixed_payment(75_000, 8, 30) + fixed_payment(225_000, 5, 30)
    )


def test_morby_table_marks_balloon_year(offer_inputs, expense_config):
    o = calculate_offer(offer_inputs, expense_config)

    assert len(o.amort_rows) == 10
    assert [r.year for r in o.amort_rows] == list(range(1, 11))
    assert o.amort_rows[6].is_balloon
    assert sum(r.is_balloon for r in o.amort_rows) == 1


def test_long_balloon_extends_table(offer_inputs, expense_config):
    offer_inputs["morbyBalloonYears"] = "15"
    o = calculate_offer(offer_inputs, expense_config)

    assert len(o.amort_rows) == 18
    assert o.amort_rows[14].is_balloon


def test_balloon_payoff_and_verdict(offer_inputs, expense_config):
    o = calculate_offer(offer_inputs, expense_config)

    assert o.projected_value == pytest.approx(300_000 * 1.03**7)
    assert o.max_refi == pytest.approx(o.projected_value * 0.75)
    assert o.total_payoff == pytest.approx(
        remaining_balance(75_000, 8, 30, 84) + remaining_balance(225_000, 5, 30, 84)
    )
    assert o.surplus == pytest.approx(o.max_refi - o.total_payoff)
    assert o.verdict == ("PASS" if o.surplus >= 0 else "FAIL")


def test_appreciation_override_wins(offer_inputs, expense_config):
    offer_inputs["morbyAppreciation"] = "5"
    o = calculate_offer(offer_inputs, expense_config)

    assert o.appreciation_rate == pytest.approx(0.05)
    assert o.projected_value == pytest.approx(300_000 * 1.05**7)


def test_zero_appreciation_override_is_not_blank(offer_inputs, expense_config):
    offer_inputs["morbyAppreciation"] = "0"
    o = calculate_offer(offer_inputs, expense_config)

    assert o.projected_value == pytest.approx(300_000)


def test_seller_note_paid_off_before_balloon_is_zero(offer_inputs, expense_config):
    offer_inputs["morbySellerAmort"] = "5"
    o = calculate_offer(offer_inputs, expense_config)

    assert o.loan("seller").balance_at_balloon == 0
    assert o.amort_rows[5].balances["seller"] == 0
    assert o.loan("dscr").balance_at_balloon > 0


def test_rows_reconcile(offer_inputs, expense_config):
    o = calculate_offer(offer_inputs, expense_config)

    cumulative = 0.0
    for row in o.amort_rows:
        assert row.total_debt == pytest.approx(sum(row.balances.values()))
        assert row.equity == pytest.approx(row.property_value - row.total_debt)
        assert all(b >= 0 for b in row.balances.values())
        cumulative += row.annual_cash_flow
        assert row.cumulative_cash_flow == pytest.approx(cumulative)


def test_first_year_cash_flow_matches_monthly(offer_inputs, expense_config):
    o = calculate_offer(offer_inputs, expense_config)
    assert o.amort_rows[0].annual_cash_flow == pytest.approx(o.monthly_cf * 12)


def test_offer_chart_and_milestones(offer_inputs, expense_config):
    o = calculate_offer(offer_inputs, expense_config)

    assert len(o.chart_assets) == 31
    assert o.chart_assets[0] == pytest.approx(300_000)
    assert o.chart_loans[0] == pytest.approx(300_000)
    assert o.milestone5.balance == pytest.approx(o.amort_rows[4].total_debt)
    assert o.milestone10.equity == pytest.approx(o.amort_rows[9].equity)


# -----------------------------
# Seller finance
# -----------------------------
def test_seller_finance_single_note(offer_inputs, expense_config):
    o = calculate_seller_finance(offer_inputs, expense_config)

    assert [leg.key for leg in o.loans] == ["seller"]
    assert o.amount("seller") == pytest.approx(300_000)
    assert o.total_monthly_debt == pytest.approx(fixed_payment(300_000, 5, 30))
    assert o.total_payoff == pytest.approx(remaining_balance(300_000, 5, 30, 84))


def test_seller_finance_low_refi_ltv_fails(offer_inputs, expense_config):
    offer_inputs["sfRefiLtv"] = "50"
    o = calculate_seller_finance(offer_inputs, expense_config)

    assert o.surplus < 0
    assert o.verdict == "FAIL"


def test_seller_finance_uses_its_own_terms(offer_inputs, expense_config):
    offer_inputs.update(sfSellerRate="0", sfSellerAmort="30", sfBalloonYears="10")
    o = calculate_seller_finance(offer_inputs, expense_config)

    assert o.total_monthly_debt == pytest.approx(300_000 / 360)
    assert o.total_payoff == pytest.approx(200_000)
    assert len(o.amort_rows) == 13


# -----------------------------
# Subject-To
# -----------------------------
def test_subject_to_carries_equity_gap(subject_to_inputs, expense_config):
    o = calculate_subject_to(subject_to_inputs, expense_config)

    assert [leg.key for leg in o.loans] == ["existing", "seller"]
    assert o.amount("existing") == pytest.approx(200_000)
    assert o.amount("seller") == pytest.approx(80_000)
    assert o.basis_for_gain == pytest.approx(20_000)


def test_subject_to_without_gap_has_no_seller_note(subject_to_inputs, expense_config):
    subject_to_inputs["subToDownPayment"] = "100000"
    o = calculate_subject_to(subject_to_inputs, expense_config)

    assert [leg.key for leg in o.loans] == ["existing"]
    assert o.amount("seller") == 0
    assert o.loan("seller") is None


def test_subject_to_escrow_skips_taxes_and_insurance(subject_to_inputs, expense_config):
    with_escrow = calculate_subject_to(subject_to_inputs, expense_config)
    subject_to_inputs["subToEscrow"] = "no"
    without_escrow = calculate_subject_to(subject_to_inputs, expense_config)

    assert without_escrow.total_expenses - with_escrow.total_expenses == pytest.approx(4000 + 2000)
    assert with_escrow.noi > without_escrow.noi


def test_subject_to_milestone_gain_uses_down_payment(subject_to_inputs, expense_config):
    o = calculate_subject_to(subject_to_inputs, expense_config)
    m = o.milestone5

    assert m.net_gain == pytest.approx(m.equity + m.flow - 20_000)


# -----------------------------
# Dispatch
# -----------------------------
@pytest.mark.parametrize("key", ["morby", "sellerFinance", "subjectTo", "seller_finance", "subject-to"])
def test_dispatch_accepts_known_keys(key, offer_inputs, expense_config):
    o = calculate_strategy(key, offer_inputs, expense_config)
    assert o.strategy in ("morby", "sellerFinance", "subjectTo")


def test_dispatch_rejects_unknown_strategy(offer_inputs):
    with pytest.raises(ValueError, match="Unknown offer strategy"):
        calculate_strategy("leaseOption", offer_inputs)


def test_default_expense_config_applies(offer_inputs, expense_config):
    assert calculate_offer(offer_inputs).noi == pytest.approx(calculate_offer(offer_inputs, expense_config).noi)


def test_every_strategy_has_display_labels():
    for key in STRATEGIES:
        assert STRATEGY_LABELS[key]
        assert STRATEGY_BADGES[key] == STRATEGY_BADGES[key].upper()
        assert STRATEGY_PILL_LABELS[key]
    assert STRATEGY_LABELS[SUBJECT_TO] == "Subject-To"
    assert STRATEGY_PILL_LABELS[SELLER_FINANCE] == "Seller Fin"


def test_very_long_balloon_does_not_raise(offer_inputs, expense_config):
    offer_inputs["morbyBalloonYears"] = "12000"
    o = calculate_offer(offer_inputs, expense_config)

    assert len(o.amort_rows) == 12003
    assert o.amort_rows[11999].is_balloon
    # both notes are long paid off by then
    assert o.total_payoff == 0
    assert o.verdict == "PASS"


def test_overflowed_appreciation_on_zero_price_stays_zero(offer_inputs, expense_config):
    offer_inputs.update(purchasePrice="0", morbyAppreciation="9000", morbyBalloonYears="200")
    o = calculate_offer(offer_inputs, expense_config)

    assert o.projected_value == 0
    assert o.max_refi == 0
