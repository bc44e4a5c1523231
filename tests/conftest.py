# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from propcalc.api.http import app  # ensures imports resolve; run tests from repo root


@pytest.fixture(scope="session")
def client():
    return TestClient(app)


@pytest.fixture
def expense_config():
    # camelCase keys and the short mode/freq spellings saved records use
    return {
        "propTaxes": {"mode": "dollar", "freq": "yr"},
        "insurance": {"mode": "dollar", "freq": "yr"},
        "maintenance": {"mode": "pct", "freq": "yr"},
        "utilities": {"mode": "dollar", "freq": "mo"},
        "propMgmt": {"mode": "pct", "freq": "yr"},
        "capex": {"mode": "pct", "freq": "yr"},
        "mortgageIns": {"mode": "dollar", "freq": "mo"},
    }


@pytest.fixture
def traditional_inputs():
    """Duplex, $200k, 25% down at 7%: slightly negative cash flow."""
    return {
        "propertyName": "Test",
        "purchasePrice": "200000",
        "exitArv": "250000",
        "units": [
            {"rent": "1200", "misc": "50", "beds": "2", "bath": "1"},
            {"rent": "800", "misc": "0", "beds": "1", "bath": "1"},
        ],
        "vacancyRate": "5",
        "propTaxes": "3600",
        "insurance": "1800",
        "maintenance": "5",
        "utilities": "200",
        "propMgmt": "8",
        "capex": "5",
        "mortgageIns": "0",
        "appreciationRate": "3",
        "rentGrowth": "2",
        "costIncrease": "2",
        "downPercent": "25",
        "closingCost": "5000",
        "rehabCost": "10000",
        "interestRate": "7",
        "loanTerm": "30",
        "jvSplitMain": "100",
    }


@pytest.fixture
def dscr_inputs(traditional_inputs):
    """Buy $200k, rehab, refinance at 75% of a $260k ARV."""
    return {
        **traditional_inputs,
        "propertyName": "Test DSCR",
        "exitArv": "260000",
        "units": [{"rent": "1500", "misc": "0"}, {"rent": "1000", "misc": "0"}],
        "closingCostDscr": "4000",
        "rehabCostDscr": "15000",
        "dscrLtv": "75",
        "carryMonths": "6",
        "carryRate": "10",
        "carryRentPercent": "0",
    }


@pytest.fixture
def stress_inputs(traditional_inputs):
    return {
        **traditional_inputs,
        "units": [{"rent": "2000", "misc": "0"}, {"rent": "1000", "misc": "0"}],
        "propTaxes": "3000",
        "insurance": "1500",
        "utilities": "150",
    }


@pytest.fixture
def offer_inputs():
    return {
        "purchasePrice": "300000",
        "exitArv": "350000",
        "units": [{"rent": "1500", "misc": "0"}, {"rent": "1200", "misc": "0"}],
        "vacancyRate": "5",
        "propTaxes": "4000",
        "insurance": "2000",
        "maintenance": "5",
        "utilities": "250",
        "propMgmt": "8",
        "capex": "5",
        "mortgageIns": "0",
        "appreciationRate": "3",
        "rentGrowth": "2",
        "costIncrease": "2",
        "morbyDownPct": "25",
        "morbyDscrRate": "8",
        "morbyDscrTerm": "30",
        "morbySellerRate": "5",
        "morbySellerAmort": "30",
        "morbyBalloonYears": "7",
        "morbyRefiLtv": "75",
        "morbyAppreciation": "",
    }
