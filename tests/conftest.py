import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from quote import (  # noqa: E402
    Employee,
    Fees,
    FBTSettings,
    LeaseTerms,
    QuoteInput,
    RunningCosts,
    Vehicle,
    default_quote,
)


@pytest.fixture
def base_quote():
    """$50k, 3 years at 7%, $80k salary, default fees and running costs."""
    return default_quote()


@pytest.fixture
def help_quote():
    """$75k over 5 years at 6.5%, $120k salary with a 2% HELP repayment."""
    return QuoteInput(
        vehicle=Vehicle(purchase_price=75_000, make="Tesla", model="Model Y", year=2025),
        lease_terms=LeaseTerms(duration_years=5, interest_rate=0.065, annual_km=20_000),
        fees=Fees(establishment_fee=400, monthly_admin_fee=15, end_of_lease_fee=300),
        running_costs=RunningCosts(fuel=900, insurance=1_800, maintenance=600, registration=900, tyres=300),
        fbt=FBTSettings(use_statutory_method=True, statutory_rate=0.20),
        employee=Employee(
            annual_salary=120_000,
            taxable_income=120_000,
            has_help_debt=True,
            help_repayment_rate=0.02,
        ),
    )


@pytest.fixture
def zero_quote():
    """Nothing to pay at all: zero price, fees and running costs."""
    return QuoteInput(
        vehicle=Vehicle(purchase_price=0),
        lease_terms=LeaseTerms(duration_years=3, interest_rate=0.07),
        fees=Fees(),
        running_costs=RunningCosts(),
        fbt=FBTSettings(),
        employee=Employee(annual_salary=80_000, taxable_income=80_000),
    )


@pytest.fixture
def quote_json():
    return {
        "vehicle": {"make": "Mazda", "model": "CX-5", "year": 2024, "purchasePrice": 48_000},
        "leaseTerms": {"durationYears": 4, "interestRate": 0.0725, "annualKilometers": 15_000},
        "fees": {"establishmentFee": 450, "monthlyAdminFee": 12.5, "endOfLeaseFee": 0},
        "runningCosts": {
            "fuelPerYear": 2_400,
            "insurancePerYear": 1_300,
            "maintenancePerYear": 700,
            "registrationPerYear": 850,
            "tyresPerYear": 250,
        },
        "fbt": {"employeeContributionAmount": 0, "useStatutoryMethod": True, "statutoryRate": 0.2},
        "employee": {"annualSalary": 95_000, "taxableIncome": 95_000, "hasHELPDebt": False},
        "quoteProvidedValues": {"residualValue": 18_000, "monthlyPayment": 1_050},
        "metadata": {"leaserName": "Acme Leasing", "customerWarnings": ["Balloon payment due at end"]},
        "customNotes": "Dealer quote, March",
    }
