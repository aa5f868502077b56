import math

import numpy as np
import pytest

import tax


@pytest.mark.parametrize(
    "income, expected",
    [
        (0, 0.0),
        (18_200, 0.0),
        (45_000, 4_287.84),
        (80_000, 14_787.70),
        (135_000, 31_288.0),
        (200_000, 56_137.55),
    ],
)
def test_income_tax_brackets(income, expected):
    assert float(tax.income_tax(income)) == pytest.approx(expected, abs=0.5)


@pytest.mark.parametrize(
    "income, has_help, help_rate, expected",
    [
        (30_000, False, 0.0, 0.18),
        (80_000, False, 0.0, 0.32),
        (120_000, True, 0.02, 0.34),
        (150_000, False, 0.0, 0.39),
        (250_000, False, 0.0, 0.47),
    ],
)
def test_marginal_rate_includes_medicare_and_help(income, has_help, help_rate, expected):
    assert float(tax.marginal_tax_rate(income, has_help, help_rate)) == pytest.approx(expected)


def test_zero_income_has_zero_effective_rate():
    result = tax.calculate_income_tax(0)
    assert result.total_tax == 0
    assert result.effective_tax_rate == 0
    assert result.net_income == 0


@pytest.mark.parametrize("income", [10_000, 45_000, 80_000, 150_000, 300_000])
def test_total_tax_covers_medicare_levy(income):
    result = tax.calculate_income_tax(income, True, 0.03)
    assert result.total_tax >= result.medicare_levy
    assert math.isclose(result.total_tax, result.income_tax + result.medicare_levy + result.help_repayment)
    assert math.isclose(result.net_income, income - result.total_tax)


def test_help_only_applies_with_a_debt():
    assert tax.calculate_income_tax(90_000, False, 0.05).help_repayment == 0
    assert tax.calculate_income_tax(90_000, True, 0.05).help_repayment == pytest.approx(4_500)


@pytest.mark.parametrize("boundary", [18_200, 45_000, 135_000, 190_000])
def test_tax_is_continuous_across_bracket_boundaries(boundary):
    below = float(tax.income_tax(boundary))
    above = float(tax.income_tax(boundary + 1))
    assert above >= below
    # one dollar more never costs more than the top rate plus rounding in the base amounts
    assert above - below <= 1.0


def test_income_tax_is_monotonic_over_a_range():
    incomes = np.linspace(0, 400_000, 4_001)
    taxes = tax.income_tax(incomes)
    assert np.all(np.diff(taxes) >= -0.01)


def test_tax_calculation_to_dict_keys():
    d = tax.calculate_income_tax(80_000).to_dict()
    assert d["taxableIncome"] == 80_000
    assert d["marginalTaxRate"] == pytest.approx(0.32)
    assert set(d) >= {"incomeTax", "medicareLevy", "helpRepayment", "totalTax", "netIncome", "effectiveTaxRate"}
