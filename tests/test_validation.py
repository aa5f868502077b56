import pytest

import lease
from quote import QuoteProvidedValues
from validation import assess, percentage_difference, validate_quote_values


def _with_claims(quote, **claims):
    return quote.with_changes(quote_provided_values=QuoteProvidedValues(**claims))


def test_no_claimed_values_is_accurate(base_quote):
    result = validate_quote_values(base_quote)
    assert result.discrepancies == []
    assert result.has_significant_issues is False
    assert result.overall_assessment == "accurate"


def test_exact_residual_is_not_significant(base_quote):
    result = validate_quote_values(_with_claims(base_quote, residual_value=23_440.0))
    (disc,) = result.discrepancies
    assert disc.field == "residualValue"
    assert disc.percentage_diff == 0
    assert disc.is_significant is False
    assert disc.explanation is None
    assert result.overall_assessment == "accurate"


def test_low_residual_is_flagged(base_quote):
    result = validate_quote_values(_with_claims(base_quote, residual_value=20_000.0))
    (disc,) = result.discrepancies
    assert disc.is_significant
    assert disc.difference == pytest.approx(-3_440)
    assert "ATO" in disc.explanation
    assert result.overall_assessment == "minor_differences"


@pytest.mark.parametrize(
    "offset_pct, significant",
    [(4.9, False), (-4.9, False), (5.1, True), (-5.1, True)],
)
def test_cost_threshold_is_five_percent(base_quote, offset_pct, significant):
    finance = lease.calculate_cost_breakdown(base_quote).finance_charges
    claimed = finance * (1 + offset_pct / 100)
    (disc,) = validate_quote_values(_with_claims(base_quote, total_finance_charges=claimed)).discrepancies
    assert disc.percentage_diff == pytest.approx(offset_pct)
    assert disc.is_significant is significant


@pytest.mark.parametrize("offset_pct, significant", [(9.0, False), (11.0, True)])
def test_savings_threshold_is_ten_percent(base_quote, offset_pct, significant):
    savings = lease.calculate_cost_breakdown(base_quote).tax_savings
    claimed = savings * (1 + offset_pct / 100)
    (disc,) = validate_quote_values(_with_claims(base_quote, tax_savings=claimed)).discrepancies
    assert disc.is_significant is significant


def test_payment_checks_use_net_cost_per_period(base_quote):
    b = lease.calculate_cost_breakdown(base_quote)
    per_year = b.net_cost_before_residual / 3
    result = validate_quote_values(
        _with_claims(base_quote, monthly_payment=per_year / 12, fortnightly_payment=per_year / 26),
        b,
    )
    fields = [d.field for d in result.discrepancies]
    assert fields == ["fortnightlyPayment", "monthlyPayment"]
    assert all(d.percentage_diff == pytest.approx(0) for d in result.discrepancies)


def test_total_payments_compared_with_net_cost(base_quote):
    b = lease.calculate_cost_breakdown(base_quote)
    (disc,) = validate_quote_values(_with_claims(base_quote, total_payments=b.net_cost_before_residual * 1.2)).discrepancies
    assert disc.field == "totalPayments"
    assert disc.calculated_value == pytest.approx(b.net_cost_before_residual)
    assert disc.is_significant


def test_total_lease_cost_picks_closer_total(base_quote):
    b = lease.calculate_cost_breakdown(base_quote)

    (incl,) = validate_quote_values(_with_claims(base_quote, total_lease_cost=b.total_net_cost + 100)).discrepancies
    assert incl.label == "Total Lease Cost (incl. residual)"
    assert incl.calculated_value == pytest.approx(b.total_net_cost)

    (excl,) = validate_quote_values(
        _with_claims(base_quote, total_lease_cost=b.net_cost_before_residual - 100)
    ).discrepancies
    assert excl.label == "Total Lease Cost (excl. residual)"
    assert excl.calculated_value == pytest.approx(b.net_cost_before_residual)


def test_checks_run_in_fixed_order(base_quote):
    claims = dict(
        residual_value=1,
        total_finance_charges=1,
        fortnightly_payment=1,
        monthly_payment=1,
        total_payments=1,
        tax_savings=1,
        gst_savings=1,
        total_lease_cost=1,
    )
    result = validate_quote_values(_with_claims(base_quote, **claims))
    assert [d.field for d in result.discrepancies] == [
        "residualValue",
        "financeCharges",
        "fortnightlyPayment",
        "monthlyPayment",
        "totalPayments",
        "taxSavings",
        "gstSavings",
        "totalLeaseCost",
    ]
    assert result.overall_assessment == "major_concerns"
    assert len(result.significant) == 8


@pytest.mark.parametrize(
    "count, label",
    [
        (0, "accurate"),
        (1, "minor_differences"),
        (2, "minor_differences"),
        (3, "significant_differences"),
        (4, "significant_differences"),
        (5, "major_concerns"),
        (12, "major_concerns"),
    ],
)
def test_assessment_buckets(count, label):
    assert assess(count) == label


def test_percentage_difference_with_zero_calculated():
    assert percentage_difference(500, 0) == 0
    assert percentage_difference(110, 100) == pytest.approx(10)


def test_zero_price_quote_does_not_flag_anything(zero_quote):
    result = validate_quote_values(_with_claims(zero_quote, residual_value=1_000, gst_savings=50))
    assert all(d.percentage_diff == 0 for d in result.discrepancies)
    assert result.overall_assessment == "accurate"
