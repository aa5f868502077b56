import pytest

import lease
from analysis import analyse_quote, compare_quotes
from quote import QuoteProvidedValues, Vehicle
from storage import SavedQuote


def _saved(quote_id, quote):
    return SavedQuote(id=quote_id, name=quote_id, data=quote, saved_at="2025-07-01T09:00:00.000Z")


def test_analyse_quote_bundles_every_result(base_quote):
    a = analyse_quote(base_quote)
    assert len(a.yearly) == 3
    assert len(a.scenarios) == 4
    assert len(a.tracker) == 4
    assert a.breakdown == lease.calculate_cost_breakdown(base_quote)
    assert a.tax_impact.annual_package_amount == pytest.approx(
        a.yearly[0].principal_payment + a.yearly[0].interest_payment + 5_000
    )
    assert a.validation.overall_assessment == "accurate"


def test_analysis_to_dict_is_camel_case(base_quote):
    q = base_quote.with_changes(quote_provided_values=QuoteProvidedValues(residual_value=23_440))
    out = analyse_quote(q).to_dict()
    assert set(out) == {
        "yearlyBreakdowns",
        "costBreakdown",
        "buyVsLease",
        "postLeaseScenarios",
        "taxImpact",
        "leaseAccount",
        "quoteValidation",
    }
    assert out["costBreakdown"]["residualValue"] == pytest.approx(23_440)
    assert out["yearlyBreakdowns"][0]["year"] == 1
    assert out["leaseAccount"][-1]["year"] == "End"
    assert out["quoteValidation"]["discrepancies"][0]["isSignificant"] is False


def test_zero_price_analysis(zero_quote):
    a = analyse_quote(zero_quote)
    assert a.breakdown.total_net_cost == 0
    assert a.tax_impact.tax_saving == 0
    assert all(p.paid_to_date == 0 for p in a.tracker)


def test_compare_marks_best_quotes(base_quote, help_quote):
    cheap = base_quote.with_changes(vehicle=Vehicle(purchase_price=30_000))
    result = compare_quotes([_saved("a", base_quote), _saved("b", cheap), _saved("c", help_quote)])
    assert [r.saved.id for r in result.rows] == ["a", "b", "c"]
    assert result.best_net_cost_id == "b"
    # the dearest car over the longest term packages the most salary
    assert result.best_tax_savings_id == "c"


def test_compare_limits():
    empty = compare_quotes([])
    assert empty.rows == []
    assert empty.best_net_cost_id is None


def test_compare_rejects_more_than_three(base_quote):
    with pytest.raises(ValueError, match="At most 3"):
        compare_quotes([_saved(str(i), base_quote) for i in range(4)])
