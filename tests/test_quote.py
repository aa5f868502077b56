import json

import pytest

import config as cfg
from quote import (
    Employee,
    FBTSettings,
    LeaseTerms,
    QuoteImportError,
    Vehicle,
    default_quote,
    load_quote_json,
    parse_quote,
)


def test_parse_full_quote(quote_json):
    q = parse_quote(quote_json)
    assert q.vehicle.make == "Mazda"
    assert q.price == 48_000
    assert q.years == 4
    assert q.lease_terms.annual_km == 15_000
    assert q.fees.monthly_admin_fee == 12.5
    assert q.running_costs.total == pytest.approx(5_500)
    assert q.fbt.effective_statutory_rate == 0.2
    assert q.quote_provided_values.residual_value == 18_000
    assert q.quote_provided_values.total_payments is None
    assert q.metadata.customer_warnings == ("Balloon payment due at end",)
    assert q.custom_notes == "Dealer quote, March"


def test_to_dict_round_trips(quote_json):
    q = parse_quote(quote_json)
    assert parse_quote(q.to_dict()) == q
    assert parse_quote(json.loads(json.dumps(q.to_dict()))) == q


def test_default_quote_round_trips():
    q = default_quote()
    assert parse_quote(q.to_dict()) == q


@pytest.mark.parametrize("group", ["vehicle", "leaseTerms", "employee"])
def test_missing_required_group(quote_json, group):
    del quote_json[group]
    with pytest.raises(QuoteImportError, match="Missing required fields in JSON"):
        parse_quote(quote_json)


def test_optional_groups_get_defaults(quote_json):
    for group in ("fees", "runningCosts", "fbt", "quoteProvidedValues", "metadata", "customNotes"):
        del quote_json[group]
    q = parse_quote(quote_json)
    assert q.fees.establishment_fee == 0
    assert q.running_costs.total == 0
    assert q.fbt.use_statutory_method is True
    assert q.fbt.effective_statutory_rate == 0.20
    assert q.quote_provided_values is None
    assert q.metadata is None


def test_taxable_income_defaults_to_salary(quote_json):
    del quote_json["employee"]["taxableIncome"]
    assert parse_quote(quote_json).employee.taxable_income == 95_000


@pytest.mark.parametrize(
    "group, key, value, message",
    [
        ("vehicle", "purchasePrice", "lots", "must be a number"),
        ("vehicle", "purchasePrice", -1, "must not be negative"),
        ("leaseTerms", "durationYears", 2.5, "whole number"),
        ("leaseTerms", "durationYears", 0, "at least 1 year"),
        ("leaseTerms", "interestRate", 7, "between 0 and 1"),
        ("fbt", "useStatutoryMethod", "yes", "true or false"),
        ("employee", "annualSalary", None, "Missing required field"),
    ],
)
def test_bad_values_raise_import_error(quote_json, group, key, value, message):
    quote_json[group][key] = value
    with pytest.raises(QuoteImportError, match=message):
        parse_quote(quote_json)


def test_long_terms_are_accepted(quote_json):
    quote_json["leaseTerms"]["durationYears"] = 7
    assert parse_quote(quote_json).years == 7


def test_load_quote_json_rejects_bad_json():
    with pytest.raises(QuoteImportError, match="Invalid JSON format"):
        load_quote_json("{not json")
    with pytest.raises(QuoteImportError, match="JSON object"):
        load_quote_json("[1, 2, 3]")


def test_import_error_is_a_value_error():
    with pytest.raises(ValueError):
        parse_quote({})


def test_statutory_rate_zero_is_kept():
    assert FBTSettings(statutory_rate=0.0).effective_statutory_rate == 0.0
    assert FBTSettings().effective_statutory_rate == 0.20


def test_groups_validate_directly():
    with pytest.raises(ValueError):
        Vehicle(purchase_price=-5)
    with pytest.raises(ValueError):
        LeaseTerms(duration_years=3, interest_rate=-0.01)
    with pytest.raises(ValueError):
        Employee(annual_salary=50_000, taxable_income=50_000, help_repayment_rate=1.5)
    assert Employee(annual_salary=50_000, taxable_income=50_000).help_rate == 0.0


def test_with_changes_leaves_original_alone():
    q = default_quote()
    changed = q.with_changes(vehicle=Vehicle(purchase_price=1_000))
    assert q.price == 50_000
    assert changed.price == 1_000
    assert changed.lease_terms == q.lease_terms


HUGE = int("1" + "0" * 400)


@pytest.mark.parametrize(
    "group, key",
    [
        ("vehicle", "purchasePrice"),
        ("leaseTerms", "durationYears"),
        ("fees", "establishmentFee"),
        ("quoteProvidedValues", "residualValue"),
    ],
)
def test_huge_integers_raise_import_error(quote_json, group, key):
    quote_json[group][key] = HUGE
    with pytest.raises(QuoteImportError):
        parse_quote(quote_json)


def test_huge_integer_in_json_text(quote_json):
    text = json.dumps(quote_json).replace('"purchasePrice": 48000', '"purchasePrice": 1' + "0" * 400)
    with pytest.raises(QuoteImportError):
        load_quote_json(text)


@pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity", "1e400"])
def test_non_finite_numbers_rejected(quote_json, literal):
    text = json.dumps(quote_json).replace('"purchasePrice": 48000', f'"purchasePrice": {literal}')
    with pytest.raises(QuoteImportError, match="vehicle.purchasePrice"):
        load_quote_json(text)


def test_boolean_is_not_a_number(quote_json):
    quote_json["vehicle"]["purchasePrice"] = True
    with pytest.raises(QuoteImportError, match="must be a number"):
        parse_quote(quote_json)


def test_null_fields_count_as_missing(quote_json):
    quote_json["fees"]["establishmentFee"] = None
    quote_json["employee"]["taxableIncome"] = None
    q = parse_quote(quote_json)
    assert q.fees.establishment_fee == 0
    assert q.employee.taxable_income == 95_000


def test_group_must_be_an_object(quote_json):
    quote_json["vehicle"] = "Mazda CX-5"
    with pytest.raises(QuoteImportError, match="'vehicle' must be an object"):
        parse_quote(quote_json)


def test_whole_number_floats_accepted(quote_json):
    quote_json["leaseTerms"]["durationYears"] = 4.0
    q = parse_quote(quote_json)
    assert q.years == 4
    assert isinstance(q.lease_terms.duration_years, int)


def test_unknown_keys_are_ignored(quote_json):
    quote_json["vehicle"]["colour"] = "red"
    quote_json["dealer"] = {"name": "Acme"}
    assert parse_quote(quote_json).vehicle.make == "Mazda"


def test_lease_term_cap(quote_json):
    quote_json["leaseTerms"]["durationYears"] = cfg.MAX_DURATION_YEARS
    assert parse_quote(quote_json).years == cfg.MAX_DURATION_YEARS

    quote_json["leaseTerms"]["durationYears"] = cfg.MAX_DURATION_YEARS + 1
    with pytest.raises(QuoteImportError, match="at most"):
        parse_quote(quote_json)
    with pytest.raises(ValueError, match="at most"):
        LeaseTerms(duration_years=1_000, interest_rate=1.0)


def test_groups_reject_non_finite_money():
    with pytest.raises(ValueError, match="finite"):
        Vehicle(purchase_price=float("inf"))
