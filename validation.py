"""
Cross-check a lease provider's quoted figures against our own numbers.

Each figure the quote states is compared with the engine's value for the
same thing. Cost and payment figures are flagged beyond 5%; tax and GST
savings are estimates by nature and are only flagged beyond 10%.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import config as cfg
from lease import CostBreakdown, calculate_cost_breakdown
from quote import QuoteInput


@dataclass
class QuoteDiscrepancy:
    field: str
    label: str
    quote_value: float
    calculated_value: float
    difference: float            # quote - calculated
    percentage_diff: float       # relative to calculated, 0 when calculated is 0
    is_significant: bool
    explanation: Optional[str] = None

    def to_dict(self) -> dict:
        out = {
            "field": self.field,
            "label": self.label,
            "quoteValue": self.quote_value,
            "calculatedValue": self.calculated_value,
            "difference": self.difference,
            "percentageDiff": self.percentage_diff,
            "isSignificant": self.is_significant,
        }
        if self.explanation is not None:
            out["explanation"] = self.explanation
        return out


@dataclass
class QuoteValidation:
    discrepancies: List[QuoteDiscrepancy] = field(default_factory=list)
    has_significant_issues: bool = False
    overall_assessment: str = "accurate"

    @property
    def significant(self) -> List[QuoteDiscrepancy]:
        return [d for d in self.discrepancies if d.is_significant]

    def to_dict(self) -> dict:
        return {
            "discrepancies": [d.to_dict() for d in self.discrepancies],
            "hasSignificantIssues": self.has_significant_issues,
            "overallAssessment": self.overall_assessment,
        }


# ─── Helpers ──────────────────────────────────────────────────────────

def percentage_difference(quote_value: float, calculated: float) -> float:
    if calculated == 0:
        return 0.0
    return (quote_value - calculated) / calculated * 100


def assess(significant_count: int) -> str:
    """Bucket the number of significant discrepancies."""
    for upper, label in cfg.ASSESSMENT_BUCKETS:
        if significant_count <= upper:
            return label
    return cfg.ASSESSMENT_BUCKETS[-1][1]


def _compare(
    field_name: str,
    label: str,
    quote_value: float,
    calculated: float,
    threshold: float,
    higher: str,
    lower: str,
) -> QuoteDiscrepancy:
    pct = percentage_difference(quote_value, calculated)
    significant = abs(pct) > threshold
    explanation = None
    if significant:
        explanation = higher if pct > 0 else lower
    return QuoteDiscrepancy(
        field=field_name,
        label=label,
        quote_value=quote_value,
        calculated_value=calculated,
        difference=quote_value - calculated,
        percentage_diff=pct,
        is_significant=significant,
        explanation=explanation,
    )


def _payment_check(field_name: str, label: str, quote_value: float, calculated: float) -> QuoteDiscrepancy:
    return _compare(
        field_name, label, quote_value, calculated, cfg.COST_DISCREPANCY_PCT,
        higher=(
            f"The quoted {label.lower()} is higher than our calculation. "
            "This could indicate additional fees or different tax assumptions."
        ),
        lower=(
            f"The quoted {label.lower()} is lower than our calculation. "
            "Verify what's included in their calculation."
        ),
    )


def _total_lease_cost_check(quote_value: float, breakdown: CostBreakdown) -> QuoteDiscrepancy:
    # Quotes are inconsistent about including the residual, so compare
    # against whichever of our two totals is closer.
    with_residual = breakdown.total_net_cost
    without_residual = breakdown.net_cost_before_residual
    includes_residual = abs(quote_value - with_residual) < abs(quote_value - without_residual)
    calculated = with_residual if includes_residual else without_residual
    suffix = "(incl. residual)" if includes_residual else "(excl. residual)"

    return _compare(
        "totalLeaseCost", f"Total Lease Cost {suffix}", quote_value, calculated,
        cfg.COST_DISCREPANCY_PCT,
        higher=(
            "The quote's total cost is higher than our calculation. "
            "There may be additional fees or costs not clearly disclosed."
        ),
        lower="The quote's total cost is lower than our calculation. Verify what's included in their total.",
    )


# ─── Validator ────────────────────────────────────────────────────────

def validate_quote_values(quote: QuoteInput, breakdown: CostBreakdown | None = None) -> QuoteValidation:
    """Compare every figure present in ``quote.quote_provided_values``.

    Parameters
    ----------
    quote : QuoteInput
        The quote, including the provider's claimed figures (if any).
    breakdown : CostBreakdown, optional
        Precomputed totals for ``quote``; calculated when omitted.

    Returns
    -------
    QuoteValidation
        Empty and ``'accurate'`` when the quote states no figures.
    """
    provided = quote.quote_provided_values
    if provided is None:
        return QuoteValidation()

    if breakdown is None:
        breakdown = calculate_cost_breakdown(quote)
    per_year = breakdown.net_cost_before_residual / quote.years

    found: List[QuoteDiscrepancy] = []

    if provided.residual_value is not None:
        found.append(_compare(
            "residualValue", "Residual/Balloon Payment",
            provided.residual_value, breakdown.residual_value, cfg.COST_DISCREPANCY_PCT,
            higher=(
                "The quote's residual is higher than the ATO minimum residual value. "
                "This increases your balloon payment."
            ),
            lower=(
                "The quote's residual is lower than the ATO minimum residual value. "
                "This may not meet ATO requirements."
            ),
        ))

    if provided.total_finance_charges is not None:
        found.append(_compare(
            "financeCharges", "Total Interest Charges",
            provided.total_finance_charges, breakdown.finance_charges, cfg.COST_DISCREPANCY_PCT,
            higher=(
                "The quote's interest charges are higher than expected from the stated "
                "interest rate. You may be paying more than the advertised rate suggests."
            ),
            lower=(
                "The quote's interest charges are lower than expected from the stated "
                "interest rate. Double-check the calculation."
            ),
        ))

    if provided.fortnightly_payment is not None:
        found.append(_payment_check(
            "fortnightlyPayment", "Fortnightly Payment",
            provided.fortnightly_payment, per_year / cfg.FORTNIGHTS_PER_YEAR,
        ))

    if provided.monthly_payment is not None:
        found.append(_payment_check(
            "monthlyPayment", "Monthly Payment",
            provided.monthly_payment, per_year / cfg.MONTHS_PER_YEAR,
        ))

    if provided.total_payments is not None:
        found.append(_payment_check(
            "totalPayments", "Total Payments",
            provided.total_payments, breakdown.net_cost_before_residual,
        ))

    if provided.tax_savings is not None:
        found.append(_compare(
            "taxSavings", "Tax Savings",
            provided.tax_savings, breakdown.tax_savings, cfg.SAVINGS_DISCREPANCY_PCT,
            higher=(
                "The quote's tax savings estimate is higher than our calculation at "
                "current tax rates. They may be using optimistic assumptions."
            ),
            lower=(
                "The quote's tax savings estimate is lower than our calculation at "
                "current tax rates. Their estimate seems conservative."
            ),
        ))

    if provided.gst_savings is not None:
        found.append(_compare(
            "gstSavings", "GST Savings",
            provided.gst_savings, breakdown.gst_savings, cfg.SAVINGS_DISCREPANCY_PCT,
            higher="The quote's GST savings are higher than expected. Verify what items they're claiming GST credits on.",
            lower="The quote's GST savings are lower than expected. Their GST calculation may be conservative.",
        ))

    if provided.total_lease_cost is not None:
        found.append(_total_lease_cost_check(provided.total_lease_cost, breakdown))

    n_significant = sum(1 for d in found if d.is_significant)
    return QuoteValidation(
        discrepancies=found,
        has_significant_issues=n_significant > 0,
        overall_assessment=assess(n_significant),
    )
