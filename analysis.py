"""
Full analysis of a quote: every engine output in one bundle, plus the
side-by-side comparison of saved quotes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import config as cfg
import lease
from quote import QuoteInput
from storage import SavedQuote
from validation import QuoteValidation, validate_quote_values


@dataclass
class LeaseAnalysis:
    quote: QuoteInput
    yearly: List[lease.YearEntry]
    breakdown: lease.CostBreakdown
    buy_vs_lease: lease.BuyVsLeaseComparison
    scenarios: List[lease.PostLeaseScenario]
    tax_impact: lease.TaxImpact
    tracker: List[lease.TrackerPoint]
    validation: QuoteValidation

    def to_dict(self) -> Dict[str, Any]:
        return {
            "yearlyBreakdowns": [y.to_dict() for y in self.yearly],
            "costBreakdown": self.breakdown.to_dict(),
            "buyVsLease": self.buy_vs_lease.to_dict(),
            "postLeaseScenarios": [s.to_dict() for s in self.scenarios],
            "taxImpact": self.tax_impact.to_dict(),
            "leaseAccount": [p.to_dict() for p in self.tracker],
            "quoteValidation": self.validation.to_dict(),
        }


def analyse_quote(quote: QuoteInput) -> LeaseAnalysis:
    """Run the whole calculation chain for one quote."""
    yearly = lease.calculate_yearly_breakdowns(quote)
    breakdown = lease.calculate_cost_breakdown(quote)
    return LeaseAnalysis(
        quote=quote,
        yearly=yearly,
        breakdown=breakdown,
        buy_vs_lease=lease.calculate_buy_vs_lease(quote),
        scenarios=lease.calculate_post_lease_scenarios(quote),
        tax_impact=lease.calculate_tax_impact(quote, lease.annual_package_amount(quote, yearly)),
        tracker=lease.lease_account_tracker(yearly, breakdown.residual_value),
        validation=validate_quote_values(quote, breakdown),
    )


# ─── Quote comparison ─────────────────────────────────────────────────

@dataclass
class ComparisonRow:
    saved: SavedQuote
    breakdown: lease.CostBreakdown


@dataclass
class QuoteComparison:
    rows: List[ComparisonRow]
    best_net_cost_id: Optional[str]      # lowest total net cost
    best_tax_savings_id: Optional[str]   # highest tax savings


def compare_quotes(quotes: Sequence[SavedQuote]) -> QuoteComparison:
    """Cost breakdowns for up to three saved quotes, best values marked."""
    if len(quotes) > cfg.MAX_COMPARE_QUOTES:
        raise ValueError(f"At most {cfg.MAX_COMPARE_QUOTES} quotes can be compared at once")

    rows = [ComparisonRow(saved=q, breakdown=lease.calculate_cost_breakdown(q.data)) for q in quotes]
    if not rows:
        return QuoteComparison(rows=[], best_net_cost_id=None, best_tax_savings_id=None)

    cheapest = min(rows, key=lambda r: r.breakdown.total_net_cost)
    best_tax = max(rows, key=lambda r: r.breakdown.tax_savings)
    return QuoteComparison(
        rows=rows,
        best_net_cost_id=cheapest.saved.id,
        best_tax_savings_id=best_tax.saved.id,
    )
