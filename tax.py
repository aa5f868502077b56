"""
Australian personal tax functions for the novated lease estimator.

The bracket functions accept numpy arrays so a whole range of incomes
can be evaluated at once (used by the charts). Scalar inputs work too
(promoted internally). ``calculate_income_tax`` wraps them for a
single taxpayer.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

import config as cfg


# ─── Bracket lookup ─────────────────────────────────────────────────

_BRACKET_MIN = np.array([b[0] for b in cfg.TAX_BRACKETS], dtype=float)
_BRACKET_MAX = np.array([b[1] for b in cfg.TAX_BRACKETS], dtype=float)
_BRACKET_RATE = np.array([b[2] for b in cfg.TAX_BRACKETS], dtype=float)
_BRACKET_BASE = np.array([b[3] for b in cfg.TAX_BRACKETS], dtype=float)


def _bracket_index(taxable_income: np.ndarray) -> np.ndarray:
    """Index of the first bracket whose upper limit is >= the income.

    Brackets are whole-dollar ranges, so an income falling between two
    of them (e.g. $18,200.50) lands in the upper bracket with nothing
    taxed above its minimum.
    """
    idx = np.searchsorted(_BRACKET_MAX, taxable_income, side="left")
    return np.minimum(idx, len(_BRACKET_MAX) - 1)


# ─── Income Tax ──────────────────────────────────────────────────────

def income_tax(taxable_income: np.ndarray) -> np.ndarray:
    """Resident income tax for 2025/26, excluding the Medicare levy.

    Parameters
    ----------
    taxable_income : array_like
        Annual taxable income. Must be non-negative.

    Returns
    -------
    np.ndarray
        Bracket base tax plus the bracket rate on income above its minimum.
    """
    taxable_income = np.asarray(taxable_income, dtype=float)
    idx = _bracket_index(taxable_income)
    above_min = np.maximum(taxable_income - _BRACKET_MIN[idx], 0.0)
    return _BRACKET_BASE[idx] + above_min * _BRACKET_RATE[idx]


def medicare_levy(taxable_income: np.ndarray) -> np.ndarray:
    """Flat 2% Medicare levy (no low-income threshold)."""
    return np.asarray(taxable_income, dtype=float) * cfg.MEDICARE_LEVY_RATE


def help_repayment(
    taxable_income: np.ndarray,
    has_help_debt: bool = False,
    help_rate: float = 0.0,
) -> np.ndarray:
    """Compulsory HELP repayment at a flat rate of taxable income."""
    taxable_income = np.asarray(taxable_income, dtype=float)
    if not has_help_debt:
        return np.zeros_like(taxable_income)
    return taxable_income * help_rate


def marginal_tax_rate(
    taxable_income: np.ndarray,
    has_help_debt: bool = False,
    help_rate: float = 0.0,
) -> np.ndarray:
    """Composite marginal rate: bracket rate + Medicare + HELP rate.

    This is the multiplier applied to every salary-packaged dollar when
    estimating tax savings.
    """
    taxable_income = np.asarray(taxable_income, dtype=float)
    rate = _BRACKET_RATE[_bracket_index(taxable_income)] + cfg.MEDICARE_LEVY_RATE
    if has_help_debt:
        rate = rate + help_rate
    return rate


# ─── Single-taxpayer summary ────────────────────────────────────────

@dataclass
class TaxCalculation:
    """Tax position for one taxable income."""

    gross_income: float
    taxable_income: float
    income_tax: float
    medicare_levy: float
    help_repayment: float
    total_tax: float
    net_income: float
    effective_tax_rate: float    # total tax / income, 0 when income is 0
    marginal_tax_rate: float

    def to_dict(self) -> dict:
        return {
            "grossIncome": self.gross_income,
            "taxableIncome": self.taxable_income,
            "incomeTax": self.income_tax,
            "medicareLevy": self.medicare_levy,
            "helpRepayment": self.help_repayment,
            "totalTax": self.total_tax,
            "netIncome": self.net_income,
            "effectiveTaxRate": self.effective_tax_rate,
            "marginalTaxRate": self.marginal_tax_rate,
        }


def calculate_income_tax(
    taxable_income: float,
    has_help_debt: bool = False,
    help_rate: float = 0.0,
) -> TaxCalculation:
    """Income tax, Medicare levy and HELP for a single taxable income.

    Parameters
    ----------
    taxable_income : float
        Annual taxable income (>= 0; callers validate).
    has_help_debt : bool
        Whether a HELP repayment applies.
    help_rate : float
        HELP repayment rate as a decimal, used only with a debt.

    Returns
    -------
    TaxCalculation
    """
    income = float(taxable_income)
    it = float(income_tax(income))
    ml = float(medicare_levy(income))
    help_amt = float(help_repayment(income, has_help_debt, help_rate))
    total = it + ml + help_amt

    return TaxCalculation(
        gross_income=income,
        taxable_income=income,
        income_tax=it,
        medicare_levy=ml,
        help_repayment=help_amt,
        total_tax=total,
        net_income=income - total,
        effective_tax_rate=total / income if income > 0 else 0.0,
        marginal_tax_rate=float(marginal_tax_rate(income, has_help_debt, help_rate)),
    )


# ─── Tests ───────────────────────────────────────────────────────────

if __name__ == "__main__":
    tests_passed = 0
    tests_failed = 0

    def check(name: str, actual: float, expected: float, tol: float = 1.0) -> None:
        global tests_passed, tests_failed
        passed = abs(actual - expected) <= tol
        status = "PASS" if passed else "FAIL"
        if passed:
            tests_passed += 1
        else:
            tests_failed += 1
        print(f"  [{status}] {name}: expected {expected}, got {actual:.2f}")

    print("=== Income Tax ===")
    check("IT on $18k", float(income_tax(18_000.0)), 0.0)
    check("IT on $45k", float(income_tax(45_000.0)), 4_287.84)
    check("IT on $80k", float(income_tax(80_000.0)), 14_787.70)
    check("IT on $200k", float(income_tax(200_000.0)), 56_137.55)

    print("\n=== Medicare / HELP ===")
    check("Medicare on $80k", float(medicare_levy(80_000.0)), 1_600.0)
    check("HELP 2% on $90k", float(help_repayment(90_000.0, True, 0.02)), 1_800.0)

    print("\n=== Marginal Rates ===")
    check("Marginal at $45k", float(marginal_tax_rate(45_000.0)) * 100, 18.0, tol=0.01)
    check("Marginal at $80k", float(marginal_tax_rate(80_000.0)) * 100, 32.0, tol=0.01)
    check("Marginal at $120k + HELP", float(marginal_tax_rate(120_000.0, True, 0.02)) * 100, 34.0, tol=0.01)
    check("Marginal at $200k", float(marginal_tax_rate(200_000.0)) * 100, 47.0, tol=0.01)

    print(f"\n{'='*50}")
    print(f"Results: {tests_passed} passed, {tests_failed} failed")
