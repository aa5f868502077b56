"""
CLI interface and shared display-data computation for the
novated lease estimator.
"""

from __future__ import annotations

import sys
from typing import Any, Dict, List, Optional

import report
from analysis import LeaseAnalysis, analyse_quote
from quote import (
    Employee,
    Fees,
    FBTSettings,
    LeaseTerms,
    QuoteInput,
    RunningCosts,
    Vehicle,
    default_quote,
)


# ═══════════════════════════════════════════════════════════════════
# Formatting helpers
# ═══════════════════════════════════════════════════════════════════

def fmt(val: float, decimals: int = 0) -> str:
    """Format number as $X,XXX (negative as -$X,XXX)."""
    sign = "-" if val < 0 else ""
    return f"{sign}${abs(val):,.{decimals}f}"


def pct(val: float, decimals: int = 1) -> str:
    return f"{val:.{decimals}f}%"


# ═══════════════════════════════════════════════════════════════════
# Input collection (CLI)
# ═══════════════════════════════════════════════════════════════════

def _strip_currency(s: str) -> str:
    """Remove currency symbols, commas, spaces."""
    return s.replace("$", "").replace(",", "").replace(" ", "")


def _prompt_float(
    label: str,
    default: Any,
    min_val: float | None = None,
    max_val: float | None = None,
    currency: bool = False,
) -> float:
    while True:
        raw = input(f"  {label} [{default}]: ").strip()
        if not raw:
            return float(_strip_currency(str(default))) if currency else float(default)
        try:
            val = float(_strip_currency(raw) if currency else raw.replace("%", ""))
            if min_val is not None and val < min_val:
                print(f"    Must be at least {min_val}")
                continue
            if max_val is not None and val > max_val:
                print(f"    Must be at most {max_val}")
                continue
            return val
        except ValueError:
            print("    Invalid number, try again.")


def _prompt_int(
    label: str,
    default: int,
    min_val: int | None = None,
    max_val: int | None = None,
) -> int:
    while True:
        raw = input(f"  {label} [{default}]: ").strip()
        if not raw:
            return default
        try:
            val = int(float(_strip_currency(raw)))
            if min_val is not None and val < min_val:
                print(f"    Must be at least {min_val}")
                continue
            if max_val is not None and val > max_val:
                print(f"    Must be at most {max_val}")
                continue
            return val
        except ValueError:
            print("    Invalid number, try again.")


def _prompt_choice(label: str, options: list[str], default: str) -> str:
    opts = "/".join(options)
    while True:
        raw = input(f"  {label} ({opts}) [{default}]: ").strip().lower()
        if not raw:
            return default
        if raw in options:
            return raw
        print(f"    Choose from: {opts}")


def _money(label: str, default: float) -> float:
    return _prompt_float(label, f"${default:,.0f}", 0, currency=True)


def collect_inputs() -> QuoteInput:
    """Prompt the user for all quote parameters."""
    d = default_quote()
    print("\n  Enter your quote details (press Enter for defaults):\n")

    price = _money("Vehicle price (drive-away)", d.vehicle.purchase_price)
    years = _prompt_int("Lease term (years)", d.years, 1, 5)
    rate = _prompt_float("Interest rate %/yr", d.lease_terms.interest_rate * 100, 0, 100) / 100
    km = _prompt_int("Kilometres per year", int(d.lease_terms.annual_km), 0)

    print("\n  Fees:")
    est = _money("Establishment fee", d.fees.establishment_fee)
    admin = _money("Monthly admin fee", d.fees.monthly_admin_fee)
    eol = _money("End-of-lease fee", d.fees.end_of_lease_fee)

    print("\n  Running costs per year:")
    rc = d.running_costs
    running = RunningCosts(
        fuel=_money("Fuel / charging", rc.fuel),
        insurance=_money("Insurance", rc.insurance),
        maintenance=_money("Maintenance", rc.maintenance),
        registration=_money("Registration", rc.registration),
        tyres=_money("Tyres", rc.tyres),
    )

    print("\n  FBT and employee:")
    statutory = _prompt_choice("Statutory FBT method?", ["yes", "no"], "yes") == "yes"
    stat_rate = _prompt_float("Statutory rate % (0 if exempt)", 20.0, 0, 100) / 100
    contribution = _money("Post-tax employee contribution /yr", d.fbt.employee_contribution)
    salary = _money("Annual salary", d.employee.annual_salary)
    taxable = _money("Taxable income", salary)
    has_help = _prompt_choice("HELP debt?", ["yes", "no"], "no") == "yes"
    help_rate = _prompt_float("HELP repayment rate %", 0.0, 0, 10) / 100 if has_help else 0.0

    return QuoteInput(
        vehicle=Vehicle(purchase_price=price, make=d.vehicle.make, model=d.vehicle.model, year=d.vehicle.year),
        lease_terms=LeaseTerms(duration_years=years, interest_rate=rate, annual_km=km),
        fees=Fees(establishment_fee=est, monthly_admin_fee=admin, end_of_lease_fee=eol),
        running_costs=running,
        fbt=FBTSettings(
            employee_contribution=contribution,
            use_statutory_method=statutory,
            statutory_rate=stat_rate,
        ),
        employee=Employee(
            annual_salary=salary,
            taxable_income=taxable,
            has_help_debt=has_help,
            help_repayment_rate=help_rate,
        ),
    )


# ═══════════════════════════════════════════════════════════════════
# Shared display-data computation (used by CLI and web app)
# ═══════════════════════════════════════════════════════════════════

def compute_display_data(a: LeaseAnalysis) -> Dict[str, Any]:
    """Extract every metric needed for the output sections."""
    q = a.quote
    b = a.breakdown
    years = q.years
    vehicle = " ".join(str(p) for p in (q.vehicle.year, q.vehicle.make, q.vehicle.model) if p)

    net_per_year = b.net_cost_before_residual / years
    total_savings = b.tax_savings + b.gst_savings
    saving_pct = total_savings / b.total_gross_cost * 100 if b.total_gross_cost > 0 else 0.0

    return {
        # Inputs echo
        "vehicle": vehicle or "Vehicle",
        "price": q.price,
        "years": years,
        "interest_rate": q.lease_terms.interest_rate,
        "salary": q.employee.annual_salary,
        "taxable_income": q.employee.taxable_income,
        "leaser": q.metadata.leaser_name if q.metadata else None,
        "warnings": list(q.metadata.customer_warnings) if q.metadata else [],
        # Totals
        "breakdown": b,
        "yearly": a.yearly,
        "net_per_year": net_per_year,
        "net_per_month": net_per_year / 12,
        "net_per_fortnight": net_per_year / 26,
        "total_savings": total_savings,
        "saving_pct": saving_pct,
        # Tax
        "tax": a.tax_impact,
        "marginal": a.tax_impact.before_lease.marginal_tax_rate,
        # Comparisons
        "buy_vs_lease": a.buy_vs_lease,
        "winner": "lease" if a.buy_vs_lease.lease_is_better else "buy",
        "scenarios": a.scenarios,
        "tracker": a.tracker,
        "validation": a.validation,
    }


def generate_verdict_text(d: Dict[str, Any]) -> str:
    """Build a 2-3 sentence plain-English verdict."""
    b = d["breakdown"]
    bvl = d["buy_vs_lease"]
    gap = fmt(abs(bvl.difference))
    marginal = pct(d["marginal"] * 100, 0)

    if d["winner"] == "lease":
        return (
            f"The novated lease comes out {gap} ahead of paying cash over "
            f"{d['years']} years. Packaging at your {marginal} marginal rate "
            f"saves {fmt(b.tax_savings)} in tax and {fmt(b.gst_savings)} in GST, "
            f"which outweighs {fmt(b.finance_charges)} of interest and "
            f"{fmt(b.fbt_cost)} of FBT."
        )
    return (
        f"Paying cash comes out {gap} ahead of the novated lease over "
        f"{d['years']} years. At a {marginal} marginal rate the "
        f"{fmt(b.tax_savings + b.gst_savings)} of tax and GST savings does not "
        f"cover {fmt(b.finance_charges)} of interest, {fmt(b.fbt_cost)} of FBT "
        f"and the {fmt(b.residual_value)} residual."
    )


# ═══════════════════════════════════════════════════════════════════
# Box-drawing CLI output
# ═══════════════════════════════════════════════════════════════════

W = 78  # box width (characters)
_H = "═"


def _box_top(title: str) -> str:
    inner = W - 2
    return (
        f"╔{_H * inner}╗\n"
        f"║  {title:<{inner - 2}}║\n"
        f"╠{_H * inner}╣"
    )


def _box_line(text: str = "") -> str:
    inner = W - 4
    if len(text) > inner:
        text = text[:inner]
    return f"║  {text:<{inner}}║"


def _box_row(label: str, value: str, lw: int = 38) -> str:
    return _box_line(f"{label:<{lw}}{value}")


def _box_bottom() -> str:
    return f"╚{_H * (W - 2)}╝"


def _wrap(text: str, width: int = W - 6) -> List[str]:
    lines: List[str] = []
    line = ""
    for word in text.split():
        if len(line) + len(word) + 1 <= width:
            line = f"{line} {word}" if line else word
        else:
            lines.append(line)
            line = word
    if line:
        lines.append(line)
    return lines


def _print_section(title: str, rows: List[str]) -> None:
    """Print a titled box with content rows."""
    print(_box_top(title))
    for r in rows:
        print(r)
    print(_box_bottom())
    print()


# ═══════════════════════════════════════════════════════════════════
# CLI Section Printers
# ═══════════════════════════════════════════════════════════════════

def _print_quote(d: Dict[str, Any]) -> None:
    rows = [
        _box_row("Vehicle", d["vehicle"]),
        _box_row("Price", fmt(d["price"])),
        _box_row("Term", f"{d['years']} years at {pct(d['interest_rate'] * 100, 2)}"),
        _box_row("Salary", fmt(d["salary"])),
        _box_row("Taxable income", fmt(d["taxable_income"])),
    ]
    if d["leaser"]:
        rows.append(_box_row("Provider", d["leaser"]))
    for w in d["warnings"]:
        rows.extend(_box_line(line) for line in _wrap(f"! {w}"))
    _print_section("YOUR QUOTE", rows)


def _print_breakdown(d: Dict[str, Any]) -> None:
    b = d["breakdown"]
    rows = [
        _box_row("Vehicle price", fmt(b.vehicle_price)),
        _box_row("Finance charges", fmt(b.finance_charges)),
        _box_row("Running costs", fmt(b.running_costs)),
        _box_row("FBT", fmt(b.fbt_cost)),
        _box_row("Total gross cost", fmt(b.total_gross_cost)),
        _box_line(),
        _box_row("Establishment fee", fmt(b.establishment_fee)),
        _box_row("Admin fees", fmt(b.admin_fees)),
        _box_row("End-of-lease fee", fmt(b.end_of_lease_fee)),
        _box_line(),
        _box_row("Tax savings", fmt(-b.tax_savings)),
        _box_row("GST savings", fmt(-b.gst_savings)),
        _box_row("Net cost before residual", fmt(b.net_cost_before_residual)),
        _box_row("Residual (balloon)", fmt(b.residual_value)),
        _box_row("Total net cost", fmt(b.total_net_cost)),
        _box_line(),
        _box_row("Net cost per fortnight", fmt(d["net_per_fortnight"])),
        _box_row("Net cost per month", fmt(d["net_per_month"])),
    ]
    _print_section("COST BREAKDOWN", rows)


def _print_yearly(d: Dict[str, Any]) -> None:
    h = f"{'Yr':>2}  {'Principal':>10}  {'Interest':>9}  {'Running':>8}  {'FBT':>8}  {'Savings':>9}  {'Net':>9}"
    rows = [_box_line(h), _box_line("─" * (W - 6))]
    for y in d["yearly"]:
        rows.append(_box_line(
            f"{y.year:>2}  {fmt(y.principal_payment):>10}  {fmt(y.interest_payment):>9}  "
            f"{fmt(y.running_costs):>8}  {fmt(y.fbt_cost):>8}  "
            f"{fmt(y.tax_savings + y.gst_savings):>9}  {fmt(y.net_cost):>9}"
        ))
    _print_section("YEAR BY YEAR", rows)


def _print_tax(d: Dict[str, Any]) -> None:
    t = d["tax"]
    before, after = t.before_lease, t.after_lease
    rows = [
        _box_row("Annual packaged amount", fmt(t.annual_package_amount)),
        _box_row("Marginal rate", pct(before.marginal_tax_rate * 100)),
        _box_line(),
        _box_row("", f"{'Without':>12}  {'With lease':>12}"),
        _box_row("Taxable income", f"{fmt(before.taxable_income):>12}  {fmt(after.taxable_income):>12}"),
        _box_row("Income tax", f"{fmt(before.income_tax):>12}  {fmt(after.income_tax):>12}"),
        _box_row("Medicare levy", f"{fmt(before.medicare_levy):>12}  {fmt(after.medicare_levy):>12}"),
        _box_row("HELP repayment", f"{fmt(before.help_repayment):>12}  {fmt(after.help_repayment):>12}"),
        _box_row("Net income", f"{fmt(before.net_income):>12}  {fmt(after.net_income):>12}"),
        _box_line(),
        _box_row("Annual tax saving", fmt(t.tax_saving)),
    ]
    _print_section("TAX IMPACT", rows)


def _print_buy_vs_lease(d: Dict[str, Any]) -> None:
    c = d["buy_vs_lease"]
    b, n = c.buy_outright, c.novated_lease
    rows = [
        _box_row("", f"{'Buy cash':>12}  {'Lease':>12}"),
        _box_row("Total cost", f"{fmt(b.total_cost):>12}  {fmt(n.total_cost):>12}"),
        _box_row("Vehicle value at end", f"{fmt(b.vehicle_value_at_end):>12}  {fmt(n.vehicle_value_at_end):>12}"),
        _box_row("Net position", f"{fmt(b.net_position):>12}  {fmt(n.net_position):>12}"),
        _box_line(),
        _box_row("Winner", "NOVATED LEASE" if d["winner"] == "lease" else "BUY OUTRIGHT"),
        _box_line(c.recommendation),
        _box_line(),
    ]
    rows.extend(_box_line(line) for line in _wrap(generate_verdict_text(d)))
    _print_section("BUY VS LEASE", rows)


def _print_post_lease(d: Dict[str, Any]) -> None:
    rows: List[str] = []
    for s in d["scenarios"]:
        rows.append(_box_row(s.scenario_type.upper(), fmt(s.financial_outcome)))
        rows.extend(_box_line(f"  {line}") for line in _wrap(s.recommendation, W - 8))
    _print_section("AT LEASE END", rows)


def _print_validation(d: Dict[str, Any]) -> None:
    v = d["validation"]
    if not v.discrepancies:
        return
    rows = [_box_row("Assessment", v.overall_assessment.replace("_", " ").upper()), _box_line()]
    for disc in v.discrepancies:
        flag = " !" if disc.is_significant else ""
        rows.append(_box_line(disc.label))
        rows.append(_box_row(
            "  quote vs ours",
            f"{fmt(disc.quote_value)} vs {fmt(disc.calculated_value)} ({disc.percentage_diff:+.1f}%){flag}",
        ))
        if disc.explanation:
            rows.extend(_box_line(f"  {line}") for line in _wrap(disc.explanation, W - 8))
    _print_section("QUOTE CHECK", rows)


def print_report(d: Dict[str, Any]) -> None:
    _print_quote(d)
    _print_breakdown(d)
    _print_yearly(d)
    _print_tax(d)
    _print_buy_vs_lease(d)
    _print_post_lease(d)
    _print_validation(d)


# ═══════════════════════════════════════════════════════════════════
# Main CLI entry point
# ═══════════════════════════════════════════════════════════════════

def run_cli(quote: Optional[QuoteInput] = None, pdf_path: Optional[str] = None) -> Dict[str, Any]:
    """Run the full CLI workflow."""
    # Ensure box-drawing characters render on Windows
    try:
        sys.stdout.reconfigure(encoding="utf-8")
    except (AttributeError, OSError):
        pass
    print()
    print("=" * W)
    print("  Novated Lease Estimator (2025-26)")
    print("=" * W)

    if quote is None:
        quote = collect_inputs()

    d = compute_display_data(analyse_quote(quote))
    print()
    print_report(d)

    if pdf_path:
        print("  Generating PDF report...")
        path = report.generate_pdf(d, generate_verdict_text(d), pdf_path)
        print(f"  Saved to {path}\n")
    return d


if __name__ == "__main__":
    run_cli()
