"""
PDF report generation and reusable chart rendering for the
novated lease estimator.

Provides:
  - Multi-page PDF report (generate_pdf)
  - Base64-encoded chart images for web embedding (get_web_charts)
  - Individual chart renderers reusable by both CLI and web
"""

from __future__ import annotations

import base64
import io
from typing import Any, Dict, List

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.ticker import FuncFormatter
import numpy as np

import tax

# ═══════════════════════════════════════════════════════════════════
# Style constants
# ═══════════════════════════════════════════════════════════════════

BG = "#0a101f"
CARD = "#131b2e"
TEXT = "#f1f5f9"
TEXT2 = "#cbd5e1"
INDIGO = "#818cf8"
EMERALD = "#34d399"
AMBER = "#fbbf24"
RED = "#f87171"
SLATE = "#94a3b8"
VIOLET = "#a78bfa"
BORDER = "#1e293b"
INDIGO_DEEP = "#6366f1"
EMERALD_DEEP = "#10b981"

A4W, A4H = 8.27, 11.69
WEB_W, WEB_H = 10, 6


# ═══════════════════════════════════════════════════════════════════
# Axis formatters
# ═══════════════════════════════════════════════════════════════════

def _aud_fmt(x, _):
    if abs(x) >= 1e6:
        return f"${x / 1e6:.1f}M"
    if abs(x) >= 1e3:
        return f"${x / 1e3:.0f}k"
    return f"${x:.0f}"


def _pct_fmt(x, _):
    return f"{x:.0f}%"


AUD_FMT = FuncFormatter(_aud_fmt)
PCT_FMT = FuncFormatter(_pct_fmt)


# ═══════════════════════════════════════════════════════════════════
# Style helpers
# ═══════════════════════════════════════════════════════════════════

def _style(fig, *axes):
    """Apply dark theme to figure and all axes."""
    fig.patch.set_facecolor(BG)
    for ax in axes:
        ax.set_facecolor(CARD)
        ax.tick_params(colors=TEXT, labelsize=8)
        ax.xaxis.label.set_color(TEXT)
        ax.yaxis.label.set_color(TEXT)
        ax.title.set_color(TEXT)
        for spine in ax.spines.values():
            spine.set_color(BORDER)
        ax.grid(True, alpha=0.15, color=SLATE)


def _legend(ax, loc="upper left"):
    ax.legend(loc=loc, fontsize=8, facecolor=CARD, edgecolor=BORDER, labelcolor=TEXT)


def _wrapped_text(fig, x: float, y: float, text: str, width: int = 85,
                  step: float = 0.022, **kw) -> float:
    """Draw word-wrapped text downwards from y; returns the next free y."""
    line = ""
    for word in text.split():
        if len(line) + len(word) + 1 <= width:
            line = f"{line} {word}" if line else word
        else:
            fig.text(x, y, line, **kw)
            y -= step
            line = word
    if line:
        fig.text(x, y, line, **kw)
        y -= step
    return y


# ═══════════════════════════════════════════════════════════════════
# Page 1: Summary (text only, dark background)
# ═══════════════════════════════════════════════════════════════════

def _page1_summary(d: Dict[str, Any], verdict_text: str) -> plt.Figure:
    fig = plt.figure(figsize=(A4W, A4H))
    fig.patch.set_facecolor(BG)
    b = d["breakdown"]

    fig.text(0.50, 0.93, "Novated Lease Estimate",
             ha="center", fontsize=18, color=TEXT, fontweight="bold")
    fig.text(0.50, 0.91, f"{d['vehicle']}  |  Australian tax year 2025-26",
             ha="center", fontsize=11, color=TEXT2)

    y = 0.86
    fig.text(0.08, y, "Your Quote", fontsize=13, color=TEXT, fontweight="bold")
    y -= 0.028
    params = [
        f"Price: ${d['price']:,.0f}  |  Term: {d['years']} years  |  "
        f"Interest: {d['interest_rate'] * 100:.2f}%",
        f"Salary: ${d['salary']:,.0f}  |  Taxable income: ${d['taxable_income']:,.0f}  |  "
        f"Marginal rate: {d['marginal'] * 100:.0f}%",
    ]
    for p in params:
        fig.text(0.10, y, p, fontsize=9, color=TEXT2)
        y -= 0.024

    y -= 0.025
    fig.text(0.08, y, "Whole-of-Lease Costs", fontsize=13, color=INDIGO, fontweight="bold")
    y -= 0.028
    lines = [
        ("Vehicle price", b.vehicle_price),
        ("Finance charges", b.finance_charges),
        ("Running costs", b.running_costs),
        ("FBT", b.fbt_cost),
        ("Total gross cost", b.total_gross_cost),
        ("Tax savings", -b.tax_savings),
        ("GST savings", -b.gst_savings),
        ("Net cost before residual", b.net_cost_before_residual),
        ("Residual (balloon)", b.residual_value),
        ("Total net cost", b.total_net_cost),
    ]
    for label, value in lines:
        fig.text(0.10, y, label, fontsize=9.5, color=TEXT2)
        fig.text(0.60, y, f"${value:,.0f}", fontsize=9.5, color=TEXT2, ha="right")
        y -= 0.022

    y -= 0.01
    fig.text(0.10, y,
             f"About ${d['net_per_fortnight']:,.0f} per fortnight "
             f"(${d['net_per_month']:,.0f} per month) after savings",
             fontsize=9.5, color=EMERALD)
    y -= 0.035

    winner_color = EMERALD if d["winner"] == "lease" else INDIGO
    fig.text(0.08, y, "Buy vs Lease", fontsize=13, color=TEXT, fontweight="bold")
    y -= 0.03
    fig.text(0.10, y, d["buy_vs_lease"].recommendation,
             fontsize=12, color=winner_color, fontweight="bold")
    y -= 0.03
    y = _wrapped_text(fig, 0.10, y, verdict_text, fontsize=9, color=TEXT2)

    v = d["validation"]
    if v.discrepancies:
        y -= 0.025
        fig.text(0.08, y, "Quote Check", fontsize=13, color=AMBER, fontweight="bold")
        y -= 0.028
        fig.text(0.10, y, v.overall_assessment.replace("_", " ").title(),
                 fontsize=10, color=AMBER)
        y -= 0.024
        for disc in v.discrepancies:
            color = RED if disc.is_significant else TEXT2
            fig.text(0.10, y,
                     f"{disc.label}: quote ${disc.quote_value:,.0f} vs "
                     f"${disc.calculated_value:,.0f} ({disc.percentage_diff:+.1f}%)",
                     fontsize=8.5, color=color)
            y -= 0.02

    fig.text(0.50, 0.03,
             "This is an estimate, not financial or tax advice.",
             ha="center", fontsize=8, color=SLATE, style="italic")
    return fig


# ═══════════════════════════════════════════════════════════════════
# Yearly costs (stacked bars + net cost line)
# ═══════════════════════════════════════════════════════════════════

def _chart_yearly(d: Dict[str, Any], figsize=(WEB_W, WEB_H)) -> plt.Figure:
    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    _style(fig, ax)

    yearly = d["yearly"]
    x = np.array([y.year for y in yearly])
    layers = [
        ("Principal", np.array([y.principal_payment for y in yearly]), INDIGO),
        ("Interest", np.array([y.interest_payment for y in yearly]), VIOLET),
        ("Running costs", np.array([y.running_costs for y in yearly]), SLATE),
        ("Fees", np.array([y.fees for y in yearly]), AMBER),
        ("FBT", np.array([y.fbt_cost for y in yearly]), RED),
    ]
    bottom = np.zeros(len(x))
    for label, values, color in layers:
        ax.bar(x, values, 0.6, bottom=bottom, color=color, label=label, linewidth=0)
        bottom = bottom + values

    savings = np.array([y.tax_savings + y.gst_savings for y in yearly])
    net = np.array([y.net_cost for y in yearly])
    ax.bar(x, -savings, 0.6, color=EMERALD, alpha=0.6, label="Tax + GST savings")
    ax.plot(x, net, color=TEXT, linewidth=2.2, marker="o", label="Net cost")
    ax.axhline(0, color=BORDER, linewidth=1)

    ax.set_xticks(x)
    ax.set_xticklabels([f"Year {int(i)}" for i in x])
    ax.yaxis.set_major_formatter(AUD_FMT)
    ax.set_ylabel("Cost per year")
    ax.set_title("Yearly Cost Breakdown", fontsize=13, pad=12)
    _legend(ax, loc="upper right")
    return fig


# ═══════════════════════════════════════════════════════════════════
# Lease account tracker
# ═══════════════════════════════════════════════════════════════════

def _chart_lease_account(d: Dict[str, Any], figsize=(WEB_W, WEB_H)) -> plt.Figure:
    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    _style(fig, ax)

    points = d["tracker"]
    x = np.arange(len(points))
    balance = [p.remaining_balance for p in points]
    paid = [p.paid_to_date for p in points]

    ax.fill_between(x, balance, color=INDIGO, alpha=0.25)
    ax.plot(x, balance, color=INDIGO, linewidth=2.2, label="Remaining balance")
    ax.plot(x, paid, color=EMERALD, linewidth=2.2, marker="o", label="Paid to date")
    ax.axhline(points[0].residual, color=AMBER, linestyle="--", linewidth=1.5,
               label=f"Residual (${points[0].residual:,.0f})")

    ax.set_xticks(x)
    ax.set_xticklabels([p.label for p in points])
    ax.yaxis.set_major_formatter(AUD_FMT)
    ax.set_title("Lease Account", fontsize=13, pad=12)
    _legend(ax, loc="center left")
    return fig


# ═══════════════════════════════════════════════════════════════════
# Buy vs lease (grouped bars)
# ═══════════════════════════════════════════════════════════════════

def _chart_buy_vs_lease(d: Dict[str, Any], figsize=(WEB_W, WEB_H - 1)) -> plt.Figure:
    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    _style(fig, ax)

    c = d["buy_vs_lease"]
    labels = ["Total cost", "Value at end", "Net position"]
    buy = [c.buy_outright.total_cost, c.buy_outright.vehicle_value_at_end, c.buy_outright.net_position]
    lse = [c.novated_lease.total_cost, c.novated_lease.vehicle_value_at_end, c.novated_lease.net_position]

    x = np.arange(len(labels))
    w = 0.35
    ax.bar(x - w / 2, buy, w, color=INDIGO, label="Buy outright",
           edgecolor=INDIGO_DEEP, linewidth=0.5)
    ax.bar(x + w / 2, lse, w, color=EMERALD, label="Novated lease",
           edgecolor=EMERALD_DEEP, linewidth=0.5)
    ax.axhline(0, color=BORDER, linewidth=1)
    ax.set_xticks(x)
    ax.set_xticklabels(labels)
    ax.yaxis.set_major_formatter(AUD_FMT)
    ax.set_title("Buy Outright vs Novated Lease", fontsize=13, pad=12)
    ax.annotate(
        c.recommendation, xy=(0.5, 0.94), xycoords="axes fraction",
        fontsize=10, color=EMERALD if c.lease_is_better else INDIGO,
        ha="center", fontweight="bold",
    )
    _legend(ax, loc="lower left")
    return fig


# ═══════════════════════════════════════════════════════════════════
# Tax position (before/after bars + marginal rate curve)
# ═══════════════════════════════════════════════════════════════════

def _chart_tax(d: Dict[str, Any], figsize=(WEB_W, WEB_H)) -> plt.Figure:
    fig, (ax_bar, ax_rate) = plt.subplots(1, 2, figsize=figsize, constrained_layout=True,
                                          gridspec_kw={"width_ratios": [1, 1.4]})
    _style(fig, ax_bar, ax_rate)

    t = d["tax"]
    cols = [t.before_lease, t.after_lease]
    x = np.arange(2)
    bottom = np.zeros(2)
    for label, attr, color in [
        ("Income tax", "income_tax", RED),
        ("Medicare", "medicare_levy", AMBER),
        ("HELP", "help_repayment", VIOLET),
        ("Net income", "net_income", EMERALD),
    ]:
        values = np.array([getattr(c, attr) for c in cols])
        ax_bar.bar(x, values, 0.55, bottom=bottom, color=color, label=label)
        bottom = bottom + values
    ax_bar.set_xticks(x)
    ax_bar.set_xticklabels(["Without lease", "With lease"])
    ax_bar.yaxis.set_major_formatter(AUD_FMT)
    ax_bar.set_title(f"Tax saving ${t.tax_saving:,.0f}/yr", fontsize=11, pad=10)
    _legend(ax_bar, loc="upper right")

    # Effective and marginal rates across a range of incomes
    top = max(250_000.0, d["taxable_income"] * 1.5)
    incomes = np.linspace(0, top, 500)
    total = tax.income_tax(incomes) + tax.medicare_levy(incomes)
    effective = np.divide(total, incomes, out=np.zeros_like(incomes), where=incomes > 0) * 100
    marginal = tax.marginal_tax_rate(incomes) * 100
    ax_rate.plot(incomes, marginal, color=INDIGO, linewidth=2, drawstyle="steps-post",
                 label="Marginal rate")
    ax_rate.plot(incomes, effective, color=EMERALD, linewidth=2, label="Effective rate")
    ax_rate.axvline(t.before_lease.taxable_income, color=AMBER, linestyle="--", linewidth=1.2,
                    label="Your income")
    ax_rate.axvline(t.after_lease.taxable_income, color=SLATE, linestyle=":", linewidth=1.2,
                    label="After packaging")
    ax_rate.xaxis.set_major_formatter(AUD_FMT)
    ax_rate.yaxis.set_major_formatter(PCT_FMT)
    ax_rate.set_xlabel("Taxable income")
    ax_rate.set_title("Tax Rates (excl. HELP)", fontsize=11, pad=10)
    _legend(ax_rate, loc="lower right")
    return fig


# ═══════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════

def figure_to_base64(fig: plt.Figure) -> str:
    """Convert a matplotlib figure to a base64-encoded PNG string."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", facecolor=fig.get_facecolor(),
                dpi=150, bbox_inches="tight")
    buf.seek(0)
    b64 = base64.b64encode(buf.read()).decode()
    buf.close()
    return b64


def generate_pdf(
    d: Dict[str, Any],
    verdict_text: str,
    path: Any = "novated_lease_report.pdf",
) -> Any:
    """Generate the full PDF report into a file path or binary file object.

    Returns ``path``.
    """
    pages = [
        _page1_summary(d, verdict_text),
        _chart_yearly(d, figsize=(A4W, A4H * 0.55)),
        _chart_lease_account(d, figsize=(A4W, A4H * 0.55)),
        _chart_tax(d, figsize=(A4W, A4H * 0.55)),
        _chart_buy_vs_lease(d, figsize=(A4W, A4H * 0.55)),
    ]

    with PdfPages(path) as pdf:
        for fig in pages:
            pdf.savefig(fig, facecolor=fig.get_facecolor())
    for fig in pages:
        plt.close(fig)
    return path


def get_web_charts(d: Dict[str, Any]) -> List[str]:
    """Return base64-encoded PNG chart images for web embedding.

    Returns 4 charts:
      [0] Yearly cost breakdown
      [1] Lease account (balance vs paid to date)
      [2] Tax before/after and rate curves
      [3] Buy outright vs novated lease
    """
    chart_figs = [
        _chart_yearly(d),
        _chart_lease_account(d),
        _chart_tax(d),
        _chart_buy_vs_lease(d),
    ]

    images = [figure_to_base64(f) for f in chart_figs]
    for f in chart_figs:
        plt.close(f)
    return images
