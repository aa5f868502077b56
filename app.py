"""
Flask web application for the novated lease estimator.

Single-file app using render_template_string.  Run via ``python main.py``
which starts the dev server on localhost:5000.
"""

from __future__ import annotations

import io
import json
import logging
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, redirect, render_template_string, request, send_file, url_for

import config as cfg
import report
from analysis import analyse_quote, compare_quotes
from cli import compute_display_data, fmt, generate_verdict_text, pct
from quote import (
    Employee,
    FBTSettings,
    Fees,
    LeaseTerms,
    QuoteImportError,
    QuoteInput,
    QuoteProvidedValues,
    RunningCosts,
    Vehicle,
    default_quote,
    load_quote_json,
    parse_quote,
)
from sharing import QUERY_PARAM, decode_quote, encode_quote, share_url
from storage import QuoteStore

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.setdefault("STORE_PATH", None)          # None -> env var / default file


def _store() -> QuoteStore:
    return QuoteStore(app.config["STORE_PATH"])


# ═══════════════════════════════════════════════════════════════════
# Form parsing
# ═══════════════════════════════════════════════════════════════════

def _parse_currency(s: str) -> float:
    return float(s.replace("$", "").replace(",", "").replace(" ", ""))


def _money(form: dict, key: str, default: float) -> float:
    raw = str(form.get(key, "")).strip()
    return _parse_currency(raw) if raw else float(default)


def _optional_money(form: dict, key: str) -> Optional[float]:
    raw = str(form.get(key, "")).strip()
    return _parse_currency(raw) if raw else None


def _percent(form: dict, key: str, default: float) -> float:
    raw = str(form.get(key, "")).strip().replace("%", "")
    return float(raw) / 100 if raw else default


def parse_form(form: dict) -> QuoteInput:
    """Parse the HTML form into a QuoteInput. Raises ValueError on bad input."""
    d = default_quote()
    salary = _money(form, "salary", d.employee.annual_salary)
    has_help = form.get("help", "no") == "yes"

    claimed = {
        "residual_value": _optional_money(form, "q_residual"),
        "total_finance_charges": _optional_money(form, "q_finance"),
        "fortnightly_payment": _optional_money(form, "q_fortnightly"),
        "monthly_payment": _optional_money(form, "q_monthly"),
        "total_payments": _optional_money(form, "q_total_payments"),
        "total_lease_cost": _optional_money(form, "q_total_cost"),
        "tax_savings": _optional_money(form, "q_tax_savings"),
        "gst_savings": _optional_money(form, "q_gst_savings"),
    }
    provided = QuoteProvidedValues(**claimed) if any(v is not None for v in claimed.values()) else None

    year = str(form.get("vehicle_year", "")).strip()
    return QuoteInput(
        vehicle=Vehicle(
            purchase_price=_money(form, "price", d.vehicle.purchase_price),
            make=form.get("make", d.vehicle.make).strip(),
            model=form.get("model", d.vehicle.model).strip(),
            year=int(year) if year else None,
        ),
        lease_terms=LeaseTerms(
            duration_years=int(form.get("years") or d.years),
            interest_rate=_percent(form, "interest_rate", d.lease_terms.interest_rate),
            annual_km=_money(form, "annual_km", d.lease_terms.annual_km),
        ),
        fees=Fees(
            establishment_fee=_money(form, "establishment_fee", d.fees.establishment_fee),
            monthly_admin_fee=_money(form, "monthly_admin_fee", d.fees.monthly_admin_fee),
            end_of_lease_fee=_money(form, "end_of_lease_fee", d.fees.end_of_lease_fee),
        ),
        running_costs=RunningCosts(
            fuel=_money(form, "fuel", d.running_costs.fuel),
            insurance=_money(form, "insurance", d.running_costs.insurance),
            maintenance=_money(form, "maintenance", d.running_costs.maintenance),
            registration=_money(form, "registration", d.running_costs.registration),
            tyres=_money(form, "tyres", d.running_costs.tyres),
        ),
        fbt=FBTSettings(
            employee_contribution=_money(form, "contribution", 0),
            use_statutory_method=form.get("statutory", "yes") == "yes",
            statutory_rate=_percent(form, "statutory_rate", d.fbt.effective_statutory_rate),
        ),
        employee=Employee(
            annual_salary=salary,
            taxable_income=_money(form, "taxable_income", salary),
            has_help_debt=has_help,
            help_repayment_rate=_percent(form, "help_rate", 0.0) if has_help else 0.0,
        ),
        quote_provided_values=provided,
    )


def _num(value: float) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".")


def form_from_quote(q: QuoteInput) -> Dict[str, Any]:
    """Inverse of ``parse_form``: prefill values for the HTML form."""
    form = {
        "price": _num(q.vehicle.purchase_price),
        "make": q.vehicle.make,
        "model": q.vehicle.model,
        "vehicle_year": str(q.vehicle.year) if q.vehicle.year else "",
        "years": str(q.years),
        "interest_rate": _num(q.lease_terms.interest_rate * 100),
        "annual_km": _num(q.lease_terms.annual_km),
        "establishment_fee": _num(q.fees.establishment_fee),
        "monthly_admin_fee": _num(q.fees.monthly_admin_fee),
        "end_of_lease_fee": _num(q.fees.end_of_lease_fee),
        "fuel": _num(q.running_costs.fuel),
        "insurance": _num(q.running_costs.insurance),
        "maintenance": _num(q.running_costs.maintenance),
        "registration": _num(q.running_costs.registration),
        "tyres": _num(q.running_costs.tyres),
        "statutory": "yes" if q.fbt.use_statutory_method else "no",
        "statutory_rate": _num(q.fbt.effective_statutory_rate * 100),
        "contribution": _num(q.fbt.employee_contribution),
        "salary": _num(q.employee.annual_salary),
        "taxable_income": _num(q.employee.taxable_income),
        "help": "yes" if q.employee.has_help_debt else "no",
        "help_rate": _num(q.employee.help_rate * 100),
    }
    pv = q.quote_provided_values
    if pv is not None:
        for key, attr in [
            ("q_residual", "residual_value"),
            ("q_finance", "total_finance_charges"),
            ("q_fortnightly", "fortnightly_payment"),
            ("q_monthly", "monthly_payment"),
            ("q_total_payments", "total_payments"),
            ("q_total_cost", "total_lease_cost"),
            ("q_tax_savings", "tax_savings"),
            ("q_gst_savings", "gst_savings"),
        ]:
            value = getattr(pv, attr)
            form[key] = _num(value) if value is not None else ""
    return form


# ═══════════════════════════════════════════════════════════════════
# HTML Template
# ═══════════════════════════════════════════════════════════════════

HTML_TEMPLATE = r"""
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Novated Lease Estimator</title>
<link rel="preconnect" href="https://fonts.googleapis.com">
<link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700;800&display=swap" rel="stylesheet">
<style>
  *{margin:0;padding:0;box-sizing:border-box}
  html{scroll-behavior:smooth}

  :root{
    --bg-deep:#050816;
    --bg-surface:rgba(15,23,42,0.55);
    --bg-input:rgba(8,11,22,0.85);
    --border-subtle:rgba(99,102,241,0.1);
    --border-hover:rgba(99,102,241,0.25);
    --text-primary:#f1f5f9;
    --text-secondary:#94a3b8;
    --text-muted:#64748b;
    --indigo:#818cf8;
    --indigo-deep:#6366f1;
    --violet:#8b5cf6;
    --emerald:#34d399;
    --emerald-deep:#10b981;
    --amber:#fbbf24;
    --red:#f87171;
    --radius-lg:16px;
    --radius-md:10px;
  }

  body{
    background:var(--bg-deep);color:var(--text-primary);
    font-family:'Inter',system-ui,-apple-system,sans-serif;
    line-height:1.6;min-height:100vh;overflow-x:hidden;
  }
  .bg-mesh{
    position:fixed;inset:0;z-index:0;pointer-events:none;
    background:
      radial-gradient(ellipse 80% 50% at 15% 30%,rgba(99,102,241,0.13) 0%,transparent 70%),
      radial-gradient(ellipse 50% 60% at 55% 85%,rgba(16,185,129,0.07) 0%,transparent 70%);
  }
  .container{max-width:1140px;margin:0 auto;padding:2rem 1.5rem;position:relative;z-index:1}

  /* ── hero header ── */
  .hero{text-align:center;padding:1.5rem 0 2.5rem}
  .hero h1{
    font-size:clamp(1.5rem,4vw,2.5rem);font-weight:800;letter-spacing:-.035em;line-height:1.15;
    background:linear-gradient(135deg,#e2e8f0 0%,#818cf8 45%,#34d399 100%);
    -webkit-background-clip:text;-webkit-text-fill-color:transparent;background-clip:text;
  }
  .hero-sub{color:var(--text-secondary);margin-top:.6rem;font-size:.92rem}

  /* ── glass cards ── */
  .card{
    background:var(--bg-surface);backdrop-filter:blur(24px);
    border:1px solid var(--border-subtle);border-radius:var(--radius-lg);
    padding:1.8rem;margin-bottom:1.4rem;position:relative;overflow:hidden;
  }
  .card:hover{border-color:var(--border-hover)}
  .winner-glow-emerald{border-color:rgba(52,211,153,.35) !important}
  .winner-glow-indigo{border-color:rgba(129,140,248,.35) !important}
  h2{font-size:1.1rem;font-weight:700;margin-bottom:1.1rem;letter-spacing:-.015em}
  h3{font-size:.85rem;font-weight:700;color:var(--text-secondary);margin:1rem 0 .6rem;
     text-transform:uppercase;letter-spacing:.05em}

  /* ── form ── */
  .form-grid{display:grid;grid-template-columns:repeat(auto-fill,minmax(220px,1fr));gap:1rem 1.5rem}
  .form-group{display:flex;flex-direction:column}
  .form-group label{font-size:.78rem;color:var(--text-secondary);margin-bottom:.3rem;font-weight:500}
  .form-group input,.form-group select,textarea{
    background:var(--bg-input);border:1px solid rgba(71,85,105,.35);border-radius:var(--radius-md);
    color:var(--text-primary);padding:.6rem .85rem;font-size:.88rem;font-family:inherit;
  }
  textarea{width:100%;min-height:7rem;font-family:monospace;font-size:.8rem}
  details summary{cursor:pointer;color:var(--indigo);font-size:.88rem;margin-top:1rem}

  /* ── buttons ── */
  .btn{
    display:inline-flex;align-items:center;justify-content:center;gap:.5rem;
    padding:.7rem 1.8rem;border:none;border-radius:var(--radius-md);
    font-size:.92rem;font-weight:600;cursor:pointer;font-family:inherit;text-decoration:none;
  }
  .btn-primary{background:linear-gradient(135deg,var(--indigo-deep),var(--violet));color:#fff}
  .btn-success{background:linear-gradient(135deg,var(--emerald-deep),var(--emerald));color:#fff}
  .btn-small{padding:.35rem .9rem;font-size:.8rem;background:rgba(99,102,241,.15);color:var(--indigo)}

  .options-grid{display:grid;grid-template-columns:1fr 1fr;gap:1.4rem;margin-bottom:1.4rem}
  @media(max-width:768px){.options-grid{grid-template-columns:1fr}}

  /* ── stat rows ── */
  .stat-row{display:flex;justify-content:space-between;padding:.45rem 0;border-bottom:1px solid rgba(51,65,85,.3)}
  .stat-row:last-child{border-bottom:none}
  .stat-label{color:var(--text-secondary);font-size:.86rem}
  .stat-value{font-weight:600;font-size:.86rem;font-variant-numeric:tabular-nums}
  .stat-total .stat-label,.stat-total .stat-value{color:var(--text-primary);font-weight:700}
  .tag-lease{color:var(--emerald)}
  .tag-buy{color:var(--indigo)}
  .tag-amber{color:var(--amber)}
  .tag-red{color:var(--red)}

  .warning{
    background:rgba(245,158,11,.06);border:1px solid rgba(245,158,11,.18);
    border-radius:var(--radius-md);padding:.75rem 1rem;margin-top:.8rem;font-size:.84rem;color:#fcd34d;
  }
  .error{
    background:rgba(248,113,113,.08);border:1px solid rgba(248,113,113,.3);
    border-radius:var(--radius-md);padding:.75rem 1rem;margin-bottom:1.4rem;color:var(--red);
  }
  .verdict-winner{font-size:clamp(1.15rem,3vw,1.5rem);font-weight:800;margin-bottom:.3rem}
  .verdict-text{color:var(--text-secondary);line-height:1.75;font-size:.9rem}

  /* ── tables ── */
  .table-wrap{overflow-x:auto;border-radius:var(--radius-md);border:1px solid rgba(51,65,85,.25)}
  .tbl{width:100%;border-collapse:collapse;font-size:.84rem}
  .tbl th{
    text-align:left;padding:.6rem .8rem;background:rgba(15,23,42,.45);
    color:var(--text-secondary);font-weight:600;font-size:.76rem;text-transform:uppercase;
  }
  .tbl td{padding:.5rem .8rem;border-bottom:1px solid rgba(51,65,85,.15);font-variant-numeric:tabular-nums}
  .tbl .best{color:var(--emerald);font-weight:700}
  .tbl .significant td{color:var(--red)}

  .share-box{font-family:monospace;font-size:.78rem;word-break:break-all;color:var(--text-secondary)}
  .chart-img{width:100%;border-radius:var(--radius-md);margin-bottom:.5rem}
  .chart-desc{color:var(--text-muted);font-size:.82rem;margin-bottom:.8rem}
  .dl-section{text-align:center;padding:1.5rem 0 2rem}
  .footer{text-align:center;padding:1rem 0 2rem;color:var(--text-muted);font-size:.78rem}
  @media(max-width:640px){.container{padding:1rem}.card{padding:1.2rem}.form-grid{grid-template-columns:1fr}}
</style>
</head>
<body>
<div class="bg-mesh"></div>
<div class="container">

<header class="hero">
  <h1>Novated Lease Estimator</h1>
  <p class="hero-sub">What a salary-packaged car really costs you, 2025-26 Australian tax rates</p>
</header>

{% if error %}
<div class="error">{{ error }}</div>
{% endif %}
{% if message %}
<div class="warning">{{ message }}</div>
{% endif %}

<!-- Input Form -->
<div class="card">
  <h2>Your Quote</h2>
  <form method="POST" action="/" id="quote-form">
    <h3>Vehicle &amp; lease</h3>
    <div class="form-grid">
      <div class="form-group"><label>Make</label><input type="text" name="make" value="{{ form.make }}"></div>
      <div class="form-group"><label>Model</label><input type="text" name="model" value="{{ form.model }}"></div>
      <div class="form-group"><label>Year</label><input type="number" name="vehicle_year" value="{{ form.vehicle_year }}"></div>
      <div class="form-group"><label>Purchase price (drive-away)</label><input type="text" name="price" value="{{ form.price }}"></div>
      <div class="form-group">
        <label>Lease term (years)</label>
        <select name="years">
          {% for y in [1, 2, 3, 4, 5] + ([form.years|int] if form.years|int > 5 else []) %}
          <option value="{{ y }}" {{ 'selected' if form.years|string == y|string }}>{{ y }}</option>
          {% endfor %}
        </select>
      </div>
      <div class="form-group"><label>Interest rate %/yr</label><input type="number" step="0.01" name="interest_rate" value="{{ form.interest_rate }}"></div>
      <div class="form-group"><label>Kilometres per year</label><input type="text" name="annual_km" value="{{ form.annual_km }}"></div>
    </div>

    <h3>Fees</h3>
    <div class="form-grid">
      <div class="form-group"><label>Establishment fee</label><input type="text" name="establishment_fee" value="{{ form.establishment_fee }}"></div>
      <div class="form-group"><label>Monthly admin fee</label><input type="text" name="monthly_admin_fee" value="{{ form.monthly_admin_fee }}"></div>
      <div class="form-group"><label>End-of-lease fee</label><input type="text" name="end_of_lease_fee" value="{{ form.end_of_lease_fee }}"></div>
    </div>

    <h3>Running costs per year</h3>
    <div class="form-grid">
      <div class="form-group"><label>Fuel / charging</label><input type="text" name="fuel" value="{{ form.fuel }}"></div>
      <div class="form-group"><label>Insurance</label><input type="text" name="insurance" value="{{ form.insurance }}"></div>
      <div class="form-group"><label>Maintenance</label><input type="text" name="maintenance" value="{{ form.maintenance }}"></div>
      <div class="form-group"><label>Registration</label><input type="text" name="registration" value="{{ form.registration }}"></div>
      <div class="form-group"><label>Tyres</label><input type="text" name="tyres" value="{{ form.tyres }}"></div>
    </div>

    <h3>FBT &amp; employee</h3>
    <div class="form-grid">
      <div class="form-group">
        <label>Statutory FBT method</label>
        <select name="statutory">
          <option value="yes" {{ 'selected' if form.statutory != 'no' }}>Yes</option>
          <option value="no" {{ 'selected' if form.statutory == 'no' }}>No (exempt)</option>
        </select>
      </div>
      <div class="form-group"><label>Statutory rate %</label><input type="number" step="0.1" name="statutory_rate" value="{{ form.statutory_rate }}"></div>
      <div class="form-group"><label>Post-tax contribution /yr</label><input type="text" name="contribution" value="{{ form.contribution }}"></div>
      <div class="form-group"><label>Annual salary</label><input type="text" name="salary" value="{{ form.salary }}"></div>
      <div class="form-group"><label>Taxable income</label><input type="text" name="taxable_income" value="{{ form.taxable_income }}"></div>
      <div class="form-group">
        <label>HELP debt</label>
        <select name="help">
          <option value="no" {{ 'selected' if form.help != 'yes' }}>No</option>
          <option value="yes" {{ 'selected' if form.help == 'yes' }}>Yes</option>
        </select>
      </div>
      <div class="form-group"><label>HELP repayment rate %</label><input type="number" step="0.1" name="help_rate" value="{{ form.help_rate }}"></div>
    </div>

    <details {{ 'open' if form.q_residual or form.q_monthly or form.q_fortnightly }}>
      <summary>Figures from the provider's quote (optional)</summary>
      <div class="form-grid" style="margin-top:.8rem">
        <div class="form-group"><label>Residual value</label><input type="text" name="q_residual" value="{{ form.q_residual }}"></div>
        <div class="form-group"><label>Finance charges</label><input type="text" name="q_finance" value="{{ form.q_finance }}"></div>
        <div class="form-group"><label>Fortnightly payment</label><input type="text" name="q_fortnightly" value="{{ form.q_fortnightly }}"></div>
        <div class="form-group"><label>Monthly payment</label><input type="text" name="q_monthly" value="{{ form.q_monthly }}"></div>
        <div class="form-group"><label>Total payments</label><input type="text" name="q_total_payments" value="{{ form.q_total_payments }}"></div>
        <div class="form-group"><label>Total lease cost</label><input type="text" name="q_total_cost" value="{{ form.q_total_cost }}"></div>
        <div class="form-group"><label>Tax savings</label><input type="text" name="q_tax_savings" value="{{ form.q_tax_savings }}"></div>
        <div class="form-group"><label>GST savings</label><input type="text" name="q_gst_savings" value="{{ form.q_gst_savings }}"></div>
      </div>
    </details>

    <details>
      <summary>Or paste a quote as JSON</summary>
      <textarea name="quote_json" style="margin-top:.8rem" placeholder='{"vehicle": {...}, "leaseTerms": {...}, "employee": {...}}'></textarea>
    </details>

    <div style="margin-top:1.2rem">
      <button type="submit" class="btn btn-primary">Calculate</button>
    </div>
  </form>
</div>

{% if d %}
<!-- ═══════════════════════════════════════════════════════════ -->
<!-- RESULTS                                                     -->
<!-- ═══════════════════════════════════════════════════════════ -->

{% if d.warnings %}
<div class="warning">
  {% for w in d.warnings %}<div>&#9888; {{ w }}</div>{% endfor %}
</div>
{% endif %}

<div class="options-grid">
  <div class="card">
    <h2>Cost Breakdown</h2>
    <div class="stat-row"><span class="stat-label">Vehicle price</span><span class="stat-value">{{ fmt(d.breakdown.vehicle_price) }}</span></div>
    <div class="stat-row"><span class="stat-label">Finance charges</span><span class="stat-value">{{ fmt(d.breakdown.finance_charges) }}</span></div>
    <div class="stat-row"><span class="stat-label">Running costs</span><span class="stat-value">{{ fmt(d.breakdown.running_costs) }}</span></div>
    <div class="stat-row"><span class="stat-label">FBT</span><span class="stat-value">{{ fmt(d.breakdown.fbt_cost) }}</span></div>
    <div class="stat-row"><span class="stat-label">Fees (establishment, admin, end of lease)</span><span class="stat-value">{{ fmt(d.breakdown.establishment_fee + d.breakdown.admin_fees + d.breakdown.end_of_lease_fee) }}</span></div>
    <div class="stat-row"><span class="stat-label">Tax savings</span><span class="stat-value tag-lease">{{ fmt(-d.breakdown.tax_savings) }}</span></div>
    <div class="stat-row"><span class="stat-label">GST savings</span><span class="stat-value tag-lease">{{ fmt(-d.breakdown.gst_savings) }}</span></div>
    <div class="stat-row"><span class="stat-label">Net cost before residual</span><span class="stat-value">{{ fmt(d.breakdown.net_cost_before_residual) }}</span></div>
    <div class="stat-row"><span class="stat-label">Residual (balloon)</span><span class="stat-value">{{ fmt(d.breakdown.residual_value) }}</span></div>
    <div class="stat-row stat-total"><span class="stat-label">Total net cost</span><span class="stat-value">{{ fmt(d.breakdown.total_net_cost) }}</span></div>
    <div class="stat-row"><span class="stat-label">Per fortnight / per month</span><span class="stat-value">{{ fmt(d.net_per_fortnight) }} / {{ fmt(d.net_per_month) }}</span></div>
  </div>

  <div class="card">
    <h2>Tax Impact</h2>
    <div class="stat-row"><span class="stat-label">Packaged per year</span><span class="stat-value">{{ fmt(d.tax.annual_package_amount) }}</span></div>
    <div class="stat-row"><span class="stat-label">Marginal rate</span><span class="stat-value tag-amber">{{ pct(d.marginal * 100) }}</span></div>
    <div class="stat-row"><span class="stat-label">Taxable income</span><span class="stat-value">{{ fmt(d.tax.before_lease.taxable_income) }} &rarr; {{ fmt(d.tax.after_lease.taxable_income) }}</span></div>
    <div class="stat-row"><span class="stat-label">Total tax</span><span class="stat-value">{{ fmt(d.tax.before_lease.total_tax) }} &rarr; {{ fmt(d.tax.after_lease.total_tax) }}</span></div>
    <div class="stat-row"><span class="stat-label">Effective rate</span><span class="stat-value">{{ pct(d.tax.before_lease.effective_tax_rate * 100) }} &rarr; {{ pct(d.tax.after_lease.effective_tax_rate * 100) }}</span></div>
    <div class="stat-row stat-total"><span class="stat-label">Tax saved per year</span><span class="stat-value tag-lease">{{ fmt(d.tax.tax_saving) }}</span></div>
  </div>
</div>

<!-- Buy vs lease verdict -->
<div class="card {{ 'winner-glow-emerald' if d.winner == 'lease' else 'winner-glow-indigo' }}">
  <h2>Buy Outright vs Novated Lease</h2>
  <div class="verdict-winner {{ 'tag-lease' if d.winner == 'lease' else 'tag-buy' }}">{{ d.buy_vs_lease.recommendation }}</div>
  <p class="verdict-text">{{ verdict_text }}</p>
  <div class="table-wrap" style="margin-top:1rem">
    <table class="tbl">
      <thead><tr><th></th><th>Buy outright</th><th>Novated lease</th></tr></thead>
      <tbody>
        <tr><td>Total cost</td><td>{{ fmt(d.buy_vs_lease.buy_outright.total_cost) }}</td><td>{{ fmt(d.buy_vs_lease.novated_lease.total_cost) }}</td></tr>
        <tr><td>Vehicle value at end</td><td>{{ fmt(d.buy_vs_lease.buy_outright.vehicle_value_at_end) }}</td><td>{{ fmt(d.buy_vs_lease.novated_lease.vehicle_value_at_end) }}</td></tr>
        <tr><td>Net position</td><td>{{ fmt(d.buy_vs_lease.buy_outright.net_position) }}</td><td>{{ fmt(d.buy_vs_lease.novated_lease.net_position) }}</td></tr>
      </tbody>
    </table>
  </div>
</div>

<!-- Year by year -->
<div class="card">
  <h2>Year by Year</h2>
  <div class="table-wrap">
    <table class="tbl">
      <thead><tr><th>Year</th><th>Principal</th><th>Interest</th><th>Running</th><th>Fees</th><th>FBT</th><th>Tax saved</th><th>GST saved</th><th>Net</th></tr></thead>
      <tbody>
      {% for y in d.yearly %}
        <tr>
          <td>{{ y.year }}</td><td>{{ fmt(y.principal_payment) }}</td><td>{{ fmt(y.interest_payment) }}</td>
          <td>{{ fmt(y.running_costs) }}</td><td>{{ fmt(y.fees) }}</td><td>{{ fmt(y.fbt_cost) }}</td>
          <td>{{ fmt(y.tax_savings) }}</td><td>{{ fmt(y.gst_savings) }}</td><td>{{ fmt(y.net_cost) }}</td>
        </tr>
      {% endfor %}
      </tbody>
    </table>
  </div>
</div>

<!-- Post-lease -->
<div class="card">
  <h2>At Lease End</h2>
  {% for s in d.scenarios %}
  <div class="stat-row">
    <span class="stat-label"><strong>{{ s.scenario_type|capitalize }}</strong> &middot; {{ s.recommendation }}</span>
    <span class="stat-value {{ 'tag-lease' if s.financial_outcome >= 0 else 'tag-red' }}">{{ fmt(s.financial_outcome) }}</span>
  </div>
  {% endfor %}
</div>

<!-- Quote check -->
{% if d.validation.discrepancies %}
<div class="card">
  <h2>Quote Check: <span class="tag-amber">{{ d.validation.overall_assessment.replace('_', ' ')|title }}</span></h2>
  <div class="table-wrap">
    <table class="tbl">
      <thead><tr><th>Item</th><th>Quote</th><th>Our estimate</th><th>Difference</th></tr></thead>
      <tbody>
      {% for x in d.validation.discrepancies %}
        <tr class="{{ 'significant' if x.is_significant }}">
          <td>{{ x.label }}</td><td>{{ fmt(x.quote_value) }}</td><td>{{ fmt(x.calculated_value) }}</td>
          <td>{{ fmt(x.difference) }} ({{ "%+.1f"|format(x.percentage_diff) }}%)</td>
        </tr>
        {% if x.explanation %}<tr><td colspan="4" class="chart-desc">{{ x.explanation }}</td></tr>{% endif %}
      {% endfor %}
      </tbody>
    </table>
  </div>
</div>
{% endif %}

<!-- Charts -->
{% set chart_titles = [
  ("Yearly Costs", "What you pay each year, split by component, with the net cost after tax and GST savings."),
  ("Lease Account", "Finance balance still owing against repayments made so far. The residual falls due when the balance reaches zero."),
  ("Tax Position", "Your tax with and without the lease, and where your income sits on the rate curve."),
  ("Buy vs Lease", "Paying cash against leasing over the same term."),
] %}
{% for img in charts %}
<div class="card">
  <h2>{{ chart_titles[loop.index0][0] }}</h2>
  <p class="chart-desc">{{ chart_titles[loop.index0][1] }}</p>
  <img class="chart-img" src="data:image/png;base64,{{ img }}" alt="{{ chart_titles[loop.index0][0] }}">
</div>
{% endfor %}

<!-- Share & save -->
<div class="card">
  <h2>Share or Save</h2>
  <p class="chart-desc">Anyone with this link sees the same quote:</p>
  <p class="share-box"><a href="{{ share_link }}" style="color:var(--indigo)">{{ share_link }}</a></p>
  <form method="POST" action="/quotes/save" class="form-grid" style="margin-top:1rem">
    <input type="hidden" name="quote_json" value="{{ quote_json }}">
    <div class="form-group"><label>Name</label><input type="text" name="name" value="{{ d.vehicle }}"></div>
    <div class="form-group"><label>Notes</label><input type="text" name="notes"></div>
    <div class="form-group" style="justify-content:flex-end"><button type="submit" class="btn btn-primary">Save quote</button></div>
  </form>
</div>

<div class="dl-section">
  <a href="{{ pdf_link }}" class="btn btn-success">Download PDF Report</a>
</div>
{% endif %}

<!-- Saved quotes -->
{% if saved %}
<div class="card">
  <h2>Saved Quotes</h2>
  <form method="GET" action="/quotes/compare">
    <div class="table-wrap">
      <table class="tbl">
        <thead><tr><th>Compare</th><th>Name</th><th>Saved</th><th>Notes</th><th></th></tr></thead>
        <tbody>
        {% for s in saved %}
          <tr>
            <td><input type="checkbox" name="id" value="{{ s.id }}"></td>
            <td><a href="/quotes/{{ s.id }}" style="color:var(--indigo)">{{ s.name }}</a></td>
            <td>{{ s.saved_at[:10] }}</td>
            <td>{{ s.notes or "" }}</td>
            <td><button type="submit" formmethod="POST" formaction="/quotes/{{ s.id }}/delete" class="btn btn-small">Delete</button></td>
          </tr>
        {% endfor %}
        </tbody>
      </table>
    </div>
    <div style="margin-top:1rem"><button type="submit" class="btn btn-primary">Compare selected (up to {{ max_compare }})</button></div>
  </form>
</div>
{% endif %}

{% if comparison %}
<div class="card">
  <h2>Comparison</h2>
  <div class="table-wrap">
    <table class="tbl">
      <thead><tr><th></th>{% for r in comparison.rows %}<th>{{ r.saved.name }}</th>{% endfor %}</tr></thead>
      <tbody>
        <tr><td>Vehicle price</td>{% for r in comparison.rows %}<td>{{ fmt(r.breakdown.vehicle_price) }}</td>{% endfor %}</tr>
        <tr><td>Term</td>{% for r in comparison.rows %}<td>{{ r.saved.data.years }} years</td>{% endfor %}</tr>
        <tr><td>Finance charges</td>{% for r in comparison.rows %}<td>{{ fmt(r.breakdown.finance_charges) }}</td>{% endfor %}</tr>
        <tr><td>FBT</td>{% for r in comparison.rows %}<td>{{ fmt(r.breakdown.fbt_cost) }}</td>{% endfor %}</tr>
        <tr><td>Tax savings</td>{% for r in comparison.rows %}<td class="{{ 'best' if r.saved.id == comparison.best_tax_savings_id }}">{{ fmt(r.breakdown.tax_savings) }}</td>{% endfor %}</tr>
        <tr><td>Residual</td>{% for r in comparison.rows %}<td>{{ fmt(r.breakdown.residual_value) }}</td>{% endfor %}</tr>
        <tr><td>Total net cost</td>{% for r in comparison.rows %}<td class="{{ 'best' if r.saved.id == comparison.best_net_cost_id }}">{{ fmt(r.breakdown.total_net_cost) }}</td>{% endfor %}</tr>
      </tbody>
    </table>
  </div>
</div>
{% endif %}

<div class="footer">Estimates only, not financial or tax advice &middot; 2025-26 resident tax rates</div>
</div>
</body>
</html>
"""


# ═══════════════════════════════════════════════════════════════════
# Rendering
# ═══════════════════════════════════════════════════════════════════

def _render(
    form: Dict[str, Any],
    quote: Optional[QuoteInput] = None,
    error: Optional[str] = None,
    message: Optional[str] = None,
    comparison=None,
    status: int = 200,
):
    d = None
    charts: List[str] = []
    verdict_text = ""
    share_link = ""
    pdf_link = ""
    quote_json = ""
    if quote is not None:
        d = compute_display_data(analyse_quote(quote))
        verdict_text = generate_verdict_text(d)
        charts = report.get_web_charts(d)
        share_link = share_url(quote, request.host_url.rstrip("/") + url_for("index"))
        pdf_link = url_for("download_pdf", **{QUERY_PARAM: encode_quote(quote)})
        quote_json = json.dumps(quote.to_dict())

    return render_template_string(
        HTML_TEMPLATE,
        form=form,
        d=d,
        charts=charts,
        verdict_text=verdict_text,
        share_link=share_link,
        pdf_link=pdf_link,
        quote_json=quote_json,
        saved=_store().load_all(),
        comparison=comparison,
        max_compare=cfg.MAX_COMPARE_QUOTES,
        error=error,
        message=message,
        fmt=fmt,
        pct=pct,
    ), status


# ═══════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════

@app.route("/", methods=["GET", "POST"])
def index():
    if request.method == "GET":
        token = request.args.get(QUERY_PARAM)
        if token is None:
            return _render(form_from_quote(default_quote()))
        quote = decode_quote(token)
        if quote is None:
            return _render(form_from_quote(default_quote()),
                           error="This share link does not contain a valid quote.", status=400)
        return _render(form_from_quote(quote), quote)

    # POST: calculate from pasted JSON or the form fields
    form = request.form.to_dict()
    try:
        pasted = form.get("quote_json", "").strip()
        quote = load_quote_json(pasted) if pasted else parse_form(form)
    except ValueError as exc:
        logger.info("Rejected quote input: %s", exc)
        return _render(form, error=str(exc), status=400)
    return _render(form_from_quote(quote), quote)


@app.route("/api/analyse", methods=["POST"])
def api_analyse():
    """JSON in (quote format), JSON out (every calculated result)."""
    try:
        quote = parse_quote(request.get_json(silent=True))
    except QuoteImportError as exc:
        return jsonify({"error": str(exc)}), 400
    result = analyse_quote(quote).to_dict()
    result["shareToken"] = encode_quote(quote)
    return jsonify(result)


@app.route("/quotes")
def list_quotes():
    return jsonify([q.to_dict() for q in _store().load_all()])


@app.route("/quotes/save", methods=["POST"])
def save_quote():
    try:
        quote = load_quote_json(request.form.get("quote_json", ""))
    except QuoteImportError as exc:
        return _render(form_from_quote(default_quote()), error=str(exc), status=400)

    name = request.form.get("name", "").strip() or "Untitled quote"
    notes = request.form.get("notes", "").strip() or None
    if _store().save(name, quote, notes) is None:
        return _render(form_from_quote(quote), quote, error="Could not save the quote.", status=500)
    return _render(form_from_quote(quote), quote, message=f"Saved \"{name}\".")


@app.route("/quotes/<quote_id>")
def load_saved(quote_id: str):
    saved = _store().get(quote_id)
    if saved is None:
        return "No saved quote with that id.", 404
    return redirect(url_for("index", **{QUERY_PARAM: encode_quote(saved.data)}))


@app.route("/quotes/<quote_id>/delete", methods=["POST"])
def delete_quote(quote_id: str):
    _store().delete(quote_id)
    return redirect(url_for("index"))


@app.route("/quotes/compare")
def compare():
    store = _store()
    picked = [store.get(i) for i in request.args.getlist("id")]
    picked = [q for q in picked if q is not None]
    try:
        comparison = compare_quotes(picked)
    except ValueError as exc:
        return _render(form_from_quote(default_quote()), error=str(exc), status=400)
    return _render(form_from_quote(default_quote()), comparison=comparison)


@app.route("/download-pdf")
def download_pdf():
    """Build the PDF report for the quote in ``?quote=``, in memory."""
    token = request.args.get(QUERY_PARAM)
    quote = decode_quote(token) if token else None
    if quote is None:
        return "No quote given. Calculate a quote first.", 404
    d = compute_display_data(analyse_quote(quote))
    buf = io.BytesIO()
    report.generate_pdf(d, generate_verdict_text(d), buf)
    buf.seek(0)
    return send_file(buf, mimetype="application/pdf", as_attachment=True,
                     download_name="novated_lease_report.pdf")


# ═══════════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════════

def run_web(debug: bool = True, port: int = 5000, store_path: Optional[str] = None) -> None:
    """Start the Flask development server and open browser."""
    import threading
    import webbrowser

    if store_path is not None:
        app.config["STORE_PATH"] = store_path
    url = f"http://localhost:{port}"
    logger.info("Saved quotes file: %s", _store().path)
    print(f"Starting web app at {url}")
    threading.Timer(1.0, lambda: webbrowser.open(url)).start()
    app.run(host="127.0.0.1", port=port, debug=debug)


if __name__ == "__main__":
    run_web()
