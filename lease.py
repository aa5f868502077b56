"""
Novated lease calculation engine.

Turns a ``QuoteInput`` into a year-by-year schedule and whole-of-lease
totals:

  - ATO minimum residual and the financed amount (price - residual)
  - fixed-payment monthly amortization, rolled up into lease years
  - statutory-formula FBT on a diminishing base value
  - GST credits on the vehicle and on running costs
  - tax savings at the employee's composite marginal rate

plus the buy-outright comparison and the end-of-lease options built on
top of those totals. Every function is pure; nothing is cached.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import numpy as np

import config as cfg
import tax
from quote import FBTSettings, QuoteInput


# ─── Data Classes ─────────────────────────────────────────────────────

@dataclass
class YearEntry:
    """One lease year of the schedule."""

    year: int
    principal_payment: float
    interest_payment: float
    running_costs: float
    fees: float                  # admin + establishment (yr 1) + end-of-lease (final yr)
    fbt_cost: float
    tax_savings: float
    gst_savings: float
    net_cost: float
    remaining_principal: float   # at year end, never negative

    @property
    def gross_cost(self) -> float:
        return self.principal_payment + self.interest_payment + self.running_costs + self.fees + self.fbt_cost

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "principalPayment": self.principal_payment,
            "interestPayment": self.interest_payment,
            "runningCosts": self.running_costs,
            "fees": self.fees,
            "fbtCost": self.fbt_cost,
            "taxSavings": self.tax_savings,
            "gstSavings": self.gst_savings,
            "netCost": self.net_cost,
            "remainingPrincipal": self.remaining_principal,
        }


@dataclass
class CostBreakdown:
    """Whole-of-lease totals.

    ``total_gross_cost`` counts the vehicle price, finance charges,
    running costs and FBT; fees are reported separately.
    """

    vehicle_price: float
    finance_charges: float
    establishment_fee: float
    admin_fees: float
    running_costs: float
    fbt_cost: float
    end_of_lease_fee: float
    total_gross_cost: float
    tax_savings: float
    gst_savings: float
    net_cost_before_residual: float
    residual_value: float
    total_net_cost: float

    def to_dict(self) -> dict:
        return {
            "vehiclePrice": self.vehicle_price,
            "financeCharges": self.finance_charges,
            "establishmentFee": self.establishment_fee,
            "adminFees": self.admin_fees,
            "runningCosts": self.running_costs,
            "fbtCost": self.fbt_cost,
            "endOfLeaseFee": self.end_of_lease_fee,
            "totalGrossCost": self.total_gross_cost,
            "taxSavings": self.tax_savings,
            "gstSavings": self.gst_savings,
            "netCostBeforeResidual": self.net_cost_before_residual,
            "residualValue": self.residual_value,
            "totalNetCost": self.total_net_cost,
        }


@dataclass
class AmortizationSchedule:
    """Monthly amortization of the financed amount.

    Arrays have one element per month; index ``m`` is month ``m + 1``.
    """

    principal: float
    annual_rate: float
    years: int
    monthly_payment: float
    interest: np.ndarray = field(repr=False)
    principal_paid: np.ndarray = field(repr=False)
    balance: np.ndarray = field(repr=False)    # balance after each month

    def _by_year(self, monthly: np.ndarray) -> np.ndarray:
        return monthly.reshape(self.years, cfg.MONTHS_PER_YEAR).sum(axis=1)

    @property
    def yearly_interest(self) -> np.ndarray:
        return self._by_year(self.interest)

    @property
    def yearly_principal(self) -> np.ndarray:
        return self._by_year(self.principal_paid)

    @property
    def year_end_balance(self) -> np.ndarray:
        return self.balance[cfg.MONTHS_PER_YEAR - 1::cfg.MONTHS_PER_YEAR]

    @property
    def total_interest(self) -> float:
        return float(self.interest.sum())


@dataclass
class BuyOutright:
    vehicle_price: float
    running_costs: float
    opportunity_cost: float
    total_cost: float
    vehicle_value_at_end: float
    net_position: float


@dataclass
class LeaseOutcome:
    total_cost_before_residual: float
    residual_payment: float
    total_cost: float
    vehicle_value_at_end: float
    net_position: float


@dataclass
class BuyVsLeaseComparison:
    buy_outright: BuyOutright
    novated_lease: LeaseOutcome
    difference: float            # lease net position - buy net position
    recommendation: str

    @property
    def lease_is_better(self) -> bool:
        return self.difference > 0

    def to_dict(self) -> dict:
        b, n = self.buy_outright, self.novated_lease
        return {
            "buyOutright": {
                "vehiclePrice": b.vehicle_price,
                "runningCosts": b.running_costs,
                "opportunityCost": b.opportunity_cost,
                "totalCost": b.total_cost,
                "vehicleValueAtEnd": b.vehicle_value_at_end,
                "netPosition": b.net_position,
            },
            "novatedLease": {
                "totalCostBeforeResidual": n.total_cost_before_residual,
                "residualPayment": n.residual_payment,
                "totalCost": n.total_cost,
                "vehicleValueAtEnd": n.vehicle_value_at_end,
                "netPosition": n.net_position,
            },
            "difference": self.difference,
            "recommendation": self.recommendation,
        }


@dataclass
class PostLeaseScenario:
    scenario_type: str           # 'purchase', 'sell', 'return' or 'extend'
    residual_value: float
    estimated_market_value: float
    description: str
    financial_outcome: float
    recommendation: str

    def to_dict(self) -> dict:
        return {
            "scenarioType": self.scenario_type,
            "residualValue": self.residual_value,
            "estimatedMarketValue": self.estimated_market_value,
            "description": self.description,
            "financialOutcome": self.financial_outcome,
            "recommendation": self.recommendation,
        }


@dataclass
class TaxImpact:
    """Employee tax with and without the salary-packaged amount."""

    annual_package_amount: float
    before_lease: tax.TaxCalculation
    after_lease: tax.TaxCalculation

    @property
    def tax_saving(self) -> float:
        return self.before_lease.total_tax - self.after_lease.total_tax

    @property
    def take_home_change(self) -> float:
        return self.after_lease.net_income - self.before_lease.net_income

    def to_dict(self) -> dict:
        return {
            "annualPackageAmount": self.annual_package_amount,
            "beforeLease": self.before_lease.to_dict(),
            "afterLease": self.after_lease.to_dict(),
            "taxSaving": self.tax_saving,
            "takeHomeChange": self.take_home_change,
        }


@dataclass
class TrackerPoint:
    """Lease account position at the end of a year (or lease end)."""

    label: str
    year: int
    remaining_balance: float
    paid_to_date: float
    residual: float

    def to_dict(self) -> dict:
        return {
            "year": self.label,
            "yearNum": self.year,
            "remainingBalance": self.remaining_balance,
            "paidToDate": self.paid_to_date,
            "residual": self.residual,
        }


# ─── Residual ─────────────────────────────────────────────────────────

def residual_rate(years: int) -> float:
    """ATO minimum residual fraction; unknown terms use the 5-year rate."""
    return cfg.ATO_RESIDUAL_RATES.get(years, cfg.ATO_RESIDUAL_RATES[cfg.FALLBACK_RESIDUAL_TERM])


def calculate_residual_value(vehicle_price: float, years: int) -> float:
    return vehicle_price * residual_rate(years)


# ─── Amortization ─────────────────────────────────────────────────────

def monthly_payment(principal: float, annual_rate: float, years: int) -> float:
    """Fixed monthly repayment that fully amortizes ``principal``.

    Parameters
    ----------
    principal : float
        Amount financed.
    annual_rate : float
        Nominal annual interest rate (decimal), compounded monthly.
    years : int
        Term in whole years.

    Returns
    -------
    float
        ``P r (1+r)^n / ((1+r)^n - 1)`` with ``r`` the monthly rate and
        ``n`` the number of months; ``P / n`` at a zero rate.
    """
    months = years * cfg.MONTHS_PER_YEAR
    r = annual_rate / cfg.MONTHS_PER_YEAR
    if r == 0:
        return principal / months
    growth = (1 + r) ** months
    return principal * r * growth / (growth - 1)


def amortize(principal: float, annual_rate: float, years: int) -> AmortizationSchedule:
    """Roll the loan forward month by month, one step per month of the term."""
    months = years * cfg.MONTHS_PER_YEAR
    r = annual_rate / cfg.MONTHS_PER_YEAR
    payment = monthly_payment(principal, annual_rate, years)

    interest = np.empty(months)
    principal_paid = np.empty(months)
    balance = np.empty(months)

    remaining = principal
    for m in range(months):
        interest[m] = remaining * r
        principal_paid[m] = payment - interest[m]
        remaining -= principal_paid[m]
        balance[m] = remaining

    return AmortizationSchedule(
        principal=principal,
        annual_rate=annual_rate,
        years=years,
        monthly_payment=payment,
        interest=interest,
        principal_paid=principal_paid,
        balance=balance,
    )


def calculate_finance_charge(principal: float, annual_rate: float, years: int) -> float:
    """Total interest over the term (payments minus principal)."""
    months = years * cfg.MONTHS_PER_YEAR
    return monthly_payment(principal, annual_rate, years) * months - principal


# ─── FBT ──────────────────────────────────────────────────────────────

def fbt_base_value(vehicle_price: float, year: int) -> float:
    """GST-exclusive base value, stepped down by 2/3 each lease year."""
    ex_gst = vehicle_price / (1 + cfg.GST_RATE)
    return ex_gst * cfg.FBT_BASE_VALUE_FACTOR ** (year - 1)


def calculate_fbt_cost_for_year(base_value: float, fbt: FBTSettings) -> float:
    """Statutory-formula FBT for one year, net of employee contribution.

    Taxable value = base value x statutory rate, grossed up at the
    Type-1 factor and taxed at the FBT rate. The post-tax employee
    contribution is grossed up the same way and offset, never taking
    FBT below zero. Any other valuation method is not modelled and
    costs nothing.
    """
    if not fbt.use_statutory_method:
        return 0.0

    taxable_value = base_value * fbt.effective_statutory_rate
    grossed_up = taxable_value * cfg.FBT_TYPE1_GROSS_UP
    fbt_payable = grossed_up * cfg.FBT_RATE
    contribution_offset = fbt.employee_contribution * cfg.FBT_TYPE1_GROSS_UP * cfg.FBT_RATE
    return max(0.0, fbt_payable - contribution_offset)


# ─── GST ──────────────────────────────────────────────────────────────

def gst_savings_for_year(vehicle_price: float, years: int, annual_running_costs: float) -> float:
    """Vehicle GST spread evenly over the term plus GST in running costs."""
    vehicle_gst = vehicle_price * cfg.GST_RATE / years
    running_gst = annual_running_costs * cfg.GST_RATE / (1 + cfg.GST_RATE)
    return vehicle_gst + running_gst


# ─── Yearly schedule ──────────────────────────────────────────────────

def calculate_yearly_breakdowns(quote: QuoteInput) -> List[YearEntry]:
    """Year-by-year lease costs, savings and remaining principal.

    Only recurring packaged amounts (repayments, running costs and admin
    fees) attract tax savings; establishment and end-of-lease fees are
    costs with no tax benefit.
    """
    years = quote.years
    price = quote.price
    fees = quote.fees

    residual = calculate_residual_value(price, years)
    schedule = amortize(price - residual, quote.lease_terms.interest_rate, years)
    yearly_principal = schedule.yearly_principal
    yearly_interest = schedule.yearly_interest
    year_end_balance = schedule.year_end_balance

    running = quote.running_costs.total
    admin = fees.annual_admin_fees
    marginal = tax.calculate_income_tax(
        quote.employee.taxable_income,
        quote.employee.has_help_debt,
        quote.employee.help_rate,
    ).marginal_tax_rate
    gst = gst_savings_for_year(price, years, running)

    entries: List[YearEntry] = []
    for y in range(1, years + 1):
        principal = float(yearly_principal[y - 1])
        interest = float(yearly_interest[y - 1])

        year_fees = admin
        if y == 1:
            year_fees += fees.establishment_fee
        if y == years:
            year_fees += fees.end_of_lease_fee

        fbt_cost = calculate_fbt_cost_for_year(fbt_base_value(price, y), quote.fbt)
        tax_savings = (principal + interest + running + admin) * marginal
        gross = principal + interest + running + year_fees + fbt_cost

        entries.append(YearEntry(
            year=y,
            principal_payment=principal,
            interest_payment=interest,
            running_costs=running,
            fees=year_fees,
            fbt_cost=fbt_cost,
            tax_savings=tax_savings,
            gst_savings=gst,
            net_cost=gross - tax_savings - gst,
            remaining_principal=max(0.0, float(year_end_balance[y - 1])),
        ))

    return entries


# ─── Totals ───────────────────────────────────────────────────────────

def calculate_cost_breakdown(quote: QuoteInput) -> CostBreakdown:
    """Sum the yearly schedule into whole-of-lease figures."""
    entries = calculate_yearly_breakdowns(quote)
    residual = calculate_residual_value(quote.price, quote.years)

    price = quote.price
    finance_charges = sum(e.interest_payment for e in entries)
    running = sum(e.running_costs for e in entries)
    fbt_cost = sum(e.fbt_cost for e in entries)
    tax_savings = sum(e.tax_savings for e in entries)
    gst_savings = sum(e.gst_savings for e in entries)

    total_gross = price + finance_charges + running + fbt_cost
    net_before_residual = total_gross - tax_savings - gst_savings

    return CostBreakdown(
        vehicle_price=price,
        finance_charges=finance_charges,
        establishment_fee=quote.fees.establishment_fee,
        admin_fees=quote.fees.annual_admin_fees * quote.years,
        running_costs=running,
        fbt_cost=fbt_cost,
        end_of_lease_fee=quote.fees.end_of_lease_fee,
        total_gross_cost=total_gross,
        tax_savings=tax_savings,
        gst_savings=gst_savings,
        net_cost_before_residual=net_before_residual,
        residual_value=residual,
        total_net_cost=net_before_residual + residual,
    )


# ─── Market value ─────────────────────────────────────────────────────

def estimated_market_value(vehicle_price: float, years: int) -> float:
    """Flat 15%/yr declining-balance estimate of the vehicle's value."""
    return vehicle_price * (1 - cfg.DEPRECIATION_RATE) ** years


# ─── Buy vs Lease ─────────────────────────────────────────────────────

def calculate_buy_vs_lease(quote: QuoteInput) -> BuyVsLeaseComparison:
    """Contrast paying cash with the novated lease over the same term.

    Buying carries the running costs with no tax benefit plus simple
    5% interest forgone on the cash price. Both sides end up holding
    the same depreciated vehicle.
    """
    breakdown = calculate_cost_breakdown(quote)
    years = quote.years
    price = quote.price
    value_at_end = estimated_market_value(price, years)

    running = quote.running_costs.total * years
    opportunity = price * cfg.OPPORTUNITY_COST_RATE * years
    buy_total = price + running + opportunity
    buy_net = value_at_end - buy_total

    lease_total = breakdown.net_cost_before_residual + breakdown.residual_value
    lease_net = value_at_end - lease_total

    difference = lease_net - buy_net
    if difference > 0:
        recommendation = f"Novated lease saves approximately ${abs(difference):.0f}"
    else:
        recommendation = f"Buying outright saves approximately ${abs(difference):.0f}"

    return BuyVsLeaseComparison(
        buy_outright=BuyOutright(
            vehicle_price=price,
            running_costs=running,
            opportunity_cost=opportunity,
            total_cost=buy_total,
            vehicle_value_at_end=value_at_end,
            net_position=buy_net,
        ),
        novated_lease=LeaseOutcome(
            total_cost_before_residual=breakdown.net_cost_before_residual,
            residual_payment=breakdown.residual_value,
            total_cost=lease_total,
            vehicle_value_at_end=value_at_end,
            net_position=lease_net,
        ),
        difference=difference,
        recommendation=recommendation,
    )


# ─── Post-lease scenarios ─────────────────────────────────────────────

def calculate_post_lease_scenarios(quote: QuoteInput) -> List[PostLeaseScenario]:
    """Purchase, sell, return and extend outcomes at lease end.

    The extend outcome prices a fixed 3-year refinance of the residual
    whatever the original term was.
    """
    residual = calculate_residual_value(quote.price, quote.years)
    market = estimated_market_value(quote.price, quote.years)
    equity = market - residual
    extend_interest = residual * cfg.EXTEND_REFINANCE_RATE * cfg.EXTEND_TERM_YEARS

    if market > residual:
        purchase_rec = f"Good option if you want to keep the vehicle - estimated equity of ${equity:.0f}"
        sell_rec = f"You could pocket approximately ${equity:.0f} after paying the residual"
    else:
        purchase_rec = "Vehicle may be worth less than residual - consider other options"
        sell_rec = f"You may need to cover a shortfall of approximately ${-equity:.0f}"

    return [
        PostLeaseScenario(
            scenario_type="purchase",
            residual_value=residual,
            estimated_market_value=market,
            description=(
                f"Pay the residual of ${residual:.0f} to own the vehicle outright. "
                "You can pay cash or refinance this amount."
            ),
            financial_outcome=equity,
            recommendation=purchase_rec,
        ),
        PostLeaseScenario(
            scenario_type="sell",
            residual_value=residual,
            estimated_market_value=market,
            description="Sell the vehicle privately or through a dealer. Use proceeds to pay the residual.",
            financial_outcome=equity,
            recommendation=sell_rec,
        ),
        PostLeaseScenario(
            scenario_type="return",
            residual_value=residual,
            estimated_market_value=market,
            description=(
                "Return the vehicle to the lease company. They sell it and you "
                "receive any surplus (or pay any shortfall)."
            ),
            financial_outcome=equity - cfg.RETURN_HANDLING_COST,
            recommendation=(
                "Convenient option but you may receive less than private sale due to "
                f"dealer margins and return fees (~${cfg.RETURN_HANDLING_COST})"
            ),
        ),
        PostLeaseScenario(
            scenario_type="extend",
            residual_value=residual,
            estimated_market_value=market,
            description="Refinance the residual into a new novated lease to continue using the vehicle.",
            financial_outcome=-extend_interest,
            recommendation=(
                f"Allows you to continue the tax benefits. Typical {cfg.EXTEND_TERM_YEARS}-year "
                f"extension would cost approximately ${extend_interest:.0f} in interest"
            ),
        ),
    ]


# ─── Tax impact ───────────────────────────────────────────────────────

def annual_package_amount(quote: QuoteInput, entries: List[YearEntry] | None = None) -> float:
    """First-year repayments plus running costs taken from pre-tax salary."""
    if entries is None:
        entries = calculate_yearly_breakdowns(quote)
    first = entries[0]
    return first.principal_payment + first.interest_payment + quote.running_costs.total


def calculate_tax_impact(quote: QuoteInput, package_amount: float | None = None) -> TaxImpact:
    """Employee tax before and after salary packaging the lease."""
    if package_amount is None:
        package_amount = annual_package_amount(quote)
    emp = quote.employee

    before = tax.calculate_income_tax(emp.taxable_income, emp.has_help_debt, emp.help_rate)
    reduced = max(0.0, emp.taxable_income - package_amount)
    after = tax.calculate_income_tax(reduced, emp.has_help_debt, emp.help_rate)

    return TaxImpact(annual_package_amount=package_amount, before_lease=before, after_lease=after)


# ─── Lease account ────────────────────────────────────────────────────

def lease_account_tracker(entries: List[YearEntry], residual: float) -> List[TrackerPoint]:
    """Remaining balance and cumulative repayments, with a closing point."""
    points: List[TrackerPoint] = []
    paid = 0.0
    for e in entries:
        paid += e.principal_payment + e.interest_payment
        points.append(TrackerPoint(
            label=f"Year {e.year}",
            year=e.year,
            remaining_balance=e.remaining_principal,
            paid_to_date=paid,
            residual=residual,
        ))
    points.append(TrackerPoint(
        label="End",
        year=len(entries) + 1,
        remaining_balance=0.0,
        paid_to_date=paid,
        residual=residual,
    ))
    return points
