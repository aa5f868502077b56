"""
Quote input model for the novated lease estimator.

A quote arrives as a JSON object with camelCase groups (``vehicle``,
``leaseTerms``, ``fees``, ``runningCosts``, ``fbt``, ``employee`` and
the optional ``quoteProvidedValues`` / ``metadata``). ``parse_quote``
turns it into an immutable ``QuoteInput``; ``QuoteInput.to_dict``
goes back the other way so saved and shared quotes round-trip.
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ValidationError

import config as cfg
from schemas import QuoteSchema


class QuoteImportError(ValueError):
    """Raised when imported quote data cannot be turned into a QuoteInput."""


def _non_negative(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise ValueError(f"{name} must be a finite number")
    if value < 0:
        raise ValueError(f"{name} must not be negative")


def _fraction(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be a decimal between 0 and 1")


# ─── Input groups ────────────────────────────────────────────────────

@dataclass(frozen=True)
class Vehicle:
    purchase_price: float
    make: str = ""
    model: str = ""
    year: Optional[int] = None
    driveaway_price: Optional[float] = None

    def __post_init__(self) -> None:
        _non_negative("Vehicle price", self.purchase_price)
        if self.driveaway_price is not None:
            _non_negative("Drive-away price", self.driveaway_price)


@dataclass(frozen=True)
class LeaseTerms:
    duration_years: int
    interest_rate: float         # annual, as a decimal
    annual_km: float = 0.0

    def __post_init__(self) -> None:
        if isinstance(self.duration_years, bool) or int(self.duration_years) != self.duration_years:
            raise ValueError("Lease duration must be a whole number of years")
        if self.duration_years < 1:
            raise ValueError("Lease duration must be at least 1 year")
        if self.duration_years > cfg.MAX_DURATION_YEARS:
            raise ValueError(f"Lease duration must be at most {cfg.MAX_DURATION_YEARS} years")
        _fraction("Interest rate", self.interest_rate)
        _non_negative("Annual distance", self.annual_km)


@dataclass(frozen=True)
class Fees:
    establishment_fee: float = 0.0
    monthly_admin_fee: float = 0.0
    end_of_lease_fee: float = 0.0

    def __post_init__(self) -> None:
        for f in fields(self):
            _non_negative(f.name.replace("_", " ").capitalize(), getattr(self, f.name))

    @property
    def annual_admin_fees(self) -> float:
        return self.monthly_admin_fee * cfg.MONTHS_PER_YEAR


@dataclass(frozen=True)
class RunningCosts:
    """Annual running costs, assumed GST-inclusive."""

    fuel: float = 0.0
    insurance: float = 0.0
    maintenance: float = 0.0
    registration: float = 0.0
    tyres: float = 0.0

    def __post_init__(self) -> None:
        for f in fields(self):
            _non_negative(f"{f.name.capitalize()} cost", getattr(self, f.name))

    @property
    def total(self) -> float:
        return self.fuel + self.insurance + self.maintenance + self.registration + self.tyres


@dataclass(frozen=True)
class FBTSettings:
    employee_contribution: float = 0.0   # annual post-tax contribution
    use_statutory_method: bool = True
    statutory_rate: Optional[float] = None

    def __post_init__(self) -> None:
        _non_negative("Employee contribution", self.employee_contribution)
        if self.statutory_rate is not None:
            _fraction("Statutory rate", self.statutory_rate)

    @property
    def effective_statutory_rate(self) -> float:
        # 0 is a real rate (exempt vehicles), only None means "use the default"
        if self.statutory_rate is None:
            return cfg.FBT_DEFAULT_STATUTORY_RATE
        return self.statutory_rate


@dataclass(frozen=True)
class Employee:
    annual_salary: float
    taxable_income: float
    has_help_debt: bool = False
    help_repayment_rate: Optional[float] = None

    def __post_init__(self) -> None:
        _non_negative("Annual salary", self.annual_salary)
        _non_negative("Taxable income", self.taxable_income)
        if self.help_repayment_rate is not None:
            _fraction("HELP repayment rate", self.help_repayment_rate)

    @property
    def help_rate(self) -> float:
        return self.help_repayment_rate or 0.0


@dataclass(frozen=True)
class QuoteProvidedValues:
    """Figures claimed by the lease provider, used only for validation."""

    residual_value: Optional[float] = None
    total_finance_charges: Optional[float] = None
    fortnightly_payment: Optional[float] = None
    monthly_payment: Optional[float] = None
    total_payments: Optional[float] = None
    total_lease_cost: Optional[float] = None
    tax_savings: Optional[float] = None
    gst_savings: Optional[float] = None


@dataclass(frozen=True)
class QuoteMetadata:
    leaser_name: Optional[str] = None
    budget_flexibility: Optional[str] = None
    pre_tax_top_up: Optional[bool] = None
    customer_warnings: Tuple[str, ...] = ()
    extracted_terms: Tuple[str, ...] = ()


@dataclass(frozen=True)
class QuoteInput:
    """Everything one calculation needs. Never mutated after creation."""

    vehicle: Vehicle
    lease_terms: LeaseTerms
    employee: Employee
    fees: Fees = field(default_factory=Fees)
    running_costs: RunningCosts = field(default_factory=RunningCosts)
    fbt: FBTSettings = field(default_factory=FBTSettings)
    quote_provided_values: Optional[QuoteProvidedValues] = None
    metadata: Optional[QuoteMetadata] = None
    custom_notes: Optional[str] = None

    @property
    def price(self) -> float:
        return self.vehicle.purchase_price

    @property
    def years(self) -> int:
        return int(self.lease_terms.duration_years)

    def with_changes(self, **changes: Any) -> "QuoteInput":
        """Copy with whole groups replaced, e.g. ``fees=Fees(...)``."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """camelCase JSON-ready form, inverse of ``parse_quote``."""
        return _to_json_groups(self)


# ─── JSON import / export ────────────────────────────────────────────

REQUIRED_GROUPS = ("vehicle", "leaseTerms", "employee")

# pydantic error type -> message, ``{where}`` is the dotted JSON path
_ERROR_MESSAGES = {
    "missing": "Missing required field {where}",
    "model_type": "'{where}' must be an object",
    "model_attributes_type": "'{where}' must be an object",
    "bool_type": "{where} must be true or false",
    "float_type": "{where} must be a number",
    "finite_number": "{where} must be a finite number",
    "list_type": "{where} must be a list",
    "string_type": "{where} must be text",
}

# QuoteInput attribute -> dataclass for that group
_GROUP_TYPES = {
    "vehicle": Vehicle,
    "lease_terms": LeaseTerms,
    "employee": Employee,
    "fees": Fees,
    "running_costs": RunningCosts,
    "fbt": FBTSettings,
    "quote_provided_values": QuoteProvidedValues,
    "metadata": QuoteMetadata,
}


def _describe(error: Dict[str, Any]) -> str:
    where = ".".join(str(part) for part in error["loc"])
    template = _ERROR_MESSAGES.get(error["type"])
    if template is None:
        return f"{where}: {error['msg']}"
    return template.format(where=where)


def _build_group(name: str, group: BaseModel) -> Any:
    values = {k: tuple(v) if isinstance(v, list) else v for k, v in group.model_dump().items()}
    try:
        return _GROUP_TYPES[name](**values)
    except ValueError as exc:
        label = QuoteSchema.model_fields[name].alias or name
        raise QuoteImportError(f"Invalid {label}: {exc}") from exc


def parse_quote(data: Any) -> QuoteInput:
    """Build a QuoteInput from a decoded JSON object.

    Raises
    ------
    QuoteImportError
        If ``data`` is not an object, lacks ``vehicle``, ``leaseTerms``
        or ``employee``, or holds values of the wrong type or range.
    """
    if not isinstance(data, dict):
        raise QuoteImportError("Quote data must be a JSON object")
    missing = [g for g in REQUIRED_GROUPS if not data.get(g)]
    if missing:
        raise QuoteImportError(f"Missing required fields in JSON: {', '.join(missing)}")

    try:
        doc = QuoteSchema.model_validate(data)
    except ValidationError as exc:
        raise QuoteImportError("; ".join(_describe(e) for e in exc.errors())) from exc
    except OverflowError as exc:
        # integers too large for a float
        raise QuoteImportError(f"Number out of range: {exc}") from exc

    kwargs: Dict[str, Any] = {"custom_notes": doc.custom_notes}
    for name in _GROUP_TYPES:
        group = getattr(doc, name)
        if group is not None:
            kwargs[name] = _build_group(name, group)
    return QuoteInput(**kwargs)


def load_quote_json(text: str) -> QuoteInput:
    """Parse a JSON document (e.g. pasted from an import prompt)."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise QuoteImportError(f"Invalid JSON format: {exc.msg} (line {exc.lineno})") from exc
    return parse_quote(data)


def _to_json_groups(quote: QuoteInput) -> Dict[str, Any]:
    doc = QuoteSchema.model_validate(asdict(quote))
    return doc.model_dump(mode="json", by_alias=True, exclude_none=True)


# ─── Defaults ────────────────────────────────────────────────────────

def default_quote() -> QuoteInput:
    """A typical mid-size SUV quote used as the starting point."""
    return QuoteInput(
        vehicle=Vehicle(**cfg.DEFAULT_VEHICLE),
        lease_terms=LeaseTerms(
            duration_years=cfg.DEFAULT_DURATION_YEARS,
            interest_rate=cfg.DEFAULT_INTEREST_RATE,
            annual_km=cfg.DEFAULT_ANNUAL_KM,
        ),
        fees=Fees(**cfg.DEFAULT_FEES),
        running_costs=RunningCosts(**cfg.DEFAULT_RUNNING_COSTS),
        fbt=FBTSettings(
            employee_contribution=0.0,
            use_statutory_method=True,
            statutory_rate=cfg.FBT_DEFAULT_STATUTORY_RATE,
        ),
        employee=Employee(
            annual_salary=cfg.DEFAULT_SALARY,
            taxable_income=cfg.DEFAULT_SALARY,
            has_help_debt=False,
            help_repayment_rate=0.0,
        ),
    )
