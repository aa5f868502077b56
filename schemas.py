"""
Pydantic models for the quote JSON document.

These describe the wire shape only: camelCase aliases, JSON types,
required fields and finite numbers. Range rules (non-negative money,
rates between 0 and 1, lease term limits) live on the dataclasses in
``quote.py`` so that quotes built in code are checked the same way.
"""

from __future__ import annotations

from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator


def _whole(value: float) -> int:
    if value != int(value):
        raise ValueError("must be a whole number")
    return int(value)


# JSON numbers only: no strings, no booleans, no NaN or Infinity
Number = Annotated[float, Field(strict=True, allow_inf_nan=False)]
WholeNumber = Annotated[float, Field(strict=True, allow_inf_nan=False), AfterValidator(_whole)]
Flag = Annotated[bool, Field(strict=True)]


class _Group(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data):
        # null means "not given", same as leaving the key out
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class VehicleSchema(_Group):
    make: str = ""
    model: str = ""
    year: Optional[WholeNumber] = None
    purchase_price: Number = Field(alias="purchasePrice")
    driveaway_price: Optional[Number] = Field(default=None, alias="driveawayPrice")


class LeaseTermsSchema(_Group):
    duration_years: WholeNumber = Field(alias="durationYears")
    interest_rate: Number = Field(alias="interestRate")
    annual_km: Number = Field(default=0.0, alias="annualKilometers")


class FeesSchema(_Group):
    establishment_fee: Number = Field(default=0.0, alias="establishmentFee")
    monthly_admin_fee: Number = Field(default=0.0, alias="monthlyAdminFee")
    end_of_lease_fee: Number = Field(default=0.0, alias="endOfLeaseFee")


class RunningCostsSchema(_Group):
    fuel: Number = Field(default=0.0, alias="fuelPerYear")
    insurance: Number = Field(default=0.0, alias="insurancePerYear")
    maintenance: Number = Field(default=0.0, alias="maintenancePerYear")
    registration: Number = Field(default=0.0, alias="registrationPerYear")
    tyres: Number = Field(default=0.0, alias="tyresPerYear")


class FBTSchema(_Group):
    employee_contribution: Number = Field(default=0.0, alias="employeeContributionAmount")
    use_statutory_method: Flag = Field(default=True, alias="useStatutoryMethod")
    statutory_rate: Optional[Number] = Field(default=None, alias="statutoryRate")


class EmployeeSchema(_Group):
    annual_salary: Number = Field(alias="annualSalary")
    taxable_income: Optional[Number] = Field(default=None, alias="taxableIncome")
    has_help_debt: Flag = Field(default=False, alias="hasHELPDebt")
    help_repayment_rate: Optional[Number] = Field(default=None, alias="helpRepaymentRate")

    @model_validator(mode="after")
    def _taxable_defaults_to_salary(self) -> "EmployeeSchema":
        if self.taxable_income is None:
            self.taxable_income = self.annual_salary
        return self


class QuoteProvidedValuesSchema(_Group):
    residual_value: Optional[Number] = Field(default=None, alias="residualValue")
    total_finance_charges: Optional[Number] = Field(default=None, alias="totalFinanceCharges")
    fortnightly_payment: Optional[Number] = Field(default=None, alias="fortnightlyPayment")
    monthly_payment: Optional[Number] = Field(default=None, alias="monthlyPayment")
    total_payments: Optional[Number] = Field(default=None, alias="totalPayments")
    total_lease_cost: Optional[Number] = Field(default=None, alias="totalLeaseCost")
    tax_savings: Optional[Number] = Field(default=None, alias="taxSavings")
    gst_savings: Optional[Number] = Field(default=None, alias="gstSavings")


class MetadataSchema(_Group):
    leaser_name: Optional[str] = Field(default=None, alias="leaserName")
    budget_flexibility: Optional[str] = Field(default=None, alias="budgetFlexibility")
    pre_tax_top_up: Optional[Flag] = Field(default=None, alias="preTaxTopUp")
    customer_warnings: List[str] = Field(default_factory=list, alias="customerWarnings")
    extracted_terms: List[str] = Field(default_factory=list, alias="extractedTerms")


class QuoteSchema(_Group):
    """The whole quote document."""

    vehicle: VehicleSchema
    lease_terms: LeaseTermsSchema = Field(alias="leaseTerms")
    employee: EmployeeSchema
    fees: FeesSchema = Field(default_factory=FeesSchema)
    running_costs: RunningCostsSchema = Field(default_factory=RunningCostsSchema, alias="runningCosts")
    fbt: FBTSchema = Field(default_factory=FBTSchema)
    quote_provided_values: Optional[QuoteProvidedValuesSchema] = Field(default=None, alias="quoteProvidedValues")
    metadata: Optional[MetadataSchema] = None
    custom_notes: Optional[str] = Field(default=None, alias="customNotes")
