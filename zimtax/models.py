"""Pydantic models for engine inputs, results and caller-held state."""

import calendar
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer

from zimtax.calculators.tax_data import AssetClass

_ZERO = Decimal("0")


def to_amount(value: Any) -> Decimal:
    """Coerce a form value to Decimal; missing or non-numeric input becomes 0."""
    if isinstance(value, bool) or value is None:
        return _ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        try:
            amount = Decimal(text) if text else _ZERO
        except InvalidOperation:
            return _ZERO
    else:
        return _ZERO
    return amount if amount.is_finite() else _ZERO


def _to_optional_amount(value: Any) -> Decimal | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_amount(value)


_as_json_number = PlainSerializer(float, return_type=float, when_used="json")

# Monetary values: Decimal in Python, numbers in JSON.
Money = Annotated[Decimal, BeforeValidator(to_amount), _as_json_number]
OptionalMoney = Annotated[
    Decimal | None,
    BeforeValidator(_to_optional_amount),
    PlainSerializer(float, return_type=float, when_used="json-unless-none"),
]


class _Record(BaseModel):
    """A closed set of named amounts."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    def amounts(self) -> dict[str, Decimal]:
        return {name: getattr(self, name) for name in type(self).model_fields}

    def total(self) -> Decimal:
        return sum(self.amounts().values(), _ZERO)


# --- Payroll inputs ---


class Allowances(_Record):
    """Allowance kinds paid on top of basic salary."""

    living: Money = _ZERO
    medical: Money = _ZERO
    transport: Money = _ZERO
    housing: Money = _ZERO
    commission: Money = _ZERO
    bonus: Money = _ZERO
    overtime: Money = _ZERO


class CompensationInput(BaseModel):
    """One employee's compensation for a single payroll period."""

    model_config = ConfigDict(frozen=True)

    employee_id: str | None = None
    employee_name: str | None = None
    basic_salary: Money = _ZERO
    allowances: Allowances = Field(default_factory=Allowances)
    apwc_rate_percent: OptionalMoney = None  # None = rate table default
    prior_ytd_bonus: Money = _ZERO


# --- Calculator results ---


class ContributionResult(BaseModel):
    """Employee and employer portions of a capped contribution."""

    model_config = ConfigDict(frozen=True)

    employee_portion: Money
    employer_portion: Money
    insurable_base: Money


class BonusAllocation(BaseModel):
    """Split of a bonus payment into tax-free and taxable portions."""

    model_config = ConfigDict(frozen=True)

    tax_free_portion: Money
    taxable_portion: Money
    bonus_tax: Money
    new_ytd_bonus: Money


class AllowanceMethod(str, Enum):
    SPECIAL_INITIAL = "special_initial"
    ACCELERATED = "accelerated"
    STRAIGHT_LINE = "straight_line"


class AllowanceSelection(BaseModel):
    """Candidate allowances for one asset class and the one claimed."""

    model_config = ConfigDict(frozen=True)

    asset_cost: Money
    special_initial_amount: Money
    accelerated_amount: Money
    straight_line_amount: Money
    chosen_amount: Money
    chosen_method: AllowanceMethod


class CapitalAllowanceSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    breakdown: dict[AssetClass, AllowanceSelection]
    total: Money


class PayslipResult(BaseModel):
    """Full payslip for one employee and period. Field names are stable."""

    model_config = ConfigDict(frozen=True)

    tax_year: str
    basic_salary: Money
    allowances: Allowances
    total_allowances: Money
    gross_salary: Money

    # Employee deductions
    insurable_earnings: Money
    nssa_employee: Money
    taxable_income: Money
    paye: Money
    aids_levy: Money
    tax_free_bonus: Money
    taxable_bonus: Money
    bonus_tax: Money
    total_tax: Money
    net_salary: Money

    # Employer contributions
    nssa_employer: Money
    zimdef: Money
    apwc: Money
    apwc_rate_percent: Money
    total_employer_contributions: Money
    total_cost_to_employer: Money

    # Carried forward by the caller
    new_ytd_bonus: Money

    # Gross-up solver outcome
    converged: bool = True
    iterations: int = 0


class BatchTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    employee_count: int
    total_gross: Money
    total_net: Money
    total_paye: Money
    total_aids_levy: Money
    total_bonus_tax: Money
    total_nssa_employee: Money
    total_nssa_employer: Money
    total_zimdef: Money
    total_apwc: Money
    total_employer_contributions: Money
    total_employer_cost: Money


class BatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    results: list[PayslipResult]
    totals: BatchTotals


# --- Caller-held state ---


class BonusTaxState(BaseModel):
    """Cumulative bonus paid to one taxpayer in the current tax year."""

    model_config = ConfigDict(frozen=True)

    cumulative_bonus_ytd: Money = _ZERO
    year: int | None = None

    def advance(self, new_ytd_bonus: Decimal) -> "BonusTaxState":
        """Return the state after a period that brought the total to ``new_ytd_bonus``."""
        return self.model_copy(update={"cumulative_bonus_ytd": new_ytd_bonus})

    @classmethod
    def reset(cls, year: int | None = None) -> "BonusTaxState":
        return cls(year=year)


class PayrollPeriod(BaseModel):
    """The month currently being processed."""

    model_config = ConfigDict(frozen=True)

    month: int = Field(ge=1, le=12)
    year: int

    @property
    def label(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"

    def next(self) -> "PayrollPeriod":
        if self.month == 12:
            return PayrollPeriod(month=1, year=self.year + 1)
        return PayrollPeriod(month=self.month + 1, year=self.year)


# --- Corporate inputs ---


class ProfitAndLoss(_Record):
    sales: Money = _ZERO
    other_trading_income: Money = _ZERO
    cost_of_goods_sold: Money = _ZERO

    def total(self) -> Decimal:
        return self.sales + self.other_trading_income - self.cost_of_goods_sold


class OperatingExpenses(_Record):
    """Deductible operating expense heads from the income statement."""

    advertising_marketing: Money = _ZERO
    training_events: Money = _ZERO
    bank_charges: Money = _ZERO
    imtt: Money = _ZERO
    salaries: Money = _ZERO
    fuel: Money = _ZERO
    vehicle_maintenance: Money = _ZERO
    consultant_fees: Money = _ZERO
    accounting_fees: Money = _ZERO
    equipment_rental: Money = _ZERO
    it_internet: Money = _ZERO
    janitorial: Money = _ZERO
    warehouse: Money = _ZERO
    meals_entertainment: Money = _ZERO
    office_supplies: Money = _ZERO
    parking: Money = _ZERO
    printing_stationery: Money = _ZERO
    repairs_maintenance: Money = _ZERO
    telephone: Money = _ZERO
    travel: Money = _ZERO
    flights: Money = _ZERO
    taxi: Money = _ZERO
    toll_fees: Money = _ZERO
    rent: Money = _ZERO
    other: Money = _ZERO


class NonTaxableIncome(_Record):
    """Income included in profit that is exempt or capital in nature."""

    dividends_received: Money = _ZERO
    capital_receipts: Money = _ZERO
    profit_on_sale_of_assets: Money = _ZERO
    interest_from_financial_institutions: Money = _ZERO


class NonDeductibleExpenses(_Record):
    """Expenses charged in profit that the statute does not allow."""

    depreciation: Money = _ZERO
    disallowable_subscriptions: Money = _ZERO
    disallowable_legal_fees: Money = _ZERO
    fines_penalties: Money = _ZERO
    donations: Money = _ZERO
    doubtful_debts_provision: Money = _ZERO


class AdditionalTaxableIncome(_Record):
    """Amounts taxable in the year but not credited to profit."""

    recoupments: Money = _ZERO
    income_received_in_advance: Money = _ZERO


class AdditionalDeductions(_Record):
    """Tax deductions allowed in the year but not charged to profit."""

    allowable_deductions: Money = _ZERO
    other: Money = _ZERO


class CapitalAssets(_Record):
    """Qualifying capital cost per asset class."""

    motor_vehicles: Money = _ZERO
    moveable_assets: Money = _ZERO
    commercial_buildings: Money = _ZERO
    industrial_buildings: Money = _ZERO
    lease_improvements: Money = _ZERO

    def cost(self, asset_class: AssetClass) -> Decimal:
        return getattr(self, asset_class.value)


class CorporateTaxInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    profit_and_loss: ProfitAndLoss = Field(default_factory=ProfitAndLoss)
    operating_expenses: OperatingExpenses = Field(default_factory=OperatingExpenses)
    non_taxable_income: NonTaxableIncome = Field(default_factory=NonTaxableIncome)
    non_deductible_expenses: NonDeductibleExpenses = Field(default_factory=NonDeductibleExpenses)
    additional_taxable_income: AdditionalTaxableIncome = Field(
        default_factory=AdditionalTaxableIncome
    )
    additional_deductions: AdditionalDeductions = Field(default_factory=AdditionalDeductions)
    capital_assets: CapitalAssets = Field(default_factory=CapitalAssets)
    assessed_loss_brought_forward: Money = _ZERO


class CorporateTaxResult(BaseModel):
    """Corporate income tax computation. Field names are stable."""

    model_config = ConfigDict(frozen=True)

    tax_year: str
    gross_profit: Money
    operating_expenses: Money
    operating_profit: Money
    non_taxable_income: Money
    non_deductible_expenses: Money
    additional_taxable_income: Money
    additional_deductions: Money
    capital_allowances: Money
    capital_allowance_breakdown: dict[AssetClass, AllowanceSelection]
    assessed_loss_utilised: Money
    assessed_loss_carried_forward: Money
    taxable_income: Money
    corporate_tax: Money
    aids_levy: Money
    total_tax: Money
    effective_tax_rate: Money


# --- Advisory ---


class Advice(BaseModel):
    """Free-text guidance returned by the advisory service."""

    text: str
    model: str
    latency_ms: int
