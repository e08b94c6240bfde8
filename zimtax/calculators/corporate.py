"""Corporate income tax calculator: profit adjustment to tax payable."""

import logging
from decimal import Decimal

from zimtax.calculators.capital_allowance import compute_capital_allowances
from zimtax.calculators.errors import InvalidInputError
from zimtax.calculators.tax_data import RateTable, get_rate_table
from zimtax.models import CorporateTaxInput, CorporateTaxResult

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")

_RECORDS = (
    "profit_and_loss",
    "operating_expenses",
    "non_taxable_income",
    "non_deductible_expenses",
    "additional_taxable_income",
    "additional_deductions",
    "capital_assets",
)


def _validate(data: CorporateTaxInput) -> None:
    for record_name in _RECORDS:
        record = getattr(data, record_name)
        for name, amount in record.amounts().items():
            if amount < 0:
                raise InvalidInputError(
                    f"{record_name}.{name}", "Amounts must be non-negative."
                )
    if data.assessed_loss_brought_forward < 0:
        raise InvalidInputError(
            "assessed_loss_brought_forward", "Assessed loss must be non-negative."
        )


def compute_corporate_tax(
    data: CorporateTaxInput,
    rates: RateTable | None = None,
) -> CorporateTaxResult:
    """Calculate corporate income tax and AIDS levy for one year of account.

    Starting from operating profit, exempt income is deducted, disallowed
    expenses are added back, taxable receipts are added, further
    allowable deductions and capital allowances are claimed and any assessed
    loss brought forward is set off. Taxable income is floored at zero; a loss
    for the year is added to the loss carried forward.

    Args:
        data: Income statement figures and tax adjustments.
        rates: Rate table; the configured tax year when omitted.

    Returns:
        CorporateTaxResult with the intermediate figures and tax payable.
    """
    rates = rates or get_rate_table()
    _validate(data)

    gross_profit = data.profit_and_loss.total()
    operating_expenses = data.operating_expenses.total()
    operating_profit = gross_profit - operating_expenses

    non_taxable = data.non_taxable_income.total()
    non_deductible = data.non_deductible_expenses.total()
    additional = data.additional_taxable_income.total()
    deductions = data.additional_deductions.total()
    allowances = compute_capital_allowances(data.capital_assets, rates)

    adjusted = (
        operating_profit - non_taxable + non_deductible + additional - deductions - allowances.total
    )

    loss_bf = data.assessed_loss_brought_forward
    if adjusted > 0:
        loss_utilised = min(loss_bf, adjusted)
        taxable_income = adjusted - loss_utilised
        loss_cf = loss_bf - loss_utilised
    else:
        loss_utilised = _ZERO
        taxable_income = _ZERO
        loss_cf = loss_bf - adjusted

    corporate_tax = taxable_income * rates.corporate_tax_rate
    aids_levy = corporate_tax * rates.aids_levy_rate
    total_tax = corporate_tax + aids_levy
    effective_rate = (total_tax / taxable_income * 100) if taxable_income > 0 else _ZERO

    logger.info(
        "Corporate tax %s: operating_profit=%s taxable=%s total_tax=%s",
        rates.tax_year, operating_profit, taxable_income, total_tax,
    )

    return CorporateTaxResult(
        tax_year=rates.tax_year,
        gross_profit=gross_profit,
        operating_expenses=operating_expenses,
        operating_profit=operating_profit,
        non_taxable_income=non_taxable,
        non_deductible_expenses=non_deductible,
        additional_taxable_income=additional,
        additional_deductions=deductions,
        capital_allowances=allowances.total,
        capital_allowance_breakdown=allowances.breakdown,
        assessed_loss_utilised=loss_utilised,
        assessed_loss_carried_forward=loss_cf,
        taxable_income=taxable_income,
        corporate_tax=corporate_tax,
        aids_levy=aids_levy,
        total_tax=total_tax,
        effective_tax_rate=round(effective_rate, 2),
    )
