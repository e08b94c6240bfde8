"""Batch payroll: run the PAYE pipeline over a list of employees."""

import logging
from collections.abc import Sequence
from decimal import Decimal

from config.settings import settings
from zimtax.calculators.errors import InvalidInputError
from zimtax.calculators.paye import compute_payslip
from zimtax.calculators.tax_data import RateTable, get_rate_table
from zimtax.models import BatchResult, BatchTotals, CompensationInput, PayslipResult

logger = logging.getLogger(__name__)


def _sum(results: Sequence[PayslipResult], field: str) -> Decimal:
    return sum((getattr(r, field) for r in results), Decimal("0"))


def aggregate(
    employees: Sequence[CompensationInput],
    rates: RateTable | None = None,
    max_batch_size: int | None = None,
) -> BatchResult:
    """Calculate payslips for every employee and total them.

    Employees are independent; results keep the input order.

    Raises:
        InvalidInputError: more employees than ``max_batch_size``.
    """
    limit = max_batch_size or settings.max_batch_size
    if len(employees) > limit:
        raise InvalidInputError(
            "employees", f"Batch has {len(employees)} employees; maximum is {limit}."
        )
    rates = rates or get_rate_table()

    results: list[PayslipResult] = []
    for index, employee in enumerate(employees):
        try:
            results.append(compute_payslip(employee, rates))
        except InvalidInputError as exc:
            # Point at the offending employee as well as the field
            raise InvalidInputError(f"employees[{index}].{exc.field}", exc.message) from exc

    totals = BatchTotals(
        employee_count=len(results),
        total_gross=_sum(results, "gross_salary"),
        total_net=_sum(results, "net_salary"),
        total_paye=_sum(results, "paye"),
        total_aids_levy=_sum(results, "aids_levy"),
        total_bonus_tax=_sum(results, "bonus_tax"),
        total_nssa_employee=_sum(results, "nssa_employee"),
        total_nssa_employer=_sum(results, "nssa_employer"),
        total_zimdef=_sum(results, "zimdef"),
        total_apwc=_sum(results, "apwc"),
        total_employer_contributions=_sum(results, "total_employer_contributions"),
        total_employer_cost=_sum(results, "total_cost_to_employer"),
    )
    logger.info(
        "Batch payroll: %d employees, gross=%s net=%s",
        totals.employee_count, totals.total_gross, totals.total_net,
    )
    return BatchResult(results=results, totals=totals)
