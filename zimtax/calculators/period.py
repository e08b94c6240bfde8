"""Payroll period rollover: advance the month and carry bonus state."""

import logging
from collections.abc import Mapping, Sequence

from zimtax.models import BatchResult, BonusTaxState, CompensationInput, PayrollPeriod

logger = logging.getLogger(__name__)


def roll_forward(
    period: PayrollPeriod,
    employees: Sequence[CompensationInput],
    batch: BatchResult,
    states: Mapping[str, BonusTaxState] | None = None,
) -> tuple[PayrollPeriod, dict[str, BonusTaxState]]:
    """Close ``period`` and return the next period with updated bonus states.

    Within a year each employee's state takes the ``new_ytd_bonus`` from
    their payslip. Rolling from December into January starts a new tax year,
    so every state resets to zero.

    Args:
        period: The period ``batch`` was computed for.
        employees: The batch input, in the same order as ``batch.results``.
        batch: Output of ``aggregate`` for ``employees``.
        states: Existing states keyed by employee id, for employees absent
            from this batch.

    Returns:
        (next period, states keyed by employee id).
    """
    if len(employees) != len(batch.results):
        raise ValueError("employees and batch results differ in length")

    next_period = period.next()
    updated: dict[str, BonusTaxState] = dict(states or {})

    if next_period.year != period.year:
        logger.info("Rolled into %s: resetting bonus YTD for new tax year", next_period.label)
        keys = set(updated) | {
            e.employee_id or str(i) for i, e in enumerate(employees)
        }
        return next_period, {key: BonusTaxState.reset(next_period.year) for key in keys}

    for index, (employee, result) in enumerate(zip(employees, batch.results)):
        key = employee.employee_id or str(index)
        current = updated.get(key, BonusTaxState(year=period.year))
        updated[key] = current.advance(result.new_ytd_bonus)

    logger.info("Rolled into %s: carried bonus YTD for %d employees", next_period.label, len(employees))
    return next_period, updated
