"""PAYE payroll pipeline: combines NSSA, PAYE bands, AIDS levy, bonus tax
and employer contributions into a payslip, in either direction.
"""

import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from config.settings import settings
from zimtax.calculators.bonus import allocate_bonus
from zimtax.calculators.errors import InvalidInputError
from zimtax.calculators.income_tax import compute_tax
from zimtax.calculators.nssa import compute_contribution
from zimtax.calculators.tax_data import RateTable, get_rate_table
from zimtax.models import Allowances, CompensationInput, PayslipResult

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

# Gross-up step sizes: small step down when net overshoots, larger step up
# when it falls short.
OVERSHOOT_DAMPING = Decimal("0.5")
SHORTFALL_DAMPING = Decimal("1.5")


def _check_apwc_rate(apwc_rate_percent: Decimal | None, rates: RateTable) -> Decimal:
    if apwc_rate_percent is None:
        return rates.apwc_default_rate_percent
    if apwc_rate_percent < 0 or apwc_rate_percent > rates.apwc_max_rate_percent:
        raise InvalidInputError(
            "apwc_rate_percent",
            f"APWC rate must be between 0 and {rates.apwc_max_rate_percent}%.",
        )
    return apwc_rate_percent


def compute_from_gross(
    basic_salary: Decimal,
    allowances: Allowances | Mapping[str, Any] | None = None,
    apwc_rate_percent: Decimal | None = None,
    prior_ytd_bonus: Decimal = _ZERO,
    rates: RateTable | None = None,
) -> PayslipResult:
    """Calculate a monthly payslip from basic salary and allowances.

    Args:
        basic_salary: Monthly basic salary (must be >= 0).
        allowances: Allowance amounts; a plain mapping is coerced, with
            missing or non-numeric values treated as zero.
        apwc_rate_percent: Employer APWC rate in percent; rate table default
            when omitted. Out-of-range values are rejected.
        prior_ytd_bonus: Bonuses already paid this tax year.
        rates: Rate table; the configured tax year when omitted.

    Returns:
        PayslipResult with employee deductions, net pay and employer cost.
    """
    rates = rates or get_rate_table()
    if not isinstance(allowances, Allowances):
        allowances = Allowances.model_validate(allowances or {})

    if basic_salary < 0:
        raise InvalidInputError("basic_salary", "Basic salary must be non-negative.")
    for name, amount in allowances.amounts().items():
        if amount < 0:
            raise InvalidInputError(f"allowances.{name}", "Allowances must be non-negative.")
    apwc_rate = _check_apwc_rate(apwc_rate_percent, rates)

    total_allowances = allowances.total()
    gross = basic_salary + total_allowances

    bonus = allocate_bonus(
        allowances.bonus,
        prior_ytd_bonus,
        rates.bonus_tax_free_threshold,
        rates.top_marginal_rate,
    )
    nssa = compute_contribution(gross, rates.nssa)

    taxable = max(_ZERO, gross - nssa.employee_portion - bonus.tax_free_portion)
    paye = compute_tax(taxable, rates.paye_bands)
    aids_levy = paye * rates.aids_levy_rate
    total_tax = paye + aids_levy + bonus.bonus_tax
    net = gross - nssa.employee_portion - total_tax

    zimdef = gross * rates.zimdef_rate
    apwc = gross * apwc_rate / _HUNDRED
    employer_contributions = nssa.employer_portion + zimdef + apwc

    return PayslipResult(
        tax_year=rates.tax_year,
        basic_salary=basic_salary,
        allowances=allowances,
        total_allowances=total_allowances,
        gross_salary=gross,
        insurable_earnings=nssa.insurable_base,
        nssa_employee=nssa.employee_portion,
        taxable_income=taxable,
        paye=paye,
        aids_levy=aids_levy,
        tax_free_bonus=bonus.tax_free_portion,
        taxable_bonus=bonus.taxable_portion,
        bonus_tax=bonus.bonus_tax,
        total_tax=total_tax,
        net_salary=net,
        nssa_employer=nssa.employer_portion,
        zimdef=zimdef,
        apwc=apwc,
        apwc_rate_percent=apwc_rate,
        total_employer_contributions=employer_contributions,
        total_cost_to_employer=gross + employer_contributions,
        new_ytd_bonus=bonus.new_ytd_bonus,
    )


def compute_payslip(employee: CompensationInput, rates: RateTable | None = None) -> PayslipResult:
    """Calculate a payslip from a ``CompensationInput`` record."""
    return compute_from_gross(
        employee.basic_salary,
        employee.allowances,
        employee.apwc_rate_percent,
        employee.prior_ytd_bonus,
        rates,
    )


def compute_from_net(
    target_net: Decimal,
    apwc_rate_percent: Decimal | None = None,
    rates: RateTable | None = None,
    max_iterations: int | None = None,
    tolerance: Decimal | None = None,
) -> PayslipResult:
    """Gross up: find the basic salary that pays ``target_net``.

    Bands and the NSSA cap make net pay piecewise linear in gross, so this
    iterates from ``gross = target_net`` with damped corrections until net is
    within ``tolerance``. After ``max_iterations`` rounds the last estimate is
    returned with ``converged=False``.

    Args:
        target_net: Desired monthly net salary (must be >= 0).
        apwc_rate_percent: Employer APWC rate in percent.
        rates: Rate table; the configured tax year when omitted.
        max_iterations: Round cap (settings default).
        tolerance: Acceptable net difference (settings default, one cent).
    """
    if target_net < 0:
        raise InvalidInputError("target_net", "Target net salary must be non-negative.")
    rates = rates or get_rate_table()
    max_iterations = max_iterations or settings.gross_up_max_iterations
    tolerance = tolerance if tolerance is not None else settings.gross_up_tolerance

    gross = target_net
    for iteration in range(1, max_iterations + 1):
        result = compute_from_gross(gross, None, apwc_rate_percent, _ZERO, rates)
        delta = result.net_salary - target_net
        if abs(delta) < tolerance:
            logger.debug("Gross-up converged in %d rounds: gross=%s", iteration, gross)
            return result.model_copy(update={"iterations": iteration})
        if iteration == max_iterations:
            break

        if delta > 0:
            gross -= delta * OVERSHOOT_DAMPING
        else:
            gross += -delta * SHORTFALL_DAMPING
        gross = max(_ZERO, gross)

    # The payslip of the last evaluated estimate, never a further step.
    logger.warning(
        "Gross-up did not converge after %d rounds: target=%s net=%s gross=%s",
        max_iterations, target_net, result.net_salary, result.gross_salary,
    )
    return result.model_copy(update={"converged": False, "iterations": max_iterations})
