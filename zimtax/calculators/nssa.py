"""NSSA contribution calculator."""

from decimal import Decimal

from zimtax.calculators.errors import InvalidInputError
from zimtax.calculators.tax_data import ContributionRule
from zimtax.models import ContributionResult


def compute_contribution(gross_amount: Decimal, rule: ContributionRule) -> ContributionResult:
    """Calculate employee and employer NSSA contributions.

    Contributions are charged on insurable earnings up to the monthly
    ceiling; each portion is also held to ``ceiling × rate``.

    Args:
        gross_amount: Gross earnings for the month (must be >= 0).
        rule: Rates and ceiling from the rate table.
    """
    if gross_amount < 0:
        raise InvalidInputError("gross_amount", "Gross amount must be non-negative.")

    insurable = min(gross_amount, rule.monthly_ceiling)
    employee = min(insurable * rule.employee_rate, rule.monthly_ceiling * rule.employee_rate)
    employer = min(insurable * rule.employer_rate, rule.monthly_ceiling * rule.employer_rate)

    return ContributionResult(
        employee_portion=employee,
        employer_portion=employer,
        insurable_base=insurable,
    )
