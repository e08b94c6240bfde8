"""Bonus tax calculator: cumulative tax-free threshold per tax year."""

from decimal import Decimal

from zimtax.calculators.errors import InvalidInputError
from zimtax.models import BonusAllocation

_ZERO = Decimal("0")


def allocate_bonus(
    current_bonus: Decimal,
    prior_ytd_bonus: Decimal,
    threshold: Decimal,
    top_marginal_rate: Decimal,
) -> BonusAllocation:
    """Split this period's bonus into tax-free and taxable portions.

    The first ``threshold`` of bonuses paid in a tax year is tax-free; the
    rest is taxed at the top marginal rate. The returned ``new_ytd_bonus``
    must be fed into the next period's call for the same taxpayer, in order.

    Args:
        current_bonus: Bonus paid this period (must be >= 0).
        prior_ytd_bonus: Bonuses already paid this tax year (must be >= 0).
        threshold: Annual tax-free bonus threshold.
        top_marginal_rate: Rate applied to the taxable portion.
    """
    if current_bonus < 0:
        raise InvalidInputError("allowances.bonus", "Bonus must be non-negative.")
    if prior_ytd_bonus < 0:
        raise InvalidInputError("prior_ytd_bonus", "Year-to-date bonus must be non-negative.")

    new_ytd = prior_ytd_bonus + current_bonus

    if new_ytd <= threshold:
        tax_free, taxable = current_bonus, _ZERO
    elif prior_ytd_bonus >= threshold:
        tax_free, taxable = _ZERO, current_bonus
    else:
        # Threshold crossed this period
        tax_free = threshold - prior_ytd_bonus
        taxable = current_bonus - tax_free

    return BonusAllocation(
        tax_free_portion=tax_free,
        taxable_portion=taxable,
        bonus_tax=taxable * top_marginal_rate,
        new_ytd_bonus=new_ytd,
    )
