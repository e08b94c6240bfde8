"""Capital allowance calculator: best of three methods per asset class."""

import logging
from decimal import Decimal

from zimtax.calculators.errors import InvalidInputError
from zimtax.calculators.tax_data import AssetAllowanceRates, AssetClass, RateTable
from zimtax.models import AllowanceMethod, AllowanceSelection, CapitalAllowanceSummary, CapitalAssets

logger = logging.getLogger(__name__)


def select_allowance(asset_cost: Decimal, rates: AssetAllowanceRates) -> AllowanceSelection:
    """Compute special initial, accelerated and straight-line allowances.

    The largest of the three is claimed. Taxpayer elections are not modelled.
    On a tie the earlier method in that order wins.
    """
    if asset_cost < 0:
        raise InvalidInputError("asset_cost", "Asset cost must be non-negative.")

    candidates = {
        AllowanceMethod.SPECIAL_INITIAL: asset_cost * rates.special_initial_rate,
        AllowanceMethod.ACCELERATED: asset_cost * rates.accelerated_rate,
        AllowanceMethod.STRAIGHT_LINE: asset_cost * rates.straight_line_rate,
    }
    method = max(candidates, key=lambda m: candidates[m])

    return AllowanceSelection(
        asset_cost=asset_cost,
        special_initial_amount=candidates[AllowanceMethod.SPECIAL_INITIAL],
        accelerated_amount=candidates[AllowanceMethod.ACCELERATED],
        straight_line_amount=candidates[AllowanceMethod.STRAIGHT_LINE],
        chosen_amount=candidates[method],
        chosen_method=method,
    )


def compute_capital_allowances(assets: CapitalAssets, rates: RateTable) -> CapitalAllowanceSummary:
    """Apply ``select_allowance`` to every asset class and total the claims."""
    breakdown: dict[AssetClass, AllowanceSelection] = {}
    for asset_class in AssetClass:
        cost = assets.cost(asset_class)
        if cost < 0:
            raise InvalidInputError(
                f"capital_assets.{asset_class.value}", "Asset cost must be non-negative."
            )
        breakdown[asset_class] = select_allowance(cost, rates.capital_allowances[asset_class])

    total = sum((s.chosen_amount for s in breakdown.values()), Decimal("0"))
    logger.info("Capital allowances total=%s across %d classes", total, len(breakdown))
    return CapitalAllowanceSummary(breakdown=breakdown, total=total)
