"""Progressive PAYE calculator: band lookup with rate-and-subtractor."""

from decimal import Decimal

from zimtax.calculators.errors import RateTableError
from zimtax.calculators.tax_data import TaxBand

_ZERO = Decimal("0")


def find_band(amount: Decimal, bands: tuple[TaxBand, ...]) -> TaxBand:
    """Return the first band whose inclusive range contains ``amount``.

    Raises:
        RateTableError: no band covers the amount (malformed table).
    """
    for band in bands:
        if amount >= band.lower and (band.upper is None or amount <= band.upper):
            return band
    raise RateTableError(f"No PAYE band covers taxable amount {amount}")


def compute_tax(taxable_amount: Decimal, bands: tuple[TaxBand, ...]) -> Decimal:
    """Calculate PAYE due on a monthly taxable amount.

    ``amount × rate − subtractor`` equals the bracket-by-bracket sum over all
    lower bands, so only the containing band is needed. Negative amounts are
    treated as zero.

    Args:
        taxable_amount: Taxable income for the period.
        bands: Contiguous PAYE bands from a ``RateTable``.

    Returns:
        Tax due, never negative.
    """
    if taxable_amount <= 0:
        return _ZERO
    band = find_band(taxable_amount, bands)
    return max(_ZERO, taxable_amount * band.rate - band.subtractor)
