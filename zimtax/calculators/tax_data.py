"""Zimbabwe tax constants: PAYE bands, NSSA, levies, capital allowances.

Rates for every supported tax year live in ``config/rate_tables.yaml`` and are
parsed here into immutable NamedTuples at import time. A new tax year is a
single YAML entry; every pipeline takes a ``RateTable`` argument so callers can
also inject their own.
"""

from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, NamedTuple

from config import load_yaml_config
from config.settings import settings
from zimtax.calculators.errors import InvalidInputError, RateTableError


class AssetClass(str, Enum):
    """Depreciable asset classes that attract capital allowances."""

    MOTOR_VEHICLES = "motor_vehicles"
    MOVEABLE_ASSETS = "moveable_assets"
    COMMERCIAL_BUILDINGS = "commercial_buildings"
    INDUSTRIAL_BUILDINGS = "industrial_buildings"
    LEASE_IMPROVEMENTS = "lease_improvements"


class TaxBand(NamedTuple):
    """A single PAYE band using the rate-and-subtractor form."""

    lower: Decimal  # inclusive
    upper: Decimal | None  # inclusive; None = no cap
    rate: Decimal
    subtractor: Decimal


class ContributionRule(NamedTuple):
    """Capped social-security contribution parameters."""

    employee_rate: Decimal
    employer_rate: Decimal
    monthly_ceiling: Decimal  # maximum monthly insurable earnings


class AssetAllowanceRates(NamedTuple):
    """Alternative allowance rates for one asset class."""

    special_initial_rate: Decimal
    accelerated_rate: Decimal
    straight_line_rate: Decimal


class RateTable(NamedTuple):
    """All statutory parameters for a single tax year."""

    tax_year: str
    paye_bands: tuple[TaxBand, ...]
    nssa: ContributionRule
    aids_levy_rate: Decimal
    zimdef_rate: Decimal
    apwc_max_rate_percent: Decimal
    apwc_default_rate_percent: Decimal
    bonus_tax_free_threshold: Decimal
    corporate_tax_rate: Decimal
    capital_allowances: Mapping[AssetClass, AssetAllowanceRates]

    @property
    def top_marginal_rate(self) -> Decimal:
        return self.paye_bands[-1].rate


def validate_bands(bands: tuple[TaxBand, ...]) -> None:
    """Check that bands start at 0, are contiguous and end unbounded."""
    if not bands:
        raise RateTableError("PAYE band table is empty")
    if bands[0].lower != 0:
        raise RateTableError(f"First PAYE band must start at 0, got {bands[0].lower}")
    for prev, band in zip(bands, bands[1:]):
        if prev.upper is None:
            raise RateTableError("Only the final PAYE band may be unbounded")
        if band.lower != prev.upper:
            raise RateTableError(
                f"PAYE bands are not contiguous: {prev.upper} -> {band.lower}"
            )
    if bands[-1].upper is not None:
        raise RateTableError("Final PAYE band must be unbounded")


def _dec(value: Any, what: str) -> Decimal:
    try:
        return Decimal(str(value))
    except ArithmeticError as exc:
        raise RateTableError(f"Invalid number for {what}: {value!r}") from exc


def parse_rate_table(tax_year: str, raw: dict[str, Any]) -> RateTable:
    """Build a validated ``RateTable`` from one YAML ``tax_years`` entry."""
    try:
        bands = tuple(
            TaxBand(
                lower=_dec(lower, "band lower"),
                upper=None if upper is None else _dec(upper, "band upper"),
                rate=_dec(rate, "band rate"),
                subtractor=_dec(subtractor, "band subtractor"),
            )
            for lower, upper, rate, subtractor in raw["paye_bands"]
        )
        nssa = raw["nssa"]
        allowances = {
            AssetClass(name): AssetAllowanceRates(
                *(_dec(r, f"{name} allowance rate") for r in rates)
            )
            for name, rates in raw["capital_allowances"].items()
        }
        table = RateTable(
            tax_year=tax_year,
            paye_bands=bands,
            nssa=ContributionRule(
                employee_rate=_dec(nssa["employee_rate"], "nssa employee_rate"),
                employer_rate=_dec(nssa["employer_rate"], "nssa employer_rate"),
                monthly_ceiling=_dec(nssa["monthly_ceiling"], "nssa monthly_ceiling"),
            ),
            aids_levy_rate=_dec(raw["aids_levy_rate"], "aids_levy_rate"),
            zimdef_rate=_dec(raw["zimdef_rate"], "zimdef_rate"),
            apwc_max_rate_percent=_dec(raw["apwc_max_rate_percent"], "apwc_max_rate_percent"),
            apwc_default_rate_percent=_dec(
                raw["apwc_default_rate_percent"], "apwc_default_rate_percent"
            ),
            bonus_tax_free_threshold=_dec(
                raw["bonus_tax_free_threshold"], "bonus_tax_free_threshold"
            ),
            corporate_tax_rate=_dec(raw["corporate_tax_rate"], "corporate_tax_rate"),
            capital_allowances=MappingProxyType(allowances),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise RateTableError(f"Malformed rate table for {tax_year}: {exc}") from exc

    validate_bands(table.paye_bands)
    missing = set(AssetClass) - set(table.capital_allowances)
    if missing:
        names = ", ".join(sorted(m.value for m in missing))
        raise RateTableError(f"Rate table {tax_year} lacks allowance rates for: {names}")
    rule = table.nssa
    if rule.monthly_ceiling < 0 or not (
        0 <= rule.employee_rate <= 1 and 0 <= rule.employer_rate <= 1
    ):
        raise RateTableError(f"Invalid NSSA rule for {tax_year}: {rule}")
    return table


def load_tax_years(filename: str) -> tuple[dict[str, RateTable], str]:
    """Load every tax year from a rate-table YAML file."""
    config = load_yaml_config(filename)
    years = {
        str(year): parse_rate_table(str(year), raw)
        for year, raw in (config.get("tax_years") or {}).items()
    }
    if not years:
        raise RateTableError(f"No tax years defined in {filename}")
    default = str(config.get("default_tax_year", max(years)))
    if default not in years:
        raise RateTableError(f"Default tax year {default} is not defined in {filename}")
    return years, default


TAX_YEARS, DEFAULT_TAX_YEAR = load_tax_years(settings.rate_table_file)


def get_rate_table(tax_year: str | None = None) -> RateTable:
    """Return the rate table for ``tax_year`` (settings default when omitted)."""
    key = tax_year or settings.tax_year or DEFAULT_TAX_YEAR
    if key not in TAX_YEARS:
        available = ", ".join(sorted(TAX_YEARS))
        raise InvalidInputError("tax_year", f"Unknown tax year: {key}. Available: {available}")
    return TAX_YEARS[key]
