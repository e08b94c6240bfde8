"""CLI script for running a monthly payroll batch.

Usage:
    # Compute payslips for every employee in a YAML batch file
    python scripts/run_payroll.py payroll.yaml

    # Use a specific tax year's rate table
    python scripts/run_payroll.py payroll.yaml --tax-year 2025

    # Close the period and write next month's bonus year-to-date state
    python scripts/run_payroll.py payroll.yaml --month 6 --year 2025 --state-out state.yaml

    # Run the next month from that state and carry it forward again
    python scripts/run_payroll.py payroll.yaml --state-in state.yaml --state-out state.yaml

    # Verbose logging
    python scripts/run_payroll.py payroll.yaml -v

The batch file holds an ``employees`` list of compensation records, e.g.::

    employees:
      - employee_id: E001
        basic_salary: 1200
        allowances: {transport: 150, bonus: 400}
        prior_ytd_bonus: 300

A state file written by ``--state-out`` holds the next period and each
employee's bonus year-to-date. Reading it back with ``--state-in`` sets every
matching employee's ``prior_ytd_bonus`` and the payroll period; ``--month`` and
``--year`` still override the period.
"""

import argparse
import logging
import sys
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config import load_yaml_config
from zimtax.calculators.batch import aggregate
from zimtax.calculators.errors import TaxEngineError
from zimtax.calculators.period import roll_forward
from zimtax.calculators.tax_data import get_rate_table
from zimtax.models import BatchResult, BonusTaxState, CompensationInput, PayrollPeriod

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a Zimbabwe PAYE payroll batch")
    parser.add_argument("batch_file", help="YAML file with an 'employees' list")
    parser.add_argument("--tax-year", help="Rate table to use (default: configured tax year)")
    parser.add_argument("--month", type=int, help="Payroll month (1-12) for period rollover")
    parser.add_argument("--year", type=int, help="Payroll calendar year for period rollover")
    parser.add_argument(
        "--state-in",
        help="Read the period and bonus YTD state written by a previous --state-out",
    )
    parser.add_argument(
        "--state-out",
        help="Write next period's bonus YTD state to this YAML file "
        "(needs --month/--year or --state-in)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return parser.parse_args(argv)


def load_employees(path: str) -> list[CompensationInput]:
    """Read compensation records from a YAML batch file."""
    data = load_yaml_config(str(Path(path).resolve()))
    return [CompensationInput.model_validate(raw) for raw in data.get("employees") or []]


def load_state(path: str) -> tuple[PayrollPeriod, dict[str, BonusTaxState]]:
    """Read a state file written by ``write_state``.

    Raises:
        ValueError: The file has no ``period`` entry.
        ValidationError: The period or a bonus state is malformed.
    """
    data = load_yaml_config(str(Path(path).resolve()))
    if "period" not in data:
        raise ValueError(f"{path} has no 'period' entry")
    period = PayrollPeriod.model_validate(data["period"])
    states = {
        str(key): BonusTaxState.model_validate(raw)
        for key, raw in (data.get("bonus_ytd") or {}).items()
    }
    return period, states


def apply_state(
    employees: list[CompensationInput], states: Mapping[str, BonusTaxState]
) -> list[CompensationInput]:
    """Set each employee's prior bonus from their carried-forward state.

    Employees are matched by id, or by position when they have none, the same
    keys ``roll_forward`` writes. Employees with no state are left unchanged.
    """
    applied = []
    for index, employee in enumerate(employees):
        state = states.get(employee.employee_id or str(index))
        if state is not None:
            employee = employee.model_copy(
                update={"prior_ytd_bonus": state.cumulative_bonus_ytd}
            )
        applied.append(employee)
    return applied


def print_report(employees: list[CompensationInput], batch: BatchResult) -> None:
    header = f"{'Employee':<20} {'Gross':>12} {'PAYE':>10} {'NSSA':>10} {'Net':>12}"
    print(header)
    print("-" * len(header))
    for index, (employee, result) in enumerate(zip(employees, batch.results)):
        name = employee.employee_name or employee.employee_id or str(index + 1)
        print(
            f"{name:<20} {result.gross_salary:>12,.2f} {result.paye:>10,.2f} "
            f"{result.nssa_employee:>10,.2f} {result.net_salary:>12,.2f}"
        )
    totals = batch.totals
    print("-" * len(header))
    print(
        f"{'TOTAL':<20} {totals.total_gross:>12,.2f} {totals.total_paye:>10,.2f} "
        f"{totals.total_nssa_employee:>10,.2f} {totals.total_net:>12,.2f}"
    )
    print(f"Total employer cost: {totals.total_employer_cost:,.2f}")


def write_state(
    path: str,
    period: PayrollPeriod,
    employees: list[CompensationInput],
    batch: BatchResult,
    states: Mapping[str, BonusTaxState] | None = None,
) -> None:
    next_period, next_states = roll_forward(period, employees, batch, states)
    payload = {
        "period": next_period.model_dump(),
        "bonus_ytd": {key: state.model_dump(mode="json") for key, state in next_states.items()},
    }
    with open(path, "w") as f:
        yaml.safe_dump(payload, f, sort_keys=True)
    logger.info("Wrote %s state for %d employees to %s", next_period.label, len(next_states), path)


def run(args: argparse.Namespace) -> int:
    employees = load_employees(args.batch_file)
    logger.info("Loaded %d employees from %s", len(employees), args.batch_file)

    period: PayrollPeriod | None = None
    states: dict[str, BonusTaxState] = {}
    if args.state_in:
        try:
            period, states = load_state(args.state_in)
        except (ValueError, ValidationError) as exc:
            logger.error("Invalid state file %s: %s", args.state_in, exc)
            return 2
        employees = apply_state(employees, states)
        logger.info("Loaded %s state for %d employees", period.label, len(states))
    if args.month is not None and args.year is not None:
        period = PayrollPeriod(month=args.month, year=args.year)

    try:
        batch = aggregate(employees, get_rate_table(args.tax_year))
    except TaxEngineError as exc:
        logger.error("Payroll failed: %s", exc)
        return 1

    print_report(employees, batch)

    if args.state_out:
        if period is None:
            logger.error("--state-out requires --month and --year, or --state-in")
            return 2
        write_state(args.state_out, period, employees, batch, states)
    return 0


def main() -> None:
    args = parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    sys.exit(run(args))


if __name__ == "__main__":
    main()
