"""Tests for the payroll CLI and its carried-forward state file."""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from run_payroll import apply_state, load_state, parse_args, run
from zimtax.calculators.batch import aggregate
from zimtax.calculators.tax_data import RateTable
from zimtax.models import BonusTaxState, PayrollPeriod


@pytest.fixture
def batch_file(tmp_path: Path) -> Path:
    path = tmp_path / "payroll.yaml"
    path.write_text(yaml.safe_dump({
        "employees": [
            {"employee_id": "E001", "basic_salary": 1000, "allowances": {"bonus": 500}},
            {"employee_id": "E002", "basic_salary": 800},
        ]
    }))
    return path


def _run(*argv: str) -> int:
    return run(parse_args(list(argv)))


class TestStateRoundTrip:
    def test_state_out_then_in(self, tmp_path: Path, batch_file: Path) -> None:
        """June pays a 500 bonus; July reads it back and only 200 stays tax-free."""
        june = tmp_path / "june.yaml"
        july = tmp_path / "july.yaml"

        assert _run(str(batch_file), "--month", "6", "--year", "2025", "--state-out", str(june)) == 0
        period, states = load_state(str(june))
        assert period == PayrollPeriod(month=7, year=2025)
        assert states["E001"].cumulative_bonus_ytd == Decimal("500")
        assert states["E002"].cumulative_bonus_ytd == 0

        assert _run(str(batch_file), "--state-in", str(june), "--state-out", str(july)) == 0
        period, states = load_state(str(july))
        assert period == PayrollPeriod(month=8, year=2025)
        assert states["E001"].cumulative_bonus_ytd == Decimal("1000")
        assert states["E001"].year == 2025

    def test_december_state_resets_for_new_year(self, tmp_path: Path, batch_file: Path) -> None:
        state = tmp_path / "state.yaml"
        assert _run(str(batch_file), "--month", "12", "--year", "2025", "--state-out", str(state)) == 0
        period, states = load_state(str(state))
        assert period == PayrollPeriod(month=1, year=2026)
        assert states["E001"] == BonusTaxState(year=2026)

    def test_explicit_period_overrides_state(self, tmp_path: Path, batch_file: Path) -> None:
        june = tmp_path / "june.yaml"
        out = tmp_path / "out.yaml"
        _run(str(batch_file), "--month", "6", "--year", "2025", "--state-out", str(june))

        assert _run(
            str(batch_file), "--state-in", str(june), "--month", "9", "--year", "2025",
            "--state-out", str(out),
        ) == 0
        period, _ = load_state(str(out))
        assert period == PayrollPeriod(month=10, year=2025)


class TestApplyState:
    def test_prior_bonus_reduces_tax_free_portion(
        self, rates: RateTable, make_employee
    ) -> None:  # type: ignore[no-untyped-def]
        employees = [make_employee(employee_id="E001", basic_salary="1000", bonus="500")]
        states = {"E001": BonusTaxState(cumulative_bonus_ytd=Decimal("500"), year=2025)}

        applied = apply_state(employees, states)

        assert applied[0].prior_ytd_bonus == Decimal("500")
        assert aggregate(applied, rates).results[0].tax_free_bonus == Decimal("200")

    def test_matches_by_position_without_id(self, make_employee) -> None:  # type: ignore[no-untyped-def]
        employees = [make_employee(employee_id=None), make_employee(employee_id=None)]
        states = {"1": BonusTaxState(cumulative_bonus_ytd=Decimal("300"))}

        applied = apply_state(employees, states)

        assert applied[0].prior_ytd_bonus == 0
        assert applied[1].prior_ytd_bonus == Decimal("300")

    def test_unknown_employee_unchanged(self, make_employee) -> None:  # type: ignore[no-untyped-def]
        employee = make_employee(employee_id="E005", prior_ytd_bonus="100")
        assert apply_state([employee], {"E001": BonusTaxState()}) == [employee]


class TestRunErrors:
    def test_state_out_without_period(self, tmp_path: Path, batch_file: Path) -> None:
        assert _run(str(batch_file), "--state-out", str(tmp_path / "state.yaml")) == 2
        assert not (tmp_path / "state.yaml").exists()

    def test_state_file_without_period(self, tmp_path: Path, batch_file: Path) -> None:
        state = tmp_path / "state.yaml"
        state.write_text(yaml.safe_dump({"bonus_ytd": {}}))
        assert _run(str(batch_file), "--state-in", str(state)) == 2

    def test_unknown_tax_year(self, batch_file: Path) -> None:
        assert _run(str(batch_file), "--tax-year", "1999") == 1
