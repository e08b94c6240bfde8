"""Tests for input coercion and result serialisation."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from zimtax.calculators.paye import compute_from_gross
from zimtax.calculators.tax_data import RateTable
from zimtax.models import Allowances, CompensationInput, OperatingExpenses, to_amount


class TestToAmount:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "0"),
            ("", "0"),
            ("   ", "0"),
            ("abc", "0"),
            ("NaN", "0"),
            ("Infinity", "0"),
            (float("inf"), "0"),
            (True, "0"),
            ("1,250.50", "1250.50"),
            (" 42 ", "42"),
            (3, "3"),
            (0.1, "0.1"),
            (Decimal("7.25"), "7.25"),
            ([], "0"),
        ],
    )
    def test_coercion(self, value, expected: str) -> None:  # type: ignore[no-untyped-def]
        assert to_amount(value) == Decimal(expected)

    def test_negative_preserved(self) -> None:
        """Negatives pass through so the calculators can reject them by field."""
        assert to_amount("-5") == Decimal("-5")


class TestInputModels:
    def test_missing_fields_default_to_zero(self) -> None:
        employee = CompensationInput.model_validate({"allowances": {"bonus": None}})
        assert employee.basic_salary == 0
        assert employee.allowances.total() == 0
        assert employee.apwc_rate_percent is None

    def test_blank_apwc_rate_means_default(self) -> None:
        assert CompensationInput(apwc_rate_percent="").apwc_rate_percent is None
        assert CompensationInput(apwc_rate_percent="2").apwc_rate_percent == Decimal("2")

    def test_unknown_allowance_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Allowances.model_validate({"entertainment": "10"})

    def test_unknown_expense_rejected(self) -> None:
        with pytest.raises(ValidationError):
            OperatingExpenses.model_validate({"yacht": "10"})

    def test_records_are_frozen(self) -> None:
        allowances = Allowances(living=Decimal("10"))
        with pytest.raises(ValidationError):
            allowances.living = Decimal("20")

    def test_amounts_cover_every_field(self) -> None:
        assert set(Allowances().amounts()) == set(Allowances.model_fields)


class TestResultSerialisation:
    def test_money_serialises_as_json_number(self, rates: RateTable) -> None:
        data = compute_from_gross(Decimal("250"), rates=rates).model_dump(mode="json")
        assert data["net_salary"] == pytest.approx(210.1675)
        assert isinstance(data["paye"], float)
        assert data["converged"] is True
        assert data["allowances"]["bonus"] == 0.0

    def test_field_names_are_stable(self, rates: RateTable) -> None:
        data = compute_from_gross(Decimal("250"), rates=rates).model_dump()
        for name in [
            "gross_salary", "nssa_employee", "paye", "aids_levy", "bonus_tax",
            "net_salary", "nssa_employer", "zimdef", "apwc", "total_cost_to_employer",
            "new_ytd_bonus",
        ]:
            assert name in data
