"""Tests for the corporate income tax pipeline."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from zimtax.calculators.corporate import compute_corporate_tax
from zimtax.calculators.errors import InvalidInputError
from zimtax.calculators.tax_data import AssetClass, RateTable
from zimtax.models import AllowanceMethod, CorporateTaxInput


def _company(**overrides) -> CorporateTaxInput:  # type: ignore[no-untyped-def]
    data = {
        "profit_and_loss": {"sales": "100000", "cost_of_goods_sold": "40000"},
        "operating_expenses": {"rent": "10000"},
        "non_taxable_income": {"dividends_received": "5000"},
        "non_deductible_expenses": {"fines_penalties": "2000", "depreciation": "3000"},
        "additional_taxable_income": {"recoupments": "1000"},
        "capital_assets": {"motor_vehicles": "10000"},
    }
    data.update(overrides)
    return CorporateTaxInput.model_validate(data)


class TestCorporateTax:
    def test_reference_computation(self, rates: RateTable) -> None:
        """60,000 GP − 10,000 opex − 5,000 exempt + 5,000 add-back + 1,000 recoupment − 5,000 CA."""
        result = compute_corporate_tax(_company(), rates)
        assert result.gross_profit == Decimal("60000")
        assert result.operating_expenses == Decimal("10000")
        assert result.operating_profit == Decimal("50000")
        assert result.non_taxable_income == Decimal("5000")
        assert result.non_deductible_expenses == Decimal("5000")
        assert result.additional_taxable_income == Decimal("1000")
        assert result.capital_allowances == Decimal("5000")
        assert result.taxable_income == Decimal("46000")
        assert result.corporate_tax == Decimal("11500")
        assert result.aids_levy == Decimal("345")
        assert result.total_tax == Decimal("11845")
        assert result.effective_tax_rate == Decimal("25.75")

    def test_breakdown_per_asset_class(self, rates: RateTable) -> None:
        result = compute_corporate_tax(_company(), rates)
        assert set(result.capital_allowance_breakdown) == set(AssetClass)
        vehicles = result.capital_allowance_breakdown[AssetClass.MOTOR_VEHICLES]
        assert vehicles.chosen_amount == Decimal("5000")
        assert vehicles.chosen_method == AllowanceMethod.SPECIAL_INITIAL

    def test_non_deductible_expenses_increase_taxable_income(self, rates: RateTable) -> None:
        base = compute_corporate_tax(_company(non_deductible_expenses={}), rates)
        with_add_back = compute_corporate_tax(
            _company(non_deductible_expenses={"donations": "3000"}), rates
        )
        assert with_add_back.taxable_income - base.taxable_income == Decimal("3000")

    def test_additional_deductions_reduce_taxable_income(self, rates: RateTable) -> None:
        """46,000 − 6,000 allowable deductions = 40,000 taxable."""
        data = _company(additional_deductions={"allowable_deductions": "4000", "other": "2000"})
        result = compute_corporate_tax(data, rates)
        assert result.additional_deductions == Decimal("6000")
        assert result.taxable_income == Decimal("40000")
        assert result.corporate_tax == Decimal("10000")

    def test_additional_deductions_can_create_loss(self, rates: RateTable) -> None:
        data = _company(additional_deductions={"allowable_deductions": "50000"})
        result = compute_corporate_tax(data, rates)
        assert result.taxable_income == 0
        assert result.assessed_loss_carried_forward == Decimal("4000")

    def test_negative_additional_deduction_rejected(self, rates: RateTable) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            compute_corporate_tax(
                _company(additional_deductions={"allowable_deductions": "-1"}), rates
            )
        assert exc_info.value.field == "additional_deductions.allowable_deductions"

    def test_unknown_additional_deduction_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _company(additional_deductions={"entertainment": "10"})

    def test_loss_floors_at_zero(self, rates: RateTable) -> None:
        """Expenses exceed gross profit by more than the add-backs."""
        data = _company(
            profit_and_loss={"sales": "1000", "cost_of_goods_sold": "200"},
            operating_expenses={"salaries": "2000"},
            non_taxable_income={},
            non_deductible_expenses={"depreciation": "100"},
            additional_taxable_income={},
            capital_assets={},
        )
        result = compute_corporate_tax(data, rates)
        assert result.operating_profit == Decimal("-1200")
        assert result.taxable_income == 0
        assert result.corporate_tax == 0
        assert result.total_tax == 0
        assert result.effective_tax_rate == 0
        assert result.assessed_loss_carried_forward == Decimal("1100")

    def test_assessed_loss_partly_utilised(self, rates: RateTable) -> None:
        result = compute_corporate_tax(_company(assessed_loss_brought_forward="10000"), rates)
        assert result.assessed_loss_utilised == Decimal("10000")
        assert result.assessed_loss_carried_forward == 0
        assert result.taxable_income == Decimal("36000")

    def test_assessed_loss_exceeds_profit(self, rates: RateTable) -> None:
        result = compute_corporate_tax(_company(assessed_loss_brought_forward="60000"), rates)
        assert result.assessed_loss_utilised == Decimal("46000")
        assert result.assessed_loss_carried_forward == Decimal("14000")
        assert result.taxable_income == 0
        assert result.total_tax == 0

    def test_empty_input(self, rates: RateTable) -> None:
        result = compute_corporate_tax(CorporateTaxInput(), rates)
        assert result.taxable_income == 0
        assert result.total_tax == 0

    def test_form_values_coerced(self, rates: RateTable) -> None:
        data = _company(operating_expenses={"rent": "", "telephone": "n/a", "fuel": "1,000"})
        result = compute_corporate_tax(data, rates)
        assert result.operating_expenses == Decimal("1000")

    def test_negative_amount_rejected(self, rates: RateTable) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            compute_corporate_tax(_company(operating_expenses={"rent": "-1"}), rates)
        assert exc_info.value.field == "operating_expenses.rent"

    def test_negative_assessed_loss_rejected(self, rates: RateTable) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            compute_corporate_tax(_company(assessed_loss_brought_forward="-5"), rates)
        assert exc_info.value.field == "assessed_loss_brought_forward"
