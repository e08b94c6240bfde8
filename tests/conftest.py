"""Shared test fixtures."""

import os

# Keep litellm from starting its background remote cost-map fetch on import;
# offline, that thread races the main import and intermittently deadlocks.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from decimal import Decimal  # noqa: E402
from unittest.mock import AsyncMock

import pytest

from zimtax.calculators.tax_data import RateTable, get_rate_table
from zimtax.llm.gateway import CompletionResult
from zimtax.models import Allowances, CompensationInput


@pytest.fixture
def rates() -> RateTable:
    """The 2025 rate table loaded from config/rate_tables.yaml."""
    return get_rate_table("2025")


def _make_employee(
    basic_salary: str = "250",
    employee_id: str | None = "E001",
    bonus: str = "0",
    prior_ytd_bonus: str = "0",
    **allowances: str,
) -> CompensationInput:
    return CompensationInput(
        employee_id=employee_id,
        basic_salary=Decimal(basic_salary),
        allowances=Allowances(bonus=Decimal(bonus), **allowances),
        prior_ytd_bonus=Decimal(prior_ytd_bonus),
    )


@pytest.fixture
def make_employee():  # type: ignore[no-untyped-def]
    """Factory for CompensationInput records."""
    return _make_employee


@pytest.fixture
def mock_llm() -> AsyncMock:
    """Async mock of LLMGateway returning a simple text completion."""
    llm = AsyncMock()
    llm.complete.return_value = CompletionResult(
        content="Your NSSA contribution is below the ceiling.",
        model="gemini/gemini-2.5-flash",
    )
    return llm
