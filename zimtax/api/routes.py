"""API routes for the Zimbabwe tax engine."""

import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from zimtax.advisory import summarize_batch, summarize_corporate, summarize_payslip
from zimtax.calculators.batch import aggregate
from zimtax.calculators.capital_allowance import compute_capital_allowances
from zimtax.calculators.corporate import compute_corporate_tax
from zimtax.calculators.paye import compute_from_net, compute_payslip
from zimtax.calculators.tax_data import TAX_YEARS, get_rate_table
from zimtax.models import (
    Advice,
    BatchResult,
    CapitalAllowanceSummary,
    CapitalAssets,
    CompensationInput,
    CorporateTaxInput,
    CorporateTaxResult,
    Money,
    OptionalMoney,
    PayslipResult,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class GrossUpRequest(BaseModel):
    """Request body for the /calculate/paye/gross-up endpoint."""

    target_net: Money
    apwc_rate_percent: OptionalMoney = None


class BatchRequest(BaseModel):
    employees: list[CompensationInput] = []


class CapitalAllowanceRequest(BaseModel):
    assets: CapitalAssets = Field(default_factory=CapitalAssets)


class PayeAdviceRequest(BaseModel):
    """Request body for the /advice/paye endpoint."""

    employee: CompensationInput
    question: str | None = None


class BatchAdviceRequest(BaseModel):
    employees: list[CompensationInput] = []
    question: str | None = None


class CorporateAdviceRequest(BaseModel):
    company: CorporateTaxInput
    question: str | None = None


class PayeAdviceResponse(BaseModel):
    result: PayslipResult
    advice: Advice | None = None


class BatchAdviceResponse(BaseModel):
    result: BatchResult
    advice: Advice | None = None


class CorporateAdviceResponse(BaseModel):
    result: CorporateTaxResult
    advice: Advice | None = None


@router.get("/health")
async def health(request: Request) -> dict:  # type: ignore[type-arg]
    """Health check endpoint listing the loaded tax years and advisor status."""
    advisory = getattr(request.app.state, "advisory", None)
    return {
        "status": "ok",
        "tax_years": sorted(TAX_YEARS),
        "advisory_enabled": advisory is not None and advisory.enabled,
    }


@router.post("/calculate/paye", response_model=PayslipResult)
async def calculate_paye(body: CompensationInput, tax_year: str | None = None) -> PayslipResult:
    """Monthly payslip for one employee."""
    return compute_payslip(body, get_rate_table(tax_year))


@router.post("/calculate/paye/gross-up", response_model=PayslipResult)
async def calculate_gross_up(body: GrossUpRequest, tax_year: str | None = None) -> PayslipResult:
    """Find the basic salary that yields the requested net pay."""
    return compute_from_net(body.target_net, body.apwc_rate_percent, get_rate_table(tax_year))


@router.post("/calculate/paye/batch", response_model=BatchResult)
async def calculate_batch(body: BatchRequest, tax_year: str | None = None) -> BatchResult:
    return aggregate(body.employees, get_rate_table(tax_year))


@router.post("/calculate/capital-allowances", response_model=CapitalAllowanceSummary)
async def calculate_capital_allowances(
    body: CapitalAllowanceRequest, tax_year: str | None = None
) -> CapitalAllowanceSummary:
    return compute_capital_allowances(body.assets, get_rate_table(tax_year))


@router.post("/calculate/corporate-tax", response_model=CorporateTaxResult)
async def calculate_corporate_tax(
    body: CorporateTaxInput, tax_year: str | None = None
) -> CorporateTaxResult:
    """Corporate income tax for one year of account."""
    return compute_corporate_tax(body, get_rate_table(tax_year))


@router.post("/advice/paye", response_model=PayeAdviceResponse)
async def advise_paye(
    body: PayeAdviceRequest, request: Request, tax_year: str | None = None
) -> PayeAdviceResponse:
    """Payslip plus advisory text; advice is null when the advisor is unavailable."""
    result = compute_payslip(body.employee, get_rate_table(tax_year))
    advisory = request.app.state.advisory
    advice = await advisory.advise(summarize_payslip(result), body.question)
    return PayeAdviceResponse(result=result, advice=advice)


@router.post("/advice/corporate-tax", response_model=CorporateAdviceResponse)
async def advise_corporate_tax(
    body: CorporateAdviceRequest, request: Request, tax_year: str | None = None
) -> CorporateAdviceResponse:
    result = compute_corporate_tax(body.company, get_rate_table(tax_year))
    advisory = request.app.state.advisory
    advice = await advisory.advise(summarize_corporate(result), body.question)
    return CorporateAdviceResponse(result=result, advice=advice)


@router.post("/advice/paye/batch", response_model=BatchAdviceResponse)
async def advise_batch(
    body: BatchAdviceRequest, request: Request, tax_year: str | None = None
) -> BatchAdviceResponse:
    """Batch payroll plus advisory text on the totals."""
    result = aggregate(body.employees, get_rate_table(tax_year))
    advisory = request.app.state.advisory
    advice = await advisory.advise(summarize_batch(result), body.question)
    return BatchAdviceResponse(result=result, advice=advice)
