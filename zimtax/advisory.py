"""Advisory service: summarise a computed result and ask the LLM for guidance.

The engine never depends on this. Any failure of the remote call is logged
and reported as "no advice"; the computed result is returned regardless.
"""

import logging
import time
from decimal import Decimal

from config.settings import settings
from zimtax.llm.gateway import LLMGateway
from zimtax.llm.prompts import build_advice_messages
from zimtax.models import Advice, BatchResult, CorporateTaxResult, PayslipResult

logger = logging.getLogger(__name__)


def _usd(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def summarize_payslip(result: PayslipResult) -> str:
    """Describe a payslip in plain sentences built from its fields."""
    lines = [
        f"Monthly PAYE computation for tax year {result.tax_year}.",
        f"Basic salary {_usd(result.basic_salary)} plus allowances "
        f"{_usd(result.total_allowances)} gives gross salary {_usd(result.gross_salary)}.",
        f"NSSA employee contribution is {_usd(result.nssa_employee)} on insurable "
        f"earnings of {_usd(result.insurable_earnings)}.",
        f"Taxable income for PAYE is {_usd(result.taxable_income)}; PAYE is "
        f"{_usd(result.paye)} and the AIDS levy is {_usd(result.aids_levy)}.",
    ]
    if result.tax_free_bonus or result.taxable_bonus:
        lines.append(
            f"Bonus: {_usd(result.tax_free_bonus)} tax-free and {_usd(result.taxable_bonus)} "
            f"taxable, bonus tax {_usd(result.bonus_tax)}; year-to-date bonus is now "
            f"{_usd(result.new_ytd_bonus)}."
        )
    lines += [
        f"Total employee tax is {_usd(result.total_tax)} and net salary is "
        f"{_usd(result.net_salary)}.",
        f"Employer pays NSSA {_usd(result.nssa_employer)}, ZIMDEF {_usd(result.zimdef)} and "
        f"APWC {_usd(result.apwc)} at {result.apwc_rate_percent}%, for a total cost to "
        f"employer of {_usd(result.total_cost_to_employer)}.",
    ]
    if not result.converged:
        lines.append(
            f"Note: this gross-up did not converge after {result.iterations} rounds; "
            "the figures are an approximation."
        )
    return "\n".join(lines)


def summarize_batch(batch: BatchResult) -> str:
    totals = batch.totals
    return "\n".join([
        f"Payroll batch of {totals.employee_count} employees.",
        f"Total gross {_usd(totals.total_gross)}, total net {_usd(totals.total_net)}.",
        f"PAYE {_usd(totals.total_paye)}, AIDS levy {_usd(totals.total_aids_levy)}, "
        f"bonus tax {_usd(totals.total_bonus_tax)}.",
        f"NSSA employee {_usd(totals.total_nssa_employee)}, employer "
        f"{_usd(totals.total_nssa_employer)}; ZIMDEF {_usd(totals.total_zimdef)}; "
        f"APWC {_usd(totals.total_apwc)}.",
        f"Total employer cost {_usd(totals.total_employer_cost)}.",
    ])


def summarize_corporate(result: CorporateTaxResult) -> str:
    """Describe a corporate tax computation in plain sentences."""
    lines = [
        f"Corporate income tax computation for tax year {result.tax_year}.",
        f"Gross profit {_usd(result.gross_profit)}; operating expenses "
        f"{_usd(result.operating_expenses)}; operating profit {_usd(result.operating_profit)}.",
        f"Adjustments: non-taxable income {_usd(result.non_taxable_income)} deducted, "
        f"non-deductible expenses {_usd(result.non_deductible_expenses)} added back, "
        f"additional taxable income {_usd(result.additional_taxable_income)} added, "
        f"further allowable deductions {_usd(result.additional_deductions)} claimed.",
        f"Capital allowances claimed {_usd(result.capital_allowances)}:",
    ]
    for asset_class, selection in result.capital_allowance_breakdown.items():
        if selection.asset_cost:
            lines.append(
                f"- {asset_class.value.replace('_', ' ')}: cost {_usd(selection.asset_cost)}, "
                f"{selection.chosen_method.value.replace('_', ' ')} allowance "
                f"{_usd(selection.chosen_amount)}"
            )
    if result.assessed_loss_utilised or result.assessed_loss_carried_forward:
        lines.append(
            f"Assessed loss utilised {_usd(result.assessed_loss_utilised)}; carried forward "
            f"{_usd(result.assessed_loss_carried_forward)}."
        )
    lines.append(
        f"Taxable income {_usd(result.taxable_income)}; corporate tax "
        f"{_usd(result.corporate_tax)}; AIDS levy {_usd(result.aids_levy)}; total tax "
        f"{_usd(result.total_tax)} (effective rate {result.effective_tax_rate}%)."
    )
    return "\n".join(lines)


class AdvisoryService:
    """Requests free-text guidance on a computed result."""

    def __init__(self, llm: LLMGateway, enabled: bool | None = None) -> None:
        self._llm = llm
        self._enabled = settings.advisory_enabled if enabled is None else enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def advise(self, summary: str, question: str | None = None) -> Advice | None:
        """Ask the LLM about ``summary``.

        Returns:
            Advice, or None when the service is disabled, the call fails or
            the model returns no text.
        """
        if not self._enabled:
            return None

        start = time.monotonic()
        messages = build_advice_messages(summary, question)
        try:
            result = await self._llm.complete(messages)
        except Exception:
            logger.exception("Advisory request failed; returning result without advice")
            return None

        if not result.content:
            logger.warning("Advisory model %s returned no content", result.model)
            return None

        latency_ms = int((time.monotonic() - start) * 1000)
        logger.info("Advisory answered by %s in %dms", result.model, latency_ms)
        return Advice(text=result.content, model=result.model, latency_ms=latency_ms)
