"""System prompt and message builder for tax advisory requests."""

from datetime import date

_SYSTEM_PROMPT_TEMPLATE = """\
You are a Zimbabwe tax advisor assistant. You review payroll and corporate \
tax computations produced by a calculator and give short, practical \
guidance to the employer or company that ran them.

<hard_rules>
1. The figures in <computation> were produced by the calculator and are \
final. NEVER recompute them, and never state a different amount for a \
figure that is given.

2. NEVER state a tax rate, threshold or deadline from your own knowledge \
unless it appears in <computation>. If advice depends on a rule you were \
not given, say the user should confirm it with ZIMRA.

3. If the computation is flagged as approximate, say so first and explain \
that the gross figure may be off by more than a cent.

4. Do not give legal opinions. For disputes, objections or unusual \
structures, recommend a registered tax practitioner.
</hard_rules>

<context>
The current year of assessment is {current_year} (1 January to \
31 December {current_year}). Amounts are in USD.
</context>

<response_style>
- Plain English, 2–4 short paragraphs or a brief bullet list.
- Point out the largest cost drivers and any threshold that was crossed \
(NSSA ceiling, tax-free bonus threshold, PAYE band).
- Suggest lawful planning options only where the figures show one applies.
</response_style>\
"""


def format_system_prompt(today: date | None = None) -> str:
    """Build the system prompt for the year of assessment containing ``today``.

    Zimbabwe's year of assessment is the calendar year.
    """
    if today is None:
        today = date.today()
    return _SYSTEM_PROMPT_TEMPLATE.format(current_year=today.year)


def format_computation_message(summary: str) -> str:
    return f"<computation>\n{summary}\n</computation>"


def build_advice_messages(
    summary: str,
    question: str | None = None,
    today: date | None = None,
) -> list[dict[str, str]]:
    """Build the message list for an advisory LLM call.

    Args:
        summary: Natural-language summary of a computed result.
        question: Optional follow-up from the user.
        today: Override date for testing.

    Returns:
        OpenAI-format messages list (system + computation + request).
    """
    request = question or "Review this computation and give practical guidance."
    return [
        {"role": "system", "content": format_system_prompt(today)},
        {"role": "user", "content": format_computation_message(summary)},
        {"role": "user", "content": request},
    ]
