# SPDX-License-Identifier: AGPL-3.0-only

"""
Prompt template for market trend analysis.
"""

from .policy import ParsingPolicy


MARKET_PROMPT_TEMPLATE = """Act as a professional market analyst for small business owners.
Perform a deep-dive trend analysis for: "{subject}".

Your response must contain:
1. A {summary_marker} section (2-4 sentences) explaining the current market temperature.
2. A {table_marker} section with exactly {count} trending keywords/searches from the past 12 months.

For each keyword estimate the monthly search volume, the trend direction (Up, Down or Stable)
and the percentage change over the last year. Format the keyword data exactly like this,
one keyword per line, with no numbering and no extra commentary inside the table:
KEYWORD | VOLUME | TREND | CHANGE
[term] | [number] | [Up/Down/Stable] | [percentage]

Example:
{summary_marker} The market is currently seeing a surge in local demand...
{table_marker}
Local Coffee Beans | 12500 | Up | 15
Eco-friendly Cups | 8000 | Stable | 2
... and so on until {count} items."""


def build_market_prompt(subject: str, policy: ParsingPolicy) -> str:
    """
    Build the market analysis prompt.

    The prompt always asks for the canonical markers, the first summary and
    table marker of the policy; the parser still accepts the older synonyms.

    Args:
        subject: Profession or topic, already trimmed
        policy: Parsing policy supplying the canonical markers

    Returns:
        Prompt text
    """
    return MARKET_PROMPT_TEMPLATE.format(
        subject=subject.replace('"', "'"),
        summary_marker=policy.summary_markers[0],
        table_marker=policy.table_markers[0],
        count=policy.max_keywords,
    )
