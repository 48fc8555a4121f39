# SPDX-License-Identifier: AGPL-3.0-only

"""
Report assembler: ranks, truncates and packages the final market report.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from .models import MAX_KEYWORDS, ExtractionTier, KeywordRecord, MarketReport, Source


def format_timestamp(moment: datetime) -> str:
    """Render a timestamp in the current locale's date and time representation."""
    return moment.strftime("%c")


def rank_keywords(candidates: Iterable[KeywordRecord], limit: int = MAX_KEYWORDS) -> List[KeywordRecord]:
    """Sort by volume descending, keeping input order among equal volumes, and truncate."""
    ranked = sorted(candidates, key=lambda record: record.volume, reverse=True)
    return ranked[:min(limit, MAX_KEYWORDS)]


def assemble_report(
    subject: str,
    summary: str,
    candidates: Iterable[KeywordRecord],
    sources: Iterable[Source],
    generated_at: Optional[datetime] = None,
    tier: ExtractionTier = ExtractionTier.STRUCTURED,
    max_keywords: int = MAX_KEYWORDS,
) -> MarketReport:
    """
    Build the final MarketReport.

    Args:
        subject: Profession or topic analysed
        summary: Extracted summary text
        candidates: Unsorted candidate records
        sources: Grounding citations, already normalized
        generated_at: Render timestamp, defaults to now
        tier: Fallback tier that produced the candidates
        max_keywords: Upper bound on the keyword list

    Returns:
        Immutable market report
    """
    moment = generated_at or datetime.now()
    return MarketReport(
        subject=subject,
        summary=summary,
        keywords=rank_keywords(candidates, max_keywords),
        sources=list(sources),
        generated_at=format_timestamp(moment),
        tier=tier,
    )
