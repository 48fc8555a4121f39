# SPDX-License-Identifier: AGPL-3.0-only

"""
Fallback chain for keyword extraction.

Tiers run strictly in sequence, each at most once, each gated by the candidate
count the previous tiers left behind:

    0 structured       table parser over the data-section substring
    1 loose delimiter  pipe/hyphen rescan of the whole response
    2 token salvage    long words of the response as single-word keywords
    3 curated          preset generic keywords up to the minimum count

The chain ends with enough candidates or raises ExtractionFailure.
"""

import logging
import re
from typing import Dict, List, Optional, Set

from .errors import ExtractionFailure
from .models import ExtractionTier, KeywordRecord, ParseOutcome, Trend, is_header_term
from .policy import ParsingPolicy
from .row_parser import RowParser
from .table_parser import parse_table

logger = logging.getLogger(__name__)

_NON_ALPHA_RE = re.compile(r"[^a-zA-Z]")


def _term_key(term: str) -> str:
    return term.strip().lower()


class FallbackChain:
    """Runs the extraction tiers over one response."""

    def __init__(self, policy: ParsingPolicy, row_parser: RowParser):
        """
        Initialize the fallback chain.

        Args:
            policy: Parsing policy selecting tiers and thresholds
            row_parser: Row parser shared by the structured and loose tiers
        """
        self.policy = policy
        self.row_parser = row_parser

    def run(self, text: str, table_part: Optional[str]) -> ParseOutcome:
        """
        Run every applicable tier and return the resulting candidates.

        Args:
            text: Full response text
            table_part: Table substring from the field extractors, or None

        Returns:
            ParseOutcome with at least one candidate

        Raises:
            ExtractionFailure: If every applicable tier produced nothing
        """
        policy = self.policy
        tier_counts: Dict[str, int] = {}

        candidates = parse_table(table_part, self.row_parser)
        tier = ExtractionTier.STRUCTURED
        structured_count = len(candidates)
        tier_counts[tier.value] = structured_count

        loose_count = 0
        if policy.tier_enabled(ExtractionTier.LOOSE_DELIMITER) and structured_count < policy.min_candidates:
            logger.info(
                "Structured tier found %d candidates (< %d), rescanning full text",
                structured_count, policy.min_candidates
            )
            loose = self.loose_delimiter(text)
            loose_count = len(loose)
            added = self._merge(candidates, loose)
            if added:
                tier = ExtractionTier.LOOSE_DELIMITER
            tier_counts[ExtractionTier.LOOSE_DELIMITER.value] = len(candidates)

        if (
            policy.tier_enabled(ExtractionTier.TOKEN_SALVAGE)
            and structured_count == 0
            and loose_count == 0
        ):
            logger.info("No delimited rows found, salvaging tokens")
            salvaged = self.token_salvage(text)
            if salvaged:
                candidates.extend(salvaged)
                tier = ExtractionTier.TOKEN_SALVAGE
            tier_counts[ExtractionTier.TOKEN_SALVAGE.value] = len(candidates)

        if policy.tier_enabled(ExtractionTier.CURATED) and len(candidates) < policy.min_candidates:
            logger.info("Only %d candidates, topping up with curated keywords", len(candidates))
            if self.curated(candidates):
                tier = ExtractionTier.CURATED
            tier_counts[ExtractionTier.CURATED.value] = len(candidates)

        if not candidates:
            logger.warning("All extraction tiers exhausted with zero candidates")
            raise ExtractionFailure(detail=f"tier counts: {tier_counts}")

        return ParseOutcome(candidates=candidates, tier=tier, tier_counts=tier_counts, table_found=table_part is not None)

    def loose_delimiter(self, text: str) -> List[KeywordRecord]:
        """Tier 1: rescan every line of the response with the loose row parser."""
        records = []
        for line in (text or "").splitlines():
            record = self.row_parser.parse_loose_row(line)
            if record is not None:
                records.append(record)
        return records

    def token_salvage(self, text: str) -> List[KeywordRecord]:
        """Tier 2: turn long words of the response into single-word keywords."""
        policy = self.policy
        records: List[KeywordRecord] = []
        seen: Set[str] = set()
        for token in (text or "").split():
            if len(token) < policy.salvage_min_token_length:
                continue
            word = _NON_ALPHA_RE.sub("", token)
            if len(word) <= 1 or is_header_term(word) or _term_key(word) in seen:
                continue
            seen.add(_term_key(word))
            records.append(KeywordRecord(
                term=word,
                volume=policy.salvage_volume,
                trend=Trend.STABLE,
                change_percent=0.0,
                relevance=policy.salvage_relevance,
            ))
            if len(records) >= policy.salvage_max_keywords:
                break
        return records

    def curated(self, candidates: List[KeywordRecord]) -> int:
        """
        Tier 3: append curated keywords until the minimum count is met.

        Returns:
            Number of keywords added
        """
        present = {_term_key(c.term) for c in candidates}
        added = 0
        for preset in self.policy.curated_keywords:
            if len(candidates) >= self.policy.min_candidates:
                break
            if _term_key(preset.term) in present:
                continue
            candidates.append(KeywordRecord(
                term=preset.term,
                volume=preset.volume,
                trend=preset.trend,
                change_percent=preset.change_percent,
                relevance=preset.relevance,
            ))
            present.add(_term_key(preset.term))
            added += 1
        return added

    @staticmethod
    def _merge(candidates: List[KeywordRecord], extra: List[KeywordRecord]) -> int:
        """Append records whose term is not already present; return how many."""
        present = {_term_key(c.term) for c in candidates}
        added = 0
        for record in extra:
            key = _term_key(record.term)
            if key in present:
                continue
            candidates.append(record)
            present.add(key)
            added += 1
        return added
