# SPDX-License-Identifier: AGPL-3.0-only

"""
Row parser for keyword-table lines.

Converts one line of loosely formatted model output into a KeywordRecord, or
rejects it. Every function here is total: malformed input yields a default
value or a rejection, never an exception.
"""

import logging
import math
import random
import re
from typing import List, Optional

from .models import ExtractionTier, KeywordRecord, Trend, is_header_term
from .policy import ParsingPolicy

logger = logging.getLogger(__name__)

_NUMBERING_RE = re.compile(r"^\d+[.)]\s+")
_BULLET_RE = re.compile(r"^\s*[-*•]+\s*")
_LOOSE_SPLIT_RE = re.compile(r"\s*\|\s*|\s+[-–—]\s+")
_NON_DIGIT_RE = re.compile(r"\D")
_NON_NUMERIC_RE = re.compile(r"[^0-9.+-]")
_ALNUM_RE = re.compile(r"[^\W_]")

# Longer digit runs are not a search volume; treated as unparsable
MAX_VOLUME_DIGITS = 12


def clean_term(raw: str) -> Optional[str]:
    """
    Normalize a term segment.

    Strips an ordinal numbering prefix such as ``1.`` or ``12)`` and surrounding
    whitespace. Returns None when what remains is too short, carries no letter
    or digit, or is a header token.
    """
    term = _NUMBERING_RE.sub("", (raw or "").strip()).strip()
    if len(term) <= 1:
        return None
    if not _ALNUM_RE.search(term):
        return None
    if is_header_term(term):
        return None
    return term


def parse_volume(raw: Optional[str]) -> int:
    """Parse a volume segment, returning 0 when it holds no usable digits."""
    digits = _NON_DIGIT_RE.sub("", raw or "")
    if not digits or len(digits) > MAX_VOLUME_DIGITS:
        return 0
    return int(digits)


def classify_trend(raw: Optional[str]) -> Trend:
    """Map free text onto a trend direction; unrecognized text is stable."""
    lowered = (raw or "").lower()
    if "up" in lowered:
        return Trend.UP
    if "down" in lowered:
        return Trend.DOWN
    return Trend.STABLE


def parse_change(raw: Optional[str]) -> float:
    """Parse a percentage-change segment, returning 0.0 when unparsable or not finite."""
    cleaned = _NON_NUMERIC_RE.sub("", raw or "")
    try:
        change = float(cleaned)
    except ValueError:
        return 0.0
    return change if math.isfinite(change) else 0.0


def split_row(line: str) -> List[str]:
    """Split a pipe-delimited row, ignoring markdown outer pipes."""
    stripped = (line or "").strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|"):
        stripped = stripped[:-1]
    return [segment.strip() for segment in stripped.split("|")]


class RowParser:
    """Parses table lines into keyword records."""

    def __init__(self, policy: ParsingPolicy, rng: Optional[random.Random] = None):
        """
        Initialize the row parser.

        Args:
            policy: Parsing policy supplying the placeholder volume ranges
            rng: Randomness source for placeholder volumes
        """
        self.policy = policy
        self.rng = rng or random.Random()

    def placeholder_volume(self, tier: ExtractionTier) -> int:
        low, high = self.policy.volume_range(tier)
        return self.rng.randint(low, high)

    def parse_row(self, line: str, accepted_count: int = 0) -> Optional[KeywordRecord]:
        """
        Parse one structured table line.

        Args:
            line: A single line of the table substring
            accepted_count: Rows accepted so far, used for relevance

        Returns:
            KeywordRecord, or None if the line is rejected
        """
        segments = split_row(line)
        if len(segments) < 3:
            return None

        term = clean_term(segments[0])
        if term is None:
            return None

        volume = parse_volume(segments[1])
        if volume <= 0:
            volume = self.placeholder_volume(ExtractionTier.STRUCTURED)

        return KeywordRecord(
            term=term,
            volume=volume,
            trend=classify_trend(segments[2]),
            change_percent=parse_change(segments[3]) if len(segments) > 3 else 0.0,
            relevance=100 - accepted_count,
        )

    def parse_loose_row(self, line: str) -> Optional[KeywordRecord]:
        """
        Parse a line with the broader delimiter set used by the loose tier.

        Lines split on pipes or on a hyphen surrounded by whitespace. Volume always
        comes from the loose tier's placeholder range, ignoring any digits in
        the line. Trend is fixed to stable and relevance to the policy's loose relevance.
        """
        body = _BULLET_RE.sub("", line or "").strip().strip("|").strip()
        if not body:
            return None

        segments = [s for s in _LOOSE_SPLIT_RE.split(body) if _ALNUM_RE.search(s)]
        if len(segments) < 2:
            return None
        if self._is_section_label(segments[0]):
            return None

        term = clean_term(segments[0])
        if term is None:
            return None

        return KeywordRecord(
            term=term,
            volume=self.placeholder_volume(ExtractionTier.LOOSE_DELIMITER),
            trend=Trend.STABLE,
            change_percent=0.0,
            relevance=self.policy.loose_relevance,
        )

    def _is_section_label(self, segment: str) -> bool:
        head = segment.strip().strip("*").upper()
        for marker in self.policy.section_markers:
            label = marker.rstrip(":").upper()
            if head == label or head.startswith(label + ":") or head.startswith(marker.upper()):
                return True
        return False
