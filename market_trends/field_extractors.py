# SPDX-License-Identifier: AGPL-3.0-only

"""
Field extractors for raw model responses.

Pure text transforms that pull the summary and the raw keyword-table substring
out of a full response. The summary heading matches in any case; data and
closing markers match only in upper case, so prose such as "real-time data:"
never ends a section.
"""

import re
from functools import lru_cache
from typing import Iterable, Optional, Tuple

from .policy import ParsingPolicy


@lru_cache(maxsize=64)
def _marker_pattern(marker: str, ignore_case: bool = False) -> "re.Pattern[str]":
    """Compile a pattern matching ``marker`` as a whole token."""
    pattern = r"(?<!\w)" + re.escape(marker)
    if marker[-1:].isalnum() or marker.endswith("_"):
        pattern += r"(?!\w)"
    return re.compile(pattern, re.IGNORECASE if ignore_case else 0)


def _find_marker(text: str, marker: str, start: int = 0, ignore_case: bool = False) -> Optional[re.Match]:
    return _marker_pattern(marker, ignore_case).search(text, start)


def _first_marker(
    text: str, markers: Iterable[str], start: int = 0, ignore_case: bool = False
) -> Optional[re.Match]:
    """Return the earliest match of any marker at or after ``start``."""
    best = None
    for marker in markers:
        match = _find_marker(text, marker, start, ignore_case)
        if match and (best is None or match.start() < best.start()):
            best = match
    return best


def extract_summary(text: str, policy: ParsingPolicy) -> str:
    """
    Extract the summary section from a model response.

    Args:
        text: Full response text
        policy: Parsing policy supplying the marker vocabulary

    Returns:
        The trimmed summary, or the policy placeholder when absent or empty
    """
    text = text or ""
    start_match = _first_marker(text, policy.summary_markers, ignore_case=True)
    if not start_match:
        return policy.summary_placeholder

    body_start = start_match.end()
    end_match = _first_marker(text, policy.table_markers + policy.table_end_markers, body_start)
    body_end = end_match.start() if end_match else len(text)

    # Markdown emphasis around headings (e.g. **SUMMARY:**) leaves stray asterisks
    summary = text[body_start:body_end].strip().strip("*").strip()
    return summary or policy.summary_placeholder


def extract_table_part(text: str, policy: ParsingPolicy) -> Optional[str]:
    """
    Extract the raw keyword-table substring.

    Markers are tried in policy order; the first one present wins. The table
    runs to the next closing marker, or to the end of the text.

    Args:
        text: Full response text
        policy: Parsing policy supplying the marker vocabulary

    Returns:
        The table substring, or None when no data-section marker is present
    """
    text = text or ""
    for marker in policy.table_markers:
        match = _find_marker(text, marker)
        if not match:
            continue
        end_match = _first_marker(text, policy.table_end_markers, match.end())
        end = end_match.start() if end_match else len(text)
        return text[match.end():end]
    return None


def extract_fields(text: str, policy: ParsingPolicy) -> Tuple[str, Optional[str]]:
    """Return ``(summary, table_part)`` for a response."""
    return extract_summary(text, policy), extract_table_part(text, policy)
