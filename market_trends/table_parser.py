# SPDX-License-Identifier: AGPL-3.0-only

"""
Table parser: applies the row parser to every line of the table substring.
"""

import logging
from typing import List, Optional

from .models import KeywordRecord
from .row_parser import RowParser

logger = logging.getLogger(__name__)

# A table row needs at least two delimiters; prose with one stray pipe is skipped
MIN_DELIMITERS = 2


def parse_table(table_part: Optional[str], row_parser: RowParser) -> List[KeywordRecord]:
    """
    Parse a keyword-table substring into candidate records.

    Args:
        table_part: Raw table text, or None when no data marker was found
        row_parser: Row parser for individual lines

    Returns:
        Accepted records in line order
    """
    if not table_part:
        return []

    candidates: List[KeywordRecord] = []
    rejected = 0
    for line in table_part.splitlines():
        if line.count("|") < MIN_DELIMITERS:
            continue
        record = row_parser.parse_row(line, accepted_count=len(candidates))
        if record is None:
            rejected += 1
            continue
        candidates.append(record)

    logger.debug("Table parser accepted %d rows, rejected %d", len(candidates), rejected)
    return candidates
