# SPDX-License-Identifier: AGPL-3.0-only

"""
Tests for the table parser.
"""

from market_trends.table_parser import parse_table


def test_absent_table_yields_nothing(row_parser):
    assert parse_table(None, row_parser) == []
    assert parse_table("", row_parser) == []


def test_rows_kept_in_line_order(row_parser):
    table = "\n".join([
        "Keyword | Volume | Trend | Change",
        "Sourdough | 45,000 | Up | 25%",
        "",
        "Rye bread | 12,100 | Stable | 3",
        "Croissant | 27,100 | Down | -8%",
    ])
    records = parse_table(table, row_parser)
    assert [r.term for r in records] == ["Sourdough", "Rye bread", "Croissant"]
    assert [r.relevance for r in records] == [100, 99, 98]


def test_lines_with_single_pipe_are_skipped(row_parser):
    table = "\n".join([
        "Note: volumes are estimates | approximate",
        "Sourdough | 45,000 | Up | 25%",
    ])
    records = parse_table(table, row_parser)
    assert [r.term for r in records] == ["Sourdough"]


def test_markdown_table(row_parser):
    table = "\n".join([
        "| Keyword | Volume | Trend | Change |",
        "|---|---|---|---|",
        "| Sourdough | 45,000 | Up | 25% |",
        "| Bagels | 9,900 | Down | -2% |",
    ])
    records = parse_table(table, row_parser)
    assert [(r.term, r.volume) for r in records] == [("Sourdough", 45000), ("Bagels", 9900)]


def test_prose_is_ignored(row_parser):
    table = "Here are the trends you asked for.\nHope this helps!"
    assert parse_table(table, row_parser) == []
