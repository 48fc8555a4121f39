# SPDX-License-Identifier: AGPL-3.0-only

"""
Tests for summary and table-substring extraction.
"""

from market_trends.field_extractors import extract_fields, extract_summary, extract_table_part


class TestExtractSummary:
    """Test extract_summary."""

    def test_summary_up_to_data_table(self, lenient_policy):
        text = "SUMMARY: Demand is rising fast.\nDATA_TABLE:\nA | 1 | Up"
        assert extract_summary(text, lenient_policy) == "Demand is rising fast."

    def test_summary_is_case_insensitive(self, lenient_policy):
        text = "summary:   Quiet quarter.  \nDATA:\nA | 1 | Up"
        assert extract_summary(text, lenient_policy) == "Quiet quarter."

    def test_lowercase_data_in_prose_does_not_end_summary(self, lenient_policy):
        text = (
            "SUMMARY: Shoppers now expect real-time data: order tracking and delivery "
            "windows drive loyalty.\nDATA_TABLE:\nA | 1 | Up"
        )
        assert extract_summary(text, lenient_policy) == (
            "Shoppers now expect real-time data: order tracking and delivery windows drive loyalty."
        )

    def test_lowercase_end_marker_in_prose_is_kept(self, lenient_policy):
        text = "SUMMARY: Suppliers share data_table: exports weekly.\nDATA_TABLE:\nA | 1 | Up"
        assert extract_summary(text, lenient_policy) == "Suppliers share data_table: exports weekly."

    def test_summary_stops_at_legacy_markers(self, lenient_policy):
        text = "SUMMARY: Busy season.\nKEYWORDS_START\nA|1|Up\nKEYWORDS_END"
        assert extract_summary(text, lenient_policy) == "Busy season."

    def test_summary_runs_to_end_without_data_marker(self, lenient_policy):
        text = "Intro line\nSUMMARY: Multi\nline summary."
        assert extract_summary(text, lenient_policy) == "Multi\nline summary."

    def test_summary_strips_markdown_emphasis(self, lenient_policy):
        text = "**SUMMARY:** Prices are climbing.\n**DATA_TABLE:**\nA | 1 | Up"
        assert extract_summary(text, lenient_policy) == "Prices are climbing."

    def test_missing_marker_uses_placeholder(self, lenient_policy):
        assert extract_summary("No structure here.", lenient_policy) == lenient_policy.summary_placeholder
        assert extract_summary("", lenient_policy) == lenient_policy.summary_placeholder
        assert extract_summary(None, lenient_policy) == lenient_policy.summary_placeholder

    def test_empty_summary_uses_placeholder(self, lenient_policy):
        text = "SUMMARY:\nDATA_TABLE:\nA | 1 | Up"
        assert extract_summary(text, lenient_policy) == lenient_policy.summary_placeholder


class TestExtractTablePart:
    """Test extract_table_part."""

    def test_table_after_data_table_marker(self, lenient_policy):
        text = "SUMMARY: x\nDATA_TABLE:\nA | 1 | Up\nB | 2 | Down"
        assert extract_table_part(text, lenient_policy).strip() == "A | 1 | Up\nB | 2 | Down"

    def test_table_stops_at_closing_marker(self, lenient_policy):
        text = "KEYWORDS_START\nA|1|Up\nKEYWORDS_END\nClosing commentary | with | pipes"
        assert extract_table_part(text, lenient_policy).strip() == "A|1|Up"

    def test_legacy_data_marker(self, lenient_policy):
        text = "SUMMARY: x\nDATA:\nA | 1 | Up"
        assert extract_table_part(text, lenient_policy).strip() == "A | 1 | Up"

    def test_data_marker_does_not_match_inside_words(self, lenient_policy):
        text = "SUMMARY: We used METADATA: from surveys.\nNothing else."
        assert extract_table_part(text, lenient_policy) is None

    def test_lowercase_data_is_not_a_table_marker(self, lenient_policy):
        text = "SUMMARY: We track real-time data: footfall and basket size."
        assert extract_table_part(text, lenient_policy) is None

    def test_absent_marker(self, lenient_policy):
        assert extract_table_part("SUMMARY: only prose", lenient_policy) is None
        assert extract_table_part("", lenient_policy) is None

    def test_marker_priority(self, lenient_policy):
        text = "DATA:\nold | 1 | Up\nDATA_TABLE:\nnew | 2 | Up"
        assert extract_table_part(text, lenient_policy).strip() == "new | 2 | Up"


class TestExtractFields:
    """Test extract_fields."""

    def test_idempotent(self, lenient_policy, sample_response):
        first = extract_fields(sample_response, lenient_policy)
        second = extract_fields(sample_response, lenient_policy)
        assert first == second
        summary, table_part = first
        assert summary.startswith("Artisan bakeries")
        assert "Sourdough" in table_part
