# SPDX-License-Identifier: AGPL-3.0-only

"""
Tests for report assembly.
"""

from datetime import datetime

import pytest
from pydantic import ValidationError

from market_trends.assembler import assemble_report, format_timestamp, rank_keywords
from market_trends.models import ExtractionTier, KeywordRecord, MarketReport, Source, Trend


def record(term, volume):
    return KeywordRecord(term=term, volume=volume, trend=Trend.UP, change_percent=1.0, relevance=50)


class TestRankKeywords:
    """Test ranking and truncation."""

    def test_sorted_descending(self):
        ranked = rank_keywords([record("aa", 10), record("bb", 30), record("cc", 20)])
        assert [r.volume for r in ranked] == [30, 20, 10]

    def test_ties_keep_input_order(self):
        ranked = rank_keywords([record("first", 5), record("big", 9), record("second", 5), record("third", 5)])
        assert [r.term for r in ranked] == ["big", "first", "second", "third"]

    def test_truncates_to_fifty(self):
        candidates = [record(f"kw{i}", i) for i in range(80)]
        ranked = rank_keywords(candidates)
        assert len(ranked) == 50
        assert ranked[0].volume == 79
        assert ranked[-1].volume == 30

    def test_exactly_fifty_when_at_least_fifty(self):
        assert len(rank_keywords([record(f"kw{i}", 1) for i in range(50)])) == 50

    def test_fewer_than_fifty_kept(self):
        assert len(rank_keywords([record("aa", 1), record("bb", 2)])) == 2

    def test_custom_limit(self):
        assert len(rank_keywords([record(f"kw{i}", i) for i in range(20)], limit=10)) == 10


class TestAssembleReport:
    """Test assemble_report."""

    def test_report_fields(self):
        moment = datetime(2024, 3, 1, 9, 30, 0)
        sources = [Source(title="Report", uri="https://example.com")]
        report = assemble_report(
            subject="Bakery",
            summary="Growing.",
            candidates=[record("aa", 1), record("bb", 2)],
            sources=sources,
            generated_at=moment,
            tier=ExtractionTier.LOOSE_DELIMITER,
        )
        assert report.subject == "Bakery"
        assert report.summary == "Growing."
        assert [k.term for k in report.keywords] == ["bb", "aa"]
        assert report.sources == sources
        assert report.generated_at == moment.strftime("%c")
        assert report.tier is ExtractionTier.LOOSE_DELIMITER

    def test_generated_at_defaults_to_now(self):
        report = assemble_report("Bakery", "x", [record("aa", 1)], [])
        assert report.generated_at
        assert str(datetime.now().year) in report.generated_at

    def test_format_timestamp(self):
        moment = datetime(2024, 12, 31, 23, 59, 59)
        assert format_timestamp(moment) == moment.strftime("%c")

    def test_report_is_immutable(self):
        report = assemble_report("Bakery", "x", [record("aa", 1)], [])
        with pytest.raises(ValidationError):
            report.summary = "changed"

    def test_to_dict(self):
        report = assemble_report("Bakery", "x", [record("aa", 1)], [Source()])
        data = report.to_dict()
        assert data["keywords"][0] == {
            "term": "aa", "volume": 1, "trend": "up", "change_percent": 1.0, "relevance": 50
        }
        assert data["sources"] == [{"title": "Market Reference", "uri": "#"}]
        assert data["tier"] == "structured"


class TestMarketReportInvariants:
    """The model rejects reports that break ranking invariants."""

    def test_rejects_unsorted_keywords(self):
        with pytest.raises(ValidationError):
            MarketReport(subject="s", summary="x", keywords=[record("aa", 1), record("bb", 2)], generated_at="now")

    def test_rejects_more_than_fifty(self):
        with pytest.raises(ValidationError):
            MarketReport(
                subject="s", summary="x", generated_at="now",
                keywords=[record(f"kw{i}", 1) for i in range(51)],
            )
