# SPDX-License-Identifier: AGPL-3.0-only

"""
Main market analysis pipeline.

This module orchestrates the model call, the response parser with its fallback
chain, and report assembly to provide a unified interface for market analysis.
"""

import logging
import random
from datetime import datetime
from typing import Iterable, Optional

from .ai_service import GeminiTrendService
from .assembler import assemble_report
from .config import MarketTrendsConfig, config
from .errors import InvalidSubjectError, MarketAnalysisError
from .fallback import FallbackChain
from .field_extractors import extract_fields
from .metrics import AnalysisMetrics
from .models import MarketReport, ParseOutcome, Source
from .policy import ParsingPolicy
from .prompt_pack import build_market_prompt
from .row_parser import RowParser

logger = logging.getLogger(__name__)


class ResponseParser:
    """Turns raw model text into a candidate list via the fallback chain."""

    def __init__(self, policy: Optional[ParsingPolicy] = None, rng: Optional[random.Random] = None):
        """
        Initialize the response parser.

        Args:
            policy: Parsing policy, defaults to the lenient preset
            rng: Randomness source for placeholder volumes
        """
        self.policy = policy or ParsingPolicy.lenient()
        self.row_parser = RowParser(self.policy, rng)
        self.chain = FallbackChain(self.policy, self.row_parser)

    def parse(self, text: str) -> ParseOutcome:
        """
        Parse a full model response.

        Raises:
            ExtractionFailure: If no tier produced a candidate
        """
        summary, table_part = extract_fields(text, self.policy)
        if table_part is None:
            logger.info("No data-section marker in response")
        outcome = self.chain.run(text, table_part)
        outcome.summary = summary
        return outcome


def normalize_subject(subject: Optional[str]) -> str:
    """Trim the subject, rejecting blank input."""
    cleaned = (subject or "").strip()
    if not cleaned:
        raise InvalidSubjectError()
    return cleaned


class MarketAnalysisPipeline:
    """Main pipeline for market trend analysis."""

    def __init__(
        self,
        ai_service: Optional[GeminiTrendService] = None,
        policy: Optional[ParsingPolicy] = None,
        rng: Optional[random.Random] = None,
        settings: Optional[MarketTrendsConfig] = None,
    ):
        """
        Initialize the analysis pipeline.

        Args:
            ai_service: Service for the model call
            policy: Parsing policy, defaults to the configured mode
            rng: Randomness source for placeholder volumes
            settings: Configuration, defaults to the global config
        """
        self.settings = settings or config
        self.ai_service = ai_service or GeminiTrendService(self.settings)
        self.policy = policy or self.settings.get_parsing_policy()
        self.parser = ResponseParser(self.policy, rng)

    def analyze(self, subject: str, metrics: Optional[AnalysisMetrics] = None) -> MarketReport:
        """
        Run a full analysis for a subject.

        Args:
            subject: Profession or business topic
            metrics: Optional metrics collector

        Returns:
            Market report

        Raises:
            MarketAnalysisError: On invalid input, upstream failure or extraction failure
        """
        metrics = metrics or AnalysisMetrics()
        try:
            subject = normalize_subject(subject)
            prompt = build_market_prompt(subject, self.policy)
            metrics.mark_stage("prompt_built")

            response = self.ai_service.generate(prompt)
            metrics.add_llm_call(response.tokens)
            metrics.mark_stage("llm_done")

            report = self.build_report(subject, response.text, response.sources, metrics=metrics)
        except MarketAnalysisError as e:
            logger.warning("Market analysis failed (%s): %s", e.error_type, e.detail or e.user_message)
            metrics.add_error(e.error_type)
            raise
        finally:
            metrics.finish()

        logger.info(
            "Analysis for %r produced %d keywords via %s tier",
            subject, len(report.keywords), report.tier.value
        )
        return report

    def build_report(
        self,
        subject: str,
        text: str,
        sources: Iterable[Source] = (),
        generated_at: Optional[datetime] = None,
        metrics: Optional[AnalysisMetrics] = None,
    ) -> MarketReport:
        """
        Parse an already-fetched response and assemble the report.

        Raises:
            ExtractionFailure: If no tier produced a candidate
        """
        outcome = self.parser.parse(text)
        if metrics is not None:
            metrics.record_parse(outcome.tier_counts, outcome.tier.value)
            metrics.mark_stage("parse_done")

        report = assemble_report(
            subject=subject,
            summary=outcome.summary,
            candidates=outcome.candidates,
            sources=sources,
            generated_at=generated_at,
            tier=outcome.tier,
            max_keywords=self.policy.max_keywords,
        )
        if metrics is not None:
            metrics.keyword_count = len(report.keywords)
            metrics.mark_stage("assembled")
        return report
