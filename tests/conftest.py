# SPDX-License-Identifier: AGPL-3.0-only

"""
Pytest configuration and fixtures.

This module provides shared fixtures and configuration for all tests.
"""

import random

import pytest
from unittest.mock import Mock

from market_trends.ai_service import GeminiTrendService, ModelResponse
from market_trends.config import MarketTrendsConfig
from market_trends.models import Source
from market_trends.pipeline import MarketAnalysisPipeline, ResponseParser
from market_trends.policy import ParsingPolicy
from market_trends.row_parser import RowParser


@pytest.fixture
def rng():
    """Seeded randomness source for placeholder volumes."""
    return random.Random(1234)


@pytest.fixture
def lenient_policy():
    return ParsingPolicy.lenient()


@pytest.fixture
def strict_policy():
    return ParsingPolicy.strict()


@pytest.fixture
def row_parser(lenient_policy, rng):
    return RowParser(lenient_policy, rng)


@pytest.fixture
def strict_parser(strict_policy, rng):
    """Response parser without the curated tier."""
    return ResponseParser(strict_policy, rng)


@pytest.fixture
def lenient_parser(lenient_policy, rng):
    return ResponseParser(lenient_policy, rng)


@pytest.fixture
def sample_response():
    """Well-formed model response with summary and data table."""
    return """SUMMARY: Artisan bakeries are seeing steady growth as consumers
favour local, handmade bread. Demand for sourdough and gluten-free lines is strong.

DATA_TABLE:
KEYWORD | VOLUME | TREND | CHANGE
1. Sourdough | 45,000 | Up | 25%
2. Gluten free bread | 33,100 | Up | 12%
3. Bakery near me | 90,500 | Stable | 0
4. Croissant recipe | 27,100 | Down | -8%
5. Rye bread | 12,100 | Stable | 3
6. Bread subscription | 2,900 | Up | 40%
"""


@pytest.fixture
def settings():
    """Configuration with a usable API key."""
    return MarketTrendsConfig(
        gemini_api_key="test-key-12345",
        gemini_model="gemini-test",
        ai_timeout=5,
        parsing_mode="lenient",
    )


@pytest.fixture
def mock_ai_service(sample_response):
    """Mock Gemini service returning the sample response."""
    service = Mock(spec=GeminiTrendService)
    service.generate.return_value = ModelResponse(
        text=sample_response,
        sources=[Source(title="Baking Trends 2024", uri="https://example.com/baking")],
        tokens=812,
    )
    return service


@pytest.fixture
def pipeline(mock_ai_service, lenient_policy, rng, settings):
    """Pipeline wired to the mock Gemini service."""
    return MarketAnalysisPipeline(
        ai_service=mock_ai_service,
        policy=lenient_policy,
        rng=rng,
        settings=settings,
    )


@pytest.fixture
def gemini_payload():
    """generateContent reply with grounding citations."""
    return {
        "candidates": [
            {
                "content": {
                    "parts": [
                        {"text": "SUMMARY: Demand is rising.\n"},
                        {"text": "DATA_TABLE:\nSourdough | 45000 | Up | 25\n"},
                    ]
                },
                "groundingMetadata": {
                    "groundingChunks": [
                        {"web": {"title": "Bakery Report", "uri": "https://example.com/report"}},
                        {"web": {"uri": "https://example.com/untitled"}},
                        {"retrievedContext": {}},
                    ]
                },
            }
        ],
        "usageMetadata": {"totalTokenCount": 321},
    }


# Pytest configuration
def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection."""
    # Add markers based on test names
    for item in items:
        if "integration" in item.name:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
