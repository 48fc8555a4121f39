# SPDX-License-Identifier: AGPL-3.0-only

"""
Pydantic models for the market trends system.

This module defines the core data structures used throughout the analysis pipeline:
keyword records parsed from model output, the final market report, and the
internal parse outcome that drives the fallback chain.
"""

import re
import time
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# Tokens that identify a table header or section label rather than a keyword
HEADER_TOKENS = ("term", "keyword", "keywords", "summary", "data")

_HEADER_RE = re.compile(r"\b(?:" + "|".join(HEADER_TOKENS) + r")\b", re.IGNORECASE)

MAX_KEYWORDS = 50


def is_header_term(term: str) -> bool:
    """Return True if a header token appears in the term as a whole word."""
    return bool(_HEADER_RE.search(term or ""))


class Trend(str, Enum):
    """Direction of a keyword's search interest."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class ExtractionTier(str, Enum):
    """Fallback tier that produced a candidate list."""
    STRUCTURED = "structured"
    LOOSE_DELIMITER = "loose_delimiter"
    TOKEN_SALVAGE = "token_salvage"
    CURATED = "curated"


class AnalysisState(str, Enum):
    """Lifecycle states of an analysis session."""
    IDLE = "idle"
    LOADING = "loading"
    RESULTS = "results"
    ERROR = "error"


class KeywordRecord(BaseModel):
    """One trending keyword with its metrics."""
    model_config = ConfigDict(frozen=True)

    term: str = Field(description="Keyword or search phrase")
    volume: int = Field(ge=0, description="Estimated monthly search volume")
    trend: Trend = Field(default=Trend.STABLE, description="Trend direction")
    change_percent: float = Field(default=0.0, description="Year-over-year change in percent")
    relevance: int = Field(default=50, description="Nominal relevance from listing order")

    @field_validator("term")
    @classmethod
    def validate_term(cls, v: str) -> str:
        """Reject blank, single-character and header-token terms."""
        v = (v or "").strip()
        if len(v) <= 1:
            raise ValueError("term must be longer than one character")
        if is_header_term(v):
            raise ValueError(f"term '{v}' is a table header token")
        return v


class Source(BaseModel):
    """Grounding citation returned with the model response."""
    model_config = ConfigDict(frozen=True)

    title: str = Field(default="Market Reference", description="Citation title")
    uri: str = Field(default="#", description="Citation URI")


class MarketReport(BaseModel):
    """Complete market trend report."""
    model_config = ConfigDict(frozen=True)

    subject: str = Field(description="Profession or topic analysed")
    summary: str = Field(description="Short market summary")
    keywords: List[KeywordRecord] = Field(default_factory=list, description="Keywords ranked by volume")
    sources: List[Source] = Field(default_factory=list, description="Grounding citations")
    generated_at: str = Field(description="Locale-rendered generation timestamp")
    tier: ExtractionTier = Field(default=ExtractionTier.STRUCTURED, description="Tier that produced the keywords")

    @model_validator(mode="after")
    def validate_keywords(self) -> "MarketReport":
        """Ensure the keyword list is bounded and ranked."""
        if len(self.keywords) > MAX_KEYWORDS:
            raise ValueError(f"report holds {len(self.keywords)} keywords, max is {MAX_KEYWORDS}")
        volumes = [k.volume for k in self.keywords]
        if any(a < b for a, b in zip(volumes, volumes[1:])):
            raise ValueError("keywords must be sorted by volume, descending")
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return self.model_dump(mode="json")


class ParseOutcome(BaseModel):
    """Candidate list plus the tier that produced it."""
    candidates: List[KeywordRecord] = Field(default_factory=list, description="Unsorted candidate records")
    tier: ExtractionTier = Field(default=ExtractionTier.STRUCTURED, description="Last contributing tier")
    tier_counts: Dict[str, int] = Field(default_factory=dict, description="Candidate count after each attempted tier")
    summary: str = Field(default="", description="Extracted summary")
    table_found: bool = Field(default=False, description="Whether a data-section marker was found")

    @property
    def count(self) -> int:
        return len(self.candidates)


class ErrorInfo(BaseModel):
    """Serializable description of a surfaced error."""
    error_type: str = Field(description="Type of error")
    message: str = Field(description="User-facing error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: float = Field(default_factory=time.time, description="Error timestamp")
