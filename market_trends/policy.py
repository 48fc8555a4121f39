# SPDX-License-Identifier: AGPL-3.0-only

"""
Parsing policy for the response parser.

A single parameterized pipeline handles every deployment; the policy enumerates
the marker vocabulary, which fallback tiers are active, the random-volume bounds
per tier and the minimum-candidate threshold.
"""

from typing import Dict, List, Tuple

from pydantic import BaseModel, Field, field_validator

from .models import ExtractionTier, Trend


class CuratedKeyword(BaseModel):
    """Preset keyword injected by the curated fallback tier."""
    term: str
    volume: int = 12000
    trend: Trend = Trend.UP
    change_percent: float = 15.0
    relevance: int = 85


DEFAULT_CURATED_KEYWORDS = [
    CuratedKeyword(term="Market growth"),
    CuratedKeyword(term="Digital transformation"),
    CuratedKeyword(term="Customer experience"),
    CuratedKeyword(term="Eco-friendly solutions"),
    CuratedKeyword(term="Price optimization"),
]


class ParsingPolicy(BaseModel):
    """Configuration for response parsing and the fallback chain."""

    # Marker vocabulary; the first table marker is the one the prompt asks for
    summary_markers: List[str] = Field(default_factory=lambda: ["SUMMARY:"])
    table_markers: List[str] = Field(default_factory=lambda: ["DATA_TABLE:", "KEYWORDS_START", "DATA:"])
    table_end_markers: List[str] = Field(default_factory=lambda: ["KEYWORDS_END", "DATA_TABLE_END", "END_DATA"])
    summary_placeholder: str = "Market analysis complete. Review the trending data below."

    enabled_tiers: List[ExtractionTier] = Field(
        default_factory=lambda: [
            ExtractionTier.STRUCTURED,
            ExtractionTier.LOOSE_DELIMITER,
            ExtractionTier.TOKEN_SALVAGE,
            ExtractionTier.CURATED,
        ]
    )
    min_candidates: int = Field(default=5, ge=1)
    max_keywords: int = Field(default=50, ge=1, le=50)

    # Inclusive bounds for placeholder volumes, per tier
    volume_ranges: Dict[ExtractionTier, Tuple[int, int]] = Field(
        default_factory=lambda: {
            ExtractionTier.STRUCTURED: (1000, 50999),
            ExtractionTier.LOOSE_DELIMITER: (1000, 50999),
        }
    )

    loose_relevance: int = 50
    salvage_volume: int = 5000
    salvage_relevance: int = 50
    salvage_min_token_length: int = 6
    salvage_max_keywords: int = 10

    curated_keywords: List[CuratedKeyword] = Field(default_factory=lambda: list(DEFAULT_CURATED_KEYWORDS))

    @field_validator("volume_ranges")
    @classmethod
    def validate_volume_ranges(cls, v):
        for tier, (low, high) in v.items():
            if low < 1 or high < low:
                raise ValueError(f"invalid volume range for {tier}: ({low}, {high})")
        return v

    @field_validator("enabled_tiers")
    @classmethod
    def validate_enabled_tiers(cls, v):
        if ExtractionTier.STRUCTURED not in v:
            raise ValueError("the structured tier cannot be disabled")
        return v

    def tier_enabled(self, tier: ExtractionTier) -> bool:
        return tier in self.enabled_tiers

    def volume_range(self, tier: ExtractionTier) -> Tuple[int, int]:
        return self.volume_ranges.get(tier) or self.volume_ranges[ExtractionTier.STRUCTURED]

    @property
    def section_markers(self) -> List[str]:
        """Every marker that opens or closes a section."""
        return self.summary_markers + self.table_markers + self.table_end_markers

    @classmethod
    def lenient(cls) -> "ParsingPolicy":
        """Permissive deployment: all tiers, curated fallback included."""
        return cls()

    @classmethod
    def strict(cls) -> "ParsingPolicy":
        """Strict deployment: no curated fallback, narrower placeholder volumes."""
        return cls(
            enabled_tiers=[
                ExtractionTier.STRUCTURED,
                ExtractionTier.LOOSE_DELIMITER,
                ExtractionTier.TOKEN_SALVAGE,
            ],
            volume_ranges={
                ExtractionTier.STRUCTURED: (500, 15499),
                ExtractionTier.LOOSE_DELIMITER: (500, 15499),
            },
        )

    @classmethod
    def for_mode(cls, mode: str) -> "ParsingPolicy":
        """Build the preset named by ``mode`` ('lenient' or 'strict')."""
        mode = (mode or "lenient").strip().lower()
        if mode == "strict":
            return cls.strict()
        if mode == "lenient":
            return cls.lenient()
        raise ValueError(f"Unknown parsing mode: {mode}")
