# SPDX-License-Identifier: AGPL-3.0-only

"""
Configuration service for the market trends system.

This module centralizes all configuration settings for the analysis pipeline,
supporting environment variable overrides and validation.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .policy import ParsingPolicy

# Values that front-end build tooling substitutes for an unset key
_PLACEHOLDER_KEYS = {"undefined", "null", "none"}
MIN_API_KEY_LENGTH = 5


class MarketTrendsConfig(BaseSettings):
    """Configuration settings for the market trends system."""

    model_config = SettingsConfigDict(
        env_prefix="MARKET_TRENDS_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Gemini settings
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MARKET_TRENDS_GEMINI_API_KEY", "GEMINI_API_KEY", "API_KEY"),
        description="Gemini API key",
    )
    gemini_model: str = Field(default="gemini-2.5-flash", description="Gemini model name")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST base URL",
    )
    ai_timeout: int = Field(default=60, description="Model call timeout in seconds")
    temperature: float = Field(default=0.1, description="Sampling temperature; low keeps the format stable")
    use_search_grounding: bool = Field(default=True, description="Enable Google Search grounding")

    # Parsing settings
    parsing_mode: str = Field(default="lenient", description="Parsing policy preset (lenient, strict)")
    max_keywords: int = Field(default=50, ge=1, le=50, description="Maximum keywords in a report")

    log_level: str = Field(default="INFO", description="Root logging level")

    def get_ai_config(self) -> dict:
        """Get AI service configuration."""
        return {
            "api_key": self.gemini_api_key,
            "model": self.gemini_model,
            "base_url": self.gemini_base_url,
            "timeout": self.ai_timeout,
            "temperature": self.temperature,
            "use_search_grounding": self.use_search_grounding,
        }

    def validate_ai_config(self) -> bool:
        """Check that a usable API key is configured."""
        key = (self.gemini_api_key or "").strip()
        if not key or key.lower() in _PLACEHOLDER_KEYS:
            return False
        return len(key) >= MIN_API_KEY_LENGTH

    def get_parsing_policy(self) -> ParsingPolicy:
        """Build the parsing policy for the configured mode."""
        policy = ParsingPolicy.for_mode(self.parsing_mode)
        return policy.model_copy(update={"max_keywords": self.max_keywords})


# Global configuration instance
config = MarketTrendsConfig()
