# SPDX-License-Identifier: AGPL-3.0-only

"""
Error taxonomy for market analysis.

Every error that reaches a caller carries a human-readable, actionable
``user_message``. Raw upstream or internal detail is kept in ``detail`` for
logging and is never part of the user message.
"""

from typing import Any, Dict, Optional

from .models import ErrorInfo


class MarketAnalysisError(Exception):
    """Base class for errors surfaced to callers."""

    error_type = "analysis_error"
    default_message = "An unexpected error occurred during market analysis."

    def __init__(self, user_message: Optional[str] = None, detail: Optional[str] = None):
        self.user_message = user_message or self.default_message
        self.detail = detail
        super().__init__(self.user_message)

    def to_info(self) -> ErrorInfo:
        """Convert to a serializable ErrorInfo."""
        details: Optional[Dict[str, Any]] = None
        if self.detail:
            details = {"detail": self.detail}
        return ErrorInfo(error_type=self.error_type, message=self.user_message, details=details)


class ConfigurationError(MarketAnalysisError):
    """Required credential is missing or malformed."""

    error_type = "configuration_error"
    default_message = (
        "The Gemini API key is missing. Set MARKET_TRENDS_GEMINI_API_KEY "
        "(or GEMINI_API_KEY) in the environment or .env file."
    )


class InvalidSubjectError(MarketAnalysisError):
    """Subject is blank after trimming."""

    error_type = "invalid_subject"
    default_message = "Please enter a profession or business topic to analyse."


class UpstreamError(MarketAnalysisError):
    """The generative model call failed."""

    error_type = "upstream_error"
    default_message = "The market analysis service returned an error. Please try again later."


class UpstreamEmptyError(UpstreamError):
    """The model returned no text."""

    error_type = "upstream_empty"
    default_message = (
        "The AI returned an empty response. This can happen if the topic is "
        "sensitive or unsupported."
    )


class UpstreamRateLimitError(UpstreamError):
    """The model provider is throttling requests."""

    error_type = "rate_limited"
    default_message = "Too many requests. Please wait a moment and try again."


class UpstreamAccessError(UpstreamError):
    """The credential lacks permission for the requested model."""

    error_type = "access_denied"
    default_message = (
        "API key permissions error. Ensure the key belongs to a project with "
        "access to the configured Gemini model."
    )


class UpstreamTimeoutError(UpstreamError):
    """The model call did not answer within the configured timeout."""

    error_type = "upstream_timeout"
    default_message = "The market analysis took too long to respond. Please try again."


class ExtractionFailure(MarketAnalysisError):
    """Every fallback tier finished with zero candidates."""

    error_type = "extraction_failure"
    default_message = (
        "Could not extract structured data from the analysis. "
        "Please try a simpler search term."
    )
