# SPDX-License-Identifier: AGPL-3.0-only

"""
AI service for market trend analysis.

This module calls the Gemini generateContent API with Google Search grounding and
turns its reply into raw text plus normalized citations. Provider failures are
classified into the error taxonomy; nothing here is retried.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import requests
from pydantic import BaseModel, Field

from .config import MarketTrendsConfig, config
from .errors import (
    ConfigurationError,
    UpstreamAccessError,
    UpstreamEmptyError,
    UpstreamError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
)
from .models import Source

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ("RESOURCE_EXHAUSTED", "RESOURCE EXHAUSTED", "RATE LIMIT")
ACCESS_MARKERS = ("PERMISSION_DENIED", "API_KEY_INVALID", "API KEY NOT VALID")


class ModelResponse(BaseModel):
    """Raw model output handed to the response parser."""
    text: str = Field(description="Concatenated response text")
    sources: List[Source] = Field(default_factory=list, description="Normalized grounding citations")
    tokens: int = Field(default=0, description="Total tokens reported by the provider")


def normalize_sources(chunks: Optional[Iterable[Any]]) -> List[Source]:
    """
    Normalize grounding chunks into citations.

    Missing titles fall back to "Market Reference" and missing URIs to "#".
    """
    sources = []
    for chunk in chunks or []:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        web = web if isinstance(web, dict) else {}
        sources.append(Source(
            title=web.get("title") or Source.model_fields["title"].default,
            uri=web.get("uri") or Source.model_fields["uri"].default,
        ))
    return sources


def classify_upstream_failure(status_code: Optional[int], body: str) -> UpstreamError:
    """
    Map a failed provider response onto the error taxonomy.

    Args:
        status_code: HTTP status, if any
        body: Raw failure payload

    Returns:
        The matching UpstreamError subclass instance
    """
    marker_text = (body or "").upper()
    if status_code == 429 or any(m in marker_text for m in RATE_LIMIT_MARKERS):
        return UpstreamRateLimitError(detail=body)
    if status_code in (401, 403) or any(m in marker_text for m in ACCESS_MARKERS):
        return UpstreamAccessError(detail=body)
    return UpstreamError(
        f"The market analysis service returned an error (HTTP {status_code}). Please try again later.",
        detail=body,
    )


class GeminiTrendService:
    """Service for calling the generative model."""

    def __init__(self, settings: Optional[MarketTrendsConfig] = None, session: Optional[requests.Session] = None):
        """
        Initialize the Gemini service.

        Args:
            settings: Configuration, defaults to the global config
            session: HTTP session, defaults to the requests module
        """
        self.settings = settings or config
        self.ai_config = self.settings.get_ai_config()
        self.http = session or requests

    def ensure_configured(self) -> None:
        """Fail fast when the API key is missing or malformed."""
        if not self.settings.validate_ai_config():
            raise ConfigurationError()

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": self.ai_config["temperature"]},
        }
        if self.ai_config["use_search_grounding"]:
            payload["tools"] = [{"google_search": {}}]
        return payload

    def generate(self, prompt: str) -> ModelResponse:
        """
        Call Gemini and return its text and citations.

        Args:
            prompt: Full prompt text

        Returns:
            ModelResponse with non-empty text

        Raises:
            ConfigurationError: If the API key is missing or malformed
            UpstreamError: If the call fails or returns no text
        """
        self.ensure_configured()

        url = f"{self.ai_config['base_url']}/models/{self.ai_config['model']}:generateContent"
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.ai_config["api_key"].strip(),
        }

        try:
            response = self.http.post(
                url,
                json=self.build_payload(prompt),
                headers=headers,
                timeout=self.ai_config["timeout"],
            )
        except requests.exceptions.Timeout as e:
            logger.warning("Gemini call timed out after %ss", self.ai_config["timeout"])
            raise UpstreamTimeoutError(detail=str(e)) from e
        except requests.exceptions.RequestException as e:
            logger.error("Gemini call failed: %s", e)
            raise UpstreamError(
                "Could not reach the market analysis service. Check your connection and try again.",
                detail=str(e),
            ) from e

        if response.status_code != 200:
            logger.error("Gemini API error %s: %s", response.status_code, response.text[:2000])
            raise classify_upstream_failure(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(
                "The market analysis service returned an unreadable response.",
                detail=response.text[:2000],
            ) from e

        return self.parse_response(data)

    def parse_response(self, data: Dict[str, Any]) -> ModelResponse:
        """Extract text, citations and token usage from a generateContent reply."""
        if not isinstance(data, dict):
            raise UpstreamEmptyError(detail=f"unexpected payload type {type(data).__name__}")
        if isinstance(data.get("error"), dict):
            error = data["error"]
            raise classify_upstream_failure(error.get("code"), f"{error.get('status', '')} {error.get('message', '')}")

        candidates = data.get("candidates") or []
        first = candidates[0] if candidates and isinstance(candidates[0], dict) else {}
        parts = (first.get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))

        if not text.strip():
            reason = (data.get("promptFeedback") or {}).get("blockReason") or first.get("finishReason")
            logger.warning("Gemini returned no text (reason: %s)", reason)
            raise UpstreamEmptyError(detail=str(reason) if reason else None)

        chunks = (first.get("groundingMetadata") or {}).get("groundingChunks")
        usage = data.get("usageMetadata") or {}
        return ModelResponse(
            text=text,
            sources=normalize_sources(chunks),
            tokens=int(usage.get("totalTokenCount") or 0),
        )
