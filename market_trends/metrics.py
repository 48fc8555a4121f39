# SPDX-License-Identifier: AGPL-3.0-only

"""
Metrics and observability utilities.
"""

import time
from datetime import datetime
from typing import Any, Dict, List, Optional


class AnalysisMetrics:
    """Track stage timing and extraction tiers for one analysis."""

    def __init__(self):
        self.start_time = time.time()
        self.end_time: Optional[float] = None
        self.stages: Dict[str, float] = {}
        self.llm_calls = 0
        self.total_tokens = 0
        self.tier_counts: Dict[str, int] = {}
        self.final_tier: Optional[str] = None
        self.keyword_count = 0
        self.errors: List[str] = []

    def mark_stage(self, stage_name: str):
        """Mark completion of a stage."""
        self.stages[stage_name] = time.time()

    def finish(self):
        """Mark analysis as finished."""
        self.end_time = time.time()

    def add_llm_call(self, tokens: int):
        """Record a model call."""
        self.llm_calls += 1
        self.total_tokens += tokens

    def record_parse(self, tier_counts: Dict[str, int], final_tier: str):
        """Record how many candidates each tier left and which tier won."""
        self.tier_counts = dict(tier_counts)
        self.final_tier = final_tier

    def add_error(self, error: str):
        """Record an error."""
        self.errors.append(error)

    def duration(self) -> float:
        """Get total duration in seconds."""
        if self.end_time:
            return self.end_time - self.start_time
        return time.time() - self.start_time

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dict."""
        return {
            "duration_seconds": self.duration(),
            "llm_calls": self.llm_calls,
            "total_tokens": self.total_tokens,
            "tier_counts": self.tier_counts,
            "final_tier": self.final_tier,
            "keyword_count": self.keyword_count,
            "stages": {k: v - self.start_time for k, v in self.stages.items()},
            "errors": self.errors,
            "start_time": datetime.fromtimestamp(self.start_time).isoformat(),
            "end_time": datetime.fromtimestamp(self.end_time).isoformat() if self.end_time else None
        }
