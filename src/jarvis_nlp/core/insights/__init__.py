"""Optional LLM commentary on mapped actions."""

from .service import InsightService, INSIGHT_PROMPT

__all__ = ["InsightService", "INSIGHT_PROMPT"]
