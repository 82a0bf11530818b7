"""
Insight service backed by the LLM server.

The insight is advisory text only: it never changes the action it comments
on, and every failure surfaces as an EnrichmentFailure.
"""

import json
from typing import Optional

from langchain_core.prompts import PromptTemplate

from ..llm_client import LLMClient
from ...config.models import InsightConfig
from ...nlp.types import ExecutableAction
from ...utils.error_handling import EnrichmentFailure, handle_insight_operation
from ...utils.logging import get_logger


INSIGHT_PROMPT = PromptTemplate.from_template(
    """You are assisting an engineer who runs automated tests against microservices.
The command "{command}" was interpreted as the following action:

{action}

In at most three sentences, point out risks or useful follow-ups for this action.
Do not restate the action."""
)


class InsightService:
    """Asks the LLM server for a short commentary on an ExecutableAction."""

    def __init__(self, config: Optional[InsightConfig] = None, client: Optional[LLMClient] = None):
        self.config = config or InsightConfig()
        self.logger = get_logger(__name__)
        self._client = client

    @property
    def client(self) -> LLMClient:
        if self._client is None:
            self.logger.debug("Creating LLM client for %s", self.config.base_url)
            self._client = LLMClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
                max_retries=self.config.max_retries,
                retry_delay=self.config.retry_delay,
            )
        return self._client

    def build_prompt(self, command: str, action: ExecutableAction) -> str:
        return INSIGHT_PROMPT.format(
            command=command,
            action=json.dumps(action.to_dict(), indent=2),
        )

    @handle_insight_operation("generate_insight")
    async def generate_insight(self, command: str, action: ExecutableAction) -> str:
        """Return the LLM's commentary on ``action``."""
        if not action.is_executable:
            raise EnrichmentFailure(
                "No insight for a non-executable action",
                details={"error_type": "not_applicable", "action_type": action.action_type.value}
            )

        response = await self.client.inference(
            self.build_prompt(command, action),
            config={"max_tokens": self.config.max_tokens, "temperature": self.config.temperature},
            model_name=self.config.model_name,
        )

        insight = response.content.strip()
        if not insight:
            raise EnrichmentFailure("LLM server returned an empty insight", details={"error_type": "empty"})
        return insight

    async def is_available(self) -> bool:
        """True when the LLM server reports itself healthy."""
        try:
            status = await self.client.health_check()
        except Exception as e:
            self.logger.debug("Insight server unavailable: %s", e)
            return False
        return status.get("status") in ("healthy", "ok", "ready")

    async def close(self):
        if self._client is not None:
            await self._client.close()
            self._client = None
