"""
Main command analyzer that runs the five interpretation stages in order.
"""

import asyncio
from typing import List, Optional

from .action_mapper import ActionMapper
from .context_enricher import ContextEnricher
from .entity_extractor import EntityExtractor
from .intent_classifier import IntentClassifier
from .normalizer import Normalizer
from .types import (
    ActionType,
    ClassifiedIntent,
    CommandAnalysis,
    ContextualIntent,
    ExecutableAction,
    ExtractedEntities,
    InsightResult,
    ProcessedInput,
)
from ..utils.error_handling import EnrichmentFailure, MappingFailure, PipelineError
from ..utils.logging import get_logger, log_performance

DEFAULT_CONFIDENCE_THRESHOLD = 0.7
DEFAULT_INSIGHT_TIMEOUT = 10.0


class CommandAnalyzer:
    """
    Orchestrates normalisation, entity extraction, intent classification,
    context enrichment and action mapping.

    The analyzer holds no per-request state, so one instance can serve any
    number of concurrent callers.
    """

    def __init__(
        self,
        normalizer: Optional[Normalizer] = None,
        entity_extractor: Optional[EntityExtractor] = None,
        intent_classifier: Optional[IntentClassifier] = None,
        context_enricher: Optional[ContextEnricher] = None,
        action_mapper: Optional[ActionMapper] = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ):
        self.logger = get_logger(__name__)
        self.normalizer = normalizer or Normalizer()
        self.entity_extractor = entity_extractor or EntityExtractor()
        self.intent_classifier = intent_classifier or IntentClassifier()
        self.context_enricher = context_enricher or ContextEnricher()
        self.action_mapper = action_mapper or ActionMapper()
        self.confidence_threshold = confidence_threshold

    def analyze(self, text: Optional[str]) -> CommandAnalysis:
        """Run every stage and return all intermediate results."""
        try:
            with log_performance("command analysis"):
                processed = self.normalizer.normalize(text)
                entities = self.entity_extractor.extract(processed)
                intent = self.intent_classifier.classify(processed, entities)
                contextual = self.context_enricher.enrich(intent, entities)
                action = self.action_mapper.map(contextual)
        except Exception as e:
            # every stage is fail-closed already; this guards the glue itself
            self.logger.error(f"Command analysis failed: {e}", exc_info=True)
            return self._create_fallback_analysis(text, e)

        failures = self._collect_failures(processed, entities, intent, contextual, action)
        analysis = CommandAnalysis(
            raw_input=text if isinstance(text, str) else "",
            processed=processed,
            entities=entities,
            intent=intent,
            contextual=contextual,
            action=action,
            failures=failures,
            confident=self.is_confident(action),
        )

        self.logger.debug(
            f"Analyzed command: intent={intent.intent_type.value}, "
            f"action={action.action_type.value}, confidence={action.confidence:.2f}"
        )
        return analysis

    def interpret(self, text: Optional[str]) -> ExecutableAction:
        """Interpret a command and return only the executable action."""
        return self.analyze(text).action

    def is_confident(self, action: ExecutableAction) -> bool:
        return action.is_executable and action.confidence >= self.confidence_threshold

    async def interpret_with_insights(
        self,
        text: Optional[str],
        insight_service=None,
        timeout: Optional[float] = None,
    ) -> InsightResult:
        """
        Interpret a command, then ask ``insight_service`` for commentary.

        The action is computed first and returned unchanged whatever happens
        to the insight call; failures and timeouts are reported in
        ``InsightResult.error``. Without ``timeout`` the call is bounded by
        the service's ``config.timeout_seconds``, else DEFAULT_INSIGHT_TIMEOUT.
        """
        action = self.interpret(text)
        if insight_service is None:
            return InsightResult(action=action)

        timeout = timeout or _insight_timeout(insight_service)
        try:
            insight = await asyncio.wait_for(insight_service.generate_insight(text or "", action), timeout=timeout)
            return InsightResult(action=action, insight=insight)

        except asyncio.TimeoutError:
            failure = EnrichmentFailure(
                f"Insight timed out after {timeout}s",
                details={"error_type": "timeout", "timeout_seconds": timeout}
            )
        except EnrichmentFailure as e:
            failure = e
        except Exception as e:
            failure = EnrichmentFailure(
                f"Insight failed: {e}",
                details={"error_type": type(e).__name__, "original_error": str(e)}
            )

        self.logger.warning(f"Insight unavailable: {failure.message}")
        return InsightResult(action=action, error=failure.message)

    def _collect_failures(
        self,
        processed: ProcessedInput,
        entities: ExtractedEntities,
        intent: ClassifiedIntent,
        contextual: ContextualIntent,
        action: ExecutableAction,
    ) -> List[PipelineError]:
        failures = [
            stage.failure
            for stage in (processed, entities, intent, contextual)
            if stage.failure is not None
        ]
        if action.action_type is ActionType.ERROR:
            failures.append(MappingFailure(
                action.description,
                details={"error_type": "mapping", "original_error": action.parameters.get("error")}
            ))
        return failures

    def _create_fallback_analysis(self, text: Optional[str], error: Exception) -> CommandAnalysis:
        raw = text if isinstance(text, str) else ""
        failure = MappingFailure(
            f"Command analysis failed: {error}",
            details={"error_type": type(error).__name__, "original_error": str(error)}
        )
        intent = ClassifiedIntent.unknown(failure)
        entities = ExtractedEntities.empty()
        return CommandAnalysis(
            raw_input=raw,
            processed=ProcessedInput.empty(raw),
            entities=entities,
            intent=intent,
            contextual=ContextualIntent(intent=intent, entities=entities),
            action=ExecutableAction.error(str(error)),
            failures=[failure],
            confident=False,
        )

    def get_analysis_stats(self) -> dict:
        return {
            "fuzzy_threshold": self.entity_extractor.fuzzy_threshold,
            "confidence_threshold": self.confidence_threshold,
            "pattern_count": self.intent_classifier.pattern_count(),
            "max_patterns": self.intent_classifier.max_patterns,
            "intents_with_templates": [i.value for i in self.action_mapper.templates],
        }


def _insight_timeout(insight_service) -> float:
    configured = getattr(getattr(insight_service, "config", None), "timeout_seconds", None)
    if isinstance(configured, (int, float)) and configured > 0:
        return configured
    return DEFAULT_INSIGHT_TIMEOUT
