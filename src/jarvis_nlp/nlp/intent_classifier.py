"""
Weighted-pattern intent classification.

Every intent owns a list of regular expressions with a weight and optional
entity conditions. A matching pattern scores its weight, plus 0.1 for each
``category:any`` condition whose category is non-empty and 0.2 for each
``category:value`` condition the entities satisfy, capped at 1.0. An intent's
aggregate is the sum of its matching pattern scores divided by the number of
patterns it declares, so intents with many patterns are diluted on purpose.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .types import ClassifiedIntent, EntityCategory, ExtractedEntities, IntentType, ProcessedInput
from ..utils.error_handling import ClassificationFailure, ConfigurationError, fail_closed
from ..utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_PATTERNS = 100
ANY_VALUE = "any"
ACTION_VERB = re.compile(r"\b(run|execute|start|launch|test|analyze|generate|optimize)\b")

_CATEGORY_BY_NAME = {category.value: category for category in EntityCategory}


@dataclass(frozen=True)
class IntentPattern:
    """One weighted regular expression with its entity conditions."""

    pattern: str
    weight: float
    conditions: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "_regex", re.compile(self.pattern))
        for condition in self.conditions:
            category, sep, value = condition.partition(":")
            if not sep or category not in _CATEGORY_BY_NAME or not value:
                raise ConfigurationError(f"Invalid pattern condition {condition!r} in {self.pattern!r}")

    def matches(self, text: str) -> bool:
        return self._regex.search(text) is not None

    def score(self, entities: ExtractedEntities) -> float:
        score = self.weight
        for condition in self.conditions:
            category_name, _, value = condition.partition(":")
            category = _CATEGORY_BY_NAME[category_name]
            if value == ANY_VALUE:
                if entities.has_any(category):
                    score += 0.1
            elif entities.contains(category, value):
                score += 0.2
        return min(score, 1.0)


def _patterns(*rows) -> Tuple[IntentPattern, ...]:
    return tuple(IntentPattern(pattern, weight, tuple(conditions)) for pattern, weight, conditions in rows)


INTENT_PATTERNS: Mapping[IntentType, Tuple[IntentPattern, ...]] = MappingProxyType({
    IntentType.RUN_TESTS: _patterns(
        ("run.*test", 1.0, ["action:run", "testType:any"]),
        ("execute.*test", 1.0, ["action:run", "testType:any"]),
        ("start.*test", 1.0, ["action:run", "testType:any"]),
        ("launch.*test", 1.0, ["action:run", "testType:any"]),
        ("test.*run", 0.9, ["action:run", "testType:any"]),
        ("chaos.*run", 1.0, ["action:run", "testType:CHAOS_TEST"]),
        ("run.*chaos", 1.0, ["action:run", "testType:CHAOS_TEST"]),
    ),
    IntentType.ANALYZE_FAILURES: _patterns(
        ("analyze.*fail", 1.0, ["action:analyze", "context:failure"]),
        ("investigate.*error", 1.0, ["action:analyze", "context:error"]),
        ("why.*fail", 0.9, ["action:analyze", "context:failure"]),
        ("what.*wrong", 0.8, ["action:analyze", "context:problem"]),
    ),
    IntentType.GENERATE_TESTS: _patterns(
        ("generate.*test", 1.0, ["action:generate", "testType:any"]),
        ("create.*test", 1.0, ["action:generate", "testType:any"]),
        ("make.*test", 0.9, ["action:generate", "testType:any"]),
        ("new.*test", 0.8, ["action:generate", "testType:any"]),
    ),
    IntentType.OPTIMIZE_TESTS: _patterns(
        ("optimize.*test", 1.0, ["action:optimize", "testType:any"]),
        ("improve.*test", 1.0, ["action:optimize", "testType:any"]),
        ("enhance.*test", 0.9, ["action:optimize", "testType:any"]),
        ("faster.*test", 0.8, ["action:optimize", "context:performance"]),
    ),
    IntentType.HEALTH_CHECK: _patterns(
        ("health.*check", 1.0, ["action:check", "context:health"]),
        ("status.*check", 1.0, ["action:check", "context:status"]),
        ("system.*health", 0.9, ["action:check", "context:health"]),
        ("service.*status", 0.9, ["action:check", "context:status"]),
    ),
})


def build_intent_parameters(entities: ExtractedEntities) -> Dict[str, object]:
    """Structured parameters handed to the later stages."""
    parameters: Dict[str, object] = {}

    services = entities.services
    if services:
        parameters["services"] = services
        parameters["serviceName"] = services[0]

    if entities.test_types:
        parameters["testTypes"] = entities.test_types

    if entities.actions:
        parameters["actions"] = entities.actions

    explicit = entities.parameters()
    if explicit:
        parameters["explicitParameters"] = explicit

    if entities.context:
        parameters["context"] = entities.context

    return parameters


def describe_intent(entities: ExtractedEntities) -> str:
    """Short natural-language summary, e.g. ``run chaos test for order-service``."""
    parts = [entities.actions[0] if entities.actions else "process"]
    if entities.test_types:
        parts.append(entities.test_types[0].lower().replace("_", " "))
    if entities.services:
        parts.append(f"for {entities.services[0]}")
    return " ".join(parts)


class IntentClassifier:
    """Scores every intent's patterns and picks the best one."""

    def __init__(
        self,
        patterns: Optional[Mapping[IntentType, Tuple[IntentPattern, ...]]] = None,
        max_patterns: int = DEFAULT_MAX_PATTERNS,
    ):
        self.patterns = patterns if patterns is not None else INTENT_PATTERNS

        total = sum(len(group) for group in self.patterns.values())
        if total > max_patterns:
            raise ConfigurationError(
                f"Intent pattern table has {total} patterns, limit is {max_patterns}",
                details={"pattern_count": total, "max_patterns": max_patterns}
            )
        self.max_patterns = max_patterns

    def score_intents(self, text: str, entities: ExtractedEntities) -> Dict[IntentType, float]:
        """Aggregate score per intent; intents scoring 0 are left out."""
        scores: Dict[IntentType, float] = {}
        for intent_type, patterns in self.patterns.items():
            if not patterns:
                continue
            total = sum(p.score(entities) for p in patterns if p.matches(text))
            aggregate = total / len(patterns)
            if aggregate > 0:
                scores[intent_type] = aggregate
        return scores

    def calculate_confidence(
        self, intent_type: IntentType, base: float, entities: ExtractedEntities, text: str
    ) -> float:
        if intent_type is IntentType.UNKNOWN:
            return 0.0

        confidence = base
        confidence += min(0.2, entities.total_count * 0.05)
        confidence += 0.05 * sum(1 for e in entities.all_entities() if e.confidence > 0.9)
        if ACTION_VERB.search(text):
            confidence += 0.1

        return max(0.0, min(1.0, confidence))

    @fail_closed(
        "intent_classification",
        ClassificationFailure,
        lambda failure, self, processed, entities: ClassifiedIntent.unknown(failure),
    )
    def classify(self, processed: ProcessedInput, entities: ExtractedEntities) -> ClassifiedIntent:
        text = processed.normalized
        parameters = build_intent_parameters(entities)
        scores = self.score_intents(text, entities)

        best_type: Optional[IntentType] = None
        best_score = 0.0
        # strict comparison keeps the first declared intent on ties
        for intent_type in self.patterns:
            score = scores.get(intent_type, 0.0)
            if score > best_score:
                best_type, best_score = intent_type, score

        if best_type is None:
            logger.debug("No intent pattern matched %r", text)
            return ClassifiedIntent.unknown(
                ClassificationFailure("No intent pattern matched the input", details={"input": text}),
                parameters,
            )

        confidence = self.calculate_confidence(best_type, best_score, entities, text)
        parameters["intentConfidence"] = confidence

        logger.debug("Classified %r as %s (score=%.3f, confidence=%.3f)",
                     text, best_type.value, best_score, confidence)

        return ClassifiedIntent(
            intent_type=best_type,
            score=best_score,
            confidence=confidence,
            scores=scores,
            parameters=parameters,
            description=describe_intent(entities),
        )

    def pattern_count(self) -> int:
        return sum(len(group) for group in self.patterns.values())

    def list_patterns(self, intent_type: IntentType) -> List[str]:
        return [p.pattern for p in self.patterns.get(intent_type, ())]
