"""
Shared types for command interpretation.

Every record here is created fresh for each call; static tables live in
``lexicon`` and the stage modules and are never mutated.
"""

import json
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple, Mapping
from enum import Enum

from ..utils.error_handling import PipelineError


ALL_SERVICES = "all-services"
UNKNOWN_SERVICE = "unknown"
UNKNOWN_TEST_TYPE = "UNKNOWN"


class EntityCategory(Enum):
    """Categories an extracted entity can belong to."""

    SERVICE = "service"
    TEST_TYPE = "testType"
    ACTION = "action"
    PARAMETER = "parameter"
    CONTEXT = "context"


class IntentType(Enum):
    """Intents the classifier can produce. Declaration order breaks ties."""

    RUN_TESTS = "RUN_TESTS"
    ANALYZE_FAILURES = "ANALYZE_FAILURES"
    GENERATE_TESTS = "GENERATE_TESTS"
    OPTIMIZE_TESTS = "OPTIMIZE_TESTS"
    HEALTH_CHECK = "HEALTH_CHECK"
    UNKNOWN = "UNKNOWN"


class ActionType(Enum):
    """Actions the downstream executor understands."""

    RUN_TEST = "RUN_TEST"
    RUN_CHAOS_TEST = "RUN_CHAOS_TEST"
    RUN_PERFORMANCE_TEST = "RUN_PERFORMANCE_TEST"
    ANALYZE_FAILURES = "ANALYZE_FAILURES"
    GENERATE_TESTS = "GENERATE_TESTS"
    OPTIMIZE_TESTS = "OPTIMIZE_TESTS"
    HEALTH_CHECK = "HEALTH_CHECK"
    UNKNOWN = "UNKNOWN"
    ERROR = "ERROR"


class Scope(Enum):
    FULL = "FULL"
    TARGETED = "TARGETED"


class Strategy(Enum):
    AGGRESSIVE = "AGGRESSIVE"
    BALANCED = "BALANCED"
    CONSERVATIVE = "CONSERVATIVE"


class RiskLevel(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Timing(Enum):
    IMMEDIATE = "IMMEDIATE"
    NORMAL = "NORMAL"
    BACKGROUND = "BACKGROUND"


@dataclass(frozen=True)
class Token:
    """A single word of normalised input."""

    text: str
    is_special: bool = False


@dataclass
class ProcessedInput:
    """Output of the normaliser."""

    raw_text: str
    normalized: str
    tokens: Tuple[Token, ...] = ()
    failure: Optional[PipelineError] = None

    @property
    def words(self) -> List[str]:
        return [token.text for token in self.tokens]

    @property
    def special_tokens(self) -> List[str]:
        return [token.text for token in self.tokens if token.is_special]

    @property
    def is_empty(self) -> bool:
        return not self.normalized

    @classmethod
    def empty(cls, raw_text: Optional[str] = "", failure: Optional[PipelineError] = None) -> "ProcessedInput":
        return cls(raw_text=raw_text or "", normalized="", tokens=(), failure=failure)


@dataclass(frozen=True)
class Entity:
    """A recognised piece of the command with its canonical value."""

    category: EntityCategory
    value: str
    original_text: str
    confidence: float

    @property
    def key(self) -> Tuple[EntityCategory, str]:
        return (self.category, self.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "value": self.value,
            "originalText": self.original_text,
            "confidence": self.confidence,
        }


class ExtractedEntities:
    """
    Entities grouped by category.

    Each category holds at most one entity per canonical value (the most
    confident one) ordered by descending confidence.
    """

    def __init__(self, entities: Optional[List[Entity]] = None, failure: Optional[PipelineError] = None):
        self.failure = failure
        self._by_category: Dict[EntityCategory, Tuple[Entity, ...]] = {
            category: () for category in EntityCategory
        }

        grouped: Dict[EntityCategory, Dict[str, Entity]] = {category: {} for category in EntityCategory}
        for entity in entities or ():
            best = grouped[entity.category]
            current = best.get(entity.value)
            if current is None or entity.confidence > current.confidence:
                best[entity.value] = entity

        for category, best in grouped.items():
            # sorted() is stable, so equal confidences keep first-seen order
            self._by_category[category] = tuple(
                sorted(best.values(), key=lambda e: e.confidence, reverse=True)
            )

    @classmethod
    def empty(cls, failure: Optional[PipelineError] = None) -> "ExtractedEntities":
        return cls([], failure=failure)

    def get(self, category: EntityCategory) -> Tuple[Entity, ...]:
        return self._by_category[category]

    def values(self, category: EntityCategory) -> List[str]:
        return [entity.value for entity in self._by_category[category]]

    def contains(self, category: EntityCategory, value: str) -> bool:
        return any(entity.value == value for entity in self._by_category[category])

    def has_any(self, category: EntityCategory) -> bool:
        return bool(self._by_category[category])

    def all_entities(self) -> List[Entity]:
        return [entity for category in EntityCategory for entity in self._by_category[category]]

    @property
    def total_count(self) -> int:
        return sum(len(group) for group in self._by_category.values())

    @property
    def services(self) -> List[str]:
        return self.values(EntityCategory.SERVICE)

    @property
    def test_types(self) -> List[str]:
        return self.values(EntityCategory.TEST_TYPE)

    @property
    def actions(self) -> List[str]:
        return self.values(EntityCategory.ACTION)

    @property
    def context(self) -> List[str]:
        return self.values(EntityCategory.CONTEXT)

    def parameters(self) -> Dict[str, str]:
        """Explicit parameters as ``{name: original text}``."""
        return {entity.value: entity.original_text for entity in self.get(EntityCategory.PARAMETER)}

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            category.value: [entity.to_dict() for entity in group]
            for category, group in self._by_category.items()
        }

    def __len__(self) -> int:
        return self.total_count

    def __repr__(self) -> str:
        counts = ", ".join(f"{c.value}={len(g)}" for c, g in self._by_category.items() if g)
        return f"ExtractedEntities({counts})"


@dataclass
class ClassifiedIntent:
    """Output of the intent classifier."""

    intent_type: IntentType
    score: float = 0.0
    confidence: float = 0.0
    scores: Dict[IntentType, float] = field(default_factory=dict)
    parameters: Dict[str, Any] = field(default_factory=dict)
    description: str = ""
    failure: Optional[PipelineError] = None

    @property
    def is_unknown(self) -> bool:
        return self.intent_type is IntentType.UNKNOWN

    @classmethod
    def unknown(cls, failure: Optional[PipelineError] = None, parameters: Optional[Dict[str, Any]] = None) -> "ClassifiedIntent":
        return cls(
            intent_type=IntentType.UNKNOWN,
            parameters=dict(parameters or {}),
            description="unrecognised command",
            failure=failure,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intentType": self.intent_type.value,
            "score": self.score,
            "confidence": self.confidence,
            "scores": {intent.value: score for intent, score in self.scores.items()},
            "parameters": self.parameters,
            "description": self.description,
        }


@dataclass
class ExecutionContext:
    """Execution dimensions derived from the command."""

    scope: Scope = Scope.TARGETED
    strategy: Strategy = Strategy.BALANCED
    risk_level: RiskLevel = RiskLevel.LOW
    timing: Timing = Timing.NORMAL
    resource_requirements: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scope": self.scope.value,
            "strategy": self.strategy.value,
            "riskLevel": self.risk_level.value,
            "timing": self.timing.value,
            "resourceRequirements": dict(self.resource_requirements),
        }


@dataclass
class ContextualIntent:
    """Output of the context enricher."""

    intent: ClassifiedIntent
    entities: ExtractedEntities
    execution_context: ExecutionContext = field(default_factory=ExecutionContext)
    affected_services: List[str] = field(default_factory=list)
    parameters: Dict[str, Any] = field(default_factory=dict)
    derived_parameters: Dict[str, Any] = field(default_factory=dict)
    suggestions: List[str] = field(default_factory=list)
    confidence: float = 0.0
    failure: Optional[PipelineError] = None

    @property
    def intent_type(self) -> IntentType:
        return self.intent.intent_type

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intentType": self.intent.intent_type.value,
            "executionContext": self.execution_context.to_dict(),
            "affectedServices": list(self.affected_services),
            "parameters": self.parameters,
            "suggestions": list(self.suggestions),
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class ActionTemplate:
    """Static description of how an intent turns into an executable action."""

    action_type: ActionType
    required_entities: Tuple[EntityCategory, ...] = ()
    preferred_test_types: Tuple[str, ...] = ()
    preferred_services: Tuple[str, ...] = ()
    parameter_mapping: Mapping[str, str] = field(default_factory=dict)
    default_parameters: Mapping[str, Any] = field(default_factory=dict)
    estimated_minutes: int = 5


@dataclass
class ExecutableAction:
    """Final output of the pipeline, handed to the test executor."""

    action_type: ActionType
    test_type: str
    service_name: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0
    description: str = ""
    estimated_duration: str = "unknown"
    priority: str = "NORMAL"

    @property
    def is_executable(self) -> bool:
        return self.action_type not in (ActionType.UNKNOWN, ActionType.ERROR)

    @classmethod
    def unknown(cls) -> "ExecutableAction":
        return cls(
            action_type=ActionType.UNKNOWN,
            test_type=UNKNOWN_TEST_TYPE,
            service_name=UNKNOWN_SERVICE,
            description="Unknown action - unable to map intent",
        )

    @classmethod
    def error(cls, message: str) -> "ExecutableAction":
        return cls(
            action_type=ActionType.ERROR,
            test_type=UNKNOWN_TEST_TYPE,
            service_name=UNKNOWN_SERVICE,
            parameters={"error": message},
            description=f"Error mapping intent: {message}",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actionType": self.action_type.value,
            "testType": self.test_type,
            "serviceName": self.service_name,
            "parameters": self.parameters,
            "confidence": self.confidence,
            "description": self.description,
            "estimatedDuration": self.estimated_duration,
            "priority": self.priority,
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass
class CommandAnalysis:
    """Everything the pipeline produced for one command."""

    raw_input: str
    processed: ProcessedInput
    entities: ExtractedEntities
    intent: ClassifiedIntent
    contextual: ContextualIntent
    action: ExecutableAction
    failures: List[PipelineError] = field(default_factory=list)
    confident: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input": self.raw_input,
            "normalized": self.processed.normalized,
            "tokens": self.processed.words,
            "specialTokens": self.processed.special_tokens,
            "entities": self.entities.to_dict(),
            "intent": self.intent.to_dict(),
            "context": self.contextual.to_dict(),
            "action": self.action.to_dict(),
            "failures": [failure.to_dict() for failure in self.failures],
            "confident": self.confident,
        }


@dataclass
class InsightResult:
    """An action plus the optional, non-authoritative LLM commentary."""

    action: ExecutableAction
    insight: Optional[str] = None
    error: Optional[str] = None

    @property
    def has_insight(self) -> bool:
        return self.insight is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.to_dict(),
            "insight": self.insight,
            "insightError": self.error,
        }
