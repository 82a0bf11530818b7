"""
Context enrichment: derive how a classified command should be executed.

Four dimensions are derived from the entities (scope, strategy, risk level
and timing). Each one injects fixed default parameters; they are applied in
the order scope, strategy, risk, timing so later dimensions win on
conflicting keys.
"""

from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

from .types import (
    ALL_SERVICES,
    ClassifiedIntent,
    ContextualIntent,
    EntityCategory,
    ExecutionContext,
    ExtractedEntities,
    IntentType,
    RiskLevel,
    Scope,
    Strategy,
    Timing,
)
from ..utils.error_handling import MappingFailure, fail_closed
from ..utils.logging import get_logger

logger = get_logger(__name__)

DISRUPTIVE_TEST_TYPES = frozenset(["CHAOS_TEST", "STRESS_TEST"])
LOAD_TEST_TYPES = frozenset(["PERFORMANCE_TEST", "LOAD_TEST"])

DEFAULT_STRATEGY: Mapping[IntentType, Strategy] = MappingProxyType({
    IntentType.ANALYZE_FAILURES: Strategy.CONSERVATIVE,
    IntentType.HEALTH_CHECK: Strategy.CONSERVATIVE,
})

SCOPE_PARAMETERS: Mapping[Scope, Mapping[str, Any]] = MappingProxyType({
    Scope.FULL: MappingProxyType({"timeout": "600s", "parallel": True, "retries": 3}),
    Scope.TARGETED: MappingProxyType({"timeout": "120s", "parallel": False, "retries": 2}),
})

STRATEGY_PARAMETERS: Mapping[Strategy, Mapping[str, Any]] = MappingProxyType({
    Strategy.AGGRESSIVE: MappingProxyType({"chaosLevel": "high", "loadLevel": "high", "timeout": "300s"}),
    Strategy.BALANCED: MappingProxyType({}),
    Strategy.CONSERVATIVE: MappingProxyType({"chaosLevel": "low", "loadLevel": "low", "timeout": "60s"}),
})

RISK_PARAMETERS: Mapping[RiskLevel, Mapping[str, Any]] = MappingProxyType({
    RiskLevel.HIGH: MappingProxyType({
        "rollbackEnabled": True,
        "monitoringEnabled": True,
        "alertingEnabled": True,
    }),
    RiskLevel.MEDIUM: MappingProxyType({}),
    RiskLevel.LOW: MappingProxyType({}),
})

TIMING_PARAMETERS: Mapping[Timing, Mapping[str, Any]] = MappingProxyType({
    Timing.IMMEDIATE: MappingProxyType({"priority": "HIGH", "timeout": "30s"}),
    Timing.NORMAL: MappingProxyType({}),
    Timing.BACKGROUND: MappingProxyType({"priority": "LOW", "timeout": "1800s"}),
})

# service -> services it calls
SERVICE_DEPENDENCIES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "user-service": ("gateway-service",),
    "product-service": ("gateway-service",),
    "order-service": ("user-service", "product-service", "gateway-service"),
    "notification-service": ("order-service", "user-service"),
    "gateway-service": (),
})

SERVICE_SUGGESTIONS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "user-service": (
        "Consider testing authentication flows",
        "Verify user data consistency",
    ),
    "product-service": (
        "Check inventory updates are reflected in the catalog",
        "Verify product search performance",
    ),
    "order-service": (
        "Verify order state transitions",
        "Test payment processing integration",
    ),
    "notification-service": (
        "Verify delivery retries for failed notifications",
    ),
    "gateway-service": (
        "Verify routing and rate limiting rules",
        "Check upstream timeout handling",
    ),
})

TEST_TYPE_SUGGESTIONS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "CHAOS_TEST": (
        "Start with low chaos levels",
        "Monitor system recovery time",
    ),
    "PERFORMANCE_TEST": (
        "Establish baseline metrics first",
        "Monitor resource utilization",
    ),
    "LOAD_TEST": (
        "Ramp load up gradually",
    ),
    "STRESS_TEST": (
        "Define a breaking point before starting",
    ),
    "INTEGRATION_TEST": (
        "Verify service dependencies are healthy first",
    ),
})

HIGH_RISK_SUGGESTIONS = (
    "Consider running in staging environment first",
    "Ensure rollback procedures are ready",
)

FULL_SCOPE_SUGGESTIONS = (
    "Consider running tests in parallel",
    "Monitor overall system performance",
)

FALLBACK_SUGGESTION = "Unable to process context - proceeding with basic execution"


def _fallback(failure, self, intent, entities):
    return ContextualIntent(
        intent=intent,
        entities=entities,
        affected_services=[],
        parameters=dict(intent.parameters),
        suggestions=[FALLBACK_SUGGESTION],
        confidence=0.0,
        failure=failure,
    )


class ContextEnricher:
    """Derives execution context, default parameters and advice for an intent."""

    @fail_closed("context_enrichment", MappingFailure, _fallback)
    def enrich(self, intent: ClassifiedIntent, entities: ExtractedEntities) -> ContextualIntent:
        services = self._explicit_services(intent, entities)
        test_types = set(entities.test_types)

        context = ExecutionContext(
            scope=self.determine_scope(entities, services),
            strategy=self.determine_strategy(intent.intent_type, entities, test_types),
            risk_level=self.determine_risk(services, test_types),
            timing=self.determine_timing(entities),
            resource_requirements=self.determine_resources(services, test_types),
        )

        derived = self.derive_parameters(context)
        parameters = dict(intent.parameters)
        parameters.update(derived)

        contextual = ContextualIntent(
            intent=intent,
            entities=entities,
            execution_context=context,
            affected_services=self.affected_services(services),
            parameters=parameters,
            derived_parameters=derived,
            suggestions=self.suggestions(services, test_types, context),
            confidence=0.0 if intent.is_unknown else self.calculate_confidence(intent.confidence, context),
        )

        logger.debug("Enriched %s: %s", intent.intent_type.value, context.to_dict())
        return contextual

    def _explicit_services(self, intent: ClassifiedIntent, entities: ExtractedEntities) -> List[str]:
        services = list(entities.services)
        service_name = intent.parameters.get("serviceName")
        if service_name and service_name not in services:
            services.append(service_name)
        return services

    def determine_scope(self, entities: ExtractedEntities, services: List[str]) -> Scope:
        if entities.contains(EntityCategory.CONTEXT, "scope"):
            return Scope.FULL
        if len(services) > 2 or ALL_SERVICES in services:
            return Scope.FULL
        return Scope.TARGETED

    def determine_strategy(self, intent_type: IntentType, entities: ExtractedEntities, test_types) -> Strategy:
        if entities.contains(EntityCategory.CONTEXT, "urgency"):
            return Strategy.AGGRESSIVE
        if test_types & DISRUPTIVE_TEST_TYPES:
            return Strategy.AGGRESSIVE
        return DEFAULT_STRATEGY.get(intent_type, Strategy.BALANCED)

    def determine_risk(self, services: List[str], test_types) -> RiskLevel:
        if test_types & DISRUPTIVE_TEST_TYPES:
            return RiskLevel.HIGH
        if len(services) > 3 or ALL_SERVICES in services:
            return RiskLevel.HIGH
        if test_types & LOAD_TEST_TYPES:
            return RiskLevel.MEDIUM
        if len(services) > 1:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def determine_timing(self, entities: ExtractedEntities) -> Timing:
        if entities.contains(EntityCategory.CONTEXT, "urgency"):
            return Timing.IMMEDIATE
        if entities.contains(EntityCategory.CONTEXT, "timing"):
            return Timing.BACKGROUND
        return Timing.NORMAL

    def determine_resources(self, services: List[str], test_types) -> Dict[str, str]:
        heavy = bool(test_types & LOAD_TEST_TYPES)
        return {
            "cpu": "high" if heavy else "medium",
            "memory": "high" if heavy else "medium",
            "network": "high" if len(services) > 1 else "medium",
            "storage": "high" if test_types & {"PERFORMANCE_TEST", "CHAOS_TEST"} else "low",
        }

    def derive_parameters(self, context: ExecutionContext) -> Dict[str, Any]:
        derived: Dict[str, Any] = {}
        derived.update(SCOPE_PARAMETERS[context.scope])
        derived.update(STRATEGY_PARAMETERS[context.strategy])
        derived.update(RISK_PARAMETERS[context.risk_level])
        derived.update(TIMING_PARAMETERS[context.timing])
        return derived

    def affected_services(self, services: List[str]) -> List[str]:
        """Explicit services, then what they call, then what calls them."""
        affected: List[str] = []

        def add(name):
            if name not in affected:
                affected.append(name)

        for service in services:
            add(service)
        for service in services:
            for dependency in SERVICE_DEPENDENCIES.get(service, ()):
                add(dependency)
        for service in services:
            for dependent, dependencies in SERVICE_DEPENDENCIES.items():
                if service in dependencies:
                    add(dependent)
        return affected

    def suggestions(self, services: List[str], test_types, context: ExecutionContext) -> List[str]:
        collected: List[str] = []
        for service in services:
            collected.extend(SERVICE_SUGGESTIONS.get(service, ()))
        for test_type in sorted(test_types):
            collected.extend(TEST_TYPE_SUGGESTIONS.get(test_type, ()))
        if context.risk_level is RiskLevel.HIGH:
            collected.extend(HIGH_RISK_SUGGESTIONS)
        if context.scope is Scope.FULL:
            collected.extend(FULL_SCOPE_SUGGESTIONS)
        return list(dict.fromkeys(collected))

    def calculate_confidence(self, base: float, context: ExecutionContext) -> float:
        confidence = base
        if context.scope is not None:
            confidence += 0.1
        if context.strategy is not None:
            confidence += 0.1
        if context.risk_level is RiskLevel.LOW:
            confidence += 0.1
        elif context.risk_level is RiskLevel.HIGH and context.strategy is not Strategy.CONSERVATIVE:
            confidence -= 0.1
        return max(0.0, min(1.0, confidence))
