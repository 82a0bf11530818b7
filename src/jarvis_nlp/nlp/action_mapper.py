"""
Template-based mapping from an enriched intent to an executable action.
"""

import re
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .lexicon import canonical_service, canonical_test_type
from .types import (
    ALL_SERVICES,
    ActionTemplate,
    ActionType,
    ContextualIntent,
    EntityCategory,
    ExecutableAction,
    IntentType,
)
from ..utils.error_handling import MappingFailure, fail_closed
from ..utils.logging import get_logger

logger = get_logger(__name__)

S = EntityCategory.SERVICE
T = EntityCategory.TEST_TYPE


def _template(action_type, required, preferred_test_types, mapping, defaults, minutes):
    return ActionTemplate(
        action_type=action_type,
        required_entities=tuple(required),
        preferred_test_types=tuple(preferred_test_types),
        parameter_mapping=MappingProxyType(dict(mapping)),
        default_parameters=MappingProxyType(dict(defaults)),
        estimated_minutes=minutes,
    )


ACTION_TEMPLATES: Mapping[IntentType, Tuple[ActionTemplate, ...]] = MappingProxyType({
    IntentType.RUN_TESTS: (
        _template(ActionType.RUN_TEST, [S, T], ["UNIT_TEST", "INTEGRATION_TEST", "API_TEST"],
                  {"testTypes": "testTypes", "services": "services"},
                  {"timeout": "120s", "retries": 2, "parallel": False}, 10),
        _template(ActionType.RUN_CHAOS_TEST, [S], ["CHAOS_TEST"],
                  {"services": "services"},
                  {"timeout": "300s", "retries": 1, "chaosLevel": "medium"}, 15),
        _template(ActionType.RUN_PERFORMANCE_TEST, [S], ["PERFORMANCE_TEST", "LOAD_TEST", "STRESS_TEST"],
                  {"services": "services"},
                  {"timeout": "600s", "retries": 1, "loadLevel": "medium"}, 30),
    ),
    IntentType.ANALYZE_FAILURES: (
        _template(ActionType.ANALYZE_FAILURES, [S], [],
                  {"services": "services"},
                  {"timeout": "60s", "retries": 1, "analysisDepth": "detailed"}, 5),
    ),
    IntentType.GENERATE_TESTS: (
        _template(ActionType.GENERATE_TESTS, [S], ["UNIT_TEST", "INTEGRATION_TEST"],
                  {"services": "services", "testTypes": "testTypes"},
                  {"timeout": "300s", "retries": 1, "generationType": "comprehensive"}, 20),
    ),
    IntentType.OPTIMIZE_TESTS: (
        _template(ActionType.OPTIMIZE_TESTS, [S], [],
                  {"services": "services"},
                  {"timeout": "180s", "retries": 1, "optimizationLevel": "aggressive"}, 15),
    ),
    IntentType.HEALTH_CHECK: (
        _template(ActionType.HEALTH_CHECK, [S], ["HEALTH_CHECK"],
                  {"services": "services"},
                  {"timeout": "30s", "retries": 3, "checkType": "comprehensive"}, 2),
    ),
})

FALLBACK_TEST_TYPES: Mapping[IntentType, str] = MappingProxyType({
    IntentType.RUN_TESTS: "INTEGRATION_TEST",
    IntentType.ANALYZE_FAILURES: "DIAGNOSTIC_TEST",
    IntentType.GENERATE_TESTS: "UNIT_TEST",
    IntentType.OPTIMIZE_TESTS: "PERFORMANCE_TEST",
    IntentType.HEALTH_CHECK: "HEALTH_CHECK",
})

# test type -> (minimum minutes, maximum minutes)
DURATION_BOUNDS: Mapping[str, Tuple[Optional[int], Optional[int]]] = MappingProxyType({
    "UNIT_TEST": (None, 5),
    "INTEGRATION_TEST": (10, None),
    "PERFORMANCE_TEST": (30, None),
    "CHAOS_TEST": (15, None),
    "END_TO_END_TEST": (20, None),
})
ALL_SERVICES_DURATION_FACTOR = 3

PRIORITY_OVERRIDES: Mapping[str, Mapping[str, Any]] = MappingProxyType({
    "HIGH": MappingProxyType({"timeout": "60s", "retries": 5, "parallel": True}),
    "LOW": MappingProxyType({"timeout": "300s", "retries": 1, "parallel": False}),
})
URGENCY_OVERRIDES: Mapping[str, Any] = MappingProxyType({"timeout": "30s", "retries": 3})

_DURATION_TEXT = re.compile(r"(\d+)\s*([a-z]+)")
_COUNT_TEXT = re.compile(r"\d+")


def timeout_to_seconds(text: str) -> Optional[str]:
    """``"5 minutes"`` -> ``"300s"``; ``None`` when the text has no duration."""
    match = _DURATION_TEXT.search(text.lower())
    if not match:
        return None
    amount, unit = int(match.group(1)), match.group(2)
    if unit.startswith("h"):
        amount *= 3600
    elif unit.startswith("m"):
        amount *= 60
    return f"{amount}s"


def _fallback(failure, self, contextual):
    return ExecutableAction.error(failure.details.get("original_error", failure.message))


class ActionMapper:
    """Turns a contextual intent into an ExecutableAction."""

    def __init__(self, templates: Optional[Mapping[IntentType, Tuple[ActionTemplate, ...]]] = None):
        self.templates = templates if templates is not None else ACTION_TEMPLATES

    @fail_closed("action_mapping", MappingFailure, _fallback)
    def map(self, contextual: ContextualIntent) -> ExecutableAction:
        intent_type = contextual.intent_type
        templates = self.templates.get(intent_type, ())
        if intent_type is IntentType.UNKNOWN or not templates:
            logger.debug("No template for intent %s", intent_type.value)
            return ExecutableAction.unknown()

        template = self.select_template(templates, contextual)
        test_type = self.resolve_test_type(contextual)
        service_name = self.resolve_service(contextual)
        priority = self.resolve_priority(contextual)

        action = ExecutableAction(
            action_type=template.action_type,
            test_type=test_type,
            service_name=service_name,
            parameters=self.resolve_parameters(template, contextual, priority),
            confidence=contextual.confidence,
            description=self.describe(template, contextual, test_type, service_name),
            estimated_duration=f"{self.estimate_minutes(template, test_type, service_name)} minutes",
            priority=priority,
        )

        logger.debug("Mapped %s -> %s", intent_type.value, action.to_dict())
        return action

    def score_template(self, template: ActionTemplate, contextual: ContextualIntent) -> float:
        entities = contextual.entities
        score = 0.5
        score += 0.2 * sum(1 for category in template.required_entities if entities.has_any(category))
        score += 0.3 * sum(1 for t in template.preferred_test_types if entities.contains(T, t))
        score += 0.2 * sum(1 for s in template.preferred_services if entities.contains(S, s))
        return min(score, 1.0)

    def select_template(self, templates: Tuple[ActionTemplate, ...], contextual: ContextualIntent) -> ActionTemplate:
        best = templates[0]
        best_score = self.score_template(best, contextual)
        for template in templates[1:]:
            score = self.score_template(template, contextual)
            if score > best_score:
                best, best_score = template, score
        return best

    def resolve_test_type(self, contextual: ContextualIntent) -> str:
        test_types = contextual.entities.test_types
        if test_types:
            return canonical_test_type(test_types[0])
        return FALLBACK_TEST_TYPES.get(contextual.intent_type, "UNKNOWN")

    def resolve_service(self, contextual: ContextualIntent) -> str:
        services = contextual.entities.services
        if services:
            return services[0]
        service_name = contextual.parameters.get("serviceName")
        if isinstance(service_name, str) and service_name:
            return canonical_service(service_name)
        return ALL_SERVICES

    def resolve_priority(self, contextual: ContextualIntent) -> str:
        explicit = contextual.entities.parameters().get("priority")
        if explicit:
            return explicit
        derived = contextual.derived_parameters.get("priority")
        if derived:
            return derived
        if contextual.entities.contains(EntityCategory.CONTEXT, "priority"):
            return "MEDIUM"
        return "NORMAL"

    def resolve_parameters(self, template: ActionTemplate, contextual: ContextualIntent, priority: str) -> Dict[str, Any]:
        """
        Build action parameters, lowest precedence first: enrichment defaults,
        template field mapping, template defaults, urgency overrides, priority
        overrides and finally values the user spelled out.
        """
        parameters: Dict[str, Any] = dict(contextual.derived_parameters)

        for target, source in template.parameter_mapping.items():
            if source in contextual.parameters:
                value = contextual.parameters[source]
                parameters[target] = list(value) if isinstance(value, list) else value

        parameters.update(template.default_parameters)
        if contextual.entities.contains(EntityCategory.CONTEXT, "urgency"):
            parameters.update(URGENCY_OVERRIDES)
        parameters.update(PRIORITY_OVERRIDES.get(priority, {}))

        explicit = contextual.entities.parameters()
        if "timeout" in explicit:
            seconds = timeout_to_seconds(explicit["timeout"])
            if seconds:
                parameters["timeout"] = seconds
        if "retries" in explicit:
            count = _COUNT_TEXT.search(explicit["retries"])
            if count:
                parameters["retries"] = int(count.group(0))

        parameters["priority"] = priority
        parameters["scope"] = contextual.execution_context.scope.value
        return parameters

    def estimate_minutes(self, template: ActionTemplate, test_type: str, service_name: str) -> int:
        minutes = template.estimated_minutes
        lower, upper = DURATION_BOUNDS.get(test_type, (None, None))
        if lower is not None:
            minutes = max(minutes, lower)
        if upper is not None:
            minutes = min(minutes, upper)
        if service_name == ALL_SERVICES:
            minutes *= ALL_SERVICES_DURATION_FACTOR
        return minutes

    def describe(self, template: ActionTemplate, contextual: ContextualIntent, test_type: str, service_name: str) -> str:
        actions = contextual.entities.actions
        parts = [actions[0] if actions else template.action_type.value.lower().replace("_", " ")]
        if test_type != "UNKNOWN":
            parts.append(test_type.lower().replace("_", " "))
        if service_name == ALL_SERVICES:
            parts.append("across all services")
        else:
            parts.append(f"for {service_name}")
        return " ".join(parts)
