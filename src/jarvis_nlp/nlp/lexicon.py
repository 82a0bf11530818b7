"""
Static vocabularies used by the entity extractor.

Each lexicon maps a canonical value to its synonyms, in the order they are
tried. All tables are read-only views built once at import time.
"""

from types import MappingProxyType
from typing import Mapping, Tuple


def _freeze(table) -> Mapping[str, Tuple[str, ...]]:
    return MappingProxyType({key: tuple(values) for key, values in table.items()})


SERVICE_SYNONYMS = _freeze({
    "user-service": [
        "user-service", "user service", "userservice", "user", "users",
        "user management", "user mgmt",
    ],
    "product-service": [
        "product-service", "product service", "productservice", "product", "products",
        "catalog", "inventory",
    ],
    "order-service": [
        "order-service", "order service", "orderservice", "order", "orders",
        "order management", "order mgmt",
    ],
    "notification-service": [
        "notification-service", "notification service", "notificationservice",
        "notification", "notifications", "notify", "alert",
    ],
    "gateway-service": [
        "gateway-service", "gateway service", "gatewayservice", "gateway",
        "api gateway", "api", "proxy",
    ],
})

TEST_TYPE_SYNONYMS = _freeze({
    "UNIT_TEST": ["unit test", "unittest", "unit", "component test", "component"],
    "INTEGRATION_TEST": ["integration test", "integrationtest", "integration", "integrated test"],
    "API_TEST": ["api test", "apitest", "api", "rest test", "resttest", "endpoint test"],
    "PERFORMANCE_TEST": ["performance test", "performancetest", "performance", "perf test", "perftest"],
    "SECURITY_TEST": ["security test", "securitytest", "security", "sec test", "sectest"],
    "CONTRACT_TEST": ["contract test", "contracttest", "contract", "pact test", "pacttest"],
    "CHAOS_TEST": ["chaos test", "chaostest", "chaos", "chaos engineering", "fault injection"],
    "SMOKE_TEST": ["smoke test", "smoketest", "smoke", "sanity test", "sanitytest"],
    "REGRESSION_TEST": ["regression test", "regressiontest", "regression", "regression suite"],
    "END_TO_END_TEST": ["end to end test", "e2e test", "e2etest", "end-to-end", "e2e", "full test"],
    "LOAD_TEST": ["load test", "loadtest", "load", "volume test", "volumetest"],
    "STRESS_TEST": ["stress test", "stresstest", "stress", "breaking test", "breakingtest"],
    "PENETRATION_TEST": ["penetration test", "penetrationtest", "pen test", "pentest", "penetration"],
})

ACTION_SYNONYMS = _freeze({
    "run": ["run", "execute", "start", "launch", "trigger", "begin", "initiate"],
    "analyze": ["analyze", "analyse", "investigate", "examine", "review", "assess", "evaluate"],
    "generate": ["generate", "create", "make", "build", "produce", "develop"],
    "optimize": ["optimize", "optimise", "improve", "enhance", "refine", "tune"],
    "check": ["check", "verify", "validate", "test", "monitor", "inspect"],
    "stop": ["stop", "halt", "terminate", "cancel", "abort", "end"],
    "status": ["status", "state", "health", "condition", "situation"],
})

CONTEXT_KEYWORDS = _freeze({
    "urgency": ["urgent", "immediately", "now", "asap", "critical", "emergency"],
    "scope": ["all", "everything", "full", "complete", "entire", "whole"],
    "priority": ["high", "low", "medium", "normal", "important", "trivial"],
    "timing": ["later", "background", "scheduled", "delayed", "postponed"],
})

# Annotation tokens such as "@chaostest" name a test type directly.
ANNOTATION_TEST_TYPES: Mapping[str, str] = MappingProxyType({
    "@test": "UNIT_TEST",
    "@unittest": "UNIT_TEST",
    "@integrationtest": "INTEGRATION_TEST",
    "@apitest": "API_TEST",
    "@performancetest": "PERFORMANCE_TEST",
    "@securitytest": "SECURITY_TEST",
    "@contracttest": "CONTRACT_TEST",
    "@chaostest": "CHAOS_TEST",
    "@smoketest": "SMOKE_TEST",
    "@regressiontest": "REGRESSION_TEST",
    "@e2etest": "END_TO_END_TEST",
    "@loadtest": "LOAD_TEST",
    "@stresstest": "STRESS_TEST",
    "@penetrationtest": "PENETRATION_TEST",
})

# Aliases accepted when a service or test type arrives as a parameter value
# rather than through the lexicons above.
SERVICE_ALIASES: Mapping[str, str] = MappingProxyType({
    "user": "user-service",
    "users": "user-service",
    "product": "product-service",
    "products": "product-service",
    "order": "order-service",
    "orders": "order-service",
    "notification": "notification-service",
    "notifications": "notification-service",
    "gateway": "gateway-service",
    "api": "gateway-service",
})

TEST_TYPE_ALIASES: Mapping[str, str] = MappingProxyType({
    "unit": "UNIT_TEST",
    "integration": "INTEGRATION_TEST",
    "api": "API_TEST",
    "performance": "PERFORMANCE_TEST",
    "perf": "PERFORMANCE_TEST",
    "security": "SECURITY_TEST",
    "contract": "CONTRACT_TEST",
    "chaos": "CHAOS_TEST",
    "smoke": "SMOKE_TEST",
    "regression": "REGRESSION_TEST",
    "e2e": "END_TO_END_TEST",
    "load": "LOAD_TEST",
    "stress": "STRESS_TEST",
    "penetration": "PENETRATION_TEST",
})


def canonical_service(name: str) -> str:
    """Map a service name or alias onto its canonical form."""
    key = name.strip().lower()
    if key in SERVICE_SYNONYMS:
        return key
    return SERVICE_ALIASES.get(key, key)


def canonical_test_type(name: str) -> str:
    """Map a test type name or alias onto its canonical constant."""
    key = name.strip()
    if key.upper() in TEST_TYPE_SYNONYMS:
        return key.upper()
    lowered = key.lower().replace("_", " ")
    if lowered.endswith(" test"):
        lowered = lowered[:-len(" test")]
    return TEST_TYPE_ALIASES.get(lowered, key.upper())
