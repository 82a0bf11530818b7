"""
Tests for weighted-pattern intent classification.

The aggregate score divides by the number of patterns an intent declares;
the exact numbers below pin that behaviour.
"""

import pytest
from unittest.mock import patch

from jarvis_nlp.nlp.entity_extractor import EntityExtractor
from jarvis_nlp.nlp.intent_classifier import (
    INTENT_PATTERNS,
    IntentClassifier,
    IntentPattern,
    build_intent_parameters,
)
from jarvis_nlp.nlp.normalizer import Normalizer
from jarvis_nlp.nlp.types import Entity, EntityCategory, ExtractedEntities, IntentType
from jarvis_nlp.utils.error_handling import ClassificationFailure, ConfigurationError

pytestmark = pytest.mark.unit


def classify(text, classifier=None):
    processed = Normalizer().normalize(text)
    entities = EntityExtractor().extract(processed)
    return (classifier or IntentClassifier()).classify(processed, entities), entities


class TestIntentScores:
    """Aggregate scores, including the pattern-count divisor."""

    def test_chaos_run_scores_two_of_seven(self):
        intent, _ = classify("run chaos test on orders")

        assert intent.intent_type is IntentType.RUN_TESTS
        assert intent.score == pytest.approx(2 / 7)
        assert set(intent.scores) == {IntentType.RUN_TESTS}

    def test_single_matching_pattern_is_diluted(self):
        intent, _ = classify("run tests")

        assert intent.intent_type is IntentType.RUN_TESTS
        assert intent.score == pytest.approx(1 / 7)

    def test_analyze_failures_scores_half(self):
        intent, _ = classify("analyze why user-service failed")

        assert intent.intent_type is IntentType.ANALYZE_FAILURES
        assert intent.score == pytest.approx(0.5)

    def test_health_check(self):
        intent, _ = classify("health check the gateway")

        assert intent.intent_type is IntentType.HEALTH_CHECK
        assert intent.score == pytest.approx(0.25)

    def test_generate_tests(self):
        intent, _ = classify("generate unit tests for products")

        assert intent.intent_type is IntentType.GENERATE_TESTS

    def test_optimize_tests(self):
        intent, _ = classify("optimize the regression tests")

        assert intent.intent_type is IntentType.OPTIMIZE_TESTS

    def test_tie_goes_to_first_declared_intent(self):
        patterns = {
            IntentType.GENERATE_TESTS: (IntentPattern("foo", 1.0),),
            IntentType.RUN_TESTS: (IntentPattern("foo", 1.0),),
        }
        intent, _ = classify("foo", IntentClassifier(patterns=patterns))

        assert intent.intent_type is IntentType.GENERATE_TESTS
        assert intent.scores == {IntentType.GENERATE_TESTS: 1.0, IntentType.RUN_TESTS: 1.0}


class TestUnknownIntent:
    """Inputs no pattern recognises."""

    @pytest.mark.parametrize("text", ["", "hello there", None])
    def test_unknown(self, text):
        intent, _ = classify(text)

        assert intent.intent_type is IntentType.UNKNOWN
        assert intent.confidence == 0.0
        assert intent.scores == {}
        assert isinstance(intent.failure, ClassificationFailure)

    def test_internal_error_fails_closed(self):
        with patch.object(IntentClassifier, "score_intents", side_effect=RuntimeError("bad regex")):
            intent, _ = classify("run chaos test on orders")

        assert intent.is_unknown
        assert isinstance(intent.failure, ClassificationFailure)


class TestPatternScoring:
    """IntentPattern condition bonuses."""

    def setup_method(self):
        self.entities = ExtractedEntities([
            Entity(EntityCategory.ACTION, "run", "run", 1.0),
            Entity(EntityCategory.TEST_TYPE, "CHAOS_TEST", "chaos", 1.0),
        ])

    def test_specific_value_bonus(self):
        assert IntentPattern("run", 0.5, ("action:run",)).score(self.entities) == pytest.approx(0.7)

    def test_any_value_bonus(self):
        assert IntentPattern("run", 0.5, ("testType:any",)).score(self.entities) == pytest.approx(0.6)

    def test_unsatisfied_conditions_add_nothing(self):
        pattern = IntentPattern("run", 0.5, ("service:any", "context:failure"))

        assert pattern.score(self.entities) == 0.5

    def test_score_is_capped(self):
        pattern = IntentPattern("run", 0.95, ("action:run", "testType:CHAOS_TEST"))

        assert pattern.score(self.entities) == 1.0

    def test_optimize_patterns_reward_any_test_type(self):
        enhance, faster = INTENT_PATTERNS[IntentType.OPTIMIZE_TESTS][2:]

        assert enhance.conditions == ("action:optimize", "testType:any")
        assert enhance.score(self.entities) == pytest.approx(0.9 + 0.1)
        assert faster.conditions == ("action:optimize", "context:performance")
        assert faster.score(self.entities) == pytest.approx(0.8)

    def test_invalid_condition(self):
        with pytest.raises(ConfigurationError):
            IntentPattern("run", 1.0, ("bogus",))


class TestConfidence:
    """Multi-factor confidence."""

    def test_run_tests_confidence(self):
        # base 1/7, two entities (+0.1), both exact (+0.1), action verb (+0.1)
        intent, _ = classify("run tests")

        assert intent.confidence == pytest.approx(1 / 7 + 0.3)
        assert intent.parameters["intentConfidence"] == intent.confidence

    def test_entity_bonus_is_capped(self):
        intent, entities = classify("run chaos test on orders")

        assert entities.total_count == 4
        assert intent.confidence == pytest.approx(2 / 7 + 0.2 + 0.2 + 0.1)

    def test_clamped_to_one(self):
        entities = ExtractedEntities([
            Entity(EntityCategory.SERVICE, f"s{i}", f"s{i}", 1.0) for i in range(10)
        ])

        assert IntentClassifier().calculate_confidence(IntentType.RUN_TESTS, 0.9, entities, "run") == 1.0

    def test_unknown_is_zero(self):
        confidence = IntentClassifier().calculate_confidence(
            IntentType.UNKNOWN, 0.9, ExtractedEntities.empty(), "run"
        )

        assert confidence == 0.0


class TestIntentParameters:
    """Structured parameters and description."""

    def test_parameters_from_entities(self):
        intent, _ = classify("run chaos test on orders with 2 retries")

        assert intent.parameters["services"] == ["order-service"]
        assert intent.parameters["serviceName"] == "order-service"
        assert intent.parameters["testTypes"] == ["CHAOS_TEST"]
        assert intent.parameters["actions"] == ["run", "check"]
        assert intent.parameters["explicitParameters"] == {"retries": "2 retries"}

    def test_description(self):
        intent, _ = classify("run chaos test on orders")

        assert intent.description == "run chaos test for order-service"

    def test_empty_entities_give_empty_parameters(self):
        assert build_intent_parameters(ExtractedEntities.empty()) == {}


class TestPatternTable:
    """Static pattern table."""

    def test_pattern_counts(self):
        counts = {intent: len(patterns) for intent, patterns in INTENT_PATTERNS.items()}

        assert counts == {
            IntentType.RUN_TESTS: 7,
            IntentType.ANALYZE_FAILURES: 4,
            IntentType.GENERATE_TESTS: 4,
            IntentType.OPTIMIZE_TESTS: 4,
            IntentType.HEALTH_CHECK: 4,
        }
        assert IntentClassifier().pattern_count() == 23

    def test_table_is_immutable(self):
        with pytest.raises(TypeError):
            INTENT_PATTERNS[IntentType.RUN_TESTS] = ()

    def test_max_patterns_is_enforced(self):
        with pytest.raises(ConfigurationError):
            IntentClassifier(max_patterns=5)

    def test_list_patterns(self):
        assert IntentClassifier().list_patterns(IntentType.HEALTH_CHECK)[0] == "health.*check"
