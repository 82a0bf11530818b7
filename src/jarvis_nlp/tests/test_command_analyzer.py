"""
End-to-end tests for the command analyzer.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest
from unittest.mock import AsyncMock, Mock, patch

from jarvis_nlp.nlp import CommandAnalyzer, PipelineFactory
from jarvis_nlp.nlp.types import ActionType, IntentType
from jarvis_nlp.utils.error_handling import (
    ClassificationFailure,
    EnrichmentFailure,
    MappingFailure,
    ValidationError,
)

pytestmark = pytest.mark.integration


class TestScenarios:
    """Representative commands through all five stages."""

    def test_chaos_run(self, analyzer):
        analysis = analyzer.analyze("run chaos test on orders")
        action = analysis.action

        assert analysis.intent.intent_type is IntentType.RUN_TESTS
        assert action.action_type is ActionType.RUN_CHAOS_TEST
        assert action.test_type == "CHAOS_TEST"
        assert action.service_name == "order-service"
        assert action.parameters["rollbackEnabled"] is True
        assert action.confidence == pytest.approx(2 / 7 + 0.6)
        assert analysis.confident
        assert analysis.failures == []

    def test_empty_input(self, analyzer):
        analysis = analyzer.analyze("")

        assert analysis.action.action_type is ActionType.UNKNOWN
        assert analysis.action.confidence == 0.0
        assert not analysis.confident
        assert len(analysis.failures) == 1
        assert isinstance(analysis.failures[0], ClassificationFailure)

    def test_failure_analysis(self, analyzer):
        action = analyzer.interpret("analyze why user-service failed")

        assert action.action_type is ActionType.ANALYZE_FAILURES
        assert action.service_name == "user-service"
        assert action.test_type == "DIAGNOSTIC_TEST"

    def test_misspelled_service(self, analyzer):
        analysis = analyzer.analyze("ordr servic chaos")

        assert analysis.entities.services == ["order-service"]
        assert analysis.intent.intent_type is IntentType.UNKNOWN
        assert analysis.action.action_type is ActionType.UNKNOWN

    def test_full_scope_performance(self, analyzer):
        action = analyzer.interpret("run full performance test on user and order services")

        assert action.action_type is ActionType.RUN_PERFORMANCE_TEST
        assert action.parameters["scope"] == "FULL"

    def test_low_confidence_is_flagged(self):
        analyzer = CommandAnalyzer(confidence_threshold=0.95)
        analysis = analyzer.analyze("run tests")

        assert analysis.action.is_executable
        assert analysis.action.confidence == pytest.approx(1 / 7 + 0.6)
        assert not analysis.confident

    def test_to_dict(self, analyzer):
        data = analyzer.analyze("Run CHAOS test on Orders").to_dict()

        assert data["input"] == "Run CHAOS test on Orders"
        assert data["normalized"] == "run chaos test on orders"
        assert data["intent"]["intentType"] == "RUN_TESTS"
        assert data["context"]["executionContext"]["riskLevel"] == "HIGH"
        assert data["action"]["actionType"] == "RUN_CHAOS_TEST"
        assert data["failures"] == []


class TestRobustness:
    """The analyzer never raises and is safe to share."""

    @pytest.mark.parametrize("text", [None, "", "   ", "!!!", "@@@ ###", "x" * 5000, "p1 p2 p3"])
    def test_never_raises(self, analyzer, text):
        action = analyzer.interpret(text)

        assert action is not None
        assert 0.0 <= action.confidence <= 1.0
        assert action.action_type in (ActionType.UNKNOWN, ActionType.ERROR) or action.is_executable

    def test_glue_failure_gives_error_analysis(self, analyzer):
        with patch.object(analyzer.normalizer, "normalize", side_effect=RuntimeError("exploded")):
            analysis = analyzer.analyze("run chaos test on orders")

        assert analysis.action.action_type is ActionType.ERROR
        assert analysis.action.parameters == {"error": "exploded"}
        assert len(analysis.failures) == 1
        assert isinstance(analysis.failures[0], MappingFailure)
        assert analysis.raw_input == "run chaos test on orders"

    def test_mapping_error_is_reported(self, analyzer):
        with patch.object(analyzer.action_mapper, "resolve_parameters", side_effect=RuntimeError("bad")):
            analysis = analyzer.analyze("run chaos test on orders")

        assert analysis.action.action_type is ActionType.ERROR
        assert any(isinstance(f, MappingFailure) for f in analysis.failures)

    def test_is_deterministic(self, analyzer):
        first = analyzer.interpret("urgent run smoke test on users")
        second = analyzer.interpret("urgent run smoke test on users")

        assert first == second
        assert first.to_json() == second.to_json()

    def test_concurrent_calls_match_sequential_results(self, analyzer):
        commands = [
            "run chaos test on orders",
            "analyze why user-service failed",
            "run full performance test on user and order services",
            "health check the gateway",
            "hello there",
        ] * 20
        expected = [analyzer.interpret(c).to_dict() for c in commands]

        with ThreadPoolExecutor(max_workers=8) as pool:
            actual = list(pool.map(lambda c: analyzer.interpret(c).to_dict(), commands))

        assert actual == expected

    def test_stats(self, analyzer):
        stats = analyzer.get_analysis_stats()

        assert stats["pattern_count"] == 23
        assert stats["confidence_threshold"] == 0.7
        assert "RUN_TESTS" in stats["intents_with_templates"]


class TestInsights:
    """Optional LLM commentary never changes the action."""

    @pytest.mark.asyncio
    async def test_without_service(self, analyzer):
        result = await analyzer.interpret_with_insights("run chaos test on orders")

        assert result.insight is None
        assert result.error is None
        assert result.action.action_type is ActionType.RUN_CHAOS_TEST

    @pytest.mark.asyncio
    async def test_insight_is_attached(self, analyzer):
        service = Mock()
        service.generate_insight = AsyncMock(return_value="Watch the payment flow.")

        result = await analyzer.interpret_with_insights("run chaos test on orders", service, timeout=1.0)

        assert result.insight == "Watch the payment flow."
        assert result.action == analyzer.interpret("run chaos test on orders")
        service.generate_insight.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_timeout_keeps_action(self, analyzer):
        async def slow(command, action):
            await asyncio.sleep(1)
            return "too late"

        service = Mock()
        service.generate_insight = slow

        result = await analyzer.interpret_with_insights("run chaos test on orders", service, timeout=0.01)

        assert result.insight is None
        assert result.error == "Insight timed out after 0.01s"
        assert result.action.action_type is ActionType.RUN_CHAOS_TEST

    @pytest.mark.asyncio
    async def test_service_timeout_applies_by_default(self, analyzer):
        async def slow(command, action):
            await asyncio.sleep(5)
            return "too late"

        service = Mock()
        service.config.timeout_seconds = 0.01
        service.generate_insight = slow

        result = await asyncio.wait_for(analyzer.interpret_with_insights("run chaos test on orders", service), 1.0)

        assert result.insight is None
        assert result.error == "Insight timed out after 0.01s"

    @pytest.mark.asyncio
    async def test_module_timeout_without_service_config(self, analyzer):
        async def slow(command, action):
            await asyncio.sleep(5)
            return "too late"

        service = Mock(spec=["generate_insight"])
        service.generate_insight = slow

        with patch("jarvis_nlp.nlp.command_analyzer.DEFAULT_INSIGHT_TIMEOUT", 0.02):
            result = await asyncio.wait_for(
                analyzer.interpret_with_insights("run chaos test on orders", service), 1.0
            )

        assert result.error == "Insight timed out after 0.02s"
        assert result.action.action_type is ActionType.RUN_CHAOS_TEST

    @pytest.mark.asyncio
    async def test_enrichment_failure_message(self, analyzer):
        service = Mock()
        service.generate_insight = AsyncMock(side_effect=EnrichmentFailure("generate_insight failed: Connection error"))

        result = await analyzer.interpret_with_insights("run chaos test on orders", service)

        assert result.error == "generate_insight failed: Connection error"
        assert result.to_dict()["insightError"] == result.error

    @pytest.mark.asyncio
    async def test_unexpected_error_message(self, analyzer):
        service = Mock()
        service.generate_insight = AsyncMock(side_effect=RuntimeError("kaput"))

        result = await analyzer.interpret_with_insights("run chaos test on orders", service)

        assert result.error == "Insight failed: kaput"
        assert result.action.is_executable


class TestPipelineFactory:
    """Building analyzers from configuration."""

    def test_default_config_builds_pipeline(self):
        factory = PipelineFactory()
        config = factory.get_default_config()

        analyzer = factory.create_pipeline(config)

        assert isinstance(analyzer, CommandAnalyzer)
        assert factory.get_pipeline(config["name"]) is analyzer

    def test_settings_reach_the_stages(self):
        analyzer = PipelineFactory().create_pipeline({
            "name": "strict",
            "settings": {"fuzzy_threshold": 0.9, "confidence_threshold": 0.95},
        })

        assert analyzer.entity_extractor.fuzzy_threshold == 0.9
        assert analyzer.confidence_threshold == 0.95
        assert analyzer.interpret("ordr servic chaos").action_type is ActionType.UNKNOWN

    def test_command_analyzer_from_app_config(self):
        factory = PipelineFactory()

        analyzer = factory.create_command_analyzer()

        assert factory.get_pipeline("command_analyzer") is analyzer

    @pytest.mark.parametrize("config", [
        None,
        {},
        {"name": 3},
        {"name": "x", "settings": []},
        {"name": "x", "settings": {"bogus": 1}},
    ])
    def test_invalid_config(self, config):
        factory = PipelineFactory()

        assert not factory.validate_pipeline_config(config)
        with pytest.raises(ValidationError):
            factory.create_pipeline(config)
