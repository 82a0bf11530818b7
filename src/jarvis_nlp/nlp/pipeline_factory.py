"""
Factory for building and caching configured command analyzers.
"""

from typing import Any, Dict, Optional

from .action_mapper import ActionMapper
from .command_analyzer import CommandAnalyzer
from .context_enricher import ContextEnricher
from .entity_extractor import EntityExtractor
from .intent_classifier import IntentClassifier
from .normalizer import Normalizer
from ..config.models import JarvisConfig, NLPConfig
from ..utils.error_handling import ValidationError, validate_input
from ..utils.logging import get_logger


class PipelineFactory:
    """Builds CommandAnalyzer instances from configuration and caches them by name."""

    def __init__(self):
        self.logger = get_logger(__name__)
        self._pipelines: Dict[str, CommandAnalyzer] = {}

    def create_pipeline(self, config: Dict[str, Any]) -> CommandAnalyzer:
        """Create a pipeline from a plain dictionary such as ``get_default_config()``."""
        if not self.validate_pipeline_config(config):
            raise ValidationError(f"Invalid pipeline configuration: {config!r}")

        name = config["name"]
        nlp_config = NLPConfig(**config.get("settings", {}))
        analyzer = self._build(nlp_config)

        self._pipelines[name] = analyzer
        self.logger.info(
            f"Created pipeline '{name}' (fuzzy_threshold={nlp_config.fuzzy_threshold}, "
            f"confidence_threshold={nlp_config.confidence_threshold})"
        )
        return analyzer

    def create_command_analyzer(self, config: Optional[JarvisConfig] = None) -> CommandAnalyzer:
        """Create (or reuse) the analyzer for an application configuration."""
        nlp_config = (config or JarvisConfig()).nlp
        return self.create_pipeline({
            "name": "command_analyzer",
            "settings": nlp_config.model_dump(),
        })

    def get_pipeline(self, name: str) -> Optional[CommandAnalyzer]:
        """Get a cached pipeline by name."""
        return self._pipelines.get(name)

    def _build(self, nlp_config: NLPConfig) -> CommandAnalyzer:
        return CommandAnalyzer(
            normalizer=Normalizer(),
            entity_extractor=EntityExtractor(fuzzy_threshold=nlp_config.fuzzy_threshold),
            intent_classifier=IntentClassifier(max_patterns=nlp_config.max_patterns),
            context_enricher=ContextEnricher(),
            action_mapper=ActionMapper(),
            confidence_threshold=nlp_config.confidence_threshold,
        )

    def validate_pipeline_config(self, config: Dict[str, Any]) -> bool:
        """Validate a pipeline configuration dictionary."""
        try:
            validate_input(config, "pipeline config", dict)
            validate_input(config.get("name"), "name", str)
            settings = validate_input(config.get("settings", {}), "settings", dict)
        except ValidationError as e:
            self.logger.error(str(e))
            return False

        unknown = set(settings) - set(NLPConfig.model_fields)
        if unknown:
            self.logger.error(f"Unknown pipeline settings: {sorted(unknown)}")
            return False

        return True

    def get_default_config(self) -> Dict[str, Any]:
        """Get default pipeline configuration."""
        return {
            "name": "default_command_pipeline",
            "settings": NLPConfig().model_dump(),
        }
