"""
Natural language processing for Jarvis test commands.

Deterministic rule-based interpretation: free text in, ExecutableAction out.
"""

from .types import (
    ActionType,
    ClassifiedIntent,
    CommandAnalysis,
    ContextualIntent,
    Entity,
    EntityCategory,
    ExecutableAction,
    ExtractedEntities,
    InsightResult,
    IntentType,
    ProcessedInput,
)
from .normalizer import Normalizer
from .entity_extractor import EntityExtractor
from .intent_classifier import IntentClassifier
from .context_enricher import ContextEnricher
from .action_mapper import ActionMapper
from .command_analyzer import CommandAnalyzer
from .pipeline_factory import PipelineFactory

__all__ = [
    "ActionType",
    "ClassifiedIntent",
    "CommandAnalysis",
    "ContextualIntent",
    "Entity",
    "EntityCategory",
    "ExecutableAction",
    "ExtractedEntities",
    "InsightResult",
    "IntentType",
    "ProcessedInput",
    "Normalizer",
    "EntityExtractor",
    "IntentClassifier",
    "ContextEnricher",
    "ActionMapper",
    "CommandAnalyzer",
    "PipelineFactory",
]
