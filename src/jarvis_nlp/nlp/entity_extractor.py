"""
Entity extraction over normalised command text.

Entities come from four sources: exact lexicon matches, fuzzy matches of
single words against service synonyms, annotation tokens and
a small set of parameter patterns.
"""

import re
from typing import List, Mapping, Tuple

from rapidfuzz.distance import Levenshtein

from . import lexicon
from .types import Entity, EntityCategory, ExtractedEntities, ProcessedInput
from ..utils.error_handling import ParseFailure, fail_closed
from ..utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FUZZY_THRESHOLD = 0.8

# (parameter name, pattern, value formatter); only the first match counts
PARAMETER_PATTERNS = (
    ("timeout", re.compile(r"(\d+)\s*(seconds?|minutes?|hours?|secs?|mins?|hrs?)"), None),
    ("retries", re.compile(r"(\d+)\s*retries?"), None),
    ("priority", re.compile(r"p(\d+)"), lambda match: f"P{match.group(1)}"),
)


def similarity(first: str, second: str) -> float:
    """Levenshtein similarity normalised by the longer string, in [0, 1]."""
    longest = max(len(first), len(second))
    if longest == 0:
        return 1.0
    return 1.0 - Levenshtein.distance(first, second) / longest


class EntityExtractor:
    """Finds services, test types, actions, parameters and context keywords."""

    def __init__(self, fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD):
        if not 0.0 <= fuzzy_threshold <= 1.0:
            raise ValueError(f"fuzzy_threshold must be within [0, 1], got {fuzzy_threshold}")
        self.fuzzy_threshold = fuzzy_threshold

        # (category, lexicon, fuzzy matching enabled)
        self._lexicons: Tuple[Tuple[EntityCategory, Mapping[str, Tuple[str, ...]], bool], ...] = (
            (EntityCategory.SERVICE, lexicon.SERVICE_SYNONYMS, True),
            (EntityCategory.TEST_TYPE, lexicon.TEST_TYPE_SYNONYMS, False),
            (EntityCategory.ACTION, lexicon.ACTION_SYNONYMS, False),
            (EntityCategory.CONTEXT, lexicon.CONTEXT_KEYWORDS, False),
        )

    @fail_closed(
        "entity_extraction",
        ParseFailure,
        lambda failure, self, processed: ExtractedEntities.empty(failure),
    )
    def extract(self, processed: ProcessedInput) -> ExtractedEntities:
        if processed.is_empty:
            return ExtractedEntities.empty()

        found: List[Entity] = []
        for category, table, fuzzy in self._lexicons:
            found.extend(self._match_exact(category, table, processed.normalized))
            if fuzzy:
                found.extend(self._match_fuzzy(category, table, processed.words))

            if category is EntityCategory.TEST_TYPE:
                found.extend(self._match_annotations(processed.special_tokens))

        found.extend(self._match_parameters(processed.normalized))

        entities = ExtractedEntities(found)
        logger.debug("Extracted %r from %r", entities, processed.normalized)
        return entities

    def _match_exact(self, category: EntityCategory, table, text: str) -> List[Entity]:
        return [
            Entity(category, canonical, synonym, 1.0)
            for canonical, synonyms in table.items()
            for synonym in synonyms
            if synonym in text
        ]

    def _match_fuzzy(self, category: EntityCategory, table, words: List[str]) -> List[Entity]:
        matches = []
        for word in words:
            for canonical, synonyms in table.items():
                for synonym in synonyms:
                    score = similarity(word, synonym)
                    if score >= self.fuzzy_threshold:
                        matches.append(Entity(category, canonical, word, score))
        return matches

    def _match_annotations(self, special_tokens: List[str]) -> List[Entity]:
        return [
            Entity(EntityCategory.TEST_TYPE, lexicon.ANNOTATION_TEST_TYPES[token], token, 1.0)
            for token in special_tokens
            if token in lexicon.ANNOTATION_TEST_TYPES
        ]

    def _match_parameters(self, text: str) -> List[Entity]:
        matches = []
        for name, pattern, formatter in PARAMETER_PATTERNS:
            match = pattern.search(text)
            if match:
                original = formatter(match) if formatter else match.group(0)
                matches.append(Entity(EntityCategory.PARAMETER, name, original, 1.0))
        return matches
