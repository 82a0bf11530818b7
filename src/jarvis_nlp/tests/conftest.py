"""
Shared pytest configuration for Jarvis NLP tests.
"""

import pytest

from jarvis_nlp.nlp import (
    ActionMapper,
    CommandAnalyzer,
    ContextEnricher,
    EntityExtractor,
    IntentClassifier,
    Normalizer,
)


@pytest.fixture
def normalizer():
    return Normalizer()


@pytest.fixture
def extractor():
    return EntityExtractor()


@pytest.fixture
def classifier():
    return IntentClassifier()


@pytest.fixture
def enricher():
    return ContextEnricher()


@pytest.fixture
def mapper():
    return ActionMapper()


@pytest.fixture
def analyzer():
    return CommandAnalyzer()


@pytest.fixture
def stages(normalizer, extractor, classifier, enricher):
    """Run the first four stages by hand and return their outputs."""
    def run(text):
        processed = normalizer.normalize(text)
        entities = extractor.extract(processed)
        intent = classifier.classify(processed, entities)
        contextual = enricher.enrich(intent, entities)
        return processed, entities, intent, contextual
    return run


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that run the whole pipeline"
    )
    config.addinivalue_line(
        "markers", "cli: marks command-line interface tests"
    )
