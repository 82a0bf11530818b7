"""
Text normalisation, the first pipeline stage.
"""

import re
from typing import Optional

from .types import ProcessedInput, Token
from ..utils.error_handling import ParseFailure, fail_closed
from ..utils.logging import get_logger

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9@#\s]")
_PRIORITY_TOKEN = re.compile(r"p\d+")
_NUMBER_TOKEN = re.compile(r"\d+")


def is_special_token(word: str) -> bool:
    """Annotations (``@chaostest``), priorities (``p1``) and bare numbers."""
    return (
        word.startswith("@")
        or _PRIORITY_TOKEN.fullmatch(word) is not None
        or _NUMBER_TOKEN.fullmatch(word) is not None
    )


class Normalizer:
    """Lower-cases, strips punctuation and tokenises raw command text."""

    @fail_closed(
        "normalization",
        ParseFailure,
        lambda failure, self, text: ProcessedInput.empty(text if isinstance(text, str) else "", failure),
    )
    def normalize(self, text: Optional[str]) -> ProcessedInput:
        if not text or not text.strip():
            return ProcessedInput.empty(text)

        lowered = _WHITESPACE.sub(" ", text.lower())
        cleaned = _DISALLOWED.sub(" ", lowered)
        normalized = _WHITESPACE.sub(" ", cleaned).strip()

        tokens = tuple(Token(word, is_special_token(word)) for word in normalized.split(" ") if word)

        logger.debug("Normalized %r -> %r", text, normalized)
        return ProcessedInput(raw_text=text, normalized=normalized, tokens=tokens)
