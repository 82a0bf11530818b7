"""HTTP client for the LLM server that produces action insights."""

from .client import LLMClient, InferenceResponse
from .exceptions import LLMClientError, LLMServerError, LLMConnectionError, LLMTimeoutError

__all__ = [
    "LLMClient",
    "InferenceResponse",
    "LLMClientError",
    "LLMServerError",
    "LLMConnectionError",
    "LLMTimeoutError",
]
