"""
Exceptions for LLM server communication.
"""


class LLMClientError(Exception):
    """Base exception for LLM client errors."""
    pass


class LLMConnectionError(LLMClientError, ConnectionError):
    """Unable to reach the LLM server."""
    pass


class LLMServerError(LLMClientError):
    """The LLM server answered with an error status."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class LLMTimeoutError(LLMClientError):
    """The LLM server did not answer in time."""
    pass
