"""
Unified error handling utilities for Jarvis NLP.

Pipeline stages never let an exception escape: they are wrapped with
``fail_closed`` which logs the problem and substitutes a typed fallback that
carries the failure along. The optional LLM insight call is wrapped with
``handle_insight_operation`` which turns every failure mode into an
``EnrichmentFailure``.
"""

import functools
import asyncio
import logging
from typing import Any, Callable, Optional, Dict, Type

from ..utils.logging import get_logger


class JarvisError(Exception):
    """Base exception for all Jarvis NLP errors."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": type(self).__name__,
            "message": self.message,
            "details": dict(self.details),
        }


class ConfigurationError(JarvisError):
    """Configuration-related error."""
    pass


class ValidationError(JarvisError):
    """Input validation error."""
    pass


class PipelineError(JarvisError):
    """Base class for failures recorded while interpreting a command."""
    stage = "pipeline"


class ParseFailure(PipelineError):
    """Normalisation or entity extraction could not complete."""
    stage = "parse"


class ClassificationFailure(PipelineError):
    """No intent could be determined for the input."""
    stage = "classification"


class MappingFailure(PipelineError):
    """Context enrichment or action mapping could not complete."""
    stage = "mapping"


class EnrichmentFailure(PipelineError):
    """The optional LLM insight failed, timed out or was unavailable."""
    stage = "enrichment"


def fail_closed(
    stage: str,
    failure_cls: Type[PipelineError],
    fallback: Callable[..., Any],
    logger: Optional[logging.Logger] = None,
):
    """
    Decorator that turns any exception raised by a pipeline stage into a
    fallback result.

    Args:
        stage: Human-readable name of the stage
        failure_cls: PipelineError subclass describing the failure
        fallback: Called as ``fallback(failure, *args, **kwargs)`` with the
            original call arguments; its return value replaces the result
        logger: Optional logger instance (defaults to a stage logger)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)

            except Exception as e:
                _logger = logger or get_logger(f"jarvis_nlp.nlp.{stage}")
                _logger.error(f"{stage} failed - {type(e).__name__}: {e}", exc_info=True)
                failure = failure_cls(
                    f"{stage} failed: {e}",
                    details={"error_type": type(e).__name__, "original_error": str(e)}
                )
                return fallback(failure, *args, **kwargs)

        return wrapper

    return decorator


def handle_insight_operation(operation_name: str, timeout: Optional[float] = None):
    """
    Decorator to standardize error handling around the async LLM insight call.

    Args:
        operation_name: Human-readable name of the operation
        timeout: Optional timeout for the operation in seconds
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            logger = get_logger(f"jarvis_nlp.core.insights.{operation_name}")

            try:
                logger.debug(f"Starting {operation_name}")

                if timeout:
                    result = await asyncio.wait_for(func(*args, **kwargs), timeout=timeout)
                else:
                    result = await func(*args, **kwargs)

                logger.debug(f"{operation_name} completed successfully")
                return result

            except EnrichmentFailure:
                raise

            except asyncio.TimeoutError:
                logger.warning(f"{operation_name} timed out after {timeout}s")
                raise EnrichmentFailure(
                    f"{operation_name} timed out",
                    details={"error_type": "timeout", "timeout_seconds": timeout}
                )

            except ConnectionError as e:
                logger.warning(f"{operation_name} failed - connection error: {e}")
                raise EnrichmentFailure(
                    f"{operation_name} failed: Connection error",
                    details={"error_type": "connection", "original_error": str(e)}
                ) from e

            except Exception as e:
                logger.warning(f"{operation_name} failed - unexpected error: {e}", exc_info=True)
                raise EnrichmentFailure(
                    f"{operation_name} failed: {e}",
                    details={"error_type": "unexpected", "original_error": str(e)}
                ) from e

        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"{operation_name} must be a coroutine function")

        return wrapper

    return decorator


def validate_input(
    data: Any,
    field_name: str,
    expected_type: Type = None,
    required: bool = True,
    validator: Optional[Callable] = None
) -> Any:
    """
    Standardized input validation utility.

    Args:
        data: The data to validate
        field_name: Name of the field being validated
        expected_type: Expected type of the data
        required: Whether the field is required
        validator: Optional custom validator function

    Returns:
        The validated data

    Raises:
        ValidationError: If validation fails
    """
    if required and data is None:
        raise ValidationError(f"{field_name} is required")

    if data is not None and expected_type and not isinstance(data, expected_type):
        raise ValidationError(
            f"{field_name} must be of type {expected_type.__name__}, got {type(data).__name__}"
        )

    if validator:
        try:
            return validator(data)
        except Exception as e:
            raise ValidationError(f"{field_name} validation failed: {e}") from e

    return data
