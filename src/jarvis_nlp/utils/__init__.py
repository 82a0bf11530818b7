"""
Jarvis NLP Utilities

Logging and error handling shared by every part of the package.
"""

from .logging import (
    setup_logging,
    get_logger,
    log_performance,
    performance_timer,
    is_logging_initialized,
    log_config_info,
)

from .error_handling import (
    JarvisError,
    ConfigurationError,
    ValidationError,
    PipelineError,
    ParseFailure,
    ClassificationFailure,
    MappingFailure,
    EnrichmentFailure,
    fail_closed,
    handle_insight_operation,
    validate_input,
)

__all__ = [
    # Logging utilities
    "setup_logging",
    "get_logger",
    "log_performance",
    "performance_timer",
    "is_logging_initialized",
    "log_config_info",

    # Error handling utilities
    "JarvisError",
    "ConfigurationError",
    "ValidationError",
    "PipelineError",
    "ParseFailure",
    "ClassificationFailure",
    "MappingFailure",
    "EnrichmentFailure",
    "fail_closed",
    "handle_insight_operation",
    "validate_input",
]
