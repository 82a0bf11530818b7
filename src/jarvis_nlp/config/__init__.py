"""
Jarvis NLP Configuration System

    from jarvis_nlp.config import get_config, load_config

    config = get_config()
    print(config.nlp.fuzzy_threshold)   # 0.8
"""

from .loader import (
    ConfigLoader,
    load_config,
    get_config,
    reload_config,
    validate_config_file,
)

from .models import (
    JarvisConfig,
    AppConfig,
    NLPConfig,
    InsightConfig,
    LogLevel,
)

from ..utils.error_handling import ConfigurationError

__all__ = [
    "ConfigLoader",
    "get_config",
    "load_config",
    "reload_config",
    "validate_config_file",
    "ConfigurationError",
    "JarvisConfig",
    "AppConfig",
    "NLPConfig",
    "InsightConfig",
    "LogLevel",
]
