"""
Layered configuration loading for Jarvis NLP.

Sources, later ones winning:

1. defaults declared on the pydantic models
2. ``configs/default.yaml``
3. ``configs/<JARVIS_ENV>.yaml``
4. the file passed with ``--config``
5. ``JARVIS_<SECTION>_<FIELD>`` environment variables (``.env`` included)
"""

import os
from pathlib import Path
from typing import Optional, Dict, Any, Union, Tuple

import yaml
from pydantic import ValidationError
from dotenv import load_dotenv

from .models import JarvisConfig
from ..utils.error_handling import ConfigurationError
from ..utils.logging import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "JARVIS_"
ENV_SELECTOR = "JARVIS_ENV"
CONFIG_SUFFIXES = (".yaml", ".yml")

PathLike = Union[str, Path]


def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursive merge; nested mappings are merged, everything else replaced."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        merged[key] = merge_dicts(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


class ConfigLoader:
    """Finds, merges and validates configuration for one project root."""

    def __init__(self, search_root: Optional[PathLike] = None):
        self._root = Path(search_root) if search_root else Path(".")
        self._config: Optional[JarvisConfig] = None
        self._config_path: Optional[Path] = None

        dotenv_path = self._root / ".env"
        if dotenv_path.is_file():
            load_dotenv(dotenv_path)

    @property
    def config_path(self) -> Optional[Path]:
        """The ``--config`` file of the last load, if any."""
        return self._config_path

    def load_config(self, config_path: Optional[PathLike] = None) -> JarvisConfig:
        """
        Build a validated JarvisConfig from every source.

        Raises:
            ConfigurationError: A named file is missing or unreadable, YAML is
                invalid, or the merged values fail validation
        """
        try:
            layers = [self._find_config("default")]
            env_name = os.getenv(ENV_SELECTOR)
            if env_name:
                layers.append(self._find_config(env_name))
            if config_path:
                explicit = Path(config_path)
                if not explicit.is_file():
                    raise ConfigurationError(
                        f"Specified config file not found: {config_path}",
                        details={"path": str(config_path)}
                    )
                layers.append(explicit)

            data: Dict[str, Any] = {}
            seen = set()
            for layer in layers:
                if layer is None or layer in seen:
                    continue
                seen.add(layer)
                data = merge_dicts(data, self._read_yaml(layer))

            data = merge_dicts(data, self._environment_overrides())
            config = JarvisConfig(**data)

        except ConfigurationError:
            raise
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {self._describe(e)}",
                details={"error_type": "validation"}
            ) from e
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        self._config = config
        self._config_path = Path(config_path) if config_path else None
        logger.debug("Loaded configuration from %s", [str(p) for p in layers if p] or "built-in defaults")
        return config

    def get_config(self) -> JarvisConfig:
        """Cached configuration, loaded on first use."""
        if self._config is None:
            self.load_config()
        return self._config

    def reload_config(self, config_path: Optional[PathLike] = None) -> JarvisConfig:
        self._config = None
        return self.load_config(config_path)

    def _find_config(self, name: str) -> Optional[Path]:
        for directory in (self._root / "configs", self._root):
            for suffix in CONFIG_SUFFIXES:
                candidate = directory / f"{name}{suffix}"
                if candidate.is_file():
                    return candidate
        return None

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        try:
            content = yaml.safe_load(path.read_text(encoding='utf-8'))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a YAML object (mapping)")
        return content

    def _environment_overrides(self) -> Dict[str, Any]:
        """
        ``JARVIS_NLP_FUZZY_THRESHOLD=0.9`` becomes ``{"nlp": {"fuzzy_threshold": 0.9}}``.

        Only the first segment names the section, so field names may contain
        underscores.
        """
        overrides: Dict[str, Dict[str, Any]] = {}
        for key in sorted(os.environ):
            if not key.startswith(ENV_PREFIX) or key == ENV_SELECTOR:
                continue
            section, _, name = key[len(ENV_PREFIX):].lower().partition('_')
            if section and name:
                overrides.setdefault(section, {})[name] = self._convert_env_value(os.environ[key])
        return overrides

    def _convert_env_value(self, value: str) -> Any:
        """Coerce an environment string to bool, int or float where it looks like one."""
        lowered = value.strip().lower()
        if lowered in ('true', 'yes', 'on'):
            return True
        if lowered in ('false', 'no', 'off'):
            return False
        for cast in (int, float):
            try:
                return cast(value)
            except ValueError:
                continue
        return value

    def _describe(self, error: ValidationError) -> str:
        lines = [
            f"  {' -> '.join(str(part) for part in item['loc'])}: {item['msg']} (got: {item.get('input', 'N/A')})"
            for item in error.errors()
        ]
        return "Validation errors:\n" + "\n".join(lines)


_config_loader = ConfigLoader()


def load_config(config_path: Optional[PathLike] = None) -> JarvisConfig:
    """Load configuration through the process-wide loader."""
    return _config_loader.load_config(config_path)


def get_config() -> JarvisConfig:
    return _config_loader.get_config()


def reload_config(config_path: Optional[PathLike] = None) -> JarvisConfig:
    return _config_loader.reload_config(config_path)


def validate_config_file(config_path: PathLike) -> Tuple[bool, Optional[str]]:
    """
    Check a configuration file without touching the process-wide loader.

    Returns:
        ``(True, None)`` or ``(False, error message)``
    """
    try:
        ConfigLoader().load_config(config_path)
    except ConfigurationError as e:
        return False, str(e)
    return True, None
