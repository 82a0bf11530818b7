"""
Tests for configuration models and loading.
"""

import os

import pytest
import yaml
from pydantic import ValidationError
from unittest.mock import patch

from jarvis_nlp.config import (
    ConfigLoader,
    ConfigurationError,
    InsightConfig,
    JarvisConfig,
    LogLevel,
    NLPConfig,
    validate_config_file,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def clean_env(monkeypatch):
    """Remove any JARVIS_* variables inherited from the shell."""
    for key in list(os.environ):
        if key.startswith("JARVIS_"):
            monkeypatch.delenv(key)


def write_yaml(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestModels:
    """Pydantic model defaults and validation."""

    def test_defaults(self):
        config = JarvisConfig()

        assert config.app.log_level is LogLevel.WARNING
        assert config.nlp.fuzzy_threshold == 0.8
        assert config.nlp.confidence_threshold == 0.7
        assert config.nlp.max_patterns == 100
        assert config.insights.enabled is False
        assert config.insights.timeout_seconds == 10.0

    def test_log_level_is_case_insensitive(self):
        assert JarvisConfig(app={"log_level": "debug"}).app.log_level is LogLevel.DEBUG

    def test_debug_turns_on_verbose_logging(self):
        config = JarvisConfig(app={"debug": True, "log_level": "INFO"})

        assert config.app.verbose_logging is True

    def test_base_url_loses_trailing_slash(self):
        assert InsightConfig(base_url="http://llm:9000/").base_url == "http://llm:9000"

    @pytest.mark.parametrize("field,value", [
        ("fuzzy_threshold", 1.5),
        ("confidence_threshold", -0.1),
        ("max_patterns", 0),
    ])
    def test_nlp_bounds(self, field, value):
        with pytest.raises(ValidationError):
            NLPConfig(**{field: value})

    def test_extra_sections_are_allowed(self):
        config = JarvisConfig(executor={"url": "http://executor"})

        assert config.executor == {"url": "http://executor"}


class TestConfigLoader:
    """Layered loading from files and environment."""

    def test_builtin_defaults_without_files(self, tmp_path, clean_env):
        config = ConfigLoader(search_root=tmp_path).load_config()

        assert config == JarvisConfig()

    def test_default_file(self, tmp_path, clean_env):
        write_yaml(tmp_path / "configs" / "default.yaml", {"nlp": {"fuzzy_threshold": 0.9}})

        config = ConfigLoader(search_root=tmp_path).load_config()

        assert config.nlp.fuzzy_threshold == 0.9
        assert config.nlp.confidence_threshold == 0.7

    def test_environment_file_overrides_default(self, tmp_path, clean_env, monkeypatch):
        write_yaml(tmp_path / "configs" / "default.yaml", {"nlp": {"fuzzy_threshold": 0.9}})
        write_yaml(tmp_path / "configs" / "staging.yaml", {"nlp": {"fuzzy_threshold": 0.75}})
        monkeypatch.setenv("JARVIS_ENV", "staging")

        config = ConfigLoader(search_root=tmp_path).load_config()

        assert config.nlp.fuzzy_threshold == 0.75

    def test_cli_file_overrides_files(self, tmp_path, clean_env):
        write_yaml(tmp_path / "configs" / "default.yaml", {"insights": {"enabled": False}})
        cli_file = write_yaml(tmp_path / "custom.yaml", {"insights": {"enabled": True}})

        loader = ConfigLoader(search_root=tmp_path)
        config = loader.load_config(cli_file)

        assert config.insights.enabled is True
        assert loader.config_path == cli_file

    def test_env_vars_win(self, tmp_path, clean_env, monkeypatch):
        cli_file = write_yaml(tmp_path / "custom.yaml", {"nlp": {"confidence_threshold": 0.5}})
        monkeypatch.setenv("JARVIS_NLP_CONFIDENCE_THRESHOLD", "0.9")
        monkeypatch.setenv("JARVIS_INSIGHTS_ENABLED", "yes")
        monkeypatch.setenv("JARVIS_INSIGHTS_MAX_RETRIES", "3")
        monkeypatch.setenv("JARVIS_APP_LOG_LEVEL", "info")

        config = ConfigLoader(search_root=tmp_path).load_config(cli_file)

        assert config.nlp.confidence_threshold == 0.9
        assert config.insights.enabled is True
        assert config.insights.max_retries == 3
        assert config.app.log_level is LogLevel.INFO

    def test_dotenv_file_is_read(self, tmp_path, clean_env):
        (tmp_path / ".env").write_text("JARVIS_NLP_MAX_PATTERNS=50\n", encoding="utf-8")

        with patch.dict(os.environ):
            config = ConfigLoader(search_root=tmp_path).load_config()

        assert config.nlp.max_patterns == 50

    def test_missing_cli_file(self, tmp_path, clean_env):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigLoader(search_root=tmp_path).load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path, clean_env):
        bad = tmp_path / "bad.yaml"
        bad.write_text("nlp: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            ConfigLoader(search_root=tmp_path).load_config(bad)

    def test_non_mapping_yaml(self, tmp_path, clean_env):
        bad = tmp_path / "list.yaml"
        bad.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="YAML object"):
            ConfigLoader(search_root=tmp_path).load_config(bad)

    def test_validation_errors_are_wrapped(self, tmp_path, clean_env):
        bad = write_yaml(tmp_path / "bad.yaml", {"nlp": {"fuzzy_threshold": 3}})

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(search_root=tmp_path).load_config(bad)

        assert "Configuration validation failed" in str(exc_info.value)
        assert "nlp -> fuzzy_threshold" in str(exc_info.value)

    def test_reload_picks_up_changes(self, tmp_path, clean_env):
        default = write_yaml(tmp_path / "configs" / "default.yaml", {"nlp": {"max_patterns": 10}})
        loader = ConfigLoader(search_root=tmp_path)
        assert loader.get_config().nlp.max_patterns == 10

        write_yaml(default, {"nlp": {"max_patterns": 20}})

        assert loader.get_config().nlp.max_patterns == 10
        assert loader.reload_config().nlp.max_patterns == 20

    @pytest.mark.parametrize("raw,expected", [
        ("true", True),
        ("Off", False),
        ("42", 42),
        ("0.25", 0.25),
        ("http://host", "http://host"),
    ])
    def test_env_value_conversion(self, raw, expected):
        assert ConfigLoader()._convert_env_value(raw) == expected


class TestValidateConfigFile:
    """Standalone validation helper."""

    def test_valid_file(self, tmp_path, clean_env):
        path = write_yaml(tmp_path / "ok.yaml", {"nlp": {"fuzzy_threshold": 0.85}})

        assert validate_config_file(path) == (True, None)

    def test_invalid_file(self, tmp_path, clean_env):
        path = write_yaml(tmp_path / "bad.yaml", {"insights": {"timeout_seconds": 0}})

        valid, message = validate_config_file(path)

        assert not valid
        assert "timeout_seconds" in message
