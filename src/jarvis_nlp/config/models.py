"""
Pydantic models for Jarvis NLP configuration validation.

Configuration is read once at load time and shared by reference afterwards;
nothing in the pipeline mutates it per request.
"""

from typing import Optional
from pathlib import Path
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AppConfig(BaseModel):
    """Application-level configuration settings."""

    name: str = Field(default="Jarvis NLP", description="Application display name")
    version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Logging level")
    verbose_logging: bool = Field(default=False, description="Enable verbose debug logging")

    log_file: Optional[str] = Field(default=None, description="Log file location (disabled when unset)")
    max_log_size_mb: int = Field(default=10, ge=1, le=1000, description="Maximum log file size")
    backup_count: int = Field(default=5, ge=1, le=100, description="Number of backup log files")

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        """Accept log levels in any case."""
        return v.upper() if isinstance(v, str) else v

    @field_validator('log_file')
    @classmethod
    def expand_path(cls, v):
        """Expand user home directory in paths."""
        return str(Path(v).expanduser()) if v else v


class NLPConfig(BaseModel):
    """Tunables of the interpretation pipeline."""

    fuzzy_threshold: float = Field(
        default=0.8, ge=0.0, le=1.0,
        description="Minimum normalised Levenshtein similarity for a fuzzy entity match"
    )
    confidence_threshold: float = Field(
        default=0.7, ge=0.0, le=1.0,
        description="Action confidence at or above which a command is considered understood"
    )
    max_patterns: int = Field(
        default=100, ge=1, le=10000,
        description="Upper bound on the number of intent patterns the classifier accepts"
    )


class InsightConfig(BaseModel):
    """Optional LLM insight server settings."""

    enabled: bool = Field(default=False, description="Request an LLM insight for each action")
    base_url: str = Field(default="http://localhost:8765", description="LLM server base URL")
    timeout_seconds: float = Field(default=10.0, gt=0.0, le=300.0, description="Time box for one insight")
    max_retries: int = Field(default=1, ge=0, le=10, description="Retry attempts for failed requests")
    retry_delay: float = Field(default=0.5, ge=0.0, le=10.0, description="Delay between retries")
    model_name: Optional[str] = Field(default=None, description="Model to request from the server")
    max_tokens: int = Field(default=256, ge=1, le=8192, description="Maximum tokens per insight")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Response randomness")

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip('/')


class JarvisConfig(BaseModel):
    """Main configuration model."""

    model_config = ConfigDict(extra="allow", validate_assignment=True)

    app: AppConfig = Field(default_factory=AppConfig)
    nlp: NLPConfig = Field(default_factory=NLPConfig)
    insights: InsightConfig = Field(default_factory=InsightConfig)

    @model_validator(mode='after')
    def validate_config_consistency(self):
        """Validate cross-section configuration consistency."""
        if self.app.debug and self.app.log_level != LogLevel.DEBUG:
            self.app.verbose_logging = True
        return self
