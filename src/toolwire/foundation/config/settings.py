"""Environment-based configuration using pydantic-settings.

Example:
    >>> from toolwire.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.logging.level
    'INFO'
    >>> settings.normalizer.highlight_fields
    ('name', 'id', 'title', 'description')

    # Or with environment variables:
    # TOOLWIRE_LOG_LEVEL=DEBUG
    # TOOLWIRE_LOG_FORMAT=json
    # TOOLWIRE_NORMALIZER_TEXT_ONLY=true
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_HIGHLIGHT_FIELDS: tuple[str, ...] = ("name", "id", "title", "description")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLWIRE_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"
    include_correlation_id: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v

    @field_validator("format", mode="before")
    @classmethod
    def _lower_format(cls, v: str) -> str:
        return v.lower() if isinstance(v, str) else v


class NormalizerSettings(BaseSettings):
    """Defaults for response normalization, overridable per handler."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLWIRE_NORMALIZER_",
        extra="ignore",
    )

    include_metadata: bool = True
    generate_summary: bool = True
    highlight_fields: tuple[str, ...] = Field(
        default=DEFAULT_HIGHLIGHT_FIELDS,
        description="Ordered field names searched for the object summary",
    )
    text_only: bool = Field(default=False, description="Flatten data items to text in envelopes")


class DispatchSettings(BaseSettings):
    """Dispatcher behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLWIRE_DISPATCH_",
        extra="ignore",
    )

    log_arguments: bool = Field(default=False, description="Include raw arguments in call logs")


class ToolwireSettings(BaseSettings):
    """Root settings for toolwire.

    Loads configuration from environment variables with TOOLWIRE_ prefix.
    Supports nested configuration and .env files.

    Example environment variables:
        TOOLWIRE_LOG_LEVEL=DEBUG
        TOOLWIRE_NORMALIZER_INCLUDE_METADATA=false
        TOOLWIRE_DISPATCH_LOG_ARGUMENTS=true
    """

    model_config = SettingsConfigDict(
        env_prefix="TOOLWIRE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    # Nested settings (loaded with TOOLWIRE_LOG_, TOOLWIRE_NORMALIZER_, ...)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    normalizer: NormalizerSettings = Field(default_factory=NormalizerSettings)
    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)


@lru_cache(maxsize=1)
def get_settings() -> ToolwireSettings:
    """Get the global settings instance (cached)."""
    return ToolwireSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
