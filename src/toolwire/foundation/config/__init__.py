"""Configuration via pydantic-settings (TOOLWIRE_ environment prefix)."""

from .settings import (
    DEFAULT_HIGHLIGHT_FIELDS,
    DispatchSettings,
    LoggingSettings,
    NormalizerSettings,
    ToolwireSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "ToolwireSettings", "LoggingSettings", "NormalizerSettings", "DispatchSettings",
    "DEFAULT_HIGHLIGHT_FIELDS", "get_settings", "clear_settings_cache",
]
