"""Structured logging: context-aware logging with per-call correlation fields."""

from .logging import (
    CORRELATION_KEYS,
    BoundLogger,
    ConsoleRenderer,
    JsonRenderer,
    LogEntry,
    LogRenderer,
    MemoryRenderer,
    NoOpRenderer,
    configure_from_settings,
    configure_logging,
    current_context,
    get_logger,
    log_context,
)

__all__ = [
    "BoundLogger", "LogEntry", "LogRenderer",
    "ConsoleRenderer", "JsonRenderer", "NoOpRenderer", "MemoryRenderer",
    "configure_logging", "configure_from_settings", "get_logger",
    "log_context", "current_context", "CORRELATION_KEYS",
]
