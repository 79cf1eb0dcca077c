"""Runtime - invocation pipeline and observability.

Contains: dispatch (resolver, binder, normalizer, schema, streaming, dispatcher), logging.
"""

from __future__ import annotations

__all__ = [
    # Dispatch
    "ToolDispatcher", "RegisteredTool", "ParameterBinder", "ResponseNormalizer",
    "HandlerMethod", "resolve", "describe", "tool_definition", "StreamSink",
    # Observability
    "get_logger", "configure_logging", "configure_from_settings", "log_context",
]


def __getattr__(name: str):
    """Lazy imports to avoid circular dependencies."""
    if name in ("ToolDispatcher", "RegisteredTool", "ParameterBinder", "ResponseNormalizer",
                "HandlerMethod", "resolve", "describe", "tool_definition", "StreamSink"):
        from . import dispatch
        return getattr(dispatch, name)

    if name in ("get_logger", "configure_logging", "configure_from_settings", "log_context"):
        from . import observability
        return getattr(observability, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
