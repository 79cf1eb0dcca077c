"""Foundation - Core building blocks for toolwire.

Contains: content model, error model, execution context and tool metadata, config, testing.
"""

from __future__ import annotations

__all__ = [
    # Content
    "ContentItem", "TextContent", "DataContent", "ImageContent", "ErrorContent",
    "ToolResult", "ToolResultBuilder",
    # Errors
    "ErrorKind", "ErrorInfo", "ErrorBuilder", "ToolException",
    "ParameterValidationError", "ToolConfigurationError",
    # Core
    "ExecutionContext", "ParamType", "ParameterSpec", "Param",
    "ToolDescriptor", "ResponseOptions", "ToolExample", "tool", "tool_method", "tool_response",
    # Config
    "ToolwireSettings", "get_settings", "clear_settings_cache",
    "LoggingSettings", "NormalizerSettings", "DispatchSettings",
    # Testing
    "ToolHarness", "EnvelopeAssert", "RecordingSink",
]


def __getattr__(name: str):
    """Lazy imports to avoid circular dependencies."""
    if name in ("ContentItem", "TextContent", "DataContent", "ImageContent", "ErrorContent",
                "ToolResult", "ToolResultBuilder"):
        from . import content
        return getattr(content, name)

    if name in ("ErrorKind", "ErrorInfo", "ErrorBuilder", "ToolException",
                "ParameterValidationError", "ToolConfigurationError"):
        from . import errors
        return getattr(errors, name)

    if name in ("ExecutionContext", "ParamType", "ParameterSpec", "Param",
                "ToolDescriptor", "ResponseOptions", "ToolExample", "tool", "tool_method", "tool_response"):
        from . import core
        return getattr(core, name)

    if name in ("ToolwireSettings", "get_settings", "clear_settings_cache",
                "LoggingSettings", "NormalizerSettings", "DispatchSettings"):
        from . import config
        return getattr(config, name)

    if name in ("ToolHarness", "EnvelopeAssert", "RecordingSink"):
        from . import testing
        return getattr(testing, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
