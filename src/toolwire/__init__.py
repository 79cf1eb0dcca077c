"""toolwire - Declarative tool dispatch with a uniform response envelope.

Turns ordinary methods into callable tools: parameters are described with
``Annotated[..., Param(...)]``, validated and coerced on every call, and any
return value or failure is normalized into a multi-part envelope of text,
data, image and error items.

Quick Start:
    >>> from typing import Annotated
    >>> from toolwire import Param, ToolDispatcher, tool, tool_method
    >>>
    >>> @tool(description="Look up a customer by id")
    ... class CustomerTool:
    ...     @tool_method(highlight_fields=("name",))
    ...     def get_customer(self, customer_id: Annotated[int, Param("Customer id", min=1)]) -> Customer:
    ...         return repo.load(customer_id)
    >>>
    >>> dispatcher = ToolDispatcher()
    >>> dispatcher.register(CustomerTool)
    >>> dispatcher.invoke("customer", {"customer_id": 7}, {"correlationId": "c-1"})
    {'content': [{'type': 'text', 'text': 'Customer with 3 properties, name: Ada'},
                 {'type': 'data', 'dataType': 'Customer', 'data': {...}}],
     'metadata': {'methodName': 'get_customer', ...}}

Errors:
    >>> raise ToolException.business("Quantity exceeds stock").with_suggestions("try 5", "try 10")
    # => {"type": "error", "errorType": "business", "errorCode": -32001, "suggestions": ["try 5", "try 10"], ...}

Streaming (generator handlers, sink injected into the dispatcher):
    >>> dispatcher = ToolDispatcher(sink=my_sink)
    >>> dispatcher.invoke("ticker", {}, {"streaming": True})  # items go to my_sink.send(...)
"""

from __future__ import annotations

__version__ = "0.1.0"

# Content
from .foundation.content import (
    ContentItem,
    DataContent,
    ErrorContent,
    ImageContent,
    TextContent,
    ToolResult,
    ToolResultBuilder,
)

# Errors
from .foundation.errors import (
    ErrorBuilder,
    ErrorInfo,
    ErrorKind,
    ParameterValidationError,
    ToolConfigurationError,
    ToolException,
)

# Core
from .foundation.core import (
    ExecutionContext,
    Param,
    ParameterSpec,
    ParamType,
    ResponseOptions,
    ToolDescriptor,
    ToolExample,
    tool,
    tool_method,
    tool_response,
)

# Config
from .foundation.config import ToolwireSettings, clear_settings_cache, get_settings

# Dispatch
from .runtime.dispatch import (
    ParameterBinder,
    ResponseNormalizer,
    StreamSink,
    ToolDispatcher,
    describe,
    tool_definition,
)

# Observability
from .runtime.observability import configure_from_settings, configure_logging, get_logger, log_context

__all__ = [
    "__version__",
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
    # Dispatch
    "ToolDispatcher", "ParameterBinder", "ResponseNormalizer", "StreamSink", "describe", "tool_definition",
    # Observability
    "get_logger", "configure_logging", "configure_from_settings", "log_context",
]
