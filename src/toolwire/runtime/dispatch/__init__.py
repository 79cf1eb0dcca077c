"""Invocation pipeline: resolve -> bind -> invoke -> normalize.

- resolve/build_descriptor: handler method and descriptor of a tool (cached)
- ParameterBinder: argument map -> typed, validated arguments
- ResponseNormalizer: return values and failures -> ToolResult
- describe/tool_definition: JSON Schema from a descriptor
- StreamSink and chunk helpers for generator results
- ToolDispatcher: registration and invoke/ainvoke
"""

from .binder import ParameterBinder, coerce_value
from .dispatcher import RegisteredTool, ToolDispatcher
from .normalizer import (
    GENERIC_MESSAGE,
    NO_RETURN_TEXT,
    UNEXPECTED_ERROR_ACTION,
    UNEXPECTED_ERROR_MESSAGE,
    ResponseNormalizer,
    default_message,
    highlight,
    object_fields,
)
from .resolver import HandlerMethod, build_descriptor, clear_cache, resolve, resolve_function
from .schema import SCHEMA_TYPES, describe, property_schema, schema_type, tool_definition
from .streaming import (
    STREAM_COMPLETE_MESSAGE,
    StreamChunk,
    StreamChunkKind,
    StreamSink,
    acknowledgment,
    astream_to_sink,
    stream_to_sink,
)

__all__ = [
    # Resolver
    "HandlerMethod", "resolve", "resolve_function", "build_descriptor", "clear_cache",
    # Binder
    "ParameterBinder", "coerce_value",
    # Normalizer
    "ResponseNormalizer", "default_message", "highlight", "object_fields",
    "NO_RETURN_TEXT", "GENERIC_MESSAGE", "UNEXPECTED_ERROR_MESSAGE", "UNEXPECTED_ERROR_ACTION",
    # Schema
    "describe", "tool_definition", "property_schema", "schema_type", "SCHEMA_TYPES",
    # Streaming
    "StreamSink", "StreamChunk", "StreamChunkKind", "stream_to_sink", "astream_to_sink",
    "acknowledgment", "STREAM_COMPLETE_MESSAGE",
    # Dispatcher
    "ToolDispatcher", "RegisteredTool",
]
