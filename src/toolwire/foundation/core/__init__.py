"""Core tool abstractions and decorators.

- ExecutionContext: immutable per-call metadata
- ParamType/ParameterSpec/Param: parameter metadata and the Annotated marker
- ToolDescriptor/ResponseOptions/ToolExample: registration-time tool identity
- @tool, @tool_method, @tool_response: declarative metadata decorators
"""

from .context import ExecutionContext
from .descriptor import (
    METHOD_ATTR,
    RESPONSE_ATTR,
    TOOL_ATTR,
    ResponseOptions,
    ToolDescriptor,
    ToolExample,
    ToolInfo,
    default_tool_name,
    response_options,
    tool,
    tool_info,
    tool_method,
    tool_response,
)
from .params import Param, ParameterSpec, ParamType, has_param_metadata, parameters_from_signature, tag_for

__all__ = [
    "ExecutionContext",
    "ParamType", "ParameterSpec", "Param", "tag_for", "has_param_metadata", "parameters_from_signature",
    "ToolDescriptor", "ResponseOptions", "ToolExample", "ToolInfo",
    "tool", "tool_method", "tool_response", "tool_info", "response_options", "default_tool_name",
    "TOOL_ATTR", "METHOD_ATTR", "RESPONSE_ATTR",
]
