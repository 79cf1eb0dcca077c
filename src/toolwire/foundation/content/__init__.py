"""Content model: typed response fragments and the ToolResult envelope."""

from .items import (
    AnyContent,
    ContentItem,
    DataContent,
    ErrorContent,
    ImageContent,
    TextContent,
    data,
    error,
    image,
    text,
    to_jsonable,
    type_name,
)
from .result import DEFAULT_SUCCESS_TEXT, ToolResult, ToolResultBuilder

__all__ = [
    "ContentItem", "TextContent", "DataContent", "ImageContent", "ErrorContent", "AnyContent",
    "text", "data", "image", "error", "to_jsonable", "type_name",
    "ToolResult", "ToolResultBuilder", "DEFAULT_SUCCESS_TEXT",
]
