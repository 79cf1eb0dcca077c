"""Error model for tool invocation.

- ErrorKind: validation / business / system / permission (plus custom tags)
- ErrorInfo/ErrorBuilder: immutable structured error and its additive builder
- ToolException: carrier exception with copy-on-write augmentation
- ParameterValidationError: binder failures naming a parameter
- ToolConfigurationError: registration-time metadata failures
"""

from .errors import (
    ErrorBuilder,
    ErrorInfo,
    ParameterValidationError,
    ToolConfigurationError,
    ToolException,
)
from .types import (
    DEFAULT_CODES,
    NOT_FOUND_CODE,
    NOT_FOUND_KIND,
    ErrorKind,
    JsonDict,
    JsonPrimitive,
    JsonValue,
    default_code,
)

__all__ = [
    "ErrorKind", "DEFAULT_CODES", "NOT_FOUND_KIND", "NOT_FOUND_CODE", "default_code",
    "ErrorInfo", "ErrorBuilder",
    "ToolException", "ParameterValidationError", "ToolConfigurationError",
    "JsonDict", "JsonPrimitive", "JsonValue",
]
