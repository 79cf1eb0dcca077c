"""Shared type aliases and the error kind taxonomy.

Kinds and their default numeric codes follow JSON-RPC conventions so that
envelopes can be relayed by JSON-RPC transports without remapping.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Union

# JSON type aliases - Any for recursive slots
JsonPrimitive = Union[str, int, float, bool, None]
JsonValue = Union[JsonPrimitive, list[Any], dict[str, Any]]
JsonDict = dict[str, Any]


class ErrorKind(StrEnum):
    """Built-in error kinds. Custom kinds are carried as plain string tags."""
    VALIDATION = "validation"
    BUSINESS = "business"
    SYSTEM = "system"
    PERMISSION = "permission"


DEFAULT_CODES: dict[str, int] = {
    ErrorKind.VALIDATION: -32602,
    ErrorKind.BUSINESS: -32001,
    ErrorKind.SYSTEM: -32603,
    ErrorKind.PERMISSION: -32000,
}

# Unknown tool name, reported as a custom kind
NOT_FOUND_KIND = "not_found"
NOT_FOUND_CODE = -32601


def default_code(kind: str) -> int:
    """Default numeric code for a kind (system code for unknown custom tags)."""
    return DEFAULT_CODES.get(kind, DEFAULT_CODES[ErrorKind.SYSTEM])
