"""Response normalization: handler return values and failures -> ToolResult.

Success values are dispatched on their runtime shape:

    ToolResult          passed through unchanged
    None                placeholder text
    primitive / str     text item with the literal value
    sequence / set      summary text + one data item with the full collection
    mapping             summary text + one data item with the full map
    anything else       object summary text + one data item with the object

Objects may describe themselves through two optional methods, used before
any introspection: ``tool_type_name() -> str`` and ``tool_fields() -> Mapping``.

Normalization never raises: if anything goes wrong the value degrades to a
single string-coerced text item.
"""

from __future__ import annotations

import dataclasses
import time
from collections.abc import Mapping, Sequence, Set, Sized
from datetime import date, datetime
from datetime import time as dtime
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from toolwire.foundation.config import NormalizerSettings, get_settings
from toolwire.foundation.content import DataContent, TextContent, ToolResult, type_name
from toolwire.foundation.core import ResponseOptions
from toolwire.foundation.errors import ErrorInfo, JsonDict, ToolException
from toolwire.runtime.observability import get_logger

from .resolver import HandlerMethod

log = get_logger("toolwire.normalizer")

NO_RETURN_TEXT = "Operation completed with no return value"
UNEXPECTED_ERROR_MESSAGE = "Unexpected error occurred"
UNEXPECTED_ERROR_ACTION = "Try again or contact support if the problem persists"
GENERIC_MESSAGE = "Operation completed successfully"

_PRIMITIVES = (str, int, float, complex, bool, Decimal, UUID, date, datetime, dtime, bytes, bytearray, PurePath)

# Method-name prefixes -> default success message ({type} is the result type name)
_MESSAGE_PREFIXES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("get", "find", "retrieve"), "{type} retrieved successfully"),
    (("create", "add"), "{type} created successfully"),
    (("update", "modify"), "{type} updated successfully"),
    (("delete", "remove"), "Deletion completed successfully"),
    (("calculate", "compute"), "Calculation completed successfully"),
    (("analyze", "process"), "Analysis completed successfully"),
)


def default_message(method_name: str, result_type: str) -> str:
    """Success message synthesized from the handler's name."""
    lowered = method_name.lower()
    for prefixes, template in _MESSAGE_PREFIXES:
        if lowered.startswith(prefixes):
            return template.format(type=result_type)
    return GENERIC_MESSAGE


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def object_fields(value: object) -> dict[str, Any]:
    """Declared fields of a structured object, in declaration order."""
    describe = getattr(value, "tool_fields", None)
    if callable(describe):
        return dict(describe())
    if isinstance(value, BaseModel):
        return {name: getattr(value, name) for name in type(value).model_fields}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    attrs = getattr(value, "__dict__", None)
    if attrs is not None:
        return {k: v for k, v in attrs.items() if not k.startswith("_")}
    slots = getattr(type(value), "__slots__", ())
    return {s: getattr(value, s) for s in slots if not s.startswith("_") and hasattr(value, s)}


def _non_empty(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, Sized):
        return len(value) > 0
    return True


def highlight(fields: Mapping[str, Any], names: Sequence[str]) -> str | None:
    """``"<field>: <value>"`` for the first highlight name with a non-empty value.

    Each name is tried exactly, then case-insensitively, before the next name.
    """
    lowered = {k.lower(): k for k in fields}
    for name in names:
        key = name if name in fields else lowered.get(name.lower())
        if key is not None and _non_empty(fields[key]):
            return f"{key}: {fields[key]}"
    return None


class ResponseNormalizer:
    """Converts handler outcomes into ToolResults.

    Per-handler ResponseOptions override the NormalizerSettings defaults.
    """

    __slots__ = ("_settings",)

    def __init__(self, settings: NormalizerSettings | None = None) -> None:
        self._settings = settings or get_settings().normalizer

    @property
    def settings(self) -> NormalizerSettings:
        return self._settings

    # ─────────────────────────────────────────────────────────────────
    # Success path
    # ─────────────────────────────────────────────────────────────────

    def normalize(self, value: Any, handler: HandlerMethod, options: ResponseOptions | None = None) -> ToolResult:
        if isinstance(value, ToolResult):
            return value
        try:
            return self._normalize(value, handler, options or handler.response or ResponseOptions())
        except Exception as e:  # degrade, never raise
            log.warning("normalization degraded to text", method=handler.name, error=str(e),
                        result_type=type(value).__name__)
            return ToolResult(content=(TextContent(text=_safe_str(value)),))

    def _normalize(self, value: Any, handler: HandlerMethod, opts: ResponseOptions) -> ToolResult:
        include_metadata = self._pick(opts.include_metadata, self._settings.include_metadata)
        summarize = self._pick(opts.generate_summary, self._settings.generate_summary)
        metadata: JsonDict = self._metadata(value, handler) if include_metadata else {}

        if value is None:
            return ToolResult(
                message=opts.message or f"{handler.name} completed successfully",
                content=(TextContent(text=NO_RETURN_TEXT),),
                metadata=metadata,
            )

        message = opts.message or default_message(handler.name, type_name(value))
        if isinstance(value, _PRIMITIVES) or isinstance(value, Enum):
            literal = str(value.value) if isinstance(value, Enum) else _safe_str(value)
            return ToolResult(message=message, data=value, content=(TextContent(text=literal),), metadata=metadata)

        if isinstance(value, Mapping):
            summary = self._map_summary(value)
        elif isinstance(value, Sequence | Set):
            summary = self._collection_summary(value)
        else:
            summary = self._object_summary(value, opts)

        content = ((TextContent(text=summary),) if summarize else ()) + (DataContent(data=value),)
        return ToolResult(message=message, data=value, content=content, metadata=metadata)

    @staticmethod
    def _pick(override: bool | None, default: bool) -> bool:
        return default if override is None else override

    def _map_summary(self, value: Mapping[Any, Any]) -> str:
        if not value:
            return "Empty map returned"
        n = len(value)
        return f"Map with {n} {_plural(n, 'entry', 'entries')}"

    def _collection_summary(self, value: Sequence[Any] | Set[Any]) -> str:
        if not value:
            return "Empty collection returned"
        n = len(value)
        first = next((item for item in value if item is not None), None)
        return f"Collection of {n} {type_name(first)} {_plural(n, 'item', 'items')}"

    def _object_summary(self, value: object, opts: ResponseOptions) -> str:
        fields = object_fields(value)
        n = len(fields)
        names = opts.highlight_fields if opts.highlight_fields is not None else self._settings.highlight_fields
        key_text = highlight(fields, names)
        if opts.summary_template:
            return (opts.summary_template
                    .replace("{type_name}", type_name(value))
                    .replace("{field_count}", str(n))
                    .replace("{key_fields}", key_text or ""))
        summary = type_name(value)
        if n:
            summary += f" with {n} {_plural(n, 'property', 'properties')}"
        return f"{summary}, {key_text}" if key_text else summary

    def _metadata(self, value: Any, handler: HandlerMethod) -> JsonDict:
        meta: JsonDict = {
            "executionTime": int(time.time() * 1000),
            "methodName": handler.name,
            "methodClass": handler.owner_name,
            "resultType": type_name(value),
        }
        if isinstance(value, Mapping | Sequence | Set) and not isinstance(value, _PRIMITIVES):
            meta["resultSize"] = len(value)
        return meta

    # ─────────────────────────────────────────────────────────────────
    # Error path
    # ─────────────────────────────────────────────────────────────────

    def normalize_error(self, error: BaseException, handler: HandlerMethod | None = None) -> ToolResult:
        """Structured errors keep kind/code/message and gain method context.

        Anything else becomes a ``system`` error with a generic user message;
        the original message is only kept as technical detail.
        """
        where: JsonDict = {"methodName": handler.name, "methodClass": handler.owner_name} if handler else {}
        if isinstance(error, ToolException):
            return ToolResult.failure(error.error.to_builder().with_context_map({**where, **error.error.context}))
        info = (
            ErrorInfo.system(UNEXPECTED_ERROR_MESSAGE)
            .with_technical_details(str(error) or type(error).__name__)
            .with_suggested_action(UNEXPECTED_ERROR_ACTION)
            .with_context_map(where)
            .with_context("exceptionType", type(error).__name__)
        )
        return ToolResult.failure(info)


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:  # noqa: BLE001 - __str__ of arbitrary user objects
        return f"<{type(value).__name__}>"
