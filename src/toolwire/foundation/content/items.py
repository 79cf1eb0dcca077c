"""Typed content fragments of a tool response.

Each item is an immutable pydantic model with a ``type`` discriminator and a
``to_wire()`` conversion to the envelope's JSON shape:

    {"type": "text", "text": ...}
    {"type": "data", "dataType": ..., "data": ...}
    {"type": "image", "data": <base64>, "mimeType": ...}
    {"type": "error", "errorType": ..., "userMessage": ..., "errorCode": ..., ...}
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

import orjson
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_core import PydanticSerializationError, to_jsonable_python

from toolwire.foundation.errors import ErrorInfo, JsonDict


def type_name(value: object) -> str:
    """Short runtime type name used in summaries and ``dataType``."""
    if value is None:
        return "null"
    describe = getattr(value, "tool_type_name", None)
    if callable(describe):
        return str(describe())
    return type(value).__name__


def to_jsonable(value: object) -> Any:
    """Convert an arbitrary payload into JSON-safe values.

    Pydantic models, dataclasses, mappings and sequences are converted
    structurally. Plain objects fall back to their public attributes.
    Raises TypeError (or PydanticSerializationError) when nothing fits.
    """
    if not isinstance(value, type) and callable(getattr(value, "tool_fields", None)):
        return to_jsonable_python(dict(value.tool_fields()), fallback=_object_fallback)
    return to_jsonable_python(value, fallback=_object_fallback)


def _object_fallback(value: object) -> Any:
    attrs = getattr(value, "__dict__", None)
    if attrs is None:
        raise TypeError(f"Unable to serialize unknown type: {type(value).__name__}")
    return {k: v for k, v in attrs.items() if not k.startswith("_")}


class ContentItem(BaseModel):
    """Base for all content fragments."""

    model_config = ConfigDict(frozen=True)

    type: str
    metadata: JsonDict = Field(default_factory=dict, repr=False)

    def with_metadata(self, key: str, value: Any) -> ContentItem:
        """Return a copy with one metadata entry added."""
        return self.model_copy(update={"metadata": {**self.metadata, key: value}})

    def to_wire(self) -> JsonDict:
        raise NotImplementedError

    def _finish(self, wire: JsonDict) -> JsonDict:
        if self.metadata:
            wire["metadata"] = to_jsonable_python(self.metadata, fallback=str)
        return wire


class TextContent(ContentItem):
    """Plain text."""

    type: Literal["text"] = "text"
    text: str = ""

    def to_wire(self) -> JsonDict:
        return self._finish({"type": self.type, "text": self.text})

    def __str__(self) -> str:
        return self.text


class DataContent(ContentItem):
    """Structured payload: models, mappings, collections, plain objects."""

    type: Literal["data"] = "data"
    data: Any = None
    data_type: str = ""

    @model_validator(mode="before")
    @classmethod
    def _infer_data_type(cls, values: Any) -> Any:
        if isinstance(values, dict) and not values.get("data_type"):
            return {**values, "data_type": type_name(values.get("data"))}
        return values

    def to_wire(self) -> JsonDict:
        wire: JsonDict = {"type": self.type, "dataType": self.data_type}
        try:
            wire["data"] = to_jsonable(self.data)
        except (PydanticSerializationError, TypeError, ValueError) as e:
            wire["data"] = str(self.data)
            wire["serializationError"] = str(e)
        return self._finish(wire)

    def to_text(self) -> TextContent:
        """Display-only rendering: ``"<TypeName>: <pretty-printed payload>"``."""
        try:
            payload = to_jsonable(self.data)
            pretty = payload if isinstance(payload, str) else orjson.dumps(
                payload, option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS
            ).decode()
        except (PydanticSerializationError, TypeError, ValueError, orjson.JSONEncodeError):
            pretty = str(self.data)
        return TextContent(text=f"{self.data_type}: {pretty}", metadata=self.metadata)


class ImageContent(ContentItem):
    """Base64-encoded image."""

    type: Literal["image"] = "image"
    data: str = ""
    mime_type: str = "image/png"

    def to_wire(self) -> JsonDict:
        return self._finish({"type": self.type, "data": self.data, "mimeType": self.mime_type})


class ErrorContent(ContentItem):
    """Structured error fragment. Optional fields are omitted when empty."""

    type: Literal["error"] = "error"
    error: ErrorInfo

    def to_wire(self) -> JsonDict:
        err = self.error
        wire: JsonDict = {
            "type": self.type,
            "errorType": err.kind,
            "userMessage": err.user_message,
            "errorCode": err.code,
        }
        if err.technical_message:
            wire["technicalMessage"] = err.technical_message
        if err.suggested_action:
            wire["suggestedAction"] = err.suggested_action
        if err.suggestions:
            wire["suggestions"] = list(err.suggestions)
        if err.context:
            wire["context"] = to_jsonable_python(err.context, fallback=str)
        return self._finish(wire)


AnyContent = Annotated[
    Union[TextContent, DataContent, ImageContent, ErrorContent],
    Field(discriminator="type"),
]


def text(value: str, **metadata: Any) -> TextContent:
    return TextContent(text=value, metadata=metadata)


def data(value: Any, data_type: str | None = None, **metadata: Any) -> DataContent:
    return DataContent(data=value, data_type=data_type or "", metadata=metadata)


def image(base64_data: str | None, mime_type: str | None = None, **metadata: Any) -> ImageContent:
    return ImageContent(data=base64_data or "", mime_type=mime_type or "image/png", metadata=metadata)


def error(info: ErrorInfo, **metadata: Any) -> ErrorContent:
    return ErrorContent(error=info, metadata=metadata)
