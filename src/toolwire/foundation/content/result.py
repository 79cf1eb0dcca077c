"""ToolResult: the canonical response value and its wire envelope.

A ToolResult is either a success (optional message, optional raw value,
ordered content items, metadata) or an error (one ErrorInfo). The two payloads
are mutually exclusive and this is enforced at construction.

Example:
    >>> result = (
    ...     ToolResult.builder()
    ...     .with_message("Chart rendered")
    ...     .add_text("Revenue by quarter")
    ...     .add_image(png_b64, "image/png")
    ...     .with_metadata("quarters", 4)
    ...     .build()
    ... )
    >>> result.to_envelope()["content"][1]["type"]
    'image'
"""

from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_core import to_jsonable_python

from toolwire.foundation.errors import ErrorBuilder, ErrorInfo, JsonDict, ToolException

from .items import AnyContent, ContentItem, DataContent, ErrorContent, ImageContent, TextContent

DEFAULT_SUCCESS_TEXT = "Operation completed successfully"


class ToolResult(BaseModel):
    """Outcome of one tool invocation."""

    model_config = ConfigDict(frozen=True)

    is_error: bool = False
    message: str | None = None
    data: Any = Field(default=None, repr=False)
    content: tuple[AnyContent, ...] = ()
    metadata: JsonDict = Field(default_factory=dict)
    error: ErrorInfo | None = None

    @model_validator(mode="after")
    def _check_exclusive(self) -> Self:
        if self.is_error:
            if self.error is None:
                raise ValueError("error result requires an ErrorInfo")
            if self.message is not None or self.data is not None or self.content:
                raise ValueError("error result cannot carry success payload")
        elif self.error is not None:
            raise ValueError("success result cannot carry an ErrorInfo")
        return self

    # ─────────────────────────────────────────────────────────────────
    # Construction
    # ─────────────────────────────────────────────────────────────────

    @classmethod
    def success(cls, data: Any = None, message: str | None = None) -> ToolResult:
        """Success carrying a raw value; content is derived when enveloped."""
        return cls(data=data, message=message)

    @classmethod
    def failure(cls, error: ErrorInfo | ErrorBuilder | ToolException, **metadata: Any) -> ToolResult:
        match error:
            case ToolException():
                info = error.error
            case ErrorBuilder():
                info = error.build()
            case _:
                info = error
        return cls(is_error=True, error=info, metadata=metadata)

    @classmethod
    def builder(cls) -> ToolResultBuilder:
        return ToolResultBuilder()

    @property
    def text_items(self) -> list[TextContent]:
        return [c for c in self.content if isinstance(c, TextContent)]

    @property
    def data_items(self) -> list[DataContent]:
        return [c for c in self.content if isinstance(c, DataContent)]

    # ─────────────────────────────────────────────────────────────────
    # Wire envelope
    # ─────────────────────────────────────────────────────────────────

    def to_envelope(self, *, text_only: bool = False) -> JsonDict:
        """Convert to ``{content: [...], metadata?: {...}}``.

        With ``text_only`` every data item is flattened to a text item
        (``"<TypeName>: <pretty payload>"``). That form is for display-only
        clients and loses the structured payload.
        """
        if self.is_error:
            assert self.error is not None
            return self._with_metadata({"content": [ErrorContent(error=self.error).to_wire()]})

        items: list[ContentItem] = list(self.content)
        if not items and self.data is not None:
            items.append(DataContent(data=self.data))
        if text_only:
            items = [c.to_text() if isinstance(c, DataContent) else c for c in items]
        if self.message and not any(isinstance(c, TextContent) for c in items):
            items.insert(0, TextContent(text=self.message))
        if not items:
            items.append(TextContent(text=DEFAULT_SUCCESS_TEXT))
        return self._with_metadata({"content": [c.to_wire() for c in items]})

    def _with_metadata(self, envelope: JsonDict) -> JsonDict:
        if self.metadata:
            envelope["metadata"] = to_jsonable_python(self.metadata, fallback=str)
        return envelope

    def __str__(self) -> str:
        if self.is_error:
            return f"ToolResult(error={self.error})"
        return (f"ToolResult(message={self.message!r}, data_type={type(self.data).__name__}, "
                f"content_items={len(self.content)}, metadata={sorted(self.metadata)})")


class ToolResultBuilder:
    """Mutable builder for success results, local to the code assembling one."""

    __slots__ = ("_message", "_data", "_content", "_metadata")

    def __init__(self) -> None:
        self._message: str | None = None
        self._data: Any = None
        self._content: list[ContentItem] = []
        self._metadata: JsonDict = {}

    def with_message(self, message: str | None) -> Self:
        self._message = message
        return self

    def with_data(self, data: Any) -> Self:
        self._data = data
        return self

    def add_text(self, text: str) -> Self:
        self._content.append(TextContent(text=text))
        return self

    def add_data(self, data: Any, data_type: str | None = None) -> Self:
        self._content.append(DataContent(data=data, data_type=data_type or ""))
        return self

    def add_image(self, base64_data: str | None, mime_type: str | None = None) -> Self:
        self._content.append(ImageContent(data=base64_data or "", mime_type=mime_type or "image/png"))
        return self

    def add_content(self, item: ContentItem) -> Self:
        self._content.append(item)
        return self

    def with_metadata(self, key: str, value: Any) -> Self:
        self._metadata[key] = value
        return self

    def build(self) -> ToolResult:
        return ToolResult(
            message=self._message,
            data=self._data,
            content=tuple(self._content),
            metadata=dict(self._metadata),
        )
