"""Tests for content items, ToolResult and the wire envelope."""

from __future__ import annotations

from dataclasses import dataclass

import pytest
from pydantic import BaseModel, ValidationError

from toolwire.foundation.content import (
    DEFAULT_SUCCESS_TEXT,
    DataContent,
    ImageContent,
    TextContent,
    ToolResult,
)
from toolwire.foundation.errors import ErrorInfo, ToolException


@dataclass
class Point:
    x: int
    y: int


class Order(BaseModel):
    id: int
    total: float


class Opaque:
    __slots__ = ("secret",)

    def __init__(self) -> None:
        self.secret = 1

    def __str__(self) -> str:
        return "Opaque<1>"


class SelfDescribing:
    def tool_type_name(self) -> str:
        return "Invoice"

    def tool_fields(self) -> dict[str, object]:
        return {"number": "INV-7", "paid": False}


# ═════════════════════════════════════════════════════════════════════════════
# Content Items
# ═════════════════════════════════════════════════════════════════════════════


def test_text_and_image_wire_shapes() -> None:
    assert TextContent(text="hi").to_wire() == {"type": "text", "text": "hi"}
    assert ImageContent(data="aGk=", mime_type="image/jpeg").to_wire() == {
        "type": "image", "data": "aGk=", "mimeType": "image/jpeg",
    }


def test_data_type_inferred_from_payload() -> None:
    assert DataContent(data=Point(1, 2)).data_type == "Point"
    assert DataContent(data=[1, 2]).data_type == "list"
    assert DataContent(data=None).data_type == "null"
    assert DataContent(data=SelfDescribing()).data_type == "Invoice"
    assert DataContent(data={}, data_type="Custom").data_type == "Custom"


def test_data_wire_converts_structured_values() -> None:
    assert DataContent(data=Point(1, 2)).to_wire() == {"type": "data", "dataType": "Point", "data": {"x": 1, "y": 2}}
    assert DataContent(data=Order(id=3, total=9.5)).to_wire()["data"] == {"id": 3, "total": 9.5}
    assert DataContent(data=SelfDescribing()).to_wire()["data"] == {"number": "INV-7", "paid": False}


def test_data_wire_falls_back_to_string() -> None:
    """Unserializable payloads keep a string form plus the failure reason."""
    wire = DataContent(data=Opaque()).to_wire()
    assert wire["data"] == "Opaque<1>"
    assert "serializationError" in wire


def test_item_metadata_is_copy_on_write() -> None:
    item = TextContent(text="hi")
    tagged = item.with_metadata("lang", "en")
    assert item.metadata == {}
    assert tagged.to_wire() == {"type": "text", "text": "hi", "metadata": {"lang": "en"}}


def test_data_to_text_pretty_prints() -> None:
    text = DataContent(data={"a": 1}).to_text().text
    assert text.startswith("dict: {")
    assert '"a": 1' in text


def test_items_are_frozen() -> None:
    item = TextContent(text="x")
    with pytest.raises(ValidationError):
        item.text = "y"  # type: ignore[misc]


# ═════════════════════════════════════════════════════════════════════════════
# ToolResult
# ═════════════════════════════════════════════════════════════════════════════


def test_error_and_success_payloads_are_exclusive() -> None:
    info = ErrorInfo.business("No").build()
    with pytest.raises(ValidationError):
        ToolResult(is_error=True, error=info, message="also ok")
    with pytest.raises(ValidationError):
        ToolResult(error=info)
    with pytest.raises(ValidationError):
        ToolResult(is_error=True)


def test_failure_accepts_every_error_form() -> None:
    builder = ErrorInfo.permission("Denied")
    for source in (builder, builder.build(), ToolException(builder.build())):
        result = ToolResult.failure(source)
        assert result.is_error
        assert result.error is not None and result.error.code == -32000


def test_builder_preserves_content_order() -> None:
    result = (
        ToolResult.builder()
        .with_message("Chart rendered")
        .add_text("Revenue")
        .add_image("aGk=", "image/png")
        .add_data([1, 2, 3])
        .with_metadata("quarters", 4)
        .build()
    )
    assert [c.type for c in result.content] == ["text", "image", "data"]
    assert result.metadata == {"quarters": 4}
    assert len(result.text_items) == 1 and len(result.data_items) == 1


# ═════════════════════════════════════════════════════════════════════════════
# Envelope
# ═════════════════════════════════════════════════════════════════════════════


def test_envelope_success_without_content_uses_default_text() -> None:
    assert ToolResult().to_envelope() == {"content": [{"type": "text", "text": DEFAULT_SUCCESS_TEXT}]}


def test_envelope_inserts_message_when_no_text_item() -> None:
    envelope = ToolResult.success({"k": "v"}, message="Loaded").to_envelope()
    assert envelope["content"] == [
        {"type": "text", "text": "Loaded"},
        {"type": "data", "dataType": "dict", "data": {"k": "v"}},
    ]


def test_envelope_keeps_existing_text_over_message() -> None:
    result = ToolResult.builder().with_message("ignored").add_text("summary").build()
    assert result.to_envelope()["content"] == [{"type": "text", "text": "summary"}]


def test_envelope_error_has_single_error_item() -> None:
    result = ToolResult.failure(ErrorInfo.validation("Bad").with_suggestions("fix it"), attempt=2)
    envelope = result.to_envelope()
    assert envelope["content"] == [{
        "type": "error", "errorType": "validation", "userMessage": "Bad", "errorCode": -32602,
        "suggestions": ["fix it"],
    }]
    assert envelope["metadata"] == {"attempt": 2}


def test_envelope_text_only_flattens_data() -> None:
    result = ToolResult.builder().add_text("Map with 1 entry").add_data({"a": 1}).build()
    content = result.to_envelope(text_only=True)["content"]
    assert [c["type"] for c in content] == ["text", "text"]
    assert content[1]["text"].startswith("dict: ")


def test_envelope_metadata_is_json_safe() -> None:
    result = ToolResult(metadata={"point": Point(1, 2), "n": 3})
    assert result.to_envelope()["metadata"] == {"point": {"x": 1, "y": 2}, "n": 3}
