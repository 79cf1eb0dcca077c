"""Tests for the testing helpers and stream chunk primitives."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated

import pytest

from toolwire.foundation.content import ToolResult
from toolwire.foundation.core import ExecutionContext, Param, tool, tool_method
from toolwire.foundation.errors import ToolException
from toolwire.foundation.testing import EnvelopeAssert, RecordingSink, ToolHarness
from toolwire.runtime.dispatch import StreamChunk, StreamChunkKind, acknowledgment, stream_to_sink


@tool(description="Greets people")
class GreeterTool:
    @tool_method(message="Greeted")
    def greet(self, name: Annotated[str, Param("Name", pattern=r"[A-Z][a-z]+")]) -> str:
        return f"Hello, {name}!"


@tool(description="Emits letters", streaming=True)
class LettersTool:
    @tool_method
    def letters(self, word: Annotated[str, Param("Word")]) -> Iterator[str]:
        yield from word


def _failing() -> Iterator[int]:
    yield 0
    raise ToolException.business("Out of letters")


# ═════════════════════════════════════════════════════════════════════════════
# ToolHarness
# ═════════════════════════════════════════════════════════════════════════════


def test_harness_call_success() -> None:
    harness = ToolHarness(GreeterTool)
    harness.call("greeter", {"name": "Ada"}).assert_success().assert_content_contains("Hello, Ada!")


def test_harness_call_validation_error() -> None:
    (ToolHarness(GreeterTool)
        .call("greeter", {"name": "ada"})
        .assert_error_type("validation")
        .assert_error_contains("does not match pattern"))


def test_harness_streaming_uses_recording_sink() -> None:
    harness = ToolHarness(LettersTool)
    harness.call("letters", {"word": "abc"}, streaming=True).assert_success()
    assert harness.sink.items == ["a", "b", "c"]
    assert harness.sink.completed


def test_harness_call_with_prebuilt_context() -> None:
    harness = ToolHarness(LettersTool)
    harness.call_with("letters", {"word": "hi"}, ExecutionContext(streaming=True))
    assert harness.sink.items == ["h", "i"]
    harness.sink.clear()
    assert harness.sink.chunks == []


@pytest.mark.asyncio
async def test_harness_acall() -> None:
    check = await ToolHarness(GreeterTool).acall("greeter", {"name": "Grace"})
    check.assert_success().assert_content_count(1)


# ═════════════════════════════════════════════════════════════════════════════
# EnvelopeAssert
# ═════════════════════════════════════════════════════════════════════════════


def test_envelope_assert_failures_are_descriptive() -> None:
    ok = EnvelopeAssert(ToolResult.success({"a": 1}).to_envelope())
    ok.assert_success().assert_has_data()
    with pytest.raises(AssertionError, match="Expected an error envelope"):
        ok.assert_error()
    with pytest.raises(AssertionError, match="No text item contains"):
        ok.assert_content_contains("missing")

    failed = EnvelopeAssert(ToolResult.failure(ToolException.permission("Denied")).to_envelope())
    failed.assert_error_code(-32000)
    with pytest.raises(AssertionError, match="Expected success"):
        failed.assert_success()
    with pytest.raises(AssertionError, match="'business'"):
        failed.assert_error_type("business")


# ═════════════════════════════════════════════════════════════════════════════
# Stream chunks
# ═════════════════════════════════════════════════════════════════════════════


def test_chunk_wire_shapes() -> None:
    item = StreamChunk(StreamChunkKind.ITEM, data={"k": 1}, index=4, timestamp=10).to_wire()
    done = StreamChunk(StreamChunkKind.COMPLETE, index=5, timestamp=11).to_wire()
    assert item == {"type": "stream_item", "timestamp": 10, "index": 4, "data": {"k": 1}}
    assert done == {"type": "stream_complete", "timestamp": 11, "count": 5, "message": "Stream completed successfully"}


def test_stream_to_sink_reports_failure_then_reraises() -> None:
    sink = RecordingSink()
    with pytest.raises(ToolException):
        stream_to_sink(_failing(), sink)
    assert [c["type"] for c in sink.chunks] == ["stream_item", "stream_error"]
    assert sink.chunks[-1]["message"] == "Out of letters"


def test_acknowledgment_pluralizes() -> None:
    assert acknowledgment(1, "letters").text_items[0].text == "Streamed 1 item from letters"
    assert acknowledgment(0, "letters").metadata == {"streamed": True, "itemCount": 0}
