"""Item-by-item delivery of generator results to an injected sink.

When a handler returns a generator (sync or async), the call's context is
streaming, and the dispatcher was given a StreamSink, each produced item is
sent as a chunk as soon as it exists:

    {"type": "stream_item", "index": 0, "data": ..., "timestamp": <epoch ms>}
    {"type": "stream_complete", "count": N, "message": "...", "timestamp": ...}

A failure while producing items sends ``{"type": "stream_error", ...}`` and
re-raises, so the call still ends in an error envelope. The call itself
returns an acknowledgment result once the stream is drained.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import AsyncIterable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

from pydantic_core import PydanticSerializationError

from toolwire.foundation.content import ToolResult, to_jsonable
from toolwire.foundation.errors import JsonDict, ToolException

STREAM_COMPLETE_MESSAGE = "Stream completed successfully"
_EXHAUSTED = object()


class StreamChunkKind(StrEnum):
    ITEM = "stream_item"
    COMPLETE = "stream_complete"
    ERROR = "stream_error"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(slots=True, frozen=True)
class StreamChunk:
    """One streamed message.

    Attributes:
        kind: stream_item, stream_complete or stream_error
        data: Item payload (items only)
        index: Item sequence number, or item count on completion
        timestamp: Epoch milliseconds
        message: Completion or error text
    """

    kind: StreamChunkKind
    data: Any = None
    index: int = 0
    timestamp: int = field(default_factory=_now_ms)
    message: str | None = None

    def to_wire(self) -> JsonDict:
        wire: JsonDict = {"type": self.kind.value, "timestamp": self.timestamp}
        match self.kind:
            case StreamChunkKind.ITEM:
                wire["index"] = self.index
                try:
                    wire["data"] = to_jsonable(self.data)
                except (PydanticSerializationError, TypeError, ValueError):
                    wire["data"] = str(self.data)
            case StreamChunkKind.COMPLETE:
                wire["count"] = self.index
                wire["message"] = self.message or STREAM_COMPLETE_MESSAGE
            case StreamChunkKind.ERROR:
                wire["message"] = self.message or ""
        return wire


@runtime_checkable
class StreamSink(Protocol):
    """Destination for streamed chunks. ``send`` may be sync or a coroutine."""

    def send(self, chunk: JsonDict) -> Any: ...


def is_stream(value: Any) -> bool:
    return inspect.isgenerator(value) or inspect.isasyncgen(value)


def _error_text(error: BaseException) -> str:
    return error.user_message if isinstance(error, ToolException) else "Stream failed"


def stream_to_sink(items: Iterable[Any], sink: StreamSink) -> int:
    """Send every item of a sync iterable; returns the item count."""
    count = 0
    try:
        for item in items:
            sink.send(StreamChunk(StreamChunkKind.ITEM, data=item, index=count).to_wire())
            count += 1
    except Exception as e:
        sink.send(StreamChunk(StreamChunkKind.ERROR, index=count, message=_error_text(e)).to_wire())
        raise
    sink.send(StreamChunk(StreamChunkKind.COMPLETE, index=count).to_wire())
    return count


async def _asend(sink: StreamSink, chunk: StreamChunk) -> None:
    if inspect.isawaitable(sent := sink.send(chunk.to_wire())):
        await sent


async def astream_to_sink(items: Iterable[Any] | AsyncIterable[Any], sink: StreamSink) -> int:
    """Send every item of a sync or async iterable; awaits async sinks."""
    count = 0
    try:
        if isinstance(items, AsyncIterable):
            async for item in items:
                await _asend(sink, StreamChunk(StreamChunkKind.ITEM, data=item, index=count))
                count += 1
        else:
            # Sync items are produced off the event loop
            iterator = iter(items)
            while (item := await asyncio.to_thread(next, iterator, _EXHAUSTED)) is not _EXHAUSTED:
                await _asend(sink, StreamChunk(StreamChunkKind.ITEM, data=item, index=count))
                count += 1
    except Exception as e:
        await _asend(sink, StreamChunk(StreamChunkKind.ERROR, index=count, message=_error_text(e)))
        raise
    await _asend(sink, StreamChunk(StreamChunkKind.COMPLETE, index=count))
    return count


async def collect_async(items: AsyncIterable[Any]) -> list[Any]:
    return [item async for item in items]


def acknowledgment(count: int, tool_name: str) -> ToolResult:
    """Result returned to the caller after a stream has been drained."""
    return (
        ToolResult.builder()
        .with_message(STREAM_COMPLETE_MESSAGE)
        .add_text(f"Streamed {count} item{'' if count == 1 else 's'} from {tool_name}")
        .with_metadata("streamed", True)
        .with_metadata("itemCount", count)
        .build()
    )
