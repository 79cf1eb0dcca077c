"""ToolDispatcher: the inbound boundary of the invocation pipeline.

    invoke(name, raw_arguments, raw_context) -> envelope

resolves the registered handler, binds arguments, invokes it, and normalizes
the outcome (value or failure) into the canonical envelope. The dispatcher
holds no per-call mutable state, so one instance serves concurrent calls from
threads or asyncio tasks. Configuration problems surface from ``register``,
never from ``invoke``.

Example:
    >>> dispatcher = ToolDispatcher()
    >>> dispatcher.register(AgeTool)
    >>> dispatcher.invoke("age", {"born": 1990}, {"correlationId": "c-1"})
    {'content': [{'type': 'text', 'text': 'Calculation completed successfully'}, ...]}
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from toolwire.foundation.config import ToolwireSettings, get_settings
from toolwire.foundation.content import ToolResult
from toolwire.foundation.core import ExecutionContext, ResponseOptions, ToolDescriptor, tool_info
from toolwire.foundation.errors import (
    NOT_FOUND_CODE,
    NOT_FOUND_KIND,
    ErrorInfo,
    JsonDict,
    ToolConfigurationError,
    ToolException,
)
from toolwire.runtime.observability import get_logger, log_context

from .binder import ParameterBinder
from .normalizer import ResponseNormalizer
from .resolver import HandlerMethod, build_descriptor, resolve, resolve_function
from .schema import describe, tool_definition
from .streaming import StreamSink, acknowledgment, astream_to_sink, collect_async, is_stream, stream_to_sink

log = get_logger("toolwire.dispatch")


@dataclass(frozen=True, slots=True)
class RegisteredTool:
    """A callable tool: descriptor, resolved handler and (for classes) the instance."""

    descriptor: ToolDescriptor
    handler: HandlerMethod
    instance: object | None = None
    positional: bool = False

    @property
    def name(self) -> str:
        return self.descriptor.name

    def target(self) -> Callable[..., Any]:
        return self.handler.bind(self.instance)

    def arguments(
        self, binder: ParameterBinder, raw: Mapping[str, Any] | None, context: ExecutionContext
    ) -> tuple[list[Any], dict[str, Any]]:
        """Bound ``(args, kwargs)``; explicit descriptors bind positionally."""
        specs = self.descriptor.parameters
        if self.positional:
            return binder.bind(specs, raw, context), {}
        return [], binder.bind_keywords(specs, raw, context)


class ToolDispatcher:
    """Registry of tools plus the invocation pipeline.

    Args:
        sink: Destination for streamed generator results (used only when the
            call's context has ``streaming=True``)
        binder: Parameter binder (default: ParameterBinder())
        normalizer: Response normalizer (default: built from settings)
        settings: Settings (default: the cached global settings)
    """

    __slots__ = ("_tools", "_binder", "_normalizer", "_sink", "_settings")

    def __init__(
        self,
        *,
        sink: StreamSink | None = None,
        binder: ParameterBinder | None = None,
        normalizer: ResponseNormalizer | None = None,
        settings: ToolwireSettings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._tools: dict[str, RegisteredTool] = {}
        self._binder = binder or ParameterBinder()
        self._normalizer = normalizer or ResponseNormalizer(self._settings.normalizer)
        self._sink = sink

    # ─────────────────────────────────────────────────────────────────
    # Registration
    # ─────────────────────────────────────────────────────────────────

    def register(self, tool: object) -> ToolDescriptor:
        """Register a ``@tool`` class, instance or function.

        Classes are instantiated without arguments. Raises
        ToolConfigurationError for missing metadata, zero or ambiguous
        handler methods, invalid parameters or defaults, and duplicate names.
        """
        if (info := tool_info(tool)) is None:
            raise ToolConfigurationError(f"{tool!r} is not decorated with @tool")
        instance: object | None
        if isinstance(tool, type):
            handler, instance = resolve(tool), self._instantiate(tool)
        elif inspect.isfunction(tool) or inspect.ismethod(tool):
            handler, instance = resolve_function(tool), None
        else:
            handler, instance = resolve(type(tool)), tool
        return self._add(RegisteredTool(build_descriptor(info, handler), handler, instance))

    def register_handler(
        self,
        fn: Callable[..., Any],
        descriptor: ToolDescriptor | Mapping[str, Any],
        response: ResponseOptions | None = None,
    ) -> ToolDescriptor:
        """Register a callable with an explicit descriptor.

        Arguments are bound positionally in the descriptor's parameter order.
        """
        if not callable(fn):
            raise ToolConfigurationError(f"{fn!r} is not callable")
        if not isinstance(descriptor, ToolDescriptor):
            descriptor = ToolDescriptor.from_wire(descriptor, response=response)
        handler = HandlerMethod(function=fn, response=response or descriptor.response)
        return self._add(RegisteredTool(descriptor, handler, positional=True))

    def _add(self, entry: RegisteredTool) -> ToolDescriptor:
        if entry.name in self._tools:
            raise ToolConfigurationError(f"Tool '{entry.name}' already registered. Use unregister() first.")
        self._binder.check_defaults(entry.descriptor)
        self._tools[entry.name] = entry
        log.debug("tool registered", tool=entry.name, handler=entry.handler.name,
                  parameters=len(entry.descriptor.parameters))
        return entry.descriptor

    @staticmethod
    def _instantiate(cls: type) -> object:
        try:
            return cls()
        except TypeError as e:
            raise ToolConfigurationError(
                f"Tool class {cls.__name__} needs a no-argument constructor; register an instance instead"
            ) from e

    def unregister(self, name: str) -> bool:
        """Remove a tool by name. Returns True if found."""
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> RegisteredTool | None:
        return self._tools.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[RegisteredTool]:
        return iter(self._tools.values())

    def list_tools(self) -> list[JsonDict]:
        """Tool definitions (name, description, inputSchema, examples?)."""
        return [tool_definition(t.descriptor) for t in self._tools.values()]

    def describe(self, name: str) -> JsonDict | None:
        """JSON Schema of one tool's inputs, or None if unknown."""
        entry = self._tools.get(name)
        return describe(entry.descriptor) if entry else None

    # ─────────────────────────────────────────────────────────────────
    # Invocation
    # ─────────────────────────────────────────────────────────────────

    def invoke(
        self,
        tool_name: str,
        raw_arguments: Mapping[str, Any] | None = None,
        raw_context: Mapping[str, Any] | ExecutionContext | None = None,
    ) -> JsonDict:
        """Run one call and return its wire envelope. Never raises for call-time failures."""
        return self._envelope(self.call(tool_name, raw_arguments, raw_context))

    async def ainvoke(
        self,
        tool_name: str,
        raw_arguments: Mapping[str, Any] | None = None,
        raw_context: Mapping[str, Any] | ExecutionContext | None = None,
    ) -> JsonDict:
        """Async ``invoke``: coroutine handlers are awaited, sync handlers run in a worker thread."""
        return self._envelope(await self.acall(tool_name, raw_arguments, raw_context))

    def call(
        self,
        tool_name: str,
        raw_arguments: Mapping[str, Any] | None = None,
        raw_context: Mapping[str, Any] | ExecutionContext | None = None,
    ) -> ToolResult:
        """Like ``invoke`` but returns the ToolResult."""
        context = _context(raw_context)
        if (entry := self._tools.get(tool_name)) is None:
            return self._not_found(tool_name)
        with log_context(tool=tool_name, **context.log_fields()):
            start = self._started(entry, raw_arguments)
            try:
                args, kwargs = entry.arguments(self._binder, raw_arguments, context)
                value = entry.target()(*args, **kwargs)
                if inspect.iscoroutine(value):
                    value = _run_coroutine(value)
                if is_stream(value):
                    value = self._drain(value, entry, context)
                result = self._normalizer.normalize(value, entry.handler)
            except Exception as e:
                return self._failed(entry, e, start)
            return self._finished(entry, result, start)

    async def acall(
        self,
        tool_name: str,
        raw_arguments: Mapping[str, Any] | None = None,
        raw_context: Mapping[str, Any] | ExecutionContext | None = None,
    ) -> ToolResult:
        """Async ``call``."""
        context = _context(raw_context)
        if (entry := self._tools.get(tool_name)) is None:
            return self._not_found(tool_name)
        with log_context(tool=tool_name, **context.log_fields()):
            start = self._started(entry, raw_arguments)
            try:
                args, kwargs = entry.arguments(self._binder, raw_arguments, context)
                target = entry.target()
                if entry.handler.is_async:
                    value = await target(*args, **kwargs)
                elif inspect.isasyncgenfunction(target):
                    value = target(*args, **kwargs)
                else:
                    value = await asyncio.to_thread(target, *args, **kwargs)
                    if inspect.iscoroutine(value):
                        value = await value
                if is_stream(value):
                    value = await self._adrain(value, entry, context)
                result = self._normalizer.normalize(value, entry.handler)
            except Exception as e:
                return self._failed(entry, e, start)
            return self._finished(entry, result, start)

    # ─────────────────────────────────────────────────────────────────
    # Streaming
    # ─────────────────────────────────────────────────────────────────

    def _streams_to_sink(self, context: ExecutionContext) -> bool:
        return context.streaming and self._sink is not None

    def _drain(self, items: Any, entry: RegisteredTool, context: ExecutionContext) -> Any:
        """Stream to the sink, or collect into a list for normal normalization."""
        if inspect.isasyncgen(items):
            items = _run_coroutine(collect_async(items))
        if self._streams_to_sink(context):
            assert self._sink is not None
            return acknowledgment(stream_to_sink(items, self._sink), entry.name)
        return list(items)

    async def _adrain(self, items: Any, entry: RegisteredTool, context: ExecutionContext) -> Any:
        if self._streams_to_sink(context):
            assert self._sink is not None
            return acknowledgment(await astream_to_sink(items, self._sink), entry.name)
        if inspect.isasyncgen(items):
            return await collect_async(items)
        return await asyncio.to_thread(list, items)

    # ─────────────────────────────────────────────────────────────────
    # Outcome handling
    # ─────────────────────────────────────────────────────────────────

    def _envelope(self, result: ToolResult) -> JsonDict:
        return result.to_envelope(text_only=self._settings.normalizer.text_only)

    def _started(self, entry: RegisteredTool, raw_arguments: Mapping[str, Any] | None) -> float:
        extra = {"arguments": dict(raw_arguments or {})} if self._settings.dispatch.log_arguments else {}
        log.debug("tool call started", handler=entry.handler.name, **extra)
        return time.perf_counter()

    def _finished(self, entry: RegisteredTool, result: ToolResult, start: float) -> ToolResult:
        log.info("tool call ok", handler=entry.handler.name, duration_ms=_elapsed(start),
                 content_items=len(result.content))
        return result

    def _failed(self, entry: RegisteredTool, error: Exception, start: float) -> ToolResult:
        duration = _elapsed(start)
        if isinstance(error, ToolException):
            log.warning("tool call failed", handler=entry.handler.name, duration_ms=duration,
                        kind=error.kind, code=error.code, error=error.user_message)
        else:
            log.exception("tool call raised", handler=entry.handler.name, duration_ms=duration,
                          error_type=type(error).__name__)
        return self._normalizer.normalize_error(error, entry.handler)

    def _not_found(self, tool_name: str) -> ToolResult:
        log.warning("tool not found", tool=tool_name)
        info = (
            ErrorInfo.custom(NOT_FOUND_KIND, NOT_FOUND_CODE, f"Tool '{tool_name}' not found")
            .with_context("toolName", tool_name)
            .with_suggestions(sorted(self._tools)[:10])
        )
        return ToolResult.failure(info)


def _context(raw: Mapping[str, Any] | ExecutionContext | None) -> ExecutionContext:
    return raw if isinstance(raw, ExecutionContext) else ExecutionContext.from_request(raw)


def _elapsed(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def _run_coroutine(coro: Any) -> Any:
    """Run a coroutine from sync ``call``; inside a running loop use ``acall``."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    coro.close()
    raise RuntimeError("Async handler invoked synchronously inside a running event loop; use ainvoke()")
