"""Method resolution: find the single handler method of a tool.

A tool class designates its handler either explicitly (``@tool_method``) or
implicitly as the only method whose parameters carry ``Param`` metadata.
Zero or several candidates is a ToolConfigurationError, raised when the tool
is registered. Results are cached per class; concurrent first population is
safe because ``dict.setdefault`` keeps the first stored value.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from toolwire.foundation.core import (
    METHOD_ATTR,
    ResponseOptions,
    ToolDescriptor,
    ToolInfo,
    has_param_metadata,
    parameters_from_signature,
    response_options,
)
from toolwire.foundation.errors import ToolConfigurationError


@dataclass(frozen=True, slots=True)
class HandlerMethod:
    """The resolved entry point of a tool.

    ``function`` is the plain (unbound) function. ``owner`` is the tool class,
    or None for function tools and explicit handlers.
    """

    function: Callable[..., Any]
    owner: type | None = None
    response: ResponseOptions | None = None

    @property
    def name(self) -> str:
        return self.function.__name__

    @property
    def owner_name(self) -> str:
        if self.owner is not None:
            return self.owner.__name__
        if (bound_to := getattr(self.function, "__self__", None)) is not None:
            return type(bound_to).__name__
        return self.function.__module__.rpartition(".")[2]

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.function)

    @property
    def is_generator(self) -> bool:
        return inspect.isgeneratorfunction(self.function) or inspect.isasyncgenfunction(self.function)

    def bind(self, instance: object | None) -> Callable[..., Any]:
        """Callable ready for argument application."""
        if self.owner is None or instance is None:
            return self.function
        return self.function.__get__(instance, self.owner)


_CACHE: dict[type, HandlerMethod] = {}


def _candidates(cls: type) -> dict[str, Callable[..., Any]]:
    """Public functions visible on ``cls``; subclasses shadow bases."""
    found: dict[str, Callable[..., Any]] = {}
    for klass in cls.__mro__:
        if klass is object:
            continue
        for name, member in vars(klass).items():
            if name in found or name.startswith("_"):
                continue
            if isinstance(member, staticmethod | classmethod):
                continue
            if inspect.isfunction(member):
                found[name] = member
    return found


def _resolve_uncached(cls: type) -> HandlerMethod:
    methods = _candidates(cls)
    marked = [fn for fn in methods.values() if getattr(fn, METHOD_ATTR, False)]
    if len(marked) > 1:
        names = ", ".join(sorted(fn.__name__ for fn in marked))
        raise ToolConfigurationError(f"Tool {cls.__name__} marks several handler methods: {names}")
    if not marked:
        marked = [fn for fn in methods.values() if has_param_metadata(fn)]
        if len(marked) > 1:
            names = ", ".join(sorted(fn.__name__ for fn in marked))
            raise ToolConfigurationError(
                f"Tool {cls.__name__} has several methods with parameter metadata ({names}); "
                "mark the entry point with @tool_method"
            )
    if not marked:
        raise ToolConfigurationError(
            f"Tool {cls.__name__} has no handler method; mark one with @tool_method"
        )
    fn = marked[0]
    return HandlerMethod(function=fn, owner=cls, response=response_options(fn))


def resolve(cls: type) -> HandlerMethod:
    """Resolve (and cache) the handler method of a tool class."""
    if (cached := _CACHE.get(cls)) is not None:
        return cached
    return _CACHE.setdefault(cls, _resolve_uncached(cls))


def resolve_function(fn: Callable[..., Any]) -> HandlerMethod:
    """Handler for a function tool: the function itself."""
    if not callable(fn) or isinstance(fn, type):
        raise ToolConfigurationError(f"{fn!r} is not a function")
    return HandlerMethod(function=fn, response=response_options(fn))


_DESCRIPTORS: dict[Any, ToolDescriptor] = {}


def build_descriptor(info: ToolInfo, handler: HandlerMethod) -> ToolDescriptor:
    """Registration-time descriptor for a decorated tool, cached per tool object."""
    key = handler.owner or handler.function
    if (cached := _DESCRIPTORS.get(key)) is not None and cached.name == info.name:
        return cached
    try:
        descriptor = ToolDescriptor(
            name=info.name,
            description=info.description,
            parameters=parameters_from_signature(handler.function),
            streaming=info.streaming,
            tags=info.tags,
            examples=info.examples,
            response=handler.response,
        )
    except ValueError as e:
        raise ToolConfigurationError(f"Invalid tool '{info.name}': {e}") from e
    return descriptor if cached is not None else _DESCRIPTORS.setdefault(key, descriptor)


def clear_cache() -> None:
    _CACHE.clear()
    _DESCRIPTORS.clear()
