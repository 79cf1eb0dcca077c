"""Tool descriptors and the declarative decorators that feed them.

Example:
    >>> @tool(description="Age calculator")
    ... class AgeTool:
    ...     @tool_method(message="Age computed", highlight_fields=("years",))
    ...     def calculate(self, born: Annotated[int, Param(min=1900, max=2100)]) -> dict:
    ...         return {"years": 2024 - born}
    >>> AgeTool.__toolwire_tool__.name
    'age'
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Self, TypeVar, overload

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from toolwire.foundation.errors import JsonDict, ToolConfigurationError

from .params import ParameterSpec

T = TypeVar("T")

TOOL_ATTR = "__toolwire_tool__"
METHOD_ATTR = "__toolwire_method__"
RESPONSE_ATTR = "__toolwire_response__"

_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_.-]*$")


class ToolExample(BaseModel):
    """Usage example listed in the tool definition."""

    model_config = ConfigDict(frozen=True)

    description: str
    input: JsonDict = Field(default_factory=dict)
    expected_output: Any = None

    def to_wire(self) -> JsonDict:
        wire: JsonDict = {"description": self.description, "input": self.input}
        if self.expected_output is not None:
            wire["expectedOutput"] = self.expected_output
        return wire


class ResponseOptions(BaseModel):
    """How a handler's return value is normalized.

    ``None`` for ``include_metadata``/``generate_summary``/``highlight_fields``
    means "use the configured default" (see NormalizerSettings).

    summary_template placeholders: ``{type_name}``, ``{field_count}``, ``{key_fields}``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    message: str | None = None
    include_metadata: bool | None = None
    generate_summary: bool | None = None
    summary_template: str | None = None
    highlight_fields: tuple[str, ...] | None = None
    description: str = ""
    content_types: tuple[str, ...] = ()


class ToolDescriptor(BaseModel):
    """Identity and parameter list of a tool. Built once at registration."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: Annotated[str, Field(min_length=1)]
    parameters: tuple[ParameterSpec, ...] = ()
    streaming: bool = False
    tags: tuple[str, ...] = ()
    examples: tuple[ToolExample, ...] = ()
    response: ResponseOptions | None = None

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        if not _NAME_PATTERN.match(v):
            raise ValueError(f"invalid tool name {v!r}")
        return v

    @model_validator(mode="after")
    def _unique_parameters(self) -> Self:
        seen: set[str] = set()
        for spec in self.parameters:
            if spec.name in seen:
                raise ValueError(f"duplicate parameter '{spec.name}'")
            seen.add(spec.name)
        return self

    @property
    def input_parameters(self) -> tuple[ParameterSpec, ...]:
        """Parameters supplied by the caller (context injection excluded)."""
        return tuple(p for p in self.parameters if not p.is_context)

    def parameter(self, name: str) -> ParameterSpec | None:
        return next((p for p in self.parameters if p.name == name), None)

    def to_wire(self) -> JsonDict:
        wire: JsonDict = {
            "name": self.name,
            "description": self.description,
            "parameters": [p.to_wire() for p in self.input_parameters],
        }
        if self.streaming:
            wire["streaming"] = True
        if self.tags:
            wire["tags"] = list(self.tags)
        return wire

    @classmethod
    def from_wire(cls, raw: Mapping[str, Any], *, response: ResponseOptions | None = None) -> ToolDescriptor:
        """Parse ``{name, description, parameters: [...]}`` metadata."""
        try:
            return cls(
                name=raw["name"],
                description=raw.get("description", ""),
                parameters=tuple(ParameterSpec.from_wire(p) for p in raw.get("parameters", ())),
                streaming=bool(raw.get("streaming", False)),
                tags=tuple(raw.get("tags", ())),
                examples=tuple(ToolExample.model_validate(e) for e in raw.get("examples", ())),
                response=response,
            )
        except (KeyError, ValueError) as e:
            raise ToolConfigurationError(f"Invalid tool metadata: {e}") from e


# ═══════════════════════════════════════════════════════════════════════════════
# Decorators
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ToolInfo:
    """Class-level metadata recorded by ``@tool``."""

    name: str
    description: str
    streaming: bool = False
    tags: tuple[str, ...] = ()
    examples: tuple[ToolExample, ...] = ()


def default_tool_name(obj: Any) -> str:
    """``WeatherTool`` -> ``weather``; functions keep their own name."""
    name = obj.__name__
    if isinstance(obj, type):
        name = name.lower()
        if name.endswith("tool") and len(name) > 4:
            name = name[:-4]
    return name


def _examples(examples: Iterable[ToolExample | Mapping[str, Any]]) -> tuple[ToolExample, ...]:
    return tuple(e if isinstance(e, ToolExample) else ToolExample.model_validate(e) for e in examples)


def tool(
    name: str | None = None,
    *,
    description: str,
    streaming: bool = False,
    tags: Iterable[str] = (),
    examples: Iterable[ToolExample | Mapping[str, Any]] = (),
) -> Callable[[T], T]:
    """Declare a class (or a plain function) as a tool.

    On a class, exactly one method is the handler (see ``tool_method``). On a
    function, the function itself is the handler.

    Args:
        name: Tool name (default: lower-cased class name without ``tool`` suffix)
        description: What the tool does; required and non-empty
        streaming: Whether the tool produces streamed results
        tags: Free-form tags for discovery
        examples: ToolExample values or dicts with the same keys
    """
    if not description or not description.strip():
        raise ToolConfigurationError("Tool description is required")
    parsed = _examples(examples)

    def decorator(obj: T) -> T:
        if not callable(obj):
            raise ToolConfigurationError(f"@tool cannot decorate {obj!r}")
        setattr(obj, TOOL_ATTR, ToolInfo(
            name=name or default_tool_name(obj),
            description=description.strip(),
            streaming=streaming,
            tags=tuple(tags),
            examples=parsed,
        ))
        return obj

    return decorator


def _attach(fn: Callable[..., Any], options: dict[str, Any]) -> None:
    if not options:
        return
    try:
        setattr(fn, RESPONSE_ATTR, ResponseOptions(**options))
    except ValueError as e:
        raise ToolConfigurationError(f"Invalid response options on {fn.__qualname__}: {e}") from e


@overload
def tool_method(fn: Callable[..., T], /) -> Callable[..., T]: ...
@overload
def tool_method(fn: None = None, /, **options: Any) -> Callable[[Callable[..., T]], Callable[..., T]]: ...


def tool_method(fn: Callable[..., Any] | None = None, /, **options: Any) -> Any:
    """Mark a method as the tool's entry point; keyword options become ResponseOptions.

    Usable bare (``@tool_method``) or with options (``@tool_method(message="Done")``).
    """
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        setattr(func, METHOD_ATTR, True)
        _attach(func, options)
        return func

    return decorator(fn) if fn is not None else decorator


def tool_response(**options: Any) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Attach ResponseOptions without marking the entry point."""
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        _attach(func, options)
        return func

    return decorator


def tool_info(obj: Any) -> ToolInfo | None:
    """ToolInfo recorded on a class, instance or function, if any."""
    info = getattr(obj, TOOL_ATTR, None)
    return info if isinstance(info, ToolInfo) else None


def response_options(fn: Callable[..., Any]) -> ResponseOptions | None:
    opts = getattr(fn, RESPONSE_ATTR, None)
    return opts if isinstance(opts, ResponseOptions) else None
