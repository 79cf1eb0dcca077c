"""Parameter metadata: the closed type-tag set, ParameterSpec, and the Param marker.

Handler parameters are described with ``typing.Annotated`` and a ``Param``
marker. The ParameterSpec list of a tool is derived once, at registration, from the
handler's signature and type hints.

Example:
    >>> def calculate(
    ...     self,
    ...     age: Annotated[int, Param(description="Age in years", min=0, max=150, default="0")],
    ...     unit: Annotated[str, Param(enum_values=("years", "months"))] = "years",
    ...     ctx: ExecutionContext | None = None,
    ... ) -> int: ...
    >>> [s.type for s in parameters_from_signature(calculate)]
    [<ParamType.INTEGER: 'integer'>, <ParamType.STRING: 'string'>, <ParamType.CONTEXT: 'context'>]
"""

from __future__ import annotations

import dataclasses
import inspect
import re
import types
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum, StrEnum
from typing import Annotated, Any, Self, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from toolwire.foundation.errors import JsonDict, ToolConfigurationError

from .context import ExecutionContext


class ParamType(StrEnum):
    """Closed set of target type tags used by binding and schema generation."""
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    CONTEXT = "context"


# Wire-format type names accepted by ParameterSpec.from_wire
_TYPE_ALIASES: dict[str, ParamType] = {
    "str": ParamType.STRING,
    "int": ParamType.INTEGER,
    "long": ParamType.INTEGER,
    "number": ParamType.FLOAT,
    "double": ParamType.FLOAT,
    "bool": ParamType.BOOLEAN,
    "list": ParamType.ARRAY,
    "map": ParamType.OBJECT,
    "dict": ParamType.OBJECT,
}


class ParameterSpec(BaseModel):
    """Declarative description of one tool input.

    ``default`` is a literal (usually a string such as ``"0"`` or ``"[1, 2]"``)
    parsed as the target type at bind time. ``python_type`` carries the
    annotated enum, model or container type for post-coercion conversion;
    ``argument`` is the handler's own parameter name when ``name`` overrides it.
    Neither appears on the wire.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: Annotated[str, Field(min_length=1)]
    type: ParamType = ParamType.STRING
    description: str = ""
    required: bool = True
    default: Any = None
    minimum: float | None = None
    maximum: float | None = None
    enum_values: tuple[str, ...] = ()
    pattern: str | None = None
    items: ParamType | None = None
    python_type: Any = Field(default=None, exclude=True, repr=False)
    argument: str | None = Field(default=None, exclude=True, repr=False)

    @field_validator("pattern")
    @classmethod
    def _check_pattern(cls, v: str | None) -> str | None:
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"invalid pattern {v!r}: {e}") from e
        return v

    @model_validator(mode="after")
    def _check_invariants(self) -> Self:
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            raise ValueError(f"minimum {self.minimum} exceeds maximum {self.maximum}")
        if self.required and self.default is not None:
            raise ValueError("a required parameter cannot declare a default")
        if self.type is not ParamType.STRING and (self.enum_values or self.pattern):
            raise ValueError(f"enum values and pattern apply to string parameters, not {self.type.value}")
        return self

    @property
    def has_default(self) -> bool:
        return self.default is not None

    @property
    def is_context(self) -> bool:
        return self.type is ParamType.CONTEXT

    def to_wire(self) -> JsonDict:
        """Declarative metadata shape: ``{name, type, description, required, default?, ...}``."""
        wire: JsonDict = {
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "required": self.required,
        }
        if self.default is not None:
            wire["default"] = self.default
        if self.minimum is not None:
            wire["min"] = self.minimum
        if self.maximum is not None:
            wire["max"] = self.maximum
        if self.enum_values:
            wire["enumValues"] = list(self.enum_values)
        if self.pattern:
            wire["pattern"] = self.pattern
        if self.items is not None:
            wire["items"] = self.items.value
        return wire

    @classmethod
    def from_wire(cls, raw: Mapping[str, Any]) -> ParameterSpec:
        """Parse the declarative metadata shape (camelCase keys)."""
        kind = str(raw.get("type", ParamType.STRING)).lower()
        items = raw.get("items")
        return cls(
            name=raw["name"],
            type=_TYPE_ALIASES.get(kind, kind),
            description=raw.get("description", ""),
            required=raw.get("required", True),
            default=raw.get("default"),
            minimum=raw.get("min", raw.get("minimum")),
            maximum=raw.get("max", raw.get("maximum")),
            enum_values=tuple(raw.get("enumValues", raw.get("enum_values", ())) or ()),
            pattern=raw.get("pattern") or None,
            items=_TYPE_ALIASES.get(str(items).lower(), items) if items else None,
        )


@dataclass(frozen=True, slots=True)
class Param:
    """Marker carried inside ``Annotated[...]`` on a handler parameter.

    ``required=None`` derives required-ness from the signature: a parameter
    without a Python default and without ``default`` is required.
    """

    description: str = ""
    name: str | None = None
    required: bool | None = None
    default: Any = None
    min: float | None = None
    max: float | None = None
    enum_values: tuple[str, ...] = ()
    pattern: str | None = None
    items: ParamType | None = None


# ─────────────────────────────────────────────────────────────────────────────
# Type hint mapping
# ─────────────────────────────────────────────────────────────────────────────

_ARRAY_TYPES = (list, tuple, set, frozenset)


def tag_for(hint: Any) -> tuple[ParamType, ParamType | None, Any]:
    """Map a type hint to ``(tag, element tag, python type)``.

    Optional[X] maps like X. ``bool`` is checked before ``int`` and enums before
    ``str``. Anything unrecognized maps to ``object`` and is passed through.
    """
    if hint is inspect.Parameter.empty or hint is Any:
        return ParamType.STRING, None, None
    origin = get_origin(hint)
    if origin is Annotated:
        return tag_for(get_args(hint)[0])
    if origin in (Union, types.UnionType):
        args = [a for a in get_args(hint) if a is not type(None)]
        return tag_for(args[0]) if len(args) == 1 else (ParamType.OBJECT, None, None)
    if origin is not None:
        args = get_args(hint)
        if isinstance(origin, type) and (issubclass(origin, _ARRAY_TYPES) or (
            issubclass(origin, Sequence) and not issubclass(origin, str)
        )):
            element = tag_for(args[0])[0] if args and args[0] is not Ellipsis else None
            return ParamType.ARRAY, element, origin if origin in (tuple, set, frozenset) else None
        return ParamType.OBJECT, None, None
    if not isinstance(hint, type):
        return ParamType.OBJECT, None, None
    if issubclass(hint, ExecutionContext):
        return ParamType.CONTEXT, None, None
    if issubclass(hint, bool):
        return ParamType.BOOLEAN, None, None
    if issubclass(hint, Enum):
        return ParamType.STRING, None, hint
    if issubclass(hint, int):
        return ParamType.INTEGER, None, None
    if issubclass(hint, float):
        return ParamType.FLOAT, None, None
    if issubclass(hint, str):
        return ParamType.STRING, None, None
    if issubclass(hint, _ARRAY_TYPES):
        return ParamType.ARRAY, None, hint if hint is not list else None
    if issubclass(hint, BaseModel) or dataclasses.is_dataclass(hint):
        return ParamType.OBJECT, None, hint
    return ParamType.OBJECT, None, None


# ─────────────────────────────────────────────────────────────────────────────
# Docstring Parsing
# ─────────────────────────────────────────────────────────────────────────────

_PARAM_PATTERN = re.compile(
    r"^\s*(?P<name>\w+)\s*(?:\([^)]*\))?\s*:\s*(?P<desc>.+?)(?=\n\s*\w+\s*(?:\([^)]*\))?\s*:|\Z)",
    re.MULTILINE | re.DOTALL,
)


def _parse_docstring_params(docstring: str | None) -> dict[str, str]:
    """Extract parameter descriptions from a Google style ``Args:`` section."""
    if not docstring:
        return {}
    sections = re.split(r"\n\s*(?:Args|Arguments|Parameters)\s*:\s*\n", docstring, flags=re.IGNORECASE)
    if len(sections) < 2:
        return {}
    args_section = re.split(r"\n\s*(?:Returns|Raises|Examples?|Notes?|Yields)\s*:", sections[1], flags=re.IGNORECASE)[0]
    return {m.group("name"): " ".join(m.group("desc").split()) for m in _PARAM_PATTERN.finditer(args_section)}


# ─────────────────────────────────────────────────────────────────────────────
# Signature -> specs
# ─────────────────────────────────────────────────────────────────────────────


def _marker(hint: Any) -> Param | None:
    if get_origin(hint) is Annotated:
        return next((m for m in get_args(hint)[1:] if isinstance(m, Param)), None)
    return None


def has_param_metadata(fn: Callable[..., Any]) -> bool:
    """Whether any parameter of ``fn`` carries a Param marker."""
    try:
        hints = get_type_hints(fn, include_extras=True)
    except (NameError, TypeError):
        hints = getattr(fn, "__annotations__", {})
    return any(_marker(h) is not None for k, h in hints.items() if k != "return")


def _spec_default(param: inspect.Parameter, marker: Param | None) -> Any:
    if marker is not None and marker.default is not None:
        return marker.default
    if param.default is inspect.Parameter.empty or param.default is None:
        return None
    if isinstance(param.default, Enum):
        return param.default.value
    return param.default


def parameters_from_signature(fn: Callable[..., Any]) -> tuple[ParameterSpec, ...]:
    """Derive the ParameterSpec list of a handler, in declaration order.

    ``self``/``cls`` and ``*args``/``**kwargs`` are skipped. Raises
    ToolConfigurationError when hints cannot be resolved or a spec is invalid.
    """
    try:
        hints = get_type_hints(fn, include_extras=True)
    except (NameError, TypeError) as e:
        raise ToolConfigurationError(f"Cannot resolve type hints of {fn.__qualname__}: {e}") from e
    docs = _parse_docstring_params(inspect.getdoc(fn))
    specs: list[ParameterSpec] = []
    for index, (pname, param) in enumerate(inspect.signature(fn).parameters.items()):
        if index == 0 and pname in ("self", "cls"):
            continue
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        hint = hints.get(pname, inspect.Parameter.empty)
        marker = _marker(hint)
        tag, element, python_type = tag_for(hint)
        if marker is not None and marker.items is not None:
            element = marker.items
        default = _spec_default(param, marker)
        if tag is ParamType.CONTEXT:
            required = False
        elif marker is not None and marker.required is not None:
            required = marker.required
        else:
            required = default is None and param.default is inspect.Parameter.empty
        enum_values = marker.enum_values if marker and marker.enum_values else ()
        if not enum_values and isinstance(python_type, type) and issubclass(python_type, Enum):
            enum_values = tuple(str(m.value) for m in python_type)
        try:
            specs.append(ParameterSpec(
                name=(marker.name if marker and marker.name else pname),
                type=tag,
                description=(marker.description if marker and marker.description else docs.get(pname, "")),
                required=required,
                default=default,
                minimum=marker.min if marker else None,
                maximum=marker.max if marker else None,
                enum_values=enum_values,
                pattern=marker.pattern if marker else None,
                items=element,
                python_type=python_type,
                argument=pname,
            ))
        except ValueError as e:
            raise ToolConfigurationError(f"Invalid parameter '{pname}' on {fn.__qualname__}: {e}") from e
    return tuple(specs)
