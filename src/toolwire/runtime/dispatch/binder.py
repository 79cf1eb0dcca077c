"""Parameter binding: untyped argument map -> typed, validated argument list.

Per declared parameter, in declaration order:

1. ``context`` parameters receive the ExecutionContext, no lookup.
2. Otherwise ``arguments[name]`` is looked up; a missing (or null) value is
   an error when required, falls back to the parsed default literal when
   one exists, and binds ``None`` otherwise.
3. The value is coerced to the parameter's tag, then checked against
   min/max, the allowed-values set, and the full-match pattern.

Binding is fail-fast: the first failure raises ParameterValidationError and
the handler is never invoked. Argument keys with no declared parameter are
ignored.
"""

from __future__ import annotations

import dataclasses
import math
import re
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

import orjson
from pydantic import BaseModel, ValidationError

from toolwire.foundation.content import to_jsonable
from toolwire.foundation.core import ExecutionContext, ParameterSpec, ParamType, ToolDescriptor
from toolwire.foundation.errors import ParameterValidationError, ToolConfigurationError

_TRUE, _FALSE = "true", "false"


def _num(value: float | int) -> int | float:
    """Render whole floats without a trailing ``.0`` in messages."""
    return int(value) if isinstance(value, float) and value.is_integer() else value


def _mismatch(name: str, expected: str, raw: Any) -> ParameterValidationError:
    return ParameterValidationError.create(
        name,
        f"Parameter '{name}' expects {expected}, got {raw!r}",
        value=repr(raw),
        expected=expected,
    )


def coerce_value(tag: ParamType | None, raw: Any, name: str, *, items: ParamType | None = None) -> Any:
    """Coerce ``raw`` to ``tag``. Unknown tags pass the value through unchanged."""
    match tag:
        case ParamType.STRING:
            if isinstance(raw, str):
                return raw
            if isinstance(raw, Enum):
                return str(raw.value)
            if isinstance(raw, bool):
                return _TRUE if raw else _FALSE
            if isinstance(raw, Mapping | list | tuple):
                return orjson.dumps(to_jsonable(raw)).decode()
            return str(raw)
        case ParamType.INTEGER:
            if isinstance(raw, bool):
                raise _mismatch(name, "integer", raw)
            if isinstance(raw, int):
                return raw
            if isinstance(raw, float):
                if not math.isfinite(raw):
                    raise _mismatch(name, "integer", raw)
                return int(raw)  # truncates toward zero
            if isinstance(raw, str):
                try:
                    return int(raw.strip())
                except ValueError:
                    raise _mismatch(name, "integer", raw) from None
            raise _mismatch(name, "integer", raw)
        case ParamType.FLOAT:
            if isinstance(raw, bool):
                raise _mismatch(name, "number", raw)
            if isinstance(raw, int | float):
                value = float(raw)
            elif isinstance(raw, str):
                try:
                    value = float(raw.strip())
                except ValueError:
                    raise _mismatch(name, "number", raw) from None
            else:
                raise _mismatch(name, "number", raw)
            if not math.isfinite(value):
                raise _mismatch(name, "number", raw)
            return value
        case ParamType.BOOLEAN:
            if isinstance(raw, bool):
                return raw
            if isinstance(raw, str) and raw.strip().lower() in (_TRUE, _FALSE):
                return raw.strip().lower() == _TRUE
            raise _mismatch(name, "boolean", raw)
        case ParamType.ARRAY:
            if isinstance(raw, str | bytes | Mapping) or not isinstance(raw, Sequence | set | frozenset):
                raise _mismatch(name, "array", raw)
            if items is None:
                return list(raw)
            return [coerce_value(items, item, f"{name}[{i}]") for i, item in enumerate(raw)]
        case _:
            return raw


class ParameterBinder:
    """Stateless binder; one instance may serve concurrent calls."""

    __slots__ = ()

    def bind(
        self,
        specs: Sequence[ParameterSpec],
        arguments: Mapping[str, Any] | None,
        context: ExecutionContext,
    ) -> list[Any]:
        """Produce the positional argument list for the handler (fail-fast)."""
        arguments = arguments or {}
        return [context if spec.is_context else self.bind_one(spec, arguments) for spec in specs]

    def bind_keywords(
        self,
        specs: Sequence[ParameterSpec],
        arguments: Mapping[str, Any] | None,
        context: ExecutionContext,
    ) -> dict[str, Any]:
        """Like ``bind`` but keyed by the handler's own parameter names."""
        values = self.bind(specs, arguments, context)
        return {spec.argument or spec.name: value for spec, value in zip(specs, values, strict=True)}

    def bind_one(self, spec: ParameterSpec, arguments: Mapping[str, Any]) -> Any:
        raw = arguments.get(spec.name)
        if raw is None:
            if spec.required:
                raise ParameterValidationError.create(spec.name, f"Required parameter '{spec.name}' is missing")
            if not spec.has_default:
                return None
            raw = self.parse_default(spec)
        value = self.coerce(spec, raw)
        self.validate(spec, value)
        return self.convert(spec, value)

    # ─────────────────────────────────────────────────────────────────
    # Steps
    # ─────────────────────────────────────────────────────────────────

    def parse_default(self, spec: ParameterSpec) -> Any:
        """Parse a default literal. Array/object string literals are JSON."""
        default = spec.default
        if isinstance(default, str) and spec.type in (ParamType.ARRAY, ParamType.OBJECT):
            try:
                return orjson.loads(default)
            except orjson.JSONDecodeError as e:
                raise ParameterValidationError.create(
                    spec.name, f"Default of parameter '{spec.name}' is not valid JSON: {e}", value=default
                ) from e
        return default

    def coerce(self, spec: ParameterSpec, raw: Any) -> Any:
        if spec.type is ParamType.OBJECT:
            return self._coerce_object(spec, raw)
        return coerce_value(spec.type, raw, spec.name, items=spec.items)

    def _coerce_object(self, spec: ParameterSpec, raw: Any) -> Any:
        target = spec.python_type
        if not isinstance(target, type) or isinstance(raw, target):
            return raw
        if issubclass(target, BaseModel):
            try:
                return target.model_validate(raw)
            except ValidationError as e:
                raise ParameterValidationError.create(
                    spec.name, f"Parameter '{spec.name}' is not a valid {target.__name__}: {e.error_count()} error(s)",
                    errors=[err["msg"] for err in e.errors()],
                ) from e
        if dataclasses.is_dataclass(target) and isinstance(raw, Mapping):
            try:
                return target(**raw)
            except TypeError as e:
                raise ParameterValidationError.create(
                    spec.name, f"Parameter '{spec.name}' is not a valid {target.__name__}: {e}"
                ) from e
        return raw

    def validate(self, spec: ParameterSpec, value: Any) -> None:
        name = spec.name
        if spec.type in (ParamType.INTEGER, ParamType.FLOAT):
            if spec.minimum is not None and value < spec.minimum:
                raise ParameterValidationError.create(
                    name, f"Parameter '{name}' value {value} is below minimum {_num(spec.minimum)}",
                    value=value, minimum=spec.minimum,
                )
            if spec.maximum is not None and value > spec.maximum:
                raise ParameterValidationError.create(
                    name, f"Parameter '{name}' value {value} exceeds maximum {_num(spec.maximum)}",
                    value=value, maximum=spec.maximum,
                )
        if spec.type is ParamType.STRING and isinstance(value, str):
            if spec.enum_values and value not in spec.enum_values:
                raise ParameterValidationError.create(
                    name, f"Parameter '{name}' value '{value}' is not one of: [{', '.join(spec.enum_values)}]",
                    value=value, allowed=list(spec.enum_values),
                )
            if spec.pattern and re.fullmatch(spec.pattern, value) is None:
                raise ParameterValidationError.create(
                    name, f"Parameter '{name}' does not match pattern: {spec.pattern}",
                    value=value, pattern=spec.pattern,
                )

    def convert(self, spec: ParameterSpec, value: Any) -> Any:
        """Turn a validated value into the annotated Python type (enum member, tuple, set)."""
        target = spec.python_type
        if not isinstance(target, type):
            return value
        if issubclass(target, Enum):
            return next((m for m in target if m.value == value or str(m.value) == value), value)
        if spec.type is ParamType.ARRAY and issubclass(target, tuple | set | frozenset):
            return target(value)
        return value

    # ─────────────────────────────────────────────────────────────────
    # Registration-time checks
    # ─────────────────────────────────────────────────────────────────

    def check_defaults(self, descriptor: ToolDescriptor) -> None:
        """Every default literal must parse, coerce and validate."""
        for spec in descriptor.parameters:
            if not spec.has_default or spec.is_context:
                continue
            try:
                self.validate(spec, self.coerce(spec, self.parse_default(spec)))
            except ParameterValidationError as e:
                raise ToolConfigurationError(
                    f"Tool '{descriptor.name}': invalid default for parameter '{spec.name}': {e.user_message}"
                ) from e
