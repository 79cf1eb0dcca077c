"""Structured error values, their builder, and the carrier exception.

ErrorInfo is immutable. Handler code builds one progressively through the
ErrorBuilder (each ``with_*`` returns a new builder) or directly through
ToolException, whose ``with_*`` methods return a new exception.

Example:
    >>> raise (
    ...     ToolException.business("Quantity exceeds stock")
    ...     .with_suggestions("try 5", "try 10")
    ...     .with_context("sku", "A-113")
    ... )
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Annotated, Any, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .types import DEFAULT_CODES, ErrorKind, JsonDict, default_code

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


def _flatten(items: tuple[str | Iterable[str], ...]) -> tuple[str, ...]:
    """Accept both ``with_suggestions("a", "b")`` and ``with_suggestions(["a", "b"])``."""
    out: list[str] = []
    for item in items:
        if isinstance(item, str):
            out.append(item)
        else:
            out.extend(str(s) for s in item)
    return tuple(out)


class ErrorInfo(BaseModel):
    """Structured error reported to the caller.

    Attributes:
        kind: validation, business, system, permission, or a custom tag
        code: Numeric error code (kind default unless overridden)
        user_message: Safe, caller-facing message
        technical_message: Diagnostic detail (never shown as user_message)
        suggested_action: Single recommended next step
        suggestions: Ordered list of alternatives to try
        context: Free-form key/value context
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        json_schema_extra={
            "title": "Error Info",
            "examples": [{
                "kind": "validation",
                "code": -32602,
                "user_message": "Required parameter 'a' is missing",
                "context": {"parameter": "a"},
            }],
        },
    )

    kind: Annotated[str, Field(min_length=1)]
    code: int
    user_message: str
    technical_message: str | None = Field(default=None, repr=False)
    suggested_action: str | None = None
    suggestions: tuple[str, ...] = ()
    context: JsonDict = Field(default_factory=dict, repr=False)

    @computed_field
    @property
    def is_custom(self) -> bool:
        """Whether the kind is a custom tag rather than a built-in kind."""
        return self.kind not in DEFAULT_CODES

    # ─────────────────────────────────────────────────────────────────
    # Factories (each returns a builder)
    # ─────────────────────────────────────────────────────────────────

    @classmethod
    def validation(cls, message: str) -> ErrorBuilder:
        return ErrorBuilder(ErrorKind.VALIDATION.value, DEFAULT_CODES[ErrorKind.VALIDATION], message)

    @classmethod
    def business(cls, message: str) -> ErrorBuilder:
        return ErrorBuilder(ErrorKind.BUSINESS.value, DEFAULT_CODES[ErrorKind.BUSINESS], message)

    @classmethod
    def system(cls, message: str) -> ErrorBuilder:
        return ErrorBuilder(ErrorKind.SYSTEM.value, DEFAULT_CODES[ErrorKind.SYSTEM], message)

    @classmethod
    def permission(cls, message: str) -> ErrorBuilder:
        return ErrorBuilder(ErrorKind.PERMISSION.value, DEFAULT_CODES[ErrorKind.PERMISSION], message)

    @classmethod
    def custom(cls, kind: str, code: int | None, message: str) -> ErrorBuilder:
        """Builder for an arbitrary kind tag. ``code=None`` uses the kind's default."""
        return ErrorBuilder(str(kind), default_code(kind) if code is None else code, message)

    def to_builder(self) -> ErrorBuilder:
        """Re-open this value for further augmentation."""
        return ErrorBuilder(
            kind=self.kind,
            code=self.code,
            user_message=self.user_message,
            technical_message=self.technical_message,
            suggested_action=self.suggested_action,
            suggestions=self.suggestions,
            context=dict(self.context),
        )

    def render(self) -> str:
        """Format for logs and plain-text display."""
        parts = [f"[{self.kind}:{self.code}] {self.user_message}"]
        if self.suggested_action:
            parts.append(f"Suggested action: {self.suggested_action}")
        if self.suggestions:
            parts.append("Suggestions: " + "; ".join(self.suggestions))
        return "\n".join(parts)

    __str__ = render


@dataclass(frozen=True, slots=True)
class ErrorBuilder:
    """Immutable builder for ErrorInfo. Later context keys overwrite earlier ones."""

    kind: str
    code: int
    user_message: str
    technical_message: str | None = None
    suggested_action: str | None = None
    suggestions: tuple[str, ...] = ()
    context: JsonDict = field(default_factory=dict)

    def with_technical_details(self, details: str | None) -> ErrorBuilder:
        return replace(self, technical_message=details)

    def with_suggested_action(self, action: str | None) -> ErrorBuilder:
        return replace(self, suggested_action=action)

    def with_suggestions(self, *suggestions: str | Iterable[str]) -> ErrorBuilder:
        return replace(self, suggestions=(*self.suggestions, *_flatten(suggestions)))

    def with_context(self, key: str, value: Any) -> ErrorBuilder:
        return replace(self, context={**self.context, key: value})

    def with_context_map(self, context: Mapping[str, Any]) -> ErrorBuilder:
        return replace(self, context={**self.context, **context})

    def with_code(self, code: int) -> ErrorBuilder:
        return replace(self, code=code)

    def build(self) -> ErrorInfo:
        return ErrorInfo(
            kind=self.kind,
            code=self.code,
            user_message=self.user_message,
            technical_message=self.technical_message,
            suggested_action=self.suggested_action,
            suggestions=self.suggestions,
            context=dict(self.context),
        )

    def to_exception(self) -> ToolException:
        """Finalize and wrap in a raisable carrier."""
        return ToolException(self.build())


# ═══════════════════════════════════════════════════════════════════════════════
# Exceptions
# ═══════════════════════════════════════════════════════════════════════════════


class ToolException(Exception):
    """Exception carrying one finalized ErrorInfo.

    ``with_*`` methods never mutate: they return a new exception holding a new
    ErrorInfo, keeping the original cause.
    """

    __slots__ = ("error",)

    def __init__(self, error: ErrorInfo) -> None:
        self.error = error
        super().__init__(error.user_message)

    @classmethod
    def validation(cls, message: str) -> ToolException:
        return ToolException(ErrorInfo.validation(message).build())

    @classmethod
    def business(cls, message: str) -> ToolException:
        return ToolException(ErrorInfo.business(message).build())

    @classmethod
    def system(cls, message: str) -> ToolException:
        return ToolException(ErrorInfo.system(message).build())

    @classmethod
    def permission(cls, message: str) -> ToolException:
        return ToolException(ErrorInfo.permission(message).build())

    @classmethod
    def custom(cls, kind: str, code: int | None, message: str) -> ToolException:
        return ToolException(ErrorInfo.custom(kind, code, message).build())

    @classmethod
    def validation_with_suggestions(cls, message: str, *suggestions: str) -> ToolException:
        return cls.validation(message).with_suggestions(*suggestions)

    @classmethod
    def business_with_action(cls, message: str, action: str) -> ToolException:
        return cls.business(message).with_suggested_action(action)

    @classmethod
    def system_with_cause(cls, message: str, cause: BaseException) -> ToolException:
        return cls.system(message).with_cause(cause).with_technical_details(str(cause))

    # ─────────────────────────────────────────────────────────────────
    # Copy-on-write augmentation
    # ─────────────────────────────────────────────────────────────────

    def _copy_with(self, error: ErrorInfo) -> Self:
        derived = type(self)(error)
        derived.__cause__ = self.__cause__
        return derived

    def with_technical_details(self, details: str | None) -> Self:
        return self._copy_with(self.error.to_builder().with_technical_details(details).build())

    def with_suggested_action(self, action: str | None) -> Self:
        return self._copy_with(self.error.to_builder().with_suggested_action(action).build())

    def with_suggestions(self, *suggestions: str | Iterable[str]) -> Self:
        return self._copy_with(self.error.to_builder().with_suggestions(*suggestions).build())

    def with_context(self, key: str, value: Any) -> Self:
        return self._copy_with(self.error.to_builder().with_context(key, value).build())

    def with_code(self, code: int) -> Self:
        return self._copy_with(self.error.to_builder().with_code(code).build())

    def with_cause(self, cause: BaseException) -> Self:
        derived = self._copy_with(self.error)
        derived.__cause__ = cause
        return derived

    # ─────────────────────────────────────────────────────────────────
    # Accessors
    # ─────────────────────────────────────────────────────────────────

    @property
    def kind(self) -> str:
        return self.error.kind

    @property
    def code(self) -> int:
        return self.error.code

    @property
    def user_message(self) -> str:
        return self.error.user_message

    @property
    def technical_message(self) -> str | None:
        return self.error.technical_message

    @property
    def suggested_action(self) -> str | None:
        return self.error.suggested_action

    @property
    def suggestions(self) -> tuple[str, ...]:
        return self.error.suggestions

    @property
    def context(self) -> JsonDict:
        return dict(self.error.context)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!r}, code={self.code}, message={self.user_message!r})"


class ParameterValidationError(ToolException):
    """Validation failure attributable to one named parameter."""

    __slots__ = ()

    @classmethod
    def create(cls, parameter: str, message: str, **context: Any) -> ParameterValidationError:
        builder = ErrorInfo.validation(message).with_context("parameter", parameter).with_context_map(context)
        return cls(builder.build())

    @property
    def parameter(self) -> str | None:
        return self.error.context.get("parameter")


class ToolConfigurationError(Exception):
    """Tool metadata is unusable. Raised at registration, never at call time."""
