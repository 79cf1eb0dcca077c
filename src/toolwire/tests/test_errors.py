"""Tests for the error model: kinds, codes, builder and carrier exception."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from toolwire.foundation.content import ErrorContent
from toolwire.foundation.errors import (
    DEFAULT_CODES,
    ErrorInfo,
    ErrorKind,
    ParameterValidationError,
    ToolException,
    default_code,
)


# ═════════════════════════════════════════════════════════════════════════════
# Kinds & Codes
# ═════════════════════════════════════════════════════════════════════════════


def test_default_codes_are_distinct() -> None:
    """Each built-in kind has its own default code."""
    assert len(set(DEFAULT_CODES.values())) == 4
    assert ErrorInfo.validation("x").build().code == -32602
    assert ErrorInfo.business("x").build().code == -32001
    assert ErrorInfo.system("x").build().code == -32603
    assert ErrorInfo.permission("x").build().code == -32000


def test_custom_kind_uses_explicit_or_fallback_code() -> None:
    info = ErrorInfo.custom("rate_limited", 429, "Slow down").build()
    assert (info.kind, info.code, info.is_custom) == ("rate_limited", 429, True)
    assert ErrorInfo.custom("quota", None, "Over quota").build().code == default_code(ErrorKind.SYSTEM)


def test_error_info_is_immutable() -> None:
    info = ErrorInfo.business("Nope").build()
    with pytest.raises(ValidationError):
        info.user_message = "changed"  # type: ignore[misc]


# ═════════════════════════════════════════════════════════════════════════════
# Builder
# ═════════════════════════════════════════════════════════════════════════════


def test_builder_returns_new_values() -> None:
    """with_* never mutates the receiver."""
    base = ErrorInfo.validation("Bad input")
    augmented = base.with_technical_details("field x").with_suggested_action("Fix x")
    assert base.technical_message is None
    assert augmented.technical_message == "field x"
    assert augmented.suggested_action == "Fix x"


def test_builder_suggestions_accumulate_in_order() -> None:
    info = (
        ErrorInfo.business("Quantity exceeds stock")
        .with_suggestions("try 5", "try 10")
        .with_suggestions(["try 1"])
        .build()
    )
    assert info.suggestions == ("try 5", "try 10", "try 1")


def test_builder_context_later_keys_win() -> None:
    info = (
        ErrorInfo.system("Down")
        .with_context("region", "eu")
        .with_context_map({"region": "us", "attempt": 2})
        .build()
    )
    assert info.context == {"region": "us", "attempt": 2}


def test_to_builder_round_trip_keeps_fields() -> None:
    info = ErrorInfo.permission("Denied").with_suggestions("ask admin").with_context("user", "u1").build()
    again = info.to_builder().with_code(-1).build()
    assert again.suggestions == ("ask admin",)
    assert again.context == {"user": "u1"}
    assert again.code == -1
    assert info.code == -32000


def test_render_includes_action_and_suggestions() -> None:
    text = ErrorInfo.business("Out of stock").with_suggested_action("Reduce quantity").with_suggestions("try 5").build().render()
    assert text.splitlines() == [
        "[business:-32001] Out of stock",
        "Suggested action: Reduce quantity",
        "Suggestions: try 5",
    ]


# ═════════════════════════════════════════════════════════════════════════════
# Carrier exception
# ═════════════════════════════════════════════════════════════════════════════


def test_exception_with_methods_copy_on_write() -> None:
    original = ToolException.business("Quantity exceeds stock")
    derived = original.with_suggestions("try 5", "try 10").with_context("sku", "A-113")
    assert original.suggestions == ()
    assert original.context == {}
    assert derived.suggestions == ("try 5", "try 10")
    assert derived.context == {"sku": "A-113"}
    assert derived is not original


def test_exception_preserves_cause_across_copies() -> None:
    cause = ConnectionError("refused")
    exc = ToolException.system_with_cause("Backend unavailable", cause).with_context("host", "db1")
    assert exc.__cause__ is cause
    assert exc.technical_message == "refused"
    assert exc.kind == "system"


def test_convenience_factories() -> None:
    v = ToolException.validation_with_suggestions("Bad date", "use YYYY-MM-DD")
    b = ToolException.business_with_action("Card declined", "Use another card")
    assert (v.kind, v.suggestions) == ("validation", ("use YYYY-MM-DD",))
    assert (b.kind, b.suggested_action) == ("business", "Use another card")
    assert str(b) == "Card declined"


def test_builder_to_exception_raises_with_info() -> None:
    with pytest.raises(ToolException) as info:
        raise ErrorInfo.permission("Forbidden").with_context("role", "guest").to_exception()
    assert info.value.code == -32000
    assert info.value.context == {"role": "guest"}


def test_parameter_validation_error_names_parameter() -> None:
    exc = ParameterValidationError.create("age", "Parameter 'age' value -1 is below minimum 0", value=-1, minimum=0)
    assert exc.parameter == "age"
    assert exc.kind == ErrorKind.VALIDATION
    assert exc.context == {"parameter": "age", "value": -1, "minimum": 0}
    copied = exc.with_suggestions("use 0")
    assert isinstance(copied, ParameterValidationError)
    assert copied.parameter == "age"


# ═════════════════════════════════════════════════════════════════════════════
# Wire shape
# ═════════════════════════════════════════════════════════════════════════════


def test_error_content_omits_empty_optional_fields() -> None:
    wire = ErrorContent(error=ErrorInfo.system("Down").build()).to_wire()
    assert wire == {"type": "error", "errorType": "system", "userMessage": "Down", "errorCode": -32603}


def test_error_content_full_shape() -> None:
    info = (
        ErrorInfo.business("Quantity exceeds stock")
        .with_technical_details("stock=3")
        .with_suggested_action("Lower the quantity")
        .with_suggestions("try 2", "try 3")
        .with_context("sku", "A-113")
        .build()
    )
    wire = ErrorContent(error=info).to_wire()
    assert wire["technicalMessage"] == "stock=3"
    assert wire["suggestedAction"] == "Lower the quantity"
    assert wire["suggestions"] == ["try 2", "try 3"]
    assert wire["context"] == {"sku": "A-113"}
