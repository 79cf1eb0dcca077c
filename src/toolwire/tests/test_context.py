"""Tests for ExecutionContext construction, derivation and diagnostics."""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import FrozenInstanceError
from datetime import UTC, datetime

import pytest

from toolwire.foundation.core import ExecutionContext


# ═════════════════════════════════════════════════════════════════════════════
# Construction
# ═════════════════════════════════════════════════════════════════════════════


def test_from_request_accepts_camel_and_snake_case() -> None:
    camel = ExecutionContext.from_request({"correlationId": "c-1", "sessionId": "s-1", "requestId": 7})
    snake = ExecutionContext.from_request({"correlation_id": "c-1", "session_id": "s-1", "request_id": 7})
    assert (camel.correlation_id, camel.session_id, camel.request_id) == ("c-1", "s-1", 7)
    assert (snake.correlation_id, snake.session_id, snake.request_id) == ("c-1", "s-1", 7)


def test_from_request_parses_streaming_and_start_time() -> None:
    ctx = ExecutionContext.from_request({"streaming": "TRUE", "startTime": 1_700_000_000_000})
    assert ctx.streaming is True
    assert ctx.start_time == datetime.fromtimestamp(1_700_000_000, tz=UTC)


def test_from_request_start_time_fallbacks() -> None:
    """Unparseable start times fall back to now; naive ones are read as UTC."""
    before = datetime.now(UTC)
    assert ExecutionContext.from_request({"startTime": "yesterday"}).start_time >= before

    naive = ExecutionContext.from_request({"startTime": "2024-05-01T12:00:00"})
    assert naive.start_time == datetime(2024, 5, 1, 12, tzinfo=UTC)
    assert naive.elapsed_ms > 0
    assert naive.metrics()["durationMs"] > 0
    assert "duration=" in naive.format()
    assert ExecutionContext(start_time=datetime(2024, 5, 1, 12)).start_time.tzinfo is UTC


def test_from_request_ignores_unknown_and_null_fields() -> None:
    ctx = ExecutionContext.from_request({"unknown": 1, "sessionId": None})
    assert ctx.session_id is None
    assert ExecutionContext.from_request(None).streaming is False


def test_context_is_immutable() -> None:
    ctx = ExecutionContext(attributes={"a": 1})
    with pytest.raises(FrozenInstanceError):
        ctx.correlation_id = "x"  # type: ignore[misc]
    with pytest.raises(TypeError):
        ctx.attributes["b"] = 2  # type: ignore[index]


def test_caller_dict_mutation_does_not_leak() -> None:
    attrs = {"tenant": "acme"}
    ctx = ExecutionContext(attributes=attrs)
    attrs["tenant"] = "other"
    assert ctx.get_attribute("tenant") == "acme"


# ═════════════════════════════════════════════════════════════════════════════
# Derivation
# ═════════════════════════════════════════════════════════════════════════════


def test_with_attribute_returns_new_context() -> None:
    base = ExecutionContext(correlation_id="c-1")
    derived = base.with_attribute("tenant", "acme")
    assert derived.get_attribute("tenant") == "acme"
    assert base.get_attribute("tenant") is None
    assert derived.correlation_id == "c-1"


def test_with_attributes_union_new_values_win() -> None:
    base = ExecutionContext(attributes={"a": 1, "b": 2})
    derived = base.with_attributes({"b": 3, "c": 4})
    assert dict(derived.attributes) == {"a": 1, "b": 3, "c": 4}
    assert dict(base.attributes) == {"a": 1, "b": 2}
    assert base.with_attributes({}) is base


def test_concurrent_derivations_from_shared_base_are_isolated() -> None:
    """Two threads deriving from one base never see each other's attributes."""
    base = ExecutionContext(correlation_id="shared", attributes={"origin": "base"})
    barrier = threading.Barrier(2)

    def derive(key: str) -> ExecutionContext:
        barrier.wait()
        ctx = base
        for i in range(200):
            ctx = ctx.with_attribute(f"{key}{i}", i)
        return ctx

    with ThreadPoolExecutor(max_workers=2) as pool:
        left, right = pool.map(derive, ["a", "b"])

    assert left.get_attribute("a199") == 199 and left.get_attribute("b0") is None
    assert right.get_attribute("b199") == 199 and right.get_attribute("a0") is None
    assert dict(base.attributes) == {"origin": "base"}


@pytest.mark.asyncio
async def test_concurrent_task_derivations_are_isolated() -> None:
    base = ExecutionContext(correlation_id="shared")

    async def derive(key: str) -> ExecutionContext:
        ctx = base.with_attribute("owner", key)
        await asyncio.sleep(0)
        return ctx.with_attribute(key, True)

    first, second = await asyncio.gather(derive("x"), derive("y"))
    assert first.get_attribute("owner") == "x" and first.get_attribute("y") is None
    assert second.get_attribute("owner") == "y" and second.get_attribute("x") is None
    assert base.attributes == {}


# ═════════════════════════════════════════════════════════════════════════════
# Diagnostics
# ═════════════════════════════════════════════════════════════════════════════


def test_log_fields_skip_unset_ids() -> None:
    ctx = ExecutionContext(correlation_id="c-1", method="tools/call")
    assert ctx.log_fields() == {"correlation_id": "c-1", "method": "tools/call", "streaming": False}


def test_format_and_metrics() -> None:
    ctx = ExecutionContext(correlation_id="c-1", session_id="s-1", streaming=True)
    assert ctx.format().startswith("ExecutionContext{correlation_id='c-1', session_id='s-1', duration=")
    metrics = ctx.metrics(tool="age")
    assert metrics["correlationId"] == "c-1"
    assert metrics["sessionId"] == "s-1"
    assert metrics["streaming"] is True
    assert metrics["tool"] == "age"
    assert metrics["durationMs"] >= 0
    assert "method" not in metrics
