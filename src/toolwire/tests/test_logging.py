"""Tests for structured logging and scoped context."""

from __future__ import annotations

import asyncio
import io

import orjson
import pytest

from toolwire.foundation.config import LoggingSettings
from toolwire.runtime.observability import (
    ConsoleRenderer,
    JsonRenderer,
    MemoryRenderer,
    NoOpRenderer,
    configure_from_settings,
    configure_logging,
    current_context,
    get_logger,
    log_context,
)


def test_bind_is_immutable(log_records: MemoryRenderer) -> None:
    base = get_logger("svc")
    bound = base.bind(user="u1").bind_tool("age")
    base.info("plain")
    bound.info("bound")
    plain, rich = log_records.entries
    assert plain.context == {"logger": "svc"}
    assert rich.context == {"logger": "svc", "user": "u1", "tool": "age"}
    assert bound.unbind("user").context == {"logger": "svc", "tool": "age"}


def test_log_context_scopes_fields(log_records: MemoryRenderer) -> None:
    log = get_logger()
    with log_context(correlation_id="c-1"):
        with log_context(tool="age"):
            assert current_context() == {"correlation_id": "c-1", "tool": "age"}
            log.info("inner", step=2)
        log.info("outer")
    log.info("after")
    inner, outer, after = log_records.entries
    assert inner.context == {"correlation_id": "c-1", "tool": "age", "step": 2}
    assert outer.context == {"correlation_id": "c-1"}
    assert after.context == {}


@pytest.mark.asyncio
async def test_log_context_isolated_between_tasks() -> None:
    async def scoped(cid: str) -> dict[str, object]:
        with log_context(correlation_id=cid):
            await asyncio.sleep(0)
            return current_context()

    first, second = await asyncio.gather(scoped("a"), scoped("b"))
    assert first == {"correlation_id": "a"}
    assert second == {"correlation_id": "b"}


def test_level_filtering() -> None:
    renderer = MemoryRenderer()
    configure_logging(level="warning", renderer=renderer)
    log = get_logger("svc")
    log.info("hidden")
    log.warning("shown")
    assert renderer.events() == ["shown"]
    assert renderer.entries[0].level == "warning"


def test_correlation_fields_can_be_dropped() -> None:
    renderer = MemoryRenderer()
    configure_logging(renderer=renderer, include_correlation_id=False)
    with log_context(correlation_id="c-1", tool="age"):
        get_logger().info("call")
    assert renderer.entries[0].context == {"tool": "age"}


def test_exception_captures_traceback(log_records: MemoryRenderer) -> None:
    try:
        raise ValueError("bad")
    except ValueError:
        get_logger().exception("failed", op="parse")
    entry = log_records.entries[0]
    assert entry.level == "error"
    assert "ValueError: bad" in entry.context["exc_info"]


def test_json_renderer_writes_json_lines() -> None:
    out = io.StringIO()
    configure_logging(format="json", output=out)
    get_logger("svc").info("tool call ok", duration_ms=1.5, payload=object())
    record = orjson.loads(out.getvalue().splitlines()[0])
    assert record["event"] == "tool call ok"
    assert record["level"] == "info"
    assert record["duration_ms"] == 1.5
    assert record["logger"] == "svc"
    assert "timestamp" in record


def test_console_renderer_plain_output() -> None:
    out = io.StringIO()
    configure_logging(renderer=ConsoleRenderer(output=out, colors=False, show_timestamp=False))
    get_logger().info("ready", tool="age", count=2)
    assert out.getvalue().strip() == '[info] ready count=2 tool="age"'


def test_configure_from_settings() -> None:
    renderer = configure_from_settings(LoggingSettings(format="none", level="ERROR"))
    assert isinstance(renderer, NoOpRenderer)
    assert isinstance(configure_from_settings(LoggingSettings(format="json")), JsonRenderer)


def test_unknown_format_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown format"):
        configure_logging(format="xml")
