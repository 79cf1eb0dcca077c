"""Shared fixtures: fresh settings, empty resolver caches, captured logs."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from toolwire.foundation.config import clear_settings_cache
from toolwire.runtime.dispatch import clear_cache
from toolwire.runtime.observability import MemoryRenderer, configure_logging


@pytest.fixture(autouse=True)
def log_records() -> Iterator[MemoryRenderer]:
    """Every test starts from environment-fresh settings and captures its logs."""
    clear_settings_cache()
    clear_cache()
    renderer = MemoryRenderer()
    configure_logging(level="DEBUG", renderer=renderer)
    yield renderer
    clear_settings_cache()
    configure_logging(format="none")
