"""Testing utilities: ToolHarness, fluent EnvelopeAssert, RecordingSink."""

from .harness import EnvelopeAssert, RecordingSink, ToolHarness

__all__ = ["ToolHarness", "EnvelopeAssert", "RecordingSink"]
