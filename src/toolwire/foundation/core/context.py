"""Per-call execution context.

One ExecutionContext is built per inbound call from the transport's raw
request fields. It is an immutable value: ``with_attribute`` and
``with_attributes`` return a new context, so contexts derived from a shared
base by concurrent calls never observe each other's attributes.

Example:
    >>> base = ExecutionContext.from_request({"correlationId": "c-1", "streaming": False})
    >>> ctx = base.with_attribute("tenant", "acme")
    >>> ctx.get_attribute("tenant"), base.get_attribute("tenant")
    ('acme', None)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from toolwire.foundation.errors import JsonDict

_EMPTY: Mapping[str, Any] = MappingProxyType({})

# Transport field name -> attribute name (camelCase and snake_case both accepted)
_REQUEST_FIELDS: dict[str, str] = {
    "correlationId": "correlation_id",
    "correlation_id": "correlation_id",
    "sessionId": "session_id",
    "session_id": "session_id",
    "method": "method",
    "requestId": "request_id",
    "request_id": "request_id",
    "clientAddress": "client_address",
    "client_address": "client_address",
    "streaming": "streaming",
    "startTime": "start_time",
    "start_time": "start_time",
    "attributes": "attributes",
    "metadata": "metadata",
}


def _now() -> datetime:
    return datetime.now(UTC)


def _freeze(values: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(values)) if values else _EMPTY


def _as_datetime(value: Any) -> datetime:
    """Coerce a transport start time; unparseable values fall back to now, naive ones are UTC."""
    match value:
        case datetime():
            parsed = value
        case int() | float():
            try:
                parsed = datetime.fromtimestamp(value / 1000, tz=UTC)  # epoch millis
            except (OverflowError, OSError, ValueError):
                return _now()
        case str():
            try:
                parsed = datetime.fromisoformat(value)
            except ValueError:
                return _now()
        case _:
            return _now()
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """Immutable request-scoped metadata passed alongside every invocation.

    Attributes:
        correlation_id: Caller-supplied correlation id
        session_id: Client session id
        method: Transport-level method name
        request_id: Transport request id
        client_address: Remote address of the caller
        streaming: Whether the caller accepts streamed results
        start_time: Call receipt time (UTC)
        attributes: Read-only attribute map, extended by derivation only
        metadata: Free-form read-only metadata from the transport
    """

    correlation_id: str | None = None
    session_id: str | None = None
    method: str | None = None
    request_id: str | int | None = None
    client_address: str | None = None
    streaming: bool = False
    start_time: datetime = field(default_factory=_now)
    attributes: Mapping[str, Any] = field(default_factory=lambda: _EMPTY, repr=False)
    metadata: Mapping[str, Any] = field(default_factory=lambda: _EMPTY, repr=False)

    def __post_init__(self) -> None:
        # Snapshot caller-owned dicts so later mutation of them cannot leak in
        if not isinstance(self.attributes, MappingProxyType):
            object.__setattr__(self, "attributes", _freeze(self.attributes))
        if not isinstance(self.metadata, MappingProxyType):
            object.__setattr__(self, "metadata", _freeze(self.metadata))
        if self.start_time.tzinfo is None:
            object.__setattr__(self, "start_time", self.start_time.replace(tzinfo=UTC))

    @classmethod
    def from_request(cls, raw: Mapping[str, Any] | None = None) -> ExecutionContext:
        """Build from the transport's raw request fields. Unknown keys are ignored."""
        if not raw:
            return cls()
        kwargs: dict[str, Any] = {}
        for key, value in raw.items():
            if (name := _REQUEST_FIELDS.get(key)) is None or value is None:
                continue
            match name:
                case "streaming":
                    kwargs[name] = value if isinstance(value, bool) else str(value).lower() == "true"
                case "start_time":
                    kwargs[name] = _as_datetime(value)
                case "attributes" | "metadata":
                    kwargs[name] = value if isinstance(value, Mapping) else {}
                case _:
                    kwargs[name] = value
        return cls(**kwargs)

    # ─────────────────────────────────────────────────────────────────
    # Derivation
    # ─────────────────────────────────────────────────────────────────

    def with_attribute(self, key: str, value: Any) -> ExecutionContext:
        return replace(self, attributes=MappingProxyType({**self.attributes, key: value}))

    def with_attributes(self, values: Mapping[str, Any]) -> ExecutionContext:
        """New context whose attributes are the union; ``values`` win on collision."""
        if not values:
            return self
        return replace(self, attributes=MappingProxyType({**self.attributes, **values}))

    def get_attribute(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    # ─────────────────────────────────────────────────────────────────
    # Diagnostics
    # ─────────────────────────────────────────────────────────────────

    @property
    def elapsed_ms(self) -> int:
        return int((_now() - self.start_time).total_seconds() * 1000)

    def log_fields(self) -> JsonDict:
        """Correlation fields bound into the logging scope for this call."""
        fields: JsonDict = {
            "correlation_id": self.correlation_id,
            "session_id": self.session_id,
            "method": self.method,
            "request_id": self.request_id,
            "client_address": self.client_address,
        }
        fields = {k: v for k, v in fields.items() if v is not None}
        fields["streaming"] = self.streaming
        return fields

    def format(self) -> str:
        parts = [f"{k}={v!r}" for k, v in self.log_fields().items() if k != "streaming"]
        parts.append(f"duration={self.elapsed_ms}ms")
        return f"ExecutionContext{{{', '.join(parts)}}}"

    def metrics(self, **extra: Any) -> JsonDict:
        """Metrics dict for performance logging: ids, durationMs, startTime, streaming."""
        out: JsonDict = {}
        if self.correlation_id:
            out["correlationId"] = self.correlation_id
        if self.session_id:
            out["sessionId"] = self.session_id
        if self.method:
            out["method"] = self.method
        out["durationMs"] = self.elapsed_ms
        out["startTime"] = int(self.start_time.timestamp() * 1000)
        out["streaming"] = self.streaming
        return {**out, **extra}
