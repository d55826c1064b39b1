"""Optional OpenTelemetry span around each invocation.

Switched on with ``KINTONE_GATEWAY_OTEL_ENABLED``.  Without the flag, or
without ``opentelemetry-api`` installed, :func:`invocation_span` yields a span
that records nothing.  Tool parameters are never attached.
"""

from __future__ import annotations

import importlib
import os
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

SPAN_NAME = "kintone_gateway.invoke"
_ENABLED_VALUES = frozenset({"1", "true", "yes", "on"})


def _trace_module(environ: Mapping[str, str] | None) -> Any | None:
    env = os.environ if environ is None else environ
    if (env.get("KINTONE_GATEWAY_OTEL_ENABLED") or "").strip().lower() not in _ENABLED_VALUES:
        return None
    try:
        return importlib.import_module("opentelemetry.trace")
    except ImportError:
        return None


class InvocationSpan:
    """Attribute sink for one invocation; inert when no span is attached."""

    def __init__(self, span: Any = None, trace: Any = None) -> None:
        self._span = span
        self._trace = trace

    @property
    def is_recording(self) -> bool:
        return self._span is not None

    def _attribute(self, key: str, value: Any) -> None:
        if self._span is not None:
            self._span.set_attribute(f"kintone_gateway.{key}", value)

    def record_envelope(self, envelope: str) -> None:
        self._attribute("envelope", envelope)

    def record_tool(self, tool: str | None) -> None:
        self._attribute("tool", tool or "")

    def record_outcome(self, error_kind: str | None, elapsed_ms: int) -> None:
        self._attribute("duration_ms", elapsed_ms)
        self._attribute("error_kind", error_kind or "none")
        if self._span is not None and error_kind is not None:
            status = self._trace.Status(self._trace.StatusCode.ERROR, f"error_kind={error_kind}")
            self._span.set_status(status)


@contextmanager
def invocation_span(envelope: str, environ: Mapping[str, str] | None = None) -> Iterator[InvocationSpan]:
    """Open the invocation span; it ends when the block exits."""
    trace = _trace_module(environ)
    if trace is None:
        yield InvocationSpan()
        return
    tracer = trace.get_tracer("kintone_gateway")
    with tracer.start_as_current_span(SPAN_NAME) as raw_span:
        span = InvocationSpan(raw_span, trace)
        span.record_envelope(envelope)
        yield span


def duration_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
