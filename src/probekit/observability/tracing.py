"""OpenTelemetry span helpers for probe and check evaluation."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TypeAlias

AttributeValue: TypeAlias = str | bool | int | float

_TRACER_NAME = "probekit"


@contextmanager
def start_span(
    span_name: str,
    *,
    attributes: Mapping[str, AttributeValue | None] | None = None,
) -> Iterator[Any | None]:
    """Start a span when OpenTelemetry API is available; otherwise no-op."""
    trace_module = _import_otel_api_trace_module()
    if trace_module is None:
        yield None
        return

    tracer = trace_module.get_tracer(_TRACER_NAME)
    with tracer.start_as_current_span(span_name) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        yield span


def mark_span_status(span: Any | None, *, healthy: bool, description: str | None = None) -> None:
    """Record the evaluated UP/DOWN status on ``span``."""
    if span is None:
        return

    span.set_attribute("check.status", "UP" if healthy else "DOWN")
    trace_module = _import_otel_api_trace_module()
    if trace_module is None or healthy:
        return
    span.set_status(trace_module.Status(trace_module.StatusCode.ERROR, description))


def _import_otel_api_trace_module() -> Any | None:
    try:
        from opentelemetry import trace
    except ImportError:
        return None
    return trace
