"""Tests for the OpenTelemetry span helpers."""

from __future__ import annotations

from contextlib import contextmanager
from types import SimpleNamespace
from typing import Any

import pytest

import probekit.observability.tracing as tracing
from probekit import CheckEvaluator, CheckRegistry, CheckResult, FunctionCheck


class FakeSpan:
    def __init__(self, name: str) -> None:
        self.name = name
        self.attributes: dict[str, Any] = {}
        self.status: Any = None

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def set_status(self, status: Any) -> None:
        self.status = status


class FakeTracer:
    def __init__(self) -> None:
        self.spans: list[FakeSpan] = []

    @contextmanager
    def start_as_current_span(self, name: str):  # type: ignore[no-untyped-def]
        span = FakeSpan(name)
        self.spans.append(span)
        yield span


@pytest.fixture
def tracer(monkeypatch: pytest.MonkeyPatch) -> FakeTracer:
    fake_tracer = FakeTracer()
    fake_trace = SimpleNamespace(
        get_tracer=lambda _name: fake_tracer,
        Status=lambda code, description=None: (code, description),
        StatusCode=SimpleNamespace(ERROR="ERROR"),
    )
    monkeypatch.setattr(tracing, "_import_otel_api_trace_module", lambda: fake_trace)
    return fake_tracer


def test_start_span_skips_none_attributes(tracer: FakeTracer) -> None:
    with tracing.start_span("health.check", attributes={"check.name": "db", "x": None}) as span:
        assert span is tracer.spans[0]

    assert tracer.spans[0].attributes == {"check.name": "db"}


def test_mark_span_status(tracer: FakeTracer) -> None:
    with tracing.start_span("health.check") as span:
        tracing.mark_span_status(span, healthy=False, description="timed out")

    assert span.attributes["check.status"] == "DOWN"
    assert span.status == ("ERROR", "timed out")


def test_helpers_are_noops_without_opentelemetry(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tracing, "_import_otel_api_trace_module", lambda: None)

    with tracing.start_span("health.check") as span:
        assert span is None
    tracing.mark_span_status(None, healthy=False)


async def test_each_check_gets_a_span(tracer: FakeTracer) -> None:
    registry = CheckRegistry()
    registry.register(FunctionCheck("db", lambda: CheckResult.down("db")), ["readiness"])

    await CheckEvaluator(registry).evaluate("readiness")

    spans = [span for span in tracer.spans if span.name == "health.check"]
    assert len(spans) == 1
    assert spans[0].attributes["check.status"] == "DOWN"
