"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from probekit import CheckResult, FunctionCheck
from probekit.observability.metrics import get_metrics_recorder, set_metrics_recorder


class RecordingMetrics:
    """Metrics recorder that keeps every call for assertions."""

    def __init__(self) -> None:
        self.checks: list[dict[str, object]] = []
        self.failures: list[dict[str, object]] = []
        self.probes: list[dict[str, object]] = []
        self.dropped: list[str] = []

    def observe_check(
        self,
        *,
        probe: str,
        check: str,
        status: str,
        duration_seconds: float,
    ) -> None:
        self.checks.append(
            {"probe": probe, "check": check, "status": status, "duration": duration_seconds}
        )

    def observe_check_failure(self, *, probe: str, check: str, reason: str) -> None:
        self.failures.append({"probe": probe, "check": check, "reason": reason})

    def observe_probe(self, *, probe: str, status: str, duration_seconds: float) -> None:
        self.probes.append({"probe": probe, "status": status, "duration": duration_seconds})

    def observe_dropped_field(self, *, check: str) -> None:
        self.dropped.append(check)


def up_check(name: str) -> FunctionCheck:
    return FunctionCheck(name=name, check=lambda: CheckResult.up(name))


def down_check(name: str) -> FunctionCheck:
    return FunctionCheck(name=name, check=lambda: CheckResult.down(name))


@pytest.fixture
def metrics() -> RecordingMetrics:
    return RecordingMetrics()


@pytest.fixture(autouse=True)
def _restore_metrics_recorder() -> Iterator[None]:
    previous = get_metrics_recorder()
    try:
        yield
    finally:
        set_metrics_recorder(previous)
