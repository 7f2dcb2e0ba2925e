"""Probe responses: aggregate, sanitize and map to HTTP status codes."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from http import HTTPStatus
from time import perf_counter
from typing import Any

from probekit.aggregator import AggregateResult, aggregate
from probekit.checks import CheckResult, CheckStatus, ProbeKind
from probekit.evaluator import COMBINED_PROBE, CheckEvaluator
from probekit.observability.metrics import MetricsRecorder, get_metrics_recorder
from probekit.observability.tracing import mark_span_status, start_span

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"

_STATUS_CODES = {
    CheckStatus.UP: int(HTTPStatus.OK),
    CheckStatus.DOWN: int(HTTPStatus.SERVICE_UNAVAILABLE),
}


@dataclass(frozen=True, slots=True)
class HealthResponse:
    """Transport-neutral probe response."""

    status_code: int
    body: dict[str, Any]
    media_type: str = JSON_MEDIA_TYPE

    @property
    def status(self) -> CheckStatus:
        return CheckStatus(self.body["status"])

    def to_json(self) -> bytes:
        return json.dumps(self.body, ensure_ascii=True, allow_nan=False).encode("utf-8")


def status_code_for(status: CheckStatus) -> int:
    """UP maps to 200, DOWN to 503."""
    return _STATUS_CODES[status]


class HealthResponder:
    """Serves probe kinds as independent health documents."""

    def __init__(
        self,
        evaluator: CheckEvaluator,
        *,
        metrics: MetricsRecorder | None = None,
    ) -> None:
        self._evaluator = evaluator
        self._metrics = metrics

    async def respond(self, kind: ProbeKind | str) -> HealthResponse:
        probe = ProbeKind.parse(kind)
        return await self._respond(probe.value, lambda: self._evaluator.evaluate(probe))

    async def respond_all(self) -> HealthResponse:
        """Serve every registered check, across all kinds, as one document."""
        return await self._respond(COMBINED_PROBE, self._evaluator.evaluate_all)

    async def _respond(
        self,
        probe: str,
        evaluate: Callable[[], Awaitable[list[CheckResult]]],
    ) -> HealthResponse:
        started = perf_counter()
        with start_span("health.probe", attributes={"probe.kind": probe}) as span:
            results = await evaluate()
            result = aggregate(results)
            response = self.render(result)
            mark_span_status(span, healthy=result.is_up)
            if span is not None:
                span.set_attribute("http.status_code", response.status_code)

        self._metrics_recorder().observe_probe(
            probe=probe,
            status=result.status.value,
            duration_seconds=perf_counter() - started,
        )
        if not result.is_up:
            logger.info(
                "Probe reported DOWN",
                extra={"probe": probe, "failed_checks": [check.name for check in result.failed]},
            )
        return response

    def render(self, result: AggregateResult) -> HealthResponse:
        body = {
            "status": result.status.value,
            "checks": [self._serialize_check(check) for check in result.checks],
        }
        return HealthResponse(status_code=status_code_for(result.status), body=body)

    def _serialize_check(self, result: CheckResult) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": result.name, "status": result.status.value}
        if result.data:
            data = self._sanitize_data(result.name, result.data)
            if data:
                payload["data"] = data
        return payload

    def _sanitize_data(self, check_name: str, data: Mapping[Any, Any]) -> dict[str, Any]:
        sanitized: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(key, str) and _is_primitive(value):
                sanitized[key] = value
                continue
            logger.warning(
                "Dropped non-primitive health check data field",
                extra={"check": check_name, "field": str(key), "value_type": type(value).__name__},
            )
            self._metrics_recorder().observe_dropped_field(check=check_name)
        return sanitized

    def _metrics_recorder(self) -> MetricsRecorder:
        return get_metrics_recorder() if self._metrics is None else self._metrics


def _is_primitive(value: object) -> bool:
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, (str, int, bool))


__all__ = ["JSON_MEDIA_TYPE", "HealthResponder", "HealthResponse", "status_code_for"]
