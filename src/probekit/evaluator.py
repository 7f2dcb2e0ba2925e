"""Concurrent, failure-safe execution of registered health checks."""

from __future__ import annotations

import asyncio
import contextlib
import functools
import inspect
import logging
from collections.abc import Sequence
from time import perf_counter
from typing import Any

from probekit.checks import CheckResult, CheckStatus, HealthCheck, ProbeKind
from probekit.errors import CheckExecutionError, CheckTimeoutError, InvalidCheckResultError
from probekit.observability.metrics import MetricsRecorder, get_metrics_recorder
from probekit.observability.tracing import mark_span_status, start_span
from probekit.registry import CheckRegistry

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0
COMBINED_PROBE = "health"


class CheckEvaluator:
    """Runs the checks of a probe kind and returns one result per check.

    Checks run concurrently; the returned list follows registration order.
    A check never raises out of the evaluator: exceptions, timeouts and
    invalid return values all become DOWN results with an ``error`` entry.

    A check that times out or whose request is cancelled keeps running in
    the background until it finishes. At most one invocation per check name
    runs at a time: later requests join the running invocation instead of
    starting another one.
    """

    def __init__(
        self,
        registry: CheckRegistry,
        *,
        timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS,
        max_concurrency: int | None = None,
        metrics: MetricsRecorder | None = None,
    ) -> None:
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._registry = registry
        self._timeout_seconds = timeout_seconds
        self._max_concurrency = max_concurrency
        self._metrics = metrics
        self._in_flight: set[asyncio.Future[Any]] = set()
        self._running: dict[str, asyncio.Future[Any]] = {}

    @property
    def in_flight(self) -> int:
        """Number of check invocations still running, including abandoned ones."""
        return len(self._in_flight)

    async def evaluate(self, kind: ProbeKind | str) -> list[CheckResult]:
        probe = ProbeKind.parse(kind)
        return await self.run_checks(self._registry.list_for(probe), probe=probe.value)

    async def evaluate_all(self) -> list[CheckResult]:
        """Evaluate every distinct registered check once."""
        return await self.run_checks(self._registry.list_all(), probe=COMBINED_PROBE)

    async def run_checks(self, checks: Sequence[HealthCheck], *, probe: str) -> list[CheckResult]:
        if not checks:
            return []

        limiter: asyncio.Semaphore | None = (
            asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None
        )
        results = await asyncio.gather(
            *(self._evaluate_one(check, probe=probe, limiter=limiter) for check in checks)
        )
        return list(results)

    async def _evaluate_one(
        self,
        check: HealthCheck,
        *,
        probe: str,
        limiter: asyncio.Semaphore | None,
    ) -> CheckResult:
        async with limiter if limiter is not None else contextlib.nullcontext():
            started = perf_counter()
            with start_span(
                "health.check",
                attributes={"probe.kind": probe, "check.name": check.name},
            ) as span:
                try:
                    result = await self._run_with_timeout(check)
                except Exception as exc:
                    result = self._failure_result(check, probe=probe, exc=exc)

                mark_span_status(span, healthy=result.is_up)

            self._metrics_recorder().observe_check(
                probe=probe,
                check=check.name,
                status=result.status.value,
                duration_seconds=perf_counter() - started,
            )
            return result

    async def _run_with_timeout(self, check: HealthCheck) -> CheckResult:
        task = self._running.get(check.name)
        joined = task is not None
        if task is None:
            task = asyncio.ensure_future(_invoke(check))
            self._running[check.name] = task
            self._in_flight.add(task)
            task.add_done_callback(functools.partial(self._discard, check.name))

        timeout = self._timeout_for(check)
        done, _ = await asyncio.wait({task}, timeout=timeout)
        if not done:
            raise CheckTimeoutError(check.name, timeout or 0.0, still_running=joined)
        if task.cancelled():
            raise CheckExecutionError(check.name, f"Health check '{check.name}' was cancelled")

        outcome = task.result()
        if not isinstance(outcome, CheckResult):
            raise InvalidCheckResultError(check.name, outcome)
        if outcome.name != check.name:
            logger.warning(
                "Health check returned a result under a different name",
                extra={"check": check.name, "returned_name": outcome.name},
            )
            outcome = outcome.with_name(check.name)
        return outcome

    def _timeout_for(self, check: HealthCheck) -> float | None:
        override = getattr(check, "timeout_seconds", None)
        if override is not None:
            return float(override)
        return self._timeout_seconds

    def _failure_result(self, check: HealthCheck, *, probe: str, exc: Exception) -> CheckResult:
        if isinstance(exc, CheckTimeoutError):
            reason = "timeout"
            logger.warning(
                "Health check timed out",
                extra={
                    "probe": probe,
                    "check": check.name,
                    "timeout_seconds": exc.timeout_seconds,
                    "still_running": exc.still_running,
                },
            )
        elif isinstance(exc, InvalidCheckResultError):
            reason = "invalid_result"
            logger.warning(
                "Health check returned an invalid result",
                extra={"probe": probe, "check": check.name, "returned_type": exc.returned_type},
            )
        else:
            reason = "error"
            logger.warning(
                "Health check raised",
                exc_info=exc,
                extra={"probe": probe, "check": check.name, "error_type": type(exc).__name__},
            )

        self._metrics_recorder().observe_check_failure(probe=probe, check=check.name, reason=reason)
        message = str(exc).strip() or type(exc).__name__
        return CheckResult(name=check.name, status=CheckStatus.DOWN, data={"error": message})

    def _discard(self, name: str, task: asyncio.Future[Any]) -> None:
        self._in_flight.discard(task)
        if self._running.get(name) is task:
            del self._running[name]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("Health check invocation finished with error", exc_info=exc)

    def _metrics_recorder(self) -> MetricsRecorder:
        return get_metrics_recorder() if self._metrics is None else self._metrics


async def _invoke(check: HealthCheck) -> Any:
    target = check.check
    if inspect.iscoroutinefunction(target):
        return await target()

    outcome = await asyncio.to_thread(target)
    if inspect.isawaitable(outcome):
        return await outcome
    return outcome


__all__ = ["COMBINED_PROBE", "DEFAULT_TIMEOUT_SECONDS", "CheckEvaluator"]
