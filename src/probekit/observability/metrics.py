"""Prometheus metrics primitives for probe and check evaluation."""

from __future__ import annotations

import re
from typing import Any, Protocol

from probekit.errors import MissingDependencyError

_LABEL_NORMALIZER = re.compile(r"[^a-zA-Z0-9_]+")

_LATENCY_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)


def _import_prometheus_client() -> Any:
    try:
        import prometheus_client
    except ImportError as exc:  # pragma: no cover - depends on installed extras
        raise MissingDependencyError(
            "Prometheus metrics require dependency 'prometheus-client'. "
            "Install with: pip install prometheus-client"
        ) from exc
    return prometheus_client


def _sanitize_label(value: str, *, default: str = "unknown") -> str:
    normalized = _LABEL_NORMALIZER.sub("_", value.strip().lower()).strip("_")
    return normalized or default


def _collector_or_create(registry: Any, name: str, factory: Any) -> Any:
    names_to_collectors = getattr(registry, "_names_to_collectors", None)
    if isinstance(names_to_collectors, dict):
        collector = names_to_collectors.get(name)
        if collector is not None:
            return collector
    return factory()


class MetricsRecorder(Protocol):
    """Observer contract for probe/check metrics."""

    def observe_check(
        self,
        *,
        probe: str,
        check: str,
        status: str,
        duration_seconds: float,
    ) -> None:
        """Record one check evaluation."""
        ...

    def observe_check_failure(self, *, probe: str, check: str, reason: str) -> None:
        """Record a check that raised, timed out or returned garbage."""
        ...

    def observe_probe(self, *, probe: str, status: str, duration_seconds: float) -> None:
        """Record one aggregated probe response."""
        ...

    def observe_dropped_field(self, *, check: str) -> None:
        """Record a non-primitive data field removed during serialization."""
        ...


class NoopMetricsRecorder:
    """No-op recorder used when metrics are not configured."""

    def observe_check(
        self,
        *,
        probe: str,
        check: str,
        status: str,
        duration_seconds: float,
    ) -> None:
        del probe, check, status, duration_seconds

    def observe_check_failure(self, *, probe: str, check: str, reason: str) -> None:
        del probe, check, reason

    def observe_probe(self, *, probe: str, status: str, duration_seconds: float) -> None:
        del probe, status, duration_seconds

    def observe_dropped_field(self, *, check: str) -> None:
        del check


class PrometheusMetricsRecorder:
    """Prometheus-backed recorder with standard probekit_* naming."""

    def __init__(
        self,
        *,
        registry: Any | None = None,
        prefix: str = "probekit",
    ) -> None:
        prometheus_client = _import_prometheus_client()
        self._registry = prometheus_client.REGISTRY if registry is None else registry
        self._prefix = _sanitize_label(prefix, default="probekit")
        self._check_latency = _collector_or_create(
            self._registry,
            f"{self._prefix}_check_latency_seconds",
            lambda: prometheus_client.Histogram(
                f"{self._prefix}_check_latency_seconds",
                "Health check evaluation latency in seconds.",
                labelnames=("probe", "check", "status"),
                registry=self._registry,
                buckets=_LATENCY_BUCKETS,
            ),
        )
        self._check_failures = _collector_or_create(
            self._registry,
            f"{self._prefix}_check_failures_total",
            lambda: prometheus_client.Counter(
                f"{self._prefix}_check_failures_total",
                "Health checks that raised, timed out or returned an invalid result.",
                labelnames=("probe", "check", "reason"),
                registry=self._registry,
            ),
        )
        self._probe_latency = _collector_or_create(
            self._registry,
            f"{self._prefix}_probe_latency_seconds",
            lambda: prometheus_client.Histogram(
                f"{self._prefix}_probe_latency_seconds",
                "Aggregated probe latency in seconds.",
                labelnames=("probe", "status"),
                registry=self._registry,
                buckets=_LATENCY_BUCKETS,
            ),
        )
        self._probe_up = _collector_or_create(
            self._registry,
            f"{self._prefix}_probe_up",
            lambda: prometheus_client.Gauge(
                f"{self._prefix}_probe_up",
                "Last aggregated probe status (1 = UP, 0 = DOWN).",
                labelnames=("probe",),
                registry=self._registry,
            ),
        )
        self._dropped_fields = _collector_or_create(
            self._registry,
            f"{self._prefix}_dropped_data_fields_total",
            lambda: prometheus_client.Counter(
                f"{self._prefix}_dropped_data_fields_total",
                "Check data fields dropped because they were not primitive values.",
                labelnames=("check",),
                registry=self._registry,
            ),
        )

    def observe_check(
        self,
        *,
        probe: str,
        check: str,
        status: str,
        duration_seconds: float,
    ) -> None:
        self._check_latency.labels(
            probe=_sanitize_label(probe),
            check=_sanitize_label(check),
            status=_sanitize_label(status),
        ).observe(max(0.0, duration_seconds))

    def observe_check_failure(self, *, probe: str, check: str, reason: str) -> None:
        self._check_failures.labels(
            probe=_sanitize_label(probe),
            check=_sanitize_label(check),
            reason=_sanitize_label(reason),
        ).inc()

    def observe_probe(self, *, probe: str, status: str, duration_seconds: float) -> None:
        probe_label = _sanitize_label(probe)
        status_label = _sanitize_label(status)
        self._probe_latency.labels(probe=probe_label, status=status_label).observe(
            max(0.0, duration_seconds)
        )
        self._probe_up.labels(probe=probe_label).set(1.0 if status_label == "up" else 0.0)

    def observe_dropped_field(self, *, check: str) -> None:
        self._dropped_fields.labels(check=_sanitize_label(check)).inc()


_NOOP_RECORDER = NoopMetricsRecorder()
_DEFAULT_RECORDER: MetricsRecorder = _NOOP_RECORDER


def get_metrics_recorder() -> MetricsRecorder:
    """Return the process-level metrics recorder."""
    return _DEFAULT_RECORDER


def set_metrics_recorder(recorder: MetricsRecorder | None) -> MetricsRecorder:
    """Set process-level recorder. `None` switches back to no-op."""
    global _DEFAULT_RECORDER
    _DEFAULT_RECORDER = _NOOP_RECORDER if recorder is None else recorder
    return _DEFAULT_RECORDER


def configure_prometheus_metrics(
    *,
    registry: Any | None = None,
    prefix: str = "probekit",
    set_default: bool = True,
) -> PrometheusMetricsRecorder:
    """Build a Prometheus recorder and optionally set it as default."""
    recorder = PrometheusMetricsRecorder(registry=registry, prefix=prefix)
    if set_default:
        set_metrics_recorder(recorder)
    return recorder


def prometheus_content_type() -> str:
    """Return Prometheus exposition media type."""
    prometheus_client = _import_prometheus_client()
    return str(prometheus_client.CONTENT_TYPE_LATEST)


def render_prometheus_metrics(*, registry: Any | None = None) -> bytes:
    """Render current Prometheus metrics in exposition text format."""
    prometheus_client = _import_prometheus_client()
    resolved_registry = prometheus_client.REGISTRY if registry is None else registry
    return bytes(prometheus_client.generate_latest(resolved_registry))
