"""Logging, metrics and tracing helpers for probe evaluation."""

from probekit.observability.logging import (
    bootstrap_logging,
    bootstrap_logging_from_app_settings,
    get_request_id,
    request_scope,
    request_scope_from_headers,
)
from probekit.observability.metrics import (
    MetricsRecorder,
    NoopMetricsRecorder,
    PrometheusMetricsRecorder,
    configure_prometheus_metrics,
    get_metrics_recorder,
    prometheus_content_type,
    render_prometheus_metrics,
    set_metrics_recorder,
)
from probekit.observability.tracing import start_span

__all__ = [
    "MetricsRecorder",
    "NoopMetricsRecorder",
    "PrometheusMetricsRecorder",
    "bootstrap_logging",
    "bootstrap_logging_from_app_settings",
    "configure_prometheus_metrics",
    "get_metrics_recorder",
    "get_request_id",
    "prometheus_content_type",
    "render_prometheus_metrics",
    "request_scope",
    "request_scope_from_headers",
    "set_metrics_recorder",
    "start_span",
]
