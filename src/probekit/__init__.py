"""Liveness, readiness and startup probe aggregation."""

from probekit.aggregator import AggregateResult, aggregate
from probekit.asgi import create_health_asgi_app
from probekit.checks import (
    CheckResult,
    CheckResultBuilder,
    CheckStatus,
    FunctionCheck,
    HealthCheck,
    ProbeKind,
    health_check,
)
from probekit.config import AppSettings, HealthSettings, load_config
from probekit.errors import (
    CheckExecutionError,
    CheckTimeoutError,
    ConfigurationError,
    DuplicateCheckError,
    InvalidCheckResultError,
    MissingDependencyError,
    ProbekitError,
    RegistrySealedError,
)
from probekit.evaluator import CheckEvaluator
from probekit.registry import CheckRegistration, CheckRegistry
from probekit.responder import HealthResponder, HealthResponse, status_code_for
from probekit.runtime import HealthRuntime, load_check_plugin

__all__ = [
    "AggregateResult",
    "AppSettings",
    "CheckEvaluator",
    "CheckExecutionError",
    "CheckRegistration",
    "CheckRegistry",
    "CheckResult",
    "CheckResultBuilder",
    "CheckStatus",
    "CheckTimeoutError",
    "ConfigurationError",
    "DuplicateCheckError",
    "FunctionCheck",
    "HealthCheck",
    "HealthResponder",
    "HealthResponse",
    "HealthRuntime",
    "HealthSettings",
    "InvalidCheckResultError",
    "MissingDependencyError",
    "ProbeKind",
    "ProbekitError",
    "RegistrySealedError",
    "aggregate",
    "create_health_asgi_app",
    "health_check",
    "load_check_plugin",
    "load_config",
    "status_code_for",
]
