"""Startup wiring: build the registry once and hand it to the evaluator and responder."""

from __future__ import annotations

import importlib
import inspect
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from probekit.checks import FunctionCheck, HealthCheck, ProbeKind
from probekit.config.models import AppSettings, CheckPluginSettings, HealthSettings
from probekit.errors import ConfigurationError
from probekit.evaluator import CheckEvaluator
from probekit.observability.metrics import MetricsRecorder, configure_prometheus_metrics
from probekit.registry import CheckRegistration, CheckRegistry
from probekit.responder import HealthResponder, HealthResponse

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HealthRuntime:
    """The process-owned registry together with its evaluator and responder.

    Example usage::

        runtime = HealthRuntime.build(
            settings.health,
            registrations=[
                CheckRegistration("db", frozenset({ProbeKind.READINESS}), ping_db),
            ],
        )
        response = await runtime.live()

    ``build`` seals the registry, so the check set is fixed before the first
    probe is served. Any registration problem raises ``ConfigurationError``.
    """

    settings: HealthSettings
    registry: CheckRegistry
    evaluator: CheckEvaluator
    responder: HealthResponder

    @classmethod
    def build(
        cls,
        settings: HealthSettings | None = None,
        *,
        registrations: Iterable[CheckRegistration] = (),
        checks: Iterable[tuple[HealthCheck, Iterable[ProbeKind | str]]] = (),
        metrics: MetricsRecorder | None = None,
    ) -> HealthRuntime:
        resolved = HealthSettings() if settings is None else settings
        registry = CheckRegistry()

        registry.register_all(registrations)
        for check, kinds in checks:
            registry.register(check, kinds)
        for plugin in resolved.checks:
            registry.register(load_check_plugin(plugin), plugin.kinds)
        registry.seal()

        evaluator = CheckEvaluator(
            registry,
            timeout_seconds=resolved.check_timeout_seconds,
            max_concurrency=resolved.max_concurrency,
            metrics=metrics,
        )
        runtime = cls(
            settings=resolved,
            registry=registry,
            evaluator=evaluator,
            responder=HealthResponder(evaluator, metrics=metrics),
        )
        logger.info(
            "Health runtime ready",
            extra={
                "checks": len(registry),
                "probes": {kind.value: len(registry.list_for(kind)) for kind in ProbeKind},
            },
        )
        return runtime

    @classmethod
    def from_app_settings(
        cls,
        app_settings: AppSettings,
        *,
        registrations: Iterable[CheckRegistration] = (),
        checks: Iterable[tuple[HealthCheck, Iterable[ProbeKind | str]]] = (),
        metrics: MetricsRecorder | None = None,
    ) -> HealthRuntime:
        """Build from full app settings, enabling Prometheus metrics when configured."""
        if metrics is None and app_settings.metrics.enabled:
            metrics = configure_prometheus_metrics(prefix=app_settings.metrics.prefix)
        return cls.build(
            app_settings.health,
            registrations=registrations,
            checks=checks,
            metrics=metrics,
        )

    async def probe(self, kind: ProbeKind | str) -> HealthResponse:
        return await self.responder.respond(kind)

    async def live(self) -> HealthResponse:
        return await self.responder.respond(ProbeKind.LIVENESS)

    async def ready(self) -> HealthResponse:
        return await self.responder.respond(ProbeKind.READINESS)

    async def started(self) -> HealthResponse:
        return await self.responder.respond(ProbeKind.STARTUP)

    async def health(self) -> HealthResponse:
        return await self.responder.respond_all()


def load_check_plugin(plugin: CheckPluginSettings) -> HealthCheck:
    """Import ``plugin.target`` and turn it into a ``HealthCheck``.

    The target may be a check instance, a check class with a no-argument
    constructor, or a bare callable (named by ``plugin.name`` or its
    attribute name).
    """
    target = _import_target(plugin.target)

    if inspect.isclass(target):
        try:
            target = target()
        except Exception as exc:
            raise ConfigurationError(
                f"Cannot instantiate health check class '{plugin.target}': {exc}"
            ) from exc

    if isinstance(target, HealthCheck) and callable(target.check):
        if plugin.name is None and plugin.timeout_seconds is None:
            return target
        return FunctionCheck(
            name=plugin.name or target.name,
            check=target.check,
            timeout_seconds=plugin.timeout_seconds or getattr(target, "timeout_seconds", None),
        )

    if callable(target):
        attribute = plugin.target.rpartition(":")[2].rpartition(".")[2]
        return FunctionCheck(
            name=plugin.name or attribute.replace("_", "-"),
            check=target,
            timeout_seconds=plugin.timeout_seconds,
        )

    raise ConfigurationError(
        f"Health check target '{plugin.target}' is neither a HealthCheck nor callable"
    )


def _import_target(path: str) -> Any:
    module_name, _, attribute_path = path.partition(":")
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import health check module '{module_name}': {exc}") from exc

    for attribute in attribute_path.split("."):
        try:
            target = getattr(target, attribute)
        except AttributeError as exc:
            raise ConfigurationError(
                f"Health check target '{path}' not found: missing attribute '{attribute}'"
            ) from exc
    return target


__all__ = ["HealthRuntime", "load_check_plugin"]
