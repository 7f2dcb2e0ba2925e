"""Typed configuration models with Pydantic validation."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from probekit.checks import ProbeKind


class ServiceSettings(BaseModel):
    """Service identification."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Service name")
    version: str = Field(default="0.0.0", min_length=1, description="Service version")


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    format: Literal["json", "text"] = Field(default="json", description="Log output format")
    sampling: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Optional sampling ratio for low-severity logs",
    )


class MetricsSettings(BaseModel):
    """Prometheus metrics configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=False, description="Record probe metrics with Prometheus")
    prefix: str = Field(default="probekit", min_length=1, description="Metric name prefix")


class CheckPluginSettings(BaseModel):
    """A check imported from ``module:attribute`` at startup."""

    model_config = ConfigDict(frozen=True)

    target: str = Field(..., description="Import path in 'package.module:attribute' form")
    kinds: tuple[ProbeKind, ...] = Field(..., min_length=1, description="Probe kinds")
    name: str | None = Field(
        default=None,
        min_length=1,
        description="Check name; required when the target is a bare callable",
    )
    timeout_seconds: float | None = Field(default=None, gt=0, description="Per-check timeout")

    @field_validator("target")
    @classmethod
    def validate_target(cls, value: str) -> str:
        module, sep, attribute = value.partition(":")
        if not sep or not module.strip() or not attribute.strip():
            raise ValueError("target must look like 'package.module:attribute'")
        return value.strip()

    @field_validator("kinds", mode="before")
    @classmethod
    def parse_kinds(cls, value: object) -> object:
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple)):
            return tuple(ProbeKind.parse(item) for item in value)
        return value


class HealthSettings(BaseModel):
    """Probe endpoint and evaluation settings."""

    model_config = ConfigDict(frozen=True)

    base_path: str = Field(default="/health", description="Prefix for probe endpoints")
    check_timeout_seconds: float | None = Field(
        default=5.0,
        gt=0,
        description="Default per-check timeout; null disables the bound",
    )
    max_concurrency: int | None = Field(
        default=None,
        ge=1,
        description="Maximum checks running at once per probe request",
    )
    expose_metrics: bool = Field(
        default=False,
        description="Serve Prometheus metrics at /metrics from the probe app",
    )
    checks: tuple[CheckPluginSettings, ...] = Field(default=())

    @field_validator("base_path")
    @classmethod
    def normalize_base_path(cls, value: str) -> str:
        stripped = value.strip().rstrip("/")
        if not stripped:
            return ""
        return stripped if stripped.startswith("/") else f"/{stripped}"


class AppSettings(BaseModel):
    """Root application settings."""

    model_config = ConfigDict(frozen=True)

    service: ServiceSettings
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    metrics: MetricsSettings = Field(default_factory=MetricsSettings)
    health: HealthSettings = Field(default_factory=HealthSettings)
