"""Configuration loading and validation module."""

from probekit.config.errors import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigValidationError,
    PlaceholderResolutionError,
)
from probekit.config.loader import deep_merge, load_config, validate_settings
from probekit.config.models import (
    AppSettings,
    CheckPluginSettings,
    HealthSettings,
    LoggingSettings,
    MetricsSettings,
    ServiceSettings,
)

__all__ = [
    "AppSettings",
    "CheckPluginSettings",
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigValidationError",
    "HealthSettings",
    "LoggingSettings",
    "MetricsSettings",
    "PlaceholderResolutionError",
    "ServiceSettings",
    "deep_merge",
    "load_config",
    "validate_settings",
]
