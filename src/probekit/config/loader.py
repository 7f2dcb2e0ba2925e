"""Appsettings loading: base file, environment overlay, placeholders, validation."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from probekit.config.errors import ConfigFileNotFoundError, ConfigValidationError
from probekit.config.models import AppSettings
from probekit.config.placeholders import resolve_placeholders

DEFAULT_CONFIG_DIR = Path("config")
ENV_VAR_NAME = "PROBEKIT_ENV"
DEFAULT_ENV = "development"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; nested objects merge, everything else replaces."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def settings_files(config_dir: Path, env: str) -> list[Path]:
    """Return the appsettings files that apply to ``env``, base file first."""
    base = config_dir / "appsettings.json"
    if not base.is_file():
        raise ConfigFileNotFoundError(base)
    overlay = config_dir / f"appsettings.{env}.json"
    return [base, overlay] if overlay.is_file() else [base]


def validate_settings(config: dict[str, Any]) -> AppSettings:
    try:
        return AppSettings.model_validate(config)
    except ValidationError as exc:
        raise ConfigValidationError.from_validation_error(exc) from exc


def load_config(
    *,
    config_dir: Path | str | None = None,
    env: str | None = None,
    strict_placeholders: bool = True,
) -> AppSettings:
    """Load ``appsettings.json`` overlaid with ``appsettings.<env>.json``.

    ``env`` defaults to ``$PROBEKIT_ENV`` or ``development``. Placeholders are
    resolved after the merge, so an overlay can replace a placeholder the base
    file would otherwise require.

    Raises:
        ConfigFileNotFoundError: If ``appsettings.json`` is missing.
        ConfigValidationError: If a file is not a JSON object or the merged
            settings fail validation.
        PlaceholderResolutionError: If ``strict_placeholders`` is set and a
            placeholder without default names an unset variable.
    """
    directory = DEFAULT_CONFIG_DIR if config_dir is None else Path(config_dir)
    resolved_env = env or os.environ.get(ENV_VAR_NAME, DEFAULT_ENV)

    merged: dict[str, Any] = {}
    for path in settings_files(directory, resolved_env):
        merged = deep_merge(merged, _read_object(path))
    return validate_settings(resolve_placeholders(merged, strict=strict_placeholders))


def _read_object(path: Path) -> dict[str, Any]:
    try:
        with path.open(encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigValidationError([(path.name, f"invalid JSON: {exc.msg}")]) from exc
    if not isinstance(data, dict):
        raise ConfigValidationError([(path.name, "top-level value must be an object")])
    return data
