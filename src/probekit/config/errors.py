"""Errors raised while loading appsettings. Each one aborts startup."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from probekit.errors import ConfigurationError


class ConfigError(ConfigurationError):
    """Appsettings could not be turned into ``AppSettings``."""


class ConfigFileNotFoundError(ConfigError):
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"Missing appsettings file: {self.path}")


class ConfigValidationError(ConfigError):
    """Settings were rejected; ``errors`` holds ``(field, message)`` pairs."""

    def __init__(self, errors: Sequence[tuple[str, str]]) -> None:
        self.errors = tuple(errors)
        detail = "; ".join(f"{field}: {message}" for field, message in self.errors)
        super().__init__(f"Invalid appsettings: {detail}")

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> ConfigValidationError:
        return cls(
            [
                (".".join(str(part) for part in error["loc"]) or "<root>", error["msg"])
                for error in exc.errors()
            ]
        )


class PlaceholderResolutionError(ConfigError):
    def __init__(self, placeholder: str, key_path: str) -> None:
        self.placeholder = placeholder
        self.key_path = key_path
        super().__init__(f"Unset environment variable in '{placeholder}' at '{key_path}'")
