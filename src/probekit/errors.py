"""Custom exceptions for probekit."""

from __future__ import annotations


class ProbekitError(Exception):
    """Base exception for this package."""


class MissingDependencyError(ProbekitError):
    """Raised when an optional dependency is required but not installed."""


class ConfigurationError(ProbekitError):
    """Raised at startup when the check registry cannot be built.

    Configuration errors are fatal: a process that hits one must refuse to
    serve probes.
    """


class DuplicateCheckError(ConfigurationError):
    """Raised when a check name is already taken."""

    def __init__(self, name: str, kind: str) -> None:
        self.name = name
        self.kind = kind
        super().__init__(f"Duplicate health check name '{name}' for probe '{kind}'")


class RegistrySealedError(ConfigurationError):
    """Raised when registering a check after the registry started serving."""


class CheckExecutionError(ProbekitError):
    """Describes a check failure that is folded into a DOWN result."""

    def __init__(self, check_name: str, message: str) -> None:
        self.check_name = check_name
        super().__init__(message)


class CheckTimeoutError(CheckExecutionError):
    """Raised when a check does not complete within its timeout."""

    def __init__(
        self,
        check_name: str,
        timeout_seconds: float,
        *,
        still_running: bool = False,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.still_running = still_running
        message = f"Health check '{check_name}' timed out after {timeout_seconds:g}s"
        if still_running:
            message = f"{message}; previous invocation still running"
        super().__init__(check_name, message)


class InvalidCheckResultError(CheckExecutionError):
    """Raised when a check returns something other than a CheckResult."""

    def __init__(self, check_name: str, returned: object) -> None:
        self.returned_type = type(returned).__name__
        super().__init__(
            check_name,
            f"Health check '{check_name}' returned {self.returned_type}, expected CheckResult",
        )

