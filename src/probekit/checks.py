"""Health check primitives: statuses, probe kinds, results and the check contract."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Protocol, TypeAlias, runtime_checkable

DataValue: TypeAlias = str | int | float | bool
CheckCallable: TypeAlias = Callable[[], "CheckResult | Awaitable[CheckResult]"]


class CheckStatus(str, Enum):
    UP = "UP"
    DOWN = "DOWN"

    @classmethod
    def from_bool(cls, healthy: bool) -> CheckStatus:
        return cls.UP if healthy else cls.DOWN


class ProbeKind(str, Enum):
    """Registry partitions; each maps to its own probe endpoint."""

    LIVENESS = "liveness"
    READINESS = "readiness"
    STARTUP = "startup"

    @classmethod
    def parse(cls, value: ProbeKind | str) -> ProbeKind:
        if isinstance(value, ProbeKind):
            return value
        normalized = str(value).strip().lower()
        aliases = {"live": cls.LIVENESS, "ready": cls.READINESS, "started": cls.STARTUP}
        if normalized in aliases:
            return aliases[normalized]
        return cls(normalized)


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Outcome of one check evaluation.

    ``data`` is copied into a read-only mapping, so a result never changes
    after it has been built. Results compare by value but are not hashable,
    since ``data`` is a mapping.
    """

    __hash__ = None  # type: ignore[assignment]

    name: str
    status: CheckStatus
    data: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", CheckStatus(self.status))
        if self.data is not None:
            object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    @property
    def is_up(self) -> bool:
        return self.status is CheckStatus.UP

    @classmethod
    def up(cls, name: str, **data: DataValue) -> CheckResult:
        return cls(name=name, status=CheckStatus.UP, data=data or None)

    @classmethod
    def down(cls, name: str, **data: DataValue) -> CheckResult:
        return cls(name=name, status=CheckStatus.DOWN, data=data or None)

    @classmethod
    def named(cls, name: str) -> CheckResultBuilder:
        """Start a fluent builder, e.g. ``CheckResult.named("db").up().with_data("pool", 4).build()``."""
        return CheckResultBuilder(name)

    def with_name(self, name: str) -> CheckResult:
        return CheckResult(name=name, status=self.status, data=self.data)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        payload: dict[str, Any] = {"name": self.name, "status": self.status.value}
        if self.data:
            payload["data"] = dict(self.data)
        return payload


class CheckResultBuilder:
    """Fluent builder for check authors."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._status = CheckStatus.UP
        self._data: dict[str, Any] = {}

    def up(self) -> CheckResultBuilder:
        self._status = CheckStatus.UP
        return self

    def down(self) -> CheckResultBuilder:
        self._status = CheckStatus.DOWN
        return self

    def status(self, healthy: bool) -> CheckResultBuilder:
        self._status = CheckStatus.from_bool(healthy)
        return self

    def with_data(self, key: str, value: DataValue) -> CheckResultBuilder:
        self._data[key] = value
        return self

    def build(self) -> CheckResult:
        return CheckResult(name=self._name, status=self._status, data=self._data or None)


@runtime_checkable
class HealthCheck(Protocol):
    """Contract for a named probe.

    ``check`` may be a plain function or a coroutine function. Blocking
    checks are run in a worker thread by the evaluator.
    """

    @property
    def name(self) -> str: ...

    def check(self) -> CheckResult | Awaitable[CheckResult]: ...


@dataclass(frozen=True, slots=True)
class FunctionCheck:
    """Adapts a bare callable into a ``HealthCheck``."""

    name: str
    check: CheckCallable
    timeout_seconds: float | None = field(default=None)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("health check name must be a non-empty string")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")


def health_check(
    name: str | None = None,
    *,
    timeout_seconds: float | None = None,
) -> Callable[[CheckCallable], FunctionCheck]:
    """Decorate a function as a ``FunctionCheck``; the name defaults to the function name."""

    def decorator(func: CheckCallable) -> FunctionCheck:
        resolved = name or getattr(func, "__name__", "").replace("_", "-")
        return FunctionCheck(name=resolved, check=func, timeout_seconds=timeout_seconds)

    return decorator


__all__ = [
    "CheckCallable",
    "CheckResult",
    "CheckResultBuilder",
    "CheckStatus",
    "DataValue",
    "FunctionCheck",
    "HealthCheck",
    "ProbeKind",
    "health_check",
]
