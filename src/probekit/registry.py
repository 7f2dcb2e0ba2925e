"""Registry of health checks partitioned by probe kind."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from probekit.checks import CheckCallable, FunctionCheck, HealthCheck, ProbeKind
from probekit.errors import ConfigurationError, DuplicateCheckError, RegistrySealedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CheckRegistration:
    """A ``(name, kinds, evaluate-function)`` triple supplied at startup."""

    name: str
    kinds: frozenset[ProbeKind]
    check: CheckCallable
    timeout_seconds: float | None = None

    def to_check(self) -> FunctionCheck:
        return FunctionCheck(name=self.name, check=self.check, timeout_seconds=self.timeout_seconds)


@dataclass(slots=True)
class CheckRegistry:
    """Holds the fixed check set of a process.

    Example usage::

        registry = CheckRegistry()
        registry.register(database_check, {ProbeKind.READINESS})
        registry.register_function("heartbeat", heartbeat, {ProbeKind.LIVENESS})
        registry.seal()

        checks = registry.list_for(ProbeKind.READINESS)

    Registration is append-only. Once sealed the registry is only read, so
    concurrent probe requests need no locking.
    """

    _partitions: dict[ProbeKind, list[HealthCheck]] = field(
        default_factory=lambda: {kind: [] for kind in ProbeKind}
    )
    _owners: dict[str, HealthCheck] = field(default_factory=dict)
    _sealed: bool = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def register(self, check: HealthCheck, kinds: Iterable[ProbeKind | str]) -> None:
        """Register ``check`` under every kind in ``kinds``.

        Raises:
            ConfigurationError: If the registry is sealed, ``kinds`` is empty,
                or the object is not a health check.
            DuplicateCheckError: If the name is already taken in one of the kinds,
                or by a different check in any kind.
        """
        if self._sealed:
            raise RegistrySealedError(
                f"Cannot register health check '{getattr(check, 'name', check)}': registry is sealed"
            )
        if not isinstance(check, HealthCheck) or not callable(check.check):
            raise ConfigurationError(
                f"{type(check).__name__} does not implement the HealthCheck contract"
            )

        resolved_kinds = _resolve_kinds(kinds)
        if not resolved_kinds:
            raise ConfigurationError(f"Health check '{check.name}' must declare at least one probe kind")

        owner = self._owners.get(check.name)
        for kind in resolved_kinds:
            partition = self._partitions[kind]
            if any(existing.name == check.name for existing in partition):
                raise DuplicateCheckError(check.name, kind.value)
            if owner is not None and owner is not check:
                raise DuplicateCheckError(check.name, kind.value)

        for kind in resolved_kinds:
            self._partitions[kind].append(check)
        self._owners[check.name] = check
        logger.debug(
            "Registered health check",
            extra={"check": check.name, "probes": [kind.value for kind in resolved_kinds]},
        )

    def register_function(
        self,
        name: str,
        func: CheckCallable,
        kinds: Iterable[ProbeKind | str],
        *,
        timeout_seconds: float | None = None,
    ) -> FunctionCheck:
        """Wrap ``func`` in a ``FunctionCheck`` and register it."""
        check = FunctionCheck(name=name, check=func, timeout_seconds=timeout_seconds)
        self.register(check, kinds)
        return check

    def register_all(self, registrations: Iterable[CheckRegistration]) -> None:
        for registration in registrations:
            self.register(registration.to_check(), registration.kinds)

    def list_for(self, kind: ProbeKind | str) -> tuple[HealthCheck, ...]:
        """Return the checks of one kind in registration order."""
        return tuple(self._partitions[ProbeKind.parse(kind)])

    def list_all(self) -> tuple[HealthCheck, ...]:
        """Return each distinct check once, ordered by kind then registration."""
        seen: set[int] = set()
        checks: list[HealthCheck] = []
        for kind in ProbeKind:
            for check in self._partitions[kind]:
                if id(check) in seen:
                    continue
                seen.add(id(check))
                checks.append(check)
        return tuple(checks)

    def kinds_of(self, name: str) -> frozenset[ProbeKind]:
        return frozenset(
            kind
            for kind, partition in self._partitions.items()
            if any(check.name == name for check in partition)
        )

    def seal(self) -> None:
        """Freeze the check set; later registrations fail."""
        self._sealed = True

    def __len__(self) -> int:
        return len(self._owners)

    def __contains__(self, name: object) -> bool:
        return name in self._owners


def _resolve_kinds(kinds: Iterable[ProbeKind | str]) -> list[ProbeKind]:
    if isinstance(kinds, (str, ProbeKind)):
        kinds = [kinds]

    resolved: list[ProbeKind] = []
    for kind in kinds:
        try:
            parsed = ProbeKind.parse(kind)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown probe kind: {kind!r}") from exc
        if parsed not in resolved:
            resolved.append(parsed)
    return resolved


__all__ = ["CheckRegistration", "CheckRegistry"]
