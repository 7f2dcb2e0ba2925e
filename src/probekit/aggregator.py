"""Reduction of per-check results into one probe status."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from probekit.checks import CheckResult, CheckStatus


@dataclass(frozen=True, slots=True)
class AggregateResult:
    """Overall status plus the per-check results it was computed from."""

    status: CheckStatus
    checks: tuple[CheckResult, ...]

    @property
    def is_up(self) -> bool:
        return self.status is CheckStatus.UP

    @property
    def failed(self) -> tuple[CheckResult, ...]:
        return tuple(result for result in self.checks if not result.is_up)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable payload suitable for probe endpoints."""
        return {
            "status": self.status.value,
            "checks": [result.to_dict() for result in self.checks],
        }


def aggregate(results: Iterable[CheckResult]) -> AggregateResult:
    """Any DOWN result makes the aggregate DOWN; no results means UP."""
    checks = tuple(results)
    status = (
        CheckStatus.DOWN
        if any(result.status is CheckStatus.DOWN for result in checks)
        else CheckStatus.UP
    )
    return AggregateResult(status=status, checks=checks)


__all__ = ["AggregateResult", "aggregate"]
