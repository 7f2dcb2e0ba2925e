"""End-to-end probe scenarios: liveness failure alongside a healthy readiness probe."""

from __future__ import annotations

import json
from typing import Any

import pytest

from probekit import CheckResult, CheckStatus, HealthRuntime, ProbeKind, create_health_asgi_app
from probekit.registry import CheckRegistration


def _successful_check() -> CheckResult:
    return CheckResult.named("successful-check").up().build()


def _failed_check() -> CheckResult:
    return CheckResult.named("failed-check").down().build()


@pytest.fixture
def runtime() -> HealthRuntime:
    return HealthRuntime.build(
        registrations=[
            CheckRegistration("failed-check", frozenset({ProbeKind.LIVENESS}), _failed_check),
            CheckRegistration(
                "successful-check", frozenset({ProbeKind.LIVENESS}), _successful_check
            ),
        ]
    )


async def _get(app: Any, path: str) -> tuple[int, dict[str, Any], dict[bytes, bytes]]:
    sent: list[dict[str, Any]] = []

    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": b"", "more_body": False}

    async def send(message: dict[str, Any]) -> None:
        sent.append(message)

    await app({"type": "http", "method": "GET", "path": path, "headers": []}, receive, send)
    headers = dict(sent[0]["headers"])
    return sent[0]["status"], json.loads(sent[1]["body"]), headers


def _readiness_runtime() -> HealthRuntime:
    return HealthRuntime.build(
        registrations=[
            CheckRegistration("failed-check", frozenset({ProbeKind.LIVENESS}), _failed_check),
            CheckRegistration(
                "successful-liveness", frozenset({ProbeKind.LIVENESS}), _successful_check
            ),
            CheckRegistration(
                "successful-check", frozenset({ProbeKind.READINESS}), _successful_check
            ),
        ]
    )


async def test_failed_liveness_payload(runtime: HealthRuntime) -> None:
    status, body, headers = await _get(create_health_asgi_app(runtime), "/health/live")

    assert status == 503
    assert headers[b"content-type"] == b"application/json"
    assert len(body["checks"]) == 2, "Expected two check responses"
    statuses = {check["name"]: check["status"] for check in body["checks"]}
    assert statuses == {"successful-check": "UP", "failed-check": "DOWN"}
    assert body["status"] == "DOWN"


async def test_successful_readiness_payload() -> None:
    status, body, _ = await _get(create_health_asgi_app(_readiness_runtime()), "/health/ready")

    assert status == 200
    assert len(body["checks"]) == 1, "Expected a single check response"
    assert body["checks"][0]["name"] == "successful-check"
    assert body["checks"][0]["status"] == "UP"
    assert body["status"] == "UP"


async def test_liveness_failure_does_not_leak_into_readiness() -> None:
    runtime = _readiness_runtime()

    live = await runtime.live()
    ready = await runtime.ready()

    assert live.status is CheckStatus.DOWN
    assert ready.status is CheckStatus.UP
    assert [check["name"] for check in ready.body["checks"]] == ["successful-check"]
    assert "failed-check" not in {check["name"] for check in ready.body["checks"]}


async def test_checks_are_reported_in_registration_order(runtime: HealthRuntime) -> None:
    response = await runtime.live()

    assert [check["name"] for check in response.body["checks"]] == [
        "failed-check",
        "successful-check",
    ]


async def test_throwing_check_still_produces_complete_document() -> None:
    def exploding() -> CheckResult:
        raise ConnectionError("broker unreachable")

    runtime = HealthRuntime.build(
        registrations=[
            CheckRegistration("broker", frozenset({ProbeKind.READINESS}), exploding),
            CheckRegistration("cache", frozenset({ProbeKind.READINESS}), lambda: CheckResult.up("cache")),
        ]
    )

    status, body, _ = await _get(create_health_asgi_app(runtime), "/health/ready")

    assert status == 503
    assert body == {
        "status": "DOWN",
        "checks": [
            {"name": "broker", "status": "DOWN", "data": {"error": "broker unreachable"}},
            {"name": "cache", "status": "UP"},
        ],
    }
