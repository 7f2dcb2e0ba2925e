"""Tests for the ASGI probe application."""

from __future__ import annotations

import json
from typing import Any

import pytest

from conftest import down_check, up_check
from probekit import HealthRuntime, HealthSettings, create_health_asgi_app


class AsgiClient:
    def __init__(self, app: Any) -> None:
        self._app = app

    async def request(
        self,
        path: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
    ) -> tuple[int, dict[bytes, bytes], bytes]:
        sent: list[dict[str, Any]] = []

        async def receive() -> dict[str, Any]:
            return {"type": "http.request", "body": b"", "more_body": False}

        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        scope = {
            "type": "http",
            "method": method,
            "path": path,
            "headers": [
                (key.encode("latin-1"), value.encode("latin-1"))
                for key, value in (headers or {}).items()
            ],
        }
        await self._app(scope, receive, send)
        return sent[0]["status"], dict(sent[0]["headers"]), sent[1]["body"]


@pytest.fixture
def runtime() -> HealthRuntime:
    return HealthRuntime.build(
        checks=[
            (down_check("failed-check"), ["liveness"]),
            (up_check("successful-check"), ["readiness"]),
            (up_check("booted"), ["startup"]),
        ]
    )


@pytest.mark.parametrize(
    ("path", "status", "names"),
    [
        ("/health/live", 503, ["failed-check"]),
        ("/health/ready", 200, ["successful-check"]),
        ("/health/started", 200, ["booted"]),
        ("/health", 503, ["failed-check", "successful-check", "booted"]),
        ("/health/ready/", 200, ["successful-check"]),
    ],
)
async def test_probe_paths(runtime: HealthRuntime, path: str, status: int, names: list[str]) -> None:
    code, headers, body = await AsgiClient(create_health_asgi_app(runtime)).request(path)

    assert code == status
    assert headers[b"cache-control"] == b"no-store"
    assert [check["name"] for check in json.loads(body)["checks"]] == names


async def test_request_id_is_propagated(runtime: HealthRuntime) -> None:
    client = AsgiClient(create_health_asgi_app(runtime))

    _, headers, _ = await client.request("/health/ready", headers={"X-Request-ID": "req-42"})

    assert headers[b"x-request-id"] == b"req-42"


async def test_request_id_is_generated_when_missing(runtime: HealthRuntime) -> None:
    _, headers, _ = await AsgiClient(create_health_asgi_app(runtime)).request("/health/ready")

    assert len(headers[b"x-request-id"]) == 32


async def test_head_returns_headers_without_body(runtime: HealthRuntime) -> None:
    code, headers, body = await AsgiClient(create_health_asgi_app(runtime)).request(
        "/health/live", method="HEAD"
    )

    assert code == 503
    assert body == b""
    assert int(headers[b"content-length"]) > 0


async def test_unknown_path_and_method(runtime: HealthRuntime) -> None:
    client = AsgiClient(create_health_asgi_app(runtime))

    assert (await client.request("/healthz"))[0] == 404
    code, headers, _ = await client.request("/health/live", method="POST")
    assert code == 405
    assert headers[b"allow"] == b"GET, HEAD"


async def test_custom_base_path() -> None:
    runtime = HealthRuntime.build(
        HealthSettings(base_path="probes/"),
        checks=[(up_check("ok"), ["liveness"])],
    )
    client = AsgiClient(create_health_asgi_app(runtime))

    assert (await client.request("/probes/live"))[0] == 200
    assert (await client.request("/probes"))[0] == 200
    assert (await client.request("/health/live"))[0] == 404


async def test_metrics_endpoint_when_enabled() -> None:
    prometheus_client = pytest.importorskip("prometheus_client")
    from probekit.observability.metrics import PrometheusMetricsRecorder

    registry = prometheus_client.CollectorRegistry()
    recorder = PrometheusMetricsRecorder(registry=registry)
    runtime = HealthRuntime.build(checks=[(up_check("ok"), ["liveness"])], metrics=recorder)
    client = AsgiClient(
        create_health_asgi_app(runtime, expose_metrics=True, metrics_registry=registry)
    )

    await client.request("/health/live")
    code, _, body = await client.request("/metrics")

    assert code == 200
    assert b"probekit_probe_up" in body


async def test_lifespan_is_acknowledged(runtime: HealthRuntime) -> None:
    app = create_health_asgi_app(runtime)
    messages = iter([{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}])
    sent: list[dict[str, Any]] = []

    async def receive() -> dict[str, Any]:
        return next(messages)

    async def send(message: dict[str, Any]) -> None:
        sent.append(message)

    await app({"type": "lifespan"}, receive, send)

    assert [m["type"] for m in sent] == ["lifespan.startup.complete", "lifespan.shutdown.complete"]
