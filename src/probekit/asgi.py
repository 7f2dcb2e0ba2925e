"""Framework-neutral ASGI application serving the probe endpoints."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from probekit.checks import ProbeKind
from probekit.observability.logging import request_scope_from_headers
from probekit.observability.metrics import prometheus_content_type, render_prometheus_metrics
from probekit.responder import HealthResponse
from probekit.runtime import HealthRuntime

ASGIApp = Callable[[dict[str, Any], Any, Any], Awaitable[None]]

_PROBE_SUFFIXES = {
    "/live": ProbeKind.LIVENESS,
    "/ready": ProbeKind.READINESS,
    "/started": ProbeKind.STARTUP,
}


async def _send_response(
    send: Any,
    *,
    status: int,
    body: bytes,
    content_type: str,
    content_length: int | None = None,
    extra_headers: list[tuple[bytes, bytes]] | None = None,
) -> None:
    response_length = len(body) if content_length is None else max(0, content_length)
    headers = [
        (b"content-type", content_type.encode("latin-1")),
        (b"content-length", str(response_length).encode("ascii")),
        (b"cache-control", b"no-store"),
        *(extra_headers or []),
    ]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body})


async def _serve_lifespan(receive: Any, send: Any) -> None:
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return


def create_health_asgi_app(
    runtime: HealthRuntime,
    *,
    base_path: str | None = None,
    expose_metrics: bool | None = None,
    metrics_registry: Any | None = None,
) -> ASGIApp:
    """Create an ASGI app exposing ``<base>/live``, ``/ready``, ``/started`` and ``<base>``.

    Probe responses are 200 when UP and 503 when DOWN. ``/metrics`` is served
    when ``expose_metrics`` is on.
    """
    base = runtime.settings.base_path if base_path is None else base_path.rstrip("/")
    serve_metrics = runtime.settings.expose_metrics if expose_metrics is None else expose_metrics

    routes: dict[str, Callable[[], Awaitable[HealthResponse]]] = {
        f"{base}{suffix}": _probe_handler(runtime, kind) for suffix, kind in _PROBE_SUFFIXES.items()
    }
    routes[base or "/"] = runtime.health

    async def app(scope: dict[str, Any], receive: Any, send: Any) -> None:
        if scope.get("type") == "lifespan":
            await _serve_lifespan(receive, send)
            return
        if scope.get("type") != "http":
            return

        method = str(scope.get("method", "GET")).upper()
        path = str(scope.get("path", "/")).rstrip("/") or "/"

        if method not in {"GET", "HEAD"}:
            await _send_response(
                send,
                status=405,
                body=b"method not allowed",
                content_type="text/plain; charset=utf-8",
                extra_headers=[(b"allow", b"GET, HEAD")],
            )
            return

        if serve_metrics and path == "/metrics":
            payload = render_prometheus_metrics(registry=metrics_registry)
            await _send_response(
                send,
                status=200,
                body=b"" if method == "HEAD" else payload,
                content_type=prometheus_content_type(),
                content_length=len(payload),
            )
            return

        handler = routes.get(path)
        if handler is None:
            await _send_response(
                send,
                status=404,
                body=b"not found",
                content_type="text/plain; charset=utf-8",
            )
            return

        with request_scope_from_headers(_decode_headers(scope)) as request_id:
            response = await handler()
            payload = response.to_json()
            await _send_response(
                send,
                status=response.status_code,
                body=b"" if method == "HEAD" else payload,
                content_type=response.media_type,
                content_length=len(payload),
                extra_headers=[(b"x-request-id", request_id.encode("latin-1"))]
                if request_id
                else None,
            )

    return app


def _probe_handler(runtime: HealthRuntime, kind: ProbeKind) -> Callable[[], Awaitable[HealthResponse]]:
    async def handler() -> HealthResponse:
        return await runtime.probe(kind)

    return handler


def _decode_headers(scope: dict[str, Any]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for raw_key, raw_value in scope.get("headers") or []:
        headers[raw_key.decode("latin-1").lower()] = raw_value.decode("latin-1")
    return headers


__all__ = ["ASGIApp", "create_health_asgi_app"]
