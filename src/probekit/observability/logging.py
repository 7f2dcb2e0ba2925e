"""Structured logging bootstrap and probe request correlation."""

from __future__ import annotations

import contextvars
import json
import logging
import os
import random
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TextIO
from uuid import uuid4

if TYPE_CHECKING:
    from probekit.config.models import AppSettings

_REQUEST_ID_HEADERS = ("x-request-id", "request-id", "x-correlation-id")

_REQUEST_ID_CTX: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "probekit_request_id",
    default=None,
)

_STANDARD_RECORD_KEYS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)
_RESERVED_FIELDS = frozenset({"service", "env", "request_id", "trace_id"})


class SamplingFilter(logging.Filter):
    """Sampling filter for low-severity logs."""

    def __init__(self, sampling: float) -> None:
        super().__init__()
        self._sampling = sampling

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.WARNING:
            return True
        return random.random() < self._sampling


class JsonFormatter(logging.Formatter):
    """One JSON object per line with service, env and request correlation."""

    def __init__(self, *, service: str, env: str) -> None:
        super().__init__()
        self._service = service
        self._env = env

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": _format_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self._service,
            "env": self._env,
            "request_id": get_request_id(),
            "trace_id": _current_otel_trace_id(),
        }
        payload.update(_extract_extra_fields(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=True)


class TextFormatter(logging.Formatter):
    """Plain text formatter carrying the same correlation fields."""

    def __init__(self, *, service: str, env: str) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s %(message)s")
        self._service = service
        self._env = env

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = " ".join(f"{key}={value}" for key, value in _extract_extra_fields(record).items())
        line = (
            f"{base} service={self._service} env={self._env} "
            f"request_id={get_request_id() or '-'}"
        )
        return f"{line} {extras}" if extras else line


def get_request_id() -> str | None:
    return _REQUEST_ID_CTX.get()


@contextmanager
def request_scope(request_id: str | None) -> Iterator[str | None]:
    """Bind ``request_id`` for log records emitted in this context."""
    token = _REQUEST_ID_CTX.set(_clean_optional_string(request_id))
    try:
        yield _REQUEST_ID_CTX.get()
    finally:
        _REQUEST_ID_CTX.reset(token)


@contextmanager
def request_scope_from_headers(
    headers: Mapping[str, str],
    *,
    generate: bool = True,
) -> Iterator[str | None]:
    """Bind the request id found in ``headers``, generating one when missing."""
    request_id = extract_request_id(headers)
    if request_id is None and generate:
        request_id = uuid4().hex
    with request_scope(request_id) as bound:
        yield bound


def extract_request_id(headers: Mapping[str, str]) -> str | None:
    normalized = {str(key).lower(): value for key, value in headers.items()}
    for key in _REQUEST_ID_HEADERS:
        value = _clean_optional_string(normalized.get(key))
        if value is not None:
            return value
    return None


def bootstrap_logging(
    *,
    service: str,
    env: str | None = None,
    level: str = "INFO",
    log_format: str = "json",
    sampling: float | None = None,
    logger: logging.Logger | None = None,
    stream: TextIO | None = None,
    force: bool = True,
) -> logging.Logger:
    """Configure a logger with standard formatting and correlation fields."""
    resolved_env = env if env is not None else os.getenv("PROBEKIT_ENV", "development")
    target_logger = logger or logging.getLogger()

    if force:
        for handler in list(target_logger.handlers):
            target_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    if log_format == "text":
        handler.setFormatter(TextFormatter(service=service, env=resolved_env))
    else:
        handler.setFormatter(JsonFormatter(service=service, env=resolved_env))

    if sampling is not None and sampling < 1.0:
        handler.addFilter(SamplingFilter(sampling))

    target_logger.addHandler(handler)
    target_logger.setLevel(level.upper())
    if target_logger is not logging.getLogger():
        target_logger.propagate = False
    return target_logger


def bootstrap_logging_from_app_settings(
    app_settings: AppSettings,
    *,
    env: str | None = None,
    logger: logging.Logger | None = None,
    stream: TextIO | None = None,
    force: bool = True,
) -> logging.Logger:
    """Bootstrap logging using values from typed appsettings."""
    return bootstrap_logging(
        service=app_settings.service.name,
        env=env,
        level=app_settings.logging.level,
        log_format=app_settings.logging.format,
        sampling=app_settings.logging.sampling,
        logger=logger,
        stream=stream,
        force=force,
    )


def _clean_optional_string(value: object | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _current_otel_trace_id() -> str | None:
    try:
        from opentelemetry import trace as otel_trace
    except ImportError:
        return None

    span_context = otel_trace.get_current_span().get_span_context()
    if not getattr(span_context, "is_valid", False):
        return None
    return f"{span_context.trace_id:032x}"


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_RECORD_KEYS
        and key not in _RESERVED_FIELDS
        and not key.startswith("_")
    }


def _format_timestamp(created: float) -> str:
    timestamp = datetime.fromtimestamp(created, tz=UTC)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")
