"""Telemetry utilities for logging, metrics, and tracing.

This module provides centralized observability infrastructure including:
- Structured logging with credential and PII redaction
- Prometheus metrics for webservice requests
- OpenTelemetry tracing setup
"""

import logging
import re
import sys
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from prometheus_client import Counter, Histogram, start_http_server
from structlog.processors import JSONRenderer

# Prometheus metrics
REQUEST_COUNTER = Counter(
    "decktutor_requests_total",
    "Total number of webservice requests",
    ["operation", "method", "status"],
)

REQUEST_LATENCY = Histogram(
    "decktutor_request_duration_seconds",
    "Webservice request latency in seconds",
    ["operation", "method"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

SIGNED_REQUESTS = Counter(
    "decktutor_signed_requests_total",
    "Total number of requests carrying auth headers",
)

# Keys whose values never reach the log output
SENSITIVE_KEYS = frozenset(
    {
        "password",
        "auth_token",
        "auth_token_secret",
        "secret",
        "signature",
        "captcha_answer",
        "x-dt-auth-token",
        "x-dt-signature",
    }
)

PII_PATTERNS = {
    "email": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b"),
}


def redact_pii(text: Any) -> Any:
    """Redact personally identifiable information from text.

    Args:
        text: Input text that may contain PII

    Returns:
        Text with PII patterns replaced with [REDACTED_<type>], or original input if not a string

    Example:
        >>> redact_pii("registered as john@example.com")
        'registered as [REDACTED_EMAIL]'
    """
    if not isinstance(text, str):
        return text

    result = text
    for pii_type, pattern in PII_PATTERNS.items():
        result = pattern.sub(f"[REDACTED_{pii_type.upper()}]", result)
    return result


def redaction_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor masking credentials and PII in log events.

    Values stored under a sensitive key are replaced wholesale, other
    strings go through :func:`redact_pii`. Nested dicts and lists are
    walked.
    """

    def redact_value(key: Any, value: Any) -> Any:
        if isinstance(key, str) and key.lower() in SENSITIVE_KEYS:
            return "[REDACTED]"
        if isinstance(value, str):
            return redact_pii(value)
        elif isinstance(value, dict):
            return {k: redact_value(k, v) for k, v in value.items()}
        elif isinstance(value, list):
            return [redact_value(None, item) for item in value]
        return value

    return {key: redact_value(key, value) for key, value in event_dict.items()}


def setup_logging(
    log_level: str = "INFO",
    enable_redaction: bool = True,
    log_format: str = "json",
) -> None:
    """Initialize structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        enable_redaction: Whether to mask credentials and PII
        log_format: ``json`` for machine output, ``text`` for a console renderer
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper(), logging.INFO),
        force=True,
    )

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if enable_redaction:
        processors.append(redaction_processor)

    if log_format == "text":
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    else:
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_tracing(service_name: str = "decktutor") -> None:
    """Initialize OpenTelemetry tracing with a console exporter.

    Args:
        service_name: Name of the service for tracing
    """
    from decktutor import __version__

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.version": __version__,
        }
    )

    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(tracer_provider)


def get_tracer(name: str) -> trace.Tracer:
    """Get OpenTelemetry tracer for a component.

    Args:
        name: Tracer name (typically module name)

    Returns:
        Tracer instance
    """
    return trace.get_tracer(name)


def get_logger(name: str, **context: Any) -> Any:
    """Get a structured logger with optional context.

    Args:
        name: Logger name
        **context: Additional context to bind to logger

    Returns:
        Bound logger with context
    """
    logger = structlog.get_logger(name)
    if context:
        logger = logger.bind(**context)
    return logger


def log_operation(
    logger: Any,
    operation: str,
    status: str = "success",
    method: str | None = None,
    status_code: int | None = None,
    latency_ms: float | None = None,
    **extra_context: Any,
) -> None:
    """Log a webservice operation with standardized fields.

    Args:
        logger: Structured logger instance
        operation: Client operation name (e.g. ``login``)
        status: Operation status (success, error)
        method: HTTP method
        status_code: HTTP status returned, when one was received
        latency_ms: Operation latency in milliseconds
        **extra_context: Additional context fields
    """
    log_data = {
        "operation": operation,
        "status": status,
        **extra_context,
    }

    if method is not None:
        log_data["method"] = method
    if status_code is not None:
        log_data["status_code"] = status_code
    if latency_ms is not None:
        log_data["latency_ms"] = latency_ms

    if status == "error":
        logger.error("Operation completed", **log_data)
    else:
        logger.info("Operation completed", **log_data)


class RequestTimer:
    """Timing state of one webservice request."""

    def __init__(self, operation: str, method: str) -> None:
        self.operation = operation
        self.method = method
        self.status_code: int | None = None
        self.span: trace.Span | None = None
        self.start_time: float | None = None
        self.end_time: float | None = None

    @property
    def duration(self) -> float | None:
        """Get request duration in seconds."""
        if self.start_time is not None and self.end_time is not None:
            return self.end_time - self.start_time
        return None


@asynccontextmanager
async def request_timer(
    operation: str,
    method: str,
    logger: Any = None,
    record_metrics: bool = True,
    tracer_name: str = "decktutor.client",
) -> AsyncGenerator[RequestTimer, None]:
    """Async context manager measuring a webservice request.

    Records Prometheus metrics and logs the outcome. The request runs
    inside a tracing span that is current for its duration, so spans
    opened underneath nest in it. The caller may set
    ``timer.status_code`` once a response arrives.

    Args:
        operation: Client operation name
        method: HTTP method
        logger: Logger instance (optional)
        record_metrics: Whether to record Prometheus metrics
        tracer_name: Tracer name for spans

    Yields:
        RequestTimer instance
    """
    timer = RequestTimer(operation, method)
    logger = logger or get_logger("decktutor.client")

    timer.span = get_tracer(tracer_name).start_span(operation)
    timer.span.set_attribute("http.method", method)
    timer.start_time = time.perf_counter()

    try:
        with trace.use_span(
            timer.span,
            end_on_exit=False,
            record_exception=False,
            set_status_on_exception=False,
        ):
            yield timer
    except Exception as e:
        timer.end_time = time.perf_counter()
        duration = timer.end_time - timer.start_time

        if record_metrics:
            REQUEST_COUNTER.labels(
                operation=operation, method=method, status="error"
            ).inc()
            REQUEST_LATENCY.labels(operation=operation, method=method).observe(
                duration
            )

        if timer.status_code is not None:
            timer.span.set_attribute("http.status_code", timer.status_code)
        timer.span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
        timer.span.record_exception(e)
        timer.span.end()

        log_operation(
            logger,
            operation,
            status="error",
            method=method,
            status_code=timer.status_code,
            latency_ms=duration * 1000,
            error=str(e),
        )
        raise
    else:
        timer.end_time = time.perf_counter()
        duration = timer.end_time - timer.start_time

        if record_metrics:
            REQUEST_COUNTER.labels(
                operation=operation, method=method, status="success"
            ).inc()
            REQUEST_LATENCY.labels(operation=operation, method=method).observe(
                duration
            )

        if timer.status_code is not None:
            timer.span.set_attribute("http.status_code", timer.status_code)
        timer.span.set_status(trace.Status(trace.StatusCode.OK))
        timer.span.end()

        log_operation(
            logger,
            operation,
            status="success",
            method=method,
            status_code=timer.status_code,
            latency_ms=duration * 1000,
        )


def record_signed_request() -> None:
    """Count a request that went out with auth headers."""
    SIGNED_REQUESTS.inc()


def start_metrics_server(port: int = 8000) -> None:
    """Start Prometheus metrics HTTP server.

    Args:
        port: Port to serve metrics on
    """
    start_http_server(port)
